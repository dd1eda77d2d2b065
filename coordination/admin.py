"""
Django admin registrations for the coordination models.

Hospitals, users and the donor pool are fully editable.  Matching
requests, their ranked snapshots and notifications are the audit trail
of the matching workflow, so the admin can inspect them but never
delete them.
"""

from django.contrib import admin

from .models import (
    AuditEvent,
    Donor,
    DonorOrgan,
    Hospital,
    MatchingRequest,
    Notification,
    Patient,
    RankedCandidate,
    User,
)


class NoDeleteAdmin(admin.ModelAdmin):
    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'city', 'state', 'is_active', 'created_at')
    list_filter = ('is_active', 'state')
    search_fields = ('id', 'name', 'city')


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'hospital', 'is_staff', 'is_superuser')
    list_filter = ('role', 'hospital')
    search_fields = ('username', 'first_name', 'last_name')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'full_name', 'hospital', 'blood_type', 'organ_needed', 'urgency_level', 'is_active')
    list_filter = ('blood_type', 'organ_needed', 'urgency_level', 'hospital')
    search_fields = ('id', 'full_name')


class DonorOrganInline(admin.TabularInline):
    model = DonorOrgan
    extra = 1


@admin.register(Donor)
class DonorAdmin(admin.ModelAdmin):
    list_display = ('id', 'full_name', 'hospital', 'blood_type', 'organ_list', 'is_active', 'signature_verified',
                    'registered_at')
    list_filter = ('blood_type', 'is_active', 'signature_verified', 'hospital')
    search_fields = ('id', 'full_name')
    inlines = [DonorOrganInline]

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related('organs')


class RankedCandidateInline(admin.TabularInline):
    model = RankedCandidate
    extra = 0
    can_delete = False
    readonly_fields = (
        'rank', 'donor_ref', 'hospital_ref', 'blood_type', 'organs', 'registered_at',
        'score', 'compatibility', 'urgency_bonus', 'proximity', 'freshness',
    )

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(MatchingRequest)
class MatchingRequestAdmin(NoDeleteAdmin):
    list_display = ('id', 'patient_ref', 'requesting_hospital', 'organ_type', 'blood_type',
                    'urgency_level', 'best_score', 'status', 'matched_hospital', 'created_at')
    list_filter = ('status', 'organ_type', 'urgency_level')
    search_fields = ('id', 'patient_ref', 'requesting_hospital__name')
    readonly_fields = ('status', 'matched_donor', 'matched_hospital', 'resolved_at')
    inlines = [RankedCandidateInline]


@admin.register(Notification)
class NotificationAdmin(NoDeleteAdmin):
    list_display = ('id', 'hospital', 'type', 'title', 'request', 'is_read', 'created_at')
    list_filter = ('type', 'is_read', 'hospital')
    search_fields = ('id', 'title', 'request__id')


@admin.register(AuditEvent)
class AuditEventAdmin(NoDeleteAdmin):
    list_display = ('action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action',)
    search_fields = ('object_id', 'user__username')
