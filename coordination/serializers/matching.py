import bleach
from rest_framework import serializers

from coordination.services.compatibility import BLOOD_TYPES, ORGAN_TYPES, URGENCY_LEVELS

_ORGANS_BY_KEY = {o.lower(): o for o in ORGAN_TYPES}


def plain_text(v):
    """Strip every HTML tag; free text is stored and shown as plain text."""
    return bleach.clean((v or "").strip(), tags=set(), attributes={}, strip=True)


class NeedSerializer(serializers.Serializer):
    """Body of find-matches / create-request.

    ``organType``, ``bloodType`` and ``urgencyLevel`` default to the
    patient's record when omitted.
    """
    patientId = serializers.CharField(max_length=64)
    organType = serializers.CharField(max_length=32, required=False)
    bloodType = serializers.ChoiceField(choices=list(BLOOD_TYPES), required=False)
    urgencyLevel = serializers.ChoiceField(choices=list(URGENCY_LEVELS), required=False)

    def validate_organType(self, v):
        organ = _ORGANS_BY_KEY.get(plain_text(v).lower())
        if organ is None:
            raise serializers.ValidationError(f"organ type must be one of: {', '.join(ORGAN_TYPES)}")
        return organ


class RespondSerializer(serializers.Serializer):
    requestId = serializers.CharField(max_length=64)
    response = serializers.ChoiceField(choices=['accept', 'reject'])
    donorId = serializers.CharField(max_length=64, required=False, allow_blank=True)
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True)

    def validate_notes(self, v):
        return plain_text(v)

    def validate(self, attrs):
        if attrs['response'] == 'accept' and not attrs.get('donorId'):
            raise serializers.ValidationError({'donorId': 'donor id is required to accept'})
        return attrs


class RequestListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=['created', 'matched', 'no_matches', 'accepted', 'rejected'], required=False
    )
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=100, required=False)


class NotificationListQuerySerializer(serializers.Serializer):
    unread = serializers.BooleanField(required=False, default=False)
    type = serializers.ChoiceField(choices=['organ_match', 'match_response'], required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=100, required=False)


class NotificationReadSerializer(serializers.Serializer):
    notificationId = serializers.CharField(max_length=64, required=False)
    all = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if not attrs.get('notificationId') and not attrs.get('all'):
            raise serializers.ValidationError('notificationId or all=true is required')
        return attrs
