import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


BLOOD_TYPES = [('O-', 'O-'), ('O+', 'O+'), ('A-', 'A-'), ('A+', 'A+'), ('B-', 'B-'), ('B+', 'B+'), ('AB-', 'AB-'), ('AB+', 'AB+')]
URGENCY = [('Critical', 'Critical'), ('High', 'High'), ('Medium', 'Medium'), ('Low', 'Low')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='Hospital',
            fields=[
                ('id', models.CharField(max_length=64, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('city', models.CharField(blank=True, max_length=128)),
                ('state', models.CharField(blank=True, max_length=128)),
                ('country', models.CharField(blank=True, max_length=128)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='email address')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('role', models.CharField(choices=[('hospital', 'Hospital staff'), ('admin', 'Administrator')], default='hospital', max_length=10)),
                ('hospital', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='users', to='coordination.hospital')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'abstract': False,
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.CharField(max_length=64, primary_key=True, serialize=False)),
                ('full_name', models.CharField(max_length=255)),
                ('blood_type', models.CharField(choices=BLOOD_TYPES, max_length=3)),
                ('organ_needed', models.CharField(max_length=32)),
                ('urgency_level', models.CharField(choices=URGENCY, default='Medium', max_length=10)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('hospital', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='patients', to='coordination.hospital')),
            ],
        ),
        migrations.CreateModel(
            name='Donor',
            fields=[
                ('id', models.CharField(max_length=64, primary_key=True, serialize=False)),
                ('full_name', models.CharField(max_length=255)),
                ('blood_type', models.CharField(choices=BLOOD_TYPES, db_index=True, max_length=3)),
                ('is_active', models.BooleanField(default=True)),
                ('signature_verified', models.BooleanField(default=False)),
                ('registered_at', models.DateTimeField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('hospital', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='donors', to='coordination.hospital')),
            ],
            options={
                'indexes': [models.Index(fields=['blood_type', 'is_active', 'signature_verified'], name='donor_bt_active_verified_idx')],
            },
        ),
        migrations.CreateModel(
            name='DonorOrgan',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('organ', models.CharField(db_index=True, max_length=32)),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='organs', to='coordination.donor')),
            ],
            options={
                'unique_together': {('donor', 'organ')},
            },
        ),
        migrations.CreateModel(
            name='MatchingRequest',
            fields=[
                ('id', models.CharField(max_length=64, primary_key=True, serialize=False)),
                ('patient_ref', models.CharField(db_index=True, max_length=64)),
                ('organ_type', models.CharField(max_length=32)),
                ('blood_type', models.CharField(choices=BLOOD_TYPES, max_length=3)),
                ('urgency_level', models.CharField(choices=URGENCY, max_length=10)),
                ('best_score', models.DecimalField(decimal_places=2, default=0, max_digits=5)),
                ('status', models.CharField(choices=[('created', 'created'), ('matched', 'matched'), ('no_matches', 'no_matches'), ('accepted', 'accepted'), ('rejected', 'rejected')], db_index=True, default='created', max_length=16)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('matched_donor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='accepted_requests', to='coordination.donor')),
                ('matched_hospital', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='accepted_requests', to='coordination.hospital')),
                ('requesting_hospital', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='outgoing_requests', to='coordination.hospital')),
            ],
            options={
                'indexes': [models.Index(fields=['requesting_hospital', 'status', 'created_at'], name='matchreq_hosp_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='RankedCandidate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rank', models.PositiveIntegerField()),
                ('donor_ref', models.CharField(db_index=True, max_length=64)),
                ('hospital_ref', models.CharField(db_index=True, max_length=64)),
                ('blood_type', models.CharField(max_length=3)),
                ('organs', models.JSONField(default=list)),
                ('registered_at', models.DateTimeField()),
                ('score', models.DecimalField(decimal_places=2, max_digits=5)),
                ('compatibility', models.DecimalField(decimal_places=2, max_digits=5)),
                ('urgency_bonus', models.DecimalField(decimal_places=2, max_digits=5)),
                ('proximity', models.DecimalField(decimal_places=2, max_digits=5)),
                ('freshness', models.DecimalField(decimal_places=2, max_digits=5)),
                ('request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='candidates', to='coordination.matchingrequest')),
            ],
            options={
                'ordering': ['rank'],
                'unique_together': {('request', 'rank')},
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.CharField(max_length=64, primary_key=True, serialize=False)),
                ('type', models.CharField(choices=[('organ_match', 'organ_match'), ('match_response', 'match_response')], max_length=20)),
                ('title', models.CharField(max_length=255)),
                ('message', models.TextField()),
                ('is_read', models.BooleanField(default=False)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('hospital', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='notifications', to='coordination.hospital')),
                ('request', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='notifications', to='coordination.matchingrequest')),
            ],
            options={
                'indexes': [
                    models.Index(fields=['hospital', 'type', 'is_read'], name='notif_hosp_type_read_idx'),
                    models.Index(fields=['request', 'hospital'], name='notif_request_hosp_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AuditEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(max_length=64)),
                ('object_type', models.CharField(blank=True, max_length=64, null=True)),
                ('object_id', models.CharField(blank=True, max_length=64, null=True)),
                ('detail', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
                    models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
                ],
            },
        ),
    ]
