from django.conf import settings
from django.db import migrations, models
import blood.services.inventory
import django.core.validators
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('donor', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Organization',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=120)),
                ('phone', models.CharField(blank=True, max_length=20)),
                ('license_number', models.CharField(max_length=60, unique=True)),
                ('type', models.CharField(choices=[('Hospital', 'Hospital'), ('Blood Bank', 'Blood Bank'), ('Clinic', 'Clinic'), ('NGO', 'NGO')], default='Hospital', max_length=20)),
                ('state', models.CharField(blank=True, max_length=60)),
                ('district', models.CharField(blank=True, max_length=60)),
                ('city', models.CharField(blank=True, max_length=60)),
                ('address', models.CharField(blank=True, max_length=255)),
                ('verified', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='organization', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='InventoryItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('blood_group', models.CharField(choices=[('A+', 'A+'), ('A-', 'A-'), ('A1+', 'A1+'), ('A1-', 'A1-'), ('A1B+', 'A1B+'), ('A1B-', 'A1B-'), ('A2+', 'A2+'), ('A2-', 'A2-'), ('A2B+', 'A2B+'), ('A2B-', 'A2B-'), ('AB+', 'AB+'), ('AB-', 'AB-'), ('B+', 'B+'), ('B-', 'B-'), ('Bombay Blood Group', 'Bombay Blood Group'), ('INRA', 'INRA'), ('O+', 'O+'), ('O-', 'O-')], max_length=20)),
                ('units', models.PositiveIntegerField(default=0)),
                ('min_threshold', models.PositiveIntegerField(default=blood.services.inventory.default_min_threshold)),
                ('last_updated', models.DateTimeField(auto_now=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory', to='organization.organization')),
            ],
            options={
                'ordering': ['blood_group'],
            },
        ),
        migrations.AddConstraint(
            model_name='inventoryitem',
            constraint=models.UniqueConstraint(fields=('organization', 'blood_group'), name='unique_org_blood_group'),
        ),
        migrations.CreateModel(
            name='EmergencyRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('blood_group', models.CharField(choices=[('A+', 'A+'), ('A-', 'A-'), ('A1+', 'A1+'), ('A1-', 'A1-'), ('A1B+', 'A1B+'), ('A1B-', 'A1B-'), ('A2+', 'A2+'), ('A2-', 'A2-'), ('A2B+', 'A2B+'), ('A2B-', 'A2B-'), ('AB+', 'AB+'), ('AB-', 'AB-'), ('B+', 'B+'), ('B-', 'B-'), ('Bombay Blood Group', 'Bombay Blood Group'), ('INRA', 'INRA'), ('O+', 'O+'), ('O-', 'O-')], max_length=20)),
                ('units_required', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('urgency_level', models.CharField(choices=[('Critical', 'Critical'), ('High', 'High'), ('Medium', 'Medium')], default='Medium', max_length=10)),
                ('description', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('Active', 'Active'), ('Closed', 'Closed')], default='Active', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('closed_at', models.DateTimeField(blank=True, null=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='emergency_requests', to='organization.organization')),
            ],
            options={
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='MedicalReport',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('hb_level', models.DecimalField(blank=True, decimal_places=2, max_digits=4, null=True)),
                ('blood_pressure', models.CharField(blank=True, max_length=20)),
                ('pulse_rate', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('temperature', models.DecimalField(blank=True, decimal_places=1, max_digits=4, null=True)),
                ('weight', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('units_donated', models.DecimalField(blank=True, decimal_places=1, max_digits=4, null=True)),
                ('blood_group', models.CharField(blank=True, choices=[('A+', 'A+'), ('A-', 'A-'), ('A1+', 'A1+'), ('A1-', 'A1-'), ('A1B+', 'A1B+'), ('A1B-', 'A1B-'), ('A2+', 'A2+'), ('A2-', 'A2-'), ('A2B+', 'A2B+'), ('A2B-', 'A2B-'), ('AB+', 'AB+'), ('AB-', 'AB-'), ('B+', 'B+'), ('B-', 'B-'), ('Bombay Blood Group', 'Bombay Blood Group'), ('INRA', 'INRA'), ('O+', 'O+'), ('O-', 'O-')], max_length=20)),
                ('rh_factor', models.CharField(blank=True, choices=[('Positive', 'Positive'), ('Negative', 'Negative')], max_length=10)),
                ('hiv_status', models.CharField(choices=[('Negative', 'Negative'), ('Positive', 'Positive')], default='Negative', max_length=10)),
                ('hepatitis_b', models.CharField(choices=[('Negative', 'Negative'), ('Positive', 'Positive')], default='Negative', max_length=10)),
                ('hepatitis_c', models.CharField(choices=[('Negative', 'Negative'), ('Positive', 'Positive')], default='Negative', max_length=10)),
                ('syphilis', models.CharField(choices=[('Negative', 'Negative'), ('Positive', 'Positive')], default='Negative', max_length=10)),
                ('malaria', models.CharField(choices=[('Negative', 'Negative'), ('Positive', 'Positive')], default='Negative', max_length=10)),
                ('notes', models.TextField(blank=True)),
                ('test_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('donation', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='medical_report', to='donor.donation')),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='medical_reports', to='donor.donor')),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='medical_reports', to='organization.organization')),
            ],
            options={
                'ordering': ['-test_date', '-id'],
            },
        ),
        migrations.CreateModel(
            name='DonorVerification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('notes', models.TextField(blank=True)),
                ('status', models.CharField(default='Verified', max_length=20)),
                ('verified_at', models.DateTimeField(auto_now_add=True)),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='verifications', to='donor.donor')),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='verifications', to='organization.organization')),
            ],
            options={
                'ordering': ['-verified_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='OrganizationMember',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(default='Member', max_length=40)),
                ('joined_at', models.DateTimeField(auto_now_add=True)),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to='donor.donor')),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='members', to='organization.organization')),
            ],
            options={
                'ordering': ['-joined_at', '-id'],
            },
        ),
        migrations.AddConstraint(
            model_name='organizationmember',
            constraint=models.UniqueConstraint(fields=('organization', 'donor'), name='unique_org_member'),
        ),
        migrations.CreateModel(
            name='OrganizationLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action_type', models.CharField(max_length=40)),
                ('entity_name', models.CharField(blank=True, max_length=120)),
                ('description', models.TextField(blank=True)),
                ('details', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='logs', to='organization.organization')),
            ],
            options={
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
