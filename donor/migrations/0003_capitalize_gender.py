from django.db import migrations, models


def capitalize_gender(apps, schema_editor):
    Donor = apps.get_model('donor', 'Donor')
    for value in ('male', 'female', 'other'):
        Donor.objects.filter(gender=value).update(gender=value.capitalize())


def lowercase_gender(apps, schema_editor):
    Donor = apps.get_model('donor', 'Donor')
    for value in ('Male', 'Female', 'Other'):
        Donor.objects.filter(gender=value).update(gender=value.lower())


class Migration(migrations.Migration):

    dependencies = [
        ('donor', '0002_donation_organization'),
    ]

    operations = [
        migrations.AlterField(
            model_name='donor',
            name='gender',
            field=models.CharField(blank=True, choices=[('Male', 'Male'), ('Female', 'Female'), ('Other', 'Other')], max_length=10),
        ),
        migrations.RunPython(capitalize_gender, lowercase_gender),
    ]
