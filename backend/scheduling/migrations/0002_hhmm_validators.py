import django.core.validators
from django.db import migrations, models


HHMM_VALIDATOR = django.core.validators.RegexValidator(
    "^([01]?\\d|2[0-3]):([0-5]\\d)$", "Enter a time as HH:MM"
)


class Migration(migrations.Migration):

    dependencies = [
        ("scheduling", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="schedule",
            name="start_time",
            field=models.CharField(max_length=5, validators=[HHMM_VALIDATOR]),
        ),
        migrations.AlterField(
            model_name="schedule",
            name="end_time",
            field=models.CharField(max_length=5, validators=[HHMM_VALIDATOR]),
        ),
        migrations.AlterField(
            model_name="appointment",
            name="time",
            field=models.CharField(max_length=5, validators=[HHMM_VALIDATOR]),
        ),
    ]
