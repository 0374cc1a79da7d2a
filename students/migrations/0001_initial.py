from django.db import migrations, models
import students.degrees


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Student',
            fields=[
                ('code', models.CharField(max_length=32, primary_key=True, serialize=False)),
                ('full_name', models.CharField(max_length=255)),
                ('gender', models.CharField(choices=[('Male', 'Male'), ('Female', 'Female')], default='Male', max_length=10)),
                ('birthdate', models.DateField(blank=True, null=True)),
                ('phone_number', models.CharField(blank=True, default='', max_length=30)),
                ('church', models.CharField(blank=True, default='العذراء مريم و الشهيد أبانوب', max_length=255)),
                ('level', models.CharField(blank=True, default='حضانة', max_length=100)),
                ('address', models.CharField(blank=True, default='', max_length=255)),
                ('active', models.BooleanField(default=False)),
                ('admin', models.BooleanField(default=False)),
                ('pending', models.BooleanField(default=False, help_text='Awaiting promotion into the main student list')),
                ('degree', models.JSONField(default=students.degrees.empty_degree)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['code'],
                'indexes': [
                    models.Index(fields=['pending'], name='students_pending_idx'),
                    models.Index(fields=['level'], name='students_level_idx'),
                ],
            },
        ),
    ]
