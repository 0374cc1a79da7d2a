from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='AttendanceEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(db_index=True, max_length=32)),
                ('date_time', models.DateTimeField()),
                ('status', models.CharField(choices=[('تم الحضور', 'Present'), ('متأخر', 'Late'), ('غائب', 'Absent')], default='تم الحضور', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name_plural': 'Attendance entries',
                'ordering': ['-date_time'],
                'indexes': [models.Index(fields=['code', 'date_time'], name='attendance_code_dt_idx')],
            },
        ),
    ]
