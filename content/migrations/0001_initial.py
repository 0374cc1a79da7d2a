from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ContentDocument',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('collection', models.CharField(choices=[('agbya', 'Agbya'), ('taks', 'Taks'), ('coptic', 'Coptic'), ('hymns', 'Hymns')], max_length=20)),
                ('title', models.CharField(blank=True, default='', max_length=255)),
                ('content', models.TextField(blank=True, default='')),
                ('arabic_content', models.TextField(blank=True, default='')),
                ('coptic_content', models.TextField(blank=True, default='')),
                ('coptic_arabic_content', models.TextField(blank=True, default='')),
                ('term', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('year_number', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('age_levels', models.JSONField(blank=True, default=list, help_text='Ages the document is meant for')),
                ('audio', models.CharField(blank=True, default='', help_text='Audio file URL', max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['collection', 'year_number', 'term', 'title'],
                'indexes': [models.Index(fields=['collection'], name='content_collection_idx')],
            },
        ),
    ]
