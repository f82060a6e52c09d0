import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('files', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Activity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('file_reference', models.BigIntegerField(blank=True, null=True)),
                ('action', models.CharField(choices=[('upload', 'Upload'), ('download', 'Download'), ('share', 'Share'), ('delete', 'Delete')], max_length=16)),
                ('ip_address', models.GenericIPAddressField(default='0.0.0.0')),
                ('details', models.CharField(blank=True, default='', max_length=1024)),
                ('timestamp', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('file', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='activities', to='files.file')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='activities', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Activity',
                'verbose_name_plural': 'Activities',
                'ordering': ['-timestamp'],
                'indexes': [
                    models.Index(fields=['user', '-timestamp'], name='activity_user_recent_idx'),
                ],
            },
        ),
    ]
