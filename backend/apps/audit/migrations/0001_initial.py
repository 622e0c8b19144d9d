from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('timestamp', models.DateTimeField(auto_now_add=True)),
                ('entity_type', models.CharField(help_text="Type of entity affected (e.g., 'PurchaseOrder', 'VendorInvoice')", max_length=120)),
                ('entity_id', models.CharField(help_text='ID of the entity affected', max_length=64)),
                ('action', models.CharField(db_index=True, max_length=50)),
                ('description', models.TextField(blank=True, help_text='A brief description of the action')),
                ('before_value', models.JSONField(blank=True, help_text='JSON representation of the object before the change', null=True)),
                ('after_value', models.JSONField(blank=True, help_text='JSON representation of the object after the change', null=True)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Audit Log',
                'verbose_name_plural': 'Audit Logs',
                'ordering': ['-timestamp'],
                'indexes': [models.Index(fields=['entity_type', 'entity_id'], name='audit_entity_idx')],
            },
        ),
    ]
