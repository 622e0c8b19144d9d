from decimal import Decimal
from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='FleetAsset',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('asset_code', models.CharField(blank=True, max_length=32, unique=True)),
                ('name', models.CharField(max_length=255)),
                ('type', models.CharField(choices=[('VEHICLE', 'Vehicle'), ('HEAVY_MACHINERY', 'Heavy machinery'), ('DRILLING_EQUIPMENT', 'Drilling equipment'), ('PROCESSING_EQUIPMENT', 'Processing equipment'), ('SUPPORT_EQUIPMENT', 'Support equipment'), ('TRANSPORT', 'Transport')], max_length=24)),
                ('category', models.CharField(blank=True, max_length=100)),
                ('registration_no', models.CharField(blank=True, max_length=50)),
                ('serial_number', models.CharField(blank=True, max_length=100)),
                ('make', models.CharField(blank=True, max_length=100)),
                ('model', models.CharField(blank=True, max_length=100)),
                ('year', models.PositiveIntegerField(blank=True, null=True)),
                ('fuel_type', models.CharField(choices=[('DIESEL', 'Diesel'), ('PETROL', 'Petrol'), ('ELECTRIC', 'Electric'), ('HYBRID', 'Hybrid'), ('NONE', 'None')], default='DIESEL', max_length=12)),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('IN_MAINTENANCE', 'In maintenance'), ('BREAKDOWN', 'Breakdown'), ('IDLE', 'Idle'), ('DECOMMISSIONED', 'Decommissioned')], db_index=True, default='ACTIVE', max_length=16)),
                ('current_location', models.CharField(blank=True, max_length=255)),
                ('current_odometer', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=15)),
                ('current_hours', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=15)),
                ('purchase_date', models.DateField(blank=True, null=True)),
                ('purchase_price', models.DecimalField(blank=True, decimal_places=2, max_digits=20, null=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('operator', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='operated_assets', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['asset_code'],
            },
        ),
        migrations.CreateModel(
            name='FleetCost',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('cost_date', models.DateField()),
                ('category', models.CharField(choices=[('FUEL', 'Fuel'), ('MAINTENANCE', 'Maintenance'), ('REPAIR', 'Repair'), ('TYRES', 'Tyres'), ('PARTS', 'Parts'), ('INSURANCE', 'Insurance'), ('LICENSING', 'Licensing'), ('OTHER', 'Other')], max_length=16)),
                ('description', models.CharField(blank=True, max_length=500)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=20, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('currency', models.CharField(default='GHS', max_length=3)),
                ('quantity', models.DecimalField(blank=True, decimal_places=3, help_text='Litres for fuel entries', max_digits=15, null=True)),
                ('odometer_reading', models.DecimalField(blank=True, decimal_places=3, max_digits=15, null=True)),
                ('invoice_number', models.CharField(blank=True, max_length=100)),
                ('receipt_url', models.URLField(blank=True, max_length=500)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected')], default='PENDING', max_length=12)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('rejection_reason', models.TextField(blank=True)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='approved_fleet_costs', to=settings.AUTH_USER_MODEL)),
                ('asset', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='costs', to='fleet.fleetasset')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-cost_date', '-id'],
            },
        ),
        migrations.CreateModel(
            name='FleetDocument',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('REGISTRATION', 'Registration'), ('INSURANCE', 'Insurance'), ('ROADWORTHY', 'Roadworthy certificate'), ('PERMIT', 'Permit'), ('INSPECTION_CERTIFICATE', 'Inspection certificate'), ('OTHER', 'Other')], max_length=32)),
                ('name', models.CharField(max_length=255)),
                ('file_url', models.URLField(max_length=500)),
                ('expiry_date', models.DateField(blank=True, null=True)),
                ('uploaded_at', models.DateTimeField(auto_now_add=True)),
                ('asset', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='documents', to='fleet.fleetasset')),
                ('uploaded_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['expiry_date', '-uploaded_at'],
            },
        ),
    ]
