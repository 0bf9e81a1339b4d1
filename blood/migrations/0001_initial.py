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
            name='InventoryUnit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('bloodgroup', models.CharField(choices=[('O+', 'O+'), ('O-', 'O-'), ('A+', 'A+'), ('A-', 'A-'), ('B+', 'B+'), ('B-', 'B-'), ('AB+', 'AB+'), ('AB-', 'AB-')], max_length=3)),
                ('units', models.PositiveIntegerField(default=0)),
                ('expiry_date', models.DateField()),
                ('location', models.CharField(default='Main Storage', max_length=120)),
                ('status', models.CharField(choices=[('available', 'Available'), ('expiring', 'Expiring'), ('expired', 'Expired'), ('used', 'Used')], default='available', max_length=12)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Inventory Unit',
                'verbose_name_plural': 'Inventory Units',
                'ordering': ['expiry_date', 'id'],
            },
        ),
        migrations.CreateModel(
            name='ActionAuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('CREATE_APPOINTMENT', 'Create Appointment'), ('UPDATE_APPOINTMENT', 'Update Appointment'), ('RECORD_DONATION', 'Record Donation'), ('ADD_INVENTORY', 'Add Inventory'), ('UPDATE_INVENTORY', 'Update Inventory')], max_length=32)),
                ('entity_type', models.CharField(choices=[('APPOINTMENT', 'Appointment'), ('DONATION', 'Donation'), ('INVENTORY', 'Inventory Unit')], max_length=16)),
                ('entity_id', models.PositiveIntegerField(db_index=True)),
                ('status_before', models.CharField(blank=True, max_length=20)),
                ('status_after', models.CharField(blank=True, max_length=20)),
                ('actor_role', models.CharField(blank=True, max_length=16)),
                ('notes', models.CharField(blank=True, max_length=255)),
                ('payload', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Action Audit Log',
                'verbose_name_plural': 'Action Audit Logs',
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
