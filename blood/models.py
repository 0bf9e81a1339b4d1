from django.conf import settings
from django.db import models

from .choices import BLOOD_GROUP_CHOICES


class InventoryUnit(models.Model):
    STATUS_AVAILABLE = 'available'
    STATUS_EXPIRING = 'expiring'
    STATUS_EXPIRED = 'expired'
    STATUS_USED = 'used'
    STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_EXPIRING, 'Expiring'),
        (STATUS_EXPIRED, 'Expired'),
        (STATUS_USED, 'Used'),
    ]

    bloodgroup = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES)
    units = models.PositiveIntegerField(default=0)
    expiry_date = models.DateField()
    location = models.CharField(max_length=120, default='Main Storage')
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_AVAILABLE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['expiry_date', 'id']
        verbose_name = "Inventory Unit"
        verbose_name_plural = "Inventory Units"

    def __str__(self):
        return f"{self.bloodgroup} x{self.units} ({self.status})"


class ActionAuditLog(models.Model):
    ACTION_CREATE_APPOINTMENT = 'CREATE_APPOINTMENT'
    ACTION_UPDATE_APPOINTMENT = 'UPDATE_APPOINTMENT'
    ACTION_RECORD_DONATION = 'RECORD_DONATION'
    ACTION_ADD_INVENTORY = 'ADD_INVENTORY'
    ACTION_UPDATE_INVENTORY = 'UPDATE_INVENTORY'
    ACTION_CHOICES = [
        (ACTION_CREATE_APPOINTMENT, 'Create Appointment'),
        (ACTION_UPDATE_APPOINTMENT, 'Update Appointment'),
        (ACTION_RECORD_DONATION, 'Record Donation'),
        (ACTION_ADD_INVENTORY, 'Add Inventory'),
        (ACTION_UPDATE_INVENTORY, 'Update Inventory'),
    ]

    ENTITY_APPOINTMENT = 'APPOINTMENT'
    ENTITY_DONATION = 'DONATION'
    ENTITY_INVENTORY = 'INVENTORY'
    ENTITY_CHOICES = [
        (ENTITY_APPOINTMENT, 'Appointment'),
        (ENTITY_DONATION, 'Donation'),
        (ENTITY_INVENTORY, 'Inventory Unit'),
    ]

    action = models.CharField(max_length=32, choices=ACTION_CHOICES)
    entity_type = models.CharField(max_length=16, choices=ENTITY_CHOICES)
    entity_id = models.PositiveIntegerField(db_index=True)
    status_before = models.CharField(max_length=20, blank=True)
    status_after = models.CharField(max_length=20, blank=True)
    actor = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL)
    actor_role = models.CharField(max_length=16, blank=True)
    notes = models.CharField(max_length=255, blank=True)
    payload = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name = "Action Audit Log"
        verbose_name_plural = "Action Audit Logs"

    def __str__(self):
        return f"{self.action} {self.entity_type}#{self.entity_id}"
