from django.contrib import admin
from .models import ActionAuditLog, InventoryUnit

@admin.register(InventoryUnit)
class InventoryUnitAdmin(admin.ModelAdmin):
    list_display = ['bloodgroup', 'units', 'expiry_date', 'location', 'status']
    list_filter = ['bloodgroup', 'status', 'location']
    date_hierarchy = 'expiry_date'

@admin.register(ActionAuditLog)
class ActionAuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'action', 'entity_type', 'entity_id', 'status_before', 'status_after', 'actor', 'actor_role']
    list_filter = ['action', 'entity_type', 'actor_role']
    search_fields = ['actor__username', 'notes']
    readonly_fields = [field.name for field in ActionAuditLog._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
