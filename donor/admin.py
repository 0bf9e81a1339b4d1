from django.contrib import admin
from .models import Donation, DonorProfile, EmergencyContact

@admin.register(DonorProfile)
class DonorProfileAdmin(admin.ModelAdmin):
    list_display = ['get_name', 'bloodgroup', 'phone', 'city', 'last_donation_date', 'is_eligible']
    list_filter = ['bloodgroup', 'is_eligible']
    search_fields = ['user__first_name', 'user__last_name', 'user__username', 'phone']
    readonly_fields = ['last_donation_date', 'last_donation_type', 'is_eligible']

@admin.register(EmergencyContact)
class EmergencyContactAdmin(admin.ModelAdmin):
    list_display = ['user', 'name', 'relationship', 'phone']
    search_fields = ['user__username', 'name']

@admin.register(Donation)
class DonationAdmin(admin.ModelAdmin):
    list_display = ['user', 'donation_type', 'location', 'donation_date', 'status', 'processed_by']
    list_filter = ['donation_type', 'status', 'donation_date']
    search_fields = ['user__first_name', 'user__last_name', 'user__username']
