from django.contrib import admin
from .models import Appointment

@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['user', 'appointment_date', 'appointment_time', 'donation_type', 'location', 'status', 'reminder_sent']
    list_filter = ['status', 'donation_type', 'location', 'appointment_date']
    search_fields = ['user__first_name', 'user__last_name', 'user__username']
