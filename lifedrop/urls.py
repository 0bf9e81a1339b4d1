"""lifedrop URL Configuration

Back-office routes live at the top level; the donor portal and booking
screens are included from their apps.
"""
from django.contrib import admin
from django.urls import path, include
from blood import views as blood_views

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', blood_views.home_view, name='home'),

    # Authentication URLs
    path('signin/', blood_views.signin_view, name='signin'),
    path('afterlogin/', blood_views.afterlogin_view, name='afterlogin'),
    path('logout/', blood_views.logout_view, name='logout'),

    # Admin URLs
    path('admin-dashboard/', blood_views.admin_dashboard_view, name='admin-dashboard'),
    path('admin-donor/', blood_views.admin_donor_view, name='admin-donor'),
    path('admin-donor/<int:pk>/', blood_views.admin_donor_detail_view, name='admin-donor-detail'),
    path('admin-appointments/', blood_views.admin_appointments_view, name='admin-appointments'),
    path('admin-appointments/<int:pk>/status/', blood_views.admin_appointment_update_status_view, name='admin-appointment-update-status'),
    path('admin-appointments/<int:pk>/process/', blood_views.admin_process_donation_view, name='admin-process-donation'),
    path('admin-donation/', blood_views.admin_donation_view, name='admin-donation'),
    path('admin-inventory/', blood_views.admin_inventory_view, name='admin-inventory'),
    path('admin-inventory/<int:pk>/status/', blood_views.admin_inventory_status_view, name='admin-inventory-status'),
    path('admin-reports/', blood_views.admin_reports_view, name='admin-reports'),
    path('admin-audit-logs/', blood_views.admin_audit_logs_view, name='admin-audit-logs'),

    # App URLs using include
    path('donor/', include('donor.urls')),
    path('appointment/', include('appointment.urls')),
]
