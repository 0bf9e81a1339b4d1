from django.urls import path
from . import views

urlpatterns = [
    path('donorlogin/', views.donorlogin_view, name='donorlogin'),
    path('donorsignup/', views.donorsignup_view, name='donorsignup'),
    path('donor-dashboard/', views.donor_dashboard_view, name='donor-dashboard'),
    path('my-donations/', views.donor_history_view, name='donor-history'),
    path('profile/', views.donor_profile_view, name='donor-profile'),
]
