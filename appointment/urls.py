from django.urls import path
from . import views

urlpatterns = [
    path('schedule/', views.schedule_appointment_view, name='appointment-schedule'),
    path('<int:pk>/cancel/', views.cancel_appointment_view, name='appointment-cancel'),
]
