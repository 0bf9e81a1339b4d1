from datetime import datetime

from django import forms
from django.conf import settings

from blood.choices import DONATION_TYPE_CHOICES
from .models import Appointment


def _slot_choices():
    return [(slot, slot) for slot in getattr(settings, 'APPOINTMENT_SLOTS', [])]


def _location_choices():
    return [(loc, loc) for loc in getattr(settings, 'DONATION_LOCATIONS', [])]


class AppointmentForm(forms.Form):
    appointment_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}))
    appointment_time = forms.ChoiceField(choices=_slot_choices, widget=forms.Select(attrs={'class': 'form-control'}))
    donation_type = forms.ChoiceField(
        choices=DONATION_TYPE_CHOICES,
        initial='blood',
        widget=forms.Select(attrs={'class': 'form-control'}),
    )
    location = forms.ChoiceField(choices=_location_choices, widget=forms.Select(attrs={'class': 'form-control'}))
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 2}))

    def clean_appointment_time(self):
        value = self.cleaned_data['appointment_time']
        return datetime.strptime(value, '%H:%M').time()


class AppointmentStatusForm(forms.Form):
    status = forms.ChoiceField(choices=Appointment.STATUS_CHOICES)
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 2}))
