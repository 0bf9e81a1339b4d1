import re

from django import forms
from django.conf import settings
from django.contrib.auth.models import User

from blood.choices import BLOOD_GROUP_CHOICES, DONATION_TYPE_CHOICES
from .models import Donation, DonorProfile, EmergencyContact


class DonorUserForm(forms.ModelForm):
    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'username', 'email', 'password']
        widgets = {
            'password': forms.PasswordInput()
        }

    def clean_email(self):
        email = (self.cleaned_data.get('email') or '').strip().lower()
        if not email:
            raise forms.ValidationError('Email address is required.')
        if User.objects.filter(email__iexact=email).exists():
            raise forms.ValidationError('An account with this email already exists.')
        return email


class UserInfoForm(forms.ModelForm):
    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'email']


class DonorProfileForm(forms.ModelForm):
    bloodgroup = forms.ChoiceField(
        choices=[('', 'Choose Blood Group')] + BLOOD_GROUP_CHOICES,
        required=False,
        widget=forms.Select(attrs={'class': 'form-control'}),
    )

    class Meta:
        model = DonorProfile
        fields = ['phone', 'address', 'city', 'bloodgroup', 'date_of_birth', 'weight_kg', 'medical_notes']
        widgets = {
            'address': forms.Textarea(attrs={'class': 'form-control', 'rows': 2}),
            'date_of_birth': forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}),
            'medical_notes': forms.Textarea(attrs={'class': 'form-control', 'rows': 3}),
        }


class EmergencyContactForm(forms.ModelForm):
    class Meta:
        model = EmergencyContact
        fields = ['name', 'phone', 'relationship']


BLOOD_PRESSURE_RE = re.compile(r'^\d{2,3}/\d{2,3}$')


class VitalsForm(forms.Form):
    """Screening values captured when an admin processes a donation."""

    hemoglobin = forms.DecimalField(max_digits=4, decimal_places=1, min_value=0, max_value=25)
    blood_pressure = forms.CharField(max_length=20, help_text='e.g. 120/80')
    weight_kg = forms.IntegerField(min_value=1, max_value=300)

    def clean_hemoglobin(self):
        value = self.cleaned_data['hemoglobin']
        minimum = float(getattr(settings, 'DONOR_HB_MIN', 12.5))
        if float(value) < minimum:
            raise forms.ValidationError(f'Hemoglobin below {minimum:.1f} g/dL; the donor should be deferred.')
        return value

    def clean_blood_pressure(self):
        value = self.cleaned_data['blood_pressure'].replace(' ', '')
        if not BLOOD_PRESSURE_RE.match(value):
            raise forms.ValidationError('Enter blood pressure as systolic/diastolic, e.g. 120/80.')
        return value


class DonationRecordForm(forms.Form):
    """Manual donation entry from the admin back office."""

    user = forms.ModelChoiceField(queryset=User.objects.filter(is_superuser=False).order_by('first_name', 'username'))
    donation_type = forms.ChoiceField(choices=DONATION_TYPE_CHOICES)
    location = forms.CharField(max_length=120)
    donation_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    hemoglobin_level = forms.CharField(max_length=20, required=False)
    blood_pressure = forms.CharField(max_length=20, required=False)
    weight_kg = forms.IntegerField(min_value=1, max_value=300, required=False)
    status = forms.ChoiceField(choices=Donation.STATUS_CHOICES, initial=Donation.STATUS_COMPLETED)
    notes = forms.CharField(widget=forms.Textarea(attrs={'rows': 2}), required=False)
