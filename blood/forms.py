from django import forms

from .choices import BLOOD_GROUP_CHOICES
from . import models


class InventoryUnitForm(forms.ModelForm):
    class Meta:
        model = models.InventoryUnit
        fields = ['bloodgroup', 'units', 'expiry_date', 'location']
        widgets = {
            'bloodgroup': forms.Select(attrs={'class': 'form-control'}),
            'units': forms.NumberInput(attrs={'class': 'form-control', 'min': '1'}),
            'expiry_date': forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}),
            'location': forms.TextInput(attrs={'class': 'form-control'}),
        }

    def clean_units(self):
        units = self.cleaned_data['units']
        if units < 1:
            raise forms.ValidationError('Add at least one unit.')
        return units


class InventoryStatusForm(forms.Form):
    status = forms.ChoiceField(choices=models.InventoryUnit.STATUS_CHOICES)


class DonorSearchForm(forms.Form):
    q = forms.CharField(required=False, label='Search')
    bloodgroup = forms.ChoiceField(
        choices=[('all', 'All groups')] + BLOOD_GROUP_CHOICES,
        required=False,
        initial='all',
    )


class ReportPeriodForm(forms.Form):
    period = forms.ChoiceField(
        choices=[('week', 'Week'), ('month', 'Month'), ('quarter', 'Quarter'), ('year', 'Year')],
        required=False,
        initial='month',
    )
