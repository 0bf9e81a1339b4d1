import logging

from django.contrib import messages
from django.contrib.auth import authenticate, login
from django.contrib.auth.models import Group
from django.db import IntegrityError, transaction
from django.shortcuts import render, redirect

from appointment import services as appointment_services
from blood.decorators import donor_required
from blood.exceptions import LifeDropError
from blood.services.access import DONOR_GROUP
from . import services
from .forms import DonorUserForm, DonorProfileForm, EmergencyContactForm, UserInfoForm

logger = logging.getLogger(__name__)


def _flash_form_errors(request, *forms):
    for form in forms:
        for field, errors in form.errors.items():
            for error in errors:
                label = field.replace('_', ' ').title() if field != '__all__' else 'Error'
                messages.error(request, f"{label}: {error}")


def donorsignup_view(request):
    userForm = DonorUserForm()
    profileForm = DonorProfileForm()

    if request.method == 'POST':
        userForm = DonorUserForm(request.POST)
        profileForm = DonorProfileForm(request.POST)

        if userForm.is_valid() and profileForm.is_valid():
            try:
                with transaction.atomic():
                    user = userForm.save(commit=False)
                    user.set_password(user.password)
                    user.save()

                    profile = profileForm.save(commit=False)
                    profile.user = user
                    profile.save()

                    donor_group, _ = Group.objects.get_or_create(name=DONOR_GROUP)
                    donor_group.user_set.add(user)
            except IntegrityError:
                logger.exception("Donor signup failed for username %s", request.POST.get('username'))
                messages.error(request, 'That username is already taken.')
            else:
                logger.info("Donor account %s created", user.pk)
                login(request, user)
                messages.success(request, 'Welcome to LifeDrop! Your donor account is ready.')
                return redirect('donor-dashboard')
        else:
            _flash_form_errors(request, userForm, profileForm)

    context = {'userForm': userForm, 'profileForm': profileForm}
    return render(request, 'donor/donorsignup.html', context)


def donorlogin_view(request):
    if request.method == 'POST':
        username = request.POST.get('username')
        password = request.POST.get('password')

        user = authenticate(request, username=username, password=password)
        if user is not None and user.groups.filter(name=DONOR_GROUP).exists():
            login(request, user)
            return redirect('donor-dashboard')
        messages.error(request, 'Invalid donor credentials.')

    return render(request, 'donor/donorlogin.html')


@donor_required
def donor_dashboard_view(request):
    actor = request.actor
    context = {
        **services.donation_stats(actor),
        **services.get_profile(actor),
        'upcoming_appointments': appointment_services.upcoming_appointments(actor),
    }
    return render(request, 'donor/donor_dashboard.html', context)


@donor_required
def donor_history_view(request):
    donations = services.donation_history(request.actor)
    return render(request, 'donor/donation_history.html', {'donations': donations})


@donor_required
def donor_profile_view(request):
    actor = request.actor
    current = services.get_profile(actor)
    user = current['user']

    userForm = UserInfoForm(instance=user)
    profileForm = DonorProfileForm(instance=current['profile'])
    contactForm = EmergencyContactForm(instance=current['emergency_contact'])

    if request.method == 'POST':
        intent = request.POST.get('intent', 'profile')
        try:
            if intent == 'user':
                userForm = UserInfoForm(request.POST, instance=user)
                if userForm.is_valid():
                    services.update_user_info(actor, **userForm.cleaned_data)
                    messages.success(request, 'Account details updated.')
                    return redirect('donor-profile')
                _flash_form_errors(request, userForm)
            elif intent == 'contact':
                contactForm = EmergencyContactForm(request.POST, instance=current['emergency_contact'])
                if contactForm.is_valid():
                    services.update_emergency_contact(actor, **contactForm.cleaned_data)
                    messages.success(request, 'Emergency contact saved.')
                    return redirect('donor-profile')
                _flash_form_errors(request, contactForm)
            else:
                profileForm = DonorProfileForm(request.POST, instance=current['profile'])
                if profileForm.is_valid():
                    services.update_donor_profile(actor, **profileForm.cleaned_data)
                    messages.success(request, 'Donor profile saved.')
                    return redirect('donor-profile')
                _flash_form_errors(request, profileForm)
        except LifeDropError as exc:
            messages.error(request, exc.message)

    context = {
        **current,
        'userForm': userForm,
        'profileForm': profileForm,
        'contactForm': contactForm,
    }
    return render(request, 'donor/donor_profile.html', context)
