import logging
from datetime import datetime

from django.conf import settings
from django.contrib import messages
from django.contrib.auth import authenticate, login, logout
from django.core.paginator import Paginator
from django.shortcuts import render, redirect
from django.utils import timezone
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST

from appointment import services as appointment_services
from appointment.forms import AppointmentStatusForm
from appointment.models import Appointment
from donor import services as donor_services
from donor.forms import DonationRecordForm, VitalsForm
from donor.models import Donation
from . import forms, models
from .choices import BLOOD_GROUPS
from .decorators import admin_required
from .exceptions import LifeDropError
from .services import inventory as inventory_service
from .services import reports
from .services.access import ROLE_ADMIN, role_for

logger = logging.getLogger(__name__)


def _parse_date(value):
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None


def _safe_next(request, fallback):
    next_url = request.POST.get('next') or request.GET.get('next')
    if next_url and url_has_allowed_host_and_scheme(
        next_url, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
        return redirect(next_url)
    return redirect(fallback)


def home_view(request):
    if request.user.is_authenticated:
        return redirect('afterlogin')
    context = {
        'locations': getattr(settings, 'DONATION_LOCATIONS', []),
        'blood_groups': BLOOD_GROUPS,
    }
    return render(request, 'blood/index.html', context)


def signin_view(request):
    if request.method == 'POST':
        username = request.POST.get('username')
        password = request.POST.get('password')

        user = authenticate(request, username=username, password=password)
        if user is not None:
            login(request, user)
            return _safe_next(request, 'afterlogin')
        messages.error(request, 'Invalid username or password.')

    return render(request, 'blood/signin.html', {'next': request.GET.get('next', '')})


def afterlogin_view(request):
    if not request.user.is_authenticated:
        return redirect('signin')
    if role_for(request.user) == ROLE_ADMIN:
        return redirect('admin-dashboard')
    return redirect('donor-dashboard')


def logout_view(request):
    logout(request)
    return redirect('home')


@admin_required
def admin_dashboard_view(request):
    actor = request.actor
    stats = reports.dashboard_stats(actor)
    context = {
        **stats,
        'today_schedule': reports.today_schedule(actor),
        'blood_groups': BLOOD_GROUPS,
    }
    return render(request, 'blood/admin_dashboard.html', context)


@admin_required
def admin_donor_view(request):
    search_form = forms.DonorSearchForm(request.GET or None)
    query, bloodgroup = '', 'all'
    if search_form.is_valid():
        query = search_form.cleaned_data.get('q') or ''
        bloodgroup = search_form.cleaned_data.get('bloodgroup') or 'all'

    donors = reports.search_donors(request.actor, query=query, bloodgroup=bloodgroup)
    context = {
        'donors': donors,
        'search_form': search_form,
        'total_donors': donors.count(),
    }
    return render(request, 'blood/admin_donor.html', context)


@admin_required
def admin_donor_detail_view(request, pk):
    try:
        detail = reports.donor_detail(request.actor, pk)
    except LifeDropError as exc:
        messages.error(request, exc.message)
        return redirect('admin-donor')
    return render(request, 'blood/admin_donor_detail.html', detail)


@admin_required
def admin_appointments_view(request):
    start = _parse_date(request.GET.get('start_date'))
    end = _parse_date(request.GET.get('end_date'))
    if start and end and start > end:
        start, end = end, start

    appointments = appointment_services.list_all_appointments(request.actor, start=start, end=end)
    status_filter = request.GET.get('status', '')
    if status_filter in dict(Appointment.STATUS_CHOICES):
        appointments = appointments.filter(status=status_filter)

    page = Paginator(appointments, 25).get_page(request.GET.get('page'))
    context = {
        'appointments': page,
        'start_date': start,
        'end_date': end,
        'status_filter': status_filter,
        'status_choices': Appointment.STATUS_CHOICES,
        'status_form': AppointmentStatusForm(),
    }
    return render(request, 'blood/admin_appointments.html', context)


@admin_required
@require_POST
def admin_appointment_update_status_view(request, pk):
    form = AppointmentStatusForm(request.POST)
    if not form.is_valid():
        messages.error(request, 'Please choose a valid status.')
        return redirect('admin-appointments')

    new_status = form.cleaned_data['status']
    notes = form.cleaned_data.get('notes') or None
    try:
        appointment = appointment_services.update_status(request.actor, pk, new_status, notes=notes)
    except LifeDropError as exc:
        messages.error(request, exc.message)
    else:
        messages.success(
            request,
            f'Appointment for {appointment.user.get_full_name() or appointment.user.username} '
            f'marked {appointment.get_status_display().lower()}.',
        )
    return _safe_next(request, 'admin-appointments')


@admin_required
def admin_process_donation_view(request, pk):
    """Screen a donor and complete their appointment in one step."""

    try:
        appointment = appointment_services.get_appointment(request.actor, pk)
    except LifeDropError as exc:
        messages.error(request, exc.message)
        return redirect('admin-appointments')

    if request.method == 'POST':
        form = VitalsForm(request.POST)
        if form.is_valid():
            vitals = donor_services.Vitals(
                hemoglobin_level=f"{form.cleaned_data['hemoglobin']} g/dL",
                blood_pressure=form.cleaned_data['blood_pressure'],
                weight_kg=form.cleaned_data['weight_kg'],
            )
            try:
                appointment_services.update_status(
                    request.actor,
                    appointment.pk,
                    Appointment.STATUS_COMPLETED,
                    vitals=vitals,
                )
            except LifeDropError as exc:
                messages.error(request, exc.message)
            else:
                messages.success(request, 'Donation processed and recorded successfully.')
                return redirect('admin-appointments')
    else:
        form = VitalsForm()

    context = {
        'appointment': appointment,
        'profile': getattr(appointment.user, 'donor_profile', None),
        'form': form,
        'hemoglobin_min': getattr(settings, 'DONOR_HB_MIN', 12.5),
    }
    return render(request, 'blood/admin_process_donation.html', context)


@admin_required
def admin_donation_view(request):
    if request.method == 'POST':
        form = DonationRecordForm(request.POST)
        if form.is_valid():
            data = form.cleaned_data
            try:
                donor_services.record_donation(
                    request.actor,
                    user_id=data['user'].pk,
                    donation_type=data['donation_type'],
                    location=data['location'],
                    donation_date=data['donation_date'],
                    vitals=donor_services.Vitals(
                        hemoglobin_level=data.get('hemoglobin_level') or '',
                        blood_pressure=data.get('blood_pressure') or '',
                        weight_kg=data.get('weight_kg'),
                    ),
                    status=data['status'],
                    notes=data.get('notes') or '',
                )
            except LifeDropError as exc:
                messages.error(request, exc.message)
            else:
                messages.success(request, 'Donation recorded.')
                return redirect('admin-donation')
    else:
        form = DonationRecordForm(initial={'donation_date': timezone.localdate()})

    today = timezone.localdate()
    start = _parse_date(request.GET.get('start_date')) or today.replace(day=1)
    end = _parse_date(request.GET.get('end_date')) or today
    donations = donor_services.donations_in_range(request.actor, start, end)

    context = {
        'form': form,
        'donations': donations,
        'start_date': start,
        'end_date': end,
        'total_donations': donations.count(),
        'completed_donations': donations.filter(status=Donation.STATUS_COMPLETED).count(),
        'deferred_donations': donations.filter(status=Donation.STATUS_DEFERRED).count(),
    }
    return render(request, 'blood/admin_donation.html', context)


@admin_required
def admin_inventory_view(request):
    if request.method == 'POST':
        form = forms.InventoryUnitForm(request.POST)
        if form.is_valid():
            try:
                inventory_service.add_inventory_unit(request.actor, **form.cleaned_data)
            except LifeDropError as exc:
                messages.error(request, exc.message)
            else:
                messages.success(request, 'Inventory updated.')
                return redirect('admin-inventory')
    else:
        form = forms.InventoryUnitForm()

    context = {
        'form': form,
        'summary': inventory_service.inventory_summary(request.actor),
        'units': models.InventoryUnit.objects.all(),
        'status_form': forms.InventoryStatusForm(),
    }
    return render(request, 'blood/admin_inventory.html', context)


@admin_required
@require_POST
def admin_inventory_status_view(request, pk):
    form = forms.InventoryStatusForm(request.POST)
    if form.is_valid():
        try:
            inventory_service.update_inventory_status(request.actor, pk, form.cleaned_data['status'])
        except LifeDropError as exc:
            messages.error(request, exc.message)
    else:
        messages.error(request, 'Please choose a valid status.')
    return redirect('admin-inventory')


@admin_required
def admin_reports_view(request):
    form = forms.ReportPeriodForm(request.GET or None)
    period = 'month'
    if form.is_valid() and form.cleaned_data.get('period'):
        period = form.cleaned_data['period']

    data = reports.report_data(request.actor, period)
    context = {
        'form': form,
        'report': data,
        'blood_groups': BLOOD_GROUPS,
    }
    return render(request, 'blood/admin_reports.html', context)


@admin_required
def admin_audit_logs_view(request):
    logs = models.ActionAuditLog.objects.select_related('actor')
    page = Paginator(logs, 50).get_page(request.GET.get('page'))
    return render(request, 'blood/admin_audit_logs.html', {'logs': page})
