"""Read-only rollups for the admin dashboard, reports tab and donor search."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.conf import settings
from django.contrib.auth.models import User
from django.db.models import Count, Q
from django.utils import timezone

from appointment.models import Appointment
from blood.exceptions import NotFound
from blood.services.access import Actor
from donor.models import Donation, DonorProfile, EmergencyContact

PERIOD_DAYS = {
    'week': 7,
    'month': 30,
    'quarter': 90,
    'year': 365,
}

DISTRIBUTION_WINDOW_DAYS = 30


def round_half_up(value, places: int = 0):
    """Round like the dashboards always have: 0.5 goes up, not to even."""

    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)


def completion_rate(completed: int, total: int) -> int:
    if not total:
        return 0
    return round_half_up(Decimal(completed) * 100 / Decimal(total))


def _blood_group_counts(donations) -> dict:
    rows = (
        donations.exclude(user__donor_profile__bloodgroup='')
        .exclude(user__donor_profile__bloodgroup__isnull=True)
        .values('user__donor_profile__bloodgroup')
        .annotate(count=Count('id'))
    )
    return {row['user__donor_profile__bloodgroup']: row['count'] for row in rows}


def dashboard_stats(actor: Actor, today: Optional[date] = None) -> dict:
    actor.require_admin()
    today = today or timezone.localdate()

    today_appointments = Appointment.objects.filter(appointment_date=today).count()
    today_donations = Donation.objects.filter(donation_date=today, status=Donation.STATUS_COMPLETED).count()

    capacity = int(getattr(settings, 'CLINIC_DAILY_CAPACITY', 50)) or 1
    utilization = min(today_appointments / capacity * 100, 100)

    window_start = today - timedelta(days=DISTRIBUTION_WINDOW_DAYS)
    recent_completed = Donation.objects.filter(donation_date__gte=window_start, status=Donation.STATUS_COMPLETED)

    return {
        'today_appointments': today_appointments,
        'today_donations': today_donations,
        'utilization': round_half_up(utilization),
        'blood_group_stats': _blood_group_counts(recent_completed),
    }


def today_schedule(actor: Actor, today: Optional[date] = None):
    actor.require_admin()
    today = today or timezone.localdate()
    return (
        Appointment.objects.select_related('user')
        .filter(appointment_date=today)
        .order_by('appointment_time')
    )


def report_data(actor: Actor, period: str, today: Optional[date] = None) -> dict:
    actor.require_admin()
    if period not in PERIOD_DAYS:
        raise ValueError(f"Unknown report period: {period}")

    today = today or timezone.localdate()
    days_back = PERIOD_DAYS[period]
    start_date = today - timedelta(days=days_back)

    completed_donations = Donation.objects.filter(
        donation_date__gte=start_date,
        status=Donation.STATUS_COMPLETED,
    )
    appointments = Appointment.objects.filter(appointment_date__gte=start_date)

    total_donations = completed_donations.count()
    total_appointments = appointments.count()
    completed_appointments = appointments.filter(status=Appointment.STATUS_COMPLETED).count()

    return {
        'period': period,
        'start_date': start_date,
        'total_donations': total_donations,
        'total_appointments': total_appointments,
        'completed_appointments': completed_appointments,
        'completion_rate': completion_rate(completed_appointments, total_appointments),
        'donations_by_group': _blood_group_counts(completed_donations),
        'average_daily': round_half_up(Decimal(total_donations) / Decimal(days_back), 1),
    }


def search_donors(actor: Actor, query: str = '', bloodgroup: str = 'all'):
    actor.require_admin()
    donors = User.objects.filter(is_superuser=False).select_related('donor_profile')

    query = (query or '').strip()
    if query:
        donors = donors.filter(
            Q(first_name__icontains=query)
            | Q(last_name__icontains=query)
            | Q(username__icontains=query)
            | Q(email__icontains=query)
            | Q(donor_profile__phone__icontains=query)
        )
    if bloodgroup and bloodgroup != 'all':
        donors = donors.filter(donor_profile__bloodgroup=bloodgroup)

    return donors.annotate(
        total_donations=Count('donations', filter=Q(donations__status=Donation.STATUS_COMPLETED)),
    ).order_by('-date_joined')


def donor_detail(actor: Actor, user_id: int) -> dict:
    actor.require_admin()
    try:
        user = User.objects.get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound("Donor not found.")

    return {
        'donor': user,
        'profile': DonorProfile.objects.filter(user=user).first(),
        'emergency_contact': EmergencyContact.objects.filter(user=user).first(),
        'donations': Donation.objects.filter(user=user).order_by('-donation_date', '-id'),
        'appointments': Appointment.objects.filter(user=user).order_by('-appointment_date', '-appointment_time'),
    }
