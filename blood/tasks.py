import logging
from datetime import timedelta

from celery import shared_task
from django.utils import timezone

from appointment.models import Appointment
from blood.services import inventory as inventory_service
from blood.services import sms as sms_service
from donor import services as donor_services


logger = logging.getLogger(__name__)


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_appointment_booked_sms(self, appointment_id: int) -> None:
    appointment = Appointment.objects.select_related('user__donor_profile').get(pk=appointment_id)
    sms_service.notify_appointment_booked(appointment)


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_appointment_status_sms(self, appointment_id: int) -> None:
    appointment = Appointment.objects.select_related('user__donor_profile').get(pk=appointment_id)
    sms_service.notify_appointment_status(appointment)


@shared_task
def send_appointment_reminders() -> int:
    """Text every donor with an open appointment tomorrow, once."""

    tomorrow = timezone.localdate() + timedelta(days=1)
    due = (
        Appointment.objects.select_related('user__donor_profile')
        .filter(
            appointment_date=tomorrow,
            status__in=[Appointment.STATUS_SCHEDULED, Appointment.STATUS_CONFIRMED],
            reminder_sent=False,
        )
        .order_by('appointment_time', 'id')
    )

    sent = 0
    for appointment in due:
        result = sms_service.send_appointment_reminder(appointment)
        if result.status == 'success':
            Appointment.objects.filter(pk=appointment.pk).update(reminder_sent=True)
            sent += 1
    logger.info("Sent %s appointment reminders for %s", sent, tomorrow)
    return sent


@shared_task
def refresh_donor_eligibility() -> int:
    # Cached flags flip from False to True as recovery windows elapse.
    return len(donor_services.refresh_all_eligibility())


@shared_task
def expire_inventory_units() -> int:
    return inventory_service.mark_expired_units()
