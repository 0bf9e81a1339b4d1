"""AWS SNS powered text messages for donors about their appointments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings

from blood.utils.phone import normalize_phone_number
from blood.utils.sms_sender import send_sms as send_single_sms


logger = logging.getLogger(__name__)


@dataclass
class SmsResult:
	"""Lightweight summary of a single notification attempt."""

	status: str
	to: Optional[str] = None
	reason: Optional[str] = None


STATUS_MESSAGES = {
	'confirmed': "Your {type} appointment on {date} at {time} ({location}) is confirmed.",
	'completed': "Thank you for donating today! You can book again from {next_date}.",
	'cancelled': "Your {type} appointment on {date} at {time} has been cancelled.",
	'no_show': "We missed you on {date}. Book a new slot any time from the donor portal.",
}


def _donor_phone(appointment) -> Optional[str]:
	profile = getattr(appointment.user, 'donor_profile', None)
	return normalize_phone_number(getattr(profile, 'phone', None))


def _deliver(appointment, message: str, *, sms_sender=send_single_sms) -> SmsResult:
	if not settings.AWS_SNS_ENABLED:
		logger.info("AWS SNS disabled; skipping SMS for appointment %s", appointment.id)
		return SmsResult('skipped', reason='sns-disabled')

	phone = _donor_phone(appointment)
	if not phone:
		logger.info("No valid phone number for appointment %s; SMS skipped", appointment.id)
		return SmsResult('skipped', reason='no-contact')

	response = sms_sender(phone, message[:1200])
	if response.get('status') != 'success':
		logger.error("SMS for appointment %s failed: %s", appointment.id, response)
		return SmsResult('error', to=phone, reason=response.get('message'))
	return SmsResult('success', to=phone)


def _format(template: str, appointment, **extra) -> str:
	return template.format(
		type=appointment.get_donation_type_display().lower(),
		date=appointment.appointment_date.strftime('%d %b %Y'),
		time=appointment.appointment_time.strftime('%H:%M'),
		location=appointment.location,
		**extra,
	)


def notify_appointment_booked(appointment, *, sms_sender=send_single_sms) -> SmsResult:
	message = _format(
		"LifeDrop #{id}: booked {type} donation on {date} at {time}, {location}.",
		appointment,
		id=appointment.id,
	)
	return _deliver(appointment, message, sms_sender=sms_sender)


def notify_appointment_status(appointment, *, sms_sender=send_single_sms) -> SmsResult:
	template = STATUS_MESSAGES.get(appointment.status)
	if template is None:
		return SmsResult('skipped', reason='no-template')

	extra = {}
	if appointment.status == 'completed':
		profile = getattr(appointment.user, 'donor_profile', None)
		next_date = getattr(profile, 'next_eligible_donation_date', None)
		extra['next_date'] = next_date.strftime('%d %b %Y') if next_date else 'your next eligible date'
	return _deliver(appointment, _format(template, appointment, **extra), sms_sender=sms_sender)


def send_appointment_reminder(appointment, *, sms_sender=send_single_sms) -> SmsResult:
	message = _format(
		"Reminder: your {type} donation is tomorrow ({date}) at {time}, {location}. "
		"Eat well and drink plenty of water.",
		appointment,
	)
	return _deliver(appointment, message, sms_sender=sms_sender)
