"""Appointment lifecycle: booking, status transitions and the completion command.

Completing an appointment is one atomic unit with three effects: a donation
row copied from the appointment, a refresh of the donor's cached
eligibility, and the appointment's own status change.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Optional

from django.db import IntegrityError, transaction
from django.utils import timezone
from kombu.exceptions import OperationalError

from blood import tasks
from blood.choices import DONATION_TYPES
from blood.exceptions import (
	DuplicateBooking,
	IneligibleDonor,
	InvalidSchedule,
	InvalidTransition,
	NotFound,
)
from blood.models import ActionAuditLog
from blood.services import audit
from blood.services.access import Actor
from blood.services.storage import guarded_write
from donor.models import DonorProfile
from donor.services import Vitals, create_donation_record
from .models import Appointment

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
	Appointment.STATUS_SCHEDULED: frozenset({
		Appointment.STATUS_CONFIRMED,
		Appointment.STATUS_COMPLETED,
		Appointment.STATUS_CANCELLED,
		Appointment.STATUS_NO_SHOW,
	}),
	Appointment.STATUS_CONFIRMED: frozenset({
		Appointment.STATUS_COMPLETED,
		Appointment.STATUS_CANCELLED,
		Appointment.STATUS_NO_SHOW,
	}),
	Appointment.STATUS_COMPLETED: frozenset(),
	Appointment.STATUS_CANCELLED: frozenset(),
	Appointment.STATUS_NO_SHOW: frozenset(),
}


def queue_sms(task, appointment_id: int) -> None:
	"""Publish an SMS task, logging broker failures instead of raising them."""

	try:
		task.delay(appointment_id)
	except OperationalError:
		logger.exception("Could not queue %s for appointment %s", task.name, appointment_id)


def can_transition(current: str, new_status: str) -> bool:
	return new_status in ALLOWED_TRANSITIONS.get(current, frozenset())


def appointment_starts_at(appointment_date: date, appointment_time: time) -> datetime:
	naive = datetime.combine(appointment_date, appointment_time)
	return timezone.make_aware(naive, timezone.get_current_timezone())


def create_appointment(
	actor: Actor,
	*,
	appointment_date: date,
	appointment_time: time,
	donation_type: str,
	location: str,
	notes: str = "",
	now: Optional[datetime] = None,
) -> Appointment:
	"""Book a new ``scheduled`` appointment for the acting donor."""

	profile = DonorProfile.objects.filter(user_id=actor.user_id).only('is_eligible').first()
	if profile is not None and not profile.is_eligible:
		raise IneligibleDonor()

	if donation_type not in DONATION_TYPES:
		raise InvalidSchedule(f"Unknown donation type: {donation_type}.")

	now = now or timezone.now()
	if appointment_starts_at(appointment_date, appointment_time) <= now:
		raise InvalidSchedule()

	already_booked = Appointment.objects.filter(
		user_id=actor.user_id,
		appointment_date=appointment_date,
		status=Appointment.STATUS_SCHEDULED,
	).exists()
	if already_booked:
		raise DuplicateBooking()

	with guarded_write("create_appointment"):
		try:
			with transaction.atomic():
				appointment = Appointment.objects.create(
					user_id=actor.user_id,
					appointment_date=appointment_date,
					appointment_time=appointment_time,
					donation_type=donation_type,
					location=location,
					notes=notes or "",
					status=Appointment.STATUS_SCHEDULED,
				)
				audit.record_action(
					actor,
					ActionAuditLog.ACTION_CREATE_APPOINTMENT,
					ActionAuditLog.ENTITY_APPOINTMENT,
					appointment.id,
					status_after=appointment.status,
				)
				transaction.on_commit(lambda: queue_sms(tasks.send_appointment_booked_sms, appointment.id))
		except IntegrityError:
			# Lost a race with a concurrent booking for the same day.
			raise DuplicateBooking()

	logger.info(
		"Appointment %s booked by user %s for %s %s at %s",
		appointment.id,
		actor.user_id,
		appointment_date,
		appointment_time,
		location,
	)
	return appointment


def get_appointment(actor: Actor, appointment_id: int) -> Appointment:
	try:
		appointment = Appointment.objects.select_related('user').get(pk=appointment_id)
	except Appointment.DoesNotExist:
		raise NotFound("Appointment not found.")
	actor.require_owner_or_admin(appointment.user_id)
	return appointment


def update_status(
	actor: Actor,
	appointment_id: int,
	new_status: str,
	*,
	vitals: Optional[Vitals] = None,
	notes: Optional[str] = None,
	today: Optional[date] = None,
) -> Appointment:
	"""Move an appointment to ``new_status``.

	Raises ``NotFound``, ``Forbidden`` or ``InvalidTransition``. Repeating a
	terminal status is an invalid transition, so a completed appointment
	never yields a second donation.
	"""

	with guarded_write("update_appointment_status"), transaction.atomic():
		try:
			appointment = Appointment.objects.select_for_update().get(pk=appointment_id)
		except Appointment.DoesNotExist:
			raise NotFound("Appointment not found.")
		actor.require_owner_or_admin(appointment.user_id)

		previous = appointment.status
		if not can_transition(previous, new_status):
			raise InvalidTransition(
				f"Cannot change an appointment from {previous.replace('_', ' ')} to {new_status.replace('_', ' ')}."
			)

		donation = None
		if new_status == Appointment.STATUS_COMPLETED:
			donation = create_donation_record(
				user_id=appointment.user_id,
				appointment=appointment,
				donation_type=appointment.donation_type,
				location=appointment.location,
				donation_date=appointment.appointment_date,
				processed_by_id=actor.user_id if actor.is_admin else None,
				vitals=vitals,
				notes=(
					f"Completed from appointment on {appointment.appointment_date} "
					f"at {appointment.appointment_time:%H:%M}"
				),
				today=today,
			)

		appointment.status = new_status
		update_fields = ['status', 'updated_at']
		if notes is not None:
			appointment.notes = notes
			update_fields.append('notes')
		appointment.save(update_fields=update_fields)

		audit.record_action(
			actor,
			ActionAuditLog.ACTION_UPDATE_APPOINTMENT,
			ActionAuditLog.ENTITY_APPOINTMENT,
			appointment.id,
			status_before=previous,
			status_after=new_status,
			payload={'donation_id': donation.id} if donation else None,
		)
		transaction.on_commit(lambda: queue_sms(tasks.send_appointment_status_sms, appointment.id))

	logger.info(
		"Appointment %s moved %s -> %s by %s %s",
		appointment.id,
		previous,
		new_status,
		actor.role,
		actor.user_id,
	)
	return appointment


def cancel_appointment(actor: Actor, appointment_id: int) -> Appointment:
	return update_status(actor, appointment_id, Appointment.STATUS_CANCELLED)


def list_user_appointments(actor: Actor):
	return Appointment.objects.filter(user_id=actor.user_id).order_by('-appointment_date', '-appointment_time')


def upcoming_appointments(actor: Actor, limit: int = 5, today: Optional[date] = None):
	today = today or timezone.localdate()
	return (
		Appointment.objects.filter(user_id=actor.user_id, appointment_date__gte=today)
		.order_by('appointment_date', 'appointment_time')[:limit]
	)


def taken_slots(actor: Actor, on_date: date) -> set[str]:
	times = (
		Appointment.objects.filter(user_id=actor.user_id, appointment_date=on_date)
		.exclude(status=Appointment.STATUS_CANCELLED)
		.values_list('appointment_time', flat=True)
	)
	return {t.strftime('%H:%M') for t in times}


def list_all_appointments(actor: Actor, start: Optional[date] = None, end: Optional[date] = None):
	actor.require_admin()
	qs = Appointment.objects.select_related('user', 'user__donor_profile')
	if start and end:
		qs = qs.filter(appointment_date__gte=start, appointment_date__lte=end)
	return qs.order_by('-appointment_date', 'appointment_time')
