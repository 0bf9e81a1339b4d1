"""Donation recording, eligibility refresh and donor self-service queries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from django.contrib.auth.models import User
from django.db import transaction
from django.utils import timezone

from blood.choices import DONATION_TYPES
from blood.exceptions import InvalidDonation, NotFound
from blood.models import ActionAuditLog
from blood.services import audit, eligibility
from blood.services.access import Actor
from blood.services.storage import guarded_write
from .models import Donation, DonorProfile, EmergencyContact

logger = logging.getLogger(__name__)

LIVES_PER_DONATION = 3

PROFILE_FIELDS = ('phone', 'address', 'city', 'bloodgroup', 'date_of_birth', 'weight_kg', 'medical_notes')


@dataclass(frozen=True)
class Vitals:
	hemoglobin_level: str = ""
	blood_pressure: str = ""
	weight_kg: Optional[int] = None


def apply_donation_to_profile(
	user_id: int, donation_date: date, donation_type: str, today: Optional[date] = None
) -> DonorProfile:
	"""Stamp a just-completed donation onto the donor's cached eligibility fields."""

	profile, _ = DonorProfile.objects.get_or_create(user_id=user_id)
	profile.last_donation_date = donation_date
	profile.last_donation_type = donation_type
	profile.is_eligible = eligibility.is_eligible(donation_date, donation_type, today=today)
	profile.save(update_fields=['last_donation_date', 'last_donation_type', 'is_eligible', 'updated_at'])
	return profile


def refresh_eligibility(user_id: int, today: Optional[date] = None) -> DonorProfile:
	"""Rebuild the cached eligibility fields from the latest completed donation on record."""

	latest = (
		Donation.objects.filter(user_id=user_id, status=Donation.STATUS_COMPLETED)
		.order_by('-donation_date', '-id')
		.values('donation_date', 'donation_type')
		.first()
	)
	profile, _ = DonorProfile.objects.get_or_create(user_id=user_id)

	last_date = latest['donation_date'] if latest else None
	last_type = latest['donation_type'] if latest else ''
	profile.last_donation_date = last_date
	profile.last_donation_type = last_type
	profile.is_eligible = eligibility.is_eligible(last_date, last_type, today=today)
	profile.save(update_fields=['last_donation_date', 'last_donation_type', 'is_eligible', 'updated_at'])
	return profile


def create_donation_record(
	*,
	user_id: int,
	donation_type: str,
	location: str,
	donation_date: date,
	processed_by_id: Optional[int],
	vitals: Optional[Vitals] = None,
	status: str = Donation.STATUS_COMPLETED,
	notes: str = "",
	appointment=None,
	today: Optional[date] = None,
) -> Donation:
	"""Insert a donation row and, when it is completed, stamp it onto the profile.

	Callers own the transaction; both writes must land together.
	"""

	vitals = vitals or Vitals()
	donation = Donation.objects.create(
		user_id=user_id,
		appointment=appointment,
		donation_type=donation_type,
		location=location,
		donation_date=donation_date,
		hemoglobin_level=vitals.hemoglobin_level or "",
		blood_pressure=vitals.blood_pressure or "",
		weight_kg=vitals.weight_kg,
		notes=notes or "",
		status=status,
		processed_by_id=processed_by_id,
	)
	if status == Donation.STATUS_COMPLETED:
		apply_donation_to_profile(user_id, donation_date, donation_type, today=today)
	return donation


def record_donation(
	actor: Actor,
	*,
	donation_type: str,
	location: str,
	donation_date: date,
	vitals: Optional[Vitals] = None,
	status: str = Donation.STATUS_COMPLETED,
	notes: str = "",
	user_id: Optional[int] = None,
	today: Optional[date] = None,
) -> Donation:
	"""Record a donation for the actor, or for ``user_id`` when an admin asks."""

	target_user_id = user_id or actor.user_id
	actor.require_owner_or_admin(target_user_id)

	if not User.objects.filter(pk=target_user_id).exists():
		raise NotFound("Donor not found.")
	if donation_type not in DONATION_TYPES:
		raise InvalidDonation(f"Unknown donation type: {donation_type}.")
	if status not in dict(Donation.STATUS_CHOICES):
		raise InvalidDonation(f"Unknown donation status: {status}.")

	with guarded_write("record_donation"), transaction.atomic():
		donation = create_donation_record(
			user_id=target_user_id,
			donation_type=donation_type,
			location=location,
			donation_date=donation_date,
			processed_by_id=actor.user_id if actor.is_admin else None,
			vitals=vitals,
			status=status,
			notes=notes,
			today=today,
		)
		audit.record_action(
			actor,
			ActionAuditLog.ACTION_RECORD_DONATION,
			ActionAuditLog.ENTITY_DONATION,
			donation.id,
			status_after=donation.status,
			payload={'user_id': target_user_id, 'donation_type': donation_type, 'donation_date': donation_date.isoformat()},
		)

	logger.info(
		"Donation %s recorded for user %s (%s, %s, %s)",
		donation.id,
		target_user_id,
		donation_type,
		donation_date,
		status,
	)
	return donation


def refresh_all_eligibility(today: Optional[date] = None, *, apply: bool = True) -> list[DonorProfile]:
	"""Return profiles whose cached flag is stale, fixing them when ``apply`` is set."""

	today = today or timezone.localdate()
	stale = []
	for profile in DonorProfile.objects.exclude(last_donation_date__isnull=True).order_by('id'):
		expected = eligibility.is_eligible(profile.last_donation_date, profile.last_donation_type, today=today)
		if profile.is_eligible != expected:
			profile.is_eligible = expected
			stale.append(profile)

	if apply and stale:
		with guarded_write("refresh_all_eligibility"), transaction.atomic():
			DonorProfile.objects.bulk_update(stale, ['is_eligible'], batch_size=500)
		logger.info("Refreshed eligibility for %s donor profiles", len(stale))
	return stale


def donation_history(actor: Actor):
	return Donation.objects.filter(user_id=actor.user_id).order_by('-donation_date', '-id')


def donation_stats(actor: Actor, today: Optional[date] = None) -> dict:
	today = today or timezone.localdate()
	completed = Donation.objects.filter(user_id=actor.user_id, status=Donation.STATUS_COMPLETED)
	total_donations = completed.count()
	last = completed.order_by('-donation_date', '-id').first()

	next_eligible = None
	if last:
		next_eligible = eligibility.next_eligible_date(last.donation_date, last.donation_type)

	return {
		'total_donations': total_donations,
		'lives_impacted': total_donations * LIVES_PER_DONATION,
		'last_donation': {'date': last.donation_date, 'type': last.donation_type} if last else None,
		'next_eligible_date': next_eligible,
		'is_eligible': today >= next_eligible if next_eligible else True,
	}


def donations_in_range(actor: Actor, start: date, end: date):
	actor.require_admin()
	return (
		Donation.objects.select_related('user')
		.filter(donation_date__gte=start, donation_date__lte=end)
		.order_by('-donation_date', '-id')
	)


def get_profile(actor: Actor) -> dict:
	try:
		user = User.objects.get(pk=actor.user_id)
	except User.DoesNotExist:
		raise NotFound("User not found.")
	return {
		'user': user,
		'profile': DonorProfile.objects.filter(user_id=user.pk).first(),
		'emergency_contact': EmergencyContact.objects.filter(user_id=user.pk).first(),
	}


def update_user_info(actor: Actor, *, first_name: str, last_name: str, email: str) -> None:
	with guarded_write("update_user_info"):
		updated = User.objects.filter(pk=actor.user_id).update(first_name=first_name, last_name=last_name, email=email)
	if not updated:
		raise NotFound("User not found.")


def update_donor_profile(actor: Actor, **fields) -> DonorProfile:
	"""Create or update the actor's profile; eligibility fields are never taken from input."""

	values = {field: fields[field] for field in PROFILE_FIELDS if field in fields}
	with guarded_write("update_donor_profile"), transaction.atomic():
		profile, created = DonorProfile.objects.update_or_create(user_id=actor.user_id, defaults=values)
	logger.info("Donor profile %s for user %s", "created" if created else "updated", actor.user_id)
	return profile


def update_emergency_contact(actor: Actor, *, name: str, phone: str, relationship: str) -> EmergencyContact:
	with guarded_write("update_emergency_contact"), transaction.atomic():
		contact, _ = EmergencyContact.objects.update_or_create(
			user_id=actor.user_id,
			defaults={'name': name, 'phone': phone, 'relationship': relationship},
		)
	return contact
