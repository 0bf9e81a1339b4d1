from __future__ import annotations

import logging

from django.db.models.signals import pre_save
from django.dispatch import receiver

from blood.utils.phone import normalize_phone_number
from .models import DonorProfile, EmergencyContact

LOGGER = logging.getLogger(__name__)


@receiver(pre_save, sender=DonorProfile)
@receiver(pre_save, sender=EmergencyContact)
def normalize_contact_phone(sender, instance, **kwargs):
	"""Store phone numbers in E.164 form so SMS delivery can use them as-is."""

	raw = (instance.phone or "").strip()
	if not raw:
		instance.phone = ""
		return

	normalized = normalize_phone_number(raw)
	if not normalized:
		# Keep what the donor typed; it is shown back to them for correction.
		LOGGER.debug("Unable to normalize phone '%s' for %s", raw, sender.__name__)
		instance.phone = raw
		return

	instance.phone = normalized
