from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from django.conf import settings
from django.utils import timezone


def _default_recovery_days() -> int:
	return int(getattr(settings, "DONATION_RECOVERY_DAYS", 56))


def window_days(donation_type: Optional[str]) -> int:
	"""Minimum gap in days after a donation of ``donation_type``.

	Plasma donors may return after 28 days; every other type, including ones
	we do not recognise, falls back to the whole-blood recovery period.
	"""

	windows = getattr(settings, "DONATION_ELIGIBILITY_WINDOWS", None) or {"plasma": 28}
	if donation_type in windows:
		return int(windows[donation_type])
	return _default_recovery_days()


def next_eligible_date(last_donation_date: date, donation_type: Optional[str]) -> date:
	return last_donation_date + timedelta(days=window_days(donation_type))


def is_eligible(
	last_donation_date: Optional[date],
	donation_type: Optional[str],
	today: Optional[date] = None,
) -> bool:
	if last_donation_date is None:
		return True
	today = today or timezone.localdate()
	return today >= next_eligible_date(last_donation_date, donation_type)
