from __future__ import annotations

import re
from typing import Optional

from django.conf import settings

_SEPARATORS = re.compile(r"[\s\-().]+")
_NON_DIGITS = re.compile(r"[^0-9]")

MIN_E164_LENGTH = 8
MAX_E164_LENGTH = 16


def default_country_code() -> str:
	code = str(getattr(settings, "AWS_SNS_DEFAULT_COUNTRY_CODE", None) or "+1")
	return code if code.startswith("+") else f"+{code}"


def normalize_phone_number(raw: Optional[str]) -> Optional[str]:
	"""Return ``raw`` as an E.164 number, or None when it cannot be one.

	"+1 (555) 111-2222" keeps its country code; local numbers such as
	"05551112222" get the default country code prepended.
	"""

	if not raw:
		return None

	cleaned = _SEPARATORS.sub("", str(raw).strip())
	if cleaned.startswith("+"):
		candidate = "+" + _NON_DIGITS.sub("", cleaned)
	else:
		digits = _NON_DIGITS.sub("", cleaned).lstrip("0")
		if not digits:
			return None
		code = default_country_code()
		candidate = f"+{digits}" if digits.startswith(code.lstrip("+")) else f"{code}{digits}"

	if not (MIN_E164_LENGTH <= len(candidate) <= MAX_E164_LENGTH):
		return None
	return candidate
