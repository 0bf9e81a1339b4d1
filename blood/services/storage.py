from __future__ import annotations

import logging
from contextlib import contextmanager

from django.db import DatabaseError

from blood.exceptions import PersistenceFailure

logger = logging.getLogger(__name__)


@contextmanager
def guarded_write(operation: str):
	"""Translate storage errors into an opaque :class:`PersistenceFailure`.

	The original error is logged with its traceback and chained, but its
	message never reaches the caller.
	"""

	try:
		yield
	except DatabaseError as exc:
		logger.exception("Storage failure during %s", operation)
		raise PersistenceFailure() from exc
