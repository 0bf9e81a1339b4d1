"""Failures raised by the LifeDrop service layer.

Views catch :class:`LifeDropError` and turn it into a flash message or an
HTTP status; every subclass carries a user-facing message and a status code.
"""

from __future__ import annotations


class LifeDropError(Exception):
	status_code = 400
	default_message = "The request could not be completed."

	def __init__(self, message: str | None = None):
		self.message = message or self.default_message
		super().__init__(self.message)


class Unauthenticated(LifeDropError):
	status_code = 401
	default_message = "Please sign in to continue."


class Forbidden(LifeDropError):
	status_code = 403
	default_message = "You do not have access to this record."


class NotFound(LifeDropError):
	status_code = 404
	default_message = "The requested record was not found."


class IneligibleDonor(LifeDropError):
	status_code = 409
	default_message = "You are not currently eligible to donate. Please check your last donation date."


class InvalidSchedule(LifeDropError):
	default_message = "Appointment must be scheduled for a future date and time."


class DuplicateBooking(LifeDropError):
	status_code = 409
	default_message = "You already have an appointment scheduled for this date."


class InvalidTransition(LifeDropError):
	status_code = 409
	default_message = "This appointment can no longer change to that status."


class PersistenceFailure(LifeDropError):
	status_code = 500
	default_message = "Something went wrong while saving. Please try again."


class InvalidDonation(LifeDropError):
	default_message = "Unknown donation type or status."
