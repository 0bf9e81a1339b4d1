from datetime import date, datetime, time, timedelta
from unittest.mock import patch

from django.contrib.auth.models import User
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from kombu.exceptions import OperationalError

from blood.exceptions import (
	DuplicateBooking,
	Forbidden,
	IneligibleDonor,
	InvalidSchedule,
	InvalidTransition,
	NotFound,
	PersistenceFailure,
)
from blood.models import ActionAuditLog
from blood.services.access import ROLE_ADMIN, ROLE_USER, Actor
from donor import services as donor_services
from donor.models import Donation, DonorProfile
from . import services
from .models import Appointment

NOW = timezone.make_aware(datetime(2024, 4, 20, 12, 0), timezone.get_current_timezone())


class BookingTests(TestCase):
	def setUp(self):
		self.user = User.objects.create_user("donor", password="pass1234")
		self.actor = Actor(user_id=self.user.pk, role=ROLE_USER, username="donor")

	def _book(self, day=date(2024, 5, 1), slot=time(10, 0), **kwargs):
		values = {
			"appointment_date": day,
			"appointment_time": slot,
			"donation_type": "blood",
			"location": "City Hall",
			"now": NOW,
		}
		values.update(kwargs)
		return services.create_appointment(self.actor, **values)

	def test_books_scheduled_appointment(self):
		appointment = self._book()
		self.assertEqual(appointment.status, Appointment.STATUS_SCHEDULED)
		self.assertEqual(appointment.user_id, self.user.pk)
		log = ActionAuditLog.objects.get(entity_id=appointment.id)
		self.assertEqual(log.action, ActionAuditLog.ACTION_CREATE_APPOINTMENT)

	def test_donor_without_profile_may_book(self):
		self.assertFalse(DonorProfile.objects.filter(user=self.user).exists())
		self._book()

	def test_ineligible_donor_rejected(self):
		DonorProfile.objects.create(user=self.user, is_eligible=False)
		with self.assertRaises(IneligibleDonor):
			self._book()
		self.assertFalse(Appointment.objects.exists())

	def test_past_slot_rejected(self):
		with self.assertRaises(InvalidSchedule):
			self._book(day=date(2024, 4, 20), slot=time(9, 0))
		with self.assertRaises(InvalidSchedule):
			self._book(day=date(2024, 4, 1))

	def test_unknown_donation_type_rejected(self):
		with self.assertRaises(InvalidSchedule):
			self._book(donation_type="saliva")

	def test_second_booking_same_day_rejected(self):
		self._book()
		with self.assertRaises(DuplicateBooking):
			self._book(slot=time(14, 0))
		self.assertEqual(Appointment.objects.count(), 1)

	def test_rebook_after_cancel(self):
		first = self._book()
		services.cancel_appointment(self.actor, first.id)
		second = self._book(slot=time(13, 0))
		self.assertNotEqual(first.id, second.id)

	def test_constraint_race_reported_as_duplicate(self):
		real_create = Appointment.objects.create

		def create_after_concurrent_booking(**kwargs):
			real_create(**kwargs)
			return real_create(**kwargs)

		with patch.object(Appointment.objects, "create", side_effect=create_after_concurrent_booking):
			with self.assertRaises(DuplicateBooking):
				self._book()
		self.assertFalse(ActionAuditLog.objects.exists())

	def test_booking_survives_broker_outage(self):
		with patch("appointment.services.tasks.send_appointment_booked_sms") as task:
			task.delay.side_effect = OperationalError("Error 111 connecting to localhost:6379")
			with self.assertLogs("appointment.services", level="ERROR"):
				with self.captureOnCommitCallbacks(execute=True) as callbacks:
					appointment = self._book()
		self.assertEqual(len(callbacks), 1)
		task.delay.assert_called_once_with(appointment.id)
		self.assertTrue(Appointment.objects.filter(pk=appointment.pk, status=Appointment.STATUS_SCHEDULED).exists())

	def test_different_days_allowed(self):
		self._book()
		self._book(day=date(2024, 5, 2))
		self.assertEqual(Appointment.objects.count(), 2)

	def test_taken_slots_ignore_cancelled(self):
		kept = self._book()
		cancelled = self._book(day=date(2024, 5, 2), slot=time(9, 0))
		services.cancel_appointment(self.actor, cancelled.id)
		self.assertEqual(services.taken_slots(self.actor, kept.appointment_date), {"10:00"})
		self.assertEqual(services.taken_slots(self.actor, date(2024, 5, 2)), set())


class StatusTransitionTests(TestCase):
	def setUp(self):
		self.admin = User.objects.create_superuser("admin", "admin@example.com", "pass1234")
		self.admin_actor = Actor(user_id=self.admin.pk, role=ROLE_ADMIN)
		self.donor = User.objects.create_user("donor", password="pass1234")
		self.donor_actor = Actor(user_id=self.donor.pk, role=ROLE_USER)
		DonorProfile.objects.create(user=self.donor, bloodgroup="A+")
		self.appointment = Appointment.objects.create(
			user=self.donor,
			appointment_date=date(2024, 5, 1),
			appointment_time=time(10, 0),
			donation_type="blood",
			location="Red Cross Center",
		)

	def test_completion_records_one_donation(self):
		services.update_status(
			self.admin_actor,
			self.appointment.id,
			Appointment.STATUS_COMPLETED,
			today=date(2024, 5, 1),
		)

		donation = Donation.objects.get(user=self.donor)
		self.assertEqual(donation.donation_type, "blood")
		self.assertEqual(donation.donation_date, date(2024, 5, 1))
		self.assertEqual(donation.status, Donation.STATUS_COMPLETED)
		self.assertEqual(donation.location, "Red Cross Center")
		self.assertEqual(donation.appointment_id, self.appointment.id)

		profile = DonorProfile.objects.get(user=self.donor)
		self.assertEqual(profile.last_donation_date, date(2024, 5, 1))
		self.assertFalse(profile.is_eligible)
		self.assertEqual(profile.next_eligible_donation_date, date(2024, 6, 26))

		with self.assertRaises(InvalidTransition):
			services.update_status(self.admin_actor, self.appointment.id, Appointment.STATUS_COMPLETED)
		self.assertEqual(Donation.objects.filter(user=self.donor).count(), 1)

	def test_completion_stamps_appointment_date_over_later_donation(self):
		donor_services.record_donation(
			self.admin_actor,
			user_id=self.donor.pk,
			donation_type="blood",
			location="City Hall",
			donation_date=date(2024, 6, 1),
		)
		services.update_status(self.admin_actor, self.appointment.id, Appointment.STATUS_COMPLETED, today=date(2024, 6, 2))

		donation = Donation.objects.get(appointment=self.appointment)
		profile = DonorProfile.objects.get(user=self.donor)
		self.assertEqual(donation.donation_date, date(2024, 5, 1))
		self.assertEqual(profile.last_donation_date, self.appointment.appointment_date)

	def test_failed_completion_leaves_nothing_behind(self):
		with patch.object(services.audit, "record_action", side_effect=DatabaseError("database is locked")):
			with self.assertRaises(PersistenceFailure):
				services.update_status(self.admin_actor, self.appointment.id, Appointment.STATUS_COMPLETED, today=date(2024, 5, 1))

		self.appointment.refresh_from_db()
		self.assertEqual(self.appointment.status, Appointment.STATUS_SCHEDULED)
		self.assertFalse(Donation.objects.exists())
		profile = DonorProfile.objects.get(user=self.donor)
		self.assertIsNone(profile.last_donation_date)
		self.assertTrue(profile.is_eligible)

	def test_status_change_survives_broker_outage(self):
		with patch("appointment.services.tasks.send_appointment_status_sms") as task:
			task.delay.side_effect = OperationalError("Error 111 connecting to localhost:6379")
			with self.assertLogs("appointment.services", level="ERROR"):
				with self.captureOnCommitCallbacks(execute=True):
					services.update_status(self.admin_actor, self.appointment.id, Appointment.STATUS_CONFIRMED)
		self.appointment.refresh_from_db()
		self.assertEqual(self.appointment.status, Appointment.STATUS_CONFIRMED)

	def test_completion_from_confirmed(self):
		services.update_status(self.admin_actor, self.appointment.id, Appointment.STATUS_CONFIRMED)
		services.update_status(self.admin_actor, self.appointment.id, Appointment.STATUS_COMPLETED, today=date(2024, 5, 1))
		self.assertEqual(Donation.objects.count(), 1)

	def test_completion_without_profile_creates_one(self):
		DonorProfile.objects.filter(user=self.donor).delete()
		services.update_status(self.admin_actor, self.appointment.id, Appointment.STATUS_COMPLETED, today=date(2024, 5, 2))
		profile = DonorProfile.objects.get(user=self.donor)
		self.assertEqual(profile.last_donation_date, date(2024, 5, 1))

	def test_terminal_statuses_are_final(self):
		services.update_status(self.admin_actor, self.appointment.id, Appointment.STATUS_NO_SHOW)
		for status in (Appointment.STATUS_SCHEDULED, Appointment.STATUS_CONFIRMED, Appointment.STATUS_COMPLETED):
			with self.assertRaises(InvalidTransition):
				services.update_status(self.admin_actor, self.appointment.id, status)
		self.assertFalse(Donation.objects.exists())

	def test_cancel_does_not_create_donation(self):
		services.cancel_appointment(self.donor_actor, self.appointment.id)
		self.appointment.refresh_from_db()
		self.assertEqual(self.appointment.status, Appointment.STATUS_CANCELLED)
		self.assertFalse(Donation.objects.exists())

	def test_audit_row_records_transition(self):
		services.update_status(self.admin_actor, self.appointment.id, Appointment.STATUS_COMPLETED, today=date(2024, 5, 1))
		log = ActionAuditLog.objects.get(action=ActionAuditLog.ACTION_UPDATE_APPOINTMENT)
		self.assertEqual(log.status_before, Appointment.STATUS_SCHEDULED)
		self.assertEqual(log.status_after, Appointment.STATUS_COMPLETED)
		self.assertEqual(log.actor_role, ROLE_ADMIN)
		self.assertEqual(log.payload, {"donation_id": Donation.objects.get().id})

	def test_other_donor_forbidden(self):
		stranger = User.objects.create_user("stranger", password="pass1234")
		stranger_actor = Actor(user_id=stranger.pk, role=ROLE_USER)
		with self.assertRaises(Forbidden):
			services.cancel_appointment(stranger_actor, self.appointment.id)
		with self.assertRaises(Forbidden):
			services.get_appointment(stranger_actor, self.appointment.id)
		self.appointment.refresh_from_db()
		self.assertEqual(self.appointment.status, Appointment.STATUS_SCHEDULED)

	def test_missing_appointment(self):
		with self.assertRaises(NotFound):
			services.update_status(self.admin_actor, 9999, Appointment.STATUS_CANCELLED)

	def test_listing_is_admin_only(self):
		with self.assertRaises(Forbidden):
			services.list_all_appointments(self.donor_actor)
		in_range = services.list_all_appointments(self.admin_actor, start=date(2024, 5, 1), end=date(2024, 5, 31))
		self.assertEqual(list(in_range), [self.appointment])
		outside = services.list_all_appointments(self.admin_actor, start=date(2024, 6, 1), end=date(2024, 6, 30))
		self.assertEqual(list(outside), [])


class ScheduleViewTests(TestCase):
	def setUp(self):
		self.user = User.objects.create_user("donor", password="pass1234")
		self.client.force_login(self.user)
		self.day = timezone.localdate() + timedelta(days=3)

	def test_book_and_cancel(self):
		response = self.client.post(
			reverse("appointment-schedule"),
			{
				"appointment_date": self.day.isoformat(),
				"appointment_time": "10:00",
				"donation_type": "plasma",
				"location": "City Hall",
			},
		)
		self.assertRedirects(response, reverse("appointment-schedule"), fetch_redirect_response=False)
		appointment = Appointment.objects.get(user=self.user)
		self.assertEqual(appointment.appointment_time, time(10, 0))
		self.assertEqual(appointment.donation_type, "plasma")

		response = self.client.post(reverse("appointment-cancel", args=[appointment.pk]), follow=True)
		self.assertContains(response, "Appointment cancelled.")
		appointment.refresh_from_db()
		self.assertEqual(appointment.status, Appointment.STATUS_CANCELLED)

	def test_duplicate_booking_flashes_error(self):
		Appointment.objects.create(
			user=self.user,
			appointment_date=self.day,
			appointment_time=time(9, 0),
			location="City Hall",
		)
		response = self.client.post(
			reverse("appointment-schedule"),
			{
				"appointment_date": self.day.isoformat(),
				"appointment_time": "11:00",
				"donation_type": "blood",
				"location": "City Hall",
			},
		)
		self.assertContains(response, "You already have an appointment scheduled for this date.")
		self.assertEqual(Appointment.objects.filter(user=self.user).count(), 1)

	def test_schedule_page_lists_taken_slots(self):
		response = self.client.get(reverse("appointment-schedule"), {"date": self.day.isoformat()})
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.context["selected_date"], self.day)
