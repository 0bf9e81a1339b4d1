"""Unit tests for the appointment SMS notifications."""

from datetime import date, time, timedelta
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError
from django.contrib.auth.models import User
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone

from appointment.models import Appointment
from blood import tasks
from blood.services import sms
from blood.utils.phone import normalize_phone_number
from blood.utils.sms_sender import send_sms
from donor.models import DonorProfile


class AppointmentSmsTests(TestCase):
	def setUp(self):
		self.user = User.objects.create_user(username="donor1", password="DemoPass123!", first_name="Test")
		self.profile = DonorProfile.objects.create(user=self.user, bloodgroup="A+", phone="+15551234567")
		self.appointment = Appointment.objects.create(
			user=self.user,
			appointment_date=date(2030, 5, 2),
			appointment_time=time(10, 0),
			donation_type="plasma",
			location="City Hall",
		)

	@override_settings(AWS_SNS_ENABLED=False)
	def test_skips_when_disabled(self):
		sender = MagicMock()
		result = sms.notify_appointment_booked(self.appointment, sms_sender=sender)
		self.assertEqual(result.status, "skipped")
		self.assertEqual(result.reason, "sns-disabled")
		sender.assert_not_called()

	@override_settings(AWS_SNS_ENABLED=True)
	def test_skips_without_phone(self):
		DonorProfile.objects.filter(pk=self.profile.pk).update(phone="")
		appointment = Appointment.objects.select_related("user__donor_profile").get(pk=self.appointment.pk)
		sender = MagicMock()
		result = sms.notify_appointment_booked(appointment, sms_sender=sender)
		self.assertEqual(result.reason, "no-contact")
		sender.assert_not_called()

	@override_settings(AWS_SNS_ENABLED=True)
	def test_booked_message_sent_to_donor(self):
		sender = MagicMock(return_value={"status": "success"})
		result = sms.notify_appointment_booked(self.appointment, sms_sender=sender)

		self.assertEqual(result.status, "success")
		self.assertEqual(result.to, "+15551234567")
		phone, message = sender.call_args[0]
		self.assertEqual(phone, "+15551234567")
		self.assertIn("plasma", message)
		self.assertIn("02 May 2030", message)
		self.assertIn("10:00", message)

	@override_settings(AWS_SNS_ENABLED=True)
	def test_status_message_for_cancellation(self):
		self.appointment.status = Appointment.STATUS_CANCELLED
		sender = MagicMock(return_value={"status": "success"})
		sms.notify_appointment_status(self.appointment, sms_sender=sender)
		self.assertIn("cancelled", sender.call_args[0][1])

	@override_settings(AWS_SNS_ENABLED=True)
	def test_scheduled_status_has_no_message(self):
		sender = MagicMock()
		result = sms.notify_appointment_status(self.appointment, sms_sender=sender)
		self.assertEqual(result.reason, "no-template")
		sender.assert_not_called()

	@override_settings(AWS_SNS_ENABLED=True)
	def test_provider_error_reported(self):
		sender = MagicMock(return_value={"status": "error", "message": "throttled"})
		result = sms.send_appointment_reminder(self.appointment, sms_sender=sender)
		self.assertEqual(result.status, "error")
		self.assertEqual(result.reason, "throttled")


class ReminderTaskTests(TestCase):
	def setUp(self):
		self.tomorrow = timezone.localdate() + timedelta(days=1)
		self.user = User.objects.create_user(username="donor2", password="DemoPass123!")
		DonorProfile.objects.create(user=self.user, phone="+15559876543")

	def _appointment(self, **kwargs):
		values = {
			"user": self.user,
			"appointment_date": self.tomorrow,
			"appointment_time": time(9, 0),
			"location": "Community Clinic",
		}
		values.update(kwargs)
		return Appointment.objects.create(**values)

	def test_reminders_sent_once(self):
		due = self._appointment()
		self._appointment(status=Appointment.STATUS_CANCELLED, appointment_time=time(11, 0))

		with patch.object(tasks.sms_service, "send_appointment_reminder", return_value=sms.SmsResult("success")) as send:
			self.assertEqual(tasks.send_appointment_reminders(), 1)
			send.assert_called_once()
			self.assertEqual(tasks.send_appointment_reminders(), 0)

		due.refresh_from_db()
		self.assertTrue(due.reminder_sent)

	def test_failed_reminder_retried_next_run(self):
		due = self._appointment()
		with patch.object(tasks.sms_service, "send_appointment_reminder", return_value=sms.SmsResult("skipped")):
			self.assertEqual(tasks.send_appointment_reminders(), 0)
		due.refresh_from_db()
		self.assertFalse(due.reminder_sent)


@override_settings(AWS_SNS_SMS_TYPE="Transactional", AWS_SNS_SENDER_ID="LifeDropClinic")
class SnsSenderTests(SimpleTestCase):
	def test_publish_includes_attributes(self):
		client = MagicMock()
		client.publish.return_value = {"MessageId": "abc"}
		result = send_sms("+15551234567", "hello", sns_client=client)

		self.assertEqual(result["status"], "success")
		kwargs = client.publish.call_args.kwargs
		self.assertEqual(kwargs["PhoneNumber"], "+15551234567")
		attributes = kwargs["MessageAttributes"]
		self.assertEqual(attributes["AWS.SNS.SMS.SenderID"]["StringValue"], "LifeDropCli")

	def test_client_error_becomes_error_result(self):
		client = MagicMock()
		client.publish.side_effect = ClientError({"Error": {"Code": "Throttling", "Message": "slow down"}}, "Publish")
		result = send_sms("+15551234567", "hello", sns_client=client)
		self.assertEqual(result["status"], "error")


@override_settings(AWS_SNS_DEFAULT_COUNTRY_CODE="+1")
class PhoneNormalizationTests(SimpleTestCase):
	def test_formats(self):
		self.assertEqual(normalize_phone_number("+1 (555) 111-2222"), "+15551112222")
		self.assertEqual(normalize_phone_number("555.111.2222"), "+15551112222")
		self.assertEqual(normalize_phone_number("15551112222"), "+15551112222")
		self.assertEqual(normalize_phone_number("+44 20 7946 0958"), "+442079460958")

	def test_rejects_garbage(self):
		self.assertIsNone(normalize_phone_number(""))
		self.assertIsNone(normalize_phone_number(None))
		self.assertIsNone(normalize_phone_number("12"))
		self.assertIsNone(normalize_phone_number("000"))
