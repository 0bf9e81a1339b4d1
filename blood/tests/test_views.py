from datetime import timedelta, time

from django.contrib.auth.models import User
from django.test import Client, TestCase
from django.urls import reverse
from django.utils import timezone

from appointment.models import Appointment
from blood.models import ActionAuditLog, InventoryUnit
from donor.models import Donation, DonorProfile


class AdminViewTests(TestCase):
	def setUp(self):
		self.client = Client()
		self.admin = User.objects.create_superuser("admin", "admin@example.com", "pass1234")
		self.donor = User.objects.create_user("donor", password="pass1234", first_name="Dana")
		DonorProfile.objects.create(user=self.donor, bloodgroup="B+")
		self.appointment = Appointment.objects.create(
			user=self.donor,
			appointment_date=timezone.localdate() + timedelta(days=2),
			appointment_time=time(11, 0),
			donation_type="blood",
			location="City Hall",
		)

	def test_anonymous_redirected_to_signin(self):
		response = self.client.get(reverse("admin-dashboard"))
		self.assertEqual(response.status_code, 302)
		self.assertTrue(response["Location"].startswith(reverse("signin")))

	def test_donor_bounced_to_portal(self):
		self.client.force_login(self.donor)
		response = self.client.get(reverse("admin-dashboard"))
		self.assertRedirects(response, reverse("donor-dashboard"), fetch_redirect_response=False)

	def test_admin_pages_render(self):
		self.client.force_login(self.admin)
		for name in (
			"admin-dashboard",
			"admin-donor",
			"admin-appointments",
			"admin-donation",
			"admin-inventory",
			"admin-reports",
			"admin-audit-logs",
		):
			response = self.client.get(reverse(name))
			self.assertEqual(response.status_code, 200, name)

		response = self.client.get(reverse("admin-donor-detail", args=[self.donor.pk]))
		self.assertContains(response, "B+")

	def test_process_donation_completes_appointment(self):
		self.client.force_login(self.admin)
		response = self.client.post(
			reverse("admin-process-donation", args=[self.appointment.pk]),
			{"hemoglobin": "14.2", "blood_pressure": "120/80", "weight_kg": "72"},
		)
		self.assertRedirects(response, reverse("admin-appointments"), fetch_redirect_response=False)

		self.appointment.refresh_from_db()
		self.assertEqual(self.appointment.status, Appointment.STATUS_COMPLETED)
		donation = Donation.objects.get(appointment=self.appointment)
		self.assertEqual(donation.hemoglobin_level, "14.2 g/dL")
		self.assertEqual(donation.processed_by, self.admin)

	def test_low_hemoglobin_keeps_appointment_open(self):
		self.client.force_login(self.admin)
		response = self.client.post(
			reverse("admin-process-donation", args=[self.appointment.pk]),
			{"hemoglobin": "10.0", "blood_pressure": "120/80", "weight_kg": "72"},
		)
		self.assertEqual(response.status_code, 200)
		self.appointment.refresh_from_db()
		self.assertEqual(self.appointment.status, Appointment.STATUS_SCHEDULED)
		self.assertFalse(Donation.objects.exists())

	def test_invalid_transition_shows_message(self):
		self.appointment.status = Appointment.STATUS_CANCELLED
		self.appointment.save()
		self.client.force_login(self.admin)

		response = self.client.post(
			reverse("admin-appointment-update-status", args=[self.appointment.pk]),
			{"status": Appointment.STATUS_COMPLETED},
			follow=True,
		)
		self.assertContains(response, "Cannot change an appointment from cancelled to completed.")
		self.assertFalse(Donation.objects.exists())

	def test_status_update_ignores_offsite_next(self):
		self.client.force_login(self.admin)
		url = reverse("admin-appointment-update-status", args=[self.appointment.pk])

		response = self.client.post(url, {"status": Appointment.STATUS_CONFIRMED, "next": "https://evil.example/phish"})
		self.assertRedirects(response, reverse("admin-appointments"), fetch_redirect_response=False)

		back = reverse("admin-dashboard")
		response = self.client.post(url, {"status": Appointment.STATUS_NO_SHOW, "next": back})
		self.assertRedirects(response, back, fetch_redirect_response=False)

	def test_add_inventory(self):
		self.client.force_login(self.admin)
		response = self.client.post(
			reverse("admin-inventory"),
			{
				"bloodgroup": "AB-",
				"units": "4",
				"expiry_date": (timezone.localdate() + timedelta(days=30)).isoformat(),
				"location": "Main Storage",
			},
		)
		self.assertRedirects(response, reverse("admin-inventory"), fetch_redirect_response=False)
		unit = InventoryUnit.objects.get()
		self.assertEqual(unit.units, 4)
		self.assertTrue(ActionAuditLog.objects.filter(action=ActionAuditLog.ACTION_ADD_INVENTORY).exists())


class SigninViewTests(TestCase):
	def test_admin_lands_on_back_office(self):
		User.objects.create_superuser("admin", "admin@example.com", "pass1234")
		response = self.client.post(reverse("signin"), {"username": "admin", "password": "pass1234"}, follow=True)
		self.assertEqual(response.redirect_chain[-1][0], reverse("admin-dashboard"))

	def test_bad_password(self):
		User.objects.create_user("donor", password="pass1234")
		response = self.client.post(reverse("signin"), {"username": "donor", "password": "nope"})
		self.assertContains(response, "Invalid username or password.")

	def test_signin_drops_protocol_relative_next(self):
		User.objects.create_superuser("admin", "admin@example.com", "pass1234")
		response = self.client.post(
			reverse("signin"),
			{"username": "admin", "password": "pass1234", "next": "//evil.example/phish"},
		)
		self.assertRedirects(response, reverse("afterlogin"), fetch_redirect_response=False)
