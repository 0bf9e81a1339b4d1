from datetime import date
from io import StringIO
from unittest.mock import patch

from django.contrib.auth.models import User
from django.core.management import call_command
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse

from blood.exceptions import Forbidden, InvalidDonation, NotFound, PersistenceFailure
from blood.models import ActionAuditLog
from blood.services.access import DONOR_GROUP, ROLE_ADMIN, ROLE_USER, Actor
from donor import services
from donor.forms import VitalsForm
from donor.models import Donation, DonorProfile, EmergencyContact


class RecordDonationTests(TestCase):
	def setUp(self):
		self.donor = User.objects.create_user("donor", password="pass1234")
		self.actor = Actor(user_id=self.donor.pk, role=ROLE_USER)
		self.admin = User.objects.create_superuser("admin", "admin@example.com", "pass1234")
		self.admin_actor = Actor(user_id=self.admin.pk, role=ROLE_ADMIN)

	def test_eligibility_window_after_whole_blood(self):
		services.record_donation(
			self.actor,
			donation_type="blood",
			location="City Hall",
			donation_date=date(2024, 1, 1),
			today=date(2024, 2, 25),
		)
		profile = DonorProfile.objects.get(user=self.donor)
		self.assertFalse(profile.is_eligible)
		self.assertEqual(profile.next_eligible_donation_date, date(2024, 2, 26))

		profile = services.refresh_eligibility(self.donor.pk, today=date(2024, 2, 26))
		self.assertTrue(profile.is_eligible)

	def test_plasma_uses_shorter_window(self):
		services.record_donation(
			self.actor,
			donation_type="plasma",
			location="City Hall",
			donation_date=date(2024, 1, 1),
			today=date(2024, 1, 29),
		)
		self.assertTrue(DonorProfile.objects.get(user=self.donor).is_eligible)

	def test_unknown_type_or_status_rejected(self):
		with self.assertRaises(InvalidDonation):
			services.record_donation(self.actor, donation_type="saliva", location="City Hall", donation_date=date(2024, 1, 1))
		with self.assertRaises(InvalidDonation):
			services.record_donation(
				self.actor,
				donation_type="blood",
				location="City Hall",
				donation_date=date(2024, 1, 1),
				status="lost",
			)
		self.assertFalse(Donation.objects.exists())

	def test_donor_recording_for_themself_has_no_processor(self):
		donation = services.record_donation(self.actor, donation_type="blood", location="City Hall", donation_date=date(2024, 1, 1))
		self.assertIsNone(donation.processed_by_id)

	def test_deferred_donation_keeps_eligibility(self):
		services.record_donation(
			self.actor,
			donation_type="blood",
			location="City Hall",
			donation_date=date(2024, 1, 1),
			status=Donation.STATUS_DEFERRED,
			today=date(2024, 1, 2),
		)
		self.assertFalse(DonorProfile.objects.filter(user=self.donor).exists())

	def test_recorded_donation_sets_last_donation_date(self):
		services.record_donation(self.actor, donation_type="plasma", location="x", donation_date=date(2024, 6, 1))
		services.record_donation(self.actor, donation_type="blood", location="x", donation_date=date(2024, 5, 1), today=date(2024, 6, 2))
		profile = DonorProfile.objects.get(user=self.donor)
		self.assertEqual(profile.last_donation_date, date(2024, 5, 1))
		self.assertEqual(profile.last_donation_type, "blood")
		self.assertFalse(profile.is_eligible)

	def test_rebuild_uses_latest_completed_donation(self):
		for day, kind in ((date(2024, 3, 1), "plasma"), (date(2024, 1, 1), "blood")):
			services.record_donation(self.actor, donation_type=kind, location="x", donation_date=day)
		profile = services.refresh_eligibility(self.donor.pk, today=date(2024, 3, 2))
		self.assertEqual(profile.last_donation_date, date(2024, 3, 1))
		self.assertEqual(profile.last_donation_type, "plasma")

	def test_admin_records_for_donor(self):
		donation = services.record_donation(
			self.admin_actor,
			user_id=self.donor.pk,
			donation_type="platelets",
			location="University Hospital",
			donation_date=date(2024, 4, 4),
			vitals=services.Vitals(hemoglobin_level="13.9 g/dL", blood_pressure="118/76", weight_kg=70),
		)
		self.assertEqual(donation.user_id, self.donor.pk)
		self.assertEqual(donation.processed_by_id, self.admin.pk)
		self.assertEqual(donation.blood_pressure, "118/76")
		log = ActionAuditLog.objects.get(action=ActionAuditLog.ACTION_RECORD_DONATION)
		self.assertEqual(log.entity_id, donation.id)

	def test_donor_cannot_record_for_someone_else(self):
		with self.assertRaises(Forbidden):
			services.record_donation(
				self.actor,
				user_id=self.admin.pk,
				donation_type="blood",
				location="x",
				donation_date=date(2024, 1, 1),
			)

	def test_unknown_donor(self):
		with self.assertRaises(NotFound):
			services.record_donation(
				self.admin_actor,
				user_id=9999,
				donation_type="blood",
				location="x",
				donation_date=date(2024, 1, 1),
			)

	def test_storage_error_is_opaque(self):
		with patch.object(services.Donation.objects, "create", side_effect=DatabaseError("disk I/O error at /var/db")):
			with self.assertRaises(PersistenceFailure) as ctx:
				services.record_donation(self.actor, donation_type="blood", location="x", donation_date=date(2024, 1, 1))
		self.assertNotIn("disk", ctx.exception.message)

	def test_stats_and_history(self):
		for day in (date(2024, 1, 1), date(2024, 3, 1)):
			services.record_donation(self.actor, donation_type="blood", location="x", donation_date=day)
		services.record_donation(
			self.actor,
			donation_type="blood",
			location="x",
			donation_date=date(2024, 4, 1),
			status=Donation.STATUS_DEFERRED,
		)

		stats = services.donation_stats(self.actor, today=date(2024, 4, 26))
		self.assertEqual(stats["total_donations"], 2)
		self.assertEqual(stats["lives_impacted"], 6)
		self.assertEqual(stats["last_donation"]["date"], date(2024, 3, 1))
		self.assertEqual(stats["next_eligible_date"], date(2024, 4, 26))
		self.assertTrue(stats["is_eligible"])

		history = list(services.donation_history(self.actor))
		self.assertEqual([d.donation_date for d in history], [date(2024, 4, 1), date(2024, 3, 1), date(2024, 1, 1)])

	def test_donations_in_range_admin_only(self):
		services.record_donation(self.actor, donation_type="blood", location="x", donation_date=date(2024, 1, 10))
		with self.assertRaises(Forbidden):
			services.donations_in_range(self.actor, date(2024, 1, 1), date(2024, 1, 31))
		self.assertEqual(services.donations_in_range(self.admin_actor, date(2024, 1, 1), date(2024, 1, 31)).count(), 1)
		self.assertEqual(services.donations_in_range(self.admin_actor, date(2024, 2, 1), date(2024, 2, 28)).count(), 0)


class RefreshEligibilityTests(TestCase):
	def setUp(self):
		self.stale = DonorProfile.objects.create(
			user=User.objects.create_user("stale"),
			last_donation_date=date(2024, 1, 1),
			last_donation_type="blood",
			is_eligible=False,
		)
		self.recent = DonorProfile.objects.create(
			user=User.objects.create_user("recent"),
			last_donation_date=date(2024, 2, 20),
			last_donation_type="blood",
			is_eligible=False,
		)

	def test_dry_run_reports_without_writing(self):
		stale = services.refresh_all_eligibility(date(2024, 3, 1), apply=False)
		self.assertEqual([p.pk for p in stale], [self.stale.pk])
		self.stale.refresh_from_db()
		self.assertFalse(self.stale.is_eligible)

	def test_apply_writes_flags(self):
		services.refresh_all_eligibility(date(2024, 3, 1))
		self.stale.refresh_from_db()
		self.recent.refresh_from_db()
		self.assertTrue(self.stale.is_eligible)
		self.assertFalse(self.recent.is_eligible)

	def test_command(self):
		out = StringIO()
		call_command("refresh_eligibility", "--today", "2024-03-01", stdout=out)
		self.assertIn("Re-run with --apply", out.getvalue())
		self.stale.refresh_from_db()
		self.assertFalse(self.stale.is_eligible)

		out = StringIO()
		call_command("refresh_eligibility", "--today", "2024-03-01", "--apply", stdout=out)
		self.assertIn("Updated 1 donor profiles.", out.getvalue())
		self.stale.refresh_from_db()
		self.assertTrue(self.stale.is_eligible)


@override_settings(AWS_SNS_DEFAULT_COUNTRY_CODE="+1")
class ProfileTests(TestCase):
	def setUp(self):
		self.user = User.objects.create_user("donor", password="pass1234", email="old@example.com")
		self.actor = Actor(user_id=self.user.pk, role=ROLE_USER)

	def test_profile_update_ignores_eligibility_fields(self):
		profile = services.update_donor_profile(
			self.actor,
			bloodgroup="AB-",
			phone="(555) 222-3333",
			is_eligible=False,
			last_donation_date=date(2024, 1, 1),
		)
		self.assertEqual(profile.bloodgroup, "AB-")
		self.assertEqual(profile.phone, "+15552223333")
		self.assertTrue(profile.is_eligible)
		self.assertIsNone(profile.last_donation_date)

	def test_emergency_contact_upsert(self):
		services.update_emergency_contact(self.actor, name="Sam", phone="5554443333", relationship="Sibling")
		services.update_emergency_contact(self.actor, name="Sam Lee", phone="5554443333", relationship="Sibling")
		contact = EmergencyContact.objects.get(user=self.user)
		self.assertEqual(contact.name, "Sam Lee")
		self.assertEqual(contact.phone, "+15554443333")

	def test_get_and_update_user_info(self):
		services.update_user_info(self.actor, first_name="Ada", last_name="Byron", email="ada@example.com")
		data = services.get_profile(self.actor)
		self.assertEqual(data["user"].email, "ada@example.com")
		self.assertIsNone(data["profile"])

		with self.assertRaises(NotFound):
			services.get_profile(Actor(user_id=9999, role=ROLE_USER))


class VitalsFormTests(TestCase):
	def test_low_hemoglobin_rejected(self):
		form = VitalsForm(data={"hemoglobin": "11.9", "blood_pressure": "120/80", "weight_kg": "70"})
		self.assertFalse(form.is_valid())
		self.assertIn("hemoglobin", form.errors)

	def test_blood_pressure_format(self):
		form = VitalsForm(data={"hemoglobin": "13.0", "blood_pressure": "high", "weight_kg": "70"})
		self.assertFalse(form.is_valid())
		form = VitalsForm(data={"hemoglobin": "13.0", "blood_pressure": "120 / 80", "weight_kg": "70"})
		self.assertTrue(form.is_valid(), form.errors)
		self.assertEqual(form.cleaned_data["blood_pressure"], "120/80")


class DonorPortalViewTests(TestCase):
	def test_signup_creates_donor(self):
		response = self.client.post(
			reverse("donorsignup"),
			{
				"first_name": "Ada",
				"last_name": "Byron",
				"username": "ada",
				"email": "ada@example.com",
				"password": "pass1234",
				"bloodgroup": "O-",
				"phone": "",
			},
		)
		self.assertRedirects(response, reverse("donor-dashboard"), fetch_redirect_response=False)
		user = User.objects.get(username="ada")
		self.assertTrue(user.check_password("pass1234"))
		self.assertTrue(user.groups.filter(name=DONOR_GROUP).exists())
		self.assertEqual(user.donor_profile.bloodgroup, "O-")

	def test_signup_rejects_taken_email(self):
		User.objects.create_user("first", email="taken@example.com")
		response = self.client.post(
			reverse("donorsignup"),
			{"username": "second", "email": "taken@example.com", "password": "pass1234"},
		)
		self.assertContains(response, "An account with this email already exists.")
		self.assertFalse(User.objects.filter(username="second").exists())

	def test_dashboard_history_and_profile(self):
		user = User.objects.create_user("donor", password="pass1234")
		actor = Actor(user_id=user.pk, role=ROLE_USER)
		services.record_donation(actor, donation_type="blood", location="City Hall", donation_date=date(2024, 1, 1))
		self.client.force_login(user)

		response = self.client.get(reverse("donor-dashboard"))
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.context["total_donations"], 1)
		self.assertEqual(response.context["lives_impacted"], 3)

		response = self.client.get(reverse("donor-history"))
		self.assertContains(response, "City Hall")

		response = self.client.post(reverse("donor-profile"), {"intent": "profile", "bloodgroup": "B-", "city": "Leeds"})
		self.assertRedirects(response, reverse("donor-profile"), fetch_redirect_response=False)
		self.assertEqual(DonorProfile.objects.get(user=user).city, "Leeds")

	def test_admin_sent_to_back_office(self):
		admin = User.objects.create_superuser("admin", "admin@example.com", "pass1234")
		self.client.force_login(admin)
		response = self.client.get(reverse("donor-dashboard"))
		self.assertRedirects(response, reverse("admin-dashboard"), fetch_redirect_response=False)
