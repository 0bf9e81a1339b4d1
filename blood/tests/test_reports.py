from datetime import date, time, timedelta

from django.contrib.auth.models import User
from django.test import TestCase, override_settings

from appointment.models import Appointment
from blood.exceptions import Forbidden, NotFound
from blood.services import reports
from blood.services.access import ROLE_ADMIN, ROLE_USER, Actor
from donor.models import Donation, DonorProfile

TODAY = date(2024, 6, 15)


class RoundingTests(TestCase):
    def test_round_half_up(self):
        self.assertEqual(reports.round_half_up(2.5), 3)
        self.assertEqual(reports.round_half_up(3.5), 4)
        self.assertEqual(reports.round_half_up(0.25, 1), 0.3)

    def test_completion_rate(self):
        self.assertEqual(reports.completion_rate(7, 10), 70)
        self.assertEqual(reports.completion_rate(1, 8), 13)
        self.assertEqual(reports.completion_rate(0, 0), 0)


class ReportDataTests(TestCase):
    def setUp(self):
        self.admin = User.objects.create_superuser("admin", "admin@example.com", "pass1234")
        self.actor = Actor(user_id=self.admin.pk, role=ROLE_ADMIN)
        self.donor = User.objects.create_user("donor", password="pass1234")
        DonorProfile.objects.create(user=self.donor, bloodgroup="O-")

    def _appointment(self, day, status):
        return Appointment.objects.create(
            user=self.donor,
            appointment_date=day,
            appointment_time=time(10, 0),
            donation_type="blood",
            location="City Hall",
            status=status,
        )

    def test_completion_rate_for_the_month(self):
        for offset in range(7):
            self._appointment(TODAY - timedelta(days=offset + 1), Appointment.STATUS_COMPLETED)
        for offset in range(3):
            self._appointment(TODAY - timedelta(days=offset + 10), Appointment.STATUS_CANCELLED)

        data = reports.report_data(self.actor, "month", today=TODAY)
        self.assertEqual(data["total_appointments"], 10)
        self.assertEqual(data["completed_appointments"], 7)
        self.assertEqual(data["completion_rate"], 70)

    def test_donations_grouped_by_blood_group(self):
        for offset in range(3):
            Donation.objects.create(
                user=self.donor,
                donation_type="blood",
                location="City Hall",
                donation_date=TODAY - timedelta(days=offset * 5),
            )
        Donation.objects.create(
            user=self.donor,
            donation_type="blood",
            location="City Hall",
            donation_date=TODAY - timedelta(days=2),
            status=Donation.STATUS_DEFERRED,
        )

        data = reports.report_data(self.actor, "week", today=TODAY)
        self.assertEqual(data["total_donations"], 2)
        self.assertEqual(data["donations_by_group"], {"O-": 2})
        self.assertEqual(data["average_daily"], 0.3)

    def test_unknown_period_rejected(self):
        with self.assertRaises(ValueError):
            reports.report_data(self.actor, "decade", today=TODAY)

    def test_non_admin_is_forbidden(self):
        donor_actor = Actor(user_id=self.donor.pk, role=ROLE_USER)
        with self.assertRaises(Forbidden):
            reports.report_data(donor_actor, "month", today=TODAY)
        with self.assertRaises(Forbidden):
            reports.dashboard_stats(donor_actor, today=TODAY)

    @override_settings(CLINIC_DAILY_CAPACITY=2)
    def test_dashboard_utilization_is_capped(self):
        other = User.objects.create_user("other", password="pass1234")
        third = User.objects.create_user("third", password="pass1234")
        for user in (self.donor, other, third):
            Appointment.objects.create(
                user=user,
                appointment_date=TODAY,
                appointment_time=time(9, 0),
                location="City Hall",
            )

        stats = reports.dashboard_stats(self.actor, today=TODAY)
        self.assertEqual(stats["today_appointments"], 3)
        self.assertEqual(stats["utilization"], 100)

    def test_search_and_detail(self):
        Donation.objects.create(user=self.donor, donation_type="blood", location="x", donation_date=TODAY)

        results = list(reports.search_donors(self.actor, query="don", bloodgroup="O-"))
        self.assertEqual([u.pk for u in results], [self.donor.pk])
        self.assertEqual(results[0].total_donations, 1)
        self.assertEqual(list(reports.search_donors(self.actor, bloodgroup="AB+")), [])

        detail = reports.donor_detail(self.actor, self.donor.pk)
        self.assertEqual(detail["profile"].bloodgroup, "O-")
        self.assertEqual(detail["donations"].count(), 1)

        with self.assertRaises(NotFound):
            reports.donor_detail(self.actor, 9999)
