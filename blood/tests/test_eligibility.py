from datetime import date

from django.test import SimpleTestCase, override_settings

from blood.services import eligibility


class EligibilityWindowTests(SimpleTestCase):
    def test_plasma_window_is_28_days(self):
        self.assertEqual(eligibility.window_days("plasma"), 28)
        self.assertEqual(eligibility.next_eligible_date(date(2024, 1, 1), "plasma"), date(2024, 1, 29))

    def test_other_types_use_56_days(self):
        for donation_type in ("blood", "platelets", "double_red", "", None, "mystery"):
            self.assertEqual(eligibility.window_days(donation_type), 56, donation_type)
        self.assertEqual(eligibility.next_eligible_date(date(2024, 1, 1), "blood"), date(2024, 2, 26))

    def test_no_previous_donation_is_eligible(self):
        self.assertTrue(eligibility.is_eligible(None, None, today=date(2024, 1, 1)))

    def test_eligible_on_the_boundary_day(self):
        last = date(2024, 1, 1)
        self.assertFalse(eligibility.is_eligible(last, "blood", today=date(2024, 2, 25)))
        self.assertTrue(eligibility.is_eligible(last, "blood", today=date(2024, 2, 26)))
        self.assertFalse(eligibility.is_eligible(last, "plasma", today=date(2024, 1, 28)))
        self.assertTrue(eligibility.is_eligible(last, "plasma", today=date(2024, 1, 29)))

    @override_settings(DONATION_RECOVERY_DAYS=84, DONATION_ELIGIBILITY_WINDOWS={"plasma": 14})
    def test_windows_follow_settings(self):
        self.assertEqual(eligibility.window_days("blood"), 84)
        self.assertEqual(eligibility.window_days("plasma"), 14)
