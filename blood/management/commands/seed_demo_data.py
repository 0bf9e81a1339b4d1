import random
from datetime import time, timedelta

from django.conf import settings
from django.contrib.auth.models import Group, User
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from faker import Faker

from appointment.models import Appointment
from blood.choices import BLOOD_GROUPS, DONATION_TYPES
from blood.models import InventoryUnit
from blood.services.access import DONOR_GROUP
from donor import services as donor_services
from donor.models import Donation, DonorProfile, EmergencyContact

DEFAULT_PASSWORD = "DemoPass123!"
RELATIONSHIPS = ["Spouse", "Parent", "Sibling", "Friend", "Partner"]
# Whole blood dominates real clinics
DONATION_TYPE_WEIGHTS = [70, 15, 10, 5]
PAST_APPOINTMENT_OUTCOMES = [
    Appointment.STATUS_COMPLETED,
    Appointment.STATUS_COMPLETED,
    Appointment.STATUS_COMPLETED,
    Appointment.STATUS_CANCELLED,
    Appointment.STATUS_NO_SHOW,
]


class Command(BaseCommand):
    help = "Generate demo donors with profiles, appointments, donations and inventory"

    def add_arguments(self, parser):
        parser.add_argument("--donors", type=int, help="Number of donors to create (default random between 40-60)")
        parser.add_argument("--seed", type=int, help="Random seed for deterministic runs")
        parser.add_argument("--purge", action="store_true", help="Delete existing donors, appointments, donations and inventory first")

    def handle(self, *args, **options):
        faker = Faker()
        if options.get("seed") is not None:
            Faker.seed(options["seed"])
            random.seed(options["seed"])

        donor_target = options.get("donors") or random.randint(40, 60)
        today = timezone.localdate()

        if options.get("purge"):
            self._purge_existing()

        donor_group, _ = Group.objects.get_or_create(name=DONOR_GROUP)

        with transaction.atomic():
            donors = [self._create_donor(donor_group, faker) for _ in range(donor_target)]
            appointment_count, donation_count = self._create_history(donors, today, faker)
            upcoming_count = self._create_upcoming(donors, today)
            unit_count = self._create_inventory(today)

        summary = (
            f"Seed complete: {len(donors)} donors, {appointment_count + upcoming_count} appointments, "
            f"{donation_count} donations, {unit_count} inventory lots."
        )
        self.stdout.write(self.style.SUCCESS(summary))
        self.stdout.write(self.style.SUCCESS(f"Default password for generated accounts: '{DEFAULT_PASSWORD}'"))

    def _purge_existing(self):
        self.stdout.write("Purging existing demo data…")
        InventoryUnit.objects.all().delete()
        # Cascades to profiles, contacts, appointments and donations
        User.objects.filter(is_superuser=False, groups__name=DONOR_GROUP).delete()
        self.stdout.write(self.style.WARNING("Existing demo records removed."))

    def _random_username(self):
        username = f"donor_{random.randint(1000, 999999)}"
        while User.objects.filter(username=username).exists():
            username = f"donor_{random.randint(1000, 999999)}"
        return username

    def _create_donor(self, donor_group, faker):
        username = self._random_username()
        user = User.objects.create_user(
            username=username,
            first_name=faker.first_name(),
            last_name=faker.last_name(),
            email=f"{username}@demo.local",
            password=DEFAULT_PASSWORD,
        )
        donor_group.user_set.add(user)

        DonorProfile.objects.create(
            user=user,
            phone=f"+1555{random.randint(1000000, 9999999)}",
            address=faker.street_address(),
            city=faker.city(),
            bloodgroup=random.choice(BLOOD_GROUPS),
            date_of_birth=faker.date_of_birth(minimum_age=18, maximum_age=65),
            weight_kg=random.randint(52, 110),
        )
        if random.random() < 0.6:
            EmergencyContact.objects.create(
                user=user,
                name=faker.name(),
                phone=f"+1555{random.randint(1000000, 9999999)}",
                relationship=random.choice(RELATIONSHIPS),
            )
        return user

    def _slot(self):
        slots = getattr(settings, 'APPOINTMENT_SLOTS', ["09:00"])
        hour, minute = random.choice(slots).split(":")
        return time(int(hour), int(minute))

    def _locations(self):
        return getattr(settings, 'DONATION_LOCATIONS', ["Main Clinic"])

    def _create_history(self, donors, today, faker):
        appointment_count = 0
        donation_count = 0
        locations = self._locations()

        for user in donors:
            visit_date = today - timedelta(days=random.randint(300, 420))
            while True:
                visit_date += timedelta(days=random.randint(60, 140))
                if visit_date >= today:
                    break

                donation_type = random.choices(DONATION_TYPES, weights=DONATION_TYPE_WEIGHTS)[0]
                outcome = random.choice(PAST_APPOINTMENT_OUTCOMES)
                appointment = Appointment.objects.create(
                    user=user,
                    appointment_date=visit_date,
                    appointment_time=self._slot(),
                    donation_type=donation_type,
                    location=random.choice(locations),
                    status=outcome,
                    reminder_sent=True,
                )
                appointment_count += 1

                if outcome == Appointment.STATUS_COMPLETED:
                    Donation.objects.create(
                        user=user,
                        appointment=appointment,
                        donation_type=donation_type,
                        location=appointment.location,
                        donation_date=visit_date,
                        hemoglobin_level=f"{random.uniform(12.5, 17.0):.1f} g/dL",
                        blood_pressure=f"{random.randint(105, 135)}/{random.randint(65, 85)}",
                        weight_kg=user.donor_profile.weight_kg,
                        notes=faker.sentence() if random.random() < 0.2 else "",
                    )
                    donation_count += 1

            donor_services.refresh_eligibility(user.pk, today=today)

        return appointment_count, donation_count

    def _create_upcoming(self, donors, today):
        created = 0
        locations = self._locations()
        eligible_ids = set(
            DonorProfile.objects.filter(user__in=donors, is_eligible=True).values_list("user_id", flat=True)
        )
        for user in random.sample(donors, k=len(donors) // 3):
            if user.pk not in eligible_ids:
                continue
            Appointment.objects.create(
                user=user,
                appointment_date=today + timedelta(days=random.randint(1, 21)),
                appointment_time=self._slot(),
                donation_type=random.choices(DONATION_TYPES, weights=DONATION_TYPE_WEIGHTS)[0],
                location=random.choice(locations),
                status=random.choice([Appointment.STATUS_SCHEDULED, Appointment.STATUS_CONFIRMED]),
            )
            created += 1
        return created

    def _create_inventory(self, today):
        created = 0
        for group in BLOOD_GROUPS:
            for _ in range(random.randint(1, 4)):
                expiry_date = today + timedelta(days=random.randint(-5, 42))
                InventoryUnit.objects.create(
                    bloodgroup=group,
                    units=random.randint(2, 25),
                    expiry_date=expiry_date,
                    status=InventoryUnit.STATUS_EXPIRED if expiry_date < today else InventoryUnit.STATUS_AVAILABLE,
                    location=random.choice(["Main Storage", "Cold Room B"]),
                )
                created += 1
        return created
