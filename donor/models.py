from django.db import models
from django.contrib.auth.models import User
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone

from blood.choices import BLOOD_GROUP_CHOICES, DONATION_TYPE_CHOICES
from blood.services import eligibility


class DonorProfile(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='donor_profile')
    phone = models.CharField(max_length=20, blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=80, blank=True)
    bloodgroup = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    weight_kg = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(300)],
    )
    medical_notes = models.TextField(blank=True)

    # Cached eligibility, written only by donor.services
    last_donation_date = models.DateField(null=True, blank=True)
    last_donation_type = models.CharField(max_length=12, choices=DONATION_TYPE_CHOICES, blank=True)
    is_eligible = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def get_name(self):
        return (self.user.first_name + " " + self.user.last_name).strip() or self.user.username

    def __str__(self):
        return self.get_name

    @property
    def age_years(self):
        if not self.date_of_birth:
            return None
        today = timezone.localdate()
        years = today.year - self.date_of_birth.year
        if (today.month, today.day) < (self.date_of_birth.month, self.date_of_birth.day):
            years -= 1
        return years

    @property
    def next_eligible_donation_date(self):
        if not self.last_donation_date:
            return None
        return eligibility.next_eligible_date(self.last_donation_date, self.last_donation_type)


class EmergencyContact(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='emergency_contact')
    name = models.CharField(max_length=120)
    phone = models.CharField(max_length=20)
    relationship = models.CharField(max_length=60)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.relationship})"


class Donation(models.Model):
    STATUS_COMPLETED = 'completed'
    STATUS_DEFERRED = 'deferred'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_DEFERRED, 'Deferred'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='donations')
    appointment = models.OneToOneField(
        'appointment.Appointment',
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='donation',
    )
    donation_type = models.CharField(max_length=12, choices=DONATION_TYPE_CHOICES, default='blood')
    location = models.CharField(max_length=120)
    donation_date = models.DateField()
    hemoglobin_level = models.CharField(max_length=20, blank=True)
    blood_pressure = models.CharField(max_length=20, blank=True)
    weight_kg = models.PositiveSmallIntegerField(null=True, blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_COMPLETED)
    processed_by = models.ForeignKey(
        User,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='processed_donations',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user.username} - {self.donation_type} - {self.donation_date} ({self.status})"

    class Meta:
        ordering = ['-donation_date', '-id']  # Most recent first
        verbose_name = "Donation"
        verbose_name_plural = "Donations"
