from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from decimal import Decimal
import uuid


class GroupType(models.TextChoices):
    FUND = 'FUND', 'Fund'
    VOLUNTEER = 'VOLUNTEER', 'Volunteer'


class DonationSource(models.TextChoices):
    SCAN = 'SCAN', 'Scan'
    MANUAL = 'MANUAL', 'Manual'


class Donor(models.Model):
    """A person who can give or volunteer."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    class_name = models.CharField(max_length=100)
    grade = models.CharField(max_length=50)
    cohort = models.CharField(max_length=20, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'donors'
        constraints = [
            models.UniqueConstraint(
                fields=['name', 'class_name', 'grade', 'cohort'],
                name='unique_donor_identity',
            ),
        ]
        indexes = [
            models.Index(fields=['grade', 'class_name'], name='donors_grade_class_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.class_name}, {self.grade})"

    def has_ledger_history(self):
        return self.donations.exists() or self.participations.exists()


class Group(models.Model):
    """A fund that accepts donations or a volunteer group that accepts participation."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, unique=True)
    group_type = models.CharField(max_length=20, choices=GroupType.choices, default=GroupType.FUND)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'ledger_groups'
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def is_volunteer(self):
        return self.group_type == GroupType.VOLUNTEER


class Donation(models.Model):
    """Immutable ledger row. Created only by the redemption services."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    donor = models.ForeignKey(Donor, on_delete=models.PROTECT, related_name='donations')
    group = models.ForeignKey(Group, on_delete=models.PROTECT, related_name='donations')
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    source = models.CharField(max_length=20, choices=DonationSource.choices, default=DonationSource.SCAN)
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recorded_donations'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'donations'
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name='donation_amount_positive',
            ),
        ]
        indexes = [
            models.Index(fields=['donor', 'created_at'], name='donations_donor_idx'),
            models.Index(fields=['group', 'created_at'], name='donations_group_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.donor.name} -> {self.group.name}: {self.amount}"


class Participation(models.Model):
    """A donor volunteering for a volunteer group; at most one row per (donor, group)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    donor = models.ForeignKey(Donor, on_delete=models.PROTECT, related_name='participations')
    group = models.ForeignKey(Group, on_delete=models.PROTECT, related_name='participations')
    date = models.DateField(default=timezone.localdate)
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recorded_participations'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'participations'
        constraints = [
            models.UniqueConstraint(
                fields=['donor', 'group'],
                name='unique_participation_per_group',
            ),
        ]
        ordering = ['-date', '-created_at']

    def __str__(self):
        return f"{self.donor.name} volunteered for {self.group.name}"
