from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union
import uuid

from django.conf import settings
from django.db import models

from apps.ledger.models import Donor, Group


class TokenKind(models.TextChoices):
    IDENTITY = 'IDENTITY', 'Identity'
    PRESET = 'PRESET', 'Preset'


@dataclass(frozen=True)
class IdentityBinding:
    """Payload of an IDENTITY token: the donor it is permanently bound to."""
    donor_id: uuid.UUID


@dataclass(frozen=True)
class PresetBinding:
    """Payload of a PRESET token. Amount is None only for volunteer groups."""
    fund_group_id: uuid.UUID
    amount: Optional[Decimal]
    label: str


TokenBinding = Union[IdentityBinding, PresetBinding]


class Token(models.Model):
    """
    A scannable code.

    IDENTITY tokens reference a donor and nothing else; PRESET tokens
    reference a group (plus amount and label) and never a donor. The check
    constraint below keeps the two payloads mutually exclusive. Bindings
    never change after issuance; only ``is_active`` and ``image_path`` are
    updated.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    value = models.CharField(max_length=64, unique=True)
    kind = models.CharField(max_length=20, choices=TokenKind.choices)
    is_active = models.BooleanField(default=True)

    # IDENTITY payload
    donor = models.ForeignKey(
        Donor,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='tokens'
    )

    # PRESET payload
    fund_group = models.ForeignKey(
        Group,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='preset_tokens'
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    label = models.CharField(max_length=200, blank=True)

    # Relative to MEDIA_ROOT; empty when no image was rendered
    image_path = models.CharField(max_length=500, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='issued_tokens'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'tokens'
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(
                        kind=TokenKind.IDENTITY,
                        donor__isnull=False,
                        fund_group__isnull=True,
                        amount__isnull=True,
                    )
                    | models.Q(
                        kind=TokenKind.PRESET,
                        donor__isnull=True,
                        fund_group__isnull=False,
                    )
                ),
                name='token_kind_payload',
            ),
            models.CheckConstraint(
                condition=models.Q(amount__isnull=True) | models.Q(amount__gt=0),
                name='token_amount_positive',
            ),
        ]
        indexes = [
            models.Index(fields=['kind', 'is_active'], name='tokens_kind_active_idx'),
            models.Index(fields=['created_at'], name='tokens_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.kind} {self.value}"

    @property
    def is_identity(self):
        return self.kind == TokenKind.IDENTITY

    @property
    def is_preset(self):
        return self.kind == TokenKind.PRESET

    def as_binding(self) -> TokenBinding:
        if self.kind == TokenKind.IDENTITY:
            return IdentityBinding(donor_id=self.donor_id)
        return PresetBinding(
            fund_group_id=self.fund_group_id,
            amount=self.amount,
            label=self.label,
        )

    def display_name(self):
        """Name used for image filenames and listings."""
        if self.kind == TokenKind.IDENTITY:
            return self.donor.name
        return self.label or self.fund_group.name


class RetiredTokenValue(models.Model):
    """Value of a permanently deleted token. Never handed out again."""

    value = models.CharField(max_length=64, primary_key=True)
    kind = models.CharField(max_length=20, choices=TokenKind.choices)
    retired_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'retired_token_values'
        ordering = ['-retired_at']

    def __str__(self):
        return self.value
