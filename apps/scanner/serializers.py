from rest_framework import serializers

from apps.ledger.serializers import DonorSerializer, GroupSerializer
from apps.tokens.models import TokenKind

from .services import ScanMode


# =============================================================================
# Output Serializers
# =============================================================================

class ResolvedTokenSerializer(serializers.Serializer):
    """What a scan resolved to, before anything is recorded."""

    kind = serializers.CharField()
    value = serializers.CharField(source='token.value')
    donor = DonorSerializer(required=False, allow_null=True)
    fund_group = GroupSerializer(required=False, allow_null=True)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    label = serializers.CharField(required=False, allow_blank=True)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        # Only the fields of the token's own kind are meaningful
        if instance.kind == TokenKind.IDENTITY:
            for key in ('fund_group', 'amount', 'label'):
                data.pop(key, None)
        else:
            data.pop('donor', None)
        return data


class DonationSummarySerializer(serializers.Serializer):
    donation_id = serializers.UUIDField()
    donor_name = serializers.CharField()
    group_name = serializers.CharField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)


class ParticipationSummarySerializer(serializers.Serializer):
    participation_id = serializers.UUIDField()
    donor_name = serializers.CharField()
    group_name = serializers.CharField()
    date = serializers.DateField()


class SessionSnapshotSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    mode = serializers.CharField()
    step = serializers.CharField(allow_null=True)
    pending_donor = DonorSerializer(allow_null=True)
    preset_group = GroupSerializer(allow_null=True)
    preset_amount = serializers.DecimalField(max_digits=10, decimal_places=2, allow_null=True)
    created_at = serializers.DateTimeField()


class OutcomeSerializer(serializers.Serializer):
    status = serializers.CharField()
    message = serializers.CharField()
    error_code = serializers.CharField(allow_blank=True)
    donor = DonorSerializer(allow_null=True)
    donation = DonationSummarySerializer(allow_null=True)
    participation = ParticipationSummarySerializer(allow_null=True)
    session = SessionSnapshotSerializer()


# =============================================================================
# Input Serializers
# =============================================================================

class ValidateScanSerializer(serializers.Serializer):
    raw_value = serializers.CharField(allow_blank=True, trim_whitespace=False)
    expected_kind = serializers.ChoiceField(choices=TokenKind.choices, required=False, allow_null=True)


class DonationCreateSerializer(serializers.Serializer):
    """``donor_ref`` is a donor id or an IDENTITY code (bare value or redeem URL)."""

    donor_ref = serializers.CharField()
    group_id = serializers.UUIDField()
    amount = serializers.CharField()


class ParticipationCreateSerializer(serializers.Serializer):
    donor_ref = serializers.CharField()
    group_id = serializers.UUIDField()


class PresetRedemptionSerializer(serializers.Serializer):
    preset_value = serializers.CharField()
    donor_ref = serializers.CharField()


class SessionOpenSerializer(serializers.Serializer):
    """``group_id`` and ``amount`` apply to PRESET and PHYSICAL_PRESET only."""

    mode = serializers.ChoiceField(choices=ScanMode.choices)
    group_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    amount = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)


class ScanSerializer(serializers.Serializer):
    raw_value = serializers.CharField(allow_blank=True, trim_whitespace=False)


class SubmitSerializer(serializers.Serializer):
    amount = serializers.CharField()
    group_id = serializers.UUIDField()
