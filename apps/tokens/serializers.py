from rest_framework import serializers

from apps.ledger.serializers import DonorSerializer, GroupSerializer

from .models import Token, TokenKind
from .services import build_redeem_url, image_url


class TokenSerializer(serializers.ModelSerializer):
    """Token as listed on the QR management screens."""

    donor = DonorSerializer(read_only=True)
    fund_group = GroupSerializer(read_only=True)
    redeem_url = serializers.SerializerMethodField()
    image_url = serializers.SerializerMethodField()

    class Meta:
        model = Token
        fields = [
            'value',
            'kind',
            'is_active',
            'donor',
            'fund_group',
            'amount',
            'label',
            'redeem_url',
            'image_url',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'value',
            'kind',
            'is_active',
            'amount',
            'label',
            'created_at',
            'updated_at',
        ]

    def get_redeem_url(self, obj) -> str:
        return build_redeem_url(value=obj.value, kind=obj.kind)

    def get_image_url(self, obj) -> str:
        return image_url(obj)


class IssuedTokenSerializer(serializers.Serializer):
    value = serializers.CharField()
    kind = serializers.CharField()
    redeem_url = serializers.CharField()
    image_ref = serializers.CharField(allow_blank=True)
    token = TokenSerializer()


def serialize_issued(issued):
    return IssuedTokenSerializer({
        'value': issued.value,
        'kind': issued.token.kind,
        'redeem_url': issued.redeem_url,
        'image_ref': issued.image_ref,
        'token': issued.token,
    }).data


# =============================================================================
# Input Serializers
# =============================================================================

class IdentityTokenCreateSerializer(serializers.Serializer):
    """Donor details; blank values are reported by the issuance service."""

    name = serializers.CharField(max_length=200, allow_blank=True)
    class_name = serializers.CharField(max_length=100, allow_blank=True)
    grade = serializers.CharField(max_length=50, allow_blank=True)
    cohort = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')


class PresetTokenCreateSerializer(serializers.Serializer):
    group_id = serializers.UUIDField()
    # Parsed by the ledger amount rules so errors carry the invalid_amount code
    amount = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    label = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')


class TokenActiveSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


class TokenFilterSerializer(serializers.Serializer):
    """
    Query Parameters:
        kind (str): IDENTITY or PRESET
        is_active (bool): Filter by active flag
        search (str): Donor, group or label contains
    """

    kind = serializers.ChoiceField(choices=TokenKind.choices, required=False)
    is_active = serializers.BooleanField(allow_null=True, default=None)
    search = serializers.CharField(max_length=200, required=False)


class BulkIssuanceSerializer(serializers.Serializer):
    """Either a CSV ``file`` upload or a JSON list of ``rows``."""

    kind = serializers.ChoiceField(choices=TokenKind.choices)
    file = serializers.FileField(required=False)
    rows = serializers.ListField(
        child=serializers.DictField(child=serializers.CharField(allow_blank=True)),
        required=False,
        max_length=1000,
    )

    def validate(self, attrs):
        if bool(attrs.get('file')) == bool(attrs.get('rows')):
            raise serializers.ValidationError("Provide either a CSV file or a list of rows")
        return attrs


class BulkRowResultSerializer(serializers.Serializer):
    row = serializers.IntegerField()
    ok = serializers.BooleanField()
    value = serializers.CharField(allow_blank=True)
    redeem_url = serializers.CharField(allow_blank=True)
    image_ref = serializers.CharField(allow_blank=True)
    error_code = serializers.CharField(allow_blank=True)
    error = serializers.CharField(allow_blank=True)


class BulkIssuanceResultSerializer(serializers.Serializer):
    kind = serializers.CharField()
    issued = serializers.IntegerField()
    failed = serializers.IntegerField()
    rows = BulkRowResultSerializer(many=True)


class TokenDeletionSerializer(serializers.Serializer):
    value = serializers.CharField()
    kind = serializers.CharField()
    donor_deleted = serializers.BooleanField()
    donor_kept_reason = serializers.CharField(allow_blank=True)
