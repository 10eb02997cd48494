from rest_framework import serializers
from .models import Donor, Group, Donation, Participation, GroupType


class DonorSerializer(serializers.ModelSerializer):
    """Donor as displayed to operators."""

    class Meta:
        model = Donor
        fields = ['id', 'name', 'class_name', 'grade', 'cohort', 'created_at']
        read_only_fields = fields


class GroupSerializer(serializers.ModelSerializer):

    class Meta:
        model = Group
        fields = ['id', 'name', 'group_type', 'description']
        read_only_fields = fields


class DonationSerializer(serializers.ModelSerializer):

    donor = DonorSerializer(read_only=True)
    group = GroupSerializer(read_only=True)

    class Meta:
        model = Donation
        fields = ['id', 'donor', 'group', 'amount', 'source', 'created_at']
        read_only_fields = fields


class ParticipationSerializer(serializers.ModelSerializer):

    donor = DonorSerializer(read_only=True)
    group = GroupSerializer(read_only=True)

    class Meta:
        model = Participation
        fields = ['id', 'donor', 'group', 'date', 'created_at']
        read_only_fields = fields


# =============================================================================
# Input Serializers
# =============================================================================

class GroupFilterSerializer(serializers.Serializer):
    """
    Query Parameters:
        type (str): FUND or VOLUNTEER
    """

    type = serializers.ChoiceField(choices=GroupType.choices, required=False)


class DonorFilterSerializer(serializers.Serializer):
    """
    Query Parameters:
        search (str): Matches name or class
        grade (str): Exact grade
    """

    search = serializers.CharField(max_length=200, required=False)
    grade = serializers.CharField(max_length=50, required=False)
