import pytest
from decimal import Decimal
from apps.ledger.models import Donor, GroupType
from apps.ledger.services import (
    parse_amount,
    find_or_create_donor,
    get_donor,
    list_donors,
    get_group,
    get_group_by_name,
    list_groups,
    InvalidAmountError,
    InvalidDonorDetailsError,
    DonorNotFoundError,
    GroupNotFoundError,
)


# =============================================================================
# Amount Parsing Tests
# =============================================================================

class TestParseAmount:

    @pytest.mark.parametrize('raw, expected', [
        ('5', Decimal('5.00')),
        (5, Decimal('5.00')),
        ('12.5', Decimal('12.50')),
        (' 0.01 ', Decimal('0.01')),
        (5.1, Decimal('5.10')),
        (Decimal('18.00'), Decimal('18.00')),
    ])
    def test_valid_amounts(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize('raw', [
        None, '', 'abc', '0', '-3', 0, '1.005', 'NaN', 'Infinity', True, '100000000',
    ])
    def test_invalid_amounts(self, raw):
        with pytest.raises(InvalidAmountError):
            parse_amount(raw)

    def test_error_code(self):
        with pytest.raises(InvalidAmountError) as exc_info:
            parse_amount('-1')
        assert exc_info.value.code == 'invalid_amount'


# =============================================================================
# Donor Directory Tests
# =============================================================================

@pytest.mark.django_db
class TestFindOrCreateDonor:

    def test_creates_new_donor(self):
        donor = find_or_create_donor(
            name='Chani', class_name='Class 3A', grade='Grade 3', cohort='2025'
        )

        assert donor.name == 'Chani'
        assert Donor.objects.count() == 1

    def test_reuses_existing_donor(self, donor):
        found = find_or_create_donor(
            name='Chani', class_name='Class 3A', grade='Grade 3', cohort='2025'
        )

        assert found.id == donor.id
        assert Donor.objects.count() == 1

    def test_collapses_whitespace_before_matching(self, donor):
        found = find_or_create_donor(
            name='  Chani ', class_name='Class  3A', grade='Grade 3 ', cohort=' 2025'
        )

        assert found.id == donor.id

    def test_different_cohort_is_a_different_donor(self, donor):
        found = find_or_create_donor(
            name='Chani', class_name='Class 3A', grade='Grade 3', cohort='2026'
        )

        assert found.id != donor.id
        assert Donor.objects.count() == 2

    def test_cohort_is_optional(self):
        donor = find_or_create_donor(name='Dina', class_name='Class 1B', grade='Grade 1')

        assert donor.cohort == ''

    def test_missing_fields_rejected(self):
        with pytest.raises(InvalidDonorDetailsError) as exc_info:
            find_or_create_donor(name=' ', class_name='', grade='Grade 3')

        assert 'name' in str(exc_info.value)
        assert 'class' in str(exc_info.value)
        assert Donor.objects.count() == 0


@pytest.mark.django_db
class TestDonorLookup:

    def test_get_donor(self, donor):
        assert get_donor(donor_id=donor.id) == donor

    def test_get_donor_malformed_id(self):
        with pytest.raises(DonorNotFoundError):
            get_donor(donor_id='not-a-uuid')

    def test_list_donors_search(self, donor, other_donor):
        assert list(list_donors(search='chan')) == [donor]
        assert list(list_donors(search='4B')) == [other_donor]

    def test_list_donors_grade(self, donor, other_donor):
        assert list(list_donors(grade='Grade 3')) == [donor]


# =============================================================================
# Group Directory Tests
# =============================================================================

@pytest.mark.django_db
class TestGroupDirectory:

    def test_get_group(self, fund):
        assert get_group(group_id=fund.id) == fund

    def test_get_group_missing(self):
        with pytest.raises(GroupNotFoundError):
            get_group(group_id='00000000-0000-0000-0000-000000000000')

    def test_get_group_malformed(self):
        with pytest.raises(GroupNotFoundError):
            get_group(group_id='tzedaka')

    def test_get_group_by_name_is_case_insensitive(self, volunteer_group):
        assert get_group_by_name(name='lev shulamis') == volunteer_group

    def test_get_group_by_name_missing(self, fund):
        with pytest.raises(GroupNotFoundError):
            get_group_by_name(name='Nonexistent')

    def test_list_groups_by_type(self, fund, other_fund, volunteer_group):
        assert list(list_groups(group_type=GroupType.VOLUNTEER)) == [volunteer_group]
        assert list(list_groups(group_type=GroupType.FUND)) == [other_fund, fund]
        assert len(list_groups()) == 3
