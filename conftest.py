"""Fixtures shared by every app's test suite."""

import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, OperatorRole
from apps.ledger.models import Donor, Group, GroupType
from apps.tokens.models import Token, TokenKind


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def operator(db):
    """Create and return an ADMIN operator allowed to scan and issue codes."""
    return User.objects.create_user(
        email='operator@example.com',
        password='TestPass123!',
        display_name='Scanner Operator',
        role=OperatorRole.ADMIN,
    )


@pytest.fixture
def regular_user(db):
    """Create and return a staff account without scanner access."""
    return User.objects.create_user(
        email='regular@example.com',
        password='TestPass123!',
        display_name='Regular User',
    )


@pytest.fixture
def operator_client(api_client, operator):
    """Return an API client authenticated as the operator using JWT."""
    refresh = RefreshToken.for_user(operator)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def regular_client(regular_user):
    """Return an API client authenticated as a non-admin user."""
    client = APIClient()
    refresh = RefreshToken.for_user(regular_user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


# =============================================================================
# Ledger fixtures
# =============================================================================

@pytest.fixture
def fund(db):
    """The general charity fund."""
    return Group.objects.create(name='Tzedaka', group_type=GroupType.FUND)


@pytest.fixture
def other_fund(db):
    return Group.objects.create(name='Library Fund', group_type=GroupType.FUND)


@pytest.fixture
def volunteer_group(db):
    return Group.objects.create(name='Lev Shulamis', group_type=GroupType.VOLUNTEER)


@pytest.fixture
def donor(db):
    return Donor.objects.create(
        name='Chani',
        class_name='Class 3A',
        grade='Grade 3',
        cohort='2025',
    )


@pytest.fixture
def other_donor(db):
    return Donor.objects.create(
        name='Rivka',
        class_name='Class 4B',
        grade='Grade 4',
        cohort='2025',
    )


# =============================================================================
# Token fixtures
# =============================================================================

@pytest.fixture
def identity_token(donor):
    return Token.objects.create(
        value='chani-identity-0001',
        kind=TokenKind.IDENTITY,
        donor=donor,
    )


@pytest.fixture
def other_identity_token(other_donor):
    return Token.objects.create(
        value='rivka-identity-0002',
        kind=TokenKind.IDENTITY,
        donor=other_donor,
    )


@pytest.fixture
def preset_token(fund):
    """Five to Tzedaka."""
    return Token.objects.create(
        value='tzedaka-five-0003',
        kind=TokenKind.PRESET,
        fund_group=fund,
        amount=Decimal('5.00'),
        label='Tzedaka $5',
    )


@pytest.fixture
def volunteer_token(volunteer_group):
    return Token.objects.create(
        value='lev-shulamis-0004',
        kind=TokenKind.PRESET,
        fund_group=volunteer_group,
        label='Lev Shulamis',
    )
