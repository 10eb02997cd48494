import pytest
from django.urls import reverse
from rest_framework import status


@pytest.mark.django_db
class TestGroupList:
    """Tests for GET /api/ledger/groups/"""

    def test_lists_all_groups(self, operator_client, fund, volunteer_group):
        response = operator_client.get(reverse('ledger:group-list'))

        assert response.status_code == status.HTTP_200_OK
        names = [g['name'] for g in response.data['data']]
        assert names == ['Lev Shulamis', 'Tzedaka']

    def test_filter_by_type(self, operator_client, fund, volunteer_group):
        response = operator_client.get(reverse('ledger:group-list'), {'type': 'VOLUNTEER'})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['data']) == 1
        assert response.data['data'][0]['group_type'] == 'VOLUNTEER'

    def test_invalid_type(self, operator_client, fund):
        response = operator_client.get(reverse('ledger:group-list'), {'type': 'BOGUS'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_requires_operator(self, regular_client, fund):
        response = regular_client.get(reverse('ledger:group-list'))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unauthenticated(self, api_client):
        response = api_client.get(reverse('ledger:group-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestDonorList:
    """Tests for GET /api/ledger/donors/"""

    def test_paginated_directory(self, operator_client, donor, other_donor):
        response = operator_client.get(reverse('ledger:donor-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 2
        assert [d['name'] for d in response.data['results']] == ['Chani', 'Rivka']

    def test_search(self, operator_client, donor, other_donor):
        response = operator_client.get(reverse('ledger:donor-list'), {'search': 'riv'})

        assert response.data['count'] == 1
        assert response.data['results'][0]['class_name'] == 'Class 4B'

    def test_requires_operator(self, regular_client):
        response = regular_client.get(reverse('ledger:donor-list'))

        assert response.status_code == status.HTTP_403_FORBIDDEN
