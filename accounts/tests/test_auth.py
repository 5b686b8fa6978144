import pytest
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

pytestmark = pytest.mark.django_db


def test_token_carries_role():
    get_user_model().objects.create_user(username='doc1', password='P@ssw0rd1', role='doctor')
    client = APIClient()
    r = client.post(reverse('accounts:token_obtain_pair'), {'username': 'doc1', 'password': 'P@ssw0rd1'}, format='json')
    assert r.status_code == 200
    token = AccessToken(r.data['access'])
    assert token['role'] == 'doctor'
    assert token['username'] == 'doc1'


def test_jwt_gives_access_to_blood_bank_api():
    get_user_model().objects.create_user(username='doc1', password='P@ssw0rd1', role='doctor')
    client = APIClient()
    r = client.post(reverse('accounts:token_obtain_pair'), {'username': 'doc1', 'password': 'P@ssw0rd1'}, format='json')
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['access']}")
    assert client.get('/api/stats/').status_code == 200


def test_non_blood_bank_roles_are_denied():
    user = get_user_model().objects.create_user(username='pharm1', password='P@ssw0rd1', role='pharmacist')
    assert not user.is_blood_bank_staff
    client = APIClient()
    client.force_authenticate(user=user)
    r = client.get('/api/inventory/')
    assert r.status_code == 403
    assert r.data['ok'] is False
    assert 'Required roles' in r.data['error']['message']


def test_anonymous_is_rejected():
    r = APIClient().get('/api/donors/')
    assert r.status_code == 401
