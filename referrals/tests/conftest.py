import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from referrals.models import Referral, User


@pytest.fixture(autouse=True)
def _fresh_state():
    cache.clear()
    yield
    cache.clear()


def make_user(username, role=User.ROLE_CLINICIAN, password='P@ssw0rd-123'):
    return User.objects.create_user(
        username=username, password=password, role=role,
        email=f'{username}@example.com', name=username.title(),
    )


def make_referral(referrer, **fields):
    fields.setdefault('candidate_name', 'Jane Doe')
    fields.setdefault('candidate_email', 'jane@example.com')
    fields.setdefault('position', 'Registered Nurse')
    return Referral.objects.create(referrer=referrer, **fields)


@pytest.fixture
def clinician(db):
    return make_user('clinician1', User.ROLE_CLINICIAN)


@pytest.fixture
def recruiter(db):
    return make_user('recruiter1', User.ROLE_RECRUITER)


@pytest.fixture
def leader(db):
    return make_user('leadership1', User.ROLE_LEADERSHIP)


def client_for(user=None):
    client = APIClient()
    if user is not None:
        client.force_authenticate(user=user)
    return client
