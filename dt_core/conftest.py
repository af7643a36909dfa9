# backend/conftest.py
import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from dt_core.common import events


@pytest.fixture
def user(db):
    User = get_user_model()
    return User.objects.create_user(
        username="testuser",
        password="testpass",
        is_active=True,
    )


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def captured_events():
    """
    Subscribe a recorder to every drug-test event for the duration of a test.
    Yields a list of (event_name, payload) tuples.
    """
    seen = []
    names = (events.DRUG_TEST_CLASSIFIED, events.DRUG_TEST_MATCHED, events.CONFIRMATION_COMPLETED)
    handlers = {}
    for name in names:
        handlers[name] = events.subscribe(name)(lambda payload, _name=name: seen.append((_name, payload)))
    yield seen
    for name, fn in handlers.items():
        events.unsubscribe(name, fn)
