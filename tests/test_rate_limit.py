import pytest

from sdba.auth.ratelimit import limiter
from tests.conftest import make_registration_payload


@pytest.fixture
def limited_client(client):
    limiter.reset()
    limiter.enabled = True
    yield client
    limiter.enabled = False
    limiter.reset()


def test_public_registration_is_rate_limited(limited_client):
    statuses = [
        limited_client.post("/api/public/register", json=make_registration_payload()).status_code
        for _ in range(11)
    ]

    assert statuses[:10] == [201] * 10
    assert statuses[10] == 429

    response = limited_client.post("/api/public/register", json=make_registration_payload())
    assert response.json()["code"] == "RATE_LIMITED"
