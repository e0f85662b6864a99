import asyncio

import pytest

from sdba.models import FeatureFlag
from sdba.services.feature_flags import audit_action
from tests.conftest import ADMIN_USER, AsyncSessionLocal


async def _seed_flags():
    async with AsyncSessionLocal() as session:
        session.add_all(
            [
                FeatureFlag(flag_key="practice_booking", flag_name="Practice booking"),
                FeatureFlag(flag_key="export_v2", flag_name="Export v2", enabled=True, rollout_percentage=25),
            ]
        )
        await session.commit()


@pytest.fixture
def flags(setup_database):
    asyncio.run(_seed_flags())


def test_list_flags_sorted_by_key(admin_client, flags):
    response = admin_client.get("/api/admin/feature-flags")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert [flag["flag_key"] for flag in body["flags"]] == ["export_v2", "practice_booking"]


def test_get_single_flag(admin_client, flags):
    response = admin_client.get("/api/admin/feature-flags", params={"flagKey": "export_v2"})

    assert response.status_code == 200
    flag = response.json()["flag"]
    assert flag["enabled"] is True
    assert flag["rollout_percentage"] == 25
    assert flag["metadata"] == {}
    assert "audit" not in response.json()


def test_unknown_flag_is_not_found(admin_client, flags):
    assert admin_client.get("/api/admin/feature-flags", params={"flagKey": "nope"}).status_code == 404
    response = admin_client.patch("/api/admin/feature-flags", json={"flagKey": "nope", "enabled": True})
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_update_flag_records_audit(admin_client, flags):
    response = admin_client.patch(
        "/api/admin/feature-flags",
        json={
            "flagKey": "practice_booking",
            "enabled": True,
            "enabled_for_emails": ["ops@example.com"],
            "metadata": {"owner": "ops"},
        },
    )

    assert response.status_code == 200
    flag = response.json()["flag"]
    assert flag["enabled"] is True
    assert flag["rollout_percentage"] == 0
    assert flag["enabled_for_emails"] == ["ops@example.com"]
    assert flag["metadata"] == {"owner": "ops"}
    assert flag["updated_by"] == ADMIN_USER["id"]

    audit = admin_client.get(
        "/api/admin/feature-flags", params={"flagKey": "practice_booking", "includeAudit": "true"}
    ).json()["audit"]
    assert len(audit) == 1
    assert audit[0]["action"] == "enabled"
    assert audit[0]["old_value"]["enabled"] is False
    assert audit[0]["new_value"]["enabled"] is True
    assert audit[0]["changed_by"] == ADMIN_USER["id"]


def test_update_leaves_unsent_fields_alone(admin_client, flags):
    response = admin_client.patch(
        "/api/admin/feature-flags", json={"flagKey": "export_v2", "rollout_percentage": 50}
    )

    flag = response.json()["flag"]
    assert flag["enabled"] is True
    assert flag["rollout_percentage"] == 50


@pytest.mark.parametrize(
    "body",
    [
        {"flagKey": "export_v2", "rollout_percentage": 101},
        {"flagKey": "export_v2", "rollout_percentage": -1},
        {"flagKey": "export_v2", "enabled_for_emails": ["bad-address"]},
        {"flagKey": "export_v2", "enabled_for_users": ["not-a-uuid"]},
        {"enabled": True},
    ],
)
def test_update_validation(admin_client, flags, body):
    assert admin_client.patch("/api/admin/feature-flags", json=body).status_code == 422


@pytest.mark.parametrize(
    "old, new, expected",
    [
        ({"enabled": False, "rollout_percentage": 0}, {"enabled": True, "rollout_percentage": 0}, "enabled"),
        ({"enabled": True, "rollout_percentage": 0}, {"enabled": False, "rollout_percentage": 0}, "disabled"),
        ({"enabled": True, "rollout_percentage": 0}, {"enabled": True, "rollout_percentage": 10}, "rollout_changed"),
        ({"enabled": True, "rollout_percentage": 10}, {"enabled": True, "rollout_percentage": 10}, "updated"),
    ],
)
def test_audit_action(old, new, expected):
    assert audit_action(old, new) == expected
