"""Shared pytest fixtures for iamrepl tests."""

from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from iamrepl.config import ReplicatorConfig

# --- Config Fixtures ---


@pytest.fixture
def config() -> ReplicatorConfig:
    """Config replicating from 'prod' to 'hml'."""
    return ReplicatorConfig(source_project="prod", target_project="hml")


# --- Sample Data Fixtures ---


@pytest.fixture
def source_accounts() -> list[dict[str, Any]]:
    """Service accounts as returned by `gcloud iam service-accounts list --format=json`."""
    return [
        {
            "email": "backend@prod.iam.gserviceaccount.com",
            "displayName": "Backend",
            "description": "Backend API",
        },
        {"email": "worker@prod.iam.gserviceaccount.com", "displayName": "Worker"},
        {"email": "cron@prod.iam.gserviceaccount.com"},
    ]


@pytest.fixture
def source_policy() -> dict[str, Any]:
    """Project IAM policy as returned by `gcloud projects get-iam-policy --format=json`."""
    return {
        "bindings": [
            {
                "role": "roles/owner",
                "members": [
                    "serviceAccount:backend@prod.iam.gserviceaccount.com",
                    "user:admin@example.com",
                ],
            },
            {
                "role": "roles/viewer",
                "members": [
                    "serviceAccount:backend@prod.iam.gserviceaccount.com",
                    "serviceAccount:worker@prod.iam.gserviceaccount.com",
                    "group:devs@example.com",
                    "serviceAccount:other@elsewhere.iam.gserviceaccount.com",
                ],
            },
            {
                "role": "roles/pubsub.publisher",
                "members": ["serviceAccount:worker@prod.iam.gserviceaccount.com"],
            },
            {
                "role": "roles/cloudbuild.builds.builder",
                "members": ["serviceAccount:123@cloudbuild.gserviceaccount.com"],
            },
        ],
        "etag": "BwX=",
        "version": 1,
    }


# --- Mock gcloud Fixtures ---


@pytest.fixture
def fake_gcloud(
    source_accounts: list[dict[str, Any]], source_policy: dict[str, Any]
) -> Generator[MagicMock, None, None]:
    """Patch every provider call in iamrepl.gcloud.

    The target project already holds the clone of 'worker'.

    Returns:
        MagicMock whose attributes are the patched functions
    """
    fake = MagicMock()
    fake.check_tool_installed.return_value = True
    fake.check_authentication.return_value = "admin@example.com"
    fake.check_project_access.return_value = True
    fake.list_service_accounts.return_value = source_accounts
    fake.get_iam_policy.return_value = source_policy
    fake.list_service_account_emails.return_value = ["worker-hml@hml.iam.gserviceaccount.com"]
    fake.create_service_account.return_value = None
    fake.add_iam_policy_binding.return_value = None

    names = [
        "check_tool_installed",
        "check_authentication",
        "check_project_access",
        "list_service_accounts",
        "get_iam_policy",
        "list_service_account_emails",
        "create_service_account",
        "add_iam_policy_binding",
    ]
    patchers = [patch(f"iamrepl.gcloud.{name}", getattr(fake, name)) for name in names]
    for p in patchers:
        p.start()
    try:
        yield fake
    finally:
        for p in patchers:
            p.stop()
