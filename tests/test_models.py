"""Tests for iamrepl.models."""

from pathlib import Path

from iamrepl.models import (
    IamBinding,
    PlanEntry,
    ReplicationReport,
    ServiceAccount,
    account_name,
    is_project_service_account,
    parse_policy,
    target_account_id,
    target_email,
)


class TestNamingTransform:
    """Tests for the source -> target email mapping."""

    def test_target_email(self) -> None:
        """name@P -> name-hml@Q."""
        assert (
            target_email("backend@prod.iam.gserviceaccount.com", "hml")
            == "backend-hml@hml.iam.gserviceaccount.com"
        )

    def test_target_email_many_names(self) -> None:
        """Mapping holds for arbitrary names and projects."""
        for name in ["a", "svc-1", "data-pipeline-runner"]:
            for src, dst in [("p1", "p2"), ("my-prod-123", "my-hml-456")]:
                email = f"{name}@{src}.iam.gserviceaccount.com"
                assert target_email(email, dst) == f"{name}-hml@{dst}.iam.gserviceaccount.com"

    def test_member_prefix_is_stripped(self) -> None:
        """A 'serviceAccount:' prefix is tolerated."""
        assert (
            target_email("serviceAccount:backend@prod.iam.gserviceaccount.com", "hml")
            == "backend-hml@hml.iam.gserviceaccount.com"
        )

    def test_custom_suffix(self) -> None:
        """Suffix is configurable."""
        assert target_account_id("backend@prod.iam.gserviceaccount.com", "-stg") == "backend-stg"

    def test_account_name(self) -> None:
        assert account_name("worker@prod.iam.gserviceaccount.com") == "worker"


class TestIsProjectServiceAccount:
    """Tests for member filtering."""

    def test_matches_project_sa(self) -> None:
        assert is_project_service_account(
            "serviceAccount:backend@prod.iam.gserviceaccount.com", "prod"
        )

    def test_rejects_other_project(self) -> None:
        assert not is_project_service_account(
            "serviceAccount:backend@other.iam.gserviceaccount.com", "prod"
        )

    def test_rejects_project_with_same_suffix(self) -> None:
        """'myprod' is not 'prod'."""
        assert not is_project_service_account(
            "serviceAccount:backend@myprod.iam.gserviceaccount.com", "prod"
        )

    def test_rejects_users_and_groups(self) -> None:
        assert not is_project_service_account("user:a@example.com", "prod")
        assert not is_project_service_account("group:prod.iam.gserviceaccount.com", "prod")

    def test_rejects_google_managed_agents(self) -> None:
        assert not is_project_service_account(
            "serviceAccount:123@cloudbuild.gserviceaccount.com", "prod"
        )


class TestParsePolicy:
    """Tests for parse_policy."""

    def test_flattens_bindings(self) -> None:
        policy = {"bindings": [{"role": "roles/viewer", "members": ["user:a", "user:b"]}]}
        assert parse_policy(policy) == [
            IamBinding("roles/viewer", "user:a"),
            IamBinding("roles/viewer", "user:b"),
        ]

    def test_missing_keys_are_empty(self) -> None:
        """No bindings or members keys yield nothing."""
        assert parse_policy({}) == []
        assert parse_policy({"bindings": None}) == []
        assert parse_policy({"bindings": [{"role": "roles/viewer"}]}) == []


class TestServiceAccount:
    """Tests for ServiceAccount."""

    def test_from_dict(self) -> None:
        sa = ServiceAccount.from_dict(
            {"email": "a@p.iam.gserviceaccount.com", "displayName": "A", "description": "d"}
        )
        assert sa == ServiceAccount("a@p.iam.gserviceaccount.com", "A", "d")

    def test_from_dict_defaults(self) -> None:
        """Missing fields become empty strings."""
        sa = ServiceAccount.from_dict({"email": "a@p.iam.gserviceaccount.com"})
        assert sa.display_name == ""
        assert sa.description == ""


class TestPlanEntry:
    """Tests for PlanEntry."""

    def test_sorts_by_role_then_member(self) -> None:
        entries = [
            PlanEntry("roles/viewer", "serviceAccount:b"),
            PlanEntry("roles/editor", "serviceAccount:z"),
            PlanEntry("roles/viewer", "serviceAccount:a"),
        ]
        assert sorted(entries) == [
            PlanEntry("roles/editor", "serviceAccount:z"),
            PlanEntry("roles/viewer", "serviceAccount:a"),
            PlanEntry("roles/viewer", "serviceAccount:b"),
        ]

    def test_hashable_for_dedup(self) -> None:
        assert len({PlanEntry("r", "m"), PlanEntry("r", "m")}) == 1

    def test_to_line(self) -> None:
        assert PlanEntry("roles/viewer", "serviceAccount:x").to_line() == (
            "roles/viewer\tserviceAccount:x"
        )


class TestReplicationReport:
    """Tests for ReplicationReport."""

    def test_to_dict(self) -> None:
        report = ReplicationReport(
            source_project="prod",
            target_project="hml",
            apply=True,
            workdir=Path("/tmp/x"),
            accounts_existing=["a"],
            plan=[PlanEntry("roles/viewer", "serviceAccount:b")],
        )
        data = report.to_dict()
        assert data["apply"] is True
        assert data["workdir"] == "/tmp/x"
        assert data["accounts"]["existing"] == ["a"]
        assert data["plan"] == [{"role": "roles/viewer", "member": "serviceAccount:b"}]
        assert data["bindings"] == {"applied": [], "failed": []}
