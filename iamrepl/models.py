"""Data models for iamrepl."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

SA_DOMAIN = "iam.gserviceaccount.com"
MEMBER_PREFIX = "serviceAccount:"
OWNER_ROLE = "roles/owner"


@dataclass(frozen=True)
class ServiceAccount:
    """Service account as listed in the source project."""

    email: str
    display_name: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ServiceAccount":
        """Deserialize from `gcloud iam service-accounts list --format=json`."""
        return cls(
            email=data.get("email") or "",
            display_name=data.get("displayName") or "",
            description=data.get("description") or "",
        )


@dataclass(frozen=True)
class IamBinding:
    """A single role/member pair from a project IAM policy."""

    role: str
    member: str


@dataclass(frozen=True, order=True)
class PlanEntry:
    """A binding to apply on the target project. Sorts by (role, member)."""

    role: str
    member: str

    def to_line(self) -> str:
        return f"{self.role}\t{self.member}"


@dataclass
class ExportResult:
    """Everything fetched from the provider for one run."""

    accounts: list[ServiceAccount] = field(default_factory=list)
    bindings: list[IamBinding] = field(default_factory=list)
    existing_emails: set[str] = field(default_factory=set)


@dataclass
class ReplicationReport:
    """Outcome of a replication run."""

    source_project: str
    target_project: str
    apply: bool
    workdir: Path | None = None
    accounts_existing: list[str] = field(default_factory=list)
    accounts_missing: list[str] = field(default_factory=list)
    accounts_created: list[str] = field(default_factory=list)
    accounts_failed: list[str] = field(default_factory=list)
    plan: list[PlanEntry] = field(default_factory=list)
    bindings_applied: list[PlanEntry] = field(default_factory=list)
    bindings_failed: list[PlanEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "source_project": self.source_project,
            "target_project": self.target_project,
            "apply": self.apply,
            "workdir": str(self.workdir) if self.workdir else None,
            "accounts": {
                "existing": self.accounts_existing,
                "missing": self.accounts_missing,
                "created": self.accounts_created,
                "failed": self.accounts_failed,
            },
            "plan": [{"role": e.role, "member": e.member} for e in self.plan],
            "bindings": {
                "applied": [{"role": e.role, "member": e.member} for e in self.bindings_applied],
                "failed": [{"role": e.role, "member": e.member} for e in self.bindings_failed],
            },
        }


def parse_policy(policy: dict[str, Any]) -> list[IamBinding]:
    """Flatten a project IAM policy into role/member pairs.

    Missing `bindings` or `members` keys are treated as empty.
    """
    bindings = []
    for binding in policy.get("bindings") or []:
        role = binding.get("role", "")
        for member in binding.get("members") or []:
            bindings.append(IamBinding(role=role, member=member))
    return bindings


def account_name(email: str) -> str:
    """Return the part of a service account email before the '@'.

    A leading 'serviceAccount:' member prefix is tolerated.
    """
    email = email.removeprefix(MEMBER_PREFIX)
    return email.split("@", 1)[0]


def target_account_id(email: str, suffix: str = "-hml") -> str:
    """Account id of the clone: 'backend@prod...' -> 'backend-hml'."""
    return f"{account_name(email)}{suffix}"


def target_email(email: str, target_project: str, suffix: str = "-hml") -> str:
    """Map a source service account email to its clone in the target project.

    Example:
        >>> target_email("backend@prod.iam.gserviceaccount.com", "hml")
        'backend-hml@hml.iam.gserviceaccount.com'
    """
    return f"{target_account_id(email, suffix)}@{target_project}.{SA_DOMAIN}"


def is_project_service_account(member: str, project_id: str) -> bool:
    """True if the member is a service account owned by the given project."""
    return member.startswith(MEMBER_PREFIX) and member.endswith(f"@{project_id}.{SA_DOMAIN}")
