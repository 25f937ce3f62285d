# this_file: iamrepl/replicator.py

"""Replicate service accounts and their project bindings to the HML project."""

import tempfile
from collections.abc import Iterable
from pathlib import Path

from iamrepl import gcloud
from iamrepl.config import ReplicatorConfig
from iamrepl.exporter import check_environment, export_source
from iamrepl.gcloud import GcloudError
from iamrepl.logging import logger
from iamrepl.models import (
    MEMBER_PREFIX,
    OWNER_ROLE,
    IamBinding,
    PlanEntry,
    ReplicationReport,
    ServiceAccount,
    account_name,
    is_project_service_account,
    target_account_id,
    target_email,
)

PLAN_FILE = "project-sa-bindings-plan.txt"


def clone_description(account: ServiceAccount) -> str:
    """Description for the cloned account."""
    base = account.description or f"Cloned from {account_name(account.email)}"
    return f"{base} (HML clone)"


def replicate_accounts(
    accounts: Iterable[ServiceAccount],
    existing_emails: set[str],
    config: ReplicatorConfig,
    report: ReplicationReport,
) -> None:
    """Create every source account that has no clone in the target project yet.

    Creation happens only when report.apply is set. Failures are logged and
    recorded in the report; the remaining accounts are still processed.
    """
    logger.info(
        "Ensuring {} service accounts exist (with {} suffix)...",
        config.target_project,
        config.suffix,
    )
    for account in accounts:
        if not account.email:
            continue
        email = target_email(account.email, config.target_project, config.suffix)
        if email in existing_emails:
            logger.info("   - SA exists in target: {}", email)
            report.accounts_existing.append(email)
            continue

        logger.info("   - Creating SA in target: {}", email)
        report.accounts_missing.append(email)
        if not report.apply:
            continue

        account_id = target_account_id(account.email, config.suffix)
        try:
            gcloud.create_service_account(
                config.target_project,
                account_id,
                account.display_name or account_id,
                clone_description(account),
            )
            report.accounts_created.append(email)
        except GcloudError as e:
            logger.warning("Could not create {} (continuing): {}", email, e)
            report.accounts_failed.append(email)


def build_binding_plan(
    bindings: Iterable[IamBinding], config: ReplicatorConfig
) -> list[PlanEntry]:
    """Map source-project service account bindings onto their target clones.

    Skipped roles (always including roles/owner) and members that are not
    service accounts of the source project are dropped. The result is
    deduplicated and sorted by (role, member).
    """
    skip = {OWNER_ROLE, *config.skip_roles}
    plan: set[PlanEntry] = set()
    for binding in bindings:
        if binding.role in skip:
            continue
        if not is_project_service_account(binding.member, config.source_project):
            continue
        member = MEMBER_PREFIX + target_email(binding.member, config.target_project, config.suffix)
        plan.add(PlanEntry(role=binding.role, member=member))
    return sorted(plan)


def write_plan(plan: list[PlanEntry], path: Path) -> None:
    """Write the plan as tab-separated role/member lines."""
    path.write_text("".join(f"{entry.to_line()}\n" for entry in plan))


def apply_bindings(
    plan: Iterable[PlanEntry], config: ReplicatorConfig, report: ReplicationReport
) -> None:
    """Add each planned binding to the target project (apply mode only)."""
    entries = list(plan)
    if not entries:
        logger.info("   - No service-account-based bindings found to replicate (plan is empty).")
        return

    for entry in entries:
        logger.info("   - Bind {} -> {} (project {})", entry.member, entry.role, config.target_project)
        if not report.apply:
            continue
        try:
            gcloud.add_iam_policy_binding(config.target_project, entry.member, entry.role)
            report.bindings_applied.append(entry)
        except GcloudError as e:
            logger.warning("Failed to bind {} to {} (continuing): {}", entry.member, entry.role, e)
            report.bindings_failed.append(entry)


def run_replication(
    config: ReplicatorConfig, apply: bool = False, workdir: Path | None = None
) -> ReplicationReport:
    """Run the whole pipeline: check, export, replicate accounts, replicate bindings.

    Args:
        config: Replication settings.
        apply: Perform mutations. When False, only log what would be done.
        workdir: Scratch directory. A fresh temporary one is created if None.

    Returns:
        A ReplicationReport. Nothing is created or bound unless apply is set.

    Raises:
        TypeError: If apply is not a bool.
        ToolingError: If gcloud is not installed.
    """
    if not isinstance(apply, bool):
        raise TypeError(f"apply must be a bool, got {apply!r}")
    gcloud.require_tools()
    logger.info(
        "Source: {} | Target: {} | APPLY={}",
        config.source_project,
        config.target_project,
        apply,
    )
    check_environment(config)

    if workdir is None:
        workdir = Path(tempfile.mkdtemp(prefix="iamrepl_"))
    else:
        workdir.mkdir(parents=True, exist_ok=True)
    logger.info("Working in {}", workdir)

    report = ReplicationReport(
        source_project=config.source_project,
        target_project=config.target_project,
        apply=apply,
        workdir=workdir,
    )

    export = export_source(config, workdir)
    replicate_accounts(export.accounts, export.existing_emails, config, report)

    logger.info(
        "Replicating project-level IAM bindings (skipping {}) to {} service accounts...",
        ", ".join(sorted(set(config.skip_roles))),
        config.suffix,
    )
    report.plan = build_binding_plan(export.bindings, config)
    write_plan(report.plan, workdir / PLAN_FILE)
    apply_bindings(report.plan, config, report)

    logger.info("Completed. Temp outputs in: {}", workdir)
    return report
