# this_file: iamrepl/exporter.py

"""Export the source project's service accounts and IAM policy.

Nothing in here raises on a provider failure. Each fetch falls back to an
empty value and the fallback is written to the scratch directory, so later
steps always find their input files.
"""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

from iamrepl import gcloud
from iamrepl.config import ReplicatorConfig
from iamrepl.gcloud import GcloudError
from iamrepl.logging import logger
from iamrepl.models import ExportResult, ServiceAccount, parse_policy

SOURCE_ACCOUNTS_FILE = "prod-service-accounts.json"
SOURCE_POLICY_FILE = "prod-project-iam-policy.json"
TARGET_ACCOUNTS_FILE = "hml-existing-service-accounts.txt"


def _write_error(outfile: Path, error: Exception) -> None:
    outfile.with_name(outfile.name + ".err").write_text(f"{error}\n")


def capture_json(fetch: Callable[[], Any], outfile: Path, fallback: Any) -> Any:
    """Run a fetch and write its JSON result, or the fallback, to outfile.

    Args:
        fetch: Zero-argument callable returning JSON-serializable data.
        outfile: Where the result is written.
        fallback: Used when the fetch fails or returns nothing.

    Returns:
        The data that was written.
    """
    try:
        data = fetch()
    except GcloudError as e:
        logger.warning("Command failed; writing fallback for {}: {}", outfile.name, e)
        _write_error(outfile, e)
        data = None
    if not data:
        data = fallback
    outfile.write_text(json.dumps(data, indent=2) + "\n")
    return data


def capture_list(fetch: Callable[[], list[str]], outfile: Path) -> list[str]:
    """Like capture_json, for a list of lines. Falls back to an empty file."""
    try:
        lines = fetch()
    except GcloudError as e:
        logger.warning("Command failed; writing empty list for {}: {}", outfile.name, e)
        _write_error(outfile, e)
        lines = []
    outfile.write_text("".join(f"{line}\n" for line in lines))
    return lines


def check_environment(config: ReplicatorConfig) -> None:
    """Warn about authentication or project access problems.

    Only missing tooling is fatal; that is checked by gcloud.require_tools().
    """
    try:
        account = gcloud.check_authentication()
        logger.debug("Authenticated as {}", account)
    except gcloud.AuthenticationError as e:
        logger.warning("gcloud not authenticated ({}); proceeding with empty fallbacks.", e)
    for project in (config.source_project, config.target_project):
        if not gcloud.check_project_access(project):
            logger.warning("Cannot access project {}; will write empty fallbacks.", project)


def export_source(config: ReplicatorConfig, workdir: Path) -> ExportResult:
    """Fetch source accounts, source policy and existing target accounts.

    Args:
        config: Replication settings.
        workdir: Scratch directory for this run.

    Returns:
        ExportResult, with empty collections for anything that could not be fetched.
    """
    logger.info("Exporting {} service accounts and project IAM policy...", config.source_project)
    raw_accounts = capture_json(
        lambda: gcloud.list_service_accounts(config.source_project),
        workdir / SOURCE_ACCOUNTS_FILE,
        [],
    )
    policy = capture_json(
        lambda: gcloud.get_iam_policy(config.source_project),
        workdir / SOURCE_POLICY_FILE,
        {"bindings": []},
    )
    existing = capture_list(
        lambda: gcloud.list_service_account_emails(config.target_project),
        workdir / TARGET_ACCOUNTS_FILE,
    )

    accounts = [ServiceAccount.from_dict(a) for a in raw_accounts if isinstance(a, dict)]
    bindings = parse_policy(policy) if isinstance(policy, dict) else []
    logger.debug(
        "Exported {} accounts, {} bindings, {} existing target accounts",
        len(accounts),
        len(bindings),
        len(existing),
    )
    return ExportResult(
        accounts=accounts,
        bindings=bindings,
        existing_emails=set(existing),
    )
