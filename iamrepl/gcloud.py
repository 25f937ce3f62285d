# this_file: iamrepl/gcloud.py

"""Thin wrappers around the gcloud CLI.

Every function here shells out to gcloud and either returns parsed output or
raises GcloudError. Callers decide whether a failure is fatal.
"""

import json
import shutil
import subprocess

from iamrepl.logging import logger

REQUIRED_TOOLS = ("gcloud",)


class GcloudError(Exception):
    """Raised when a gcloud command fails."""

    pass


class ToolingError(Exception):
    """Raised when a required command-line tool is missing."""

    pass


class AuthenticationError(Exception):
    """Raised when authentication is missing or invalid."""

    pass


def check_tool_installed(name: str) -> bool:
    """Check if a command is installed and accessible."""
    return shutil.which(name) is not None


def require_tools(tools: tuple[str, ...] = REQUIRED_TOOLS) -> None:
    """Raise ToolingError for the first missing tool."""
    for tool in tools:
        if not check_tool_installed(tool):
            raise ToolingError(f"Missing required command: {tool}")


def run_gcloud_command(command: list[str]) -> str:
    """
    Run a gcloud command and return the output.

    Args:
        command: The gcloud command as a list of strings.

    Returns:
        The stdout from the command.

    Raises:
        GcloudError: If the command fails, cannot be started, or its output
            cannot be decoded.
    """
    logger.debug("Running: {}", " ".join(command))
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        error_msg = e.stderr.strip() if e.stderr else "Unknown error"
        raise GcloudError(f"Command failed: {' '.join(command)}\n{error_msg}") from e
    except FileNotFoundError as e:
        raise GcloudError("gcloud CLI not found. Please install the Google Cloud SDK.") from e
    except OSError as e:
        raise GcloudError(f"Could not run {command[0]}: {e}") from e
    except UnicodeDecodeError as e:
        raise GcloudError(f"Undecodable output from: {' '.join(command)}: {e}") from e
    if result.stderr:
        for line in result.stderr.strip().split("\n"):
            if line:
                logger.debug("  {}", line)
    return result.stdout.strip()


def check_authentication() -> str:
    """
    Check that gcloud has an active, usable account.

    Returns:
        The active account.

    Raises:
        AuthenticationError: If not authenticated.
    """
    try:
        account = run_gcloud_command(["gcloud", "config", "get-value", "account"])
    except GcloudError:
        account = ""

    if not account or account == "(unset)":
        raise AuthenticationError("No active gcloud account found.")

    try:
        run_gcloud_command(["gcloud", "auth", "print-access-token"])
    except GcloudError as e:
        raise AuthenticationError(
            f"Credentials are invalid or expired for account: {account}"
        ) from e
    return account


def check_project_access(project_id: str) -> bool:
    """Return True if the project can be described by the active account."""
    try:
        run_gcloud_command(
            ["gcloud", "projects", "describe", project_id, "--format=value(projectId)"]
        )
        return True
    except GcloudError:
        return False


def list_service_accounts(project_id: str) -> list[dict]:
    """Get the list of service account records in a project."""
    output = run_gcloud_command(
        ["gcloud", "iam", "service-accounts", "list", "--project", project_id, "--format=json"]
    )
    return _parse_json(output, []) if output else []


def list_service_account_emails(project_id: str) -> list[str]:
    """Get just the service account emails in a project."""
    output = run_gcloud_command(
        [
            "gcloud",
            "iam",
            "service-accounts",
            "list",
            "--project",
            project_id,
            "--format=value(email)",
        ]
    )
    return [line.strip() for line in output.splitlines() if line.strip()]


def get_iam_policy(project_id: str) -> dict:
    """Get the project IAM policy."""
    output = run_gcloud_command(
        ["gcloud", "projects", "get-iam-policy", project_id, "--format=json"]
    )
    return _parse_json(output, {}) if output else {}


def create_service_account(
    project_id: str, account_id: str, display_name: str, description: str
) -> None:
    """Create a service account in a project."""
    run_gcloud_command(
        [
            "gcloud",
            "iam",
            "service-accounts",
            "create",
            account_id,
            "--project",
            project_id,
            "--display-name",
            display_name,
            "--description",
            description,
        ]
    )


def add_iam_policy_binding(project_id: str, member: str, role: str) -> None:
    """Grant a role to a member on a project."""
    run_gcloud_command(
        [
            "gcloud",
            "projects",
            "add-iam-policy-binding",
            project_id,
            f"--member={member}",
            f"--role={role}",
        ]
    )


def _parse_json(output: str, expected: list | dict):
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise GcloudError(f"gcloud returned invalid JSON: {e}") from e
    if not isinstance(data, type(expected)):
        raise GcloudError(f"gcloud returned unexpected JSON type: {type(data).__name__}")
    return data
