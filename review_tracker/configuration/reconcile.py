"""Reconcile review tracker configuration from CLI arguments and environment variables."""

from review_tracker.configuration.exceptions import RequiredConfigurationElementError, ReviewTrackerConfigurationError
from review_tracker.utils.github import credential_is_blank, split_repository_in_configuration


async def validate_github_token_configuration(github_pat_token: str | None) -> str:
    """Validates that a GitHub token is configured.

    Args:
        github_pat_token (str | None): The GitHub token.

    Raises:
        RequiredConfigurationElementError: If the token is missing or blank.

    Returns:
        str: The token with surrounding whitespace removed.
    """
    if github_pat_token is None or credential_is_blank(github_pat_token):
        raise RequiredConfigurationElementError(
            name="GitHub token",
            cli_name="--github-pat-token",
            env_name="GITHUB_PAT_TOKEN",
        )
    return github_pat_token.strip()


async def validate_repository_configuration(repo: str | None) -> tuple[str, str]:
    """Validates the repository configuration.

    Args:
        repo (str | None): The repository in 'owner/repo' format.

    Raises:
        RequiredConfigurationElementError: If the repository is missing.
        ReviewTrackerConfigurationError: If the repository is malformed.

    Returns:
        tuple[str, str]: The repository owner and name.
    """
    if repo is None or not repo.strip():
        raise RequiredConfigurationElementError(name="Repository", cli_name="--repo", env_name="REPO")
    try:
        return await split_repository_in_configuration(repo)
    except ValueError as exc:
        raise ReviewTrackerConfigurationError(str(exc)) from exc
