"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog
import typer
from dotenv import load_dotenv
from typer import Argument, Option
from typing_extensions import Annotated

from review_tracker.configuration.env import Settings
from review_tracker.configuration.exceptions import RequiredConfigurationElementError, ReviewTrackerConfigurationError
from review_tracker.configuration.reconcile import validate_github_token_configuration, validate_repository_configuration
from review_tracker.github.adapter import GitHubTrackerAdapter
from review_tracker.github.models import ReviewVerdict
from review_tracker.github.results import Ok, TrackerFailure, TrackerResult
from review_tracker.review.content import pick_review_file
from review_tracker.review.identity import AccessStatus, verify_github_access
from review_tracker.review.submission import submit_review
from review_tracker.review.update_status import UpdateState, check_update_status, fetch_update_baseline
from review_tracker.synchronize.notifications import InMemoryNotificationStore, sync_pending_update_review_notices
from review_tracker.synchronize.staleness import detect_staleness

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="Track review requests against the lyric database.")


def configure_logging(debug: bool) -> None:
    """Configure structlog's level filter for CLI runs."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if debug else logging.INFO))


def describe_result(result: TrackerResult[Any]) -> str:
    """Human readable outcome of a tracker call."""
    if isinstance(result, Ok):
        return str(result.value)
    if result.status_code is not None:
        return f"{result.kind.value} ({result.status_code})"
    return result.kind.value


def read_baseline(path: Path) -> set[str]:
    """Read the notification ids saved by the previous sync-notices run."""
    if not path.exists():
        return set()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ReviewTrackerConfigurationError(f"Baseline file {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise ReviewTrackerConfigurationError(f"Baseline file {path} must contain a JSON list of notification ids")
    return set(data)


def write_baseline(path: Path, ids: frozenset[str]) -> None:
    """Persist the notification ids returned by a sync-notices run."""
    path.write_text(json.dumps(sorted(ids), ensure_ascii=False, indent=2), encoding="utf-8")


@typer_app.callback()
def main_callback(
    ctx: typer.Context,
    repo: Annotated[str | None, Option(envvar="REPO", help="Repository name (owner/repo).")] = None,
    github_api_url: Annotated[str | None, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = None,
    github_pat_token: Annotated[str | None, Option(envvar="GITHUB_PAT_TOKEN", help="GitHub token used for every request.")] = None,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug logging.")] = False,
) -> None:
    """Resolve configuration shared by every command."""
    configure_logging(debug)
    settings = Settings()
    try:
        token = asyncio.run(validate_github_token_configuration(github_pat_token or settings.GITHUB_PAT_TOKEN))
        asyncio.run(validate_repository_configuration(repo or settings.REPO))
    except (RequiredConfigurationElementError, ReviewTrackerConfigurationError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["token"] = token
    ctx.obj["repo"] = repo or settings.REPO
    ctx.obj["github_api_url"] = github_api_url or settings.GITHUB_API_URL


async def build_tracker(ctx: typer.Context) -> GitHubTrackerAdapter:
    """Create the tracker adapter from the resolved configuration."""
    settings: Settings = ctx.obj["settings"]
    return await GitHubTrackerAdapter.create(
        repo=ctx.obj["repo"],
        github_api_url=ctx.obj["github_api_url"],
        timeout=settings.REQUEST_TIMEOUT_SECONDS,
    )


@typer_app.command(name="sync-notices")
def sync_notices_cli(
    ctx: typer.Context,
    login: Annotated[str | None, Argument(envvar="GITHUB_LOGIN", help="Login whose mentions are tracked.")] = None,
    baseline: Annotated[Path, Option(help="JSON file holding the notification ids from the previous run.")] = Path(".review-tracker-baseline.json"),
) -> None:
    """Reconcile pending update notifications and print the resulting commands."""
    settings: Settings = ctx.obj["settings"]
    token: str = ctx.obj["token"]
    try:
        previous_ids = read_baseline(baseline)
    except ReviewTrackerConfigurationError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc
    store = InMemoryNotificationStore()

    async def run() -> TrackerResult[Any]:
        tracker = await build_tracker(ctx)
        return await sync_pending_update_review_notices(tracker, token, login or settings.GITHUB_LOGIN or "", previous_ids, store, settings=settings)

    result = asyncio.run(run())
    if isinstance(result, TrackerFailure):
        typer.echo(f"Could not load pending review requests: {describe_result(result)}", err=True)
        raise typer.Exit(1)
    plan = result.value
    for record in plan.upserts:
        typer.echo(f"upsert {record.id}: {record.title} - {record.description}")
    for notification_id in plan.removals:
        typer.echo(f"remove {notification_id}")
    write_baseline(baseline, plan.next_ids)
    typer.echo(f"{len(plan.next_ids)} pending review request(s); baseline saved to {baseline}")


@typer_app.command(name="check-stale")
def check_stale_cli(
    ctx: typer.Context,
    request_id: Annotated[int, Argument(help="Review request (pull request) number.")],
) -> None:
    """Report whether a review request was updated after it was labelled."""
    settings: Settings = ctx.obj["settings"]
    token: str = ctx.obj["token"]

    async def run() -> Any:
        tracker = await build_tracker(ctx)
        return await detect_staleness(tracker, token, request_id, settings=settings)

    report = asyncio.run(run())
    typer.echo(f"Label applied: {describe_result(report.label_time)}")
    typer.echo(f"Latest revision: {describe_result(report.revision_time)}")
    typer.echo(f"Stale: {'yes' if report.stale else 'no'}")


@typer_app.command(name="submit-review")
def submit_review_cli(
    ctx: typer.Context,
    request_id: Annotated[int, Argument(help="Review request (pull request) number.")],
    verdict: Annotated[str, Option(help="Either 'approve' or 'request-changes'.")] = "approve",
    body: Annotated[str, Option(help="Review comment.")] = "",
) -> None:
    """Approve a review request or request changes on it."""
    settings: Settings = ctx.obj["settings"]
    token: str = ctx.obj["token"]
    verdicts = {"approve": ReviewVerdict.APPROVE, "request-changes": ReviewVerdict.REQUEST_CHANGES}
    if verdict not in verdicts:
        typer.echo(f"Unknown verdict '{verdict}', expected one of: {', '.join(verdicts)}", err=True)
        raise typer.Exit(2)

    async def run() -> Any:
        tracker = await build_tracker(ctx)
        return await submit_review(tracker, token, request_id, verdicts[verdict], body, settings=settings)

    result = asyncio.run(run())
    if not result.ok:
        reason = describe_result(result.failure) if result.failure is not None else "unknown error"
        typer.echo(f"Review was not posted: {reason}", err=True)
        raise typer.Exit(1)
    if result.partial:
        typer.echo(f"Review posted, but the '{settings.PENDING_LABEL_NAME}' label could not be applied: {describe_result(result.label_failure)}")
        return
    typer.echo("Review posted")


@typer_app.command(name="update-baseline")
def update_baseline_cli(
    ctx: typer.Context,
    request_id: Annotated[int, Argument(help="Review request (pull request) number.")],
) -> None:
    """Print the head revision to pass to check-update after pushing a file update."""
    token: str = ctx.obj["token"]

    async def run() -> Any:
        tracker = await build_tracker(ctx)
        return await fetch_update_baseline(tracker, token, request_id)

    baseline = asyncio.run(run())
    if isinstance(baseline, TrackerFailure):
        typer.echo(f"Could not read review request: {describe_result(baseline)}", err=True)
        raise typer.Exit(1)
    typer.echo(f"{baseline.value.head_sha or ''} {baseline.value.request_url}".strip())


@typer_app.command(name="check-update")
def check_update_cli(
    ctx: typer.Context,
    request_id: Annotated[int, Argument(help="Review request (pull request) number.")],
    base_sha: Annotated[str | None, Option(help="Head revision recorded before the update was pushed.")] = None,
    since: Annotated[datetime | None, Option(help="When the update was pushed; older comments are ignored.")] = None,
) -> None:
    """Check once whether a pushed file update was accepted or rejected."""
    token: str = ctx.obj["token"]

    async def run() -> Any:
        tracker = await build_tracker(ctx)
        return await check_update_status(tracker, token, request_id, base_sha, since)

    status = asyncio.run(run())
    for failure in status.failures:
        typer.echo(f"Lookup failed: {describe_result(failure)}", err=True)
    if status.state == UpdateState.FAILURE:
        typer.echo(f"Update rejected: {status.message}")
        raise typer.Exit(1)
    typer.echo(f"Update {status.state.value}; head revision {status.head_sha or 'unknown'}")


@typer_app.command(name="pick-file")
def pick_file_cli(
    ctx: typer.Context,
    request_id: Annotated[int, Argument(help="Review request (pull request) number.")],
) -> None:
    """Print the lyric file that would be opened for a review request."""
    settings: Settings = ctx.obj["settings"]
    token: str = ctx.obj["token"]

    async def run() -> Any:
        tracker = await build_tracker(ctx)
        return await tracker.list_request_files(token, request_id, per_page=settings.REQUEST_FILES_PER_PAGE)

    files = asyncio.run(run())
    if isinstance(files, TrackerFailure):
        typer.echo(f"Could not list files: {describe_result(files)}", err=True)
        raise typer.Exit(1)
    pick = pick_review_file(files.value)
    if pick is None:
        typer.echo("No supported lyric file in this review request")
        raise typer.Exit(1)
    typer.echo(f"{pick.filename} {pick.raw_url or ''}".rstrip())


@typer_app.command(name="verify-access")
def verify_access_cli(ctx: typer.Context) -> None:
    """Check that the configured token may review the repository."""
    settings: Settings = ctx.obj["settings"]
    token: str = ctx.obj["token"]

    async def run() -> Any:
        tracker = await build_tracker(ctx)
        return await verify_github_access(tracker, token, settings=settings)

    check = asyncio.run(run())
    if check.status != AccessStatus.AUTHORIZED:
        detail = f" ({check.code})" if check.code is not None else ""
        typer.echo(f"Access check failed: {check.status.value}{detail}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Authorized as {check.login}; {len(check.labels)} label(s) available")


if __name__ == "__main__":
    typer_app()
