"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
import logging
import re
import sys
from pathlib import Path
from typing import Any

import structlog
import typer
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError
from typer import Option
from typing_extensions import Annotated

from release_ops_manager.changelog.service import ChangelogService
from release_ops_manager.configuration.env import Settings
from release_ops_manager.configuration.exceptions import ConfigError, GitHubAuthenticationConfigurationUndefinedError
from release_ops_manager.configuration.reconcile import validate_github_authentication_configuration
from release_ops_manager.evaluate.addons import MultiAddon
from release_ops_manager.evaluate.evaluator import Evaluator
from release_ops_manager.evaluate.exceptions import AddonCollisionError, TemplateExecutionError, TemplateParseError
from release_ops_manager.evaluate.git import GitAddon
from release_ops_manager.evaluate.task import TaskAddon
from release_ops_manager.git.abc import GitEngineBase, UnsupportedEngine
from release_ops_manager.git.exceptions import EmptyRefError, EngineError
from release_ops_manager.git.github import GitHubEngine
from release_ops_manager.git.models import Commit, PullRequest
from release_ops_manager.notify.base import Destination, Destinations
from release_ops_manager.notify.exceptions import AggregateNotifyError
from release_ops_manager.notify.github_release import DEFAULT_RELEASE_NAME_TEMPLATE, GitHubReleaseDestination
from release_ops_manager.notify.writer import WriterDestination
from release_ops_manager.release_notes.builder import BuildRequest, NotesBuilder
from release_ops_manager.release_notes.config import load_notes_config
from release_ops_manager.release_notes.exceptions import UnknownParentError
from release_ops_manager.release_notes.tickets import NotesEvalAddon
from release_ops_manager.task.abc import Tracker, UnsupportedTracker
from release_ops_manager.utils.constants import (
    DEFAULT_FROM_EXPRESSION,
    DEFAULT_SQUASH_COMMIT_PATTERN,
    DEFAULT_TO_EXPRESSION,
)
from release_ops_manager.utils.yaml import load_yaml_file

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

# Failures reported as a one-line message instead of a traceback
EXPECTED_ERRORS = (
    ConfigError,
    GitHubAuthenticationConfigurationUndefinedError,
    TemplateParseError,
    TemplateExecutionError,
    AddonCollisionError,
    EngineError,
    EmptyRefError,
    UnknownParentError,
    OSError,
    ValueError,
)


class PreviewData(BaseModel):
    """Pydantic model for the release data file rendered by the preview command."""

    from_ref: str = ""
    to_ref: str = ""
    extras: dict[str, str] = Field(default_factory=dict)
    pull_requests: list[PullRequest] = Field(default_factory=list)
    commits: list[Commit] = Field(default_factory=list)


def configure_logging(debug: bool) -> None:
    """Route structlog through the standard library logger, writing to stderr."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(level=level, stream=sys.stderr, format="%(message)s", force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def parse_extras(values: list[str] | None) -> dict[str, str]:
    """Parse `key:value` pairs given on the command line into a mapping."""
    extras: dict[str, str] = {}
    for value in values or []:
        for pair in value.split(","):
            if not pair.strip():
                continue
            key, sep, item = pair.partition(":")
            if not sep or not key.strip():
                raise typer.BadParameter(f"extra {pair!r} must be in the form key:value", param_hint="--extras")
            extras[key.strip()] = item.strip()
    return extras


def build_notes_evaluator(engine: GitEngineBase, tracker: Tracker) -> tuple[Evaluator, GitAddon]:
    """Return the evaluator for release notes templates along with its git addon."""
    git_addon = GitAddon(engine)
    return Evaluator(MultiAddon([git_addon, TaskAddon(tracker), NotesEvalAddon(tracker)])), git_addon


def report_error(exc: BaseException) -> None:
    """Print a failure to stderr, one line per destination for notify failures."""
    if isinstance(exc, AggregateNotifyError):
        typer.echo(f"Failed to notify {len(exc.exceptions)} destination(s):", err=True)
        for name, error in zip(exc.destinations, exc.exceptions):
            typer.echo(f"  - {name}: {error}", err=True)
        return
    typer.echo(f"Error: {exc}", err=True)


@typer_app.command(name="changelog")
def changelog_cli(
    conf_location: Annotated[Path, Option(envvar="CONF_LOCATION", help="Path to the release notes YAML config.")],
    from_expr: Annotated[
        str, Option("--from", envvar="FROM", help="Oldest ref of the changelog, a literal ref or an expression.")
    ] = DEFAULT_FROM_EXPRESSION,
    to_expr: Annotated[str, Option("--to", envvar="TO", help="Newest ref of the changelog, a literal ref or an expression.")] = DEFAULT_TO_EXPRESSION,
    repo: Annotated[str | None, Option(envvar="REPO", help="Repository name (owner/repo).")] = None,
    github_api_url: Annotated[str | None, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = None,
    github_pat_token: Annotated[str | None, Option(envvar="GITHUB_PAT_TOKEN", help="GitHub Personal Access Token.")] = None,
    github_app_id: Annotated[int | None, Option(envvar="GITHUB_APP_ID", help="GitHub App ID.")] = None,
    github_app_private_key_path: Annotated[Path | None, Option(envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")] = None,
    squash_commit_rx: Annotated[
        str, Option(envvar="SQUASH_COMMIT_RX", help="Regex matching squash-merge commit messages.")
    ] = DEFAULT_SQUASH_COMMIT_PATTERN,
    extras: Annotated[list[str] | None, Option(envvar="EXTRAS", help="Extra template variables as key:value, merged over the config ones.")] = None,
    max_concurrent_pr_requests: Annotated[
        int | None, Option(envvar="MAX_CONCURRENT_PR_REQUESTS", help="Maximum concurrent pull request lookups.")
    ] = None,
    commits_only: Annotated[bool, Option(envvar="COMMITS_ONLY", help="Skip pull request lookups and list commits only.")] = False,
    timeout: Annotated[float | None, Option(envvar="TIMEOUT", help="Deadline in seconds for the whole run.")] = None,
    stdout: Annotated[bool, Option("--stdout/--no-stdout", help="Print the changelog to stdout.")] = True,
    stderr: Annotated[bool, Option(help="Print the changelog to stderr.")] = False,
    output_file: Annotated[Path | None, Option(envvar="OUTPUT_FILE", help="Write the changelog to this file.")] = None,
    github_release: Annotated[bool, Option(envvar="GITHUB_RELEASE", help="Create a GitHub release for the 'to' ref.")] = False,
    github_release_name: Annotated[
        str, Option(envvar="GITHUB_RELEASE_NAME", help="Expression for the GitHub release name.")
    ] = DEFAULT_RELEASE_NAME_TEMPLATE,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")] = False,
) -> None:
    """Assemble the changelog between two refs and send it to the chosen destinations."""
    settings = Settings()
    configure_logging(debug or settings.DEBUG)

    try:
        squash_rx = re.compile(squash_commit_rx)
    except re.error as exc:
        raise typer.BadParameter(f"invalid regex: {exc}", param_hint="--squash-commit-rx") from exc
    extra_values = parse_extras(extras)

    async def run() -> None:
        config = load_notes_config(conf_location)
        tracker = Tracker(UnsupportedTracker())

        # Expressions and templates are checked before any network I/O
        offline_notes_evaluator, offline_git_addon = build_notes_evaluator(UnsupportedEngine(), tracker)
        offline_refs_evaluator = Evaluator(offline_git_addon)
        await offline_refs_evaluator.validate(from_expr)
        await offline_refs_evaluator.validate(to_expr)
        await offline_notes_evaluator.validate(config.template)
        release_evaluator = Evaluator()
        if github_release:
            await release_evaluator.validate(github_release_name)

        github_auth_type = await validate_github_authentication_configuration(
            github_pat_token=github_pat_token or settings.GITHUB_PAT_TOKEN,
            github_app_id=github_app_id or settings.GITHUB_APP_ID,
            github_app_private_key_path=github_app_private_key_path or settings.GITHUB_APP_PRIVATE_KEY_PATH,
        )
        engine = await GitHubEngine.create(
            repo=repo or settings.REPO or "",
            github_auth_type=github_auth_type,
            github_pat_token=github_pat_token or settings.GITHUB_PAT_TOKEN,
            github_app_id=github_app_id or settings.GITHUB_APP_ID,
            github_app_private_key_path=github_app_private_key_path or settings.GITHUB_APP_PRIVATE_KEY_PATH,
            github_api_url=github_api_url or settings.GITHUB_API_URL,
        )

        notes_evaluator, git_addon = build_notes_evaluator(engine, tracker)
        refs_evaluator = Evaluator(git_addon)
        notes_builder = NotesBuilder(config, notes_evaluator, extra_values)

        destinations: list[Destination] = []
        if stdout:
            destinations.append(WriterDestination(sys.stdout, "stdout"))
        if stderr:
            destinations.append(WriterDestination(sys.stderr, "stderr"))
        if output_file is not None:
            destinations.append(WriterDestination.to_file(output_file))
        if github_release:
            destinations.append(
                GitHubReleaseDestination(engine.client, engine.owner, engine.repo_name, release_evaluator, github_release_name)
            )

        service = ChangelogService(
            engine=engine,
            evaluator=refs_evaluator,
            notes_builder=notes_builder,
            notifier=Destinations(destinations),
            squash_commit_rx=squash_rx,
            max_concurrent_pr_requests=(
                max_concurrent_pr_requests if max_concurrent_pr_requests is not None else settings.MAX_CONCURRENT_PR_REQUESTS
            ),
            commits_only=commits_only,
        )
        async with asyncio.timeout(timeout if timeout is not None else settings.TIMEOUT):
            await service.changelog(from_expr, to_expr)

    try:
        asyncio.run(run())
    except (AggregateNotifyError, *EXPECTED_ERRORS) as exc:
        logger.debug("Changelog run failed", exc_info=True)
        report_error(exc)
        sys.exit(1)


@typer_app.command(name="preview")
def preview_cli(
    data_file: Annotated[Path, Option(envvar="DATA_FILE", help="Path to a YAML file with release data.")],
    conf_location: Annotated[Path, Option(envvar="CONF_LOCATION", help="Path to the release notes YAML config.")],
    extras: Annotated[list[str] | None, Option(envvar="EXTRAS", help="Extra template variables as key:value, merged over the data file ones.")] = None,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")] = False,
) -> None:
    """Render release notes from a data file and print them to stdout."""
    configure_logging(debug)
    extra_values = parse_extras(extras)

    async def run() -> None:
        config = load_notes_config(conf_location)
        content: Any = load_yaml_file(data_file) or {}
        try:
            data = PreviewData.model_validate(content)
        except ValidationError as exc:
            raise ValueError(f"invalid data file {data_file}: {exc}") from exc

        notes_evaluator, _ = build_notes_evaluator(UnsupportedEngine(), Tracker(UnsupportedTracker()))
        notes_builder = NotesBuilder(config, notes_evaluator, {**data.extras, **extra_values})
        text = await notes_builder.build(
            BuildRequest(from_ref=data.from_ref, to_ref=data.to_ref, closed_prs=data.pull_requests, commits=data.commits)
        )
        await WriterDestination(sys.stdout, "stdout").send(text, tag_name=data.to_ref)

    try:
        asyncio.run(run())
    except EXPECTED_ERRORS as exc:
        report_error(exc)
        sys.exit(1)


if __name__ == "__main__":
    typer_app()
