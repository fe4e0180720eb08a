"""Command Line Interface for Python Autofix Pro."""

import sys

import click
import uvicorn
from fastapi import FastAPI

from . import __version__ as AUTOFIX_PRO_VERSION
from .autofix_runner import AutofixPipeline
from .comments import CommentLedger
from .config import Settings, settings
from .exceptions import ConfigurationError
from .github_client import GitHubAppAuth, GitHubClient
from .logger_config import get_logger, setup_logger
from .orchestrator import EventOrchestrator
from .plan import PlanResolver
from .usage_logger import UsageLogger
from .webhook_server import create_app

logger = get_logger(__name__)


def build_orchestrator(app_settings: Settings) -> EventOrchestrator:
    """Wire the process-wide collaborators once at startup."""
    app_settings.require_app_credentials()
    app_auth = GitHubAppAuth(app_settings.app_id, app_settings.load_private_key(), base_url=app_settings.github_api_url)  # type: ignore[arg-type]
    return EventOrchestrator(
        app_auth=app_auth,
        plan_resolver=PlanResolver.from_settings(app_settings),
        ledger=CommentLedger(),
        usage_logger=UsageLogger(app_settings.usage_log_path),
        pipeline=AutofixPipeline(git_host=app_settings.git_host),
        client_factory=lambda token: GitHubClient(token, base_url=app_settings.github_api_url),
        docs_url=app_settings.docs_url,
        troubleshooting_url=app_settings.troubleshooting_url,
    )


def build_app(app_settings: Settings) -> FastAPI:
    orchestrator = build_orchestrator(app_settings)
    return create_app(orchestrator, webhook_secret=app_settings.webhook_secret, webhook_path=app_settings.webhook_path)


@click.group(help="Python Autofix Pro: ruff autofix for GitHub pull requests.")
@click.version_option(version=AUTOFIX_PRO_VERSION, package_name="python-autofix-pro")
def main() -> None:
    pass


@main.command()
@click.option("--host", default=None, help="Interface to bind (default: HOST or 0.0.0.0)")
@click.option("--port", type=int, default=None, help="Port to listen on (default: PORT or 3000)")
@click.option(
    "--log-level",
    type=click.Choice(["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (default: LOG_LEVEL or INFO)",
)
def serve(host: str, port: int, log_level: str) -> None:
    """Serve the webhook endpoint."""
    setup_logger(log_level=log_level)
    try:
        app = build_app(settings)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    bind_host = host or settings.host
    bind_port = port or settings.port
    logger.info(f"Python Autofix Pro listening on {bind_host}:{bind_port}")
    uvicorn.run(app, host=bind_host, port=bind_port, log_level=(log_level or settings.log_level).lower())


@main.command()
@click.argument("installation_id", type=int)
def plan(installation_id: int) -> None:
    """Print the plan an installation resolves to."""
    resolver = PlanResolver.from_settings(settings)
    click.echo(resolver.plan_for(installation_id).value)


if __name__ == "__main__":
    main()
