"""
Pytest configuration and fixtures for Python Autofix Pro tests.
"""

import sys
from pathlib import Path

# Ensure 'src' (for 'autofix_pro') and the repo root (for 'tests.support') are importable everywhere
_repo_root = Path(__file__).resolve().parents[1]
_src_path = _repo_root / "src"
for _path in (_src_path, _repo_root):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

import pytest

from autofix_pro.autofix_runner import AutofixPipeline
from autofix_pro.comments import CommentLedger
from autofix_pro.orchestrator import EventOrchestrator
from autofix_pro.plan import PlanResolver
from autofix_pro.usage_logger import UsageLogger
from tests.support.fakes import PRO_INSTALLATION_ID, FakeAppAuth, FakeGitHubClient, ScriptedExecutor


# Test stabilization: eliminate credentials and plan settings from the environment
@pytest.fixture(autouse=True)
def _clear_sensitive_env(monkeypatch):
    for key in ("APP_ID", "PRIVATE_KEY", "PRIVATE_KEY_PATH", "WEBHOOK_SECRET", "PRO_INSTALLATION_IDS", "PLAN_OVERRIDE", "APP_ENV"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def workspace_root(tmp_path):
    """Parent directory for pipeline workspaces; must be empty after every run."""
    root = tmp_path / "workspaces"
    root.mkdir()
    return root


@pytest.fixture
def usage_log_path(tmp_path):
    return tmp_path / "usage.jsonl"


@pytest.fixture
def make_pipeline(workspace_root):
    def _make(executor=None):
        executor = executor or ScriptedExecutor()
        return AutofixPipeline(executor=executor, workspace_root=str(workspace_root), python_executable="python"), executor

    return _make


@pytest.fixture
def make_orchestrator(make_pipeline, usage_log_path):
    """Build an orchestrator around fakes; returns (orchestrator, client, executor)."""

    def _make(client=None, executor=None, pipeline=None, app_auth=None, ledger=None, docs_url=None):
        client = client or FakeGitHubClient()
        if pipeline is None:
            pipeline, executor = make_pipeline(executor)
        orchestrator = EventOrchestrator(
            app_auth=app_auth or FakeAppAuth(),
            plan_resolver=PlanResolver([PRO_INSTALLATION_ID]),
            ledger=ledger or CommentLedger(),
            usage_logger=UsageLogger(usage_log_path),
            pipeline=pipeline,
            client_factory=lambda token: client,
            docs_url=docs_url,
            troubleshooting_url="https://docs.example.com/autofix#troubleshooting",
        )
        return orchestrator, client, executor

    return _make
