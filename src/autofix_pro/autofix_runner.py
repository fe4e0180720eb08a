"""
Autofix pipeline.

One run clones the pull request head into a private temporary workspace,
applies ruff formatting and lint fixes (plus black when the project is
configured for it), pushes any changes back to the head branch and then
re-verifies the tree.  Stages run strictly in order; a fatal stage aborts
the rest.  The workspace is removed on every exit path.
"""

import re
import shutil
import sys
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Tuple

from .exceptions import AutofixError, CommandFailedError, FormatFailedError, ToolUnavailableError
from .logger_config import get_logger
from .models import AutofixResult
from .security_utils import redact_string
from .utils import CommandExecutor, CommandResult, run_blocking

logger = get_logger(__name__)

WORKSPACE_PREFIX = "python-autofix-"
COMMIT_MESSAGE = "chore(autofix): python formatting"
BOT_NAME = "python-autofix-pro[bot]"
BOT_EMAIL = "python-autofix-pro@users.noreply.github.com"

# ruff prints e.g. "(2 hidden fixes can be enabled with the `--unsafe-fixes` option)"
HIDDEN_FIXES_MARKER = "can be enabled with the `--unsafe-fixes` option"

SUMMARY_APPLIED = "Applied Python formatting fixes."
SUMMARY_CLEAN = "No formatting changes needed."
SUMMARY_FAILING = "Formatting completed, but lint checks still report issues."
UNSAFE_ENABLED_NOTE = "Unsafe fixes: enabled (Pro)."
HIDDEN_FIXES_NOTE = "Additional fixes are available with unsafe fixes enabled (Pro)."

# Upper bound on characters read from a config file in the cloned tree
MAX_PROJECT_FILE_CHARS = 1 << 20


def has_hidden_fixes(output: str) -> bool:
    """Best-effort detection of fixes ruff withheld because unsafe mode was off.

    This matches ruff's human-readable output and is not a stable contract;
    keep the rule in this one place.
    """
    return HIDDEN_FIXES_MARKER.lower() in (output or "").lower()


def _read_project_file(repo_path: Path, name: str) -> str:
    """Read a project file from the cloned tree, or "" when it is unsafe or absent.

    The tree comes from the pull request author, so symlinks and anything that
    resolves outside the checkout are skipped and reads are capped.
    """
    candidate = repo_path / name
    if candidate.is_symlink() or not candidate.is_file():
        return ""
    try:
        candidate.resolve().relative_to(repo_path.resolve())
    except ValueError:
        return ""
    with open(candidate, "r", encoding="utf-8", errors="replace") as f:
        return f.read(MAX_PROJECT_FILE_CHARS)


def is_black_configured(repo_path: Path) -> bool:
    """Detect black configuration in pyproject.toml, setup.cfg or requirements.txt."""
    if "[tool.black]" in _read_project_file(repo_path, "pyproject.toml"):
        return True
    if "[black]" in _read_project_file(repo_path, "setup.cfg"):
        return True
    if re.search(r"\bblack\b", _read_project_file(repo_path, "requirements.txt"), re.IGNORECASE):
        return True
    return False


class Stage(str, Enum):
    CLONE = "clone"
    ENSURE_TOOL = "ensure_tool"
    FORMAT = "format"
    LINT_FIX = "lint_fix"
    SECONDARY_FORMAT = "secondary_format"
    COMMIT_PUSH = "commit_push"
    VERIFY = "verify"


@dataclass(frozen=True)
class AutofixInput:
    token: str
    head_repo_full_name: str
    head_ref: str
    head_sha: str
    unsafe_fixes: bool = False
    skip_reason: Optional[str] = None
    commit_message: str = COMMIT_MESSAGE


@dataclass
class PipelineRun:
    """Mutable state of one pipeline run."""

    input: AutofixInput
    workspace: Path
    logs: List[str] = field(default_factory=list)
    stage: Optional[Stage] = None
    applied_fixes: bool = False
    hidden_fixes: bool = False
    verification_passed: bool = False

    @property
    def repo_dir(self) -> Path:
        return self.workspace / "repo"

    def log(self, text: str) -> None:
        text = redact_string((text or "").strip())
        if text:
            self.logs.append(text)


class AutofixPipeline:
    """Runs the clone, fix, push and verify stages for one pull request."""

    def __init__(
        self,
        executor: Optional[CommandExecutor] = None,
        git_host: str = "github.com",
        workspace_root: Optional[str] = None,
        python_executable: Optional[str] = None,
    ):
        self.executor = executor or CommandExecutor()
        self.git_host = git_host
        self.workspace_root = workspace_root
        self.python_executable = python_executable or sys.executable

    def _stages(self) -> List[Tuple[Stage, Callable[[PipelineRun], Awaitable[None]]]]:
        return [
            (Stage.CLONE, self._clone),
            (Stage.ENSURE_TOOL, self._ensure_ruff),
            (Stage.FORMAT, self._format),
            (Stage.LINT_FIX, self._lint_fix),
            (Stage.SECONDARY_FORMAT, self._secondary_format),
            (Stage.COMMIT_PUSH, self._commit_and_push),
            (Stage.VERIFY, self._verify),
        ]

    async def run(self, autofix_input: AutofixInput) -> AutofixResult:
        workspace = Path(await run_blocking(tempfile.mkdtemp, prefix=WORKSPACE_PREFIX, dir=self.workspace_root))
        state = PipelineRun(input=autofix_input, workspace=workspace)
        logger.info(f"Starting autofix for {autofix_input.head_repo_full_name}@{autofix_input.head_ref} in {workspace}")

        try:
            for stage, step in self._stages():
                state.stage = stage
                logger.debug(f"Autofix stage: {stage.value}")
                await step(state)
            return self._build_result(state)
        except Exception as e:
            message = redact_string(str(e)) or type(e).__name__
            state.log(f"Autofix failed: {message}")
            logger.error(f"Autofix failed at stage {state.stage.value if state.stage else 'setup'}: {message}")
            raise AutofixError(message, list(state.logs), stage=state.stage.value if state.stage else "setup") from e
        finally:
            await run_blocking(shutil.rmtree, workspace, ignore_errors=True)
            logger.debug(f"Removed workspace {workspace}")

    async def _run(self, state: PipelineRun, cmd: List[str], check: bool = False) -> CommandResult:
        cwd = str(state.repo_dir) if state.repo_dir.exists() else str(state.workspace)
        return await self.executor.run_command_async(cmd, cwd=cwd, check=check)

    async def _run_required(self, state: PipelineRun, cmd: List[str]) -> CommandResult:
        try:
            return await self._run(state, cmd, check=True)
        except CommandFailedError as e:
            state.log(e.result.stderr)
            raise

    # Stages

    async def _clone(self, state: PipelineRun) -> None:
        ref = state.input.head_ref
        url = f"https://x-access-token:{state.input.token}@{self.git_host}/{state.input.head_repo_full_name}.git"

        await self._run_required(state, ["git", "clone", "--depth", "1", "--no-tags", url, str(state.repo_dir)])
        await self._run_required(state, ["git", "fetch", "--depth", "1", "origin", f"+refs/heads/{ref}:refs/remotes/origin/{ref}"])
        await self._run_required(state, ["git", "checkout", "-B", ref, f"origin/{ref}"])
        await self._run_required(state, ["git", "reset", "--hard", f"origin/{ref}"])
        await self._run_required(state, ["git", "config", "user.name", BOT_NAME])
        await self._run_required(state, ["git", "config", "user.email", BOT_EMAIL])
        state.log(f"Checked out {ref} at {state.input.head_sha}.")

    async def _ensure_ruff(self, state: PipelineRun) -> None:
        result = await self._run(state, ["ruff", "--version"])
        if result.success:
            state.log(f"ruff detected: {result.stdout.strip()}")
            return
        state.log(result.stderr)
        state.log("ruff not found in PATH. Ensure the server image includes ruff.")
        raise ToolUnavailableError("ruff is required but missing.")

    async def _format(self, state: PipelineRun) -> None:
        result = await self._run(state, ["ruff", "format", "."])
        state.log(result.stdout)
        if not result.success:
            state.log(result.stderr)
            raise FormatFailedError()

    async def _lint_fix(self, state: PipelineRun) -> None:
        cmd = ["ruff", "check", ".", "--fix"]
        if state.input.unsafe_fixes:
            cmd.append("--unsafe-fixes")
        result = await self._run(state, cmd)
        state.log(result.stdout)
        if not result.success:
            # Remaining lint findings are expected here
            state.log(result.stderr)
        state.hidden_fixes = has_hidden_fixes(result.output)

    async def _secondary_format(self, state: PipelineRun) -> None:
        configured = await run_blocking(is_black_configured, state.repo_dir)
        if not configured:
            return

        state.log("black configuration detected; running black.")
        version = await self._run(state, [self.python_executable, "-m", "black", "--version"])
        if version.success:
            state.log(f"black detected: {version.stdout.strip()}")
        else:
            state.log("black not found. Installing black via pip.")
            install = await self._run(state, [self.python_executable, "-m", "pip", "install", "black"])
            if not install.success:
                state.log(install.stderr)
                logger.warning("Installing black failed; continuing without it")
                return

        result = await self._run(state, [self.python_executable, "-m", "black", "."])
        state.log(result.stdout)
        if not result.success:
            state.log(result.stderr)
            logger.warning(f"black exited with {result.returncode}; continuing")

    async def _commit_and_push(self, state: PipelineRun) -> None:
        status = await self._run_required(state, ["git", "status", "--porcelain"])
        if not status.stdout.strip():
            logger.info("No changes to commit")
            return

        await self._run_required(state, ["git", "add", "-A"])
        await self._run_required(state, ["git", "commit", "-m", state.input.commit_message])
        # Only ever the PR's own head branch, never forced
        await self._run_required(state, ["git", "push", "origin", f"HEAD:{state.input.head_ref}"])
        state.applied_fixes = True
        state.log("Applied fixes and pushed to the PR head branch.")
        logger.info(f"Pushed autofix commit to {state.input.head_repo_full_name}@{state.input.head_ref}")

    async def _verify(self, state: PipelineRun) -> None:
        format_check = await self._run(state, ["ruff", "format", "--check", "."])
        state.log(format_check.stdout)
        lint_check = await self._run(state, ["ruff", "check", "."])
        state.log(lint_check.stdout)

        state.verification_passed = format_check.success and lint_check.success
        if not state.verification_passed:
            state.log(format_check.stderr)
            state.log(lint_check.stderr)
        state.hidden_fixes = state.hidden_fixes or has_hidden_fixes(lint_check.output)

    def _build_result(self, state: PipelineRun) -> AutofixResult:
        if state.verification_passed:
            summary = SUMMARY_APPLIED if state.applied_fixes else SUMMARY_CLEAN
        else:
            summary = SUMMARY_FAILING

        if state.input.unsafe_fixes:
            summary = f"{summary} {UNSAFE_ENABLED_NOTE}"
        elif state.input.skip_reason:
            summary = f"{summary} {state.input.skip_reason}"
        elif state.hidden_fixes:
            summary = f"{summary} {HIDDEN_FIXES_NOTE}"

        return AutofixResult(
            check_conclusion="success" if state.verification_passed else "failure",
            autofix_conclusion="success",
            summary=summary,
            details="\n".join(state.logs),
            applied_fixes=state.applied_fixes,
            unsafe_fixes_used=state.input.unsafe_fixes,
            hidden_fixes_available=state.hidden_fixes,
        )
