"""
Event orchestrator.

Drives one pull request event through

    received -> validated -> checks-opened -> diff-inspected
             -> [skipped | authorized -> pipeline-run] -> finalized

and ends in ``completed`` or ``error``.  This is the only place that catches
failures broadly; everything below raises typed errors.  Both check runs,
once opened, always reach a terminal conclusion, and exactly one usage record
is emitted per event.
"""

import time
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol

from .authorization import AuthorizationResolver, should_use_unsafe_fixes
from .autofix_runner import AutofixInput, AutofixPipeline
from .check_runs import CheckRunLifecycle
from .comments import CommentLedger, build_error_comment, build_result_comment
from .error_classifier import classify_error
from .events import (
    SUPPORTED_PULL_REQUEST_ACTIONS,
    CheckSuiteEvent,
    PullRequestEvent,
    contains_target_changes,
    extract_pull_request_context,
    parse_event,
)
from .exceptions import CheckRunSetupError, InvalidPayloadError
from .github_client import GitHubClient
from .logger_config import get_logger
from .models import CHECK_TITLE, TARGET_SUFFIX, CheckOutput, CheckRunName, InstallationPlan, PullRequestContext, UsageRecord
from .plan import PlanResolver
from .security_utils import redact_string
from .settings_store import SettingsStore
from .usage_logger import UsageLogger
from .utils import run_blocking

logger = get_logger(__name__)

SKIPPED_SUMMARY = "Skipped: no Python changes."


class EventState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    CHECKS_OPENED = "checks-opened"
    DIFF_INSPECTED = "diff-inspected"
    SKIPPED = "skipped"
    AUTHORIZED = "authorized"
    PIPELINE_RUN = "pipeline-run"
    FINALIZED = "finalized"
    COMPLETED = "completed"
    ERROR = "error"


class InstallationAuth(Protocol):
    def get_installation_token(self, installation_id: int) -> str: ...


class EventOrchestrator:
    """Processes inbound webhook events.

    Process-wide state (plan allow-list, comment ledger) is injected so each
    test can build a fresh orchestrator.
    """

    def __init__(
        self,
        app_auth: InstallationAuth,
        plan_resolver: PlanResolver,
        ledger: CommentLedger,
        usage_logger: UsageLogger,
        pipeline: AutofixPipeline,
        client_factory: Callable[[str], GitHubClient] = GitHubClient,
        docs_url: Optional[str] = None,
        troubleshooting_url: str = "",
    ):
        self.app_auth = app_auth
        self.plan_resolver = plan_resolver
        self.ledger = ledger
        self.usage_logger = usage_logger
        self.pipeline = pipeline
        self.client_factory = client_factory
        self.docs_url = docs_url
        self.troubleshooting_url = troubleshooting_url

    async def handle_event(self, event_type: Optional[str], payload: Dict[str, Any]) -> UsageRecord:
        """Handle one delivery.  Never raises."""
        action = payload.get("action") if isinstance(payload, dict) else None
        record = UsageRecord(action=action if isinstance(action, str) else "", outcome=EventState.RECEIVED.value)
        started = time.monotonic()
        try:
            await self._dispatch(event_type, payload, record)
        except Exception as e:
            # Failures after validation are handled in _process; this guards the parsing steps
            record.outcome = EventState.ERROR.value
            logger.error(f"Unhandled failure for {event_type} event: {redact_string(str(e))}")
        finally:
            record.extra["duration_ms"] = int((time.monotonic() - started) * 1000)
            self.usage_logger.emit(record)
        return record

    async def _dispatch(self, event_type: Optional[str], payload: Dict[str, Any], record: UsageRecord) -> None:
        # Out-of-scope actions are dropped before any validation
        if event_type == "pull_request" and record.action not in SUPPORTED_PULL_REQUEST_ACTIONS:
            logger.trace(f"Ignoring pull_request action {record.action or None}")
            record.outcome = "ignored"
            return

        try:
            event = parse_event(event_type, payload)
        except InvalidPayloadError as e:
            logger.warning(f"Rejected {event_type} payload: {e}")
            record.outcome = "invalid"
            return

        if isinstance(event, CheckSuiteEvent):
            logger.trace(f"Ignoring check_suite event (action={event.action})")
            record.outcome = "ignored"
            return
        if not isinstance(event, PullRequestEvent):
            logger.trace(f"Ignoring unsupported event type {event_type}")
            record.outcome = "ignored"
            return
        try:
            context = extract_pull_request_context(event)
        except InvalidPayloadError as e:
            logger.warning(f"pull_request payload missing required fields (action={event.action}): {', '.join(e.missing)}")
            record.outcome = "invalid"
            return

        record.repo = context.full_name
        record.pull_number = context.pull_number
        record.head_sha = context.head_sha

        installation_id = event.installation_id
        if not installation_id:
            logger.warning(f"Missing installation id for pull_request event (action={event.action}) on {context.dedup_key}")
            record.outcome = "invalid"
            return

        plan = self.plan_resolver.plan_for(installation_id)
        record.installation_id = installation_id
        record.plan = plan.value
        logger.info(f"Processing {context.dedup_key}@{context.head_sha[:8]} (action={event.action}, plan={plan.value})")

        await self._process(context, installation_id, plan, record)

    async def _process(self, context: PullRequestContext, installation_id: int, plan: InstallationPlan, record: UsageRecord) -> None:
        state = EventState.VALIDATED
        client: Optional[GitHubClient] = None
        lifecycle: Optional[CheckRunLifecycle] = None

        try:
            token = await run_blocking(self.app_auth.get_installation_token, installation_id)
            client = self.client_factory(token)

            lifecycle = CheckRunLifecycle(client, context)
            await lifecycle.open_all()
            state = EventState.CHECKS_OPENED

            files = await run_blocking(client.list_pull_request_files, context.owner, context.repo, context.pull_number)
            state = EventState.DIFF_INSPECTED

            if not contains_target_changes(files, TARGET_SUFFIX):
                state = EventState.SKIPPED
                output = CheckOutput(title=CHECK_TITLE, summary=SKIPPED_SUMMARY, text=SKIPPED_SUMMARY)
                await lifecycle.finalize_all({CheckRunName.PRIMARY: "success", CheckRunName.AUTOFIX: "success"}, output)
                record.outcome = EventState.SKIPPED.value
                logger.info(f"{context.dedup_key}: no Python changes; checks passed without running autofix")
                return

            resolver = AuthorizationResolver(client, SettingsStore(client))
            decision = await resolver.resolve(context.owner, context.repo)
            unsafe_fixes = should_use_unsafe_fixes(plan, decision)
            state = EventState.AUTHORIZED

            result = await self.pipeline.run(
                AutofixInput(
                    token=token,
                    head_repo_full_name=context.head_repo_full_name,
                    head_ref=context.head_ref,
                    head_sha=context.head_sha,
                    unsafe_fixes=unsafe_fixes,
                    skip_reason=decision.skip_reason,
                )
            )
            state = EventState.PIPELINE_RUN
            record.applied_fixes = result.applied_fixes
            record.unsafe_fixes_used = result.unsafe_fixes_used

            output = CheckOutput(title=CHECK_TITLE, summary=result.summary, text=result.details)
            await lifecycle.finalize_all(
                {CheckRunName.PRIMARY: result.check_conclusion, CheckRunName.AUTOFIX: result.autofix_conclusion},
                output,
            )
            state = EventState.FINALIZED

            if result.applied_fixes or result.check_conclusion == "failure":
                await self._post_comment(client, context, build_result_comment(result.summary, context.html_url, self.docs_url))

            record.outcome = EventState.COMPLETED.value
            logger.info(f"{context.dedup_key}: autofix completed (check={result.check_conclusion}, applied={result.applied_fixes})")
        except Exception as e:
            await self._handle_failure(e, state, context, client, lifecycle, record)

    async def _handle_failure(
        self,
        error: Exception,
        state: EventState,
        context: PullRequestContext,
        client: Optional[GitHubClient],
        lifecycle: Optional[CheckRunLifecycle],
        record: UsageRecord,
    ) -> None:
        classification = classify_error(error, self.troubleshooting_url)
        record.outcome = "check_setup_failed" if isinstance(error, CheckRunSetupError) else EventState.ERROR.value
        logger.error(f"pull_request handler failed for {context.dedup_key} in state {state.value}: " f"{classification.reason} ({redact_string(str(error))})")

        if lifecycle is not None:
            output = CheckOutput(title=CHECK_TITLE, summary=classification.message, text=classification.details)
            try:
                await lifecycle.finalize_all({CheckRunName.PRIMARY: "failure", CheckRunName.AUTOFIX: "neutral"}, output)
            except Exception as finalize_error:
                logger.error(f"Failed to finalize check runs for {context.dedup_key}: {redact_string(str(finalize_error))}")

        if client is not None:
            await self._post_comment(client, context, build_error_comment(classification.message, self.docs_url))

    async def _post_comment(self, client: GitHubClient, context: PullRequestContext, body: str) -> bool:
        """Post at most one comment per (pull request, head commit); best effort."""
        if not self.ledger.claim(context):
            logger.info(f"Comment already posted for {context.dedup_key}@{context.head_sha[:8]}; skipping")
            return False
        try:
            await run_blocking(client.create_pr_comment, context.owner, context.repo, context.pull_number, body)
            return True
        except Exception as e:
            self.ledger.release(context)
            logger.error(f"Failed to post comment on {context.dedup_key}: {redact_string(str(e))}")
            return False
