"""
Authorization for unsafe fixes.

Unsafe fixes run only when all three hold, checked in this order:
the installation is on the Pro plan, the repository settings request them,
and the recorded enabler is verified live as a repository admin.  Any
failure to verify counts as "not an admin".
"""

from .github_client import GitHubClient
from .logger_config import get_logger
from .models import InstallationPlan, UnsafeFixDecision
from .settings_store import SettingsStore
from .utils import run_blocking

logger = get_logger(__name__)

ADMIN_SKIP_REASON = "unsafe fixes requested but not enabled by a repo admin; skipping"
ADMIN_PERMISSION = "admin"


class AuthorizationResolver:
    """Resolves whether unsafe fixes may run for a repository."""

    def __init__(self, client: GitHubClient, settings_store: SettingsStore):
        self.client = client
        self.settings_store = settings_store

    async def resolve(self, owner: str, repo: str) -> UnsafeFixDecision:
        record = await self.settings_store.load(owner, repo)
        repo_settings = record.settings

        if not repo_settings.enable_unsafe_fixes:
            return UnsafeFixDecision(requested=False)

        enabler = repo_settings.unsafe_fixes_enabled_by
        if enabler is None:
            # Attribution written now is only trusted from the next event on
            if await self.settings_store.backfill_attribution(owner, repo, record):
                logger.warning(f"Unsafe fixes in {owner}/{repo} had no attributed enabler; attribution recorded, skipping until the next event")
            else:
                logger.warning(f"Unsafe fixes requested in {owner}/{repo} without an attributed enabler")
            return UnsafeFixDecision(requested=True, admin_verified=False, skip_reason=ADMIN_SKIP_REASON)

        if await self.is_admin(owner, repo, enabler.login):
            return UnsafeFixDecision(requested=True, admin_verified=True)

        logger.warning(f"Unsafe fixes in {owner}/{repo} were enabled by {enabler.login}, who is not a verified admin")
        return UnsafeFixDecision(requested=True, admin_verified=False, skip_reason=ADMIN_SKIP_REASON)

    async def is_admin(self, owner: str, repo: str, login: str) -> bool:
        """Live permission lookup; lookup failures fail closed."""
        try:
            permission = await run_blocking(self.client.get_permission_level, owner, repo, login)
        except Exception as e:
            logger.warning(f"Admin lookup for {login} on {owner}/{repo} failed; treating as not admin: {e}")
            return False
        return permission == ADMIN_PERMISSION


def should_use_unsafe_fixes(plan: InstallationPlan, decision: UnsafeFixDecision) -> bool:
    """Final gate: pro plan AND requested AND admin verified."""
    return plan == InstallationPlan.PRO and decision.requested and decision.admin_verified
