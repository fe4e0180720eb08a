"""Installation plan lookup (free vs. pro)."""

from typing import Iterable, Optional

from .config import Settings
from .logger_config import get_logger
from .models import InstallationPlan

logger = get_logger(__name__)

# The plan override is honored only in this environment
OVERRIDE_ENVIRONMENT = "test"


class PlanResolver:
    """Derives the plan of an installation from a static allow-list.

    Constructed once at process start and injected into the orchestrator so
    tests can supply their own allow-list.
    """

    def __init__(self, pro_installation_ids: Iterable[int], override: Optional[str] = None, environment: str = "production"):
        self.pro_installation_ids = frozenset(pro_installation_ids)
        self.override: Optional[InstallationPlan] = None

        if override:
            if environment != OVERRIDE_ENVIRONMENT:
                logger.warning(f"PLAN_OVERRIDE is ignored outside APP_ENV={OVERRIDE_ENVIRONMENT} (current: {environment})")
            else:
                try:
                    self.override = InstallationPlan(override.strip().lower())
                    logger.info(f"Plan override active: every installation resolves to {self.override.value}")
                except ValueError:
                    logger.warning(f"Ignoring unknown PLAN_OVERRIDE value: {override!r}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "PlanResolver":
        return cls(settings.parse_pro_installation_ids(), override=settings.plan_override, environment=settings.app_env)

    def plan_for(self, installation_id: int) -> InstallationPlan:
        if self.override is not None:
            return self.override
        return InstallationPlan.PRO if installation_id in self.pro_installation_ids else InstallationPlan.FREE
