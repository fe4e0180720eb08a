"""Usage records in JSON Lines format.

Exactly one record is emitted per inbound event.  Records always go to the
application log; when a path is configured they are also appended, one JSON
object per line, to that file.

Example entry::

    {"timestamp": "2026-01-05T10:30:45.123+00:00", "repo": "octo-org/demo",
     "pull_number": 7, "head_sha": "abc123", "action": "opened",
     "installation_id": 42, "plan": "pro", "outcome": "completed",
     "unsafe_fixes_used": false, "applied_fixes": true}
"""

import json
import threading
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .logger_config import get_logger
from .models import UsageRecord

logger = get_logger(__name__)

IGNORED_OUTCOME = "ignored"


class UsageLogger:
    """Writes usage records to the log and an optional JSON Lines file."""

    def __init__(self, log_path: Optional[Union[str, Path]] = None):
        self.log_path = Path(log_path) if log_path else None
        self._lock = threading.Lock()
        if self.log_path is not None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def _to_entry(self, record: UsageRecord) -> Dict[str, Any]:
        entry = asdict(record)
        extra = entry.pop("extra") or {}
        entry.update(extra)
        return {"timestamp": datetime.now(timezone.utc).isoformat(), **entry}

    def emit(self, record: UsageRecord) -> Dict[str, Any]:
        entry = self._to_entry(record)
        line = json.dumps(entry, ensure_ascii=False)

        # Ignored deliveries stay at trace level and out of the usage file
        if record.outcome == IGNORED_OUTCOME:
            logger.trace(f"usage {line}")
            return entry

        logger.info(f"usage {line}")
        if self.log_path is not None:
            try:
                with self._lock, open(self.log_path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
            except OSError as e:
                logger.error(f"Failed to write usage record to {self.log_path}: {e}")
        return entry
