"""LogProgressAdapter — reports pipeline progress via logging."""

import logging
from typing import Optional

from ports.progress import ProgressPort

logger = logging.getLogger(__name__)


class LogProgressAdapter(ProgressPort):
    def report(
        self,
        run_id: str,
        stage: str,
        completed: int = 0,
        total: int = 0,
        detail: Optional[str] = None,
    ) -> None:
        msg = f"[{run_id}] {stage}"
        if total > 0:
            msg += f" {completed}/{total} ({completed / total:.0%})"
        if detail:
            msg += f" — {detail}"
        logger.info(msg)
