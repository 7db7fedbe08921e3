"""ProgressPort — abstract interface for reporting pipeline progress."""

from abc import ABC, abstractmethod
from typing import Optional


class ProgressPort(ABC):
    @abstractmethod
    def report(
        self,
        run_id: str,
        stage: str,
        completed: int = 0,
        total: int = 0,
        detail: Optional[str] = None,
    ) -> None:
        """Report a stage transition or per-chunk progress within a stage.

        stage: preprocessing, planned, materializing, transcribing, assembled, reaped.
        """
