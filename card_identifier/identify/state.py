"""Immutable per-session attempt state."""

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from ..core.types import (
    CatalogRecord,
    ExtractedFields,
    IdentificationResult,
    RawCapture,
    ScanStage,
    ScoredMatch,
)


@dataclass(frozen=True)
class AttemptState:
    stage: ScanStage = ScanStage.INITIAL
    attempt_count: int = 0
    last_capture: Optional[RawCapture] = None
    accepted: Optional[CatalogRecord] = None
    potential_matches: Tuple[ScoredMatch, ...] = ()
    selected_index: Optional[int] = None
    fields: Optional[ExtractedFields] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    def update(self, **changes) -> "AttemptState":
        """Copy with ``changes`` applied; stages may only move forward."""
        stage = changes.get("stage")
        if stage is not None and not _is_forward(self.stage, stage):
            raise ValueError(f"Stage cannot move from {self.stage.value} to {stage.value}")
        return replace(self, **changes)

    def to_result(self, superseded: bool = False) -> IdentificationResult:
        return IdentificationResult(
            accepted=self.accepted,
            potential_matches=self.potential_matches,
            error=self.error,
            error_type=self.error_type,
            stage=self.stage,
            superseded=superseded,
        )


def _is_forward(current: ScanStage, target: ScanStage) -> bool:
    order = list(ScanStage)
    return order.index(target) >= order.index(current)
