"""Identification session: runs attempts and escalates through scan stages.

One session holds the state of identifying a single card. ``process`` starts
over with a new capture; ``retry`` re-runs the last capture with the next,
more aggressive stage. Each call bumps a token; an attempt that finishes after
a newer call started leaves the state alone and reports itself superseded.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from ..capture.warp import CardCropper
from ..core.types import (
    ExtractedFields,
    IdentificationResult,
    PreprocessStrategy,
    QueryLayer,
    RawCapture,
    ScanStage,
    ScoredMatch,
    TextCandidate,
)
from ..match.planner import ALL_LAYERS, QueryPlanner, SearchOutcome
from ..ocr.extract import TextExtractor, merge_pools
from ..ocr.fields import extract_fields
from ..utils.config import settings
from ..utils.error_handler import (
    AmbiguousMatch,
    CaptureError,
    CardIdentifierError,
    CardNotFound,
    CatalogUnavailable,
    ErrorContext,
    MatchSelectionError,
    NoTextExtracted,
    OCRError,
    handle_error,
)
from ..utils.log import LoggerMixin
from .state import AttemptState


@dataclass(frozen=True)
class StagePlan:
    """What one stage re-runs: OCR strategies, query layers and whether the set is used."""

    strategies: Tuple[PreprocessStrategy, ...]
    layers: Tuple[QueryLayer, ...]
    use_set: bool = True


# hp_section re-reads the top-right HP box on its own
FULL_PIPELINE = StagePlan(
    strategies=(PreprocessStrategy.NORMAL, PreprocessStrategy.ENHANCED, PreprocessStrategy.HP_SECTION),
    layers=ALL_LAYERS,
)

STAGE_PLANS = {
    ScanStage.ENHANCED_TEXT: StagePlan(
        strategies=(PreprocessStrategy.ENHANCED, PreprocessStrategy.BRIGHTENED),
        layers=(QueryLayer.NAME, QueryLayer.NUMBER),
    ),
    ScanStage.NAME_SEARCH: StagePlan(
        strategies=(PreprocessStrategy.TOP_SECTION,),
        layers=(QueryLayer.NAME,),
    ),
    ScanStage.NUMBER_SEARCH: StagePlan(
        strategies=(PreprocessStrategy.NORMAL, PreprocessStrategy.FOCUSED),
        layers=(QueryLayer.NUMBER,),
        use_set=False,
    ),
    ScanStage.VISUAL_SEARCH: FULL_PIPELINE,
}


@dataclass
class AttemptOutcome:
    fields: Optional[ExtractedFields] = None
    search: Optional[SearchOutcome] = None
    error: Optional[CardIdentifierError] = None

    @property
    def matches(self) -> Tuple[ScoredMatch, ...]:
        return self.search.matches if self.search else ()

    @property
    def accepted_match(self) -> Optional[ScoredMatch]:
        """Top match, unless it only came from the HP layer."""
        if self.error is None and self.matches:
            return self.matches[0]
        return None


class IdentificationSession(LoggerMixin):
    """State machine over scan stages for one card."""

    def __init__(
        self,
        planner: QueryPlanner,
        extractor: Optional[TextExtractor] = None,
        cropper: Optional[CardCropper] = None,
        ocr_timeout_s: Optional[float] = None,
    ):
        self.planner = planner
        self.extractor = extractor or TextExtractor()
        self.cropper = cropper or CardCropper()
        self.ocr_timeout_s = ocr_timeout_s or settings.OCR_JOIN_TIMEOUT_S
        self._state = AttemptState()
        self._token = 0

    @property
    def state(self) -> AttemptState:
        return self._state

    def _next_token(self) -> int:
        self._token += 1
        return self._token

    def _is_current(self, token: int) -> bool:
        return token == self._token

    async def process(self, capture: RawCapture) -> IdentificationResult:
        """Identify a new capture from scratch."""
        token = self._next_token()
        self._state = AttemptState(stage=ScanStage.INITIAL, attempt_count=1, last_capture=capture)
        context = self.log_start("Identification", attempt=1, source=capture.source)

        outcome = await self._run_attempt(capture, FULL_PIPELINE)

        if not self._is_current(token):
            self.logger.info("Identification superseded", attempt=1)
            return self._stale_result(outcome, ScanStage.INITIAL)

        state = self._state
        accepted = outcome.accepted_match
        if accepted is not None:
            self._state = state.update(
                accepted=accepted.record,
                potential_matches=outcome.matches,
                selected_index=0,
                fields=outcome.fields,
            )
            self.log_success(context, card_id=accepted.record.card_id, score=accepted.score)
        else:
            self._state = state.update(
                stage=ScanStage.ENHANCED_TEXT,
                potential_matches=outcome.matches,
                fields=outcome.fields,
                error=outcome.error.message,
                error_type=type(outcome.error).__name__,
            )
            self.log_error(context, outcome.error, matches=len(outcome.matches))

        return self._state.to_result()

    async def retry(self) -> IdentificationResult:
        """Re-run the last capture with the current stage's strategy."""
        state = self._state
        if state.last_capture is None:
            error = CaptureError()
            self._state = state.update(error=error.message, error_type=type(error).__name__)
            return self._state.to_result()

        if state.stage == ScanStage.FAILED:
            self.logger.info("Retry after failure starts a fresh identification")
            return await self.process(state.last_capture)

        token = self._next_token()
        stage = ScanStage.ENHANCED_TEXT if state.stage == ScanStage.INITIAL else state.stage
        attempt = state.attempt_count + 1
        self._state = state = state.update(stage=stage, attempt_count=attempt)
        context = self.log_start("Identification retry", attempt=attempt, stage=stage.value)

        outcome = await self._run_attempt(state.last_capture, STAGE_PLANS[stage])

        if not self._is_current(token):
            self.logger.info("Identification retry superseded", attempt=attempt, stage=stage.value)
            return self._stale_result(outcome, stage)

        state = self._state
        accepted = outcome.accepted_match
        if accepted is not None:
            self._state = state.update(
                accepted=accepted.record,
                potential_matches=outcome.matches,
                selected_index=0,
                fields=outcome.fields,
                error=None,
                error_type=None,
            )
            self.log_success(context, card_id=accepted.record.card_id, score=accepted.score)
        else:
            self._state = state.update(
                stage=stage.next(),
                potential_matches=outcome.matches or state.potential_matches,
                fields=outcome.fields or state.fields,
                accepted=None,
                selected_index=None,
                error=outcome.error.message,
                error_type=type(outcome.error).__name__,
            )
            self.log_error(context, outcome.error, next_stage=self._state.stage.value)

        return self._state.to_result()

    def select_match(self, selection: Union[int, str]) -> IdentificationResult:
        """Accept one of the potential matches by index or card id."""
        matches = self._state.potential_matches
        index: Optional[int] = None
        if isinstance(selection, int) and not isinstance(selection, bool):
            if 0 <= selection < len(matches):
                index = selection
        else:
            index = next(
                (i for i, match in enumerate(matches) if match.record.card_id == selection), None
            )

        if index is None:
            raise MatchSelectionError(
                details={"selection": selection, "potential_matches": len(matches)}
            )

        self._state = self._state.update(
            accepted=matches[index].record,
            selected_index=index,
            error=None,
            error_type=None,
        )
        self.logger.info("Match selected", card_id=matches[index].record.card_id, index=index)
        return self._state.to_result()

    def reset(self) -> None:
        self._next_token()
        self._state = AttemptState()
        self.logger.debug("Session reset")

    def _stale_result(self, outcome: AttemptOutcome, stage: ScanStage) -> IdentificationResult:
        accepted = outcome.accepted_match
        return IdentificationResult(
            accepted=accepted.record if accepted else None,
            potential_matches=outcome.matches,
            error=outcome.error.message if outcome.error else None,
            error_type=type(outcome.error).__name__ if outcome.error else None,
            stage=stage,
            superseded=True,
        )

    async def _run_attempt(self, capture: RawCapture, plan: StagePlan) -> AttemptOutcome:
        """Crop, OCR, extract fields and search. Failures come back in ``error``."""
        outcome = AttemptOutcome()
        try:
            image = await asyncio.to_thread(self._crop, capture)
            pool = await self._read_text(image, plan.strategies)
            if not pool:
                raise NoTextExtracted(details={"strategies": [s.value for s in plan.strategies]})

            fields = extract_fields(pool)
            outcome.fields = fields
            if not plan.use_set:
                fields = fields.without("set")

            outcome.search = await self.planner.search(fields, plan.layers)
            outcome.error = self._search_error(outcome.search, fields)
        except CardIdentifierError as e:
            outcome.error = e
        return outcome

    def _crop(self, capture: RawCapture) -> np.ndarray:
        return self.cropper.detect_and_crop(capture.upright()).image

    async def _read_text(
        self, image: np.ndarray, strategies: Sequence[PreprocessStrategy]
    ) -> List[TextCandidate]:
        """Run OCR passes concurrently; passes still running at the deadline are dropped."""
        tasks = [
            asyncio.create_task(self.extractor.extract_async(image, strategy))
            for strategy in strategies
        ]
        done, pending = await asyncio.wait(tasks, timeout=self.ocr_timeout_s)
        for task in pending:
            task.cancel()
        if pending:
            self.logger.warning(
                "OCR passes timed out",
                timed_out=[s.value for s, t in zip(strategies, tasks) if t in pending],
            )

        pools = []
        failures = []
        for strategy, task in zip(strategies, tasks):
            if task not in done:
                continue
            error = task.exception()
            if error is None:
                pools.append(task.result())
                continue
            failures.append(error)
            handle_error(
                error,
                ErrorContext(
                    operation="ocr_pass",
                    module=__name__,
                    function="_read_text",
                    input_data={"strategy": strategy.value},
                ),
                self.logger,
                reraise=False,
            )

        # Nothing read and a pass broke: report why rather than "no text"
        if failures and not any(pools):
            first = failures[0]
            if isinstance(first, CardIdentifierError):
                raise first
            raise OCRError(str(first)) from first

        return merge_pools(pools)

    @staticmethod
    def _search_error(search: SearchOutcome, fields: ExtractedFields) -> Optional[CardIdentifierError]:
        if search.matches and search.layer != QueryLayer.HP:
            return None
        if search.matches:
            return AmbiguousMatch(
                f"Multiple cards found with {fields.hp} HP. Please select the correct card "
                "from the list or try scanning again.",
                details={"hp": fields.hp, "matches": len(search.matches)},
            )
        if search.all_unavailable:
            return CatalogUnavailable(details={"queries": search.queries})
        return CardNotFound(details={"queries": search.queries})
