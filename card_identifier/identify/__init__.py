"""Identification state machine."""

from .session import STAGE_PLANS, IdentificationSession, StagePlan
from .state import AttemptState

__all__ = ["IdentificationSession", "AttemptState", "StagePlan", "STAGE_PLANS"]
