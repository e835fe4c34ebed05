"""
Match module: layered catalog queries and relevance scoring.
"""

from .planner import ALL_LAYERS, CatalogQuery, QueryPlanner, SearchOutcome, build_queries
from .score import DEFAULT_WEIGHTS, ScoreWeights, score_record

__all__ = [
    "ALL_LAYERS",
    "CatalogQuery",
    "QueryPlanner",
    "SearchOutcome",
    "build_queries",
    "DEFAULT_WEIGHTS",
    "ScoreWeights",
    "score_record",
]
