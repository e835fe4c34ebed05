"""Layered catalog search for extracted card fields.

Layers run in a fixed order (combined, name, number, hp) and the first layer
that returns anything wins. Within a layer, queries go from most to least
specific. A catalog outage on one query only skips that query.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from ..core.constants import CATALOG_PAGE_SIZE, CATALOG_WIDE_PAGE_SIZE, SET_ABBREVIATIONS
from ..core.types import CatalogPage, ExtractedFields, QueryLayer, ScoredMatch
from ..ocr.regexes import collector_numerator
from ..utils.error_handler import CatalogUnavailable
from ..utils.log import LoggerMixin
from .score import DEFAULT_WEIGHTS, ScoreWeights, clean_name, rank, score_record

ALL_LAYERS: Tuple[QueryLayer, ...] = (
    QueryLayer.COMBINED,
    QueryLayer.NAME,
    QueryLayer.NUMBER,
    QueryLayer.HP,
)


class CatalogSearch(Protocol):
    async def search_cards(self, query: str, page: int = 1, page_size: int = CATALOG_PAGE_SIZE) -> CatalogPage:
        ...


@dataclass(frozen=True)
class CatalogQuery:
    text: str
    page_size: int = CATALOG_PAGE_SIZE
    token_query: bool = False


@dataclass
class SearchOutcome:
    matches: Tuple[ScoredMatch, ...] = ()
    layer: Optional[QueryLayer] = None
    queries: List[str] = field(default_factory=list)
    unavailable: int = 0
    attempted: int = 0

    @property
    def all_unavailable(self) -> bool:
        """Every query failed on connectivity, so emptiness says nothing about the card."""
        return self.attempted > 0 and self.unavailable == self.attempted


def _set_clause(card_set: Optional[str]) -> str:
    # Abbreviations prefix a series of set ids ("sv" -> sv1, sv2, ...) or are a ptcgo code
    if not card_set:
        return ""
    abbr = card_set.strip().upper()
    if abbr in SET_ABBREVIATIONS:
        return f" (set.id:{abbr.lower()}* OR set.ptcgoCode:{abbr})"
    set_name = card_set.replace('"', "").strip()
    return f' set.name:"{set_name}"' if set_name else ""


def build_queries(fields: ExtractedFields, layer: QueryLayer) -> List[CatalogQuery]:
    """Catalog queries for one layer, most specific first. Empty if the layer lacks inputs."""
    name = clean_name(fields.name) if fields.name else ""
    number = collector_numerator(fields.number) if fields.number else ""

    if layer == QueryLayer.COMBINED:
        if not (name and number):
            return []
        return [CatalogQuery(f'name:"{name}" number:{number}{_set_clause(fields.set)}')]

    if layer == QueryLayer.NAME:
        if not name:
            return []
        queries = [
            CatalogQuery(f'name:"{name}"'),
            CatalogQuery(f"name:*{name.replace(' ', '*')}*", page_size=CATALOG_WIDE_PAGE_SIZE),
        ]
        tokens = name.split()
        if len(tokens) > 1:
            queries.append(
                CatalogQuery(f"name:*{tokens[0]}*", page_size=CATALOG_WIDE_PAGE_SIZE, token_query=True)
            )
        return queries

    if layer == QueryLayer.NUMBER:
        if not number:
            return []
        queries = []
        set_clause = _set_clause(fields.set)
        if set_clause:
            queries.append(CatalogQuery(f"number:{number}{set_clause}"))
        queries.append(CatalogQuery(f"number:{number}"))
        return queries

    if layer == QueryLayer.HP:
        if not fields.hp:
            return []
        return [CatalogQuery(f"hp:{fields.hp}", page_size=CATALOG_WIDE_PAGE_SIZE)]

    raise ValueError(f"Unknown query layer: {layer}")


class QueryPlanner(LoggerMixin):
    """Turns extracted fields into ranked catalog matches."""

    def __init__(
        self,
        catalog: CatalogSearch,
        weights: ScoreWeights = DEFAULT_WEIGHTS,
        today: Callable[[], date] = date.today,
    ):
        self.catalog = catalog
        self.weights = weights
        self.today = today

    async def search(
        self, fields: ExtractedFields, layers: Sequence[QueryLayer] = ALL_LAYERS
    ) -> SearchOutcome:
        """Run layers in order and return the first non-empty ranked result."""
        outcome = SearchOutcome()
        context = self.log_start(
            "Catalog search", layers=[QueryLayer(layer).value for layer in layers], **fields.as_dict()
        )

        for layer in ALL_LAYERS:
            if layer not in layers:
                continue
            for query in build_queries(fields, layer):
                outcome.attempted += 1
                outcome.queries.append(query.text)
                try:
                    page = await self.catalog.search_cards(query.text, page=1, page_size=query.page_size)
                except CatalogUnavailable as e:
                    outcome.unavailable += 1
                    self.logger.warning("Catalog query unavailable", query=query.text, error=e.message)
                    continue

                if not page.records:
                    continue

                today = self.today()
                outcome.matches = tuple(
                    rank(
                        ScoredMatch(
                            record=record,
                            score=score_record(
                                record,
                                fields,
                                layer,
                                today,
                                token_query=query.token_query,
                                weights=self.weights,
                            ),
                            layer=layer,
                        )
                        for record in page.records
                    )
                )
                outcome.layer = layer
                self.log_success(context, layer=layer.value, matches=len(outcome.matches))
                return outcome

        self.log_success(
            context, layer=None, matches=0, unavailable=outcome.unavailable, attempted=outcome.attempted
        )
        return outcome
