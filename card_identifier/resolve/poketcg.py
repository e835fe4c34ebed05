"""Pokemon TCG API client for catalog search."""

import asyncio
from typing import Any, Dict, Optional

import aiohttp

from ..core.constants import BACKOFF_S, CATALOG_PAGE_SIZE, RATE_LIMIT_INTERVAL_S, RETRYABLE_STATUS
from ..core.types import CatalogPage, CatalogRecord
from ..pricing.poketcg_prices import map_price_blocks
from ..utils.config import settings
from ..utils.error_handler import CatalogUnavailable
from ..utils.log import LoggerMixin

# Malformed query or unknown id: an empty answer, not an outage
EMPTY_RESULT_STATUS = (400, 404)


class PokemonTCGClient(LoggerMixin):
    """Async client for the Pokemon TCG catalog.

    Use as ``async with PokemonTCGClient() as client`` or call ``close()``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        min_request_interval: float = RATE_LIMIT_INTERVAL_S,
    ):
        self.api_key = api_key if api_key is not None else settings.POKEMON_TCG_API_KEY
        self.base_url = (base_url or settings.POKEMON_TCG_BASE_URL).rstrip("/")
        self.timeout_s = timeout_s or settings.CATALOG_TIMEOUT_S
        self.min_request_interval = min_request_interval
        self.session: Optional[aiohttp.ClientSession] = None
        self.last_request_time = 0.0

    async def __aenter__(self) -> "PokemonTCGClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _ensure_session(self) -> None:
        """Ensure aiohttp session exists."""
        if self.session is None or self.session.closed:
            headers = {"X-Api-Key": self.api_key} if self.api_key else {}
            self.session = aiohttp.ClientSession(
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout_s),
            )

    async def _rate_limit(self) -> None:
        """Apply rate limiting between requests."""
        loop = asyncio.get_running_loop()
        time_since_last = loop.time() - self.last_request_time

        if time_since_last < self.min_request_interval:
            await asyncio.sleep(self.min_request_interval - time_since_last)

        self.last_request_time = loop.time()

    async def _request_with_backoff(
        self, url: str, params: Optional[Dict] = None
    ) -> Optional[Dict[str, Any]]:
        """GET with backoff on retryable statuses, timeouts and connection errors.

        Returns None for 400/404.

        Raises:
            CatalogUnavailable: when every attempt failed
        """
        await self._ensure_session()
        await self._rate_limit()

        last_error = "no attempt made"
        for attempt, delay in enumerate([0.0, *BACKOFF_S]):
            if delay > 0:
                await asyncio.sleep(delay)

            try:
                async with self.session.get(url, params=params) as response:
                    if response.status in EMPTY_RESULT_STATUS:
                        self.logger.debug("Catalog returned no result", url=url, status=response.status)
                        return None
                    if response.status in RETRYABLE_STATUS:
                        last_error = f"HTTP {response.status}"
                        self.logger.warning(
                            "Retryable catalog status", url=url, status=response.status, attempt=attempt
                        )
                        continue
                    response.raise_for_status()
                    return await response.json()
            except aiohttp.ClientResponseError as e:
                last_error = f"HTTP {e.status}"
                if e.status not in RETRYABLE_STATUS:
                    break
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = str(e) or type(e).__name__
                self.logger.warning(
                    "Catalog request failed", url=url, error=last_error, attempt=attempt
                )

        raise CatalogUnavailable(details={"url": url, "params": params, "error": last_error})

    def _parse_card_data(self, card_data: Dict[str, Any]) -> Optional[CatalogRecord]:
        """Parse raw card data into a CatalogRecord; None if required fields are missing."""
        try:
            card_set = card_data.get("set") or {}
            printed_total = card_set.get("printedTotal")
            return CatalogRecord(
                card_id=card_data["id"],
                name=card_data["name"],
                number=str(card_data.get("number", "")),
                set_id=card_set.get("id", ""),
                set_name=card_set.get("name", ""),
                set_release_date=card_set.get("releaseDate"),
                set_ptcgo_code=card_set.get("ptcgoCode"),
                set_printed_total=int(printed_total) if printed_total is not None else None,
                hp=card_data.get("hp"),
                rarity=card_data.get("rarity"),
                images=card_data.get("images") or {},
                prices=map_price_blocks(card_data),
            )
        except (KeyError, TypeError, ValueError):
            self.logger.debug("Skipping malformed catalog card", card_id=card_data.get("id"))
            return None

    async def search_cards(
        self, query: str, page: int = 1, page_size: int = CATALOG_PAGE_SIZE
    ) -> CatalogPage:
        """Run a catalog query (Lucene-like ``name:"Pikachu" number:25`` syntax)."""
        url = f"{self.base_url}/cards"
        params = {"q": query, "page": page, "pageSize": page_size}

        payload = await self._request_with_backoff(url, params)
        if not payload:
            return CatalogPage(records=[], total_count=0)

        records = []
        for card_data in (payload.get("data") or [])[:page_size]:
            record = self._parse_card_data(card_data)
            if record:
                records.append(record)

        total = payload.get("totalCount", len(records))
        self.logger.debug("Catalog search", query=query, results=len(records), total=total)
        return CatalogPage(records=records, total_count=int(total))

    async def get_card(self, card_id: str) -> Optional[CatalogRecord]:
        payload = await self._request_with_backoff(f"{self.base_url}/cards/{card_id}")
        data = (payload or {}).get("data")
        return self._parse_card_data(data) if data else None

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None
