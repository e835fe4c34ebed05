from typing import Optional

from ..core.types import PriceData

# TCGplayer price variants in order of preference
TCGPLAYER_VARIANTS = ("normal", "holofoil", "reverseHolofoil")


def _first_market(tcg: Optional[dict]) -> Optional[float]:
    if not tcg:
        return None
    prices = tcg.get("prices") or {}
    for key in TCGPLAYER_VARIANTS:
        market = (prices.get(key) or {}).get("market")
        if market is not None:
            return float(market)
    return None


def _as_float(value) -> Optional[float]:
    return float(value) if value is not None else None


def map_price_blocks(card_json: dict) -> Optional[PriceData]:
    """Price fields of a catalog card payload; None when the card carries no price blocks."""
    tcg = card_json.get("tcgplayer")
    ckm = card_json.get("cardmarket")
    if not tcg and not ckm:
        return None

    ckm = ckm or {}
    ckm_prices = ckm.get("prices") or {}
    return PriceData(
        tcgplayer_market_usd=_first_market(tcg),
        cardmarket_trend_eur=_as_float(ckm_prices.get("trendPrice")),
        cardmarket_avg30_eur=_as_float(ckm_prices.get("avg30")),
        pricing_updatedAt_tcgplayer=(tcg or {}).get("updatedAt", ""),
        pricing_updatedAt_cardmarket=ckm.get("updatedAt", ""),
        price_sources=["pokemontcg.io"],
    )
