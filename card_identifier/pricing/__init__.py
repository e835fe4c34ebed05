"""Pricing package for Pokemon card market prices."""

from ..core.types import PriceData
from .poketcg_prices import map_price_blocks

__all__ = ["PriceData", "map_price_blocks"]
