"""Resolve package: the Pokemon TCG catalog client."""

from .poketcg import PokemonTCGClient

__all__ = ["PokemonTCGClient"]
