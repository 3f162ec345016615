import random
from typing import Callable, Iterable, Sequence

from swipesound_core.types import GenreId

PoolFn = Callable[[], list[GenreId]]


def _minus(base: Iterable[GenreId], *excluded: set[GenreId]) -> list[GenreId]:
    drop: set[GenreId] = set().union(*excluded)
    return [g for g in base if g not in drop]


def pool_chain(
    *,
    taxonomy: Sequence[GenreId],
    preferences: set[GenreId],
    aversion: set[GenreId],
    fatigued: bool,
) -> list[tuple[str, PoolFn]]:
    """
    Ordered candidate-pool computations; the first non-empty one wins.
    The full taxonomy always closes the chain.
    """
    prefs = sorted(preferences)
    chain: list[tuple[str, PoolFn]] = []
    if fatigued:
        chain.append(("explore", lambda: _minus(taxonomy, preferences, aversion)))
    elif preferences:
        chain.append(("preferred", lambda: _minus(prefs, aversion)))
    chain.append(("taxonomy_minus_aversion", lambda: _minus(taxonomy, aversion)))
    chain.append(("taxonomy", lambda: list(taxonomy)))
    return chain


def candidate_pool(
    *,
    taxonomy: Sequence[GenreId],
    preferences: set[GenreId],
    aversion: set[GenreId],
    fatigued: bool,
) -> tuple[str, list[GenreId]]:
    for name, fn in pool_chain(
        taxonomy=taxonomy,
        preferences=preferences,
        aversion=aversion,
        fatigued=fatigued,
    ):
        pool = fn()
        if pool:
            return name, pool
    return "empty", []


def select_genres(
    *,
    taxonomy: Sequence[GenreId],
    preferences: Iterable[GenreId] = (),
    aversion: Iterable[GenreId] = (),
    fatigued: bool = False,
    k: int = 3,
    rng: random.Random | None = None,
) -> list[GenreId]:
    """Draw up to ``k`` distinct genre ids (shuffle-then-take) from the winning pool."""
    rng = rng or random.Random()
    _, pool = candidate_pool(
        taxonomy=list(dict.fromkeys(taxonomy)),
        preferences=set(preferences),
        aversion=set(aversion),
        fatigued=fatigued,
    )
    picked = list(pool)
    rng.shuffle(picked)
    return picked[:k]
