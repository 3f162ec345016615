import random
from typing import Sequence

from swipesound_core.types import Candidate


def mix_feed(
    expansion_pool: Sequence[Candidate],
    chart_pool: Sequence[Candidate],
    rng: random.Random | None = None,
) -> list[Candidate]:
    """
    Expansion pool then chart pool, fully shuffled. Items present in both
    pools are kept twice.
    """
    rng = rng or random.Random()
    feed = [*expansion_pool, *chart_pool]
    rng.shuffle(feed)
    return feed
