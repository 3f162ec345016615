from collections import defaultdict
from typing import Sequence

from swipesound_core.types import Decision, DecisionRecord, FeedParams, GenreId, GenreStat

from .types import HistoryAnalysis


def genre_stats(records: Sequence[DecisionRecord]) -> dict[GenreId, GenreStat]:
    """Per-genre like/skip counts; untagged records are ignored."""
    counts: dict[GenreId, list[int]] = defaultdict(lambda: [0, 0])
    for r in records:
        if r.genre_id is None:
            continue
        if r.decision == Decision.ACCEPT:
            counts[r.genre_id][0] += 1
        else:
            counts[r.genre_id][1] += 1
    return {gid: GenreStat(likes=c[0], skips=c[1]) for gid, c in counts.items()}


def aversion_set(
    stats: dict[GenreId, GenreStat],
    *,
    min_samples: int = 3,
    skip_ratio: float = 0.8,
) -> set[GenreId]:
    return {
        gid
        for gid, st in stats.items()
        if st.total >= min_samples and st.skip_ratio >= skip_ratio
    }


def is_fatigued(
    records: Sequence[DecisionRecord],
    *,
    window: int = 10,
    min_rejects: int = 7,
) -> bool:
    # records are newest-first; tagged or not, every reject counts here
    recent = records[:window]
    rejects = sum(1 for r in recent if r.decision == Decision.REJECT)
    return rejects >= min_rejects


def analyze_history(
    records: Sequence[DecisionRecord],
    params: FeedParams | None = None,
) -> HistoryAnalysis:
    """
    Fold the newest-first history window into genre stats, the aversion set
    and the fatigue flag. Pure computation; never raises on short or empty
    history.
    """
    p = params or FeedParams()
    window = list(records[: p.history_window])
    stats = genre_stats(window)
    return HistoryAnalysis(
        stats=stats,
        aversion=aversion_set(
            stats,
            min_samples=p.aversion_min_samples,
            skip_ratio=p.aversion_skip_ratio,
        ),
        fatigued=is_fatigued(
            window, window=p.fatigue_window, min_rejects=p.fatigue_min_rejects
        ),
        analyzed=len(window),
    )
