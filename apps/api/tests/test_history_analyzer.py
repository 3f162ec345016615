from swipesound_core.types import FeedParams
from swipesound_discovery.history import aversion_set, analyze_history, genre_stats, is_fatigued

from conftest import make_records


def test_empty_history_yields_neutral_analysis():
    analysis = analyze_history([])
    assert analysis.stats == {}
    assert analysis.aversion == set()
    assert analysis.fatigued is False
    assert analysis.analyzed == 0


def test_stats_count_only_tagged_records():
    records = make_records(
        [
            ("accept", 132),
            ("reject", 132),
            ("reject", None),
            ("accept", 116),
            ("reject", None),
        ]
    )
    stats = genre_stats(records)
    assert sum(s.total for s in stats.values()) == 3
    assert stats[132].likes == 1 and stats[132].skips == 1
    assert stats[116].likes == 1 and stats[116].skips == 0


def test_window_is_capped_at_twenty_newest():
    # 20 newest are all accepts on 132, older tail is rejects on 116
    entries = [("accept", 132)] * 20 + [("reject", 116)] * 10
    analysis = analyze_history(make_records(entries))
    assert analysis.analyzed == 20
    assert 116 not in analysis.stats
    assert analysis.stats[132].likes == 20


def test_two_skips_never_enter_aversion():
    records = make_records([("reject", 152), ("reject", 152)])
    assert aversion_set(genre_stats(records)) == set()


def test_aversion_requires_ratio_and_floor():
    records = make_records(
        [("reject", 152)] * 3
        + [("reject", 113)] * 3
        + [("accept", 113)]
        + [("reject", 116)] * 4
        + [("accept", 116)]
    )
    # 152: 3/3, 113: 3/4 = 0.75, 116: 4/5 = 0.8
    assert aversion_set(genre_stats(records)) == {152, 116}


def test_fatigue_boundary_six_vs_seven_rejects():
    six = make_records([("reject", None)] * 6 + [("accept", None)] * 4)
    seven = make_records([("reject", None)] * 7 + [("accept", None)] * 3)
    assert is_fatigued(six) is False
    assert is_fatigued(seven) is True


def test_fatigue_only_looks_at_newest_ten():
    entries = [("accept", 132)] * 10 + [("reject", 132)] * 10
    assert analyze_history(make_records(entries)).fatigued is False


def test_rejecting_streak_on_one_genre_is_fatigue_and_aversion():
    entries = [("reject", 132)] * 8 + [("accept", 132)] * 2
    analysis = analyze_history(make_records(entries))
    assert analysis.fatigued is True
    assert analysis.aversion == {132}
    assert analysis.stats[132].skip_ratio == 0.8


def test_thresholds_are_tunable():
    params = FeedParams(aversion_min_samples=2, fatigue_window=4, fatigue_min_rejects=2)
    analysis = analyze_history(
        make_records([("reject", 152), ("reject", 152), ("accept", None)]), params
    )
    assert analysis.aversion == {152}
    assert analysis.fatigued is True
