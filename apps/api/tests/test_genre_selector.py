import random

import pytest
from swipesound_core.config import GENRE_TAXONOMY
from swipesound_discovery.genres import candidate_pool, select_genres

TAXONOMY = list(GENRE_TAXONOMY)


def test_no_prefs_not_fatigued_draws_from_taxonomy_minus_aversion(rng):
    picked = select_genres(taxonomy=TAXONOMY, aversion={132, 116}, rng=rng)
    assert len(picked) == 3
    assert len(set(picked)) == 3
    assert not {132, 116} & set(picked)
    assert set(picked) <= set(TAXONOMY)


def test_preferences_are_used_minus_aversion(rng):
    picked = select_genres(
        taxonomy=TAXONOMY, preferences={132, 152}, aversion={132}, rng=rng
    )
    assert picked == [152]


def test_preferences_fully_averse_fall_back_to_taxonomy_minus_aversion():
    name, pool = candidate_pool(
        taxonomy=TAXONOMY, preferences={132}, aversion={132}, fatigued=False
    )
    assert name == "taxonomy_minus_aversion"
    assert pool == [g for g in TAXONOMY if g != 132]


def test_fatigue_explores_outside_preferences_and_aversion(rng):
    prefs = {132, 116}
    picked = select_genres(
        taxonomy=TAXONOMY, preferences=prefs, aversion={152}, fatigued=True, rng=rng
    )
    assert picked
    assert not (prefs | {152}) & set(picked)


def test_fatigue_with_everything_covered_falls_back_to_taxonomy_minus_aversion():
    prefs = set(TAXONOMY) - {106}
    name, pool = candidate_pool(
        taxonomy=TAXONOMY, preferences=prefs, aversion={106}, fatigued=True
    )
    assert name == "taxonomy_minus_aversion"
    assert set(pool) == prefs


def test_every_genre_averse_still_selects_from_full_taxonomy(rng):
    picked = select_genres(
        taxonomy=TAXONOMY, preferences=set(TAXONOMY), aversion=set(TAXONOMY), rng=rng
    )
    assert len(picked) == 3
    assert set(picked) <= set(TAXONOMY)


@pytest.mark.parametrize("fatigued", [True, False])
def test_selection_never_empty_for_nonempty_taxonomy(fatigued):
    r = random.Random(7)
    for _ in range(50):
        prefs = set(r.sample(TAXONOMY, r.randint(0, len(TAXONOMY))))
        aversion = set(r.sample(TAXONOMY, r.randint(0, len(TAXONOMY))))
        picked = select_genres(
            taxonomy=TAXONOMY,
            preferences=prefs,
            aversion=aversion,
            fatigued=fatigued,
            rng=r,
        )
        assert 1 <= len(picked) <= 3


def test_fewer_than_three_available_selects_all(rng):
    picked = select_genres(taxonomy=[132, 116], rng=rng)
    assert sorted(picked) == [116, 132]


def test_selection_is_deterministic_for_seeded_rng():
    a = select_genres(taxonomy=TAXONOMY, rng=random.Random(42))
    b = select_genres(taxonomy=TAXONOMY, rng=random.Random(42))
    assert a == b


def test_empty_taxonomy_selects_nothing(rng):
    assert select_genres(taxonomy=[], rng=rng) == []
