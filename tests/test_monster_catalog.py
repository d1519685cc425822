"""Tests for the monster catalog and weighted selection."""

import random
from collections import Counter

import pytest

from monstervault.models.failure import NotFoundError
from monstervault.models.monster import Rarity
from monstervault.services.monster_catalog import (
    MonsterCatalog,
    build_templates,
    get_default_catalog,
    template_id_for,
    weighted_choice,
)


class FixedRandom(random.Random):
    """Random source that always returns the same draw."""

    def __init__(self, value: float):
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


class TestBuildTemplates:
    def test_every_species_at_every_rarity(self) -> None:
        templates = build_templates()

        assert len(templates) == 18
        assert len({t.template_id for t in templates}) == 18

    def test_rarity_scales_stats(self) -> None:
        """Rare Frostooth is base stats times 1.2, rounded."""
        catalog = MonsterCatalog(build_templates())

        common = catalog.resolve("ice-common")
        rare = catalog.resolve("ice-rare")

        assert (common.attack, common.defense, common.hp) == (40, 65, 80)
        assert (rare.attack, rare.defense, rare.hp) == (48, 78, 96)
        assert rare.name == "Frostooth"
        assert rare.rarity == Rarity.RARE

    def test_template_id_format(self) -> None:
        assert template_id_for("Electro", Rarity.EPIC) == "electro-epic"


class TestResolve:
    def test_unknown_template(self) -> None:
        catalog = get_default_catalog()

        with pytest.raises(NotFoundError) as exc_info:
            catalog.resolve("lava-mythic")

        assert exc_info.value.identifier == "lava-mythic"


class TestWeightedChoice:
    def test_low_draw_picks_first(self) -> None:
        assert weighted_choice(["a", "b"], [1.0, 3.0], FixedRandom(0.0)) == "a"

    def test_high_draw_picks_last(self) -> None:
        assert weighted_choice(["a", "b"], [1.0, 3.0], FixedRandom(0.99)) == "b"

    def test_boundary_falls_into_next_bucket(self) -> None:
        """A draw exactly at a cumulative boundary belongs to the next item."""
        assert weighted_choice(["a", "b"], [1.0, 1.0], FixedRandom(0.5)) == "b"

    def test_zero_weight_never_chosen(self) -> None:
        rng = random.Random(7)
        picks = {weighted_choice(["a", "b", "c"], [1.0, 0.0, 1.0], rng) for _ in range(200)}

        assert "b" not in picks

    def test_rejects_empty(self) -> None:
        with pytest.raises(ValueError):
            weighted_choice([], [], random.Random())

    def test_rejects_mismatched_lengths(self) -> None:
        with pytest.raises(ValueError):
            weighted_choice(["a"], [1.0, 2.0], random.Random())

    def test_rejects_zero_total(self) -> None:
        with pytest.raises(ValueError):
            weighted_choice(["a", "b"], [0.0, 0.0], random.Random())


class TestRandomByWeightedRarity:
    def test_respects_rarity_weights(self) -> None:
        """Commons dominate, epics are rare, over a seeded sample."""
        catalog = MonsterCatalog(build_templates(), rng=random.Random(1234))

        counts = Counter(catalog.random_by_weighted_rarity().rarity for _ in range(2000))

        assert counts[Rarity.COMMON] > counts[Rarity.RARE] > counts[Rarity.EPIC]
        assert 0.65 < counts[Rarity.COMMON] / 2000 < 0.85

    def test_only_configured_rarity(self) -> None:
        catalog = MonsterCatalog(
            build_templates(),
            rarity_weights={Rarity.COMMON: 0.0, Rarity.RARE: 0.0, Rarity.EPIC: 1.0},
            rng=random.Random(3),
        )

        assert all(catalog.random_by_weighted_rarity().rarity == Rarity.EPIC for _ in range(50))

    def test_same_seed_same_sequence(self) -> None:
        first = MonsterCatalog(build_templates(), rng=random.Random(99))
        second = MonsterCatalog(build_templates(), rng=random.Random(99))

        draws_a = [first.random_by_weighted_rarity().template_id for _ in range(20)]
        draws_b = [second.random_by_weighted_rarity().template_id for _ in range(20)]

        assert draws_a == draws_b
