"""
Monster catalog and weighted random selection.

The catalog is a read-only table of templates: six base species, each
available at three rarities. Rarity scales the base stats and sets how
often the rarity is drawn.
"""

import random
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import TypeVar

from monstervault.models.failure import NotFoundError
from monstervault.models.monster import MonsterTemplate, Rarity

T = TypeVar("T")


@dataclass(frozen=True)
class BaseMonster:
    name: str
    element: str
    base_attack: int
    base_defense: int
    base_hp: int
    image: str


@dataclass(frozen=True)
class RarityProfile:
    multiplier: float
    weight: float


BASE_MONSTERS: tuple[BaseMonster, ...] = (
    BaseMonster("Voltadillo", "Electro", 55, 40, 70, "/monsters/voltadillo.png"),
    BaseMonster("Aqualet", "Water", 45, 55, 80, "/monsters/aqualet.png"),
    BaseMonster("Emberpup", "Fire", 65, 35, 75, "/monsters/emberpup.png"),
    BaseMonster("Leafup", "Plant", 50, 60, 85, "/monsters/leafup.png"),
    BaseMonster("Frostooth", "Ice", 40, 65, 80, "/monsters/frostooth.png"),
    BaseMonster("Pebblit", "Ground", 35, 80, 90, "/monsters/pebblit.png"),
)

RARITY_PROFILES: dict[Rarity, RarityProfile] = {
    Rarity.COMMON: RarityProfile(multiplier=1.0, weight=0.75),
    Rarity.RARE: RarityProfile(multiplier=1.2, weight=0.20),
    Rarity.EPIC: RarityProfile(multiplier=1.4, weight=0.05),
}


def template_id_for(element: str, rarity: Rarity) -> str:
    """Build a template id such as `ice-rare`."""
    return f"{element.lower()}-{rarity.value.lower()}"


def weighted_choice(items: Sequence[T], weights: Sequence[float], rng: random.Random) -> T:
    """
    Pick one item with probability proportional to its weight.

    Raises:
        ValueError: If inputs are empty, mismatched, or carry no weight
    """
    if not items:
        raise ValueError("Cannot choose from an empty sequence")
    if len(items) != len(weights):
        raise ValueError("Items and weights must have the same length")
    if any(w < 0 for w in weights):
        raise ValueError("Weights must be non-negative")

    total = sum(weights)
    if total <= 0:
        raise ValueError("Total weight must be positive")

    target = rng.random() * total
    cumulative = 0.0
    for item, weight in zip(items, weights, strict=True):
        cumulative += weight
        if target < cumulative:
            return item

    # Floating point slack: fall back to the last item with weight
    for item, weight in zip(reversed(items), reversed(weights), strict=True):
        if weight > 0:
            return item
    raise ValueError("Total weight must be positive")


def build_templates(
    bases: Sequence[BaseMonster] = BASE_MONSTERS,
    rarities: dict[Rarity, RarityProfile] = RARITY_PROFILES,
) -> list[MonsterTemplate]:
    """Cross every base species with every rarity."""
    templates = []
    for base in bases:
        for rarity, profile in rarities.items():
            templates.append(
                MonsterTemplate(
                    template_id=template_id_for(base.element, rarity),
                    name=base.name,
                    element=base.element,
                    rarity=rarity,
                    attack=round(base.base_attack * profile.multiplier),
                    defense=round(base.base_defense * profile.multiplier),
                    hp=round(base.base_hp * profile.multiplier),
                    image=base.image,
                )
            )
    return templates


class MonsterCatalog:
    """Resolves template ids and draws rarity-weighted random templates."""

    def __init__(
        self,
        templates: Sequence[MonsterTemplate],
        rarity_weights: dict[Rarity, float] | None = None,
        rng: random.Random | None = None,
    ):
        self._templates = {t.template_id: t for t in templates}
        if rarity_weights is None:
            rarity_weights = {r: p.weight for r, p in RARITY_PROFILES.items()}
        self._rarity_weights = rarity_weights
        self._rng = rng or random.Random()

    def resolve(self, template_id: str) -> MonsterTemplate:
        """Get a template by id, raising NotFoundError if unknown."""
        template = self._templates.get(template_id)
        if template is None:
            raise NotFoundError("monster template", template_id)
        return template

    def templates(self) -> list[MonsterTemplate]:
        return list(self._templates.values())

    def random_by_weighted_rarity(self) -> MonsterTemplate:
        """Draw a rarity by weight, then a template of that rarity uniformly."""
        available = [
            r for r in self._rarity_weights if any(t.rarity == r for t in self._templates.values())
        ]
        rarity = weighted_choice(
            available, [self._rarity_weights[r] for r in available], self._rng
        )
        pool = [t for t in self._templates.values() if t.rarity == rarity]
        return pool[self._rng.randrange(len(pool))]


@lru_cache(maxsize=1)
def get_default_catalog() -> MonsterCatalog:
    """Get the process-wide catalog built from the base species table."""
    return MonsterCatalog(build_templates())
