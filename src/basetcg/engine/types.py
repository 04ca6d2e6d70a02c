from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

CardCategory = Literal["creature", "resource", "action"]
Stage = Literal["basic", "stage1", "stage2"]
Status = Literal["poisoned", "confused", "paralyzed", "asleep", "burned"]
Phase = Literal["setup", "draw", "main", "attack", "between_turns", "game_over"]

COLORLESS = "Colorless"

EffectType = Literal[
    "coin_gate", "per_heads", "energy_multiplier", "self_damage", "inflict_status", "heal_self", "discard_energy"
]


@dataclass(frozen=True)
class CoinGateEffect:
    """Flip a coin; on tails the attack does nothing."""

    type: Literal["coin_gate"] = "coin_gate"


@dataclass(frozen=True)
class PerHeadsEffect:
    """Damage becomes base damage times the number of heads."""

    type: Literal["per_heads"] = "per_heads"
    coins: int = 2


@dataclass(frozen=True)
class EnergyMultiplierEffect:
    """Damage becomes base damage times the attacker's attached energy."""

    type: Literal["energy_multiplier"] = "energy_multiplier"


@dataclass(frozen=True)
class SelfDamageEffect:
    type: Literal["self_damage"] = "self_damage"
    amount: int = 0


@dataclass(frozen=True)
class InflictStatusEffect:
    type: Literal["inflict_status"] = "inflict_status"
    status: Status = "paralyzed"


@dataclass(frozen=True)
class HealSelfEffect:
    type: Literal["heal_self"] = "heal_self"
    amount: int = 10


@dataclass(frozen=True)
class DiscardEnergyEffect:
    """Discard energy from the front of the attacker's attachments.

    count=None means discard all of it.
    """

    type: Literal["discard_energy"] = "discard_energy"
    count: int | None = 1


AttackEffect = (
    CoinGateEffect
    | PerHeadsEffect
    | EnergyMultiplierEffect
    | SelfDamageEffect
    | InflictStatusEffect
    | HealSelfEffect
    | DiscardEnergyEffect
)


@dataclass(frozen=True)
class Attack:
    name: str
    cost: tuple[str, ...]
    damage: str = ""
    text: str = ""
    effects: tuple[AttackEffect, ...] = ()

    @property
    def base_damage(self) -> int:
        # "30+", "10×" -> digits only
        digits = "".join(ch for ch in self.damage if ch.isdigit())
        return int(digits) if digits else 0


@dataclass(frozen=True)
class Ability:
    name: str
    text: str
    type: str = ""


@dataclass(frozen=True)
class TypeModifier:
    type: str
    value: str


@dataclass(frozen=True)
class CardImages:
    small: str
    large: str


@dataclass(frozen=True)
class CardDefinition:
    id: str
    name: str
    category: CardCategory
    rarity: str = "Common"
    number: str = ""
    stage: Stage | None = None
    evolves_from: str | None = None
    evolves_to: tuple[str, ...] = ()
    hp: int | None = None
    types: tuple[str, ...] = ()
    attacks: tuple[Attack, ...] = ()
    abilities: tuple[Ability, ...] = ()
    weaknesses: tuple[TypeModifier, ...] = ()
    resistances: tuple[TypeModifier, ...] = ()
    retreat_cost: int = 0
    provides_any_type: bool = False
    images: CardImages | None = None

    @property
    def is_creature(self) -> bool:
        return self.category == "creature"

    @property
    def is_basic(self) -> bool:
        return self.category == "creature" and self.stage == "basic"

    @property
    def energy_type(self) -> str:
        """Type provided when attached as a resource."""
        return self.types[0] if self.types else COLORLESS


@dataclass(frozen=True)
class CardDatabase:
    """Immutable card database used by the engine."""

    cards: dict[str, CardDefinition]

    def get(self, card_id: str) -> CardDefinition:
        return self.cards[card_id]

    def all_ids(self) -> Sequence[str]:
        return list(self.cards.keys())

    def by_name(self, name: str) -> CardDefinition | None:
        for card in self.cards.values():
            if card.name == name:
                return card
        return None
