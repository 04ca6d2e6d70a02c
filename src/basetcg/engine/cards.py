from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

from .types import COLORLESS, Attack, CardDefinition, Status

ALL_STATUSES: frozenset[Status] = frozenset({"poisoned", "confused", "paralyzed", "asleep", "burned"})

# Which statuses each cause removes. Every status removal goes through this table.
STATUS_CLEARED_BY: dict[str, frozenset[Status]] = {
    "evolve": ALL_STATUSES,
    "retreat": ALL_STATUSES,
    "switch": ALL_STATUSES,
    "full_heal": ALL_STATUSES,
    "scoop_up": ALL_STATUSES,
    "devolve": ALL_STATUSES,
    "revive": ALL_STATUSES,
    "wake_up": frozenset({"asleep"}),
    "paralysis_elapsed": frozenset({"paralyzed"}),
}


@dataclass
class CardInstance:
    """A card definition plus the battle state of one physical copy.

    Attached energy is held as uids into the owning `CardArena`; lookups that
    need the energy definitions take the arena as an argument.
    """

    uid: int
    definition: CardDefinition
    damage: int = 0
    attached_energy: list[int] = field(default_factory=list)
    status: Status | None = None
    evolved_from: int | None = None
    evolved_this_turn: bool = False
    played_this_turn: bool = False
    turns_under_paralysis: int = 0

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def hp(self) -> int | None:
        return self.definition.hp

    @property
    def attacks(self) -> tuple[Attack, ...]:
        return self.definition.attacks

    @property
    def remaining_hp(self) -> int | None:
        if self.definition.hp is None:
            return None
        return self.definition.hp - self.damage

    @property
    def is_knocked_out(self) -> bool:
        hp = self.definition.hp
        return bool(hp) and self.damage >= hp

    def energy_count(self, arena: Mapping[int, CardInstance], energy_type: str | None = None) -> int:
        if energy_type is None:
            return len(self.attached_energy)
        count = 0
        for uid in self.attached_energy:
            energy = arena[uid].definition
            # any-type energy counts toward every type
            if energy.provides_any_type or energy.energy_type == energy_type:
                count += 1
        return count

    def can_use_attack(self, arena: Mapping[int, CardInstance], attack_index: int) -> bool:
        if attack_index < 0 or attack_index >= len(self.attacks):
            return False
        attack = self.attacks[attack_index]

        exact: dict[str, int] = {}
        wildcards = 0
        for uid in self.attached_energy:
            energy = arena[uid].definition
            if energy.provides_any_type:
                wildcards += 1
            else:
                exact[energy.energy_type] = exact.get(energy.energy_type, 0) + 1

        needed: dict[str, int] = {}
        for c in attack.cost:
            needed[c] = needed.get(c, 0) + 1
        generic = needed.pop(COLORLESS, 0)

        # Typed requirements first, generic last.
        used = 0
        for energy_type, count in needed.items():
            have = exact.get(energy_type, 0)
            if have < count:
                short = count - have
                if wildcards < short:
                    return False
                wildcards -= short
            used += count
        return len(self.attached_energy) - used >= generic

    @property
    def can_attack(self) -> bool:
        return self.status not in ("paralyzed", "asleep")

    def can_retreat(self) -> bool:
        return (
            len(self.attached_energy) >= self.definition.retreat_cost
            and self.status != "paralyzed"
            and self.status != "asleep"
        )

    def inflict(self, status: Status) -> None:
        self.status = status
        if status == "paralyzed":
            self.turns_under_paralysis = 0

    def clear_status(self, cause: str) -> Status | None:
        """Remove the current status if `cause` clears it; returns what was removed."""
        if self.status is None or self.status not in STATUS_CLEARED_BY[cause]:
            return None
        removed = self.status
        self.status = None
        self.turns_under_paralysis = 0
        return removed

    def reset_turn_flags(self) -> None:
        self.evolved_this_turn = False
        self.played_this_turn = False
        if self.status == "paralyzed":
            # Lasts through the owner's next turn.
            if self.turns_under_paralysis >= 1:
                self.clear_status("paralysis_elapsed")
            else:
                self.turns_under_paralysis += 1


class CardArena(Mapping[int, CardInstance]):
    """Owns every card instance of a match, keyed by uid."""

    def __init__(self) -> None:
        self._cards: dict[int, CardInstance] = {}
        self._next_uid = 1

    def create(self, definition: CardDefinition) -> CardInstance:
        inst = CardInstance(uid=self._next_uid, definition=definition)
        self._cards[inst.uid] = inst
        self._next_uid += 1
        return inst

    def __getitem__(self, uid: int) -> CardInstance:
        return self._cards[uid]

    def __iter__(self) -> Iterator[int]:
        return iter(self._cards)

    def __len__(self) -> int:
        return len(self._cards)
