from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from .cards import CardArena, CardInstance
from .types import CardDatabase, Phase

Zone = Literal["deck", "hand", "active", "bench", "prizes", "discard", "attached", "lineage"]


@dataclass(frozen=True)
class MatchConfig:
    starting_hand: int = 7
    prize_count: int = 6
    bench_slots: int = 5
    poison_damage: int = 10
    confusion_damage: int = 30
    resistance_reduction: int = 30
    weakness_multiplier: int = 2
    plus_power_bonus: int = 10
    defender_reduction: int = 20
    potion_heal: int = 20
    super_potion_heal: int = 40


@dataclass(frozen=True)
class TurnContext:
    """Modifiers that live for exactly one turn."""

    damage_bonus: int = 0
    damage_reduction: int = 0


@dataclass(frozen=True)
class LogEntry:
    turn: int
    message: str
    timestamp: datetime


@dataclass
class PlayerState:
    name: str
    deck: list[int]
    bench: list[int | None]
    hand: list[int] = field(default_factory=list)
    active: int | None = None
    prizes: list[int] = field(default_factory=list)
    discard: list[int] = field(default_factory=list)
    energy_attached_this_turn: bool = False

    def shuffle_deck(self, rng: random.Random) -> None:
        rng.shuffle(self.deck)

    def draw(self) -> int | None:
        if not self.deck:
            return None
        uid = self.deck.pop()
        self.hand.append(uid)
        return uid

    def draw_many(self, count: int) -> list[int]:
        drawn: list[int] = []
        for _ in range(count):
            uid = self.draw()
            if uid is None:
                break
            drawn.append(uid)
        return drawn

    def in_play(self) -> list[int]:
        """Active first, then bench slots left to right."""
        out = [] if self.active is None else [self.active]
        out.extend(uid for uid in self.bench if uid is not None)
        return out

    def bench_count(self) -> int:
        return sum(1 for uid in self.bench if uid is not None)

    def first_empty_bench_slot(self) -> int | None:
        for i, uid in enumerate(self.bench):
            if uid is None:
                return i
        return None

    def first_benched_slot(self) -> int | None:
        for i, uid in enumerate(self.bench):
            if uid is not None:
                return i
        return None

    def remove_from_hand(self, uid: int) -> bool:
        if uid not in self.hand:
            return False
        self.hand.remove(uid)
        return True

    def replace_in_play(self, old: int, new: int | None) -> bool:
        if self.active == old:
            self.active = new
            return True
        for i, uid in enumerate(self.bench):
            if uid == old:
                self.bench[i] = new
                return True
        return False

    def has_no_creatures(self) -> bool:
        return self.active is None and all(uid is None for uid in self.bench)

    def reset_turn_flags(self, arena: CardArena) -> None:
        self.energy_attached_this_turn = False
        for uid in self.in_play():
            arena[uid].reset_turn_flags()


@dataclass
class MatchState:
    cards: CardDatabase
    config: MatchConfig
    seed: int | None
    rng: random.Random
    arena: CardArena
    players: list[PlayerState]
    current_player: int = 0
    phase: Phase = "setup"
    turn_number: int = 0
    winner: int | None = None
    first_turn: bool = True
    turn_started: bool = False
    turn: TurnContext = field(default_factory=TurnContext)
    log: list[LogEntry] = field(default_factory=list)
    action_log: list[object] = field(default_factory=list)
    mulligans: list[int] = field(default_factory=lambda: [0, 0])

    def opponent(self, player: int) -> int:
        return 1 - player

    def card(self, uid: int) -> CardInstance:
        return self.arena[uid]

    def active_card(self, player: int) -> CardInstance | None:
        uid = self.players[player].active
        return None if uid is None else self.arena[uid]

    def flip_coin(self) -> bool:
        """True on heads. The only source of randomness besides shuffles."""
        return self.rng.random() < 0.5


def add_log(state: MatchState, message: str) -> None:
    state.log.append(LogEntry(turn=state.turn_number, message=message, timestamp=datetime.now(tz=timezone.utc)))


def locate(state: MatchState, uid: int) -> tuple[int, Zone] | None:
    """Find which player's zone currently holds `uid`."""
    for p_i, ps in enumerate(state.players):
        if uid in ps.hand:
            return p_i, "hand"
        if ps.active == uid:
            return p_i, "active"
        if uid in ps.bench:
            return p_i, "bench"
        if uid in ps.deck:
            return p_i, "deck"
        if uid in ps.discard:
            return p_i, "discard"
        if uid in ps.prizes:
            return p_i, "prizes"
        for holder in ps.in_play():
            inst = state.arena[holder]
            if uid in inst.attached_energy:
                return p_i, "attached"
            if uid in lineage(state, holder):
                return p_i, "lineage"
    return None


def lineage(state: MatchState, uid: int) -> list[int]:
    """Predecessor uids of an evolved creature, nearest first."""
    out: list[int] = []
    prev = state.arena[uid].evolved_from
    while prev is not None:
        out.append(prev)
        prev = state.arena[prev].evolved_from
    return out


def declare_winner(state: MatchState, player: int, reason: str) -> None:
    state.winner = player
    state.phase = "game_over"
    add_log(state, f"{state.players[player].name} wins! ({reason})")


def evolve_in_place(state: MatchState, player: int, card_uid: int, target_uid: int) -> None:
    """Replace `target_uid` in play with `card_uid`, carrying damage and energy over."""
    ps = state.players[player]
    card = state.arena[card_uid]
    target = state.arena[target_uid]

    ps.remove_from_hand(card_uid)
    card.evolved_from = target_uid
    card.attached_energy = target.attached_energy
    target.attached_energy = []
    card.damage = target.damage
    card.evolved_this_turn = True
    card.status = target.status
    card.clear_status("evolve")
    target.status = None
    ps.replace_in_play(target_uid, card_uid)


def knock_out(state: MatchState, owner: int, uid: int) -> None:
    """Discard a knocked-out creature, award a prize and evaluate both win conditions."""
    ps = state.players[owner]
    other = state.opponent(owner)
    ops = state.players[other]
    inst = state.arena[uid]

    add_log(state, f"{inst.name} was Knocked Out!")

    energy = inst.attached_energy
    inst.attached_energy = []
    predecessors = lineage(state, uid)
    for prev in [uid, *predecessors]:
        state.arena[prev].evolved_from = None
    ps.replace_in_play(uid, None)
    ps.discard.append(uid)
    ps.discard.extend(predecessors)
    ps.discard.extend(energy)

    if ops.prizes:
        prize = ops.prizes.pop()
        ops.hand.append(prize)
        add_log(state, f"{ops.name} collected a Prize card! ({len(ops.prizes)} remaining)")
        if not ops.prizes:
            declare_winner(state, other, "all prizes collected")

    if ps.has_no_creatures() and state.winner is None:
        declare_winner(state, other, "opponent has no creatures left")
