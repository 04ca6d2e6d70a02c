from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StartTurnAction:
    player: int


@dataclass(frozen=True)
class PlayBasicAction:
    player: int
    card_uid: int


@dataclass(frozen=True)
class EvolveAction:
    player: int
    card_uid: int
    target_uid: int


@dataclass(frozen=True)
class AttachEnergyAction:
    player: int
    energy_uid: int
    target_uid: int


@dataclass(frozen=True)
class RetreatAction:
    player: int
    bench_index: int


@dataclass(frozen=True)
class PlayTrainerAction:
    player: int
    card_uid: int


@dataclass(frozen=True)
class AttackAction:
    player: int
    attack_index: int


@dataclass(frozen=True)
class EndTurnAction:
    player: int


@dataclass(frozen=True)
class PromoteAction:
    player: int
    bench_index: int


Action = (
    StartTurnAction
    | PlayBasicAction
    | EvolveAction
    | AttachEnergyAction
    | RetreatAction
    | PlayTrainerAction
    | AttackAction
    | EndTurnAction
    | PromoteAction
)
