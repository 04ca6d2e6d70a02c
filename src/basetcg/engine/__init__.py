"""Headless rules engine for basetcg.

IMPORTANT: This package must never import presentation code.
"""

from .actions import (
    Action,
    AttachEnergyAction,
    AttackAction,
    EndTurnAction,
    EvolveAction,
    PlayBasicAction,
    PlayTrainerAction,
    PromoteAction,
    RetreatAction,
    StartTurnAction,
)
from .cards import CardArena, CardInstance
from .combat import AttackResult
from .match import (
    StepResult,
    attach_energy,
    attack,
    can_attach_energy,
    can_attack,
    can_evolve,
    can_play_basic,
    can_play_trainer,
    can_retreat,
    end_turn,
    evolve,
    needs_promotion,
    new_match,
    play_basic,
    play_trainer,
    promote,
    replay,
    retreat,
    start_turn,
    step,
)
from .state import LogEntry, MatchConfig, MatchState, PlayerState
from .types import CardCategory, CardDatabase, CardDefinition, Phase, Status

__all__ = [
    "Action",
    "AttachEnergyAction",
    "AttackAction",
    "AttackResult",
    "CardArena",
    "CardCategory",
    "CardDatabase",
    "CardDefinition",
    "CardInstance",
    "EndTurnAction",
    "EvolveAction",
    "LogEntry",
    "MatchConfig",
    "MatchState",
    "Phase",
    "PlayBasicAction",
    "PlayTrainerAction",
    "PlayerState",
    "PromoteAction",
    "RetreatAction",
    "StartTurnAction",
    "Status",
    "StepResult",
    "attach_energy",
    "attack",
    "can_attach_energy",
    "can_attack",
    "can_evolve",
    "can_play_basic",
    "can_play_trainer",
    "can_retreat",
    "end_turn",
    "evolve",
    "needs_promotion",
    "new_match",
    "play_basic",
    "play_trainer",
    "promote",
    "replay",
    "retreat",
    "start_turn",
    "step",
]
