from __future__ import annotations

from dataclasses import asdict

from .actions import Action
from .state import MatchState, PlayerState


def action_to_dict(a: Action) -> dict[str, object]:
    d: dict[str, object] = {"type": type(a).__name__}
    d.update(asdict(a))
    return d


def _card_to_dict(state: MatchState, uid: int | None) -> dict[str, object] | None:
    if uid is None:
        return None
    c = state.arena[uid]
    return {
        "uid": c.uid,
        "card_id": c.definition.id,
        "name": c.name,
        "hp": c.hp,
        "damage": c.damage,
        "remaining_hp": c.remaining_hp,
        "status": c.status,
        "attached_energy": [state.arena[e].definition.id for e in c.attached_energy],
        "evolved_from": c.evolved_from,
    }


def _ids(state: MatchState, uids: list[int]) -> list[str]:
    return [state.arena[uid].definition.id for uid in uids]


def _player_to_dict(state: MatchState, p: PlayerState) -> dict[str, object]:
    return {
        "name": p.name,
        "deck": _ids(state, p.deck),
        "hand": _ids(state, p.hand),
        "active": _card_to_dict(state, p.active),
        "bench": [_card_to_dict(state, uid) for uid in p.bench],
        "prizes": len(p.prizes),
        "discard": _ids(state, p.discard),
        "energy_attached_this_turn": p.energy_attached_this_turn,
    }


def snapshot(state: MatchState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current match state."""
    return {
        "seed": state.seed,
        "phase": state.phase,
        "turn_number": state.turn_number,
        "current_player": state.current_player,
        "winner": state.winner,
        "first_turn": state.first_turn,
        "turn_started": state.turn_started,
        "turn": {"damage_bonus": state.turn.damage_bonus, "damage_reduction": state.turn.damage_reduction},
        "players": [_player_to_dict(state, p) for p in state.players],
        "log": [{"turn": e.turn, "message": e.message} for e in state.log],
        "action_log": [action_to_dict(a) for a in state.action_log],  # type: ignore[arg-type]
    }
