from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, Sequence

from . import trainers
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
from .cards import CardArena
from .combat import AttackResult, between_turns, execute_attack
from .state import (
    LogEntry,
    MatchConfig,
    MatchState,
    PlayerState,
    TurnContext,
    add_log,
    declare_winner,
    evolve_in_place,
    locate,
)
from .types import CardDatabase


@dataclass
class StepResult:
    ok: bool
    events: list[LogEntry]
    error: str | None = None


def _has_basic(state: MatchState, uids: Iterable[int]) -> bool:
    return any(state.arena[uid].definition.is_basic for uid in uids)


def _mulligan(state: MatchState, player: int) -> int:
    ps = state.players[player]
    count = 0
    while not _has_basic(state, ps.hand):
        add_log(state, f"{ps.name} has no Basic creature! Mulligan!")
        ps.deck.extend(ps.hand)
        ps.hand = []
        ps.shuffle_deck(state.rng)
        ps.draw_many(state.config.starting_hand)
        count += 1
    return count


def _setup(state: MatchState) -> None:
    cfg = state.config
    add_log(state, "Setting up the game...")
    for ps in state.players:
        ps.draw_many(cfg.starting_hand)

    state.mulligans = [_mulligan(state, 0), _mulligan(state, 1)]
    for player, taken in enumerate(state.mulligans):
        if taken > 0:
            other = state.players[state.opponent(player)]
            add_log(state, f"{other.name} draws {taken} extra card(s) for mulligans.")
            other.draw_many(taken)

    for _ in range(cfg.prize_count):
        for ps in state.players:
            if ps.deck:
                ps.prizes.append(ps.deck.pop())
    add_log(state, f"Prize cards set! Each player has {len(state.players[0].prizes)} prizes.")


def _flip_for_first(state: MatchState) -> None:
    heads = state.flip_coin()
    state.current_player = 0 if heads else 1
    name = state.players[state.current_player].name
    add_log(state, f"Coin flip: {'heads' if heads else 'tails'}! {name} goes first!")


def new_match(
    cards: CardDatabase,
    deck0: Sequence[str],
    deck1: Sequence[str],
    seed: int | None,
    config: MatchConfig | None = None,
    names: tuple[str, str] = ("Player", "Opponent"),
) -> MatchState:
    cfg = config or MatchConfig()
    minimum = cfg.starting_hand + cfg.prize_count
    for deck in (deck0, deck1):
        if len(deck) < minimum:
            raise ValueError(f"Decks must contain at least {minimum} cards.")
        if not any(cards.get(card_id).is_basic for card_id in deck):
            raise ValueError("Decks must contain at least one Basic creature.")

    rng = random.Random(seed)
    arena = CardArena()
    players = []
    for name, deck in zip(names, (deck0, deck1)):
        uids = [arena.create(cards.get(card_id)).uid for card_id in deck]
        ps = PlayerState(name=name, deck=uids, bench=[None for _ in range(cfg.bench_slots)])
        ps.shuffle_deck(rng)
        players.append(ps)

    state = MatchState(cards=cards, config=cfg, seed=seed, rng=rng, arena=arena, players=players)
    _setup(state)
    _flip_for_first(state)
    return state


def replay(
    cards: CardDatabase,
    deck0: Sequence[str],
    deck1: Sequence[str],
    seed: int,
    actions: Iterable[Action],
    config: MatchConfig | None = None,
) -> MatchState:
    """Rebuild a match in-process from its seed and recorded actions."""
    state = new_match(cards=cards, deck0=deck0, deck1=deck1, seed=seed, config=config)
    for a in actions:
        step(state, a)
        if state.winner is not None:
            break
    return state


# ---------------------------------------------------------------------------
# Turn flow
# ---------------------------------------------------------------------------


def start_turn(state: MatchState) -> bool:
    if state.winner is not None or state.turn_started or state.phase not in ("setup", "main"):
        return False
    if state.phase == "setup" and any(ps.active is None for ps in state.players):
        return False

    state.turn_number += 1
    player = state.current_player
    ps = state.players[player]
    ps.reset_turn_flags(state.arena)
    state.turn = TurnContext()
    state.turn_started = True
    add_log(state, f"--- Turn {state.turn_number}: {ps.name}'s turn ---")

    state.phase = "draw"
    drawn = ps.draw()
    if drawn is None:
        add_log(state, f"{ps.name} can't draw, the deck is empty!")
        declare_winner(state, state.opponent(player), "opponent decked out")
        return True
    add_log(state, f"{ps.name} drew a card.")
    state.phase = "main"
    return True


def needs_promotion(state: MatchState, player: int) -> bool:
    ps = state.players[player]
    return ps.active is None and ps.bench_count() > 0


def promote(state: MatchState, player: int, bench_index: int) -> bool:
    if state.winner is not None or not needs_promotion(state, player):
        return False
    ps = state.players[player]
    if bench_index < 0 or bench_index >= len(ps.bench) or ps.bench[bench_index] is None:
        return False
    ps.active = ps.bench[bench_index]
    ps.bench[bench_index] = None
    assert ps.active is not None
    add_log(state, f"{ps.name} promoted {state.arena[ps.active].name} to the Active position!")
    return True


def _can_act(state: MatchState, player: int) -> bool:
    return (
        state.winner is None
        and state.phase == "main"
        and state.turn_started
        and player == state.current_player
        and not needs_promotion(state, player)
    )


def _in_hand_of(state: MatchState, uid: int, player: int) -> bool:
    return uid in state.arena and uid in state.players[player].hand


def _in_play_of(state: MatchState, uid: int, player: int) -> bool:
    return uid in state.players[player].in_play()


def end_turn(state: MatchState) -> bool:
    """End the main phase without attacking."""
    if not _can_act(state, state.current_player):
        return False
    between_turns(state)
    return True


# ---------------------------------------------------------------------------
# Main-phase actions
# ---------------------------------------------------------------------------


def can_play_basic(state: MatchState, uid: int) -> bool:
    where = locate(state, uid) if uid in state.arena else None
    if where is None or where[1] != "hand":
        return False
    owner = where[0]
    if not state.arena[uid].definition.is_basic:
        return False
    if state.phase == "setup":
        if state.winner is not None:
            return False
    elif not _can_act(state, owner):
        return False
    ps = state.players[owner]
    return ps.active is None or ps.first_empty_bench_slot() is not None


def play_basic(state: MatchState, uid: int) -> bool:
    """Place a basic creature: active slot first, else the first empty bench slot."""
    if not can_play_basic(state, uid):
        return False
    where = locate(state, uid)
    assert where is not None
    ps = state.players[where[0]]
    card = state.arena[uid]
    ps.remove_from_hand(uid)
    card.played_this_turn = True
    if ps.active is None:
        ps.active = uid
        add_log(state, f"{ps.name} placed {card.name} as the Active creature!")
    else:
        slot = ps.first_empty_bench_slot()
        assert slot is not None
        ps.bench[slot] = uid
        add_log(state, f"{ps.name} placed {card.name} on the Bench!")
    return True


def can_evolve(state: MatchState, card_uid: int, target_uid: int) -> bool:
    player = state.current_player
    if not _can_act(state, player) or state.first_turn:
        return False
    if not _in_hand_of(state, card_uid, player) or not _in_play_of(state, target_uid, player):
        return False
    card = state.arena[card_uid].definition
    target = state.arena[target_uid]
    if not card.is_creature or not card.evolves_from:
        return False
    if target.played_this_turn or target.evolved_this_turn:
        return False
    return target.name == card.evolves_from


def evolve(state: MatchState, card_uid: int, target_uid: int) -> bool:
    if not can_evolve(state, card_uid, target_uid):
        return False
    player = state.current_player
    target_name = state.arena[target_uid].name
    evolve_in_place(state, player, card_uid, target_uid)
    add_log(state, f"{state.players[player].name} evolved {target_name} into {state.arena[card_uid].name}!")
    return True


def can_attach_energy(state: MatchState, energy_uid: int, target_uid: int | None = None) -> bool:
    player = state.current_player
    if not _can_act(state, player) or not _in_hand_of(state, energy_uid, player):
        return False
    if state.arena[energy_uid].definition.category != "resource":
        return False
    if state.players[player].energy_attached_this_turn:
        return False
    return target_uid is None or _in_play_of(state, target_uid, player)


def attach_energy(state: MatchState, energy_uid: int, target_uid: int) -> bool:
    if not can_attach_energy(state, energy_uid, target_uid):
        return False
    ps = state.players[state.current_player]
    target = state.arena[target_uid]
    ps.remove_from_hand(energy_uid)
    target.attached_energy.append(energy_uid)
    ps.energy_attached_this_turn = True
    add_log(state, f"{ps.name} attached {state.arena[energy_uid].name} to {target.name}.")
    return True


def can_retreat(state: MatchState) -> bool:
    player = state.current_player
    if not _can_act(state, player):
        return False
    active = state.active_card(player)
    if active is None or not active.can_retreat():
        return False
    return state.players[player].bench_count() > 0


def retreat(state: MatchState, bench_index: int) -> bool:
    if not can_retreat(state):
        return False
    ps = state.players[state.current_player]
    if bench_index < 0 or bench_index >= len(ps.bench) or ps.bench[bench_index] is None:
        return False
    assert ps.active is not None
    old = state.arena[ps.active]
    new_uid = ps.bench[bench_index]
    assert new_uid is not None

    cost = old.definition.retreat_cost
    paid = old.attached_energy[:cost]
    del old.attached_energy[:cost]
    ps.discard.extend(paid)

    ps.bench[bench_index] = old.uid
    ps.active = new_uid
    old.clear_status("retreat")
    add_log(
        state,
        f"{ps.name} retreated {old.name} and sent out {state.arena[new_uid].name}! (discarded {cost} energy)",
    )
    return True


def can_play_trainer(state: MatchState, uid: int) -> bool:
    player = state.current_player
    if not _can_act(state, player) or not _in_hand_of(state, uid, player):
        return False
    return state.arena[uid].definition.category == "action"


def play_trainer(state: MatchState, uid: int) -> bool:
    if not can_play_trainer(state, uid):
        return False
    return trainers.play_trainer(state, state.current_player, uid)


def can_attack(state: MatchState, attack_index: int) -> bool:
    player = state.current_player
    if not _can_act(state, player):
        return False
    attacker = state.active_card(player)
    if attacker is None or not attacker.can_attack:
        return False
    if state.active_card(state.opponent(player)) is None:
        return False
    return attacker.can_use_attack(state.arena, attack_index)


def attack(state: MatchState, attack_index: int) -> AttackResult:
    if not can_attack(state, attack_index):
        return AttackResult(executed=False)
    return execute_attack(state, attack_index)


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


def _ok(state: MatchState, mark: int, ok: bool, error: str) -> StepResult:
    if not ok:
        return StepResult(ok=False, events=[], error=error)
    return StepResult(ok=True, events=state.log[mark:])


def step(state: MatchState, action: Action) -> StepResult:
    """Apply a single action to the match state.

    Mutates `state` in place; a failed action leaves it unchanged apart from
    the action log.
    """
    if state.winner is not None:
        return StepResult(ok=False, events=[], error="Match already ended.")

    # Log first, so the record holds every attempted action
    state.action_log.append(action)
    mark = len(state.log)

    if isinstance(action, PromoteAction):
        return _ok(state, mark, promote(state, action.player, action.bench_index), "Cannot promote.")

    if isinstance(action, PlayBasicAction):
        where = locate(state, action.card_uid) if action.card_uid in state.arena else None
        if where is None or where[0] != action.player:
            return StepResult(ok=False, events=[], error="Card is not in your hand.")
        if state.phase != "setup" and action.player != state.current_player:
            return StepResult(ok=False, events=[], error="Not your turn.")
        return _ok(state, mark, play_basic(state, action.card_uid), "Cannot play that creature.")

    if action.player != state.current_player:
        return StepResult(ok=False, events=[], error="Not your turn.")
    if isinstance(action, StartTurnAction):
        return _ok(state, mark, start_turn(state), "Cannot start a turn now.")
    if needs_promotion(state, action.player):
        return StepResult(ok=False, events=[], error="Promote a benched creature first.")

    if isinstance(action, EvolveAction):
        return _ok(state, mark, evolve(state, action.card_uid, action.target_uid), "Cannot evolve.")
    if isinstance(action, AttachEnergyAction):
        return _ok(state, mark, attach_energy(state, action.energy_uid, action.target_uid), "Cannot attach energy.")
    if isinstance(action, RetreatAction):
        return _ok(state, mark, retreat(state, action.bench_index), "Cannot retreat.")
    if isinstance(action, PlayTrainerAction):
        if not can_play_trainer(state, action.card_uid):
            return StepResult(ok=False, events=[], error="Cannot play that card.")
        return _ok(state, mark, play_trainer(state, action.card_uid), "Effect could not resolve.")
    if isinstance(action, AttackAction):
        if not can_attack(state, action.attack_index):
            return StepResult(ok=False, events=[], error="Cannot attack.")
        # a confused attacker that hurts itself still spends its attack
        execute_attack(state, action.attack_index)
        return StepResult(ok=True, events=state.log[mark:])
    if isinstance(action, EndTurnAction):
        return _ok(state, mark, end_turn(state), "Cannot end turn now.")
    return StepResult(ok=False, events=[], error="Unknown action.")
