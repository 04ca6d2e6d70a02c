from __future__ import annotations

from dataclasses import dataclass

from . import match
from .cards import CardInstance
from .state import MatchState
from .types import COLORLESS


@dataclass(frozen=True)
class AIProfile:
    """Simple AI tuning parameters.

    difficulty:
      0 = easy (skips trainers and retreats now and then)
      1 = normal
      2 = hard (never skips)
    """

    difficulty: int = 1


TRAINER_PRIORITY = (
    "Bill",
    "Professor Oak",
    "Computer Search",
    "PlusPower",
    "Energy Removal",
    "Super Energy Removal",
    "Gust of Wind",
    "Full Heal",
    "Potion",
    "Super Potion",
    "Switch",
    "Defender",
)


def _slips(state: MatchState, profile: AIProfile) -> bool:
    if profile.difficulty <= 0:
        return state.rng.random() < 0.25
    return False


def _usable_attack(state: MatchState, c: CardInstance) -> bool:
    return any(c.can_use_attack(state.arena, i) for i in range(len(c.attacks)))


def _play_basics(state: MatchState, player: int) -> None:
    ps = state.players[player]
    for uid in list(ps.hand):
        if match.can_play_basic(state, uid):
            match.play_basic(state, uid)


def _energy_target_score(state: MatchState, player: int, c: CardInstance) -> float:
    score = 0.0
    if state.players[player].active == c.uid:
        score += 50
    for attack in c.attacks:
        needed = len(attack.cost) - len(c.attached_energy)
        if needed == 1:
            score += 30
        elif needed == 0:
            score += 5
        else:
            score += max(0, 20 - needed * 5)
    return score + (c.hp or 0) / 10


def _attach_energy(state: MatchState, player: int) -> None:
    ps = state.players[player]
    energy = [uid for uid in ps.hand if match.can_attach_energy(state, uid)]
    if not energy:
        return

    best: tuple[float, CardInstance] | None = None
    for uid in ps.in_play():
        c = state.arena[uid]
        score = _energy_target_score(state, player, c)
        if best is None or score > best[0]:
            best = (score, c)
    if best is None:
        return
    target = best[1]

    wanted = {cost for attack in target.attacks for cost in attack.cost if cost != COLORLESS}
    chosen = next((e for e in energy if state.arena[e].definition.energy_type in wanted), energy[0])
    match.attach_energy(state, chosen, target.uid)


def _evolve(state: MatchState, player: int) -> None:
    if state.first_turn:
        return
    ps = state.players[player]
    for card_uid in list(ps.hand):
        for target_uid in ps.in_play():
            if match.can_evolve(state, card_uid, target_uid):
                match.evolve(state, card_uid, target_uid)
                break


def _should_use_trainer(state: MatchState, player: int, name: str) -> bool:
    ps = state.players[player]
    ops = state.players[state.opponent(player)]
    active = state.active_card(player)
    if name == "Bill":
        return len(ps.hand) < 6
    if name == "Professor Oak":
        return len(ps.hand) <= 2
    if name in ("Energy Removal", "Super Energy Removal"):
        return any(state.arena[uid].attached_energy for uid in ops.in_play())
    if name == "PlusPower":
        return active is not None and bool(active.attacks)
    if name == "Gust of Wind":
        return any(uid is not None and (state.arena[uid].remaining_hp or 0) < 40 for uid in ops.bench)
    if name == "Full Heal":
        return active is not None and active.status is not None
    if name in ("Potion", "Super Potion"):
        return any(state.arena[uid].damage > 0 for uid in ps.in_play())
    if name == "Switch":
        return (
            active is not None
            and (active.remaining_hp or 0) < 30
            and any(uid is not None and (state.arena[uid].remaining_hp or 0) > 30 for uid in ps.bench)
        )
    return True


def _use_trainers(state: MatchState, player: int, profile: AIProfile) -> None:
    ps = state.players[player]
    for name in TRAINER_PRIORITY:
        uid = next((c for c in ps.hand if state.arena[c].name == name), None)
        if uid is None or not match.can_play_trainer(state, uid):
            continue
        if _should_use_trainer(state, player, name) and not _slips(state, profile):
            match.play_trainer(state, uid)


def _bench_score(state: MatchState, c: CardInstance, attack_bonus: int, energy_bonus: int) -> int:
    score = c.remaining_hp or 0
    if _usable_attack(state, c):
        score += attack_bonus
    if c.attached_energy:
        score += energy_bonus
    return score


def _consider_retreat(state: MatchState, player: int, profile: AIProfile) -> None:
    if not match.can_retreat(state):
        return
    active = state.active_card(player)
    assert active is not None
    hp = active.remaining_hp or 0
    should = (
        hp <= 20
        or (active.status == "confused" and hp <= 40)
        or not _usable_attack(state, active)
    )
    if not should or _slips(state, profile):
        return

    ps = state.players[player]
    best_idx, best_score = -1, -1
    for i, uid in enumerate(ps.bench):
        if uid is None:
            continue
        score = _bench_score(state, state.arena[uid], 50, 20)
        if score > best_score:
            best_idx, best_score = i, score
    if best_idx != -1 and best_score > 30:
        match.retreat(state, best_idx)


def _attack_or_pass(state: MatchState, player: int) -> None:
    active = state.active_card(player)
    best_idx, best_damage = -1, -1
    if active is not None:
        for i, attack in enumerate(active.attacks):
            if match.can_attack(state, i) and attack.base_damage > best_damage:
                best_idx, best_damage = i, attack.base_damage
    if best_idx != -1:
        match.attack(state, best_idx)
    else:
        match.end_turn(state)


def ai_setup(state: MatchState, player: int) -> None:
    """Place basics during setup, the highest-HP one as the active creature."""
    ps = state.players[player]
    basics = [uid for uid in ps.hand if state.arena[uid].definition.is_basic]
    basics.sort(key=lambda uid: state.arena[uid].hp or 0, reverse=True)
    for uid in basics:
        if match.can_play_basic(state, uid):
            match.play_basic(state, uid)


def ai_choose_promotion(state: MatchState, player: int) -> None:
    ps = state.players[player]
    best_idx, best_score = -1, -1
    for i, uid in enumerate(ps.bench):
        if uid is None:
            continue
        score = _bench_score(state, state.arena[uid], 100, 30)
        if score > best_score:
            best_idx, best_score = i, score
    if best_idx != -1:
        match.promote(state, player, best_idx)


def ai_take_turn(state: MatchState, player: int, profile: AIProfile | None = None) -> None:
    """Play the main phase of `player`'s turn through the public action API.

    Expects `start_turn` to have run. The AI uses the engine RNG (`state.rng`)
    so it remains deterministic for a given seed.
    """
    profile = profile or AIProfile()
    if state.winner is not None or state.current_player != player or state.phase != "main":
        return
    if match.needs_promotion(state, player):
        ai_choose_promotion(state, player)

    _play_basics(state, player)
    _attach_energy(state, player)
    _evolve(state, player)
    _use_trainers(state, player, profile)
    _consider_retreat(state, player, profile)
    if state.winner is None and state.current_player == player and state.phase == "main":
        _attack_or_pass(state, player)


def ai_play_match(state: MatchState, profile: AIProfile | None = None, max_turns: int = 200) -> int | None:
    """Drive both seats with the AI until someone wins or `max_turns` elapse."""
    for player in (0, 1):
        ai_setup(state, player)
    while state.winner is None and state.turn_number < max_turns:
        if not match.start_turn(state):
            break
        ai_take_turn(state, state.current_player, profile)
        for player in (0, 1):
            if state.winner is None and match.needs_promotion(state, player):
                ai_choose_promotion(state, player)
    return state.winner
