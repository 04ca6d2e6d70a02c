from __future__ import annotations

from dataclasses import dataclass, field

from .cards import CardInstance
from .state import MatchState, add_log, knock_out
from .types import (
    Attack,
    CoinGateEffect,
    DiscardEnergyEffect,
    EnergyMultiplierEffect,
    HealSelfEffect,
    InflictStatusEffect,
    PerHeadsEffect,
    SelfDamageEffect,
    Status,
)


@dataclass
class AttackResult:
    executed: bool
    damage: int = 0
    confused: bool = False
    coin_flips: list[bool] = field(default_factory=list)
    status_applied: Status | None = None


@dataclass
class _EffectOutcome:
    damage: int
    cancelled: bool = False
    status: Status | None = None


def _flip(state: MatchState, result: AttackResult) -> bool:
    heads = state.flip_coin()
    result.coin_flips.append(heads)
    return heads


def _resolve_effects(
    state: MatchState,
    player: int,
    attack: Attack,
    attacker: CardInstance,
    defender: CardInstance | None,
    result: AttackResult,
) -> _EffectOutcome:
    base = attack.base_damage
    out = _EffectOutcome(damage=base)
    effects = attack.effects

    if any(isinstance(e, CoinGateEffect) for e in effects):
        heads = _flip(state, result)
        add_log(state, f"Coin flip: {'heads' if heads else 'tails'}!")
        if not heads:
            add_log(state, "The attack failed!")
            return _EffectOutcome(damage=0, cancelled=True)

    for eff in effects:
        if isinstance(eff, PerHeadsEffect):
            heads_count = sum(1 for _ in range(eff.coins) if _flip(state, result))
            add_log(state, f"Flipped {eff.coins} coins: {heads_count} heads!")
            out.damage = heads_count * base
            break

    if any(isinstance(e, EnergyMultiplierEffect) for e in effects):
        count = attacker.energy_count(state.arena)
        out.damage = base * count
        add_log(state, f"{count} Energy cards attached: {out.damage} damage!")

    for eff in effects:
        if isinstance(eff, SelfDamageEffect) and eff.amount:
            attacker.damage += eff.amount
            add_log(state, f"{attacker.name} did {eff.amount} damage to itself!")

    for eff in effects:
        if isinstance(eff, InflictStatusEffect):
            # single status field: last one applied wins
            out.status = eff.status
            if defender is not None:
                defender.inflict(eff.status)
                add_log(state, f"{defender.name} is now {eff.status.capitalize()}!")

    for eff in effects:
        if isinstance(eff, HealSelfEffect):
            healed = min(eff.amount, attacker.damage)
            attacker.damage -= healed
            add_log(state, f"{attacker.name} healed {healed} damage!")

    for eff in effects:
        if isinstance(eff, DiscardEnergyEffect):
            count = len(attacker.attached_energy) if eff.count is None else eff.count
            discarded = attacker.attached_energy[:count]
            del attacker.attached_energy[:count]
            state.players[player].discard.extend(discarded)
            add_log(state, f"{attacker.name} discarded {len(discarded)} Energy card(s).")

    return out


def apply_type_interaction(state: MatchState, damage: int, attacker: CardInstance, defender: CardInstance) -> int:
    cfg = state.config
    attacker_types = attacker.definition.types
    for weakness in defender.definition.weaknesses:
        if weakness.type in attacker_types:
            damage *= cfg.weakness_multiplier
            add_log(state, "It's super effective! (weakness)")
            break
    for resistance in defender.definition.resistances:
        if resistance.type in attacker_types:
            damage -= cfg.resistance_reduction
            add_log(state, f"Not very effective... (resistance -{cfg.resistance_reduction})")
            break
    damage -= state.turn.damage_reduction
    return max(0, damage)


def execute_attack(state: MatchState, attack_index: int) -> AttackResult:
    """Resolve one attack by the current player's active creature.

    Legality is the caller's concern (see `match.can_attack`). Always finishes
    by running between-turns processing.
    """
    player = state.current_player
    defending_player = state.opponent(player)
    attacker = state.active_card(player)
    defender = state.active_card(defending_player)
    assert attacker is not None
    attack = attacker.attacks[attack_index]
    result = AttackResult(executed=True)

    state.phase = "attack"
    add_log(state, f"{attacker.name} used {attack.name}!")

    if attacker.status == "confused":
        heads = _flip(state, result)
        add_log(state, f"Confusion check: {'heads' if heads else 'tails'}!")
        if not heads:
            attacker.damage += state.config.confusion_damage
            add_log(state, f"{attacker.name} hurt itself in confusion for {state.config.confusion_damage} damage!")
            result.executed = False
            result.confused = True
            if attacker.is_knocked_out:
                knock_out(state, player, attacker.uid)
            between_turns(state)
            return result

    outcome = _resolve_effects(state, player, attack, attacker, defender, result)
    result.status_applied = outcome.status

    if not outcome.cancelled:
        damage = outcome.damage + state.turn.damage_bonus
        if damage > 0 and defender is not None:
            damage = apply_type_interaction(state, damage, attacker, defender)
            defender.damage += damage
            add_log(state, f"{defender.name} took {damage} damage! ({defender.remaining_hp} HP remaining)")
            result.damage = damage
            if defender.is_knocked_out:
                knock_out(state, defending_player, defender.uid)

    if state.winner is None and attacker.is_knocked_out:
        knock_out(state, player, attacker.uid)

    between_turns(state)
    return result


def between_turns(state: MatchState) -> None:
    """Poison, then the sleep check, then hand the turn over."""
    if state.winner is not None:
        state.phase = "game_over"
        return
    state.phase = "between_turns"
    player = state.current_player
    ps = state.players[player]

    active = state.active_card(player)
    if active is not None and active.status == "poisoned":
        active.damage += state.config.poison_damage
        add_log(state, f"{active.name} took {state.config.poison_damage} poison damage! ({active.remaining_hp} HP)")
        if active.is_knocked_out:
            knock_out(state, player, active.uid)

    active = state.active_card(player)
    if active is not None and active.status == "asleep":
        heads = state.flip_coin()
        add_log(state, f"Sleep check for {active.name}: {'heads' if heads else 'tails'}!")
        if heads:
            active.clear_status("wake_up")
            add_log(state, f"{active.name} woke up!")

    if state.winner is not None:
        return

    state.first_turn = False
    state.turn_started = False
    state.current_player = state.opponent(player)
    state.phase = "main"
    add_log(state, f"{ps.name} ended their turn.")
