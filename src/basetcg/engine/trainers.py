"""One-shot action card effects.

Every effect receives (state, acting player, card uid) after the card has
been taken out of the hand, checks its own preconditions before touching any
zone, and returns True only if it resolved. `play_trainer` puts a card whose
effect failed back into the hand, so a failed effect never consumes the card.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable

from .state import MatchState, add_log, evolve_in_place, lineage, locate

TrainerEffect = Callable[[MatchState, int, int], bool]

TRAINER_EFFECTS: dict[str, TrainerEffect] = {}


def trainer(*names: str) -> Callable[[TrainerEffect], TrainerEffect]:
    def register(fn: TrainerEffect) -> TrainerEffect:
        for name in names:
            TRAINER_EFFECTS[name] = fn
        return fn

    return register


def _with_energy(state: MatchState, uids: list[int]) -> int | None:
    for uid in uids:
        if state.arena[uid].attached_energy:
            return uid
    return None


def _take_from_hand_end(state: MatchState, player: int, count: int) -> list[int]:
    hand = state.players[player].hand
    taken = hand[-count:] if count else []
    del hand[len(hand) - len(taken):]
    return taken


@trainer("Bill")
def _bill(state: MatchState, player: int, uid: int) -> bool:
    drawn = state.players[player].draw_many(2)
    add_log(state, f"Bill: Drew {len(drawn)} cards.")
    return True


@trainer("Professor Oak")
def _professor_oak(state: MatchState, player: int, uid: int) -> bool:
    ps = state.players[player]
    discarded = len(ps.hand)
    ps.discard.extend(ps.hand)
    ps.hand = []
    drawn = ps.draw_many(7)
    add_log(state, f"Professor Oak: Discarded {discarded} cards, drew {len(drawn)}.")
    return True


@trainer("Imposter Professor Oak")
def _imposter_professor_oak(state: MatchState, player: int, uid: int) -> bool:
    ops = state.players[state.opponent(player)]
    ops.deck.extend(ops.hand)
    ops.hand = []
    ops.shuffle_deck(state.rng)
    ops.draw_many(7)
    add_log(state, "Imposter Professor Oak: Opponent shuffled their hand and drew 7!")
    return True


@trainer("Energy Removal")
def _energy_removal(state: MatchState, player: int, uid: int) -> bool:
    ops = state.players[state.opponent(player)]
    target = _with_energy(state, ops.in_play())
    if target is None:
        add_log(state, "Energy Removal: No valid target.")
        return False
    inst = state.arena[target]
    removed = inst.attached_energy.pop()
    ops.discard.append(removed)
    add_log(state, f"Energy Removal: Removed {state.arena[removed].name} from {inst.name}.")
    return True


@trainer("Super Energy Removal")
def _super_energy_removal(state: MatchState, player: int, uid: int) -> bool:
    ps = state.players[player]
    ops = state.players[state.opponent(player)]
    mine = _with_energy(state, ps.in_play())
    theirs = _with_energy(state, ops.in_play())
    if mine is None or theirs is None:
        return False

    own = state.arena[mine].attached_energy.pop()
    ps.discard.append(own)

    target = state.arena[theirs]
    count = min(2, len(target.attached_energy))
    removed = target.attached_energy[:count]
    del target.attached_energy[:count]
    ops.discard.extend(removed)
    add_log(
        state,
        f"Super Energy Removal: Discarded own {state.arena[own].name}, removed {count} energy from {target.name}.",
    )
    return True


@trainer("Gust of Wind")
def _gust_of_wind(state: MatchState, player: int, uid: int) -> bool:
    ops = state.players[state.opponent(player)]
    slot = ops.first_benched_slot()
    if slot is None or ops.active is None:
        return False
    ops.active, ops.bench[slot] = ops.bench[slot], ops.active
    assert ops.active is not None
    add_log(state, f"Gust of Wind: {state.arena[ops.active].name} is now the Active creature!")
    return True


@trainer("Switch")
def _switch(state: MatchState, player: int, uid: int) -> bool:
    ps = state.players[player]
    slot = ps.first_benched_slot()
    if slot is None or ps.active is None:
        return False
    old = ps.active
    ps.active, ps.bench[slot] = ps.bench[slot], old
    state.arena[old].clear_status("switch")
    assert ps.active is not None
    add_log(state, f"Switch: Swapped {state.arena[old].name} with {state.arena[ps.active].name}.")
    return True


@trainer("Potion")
def _potion(state: MatchState, player: int, uid: int) -> bool:
    target = next((c for c in state.players[player].in_play() if state.arena[c].damage > 0), None)
    if target is None:
        return False
    inst = state.arena[target]
    healed = min(state.config.potion_heal, inst.damage)
    inst.damage -= healed
    add_log(state, f"Potion: Healed {healed} damage from {inst.name}.")
    return True


@trainer("Super Potion")
def _super_potion(state: MatchState, player: int, uid: int) -> bool:
    ps = state.players[player]
    target = next(
        (c for c in ps.in_play() if state.arena[c].damage > 0 and state.arena[c].attached_energy),
        None,
    )
    if target is None:
        return False
    inst = state.arena[target]
    removed = inst.attached_energy.pop()
    ps.discard.append(removed)
    healed = min(state.config.super_potion_heal, inst.damage)
    inst.damage -= healed
    add_log(state, f"Super Potion: Discarded {state.arena[removed].name}, healed {healed} from {inst.name}.")
    return True


@trainer("PlusPower")
def _plus_power(state: MatchState, player: int, uid: int) -> bool:
    bonus = state.config.plus_power_bonus
    state.turn = replace(state.turn, damage_bonus=state.turn.damage_bonus + bonus)
    add_log(state, f"PlusPower: Attacks do {bonus} more damage this turn.")
    return True


@trainer("Defender")
def _defender(state: MatchState, player: int, uid: int) -> bool:
    reduction = state.config.defender_reduction
    state.turn = replace(state.turn, damage_reduction=state.turn.damage_reduction + reduction)
    add_log(state, f"Defender: Damage is reduced by {reduction} this turn.")
    return True


@trainer("Full Heal")
def _full_heal(state: MatchState, player: int, uid: int) -> bool:
    active = state.active_card(player)
    if active is None or active.status is None:
        return False
    cured = active.clear_status("full_heal")
    add_log(state, f"Full Heal: Cured {active.name}'s {cured}!")
    return True


@trainer("Revive")
def _revive(state: MatchState, player: int, uid: int) -> bool:
    ps = state.players[player]
    basic = next((c for c in ps.discard if state.arena[c].definition.is_basic), None)
    slot = ps.first_empty_bench_slot()
    if basic is None or slot is None:
        return False
    ps.discard.remove(basic)
    inst = state.arena[basic]
    inst.damage = (inst.hp or 0) // 2
    inst.clear_status("revive")
    ps.bench[slot] = basic
    add_log(state, f"Revive: {inst.name} returned to the Bench with {inst.remaining_hp} HP!")
    return True


@trainer("Maintenance")
def _maintenance(state: MatchState, player: int, uid: int) -> bool:
    ps = state.players[player]
    if len(ps.hand) < 2:
        return False
    ps.deck.extend(_take_from_hand_end(state, player, 2))
    ps.shuffle_deck(state.rng)
    ps.draw()
    add_log(state, "Maintenance: Shuffled 2 cards into the deck, drew 1.")
    return True


@trainer("Computer Search")
def _computer_search(state: MatchState, player: int, uid: int) -> bool:
    ps = state.players[player]
    if len(ps.hand) < 2 or not ps.deck:
        return False
    ps.discard.extend(_take_from_hand_end(state, player, 2))
    found = ps.draw()
    assert found is not None
    add_log(state, f"Computer Search: Discarded 2, found {state.arena[found].name}!")
    return True


@trainer("Item Finder")
def _item_finder(state: MatchState, player: int, uid: int) -> bool:
    ps = state.players[player]
    if len(ps.hand) < 2:
        return False
    found = next((c for c in ps.discard if state.arena[c].definition.category == "action"), None)
    if found is None:
        return False
    ps.discard.remove(found)
    ps.discard.extend(_take_from_hand_end(state, player, 2))
    ps.hand.append(found)
    add_log(state, f"Item Finder: Retrieved {state.arena[found].name} from the discard pile.")
    return True


@trainer("Pokémon Trader")
def _creature_trader(state: MatchState, player: int, uid: int) -> bool:
    ps = state.players[player]
    in_hand = next((c for c in ps.hand if state.arena[c].definition.is_creature), None)
    in_deck = next((c for c in ps.deck if state.arena[c].definition.is_creature), None)
    if in_hand is None or in_deck is None:
        return False
    ps.hand.remove(in_hand)
    ps.deck.remove(in_deck)
    ps.deck.append(in_hand)
    ps.hand.append(in_deck)
    ps.shuffle_deck(state.rng)
    add_log(state, f"Pokémon Trader: Traded {state.arena[in_hand].name} for {state.arena[in_deck].name}.")
    return True


@trainer("Pokémon Breeder")
def _creature_breeder(state: MatchState, player: int, uid: int) -> bool:
    ps = state.players[player]
    for card_uid in ps.hand:
        card = state.arena[card_uid].definition
        if card.category != "creature" or card.stage != "stage2" or card.evolves_from is None:
            continue
        for target_uid in ps.in_play():
            target = state.arena[target_uid]
            if not target.definition.is_basic or target.played_this_turn:
                continue
            if card.evolves_from not in target.definition.evolves_to:
                continue
            evolve_in_place(state, player, card_uid, target_uid)
            add_log(state, f"Pokémon Breeder: Evolved {target.name} directly into {card.name}!")
            return True
    return False


@trainer("Pokémon Center")
def _creature_center(state: MatchState, player: int, uid: int) -> bool:
    ps = state.players[player]
    damaged = [c for c in ps.in_play() if state.arena[c].damage > 0]
    if not damaged:
        return False
    for c in damaged:
        inst = state.arena[c]
        inst.damage = 0
        ps.discard.extend(inst.attached_energy)
        inst.attached_energy = []
    add_log(state, f"Pokémon Center: Healed {len(damaged)} creature(s) and discarded their Energy.")
    return True


@trainer("Scoop Up")
def _scoop_up(state: MatchState, player: int, uid: int) -> bool:
    ps = state.players[player]
    target: int | None = None
    for c in ps.bench:
        if c is not None and state.arena[c].damage > 0:
            target = c
            break
    if target is None and ps.active is not None and state.arena[ps.active].damage > 0 and ps.bench_count() > 0:
        target = ps.active
    if target is None:
        return False

    inst = state.arena[target]
    chain = [target, *lineage(state, target)]
    ps.hand.extend(chain)
    ps.hand.extend(inst.attached_energy)
    inst.attached_energy = []
    for c in chain:
        state.arena[c].damage = 0
        state.arena[c].evolved_from = None
    inst.clear_status("scoop_up")

    if ps.active == target:
        slot = ps.first_benched_slot()
        assert slot is not None
        ps.active = ps.bench[slot]
        ps.bench[slot] = None
    else:
        ps.replace_in_play(target, None)
    add_log(state, f"Scoop Up: Returned {inst.name} to the hand.")
    return True


@trainer("Lass")
def _lass(state: MatchState, player: int, uid: int) -> bool:
    count = 0
    for p_i in (player, state.opponent(player)):
        ps = state.players[p_i]
        actions = [c for c in ps.hand if state.arena[c].definition.category == "action"]
        for c in actions:
            ps.hand.remove(c)
            ps.deck.append(c)
        ps.shuffle_deck(state.rng)
        count += len(actions)
    add_log(state, f"Lass: Shuffled {count} action cards back into the decks.")
    return True


@trainer("Devolution Spray")
def _devolution_spray(state: MatchState, player: int, uid: int) -> bool:
    ps = state.players[player]
    evolved = next((c for c in ps.in_play() if state.arena[c].evolved_from is not None), None)
    if evolved is None:
        return False
    top = state.arena[evolved]
    assert top.evolved_from is not None
    base = state.arena[top.evolved_from]

    base.attached_energy = top.attached_energy
    base.damage = top.damage
    base.clear_status("devolve")
    top.attached_energy = []
    top.evolved_from = None
    top.damage = 0
    top.clear_status("devolve")
    ps.replace_in_play(evolved, base.uid)
    ps.hand.append(evolved)
    add_log(state, f"Devolution Spray: {top.name} devolved back to {base.name}.")
    return True


@trainer("Clefairy Doll", "Mysterious Fossil")
def _doll(state: MatchState, player: int, uid: int) -> bool:
    ps = state.players[player]
    slot = ps.first_empty_bench_slot()
    if ps.active is not None and slot is None:
        return False
    inst = state.arena[uid]
    # The instance is rebound to a basic-creature variant; the catalog entry is untouched.
    inst.definition = replace(inst.definition, category="creature", stage="basic", hp=10)
    if ps.active is None:
        ps.active = uid
    else:
        assert slot is not None
        ps.bench[slot] = uid
    add_log(state, f"{inst.name} was placed into play!")
    return True


def play_trainer(state: MatchState, player: int, uid: int) -> bool:
    """Resolve an action card from `player`'s hand; all-or-nothing."""
    ps = state.players[player]
    inst = state.arena[uid]
    effect = TRAINER_EFFECTS.get(inst.name)
    if uid not in ps.hand:
        return False
    index = ps.hand.index(uid)
    del ps.hand[index]

    if effect is None:
        add_log(state, f"{inst.name}: no effect.")
        ps.discard.append(uid)
        return True

    ok = effect(state, player, uid)
    if ok:
        # an effect may have put the card itself into play
        if locate(state, uid) is None:
            ps.discard.append(uid)
    else:
        ps.hand.insert(index, uid)
    return ok
