from __future__ import annotations

import pytest

from basetcg.engine.actions import (
    AttachEnergyAction,
    EndTurnAction,
    EvolveAction,
    PlayBasicAction,
    PromoteAction,
    RetreatAction,
    StartTurnAction,
)
from basetcg.engine.match import (
    attach_energy,
    can_attach_energy,
    can_evolve,
    can_play_basic,
    can_retreat,
    end_turn,
    evolve,
    needs_promotion,
    new_match,
    play_basic,
    promote,
    retreat,
    start_turn,
    step,
)
from basetcg.engine.state import MatchConfig, TurnContext
from basetcg.paths import get_paths
from basetcg.services.content import ContentService

from helpers import (
    BILL,
    CHARIZARD,
    CHARMANDER,
    CHARMELEON,
    DRATINI,
    FIRE,
    MACHOKE,
    SQUIRTLE,
    WATER,
    assert_every_card_in_one_place,
    attach,
    blank_match,
    load_cards,
    put,
)


def _preset_decks() -> dict[str, list[str]]:
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    return content.load_decks(load_cards())


def test_setup_deals_hands_and_prizes() -> None:
    decks = _preset_decks()
    state = new_match(load_cards(), decks["fire"], decks["water"], seed=11)

    assert state.phase == "setup"
    assert state.current_player in (0, 1)
    for player, ps in enumerate(state.players):
        bonus = state.mulligans[1 - player]
        assert len(ps.hand) == 7 + bonus
        assert len(ps.prizes) == 6
        assert len(ps.deck) == 60 - 13 - bonus
        assert any(state.arena[uid].definition.is_basic for uid in ps.hand)
    assert_every_card_in_one_place(state)


def test_same_seed_same_opening() -> None:
    decks = _preset_decks()
    a = new_match(load_cards(), decks["fire"], decks["water"], seed=99)
    b = new_match(load_cards(), decks["fire"], decks["water"], seed=99)
    assert a.current_player == b.current_player
    assert [ps.hand for ps in a.players] == [ps.hand for ps in b.players]
    assert [ps.prizes for ps in a.players] == [ps.prizes for ps in b.players]


def test_new_match_rejects_short_decks() -> None:
    cards = load_cards()
    with pytest.raises(ValueError):
        new_match(cards, [CHARMANDER] * 12, [CHARMANDER] * 60, seed=1)


def test_new_match_rejects_decks_without_basics() -> None:
    cards = load_cards()
    with pytest.raises(ValueError):
        new_match(cards, [FIRE] * 60, [CHARMANDER] * 60, seed=1)


def test_first_turn_waits_for_both_actives() -> None:
    decks = _preset_decks()
    state = new_match(load_cards(), decks["fire"], decks["water"], seed=5)
    assert not start_turn(state)

    for player in (0, 1):
        basic = next(uid for uid in state.players[player].hand if state.arena[uid].definition.is_basic)
        # either player may place during setup, whoever goes first
        res = step(state, PlayBasicAction(player=player, card_uid=basic))
        assert res.ok
        assert state.players[player].active == basic

    first = state.current_player
    hand_before = len(state.players[first].hand)
    assert step(state, StartTurnAction(player=first)).ok
    assert state.phase == "main"
    assert state.turn_number == 1
    assert len(state.players[first].hand) == hand_before + 1
    assert not start_turn(state)


def test_setup_placement_rejects_the_other_players_card() -> None:
    decks = _preset_decks()
    state = new_match(load_cards(), decks["fire"], decks["water"], seed=5)
    basic = next(uid for uid in state.players[1].hand if state.arena[uid].definition.is_basic)
    res = step(state, PlayBasicAction(player=0, card_uid=basic))
    assert not res.ok
    assert state.players[1].active is None


def test_deck_out_loses_at_start_of_turn() -> None:
    state = blank_match()
    put(state, 0, CHARMANDER, "active")
    put(state, 1, SQUIRTLE, "active")
    assert end_turn(state)
    state.players[1].deck.clear()
    hand_before = list(state.players[1].hand)

    assert start_turn(state)
    assert state.winner == 0
    assert state.phase == "game_over"
    assert state.players[1].hand == hand_before


def test_turn_modifiers_reset_each_turn() -> None:
    state = blank_match()
    put(state, 0, CHARMANDER, "active")
    put(state, 1, SQUIRTLE, "active")
    state.turn = TurnContext(damage_bonus=10, damage_reduction=20)
    end_turn(state)
    start_turn(state)
    assert state.turn.damage_bonus == 0
    assert state.turn.damage_reduction == 0


def test_play_basic_fills_active_then_bench() -> None:
    state = blank_match()
    a = put(state, 0, CHARMANDER)
    b = put(state, 0, DRATINI)
    assert play_basic(state, a)
    assert play_basic(state, b)
    assert state.players[0].active == a
    assert state.players[0].bench[0] == b


def test_bench_holds_five() -> None:
    state = blank_match()
    put(state, 0, CHARMANDER, "active")
    for _ in range(5):
        put(state, 0, DRATINI, "bench")
    extra = put(state, 0, DRATINI)
    assert not can_play_basic(state, extra)


def test_bench_size_follows_match_config() -> None:
    state = blank_match(config=MatchConfig(bench_slots=3))
    assert state.players[0].bench == [None, None, None]
    put(state, 0, CHARMANDER, "active")
    for _ in range(3):
        put(state, 0, DRATINI, "bench")
    extra = put(state, 0, DRATINI)
    assert not can_play_basic(state, extra)


def test_new_match_sizes_bench_from_config() -> None:
    decks = _preset_decks()
    state = new_match(load_cards(), decks["fire"], decks["water"], seed=7, config=MatchConfig(bench_slots=2))
    assert [len(ps.bench) for ps in state.players] == [2, 2]


def test_only_basics_can_be_played_directly() -> None:
    state = blank_match()
    stage1 = put(state, 0, CHARMELEON)
    assert not play_basic(state, stage1)


def test_evolution_transfers_damage_and_energy_and_clears_status() -> None:
    state = blank_match()
    base = put(state, 0, CHARMANDER, "active")
    energy = attach(state, base, FIRE, WATER)
    state.arena[base].damage = 20
    state.arena[base].inflict("poisoned")
    evo = put(state, 0, CHARMELEON)

    assert evolve(state, evo, base)
    inst = state.arena[evo]
    assert state.players[0].active == evo
    assert inst.damage == 20
    assert inst.attached_energy == energy
    assert inst.status is None
    assert inst.evolved_from == base
    assert state.arena[base].attached_energy == []
    assert_every_card_in_one_place(state)


def test_evolution_is_blocked_on_the_first_turn() -> None:
    state = blank_match()
    base = put(state, 0, CHARMANDER, "active")
    evo = put(state, 0, CHARMELEON)
    state.first_turn = True
    assert not can_evolve(state, evo, base)


def test_freshly_played_creature_cannot_evolve() -> None:
    state = blank_match()
    base = put(state, 0, CHARMANDER)
    play_basic(state, base)
    evo = put(state, 0, CHARMELEON)
    assert not can_evolve(state, evo, base)


def test_one_evolution_per_creature_per_turn() -> None:
    state = blank_match()
    base = put(state, 0, CHARMANDER, "active")
    mid = put(state, 0, CHARMELEON)
    top = put(state, 0, CHARIZARD)
    assert evolve(state, mid, base)
    assert not can_evolve(state, top, mid)
    assert not can_evolve(state, top, base)


def test_evolution_needs_the_named_predecessor() -> None:
    state = blank_match()
    base = put(state, 0, SQUIRTLE, "active")
    evo = put(state, 0, CHARMELEON)
    res = step(state, EvolveAction(player=0, card_uid=evo, target_uid=base))
    assert not res.ok
    assert res.error == "Cannot evolve."


def test_one_energy_attachment_per_turn() -> None:
    state = blank_match()
    active = put(state, 0, CHARMANDER, "active")
    put(state, 1, SQUIRTLE, "active")
    first = put(state, 0, FIRE)
    second = put(state, 0, FIRE)

    assert attach_energy(state, first, active)
    assert not can_attach_energy(state, second)
    res = step(state, AttachEnergyAction(player=0, energy_uid=second, target_uid=active))
    assert not res.ok

    end_turn(state)
    start_turn(state)
    end_turn(state)
    start_turn(state)
    assert attach_energy(state, second, active)


def test_non_resource_cards_cannot_be_attached() -> None:
    state = blank_match()
    active = put(state, 0, CHARMANDER, "active")
    card = put(state, 0, BILL)
    assert not can_attach_energy(state, card, active)


def test_retreat_pays_cost_swaps_and_clears_status() -> None:
    state = blank_match()
    active = put(state, 0, CHARMANDER, "active")
    bench = put(state, 0, DRATINI, "bench")
    paid, kept = attach(state, active, FIRE, WATER)
    state.arena[active].inflict("confused")

    res = step(state, RetreatAction(player=0, bench_index=0))
    assert res.ok
    ps = state.players[0]
    assert ps.active == bench
    assert ps.bench[0] == active
    assert ps.discard == [paid]
    assert state.arena[active].attached_energy == [kept]
    assert state.arena[active].status is None


def test_retreat_needs_energy_and_a_bench() -> None:
    state = blank_match()
    active = put(state, 0, MACHOKE, "active")
    attach(state, active, FIRE, FIRE, FIRE)
    assert not can_retreat(state)
    put(state, 0, DRATINI, "bench")
    assert can_retreat(state)
    state.arena[active].inflict("paralyzed")
    assert not can_retreat(state)


def test_retreat_to_empty_slot_fails() -> None:
    state = blank_match()
    put(state, 0, CHARMANDER, "active")
    put(state, 0, DRATINI, "bench")
    assert not retreat(state, 3)


def test_pending_promotion_blocks_other_actions() -> None:
    state = blank_match()
    bench = put(state, 0, CHARMANDER, "bench")
    put(state, 1, SQUIRTLE, "active")
    energy = put(state, 0, FIRE)
    assert needs_promotion(state, 0)

    res = step(state, AttachEnergyAction(player=0, energy_uid=energy, target_uid=bench))
    assert not res.ok
    assert res.error == "Promote a benched creature first."
    assert not end_turn(state)

    assert not promote(state, 0, 2)
    assert step(state, PromoteAction(player=0, bench_index=0)).ok
    assert state.players[0].active == bench
    assert not needs_promotion(state, 0)
    assert attach_energy(state, energy, bench)


def test_step_rejects_out_of_turn_actions() -> None:
    state = blank_match()
    put(state, 0, CHARMANDER, "active")
    put(state, 1, SQUIRTLE, "active")
    res = step(state, EndTurnAction(player=1))
    assert not res.ok
    assert res.error == "Not your turn."
    assert state.current_player == 0
    assert len(state.action_log) == 1


def test_step_returns_the_new_log_entries() -> None:
    state = blank_match()
    put(state, 0, CHARMANDER, "active")
    put(state, 1, SQUIRTLE, "active")
    res = step(state, EndTurnAction(player=0))
    assert res.ok
    assert res.events == state.log[-len(res.events):]
    assert res.events[-1].message == "Player ended their turn."


def test_first_turn_flag_clears_after_the_first_turn() -> None:
    decks = _preset_decks()
    state = new_match(load_cards(), decks["fire"], decks["water"], seed=3)
    for player in (0, 1):
        basic = next(uid for uid in state.players[player].hand if state.arena[uid].definition.is_basic)
        play_basic(state, basic)
    assert start_turn(state)
    assert state.first_turn
    assert end_turn(state)
    assert not state.first_turn
