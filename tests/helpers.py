from __future__ import annotations

import random
from collections import Counter
from functools import lru_cache
from typing import Iterable, Sequence

from basetcg.engine.cards import CardArena
from basetcg.engine.state import MatchConfig, MatchState, PlayerState, lineage
from basetcg.engine.types import CardDatabase, CardDefinition
from basetcg.paths import get_paths
from basetcg.services.content import ContentService

CHARMANDER = "base1-46"
CHARMELEON = "base1-24"
CHARIZARD = "base1-4"
SQUIRTLE = "base1-63"
WARTORTLE = "base1-42"
BLASTOISE = "base1-2"
MACHOP = "base1-52"
MACHOKE = "base1-34"
ABRA = "base1-43"
BULBASAUR = "base1-44"
DODUO = "base1-48"
DROWZEE = "base1-49"
KOFFING = "base1-51"
NIDORAN = "base1-55"
PIKACHU = "base1-58"
DRATINI = "base1-26"

CLEFAIRY_DOLL = "base1-70"
COMPUTER_SEARCH = "base1-71"
DEVOLUTION_SPRAY = "base1-72"
IMPOSTER_OAK = "base1-73"
ITEM_FINDER = "base1-74"
LASS = "base1-75"
BREEDER = "base1-76"
TRADER = "base1-77"
SCOOP_UP = "base1-78"
SUPER_ENERGY_REMOVAL = "base1-79"
DEFENDER = "base1-80"
ENERGY_RETRIEVAL = "base1-81"
FULL_HEAL = "base1-82"
MAINTENANCE = "base1-83"
PLUSPOWER = "base1-84"
POKEMON_CENTER = "base1-85"
PROFESSOR_OAK = "base1-88"
REVIVE = "base1-89"
SUPER_POTION = "base1-90"
BILL = "base1-91"
ENERGY_REMOVAL = "base1-92"
GUST_OF_WIND = "base1-93"
POTION = "base1-94"
SWITCH = "base1-95"

DCE = "base1-96"
FIGHTING = "base1-97"
FIRE = "base1-98"
GRASS = "base1-99"
LIGHTNING = "base1-100"
PSYCHIC = "base1-101"
WATER = "base1-102"


@lru_cache(maxsize=1)
def load_cards() -> CardDatabase:
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    return content.load_cards_db()


class ScriptedCoins(random.Random):
    """Random source whose coin flips follow a script (True = heads).

    Shuffles keep using the seeded generator; once the script runs out, flips
    fall back to it as well.
    """

    def __init__(self, flips: Iterable[bool] = (), seed: int = 0) -> None:
        super().__init__(seed)
        self.flips = list(flips)

    def random(self) -> float:
        if self.flips:
            return 0.0 if self.flips.pop(0) else 0.99
        return super().random()


def blank_match(
    deck_size: int = 20,
    prizes: int = 6,
    flips: Sequence[bool] = (),
    config: MatchConfig | None = None,
) -> MatchState:
    """A match already in player 0's main phase with empty hands and boards.

    Both decks are Fire Energy; tests place whatever they need with `put`.
    """
    cards = load_cards()
    config = config or MatchConfig()
    arena = CardArena()
    players = []
    for name in ("Player", "Opponent"):
        deck = [arena.create(cards.get(FIRE)).uid for _ in range(deck_size)]
        ps = PlayerState(name=name, deck=deck, bench=[None] * config.bench_slots)
        for _ in range(prizes):
            ps.prizes.append(ps.deck.pop())
        players.append(ps)
    state = MatchState(
        cards=cards,
        config=config,
        seed=0,
        rng=ScriptedCoins(flips),
        arena=arena,
        players=players,
    )
    state.phase = "main"
    state.turn_number = 3
    state.first_turn = False
    state.turn_started = True
    return state


def put(state: MatchState, player: int, card: str | CardDefinition, zone: str = "hand") -> int:
    """Create a fresh instance and place it; returns its uid."""
    definition = state.cards.get(card) if isinstance(card, str) else card
    uid = state.arena.create(definition).uid
    ps = state.players[player]
    if zone == "active":
        assert ps.active is None
        ps.active = uid
    elif zone == "bench":
        slot = ps.first_empty_bench_slot()
        assert slot is not None
        ps.bench[slot] = uid
    else:
        getattr(ps, zone).append(uid)
    return uid


def attach(state: MatchState, target_uid: int, *energy_ids: str) -> list[int]:
    uids = [state.arena.create(state.cards.get(e)).uid for e in energy_ids]
    state.arena[target_uid].attached_energy.extend(uids)
    return uids


def zone_counts(state: MatchState) -> Counter[int]:
    """How many places each uid is referenced from: zones, attachments and lineage."""
    seen: Counter[int] = Counter()
    for ps in state.players:
        seen.update(ps.deck)
        seen.update(ps.hand)
        seen.update(ps.prizes)
        seen.update(ps.discard)
        for uid in ps.in_play():
            seen[uid] += 1
            seen.update(state.arena[uid].attached_energy)
            seen.update(lineage(state, uid))
    return seen


def assert_every_card_in_one_place(state: MatchState) -> None:
    counts = zone_counts(state)
    assert set(counts) == set(state.arena), "a card went missing"
    assert all(n == 1 for n in counts.values()), "a card is in two places"
