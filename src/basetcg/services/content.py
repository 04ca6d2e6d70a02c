from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from basetcg.engine.types import (
    COLORLESS,
    Ability,
    Attack,
    AttackEffect,
    CardCategory,
    CardDatabase,
    CardDefinition,
    CardImages,
    CoinGateEffect,
    DiscardEnergyEffect,
    EnergyMultiplierEffect,
    HealSelfEffect,
    InflictStatusEffect,
    PerHeadsEffect,
    SelfDamageEffect,
    Stage,
    TypeModifier,
)


class ContentError(RuntimeError):
    pass


_SUPERTYPES: dict[str, CardCategory] = {
    "Pokémon": "creature",
    "Trainer": "action",
    "Energy": "resource",
}

_STAGES: dict[str, Stage] = {
    "Basic": "basic",
    "Stage 1": "stage1",
    "Stage 2": "stage2",
}

_ENERGY_TYPES = ("Grass", "Fire", "Water", "Lightning", "Psychic", "Fighting")

ANY_TYPE_ENERGY = "Double Colorless Energy"

_SELF_DAMAGE_RE = re.compile(r"does (\d+) damage to itself")
_HEAL_RE = re.compile(r"remove (\d+) damage")
_DISCARD_RE = re.compile(r"discard (\d+)")


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def _load_schema(path: Path) -> object:
    return _load_json(path)


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: e.path)
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


def _optional_str(obj: Mapping[str, object], key: str) -> str | None:
    v = obj.get(key)
    if v is None:
        return None
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _str_tuple(obj: Mapping[str, object], key: str) -> tuple[str, ...]:
    v = obj.get(key, [])
    if not isinstance(v, list):
        raise ContentError(f"Expected list for {key}")
    return tuple(item for item in v if isinstance(item, str))


def compile_attack_text(text: str) -> tuple[AttackEffect, ...]:
    """Compile printed attack text into tagged effects.

    Recognizes the handful of phrasings used by the supported card pool. Text
    that matches nothing compiles to no effects.
    """
    t = text.lower()
    effects: list[AttackEffect] = []

    flips = "flip a coin" in t or "flip 2 coins" in t
    if flips and "tails, this attack does nothing" in t:
        effects.append(CoinGateEffect())
    if "flip 2 coins" in t and ("damage for each heads" in t or "times the number of heads" in t):
        effects.append(PerHeadsEffect(coins=2))

    if "times the number of" in t and "energy" in t:
        effects.append(EnergyMultiplierEffect())

    m = _SELF_DAMAGE_RE.search(t)
    if m and int(m.group(1)):
        effects.append(SelfDamageEffect(amount=int(m.group(1))))

    # the defender has one status slot; later entries overwrite earlier ones
    if "paralyz" in t:
        effects.append(InflictStatusEffect(status="paralyzed"))
    if "poison" in t:
        effects.append(InflictStatusEffect(status="poisoned"))
    if "confus" in t:
        effects.append(InflictStatusEffect(status="confused"))
    if "sleep" in t:
        effects.append(InflictStatusEffect(status="asleep"))

    if "remove" in t and "damage counter" in t:
        m = _HEAL_RE.search(t)
        effects.append(HealSelfEffect(amount=10 * (int(m.group(1)) if m else 1)))

    if "discard" in t and "energy" in t:
        count: int | None
        if "all" in t.split():
            count = None
        else:
            m = _DISCARD_RE.search(t)
            count = int(m.group(1)) if m else 1
        effects.append(DiscardEnergyEffect(count=count))

    return tuple(effects)


def _parse_effect(raw: Mapping[str, object]) -> AttackEffect:
    t = raw.get("type")
    if not isinstance(t, str):
        raise ContentError("Effect missing type")
    if t == "coin_gate":
        return CoinGateEffect()
    if t == "per_heads":
        coins = raw.get("coins", 2)
        if not isinstance(coins, int):
            raise ContentError("Expected int for coins")
        return PerHeadsEffect(coins=coins)
    if t == "energy_multiplier":
        return EnergyMultiplierEffect()
    if t == "self_damage":
        return SelfDamageEffect(amount=_require_int(raw, "amount"))
    if t == "inflict_status":
        return InflictStatusEffect(status=_require_str(raw, "status"))  # type: ignore[arg-type]
    if t == "heal_self":
        return HealSelfEffect(amount=_require_int(raw, "amount"))
    if t == "discard_energy":
        count = raw.get("count", 1)
        if count is not None and not isinstance(count, int):
            raise ContentError("Expected int or null for count")
        return DiscardEnergyEffect(count=count)
    raise ContentError(f"Unknown effect type: {t}")


def _parse_attack(raw: Mapping[str, object]) -> Attack:
    text = raw.get("text") or ""
    damage = raw.get("damage") or ""
    if not isinstance(text, str) or not isinstance(damage, str):
        raise ContentError("Attack text and damage must be strings")
    effects_raw = raw.get("effects")
    if isinstance(effects_raw, list):
        # explicit tags take precedence over the printed text
        effects = tuple(_parse_effect(e) for e in effects_raw if isinstance(e, dict))
    else:
        effects = compile_attack_text(text)
    return Attack(
        name=_require_str(raw, "name"),
        cost=_str_tuple(raw, "cost"),
        damage=damage,
        text=text,
        effects=effects,
    )


def _parse_modifiers(raw: object) -> tuple[TypeModifier, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(
        TypeModifier(type=_require_str(m, "type"), value=_require_str(m, "value")) for m in raw if isinstance(m, dict)
    )


def _stage(subtypes: tuple[str, ...]) -> Stage | None:
    for sub in subtypes:
        if sub in _STAGES:
            return _STAGES[sub]
    return None


def _resource_types(name: str, declared: tuple[str, ...]) -> tuple[str, ...]:
    if declared:
        return declared
    for t in _ENERGY_TYPES:
        if name.startswith(t):
            return (t,)
    return (COLORLESS,)


def _parse_card(item: Mapping[str, object]) -> CardDefinition:
    card_id = _require_str(item, "id")
    name = _require_str(item, "name")
    supertype = _require_str(item, "supertype")
    category = _SUPERTYPES.get(supertype)
    if category is None:
        raise ContentError(f"Unknown supertype for {card_id}: {supertype}")

    types = _str_tuple(item, "types")
    subtypes = _str_tuple(item, "subtypes")
    stage: Stage | None = None
    hp: int | None = None
    if category == "creature":
        stage = _stage(subtypes)
        if stage is None:
            raise ContentError(f"Creature {card_id} has no stage subtype")
        hp = _require_int(item, "hp")
    elif category == "resource":
        types = _resource_types(name, types)

    retreat = item.get("convertedRetreatCost")
    retreat_cost = retreat if isinstance(retreat, int) else len(_str_tuple(item, "retreatCost"))

    attacks_raw = item.get("attacks", [])
    abilities_raw = item.get("abilities", [])
    attacks = tuple(_parse_attack(a) for a in attacks_raw if isinstance(a, dict)) if isinstance(attacks_raw, list) else ()
    abilities = (
        tuple(
            Ability(name=_require_str(a, "name"), text=str(a.get("text", "")), type=str(a.get("type", "")))
            for a in abilities_raw
            if isinstance(a, dict)
        )
        if isinstance(abilities_raw, list)
        else ()
    )

    images = None
    raw_images = item.get("images")
    if isinstance(raw_images, dict):
        images = CardImages(small=_require_str(raw_images, "small"), large=_require_str(raw_images, "large"))

    provides_any = item.get("providesAnyType") is True or name == ANY_TYPE_ENERGY

    return CardDefinition(
        id=card_id,
        name=name,
        category=category,
        rarity=_optional_str(item, "rarity") or "Common",
        number=_optional_str(item, "number") or "",
        stage=stage,
        evolves_from=_optional_str(item, "evolvesFrom"),
        evolves_to=_str_tuple(item, "evolvesTo"),
        hp=hp,
        types=types,
        attacks=attacks,
        abilities=abilities,
        weaknesses=_parse_modifiers(item.get("weaknesses")),
        resistances=_parse_modifiers(item.get("resistances")),
        retreat_cost=retreat_cost,
        provides_any_type=provides_any,
        images=images,
    )


def parse_cards(raw: object, schema: object | None = None, *, context: str = "cards") -> CardDatabase:
    """Validate (when a schema is given) and parse a `{"cards": [...]}` catalog."""
    if schema is not None:
        validate_json(raw, schema, context=context)
    if not isinstance(raw, dict):
        raise ContentError(f"{context} must be an object")
    raw_cards = raw.get("cards")
    if not isinstance(raw_cards, list):
        raise ContentError(f"{context}.cards must be a list")

    cards: dict[str, CardDefinition] = {}
    for item in raw_cards:
        if not isinstance(item, dict):
            continue
        card = _parse_card(item)
        if card.id in cards:
            raise ContentError(f"Duplicate card id: {card.id}")
        cards[card.id] = card
    return CardDatabase(cards=cards)


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_cards_db(self) -> CardDatabase:
        cards_path = self._data_dir / "cards.json"
        schema = _load_schema(self._schema_dir / "cards.schema.json")
        raw = _load_json(cards_path)
        return parse_cards(raw, schema, context=str(cards_path))

    def load_decks(self, db: CardDatabase | None = None) -> dict[str, list[str]]:
        """Return preset decks as flat lists of card ids.

        With `db`, every referenced id must exist in it.
        """
        path = self._data_dir / "decks.json"
        schema = _load_schema(self._schema_dir / "decks.schema.json")
        raw = _load_json(path)
        validate_json(raw, schema, context=str(path))
        if not isinstance(raw, dict):
            raise ContentError("decks.json must be an object")
        raw_decks = raw.get("decks")
        if not isinstance(raw_decks, dict):
            raise ContentError("decks.json.decks must be an object")

        out: dict[str, list[str]] = {}
        for name, entries in raw_decks.items():
            if not isinstance(name, str) or not isinstance(entries, list):
                continue
            deck: list[str] = []
            for e in entries:
                if not isinstance(e, dict):
                    continue
                card_id = _require_str(e, "card_id")
                if db is not None and card_id not in db.cards:
                    raise ContentError(f"Deck {name} references unknown card {card_id}")
                deck.extend([card_id] * _require_int(e, "count"))
            out[name] = deck
        return out

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        db = self.load_cards_db()
        _ = self.load_decks(db)
