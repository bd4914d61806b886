"""
Tag effect resolver for creature scoring.
Deterministic, order-independent, safe folding of tag strings into effects.

Tags are authored as colon-delimited strings on species, abilities and held
items. They are parsed into the effect types below before anything is
computed from them. Anything that does not parse is skipped, never raised.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from utils import bounded, normalize_type_name, parse_factor, parse_number, strip_prefix, type_name_set

logger = logging.getLogger(__name__)


# ===== CONSTANTS =====

STAT_KEYS: Tuple[str, ...] = ("hp", "atk", "def", "spa", "spd", "spe")

# "speed" is accepted as a long form of "spe"
STAT_ALIASES: Dict[str, str] = {key: key for key in STAT_KEYS}
STAT_ALIASES["speed"] = "spe"

RELATION_FACTORS: Dict[str, float] = {
    "resist": 0.5,
    "weak": 2.0,
}

KNOWN_FLAGS: FrozenSet[str] = frozenset({"wonder_guard", "avoid"})

EVOLUTION_KINDS: FrozenSet[str] = frozenset({"item", "stone"})


# ===== TAG EFFECT TYPES =====

@dataclass(frozen=True)
class StatMult:
    """mult:<stat>:<factor>"""
    stat: str
    factor: float


@dataclass(frozen=True)
class StatIfTypeMult:
    """mult:stat_if_type:<stat>:<type>:<factor>"""
    stat: str
    type_name: str
    factor: float


@dataclass(frozen=True)
class DefEffMult:
    """mult:defeff:<factor> (physical bulk)"""
    factor: float


@dataclass(frozen=True)
class SpDefEffMult:
    """mult:spdeff:<factor> (special bulk)"""
    factor: float


@dataclass(frozen=True)
class DefenseMult:
    """mult:defense:<factor> (both defensive potentials)"""
    factor: float


@dataclass(frozen=True)
class OffMult:
    """mult:off:<factor>"""
    factor: float


@dataclass(frozen=True)
class OffTypeMult:
    """mult:off_type:<type>:<factor>"""
    type_name: str
    factor: float


@dataclass(frozen=True)
class InTypeMult:
    """mult:in_type:<type>:<factor>"""
    type_name: str
    factor: float


@dataclass(frozen=True)
class TypeRelation:
    """immune:<type>, resist:<type> or weak:<type>"""
    kind: str
    type_name: str


@dataclass(frozen=True)
class Flag:
    """flag:<name> (and the legacy special:wonder_guard)"""
    name: str


@dataclass(frozen=True)
class CritTag:
    """crit:chance:+N, crit:damage:xN or crit:stage:+N"""
    kind: str
    value: float


@dataclass(frozen=True)
class MetaTag:
    """Tags consumed outside scoring: evolution:<kind>, species:<name>."""
    kind: str
    value: str


TagEffect = Union[
    StatMult, StatIfTypeMult, DefEffMult, SpDefEffMult, DefenseMult, OffMult,
    OffTypeMult, InTypeMult, TypeRelation, Flag, CritTag, MetaTag,
]


# ===== PARSING =====

def _parse_mult(parts: List[str]) -> Optional[TagEffect]:
    """Parse the mult:* family."""
    if len(parts) == 3:
        target = parts[1].strip().lower()
        factor = parse_factor(parts[2])
        if factor is None:
            return None
        if target in STAT_ALIASES:
            return StatMult(STAT_ALIASES[target], factor)
        if parts[1] == "defeff":
            return DefEffMult(factor)
        if parts[1] == "spdeff":
            return SpDefEffMult(factor)
        if parts[1] == "defense":
            return DefenseMult(factor)
        if parts[1] == "off":
            return OffMult(factor)
        return None

    if len(parts) == 4 and parts[1] in ("off_type", "in_type"):
        type_name = normalize_type_name(parts[2])
        factor = parse_factor(parts[3])
        if not type_name or factor is None:
            return None
        if parts[1] == "off_type":
            return OffTypeMult(type_name, factor)
        return InTypeMult(type_name, factor)

    if len(parts) == 5 and parts[1] == "stat_if_type":
        stat = STAT_ALIASES.get(parts[2].strip().lower())
        type_name = normalize_type_name(parts[3])
        factor = parse_factor(parts[4])
        if stat is None or not type_name or factor is None:
            return None
        return StatIfTypeMult(stat, type_name, factor)

    return None


def _parse_crit(parts: List[str]) -> Optional[CritTag]:
    """Parse the crit:* family (keyword matched case-insensitively)."""
    if len(parts) != 3:
        return None
    kind = parts[1].strip().lower()
    value = parts[2].strip()
    if not value:
        return None

    if kind == "chance":
        parsed = parse_number(strip_prefix(value, ("+",)))
    elif kind == "stage":
        parsed = parse_number(strip_prefix(value, ("+",)))
    elif kind == "damage":
        parsed = parse_factor(strip_prefix(value, ("x", "X")))
    else:
        return None

    if parsed is None:
        return None
    return CritTag(kind, parsed)


def parse_tag(tag: str) -> Optional[TagEffect]:
    """
    Parse a single tag string.

    Args:
        tag: Raw tag like "mult:atk:1.2" or "immune:ground"

    Returns:
        The parsed effect, or None if the tag is unknown or malformed
    """
    if not isinstance(tag, str):
        return None
    tag = tag.strip()
    if not tag:
        return None

    parts = tag.split(":")
    head = parts[0]

    if head.lower() == "crit":
        return _parse_crit(parts)

    if head == "mult":
        return _parse_mult(parts)

    if head in ("immune", "resist", "weak"):
        if len(parts) != 2:
            return None
        type_name = normalize_type_name(parts[1])
        return TypeRelation(head, type_name) if type_name else None

    if len(parts) != 2:
        return None

    if head == "flag" and parts[1] in KNOWN_FLAGS:
        return Flag(parts[1])
    if head == "special" and parts[1] == "wonder_guard":
        return Flag("wonder_guard")
    if head == "evolution" and parts[1] in EVOLUTION_KINDS:
        return MetaTag("evolution", parts[1])
    if head == "species" and parts[1].strip():
        return MetaTag("species", parts[1].strip())

    return None


def parse_tags(raw: Optional[str]) -> List[str]:
    """
    Decode a persisted JSON-encoded tag array.

    Args:
        raw: JSON text such as '["mult:atk:1.2"]', or None

    Returns:
        List of tag strings; empty for blank, invalid or non-array input
    """
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if isinstance(parsed, list):
        return [str(item) for item in parsed]
    return []


# ===== EFFECT BUNDLE =====

@dataclass(frozen=True)
class CritModifiers:
    """Crit adjustments gathered from crit:* tags."""
    chance_bonus: float = 0.0
    damage_bonus_mult: float = 1.0
    stage_bonus: float = 0.0
    tags_applied: bool = False


def _identity_stats() -> Dict[str, float]:
    return {key: 1.0 for key in STAT_KEYS}


@dataclass
class EffectBundle:
    """Everything the scoring engine needs from a creature's tags."""
    stat_multipliers: Dict[str, float] = field(default_factory=_identity_stats)
    def_eff_mult: float = 1.0
    spd_eff_mult: float = 1.0
    defense_mult: float = 1.0
    off_mult: float = 1.0
    off_type_mult: float = 1.0
    in_type_mult: Dict[str, float] = field(default_factory=dict)  # lowercase type -> factor
    incoming_effects: Tuple[TagEffect, ...] = ()  # immune/resist/weak/in_type, in tag order
    has_wonder_guard: bool = False
    flags: FrozenSet[str] = frozenset()
    crit: CritModifiers = field(default_factory=CritModifiers)
    metadata: Tuple[MetaTag, ...] = ()
    ignored: Tuple[str, ...] = ()  # raw tags that did not parse

    def in_type_factor(self, type_name: str) -> float:
        """Incoming factor registered by mult:in_type tags for an attacking type."""
        return self.in_type_mult.get(normalize_type_name(type_name), 1.0)

    def incoming_multiplier(
        self,
        type_name: str,
        chart_multiplier: float = 1.0,
        treat_in_type_as_resist: bool = False,
    ) -> float:
        """Same fold as type_multiplier(), over the already-parsed effects."""
        return fold_incoming(
            self.incoming_effects,
            type_name,
            chart_multiplier=chart_multiplier,
            treat_in_type_as_resist=treat_in_type_as_resist,
        )


def resolve(tags: Iterable[str], holder_type_names: Iterable[str] = ()) -> EffectBundle:
    """
    Fold a creature's tags into an effect bundle.

    Multiplicative effects compose independently of order; repeated tags
    multiply together, saturating at the largest float. Unknown or malformed
    tags are collected in ``EffectBundle.ignored`` and otherwise have no effect.

    Args:
        tags: Raw tag strings from species, ability and item
        holder_type_names: The creature's own type names (for *_type conditions)

    Returns:
        EffectBundle with identity defaults for everything not tagged
    """
    holder = type_name_set(holder_type_names)

    stat_multipliers = _identity_stats()
    def_eff_mult = 1.0
    spd_eff_mult = 1.0
    defense_mult = 1.0
    off_mult = 1.0
    off_type_mult = 1.0
    in_type_mult: Dict[str, float] = {}
    incoming: List[TagEffect] = []
    flags = set()
    chance_bonus = 0.0
    damage_bonus_mult = 1.0
    stage_bonus = 0.0
    crit_applied = False
    metadata: List[MetaTag] = []
    ignored: List[str] = []

    for raw in tags:
        effect = parse_tag(raw)
        if effect is None:
            ignored.append(str(raw))
            continue

        if isinstance(effect, StatMult):
            stat_multipliers[effect.stat] = bounded(stat_multipliers[effect.stat] * effect.factor)
        elif isinstance(effect, StatIfTypeMult):
            if effect.type_name in holder:
                stat_multipliers[effect.stat] = bounded(stat_multipliers[effect.stat] * effect.factor)
        elif isinstance(effect, DefEffMult):
            def_eff_mult = bounded(def_eff_mult * effect.factor)
        elif isinstance(effect, SpDefEffMult):
            spd_eff_mult = bounded(spd_eff_mult * effect.factor)
        elif isinstance(effect, DefenseMult):
            defense_mult = bounded(defense_mult * effect.factor)
        elif isinstance(effect, OffMult):
            off_mult = bounded(off_mult * effect.factor)
        elif isinstance(effect, OffTypeMult):
            if effect.type_name in holder:
                off_type_mult = bounded(off_type_mult * effect.factor)
        elif isinstance(effect, InTypeMult):
            in_type_mult[effect.type_name] = bounded(in_type_mult.get(effect.type_name, 1.0) * effect.factor)
            incoming.append(effect)
        elif isinstance(effect, TypeRelation):
            incoming.append(effect)
        elif isinstance(effect, Flag):
            flags.add(effect.name)
        elif isinstance(effect, CritTag):
            crit_applied = True
            if effect.kind == "chance":
                chance_bonus = bounded(chance_bonus + effect.value)
            elif effect.kind == "damage":
                damage_bonus_mult = bounded(damage_bonus_mult * effect.value)
            else:
                stage_bonus = bounded(stage_bonus + effect.value)
        elif isinstance(effect, MetaTag):
            metadata.append(effect)

    if ignored:
        logger.debug("Ignored %d unrecognized tag(s): %s", len(ignored), ", ".join(ignored))

    return EffectBundle(
        stat_multipliers=stat_multipliers,
        def_eff_mult=def_eff_mult,
        spd_eff_mult=spd_eff_mult,
        defense_mult=defense_mult,
        off_mult=off_mult,
        off_type_mult=off_type_mult,
        in_type_mult=in_type_mult,
        incoming_effects=tuple(incoming),
        has_wonder_guard="wonder_guard" in flags,
        flags=frozenset(flags),
        crit=CritModifiers(
            chance_bonus=chance_bonus,
            damage_bonus_mult=damage_bonus_mult,
            stage_bonus=stage_bonus,
            tags_applied=crit_applied,
        ),
        metadata=tuple(metadata),
        ignored=tuple(ignored),
    )


# ===== INCOMING TYPE MULTIPLIER =====

def fold_incoming(
    effects: Iterable[TagEffect],
    type_name: str,
    chart_multiplier: float = 1.0,
    treat_in_type_as_resist: bool = False,
) -> float:
    """
    Two-phase fold of defensive effects for one attacking type.

    Phase one multiplies the chart value with every matching resist/weak (and,
    optionally, mult:in_type) factor. Phase two forces 0 if any matching
    immune effect was seen, wherever it appeared.
    """
    target = normalize_type_name(type_name)
    multiplier = chart_multiplier
    immune = False

    for effect in effects:
        if isinstance(effect, TypeRelation):
            if effect.type_name != target:
                continue
            if effect.kind == "immune":
                immune = True
            else:
                multiplier = bounded(multiplier * RELATION_FACTORS[effect.kind])
        elif treat_in_type_as_resist and isinstance(effect, InTypeMult):
            if effect.type_name == target:
                multiplier = bounded(multiplier * effect.factor)

    if immune:
        return 0.0
    return multiplier


def type_multiplier(
    tags: Iterable[str],
    type_name: str,
    chart_multiplier: float = 1.0,
    treat_in_type_as_resist: bool = False,
) -> float:
    """
    Incoming-damage multiplier that a creature's tags apply to one attacking type.

    Args:
        tags: Raw tag strings
        type_name: Attacking type name (matched case-insensitively)
        chart_multiplier: Chart value to fold in; immunity overrides it too
        treat_in_type_as_resist: Also fold mult:in_type factors (team views)

    Returns:
        Non-negative multiplier; exactly 0 when an immune tag matches
    """
    effects = [effect for effect in (parse_tag(tag) for tag in tags) if effect is not None]
    return fold_incoming(
        effects,
        type_name,
        chart_multiplier=chart_multiplier,
        treat_in_type_as_resist=treat_in_type_as_resist,
    )


# ===== TAG CATALOG =====

@dataclass(frozen=True)
class TagKind:
    """An authorable tag kind with its pattern and required parts."""
    id: str
    label: str
    pattern: str
    needs: Tuple[str, ...] = ()


TAG_KINDS: List[TagKind] = [
    TagKind("mult_stat", "Stat multiplier", "mult:stat:multiplier", ("stat", "value")),
    TagKind("mult_defeff", "Defensive bulk (physical)", "mult:defeff:N", ("value",)),
    TagKind("mult_spdeff", "Defensive bulk (special)", "mult:spdeff:N", ("value",)),
    TagKind("mult_off", "Offense multiplier", "mult:off:N", ("value",)),
    TagKind("mult_defense", "Defense multiplier", "mult:defense:N", ("value",)),
    TagKind("mult_off_type", "Offense by type", "mult:off_type:type:N", ("type_name", "value")),
    TagKind("mult_in_type", "Incoming by type", "mult:in_type:type:N", ("type_name", "value")),
    TagKind("mult_stat_if_type", "Stat if type", "mult:stat_if_type:stat:type:N", ("stat", "type_name", "value")),
    TagKind("immune", "Immune to type", "immune:type", ("type_name",)),
    TagKind("resist", "Resist type", "resist:type", ("type_name",)),
    TagKind("weak", "Weak to type", "weak:type", ("type_name",)),
    TagKind("evolution_item", "Evolution item", "evolution:item"),
    TagKind("evolution_stone", "Evolution stone", "evolution:stone"),
    TagKind("species", "Species tag", "species:name", ("species",)),
    TagKind("crit_chance", "Crit chance", "crit:chance:+N", ("value",)),
    TagKind("crit_damage", "Crit damage", "crit:damage:xN", ("value",)),
    TagKind("crit_stage", "Crit stage", "crit:stage:+N", ("value",)),
    TagKind("flag_wonder_guard", "Wonder Guard flag", "flag:wonder_guard"),
    TagKind("flag_avoid", "Avoid flag", "flag:avoid"),
]

TAG_PATTERNS: Dict[str, str] = {kind.id: kind.pattern for kind in TAG_KINDS}


def build_tag(
    kind: str,
    stat: Optional[str] = None,
    type_name: Optional[str] = None,
    species: Optional[str] = None,
    value: Union[str, float, None] = None,
) -> Optional[str]:
    """
    Assemble a tag string from its parts.

    Returns:
        The tag, or None if the kind is unknown or a required part is missing
    """
    tag_kind = next((k for k in TAG_KINDS if k.id == kind), None)
    if tag_kind is None:
        return None

    parts = {
        "stat": (stat or "").strip(),
        "type_name": (type_name or "").strip(),
        "species": (species or "").strip(),
        "value": "" if value is None else str(value).strip(),
    }
    if any(not parts[need] for need in tag_kind.needs):
        return None

    stat_, type_, species_, value_ = parts["stat"], parts["type_name"], parts["species"], parts["value"]

    if kind == "mult_stat":
        return f"mult:{stat_}:{value_}"
    if kind == "mult_off_type":
        return f"mult:off_type:{type_}:{value_}"
    if kind == "mult_in_type":
        return f"mult:in_type:{type_}:{value_}"
    if kind == "mult_stat_if_type":
        return f"mult:stat_if_type:{stat_}:{type_}:{value_}"
    if kind in ("mult_defeff", "mult_spdeff", "mult_off", "mult_defense"):
        return f"mult:{kind[len('mult_'):]}:{value_}"
    if kind in ("immune", "resist", "weak"):
        return f"{kind}:{type_}"
    if kind == "species":
        return f"species:{species_}"
    if kind == "crit_chance":
        return f"crit:chance:+{strip_prefix(value_, ('+',))}"
    if kind == "crit_damage":
        return f"crit:damage:x{strip_prefix(value_, ('x', 'X'))}"
    if kind == "crit_stage":
        return f"crit:stage:+{strip_prefix(value_, ('+',))}"
    # Fixed tags
    return tag_kind.pattern
