"""
Ten Gods (十神) relationship mapping.

The Ten Gods describe the relationship between any stem or branch and the
Day Master. They are determined by element relationship + polarity match.
A branch is read through its main hidden stem.
"""

import logging
from collections import Counter
from enum import Enum
from typing import Iterable, Optional, Union

from fourpillars.bazi import (
    BRANCH_BY_CHINESE,
    STEM_BY_CHINESE,
    STEM_BY_PINYIN,
    EarthlyBranch,
    Element,
    HeavenlyStem,
    Pillar,
    get_branch,
    get_stem,
    parse_pillars,
)

logger = logging.getLogger(__name__)


class TenGod(Enum):
    COMPANION = "比肩"
    ROB_WEALTH = "劫财"
    INDIRECT_RESOURCE = "偏印"
    DIRECT_RESOURCE = "正印"
    EATING_GOD = "食神"
    HURTING_OFFICER = "伤官"
    SEVEN_KILLINGS = "七杀"
    DIRECT_OFFICER = "正官"
    INDIRECT_WEALTH = "偏财"
    DIRECT_WEALTH = "正财"
    DAY_MASTER = "日主"
    UNRESOLVED = ""


# Production cycle: Wood → Fire → Earth → Metal → Water → Wood
PRODUCTION_CYCLE = {
    Element.WOOD: Element.FIRE,
    Element.FIRE: Element.EARTH,
    Element.EARTH: Element.METAL,
    Element.METAL: Element.WATER,
    Element.WATER: Element.WOOD,
}

# Control cycle: Wood → Earth → Water → Fire → Metal → Wood
CONTROL_CYCLE = {
    Element.WOOD: Element.EARTH,
    Element.EARTH: Element.WATER,
    Element.WATER: Element.FIRE,
    Element.FIRE: Element.METAL,
    Element.METAL: Element.WOOD,
}

# For each relation, the element that stands in it to the Day Master's element.
# Evaluated in order; the first entry mapping the Day Master's element onto
# the other element names the relation.
RELATIONS = [
    ("same", {e: e for e in Element}),
    ("produces_me", {v: k for k, v in PRODUCTION_CYCLE.items()}),
    ("i_produce", dict(PRODUCTION_CYCLE)),
    ("controls_me", {v: k for k, v in CONTROL_CYCLE.items()}),
    ("i_control", dict(CONTROL_CYCLE)),
]

TEN_GODS = {
    # (relationship, same_polarity): god
    ("same", True): TenGod.COMPANION,                  # Same element, same polarity
    ("same", False): TenGod.ROB_WEALTH,                # Same element, diff polarity
    ("produces_me", True): TenGod.INDIRECT_RESOURCE,   # Produces DM, same polarity
    ("produces_me", False): TenGod.DIRECT_RESOURCE,    # Produces DM, diff polarity
    ("i_produce", True): TenGod.EATING_GOD,            # DM produces it, same polarity
    ("i_produce", False): TenGod.HURTING_OFFICER,      # DM produces it, diff polarity
    ("controls_me", True): TenGod.SEVEN_KILLINGS,      # Controls DM, same polarity
    ("controls_me", False): TenGod.DIRECT_OFFICER,     # Controls DM, diff polarity
    ("i_control", True): TenGod.INDIRECT_WEALTH,       # DM controls it, same polarity
    ("i_control", False): TenGod.DIRECT_WEALTH,        # DM controls it, diff polarity
}

GOD_GROUPS = {
    "印星": (TenGod.DIRECT_RESOURCE, TenGod.INDIRECT_RESOURCE),
    "比劫": (TenGod.COMPANION, TenGod.ROB_WEALTH),
    "食伤": (TenGod.EATING_GOD, TenGod.HURTING_OFFICER),
    "官杀": (TenGod.DIRECT_OFFICER, TenGod.SEVEN_KILLINGS),
    "财星": (TenGod.DIRECT_WEALTH, TenGod.INDIRECT_WEALTH),
}

GROUP_NOTES = {
    "印星": "命局印星偏旺，头脑灵活，易得长辈贵人扶持，但易内向依赖。",
    "官杀": "官杀明显，主有责任心、受规矩约束，易遇压力、权力冲突。",
    "食伤": "食伤旺盛，思维活跃，适合技艺表达之道，但易言多惹祸。",
    "财星": "财星旺，擅长理财，注重物质生活，但需防贪欲过重。",
    "比劫": "比劫强，个性独立，但容易固执争斗，兄弟缘深也易有竞争。",
}

Target = Union[HeavenlyStem, EarthlyBranch, str]


def element_relationship(day_master_element: Element, other_element: Element) -> Optional[str]:
    """Determine the elemental relationship from DM's perspective."""
    for relation, table in RELATIONS:
        if table[day_master_element] == other_element:
            return relation
    return None


def _as_target(target: Target) -> Union[HeavenlyStem, EarthlyBranch]:
    # Characters first: the pinyin "Wu" names both 戊 and 午
    if isinstance(target, (HeavenlyStem, EarthlyBranch)):
        return target
    if target in STEM_BY_CHINESE:
        return STEM_BY_CHINESE[target]
    if target in BRANCH_BY_CHINESE:
        return BRANCH_BY_CHINESE[target]
    if target in STEM_BY_PINYIN:
        return STEM_BY_PINYIN[target]
    return get_branch(target)


def resolve(day_master: Union[HeavenlyStem, str], target: Target) -> TenGod:
    """
    Determine the Ten God of ``target`` relative to the Day Master.

    Args:
        day_master: the Day Master stem
        target: a stem, or a branch (read through its main hidden stem)

    Returns:
        TenGod.DAY_MASTER when target is the Day Master stem itself,
        TenGod.UNRESOLVED when no rule applies
    """
    day_master = get_stem(day_master)
    target = _as_target(target)
    if target == day_master:
        return TenGod.DAY_MASTER

    other = target.primary_stem if isinstance(target, EarthlyBranch) else target
    if other is None:
        return TenGod.UNRESOLVED

    relationship = element_relationship(day_master.element, other.element)
    if relationship is None:
        return TenGod.UNRESOLVED
    same_polarity = day_master.polarity == other.polarity
    return TEN_GODS[(relationship, same_polarity)]


def ten_god_distribution(pillars: Iterable[Union[Pillar, str]]) -> dict:
    """
    Ten God of every stem and branch in the chart relative to the day stem.

    Returns:
        {"day_master": "癸", "day_master_attribute": "阴水",
         "distribution": {"year": {"stem": ["丙", "正财"],
                                   "branch": ["子", "比肩"]}, ...}}
    """
    pillars = parse_pillars(pillars)
    day_master = pillars[2].stem

    distribution = {}
    for pillar in pillars:
        distribution[pillar.position] = {
            "stem": [pillar.stem.chinese, resolve(day_master, pillar.stem).value],
            "branch": [pillar.branch.chinese, resolve(day_master, pillar.branch).value],
        }

    return {
        "day_master": day_master.chinese,
        "day_master_attribute": day_master.attribute,
        "distribution": distribution,
    }


def interpret_ten_gods(pillars: Iterable[Union[Pillar, str]]) -> dict:
    """
    Count Ten Gods across the chart and give short notes.

    Frequencies skip every position holding the Day Master stem and are
    grouped into resources, peers, output, officers and wealth. The Day
    Master is read as strong when resources + peers exceed the draining
    groups by more than one, and as weak in the opposite case.
    """
    distribution = ten_god_distribution(pillars)["distribution"]

    frequency = Counter()
    for parts in distribution.values():
        for part in ("stem", "branch"):
            god = parts[part][1]
            if god in (TenGod.DAY_MASTER.value, TenGod.UNRESOLVED.value):
                continue
            frequency[god] += 1

    statistics = {
        group: sum(frequency[god.value] for god in gods)
        for group, gods in GOD_GROUPS.items()
    }

    analysis = [GROUP_NOTES[group] for group in GROUP_NOTES if statistics[group] >= 2]

    total_help = statistics["印星"] + statistics["比劫"]
    total_drain = statistics["食伤"] + statistics["财星"] + statistics["官杀"]
    if total_help > total_drain + 1:
        analysis.append("命主日元偏强，适宜用官杀、财星为喜神，克泄调衡。")
    elif total_drain > total_help + 1:
        analysis.append("命主日元偏弱，适宜用比劫、印星为喜神以扶身。")
    else:
        analysis.append("命局较为均衡，需结合大运流年来综合分析喜忌。")

    logger.debug("Ten God frequency: %s", dict(frequency))
    return {
        "frequency": dict(frequency),
        "statistics": statistics,
        "analysis": analysis,
    }
