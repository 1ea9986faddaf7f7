"""
Five Element (五行) analysis of a Four Pillars chart.

Counts elements over stems, branches and (optionally) hidden stems, lists
the per-pillar element breakdown, and detects branch combination patterns.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Union

from fourpillars.bazi import Element, Pillar, parse_pillars

logger = logging.getLogger(__name__)

PillarsLike = Iterable[Union[Pillar, str]]


# ============================================================
# ELEMENT DISTRIBUTION
# ============================================================

def tally(pillars: PillarsLike, include_hidden: bool = False) -> dict[str, int]:
    """
    Count element occurrences across the four pillars.

    Every stem and every branch counts once. With ``include_hidden`` each
    hidden stem stored in a branch counts once more, so the total is
    8 without hidden stems and 8 + (number of hidden stems) with them.

    Returns:
        {"金": n, "木": n, "水": n, "火": n, "土": n}
    """
    distribution = {e.value: 0 for e in Element}

    for pillar in parse_pillars(pillars):
        distribution[pillar.stem.element.value] += 1
        distribution[pillar.branch.element.value] += 1
        if include_hidden:
            for hidden_stem in pillar.branch.hidden:
                distribution[hidden_stem.element.value] += 1

    return distribution


def tally_simple(pillars: PillarsLike) -> dict[str, int]:
    """Element counts over stems and branches only."""
    return tally(pillars, include_hidden=False)


def tally_full(pillars: PillarsLike) -> dict[str, int]:
    """Element counts including hidden stems."""
    return tally(pillars, include_hidden=True)


def breakdown(pillars: PillarsLike) -> dict[str, list[dict[str, str]]]:
    """
    Element of each stem, branch and hidden stem, pillar by pillar.

    Returns:
        {"stems": [{"丙": "火"}, ...],
         "branches": [{"子": "水"}, ...],
         "hidden_stems": [{"癸": "水"}, {"己": "土", "癸": "水", "辛": "金"}, ...]}
    """
    result = {"stems": [], "branches": [], "hidden_stems": []}
    for pillar in parse_pillars(pillars):
        result["stems"].append({pillar.stem.chinese: pillar.stem.element.value})
        result["branches"].append({pillar.branch.chinese: pillar.branch.element.value})
        result["hidden_stems"].append({s.chinese: s.element.value for s in pillar.branch.hidden})
    return result


# ============================================================
# BRANCH COMBINATIONS
# ============================================================

# Tri-Harmony (三会) - the three branches of one season
TRI_HARMONY = {
    "木三会": ("寅", "卯", "辰"),
    "火三会": ("巳", "午", "未"),
    "金三会": ("申", "酉", "戌"),
    "水三会": ("亥", "子", "丑"),
}

# Tri-Combination (三合) - birth, peak and storage of one element
TRI_COMBINATION = {
    "水三合": ("申", "子", "辰"),
    "木三合": ("亥", "卯", "未"),
    "火三合": ("寅", "午", "戌"),
    "金三合": ("巳", "酉", "丑"),
}

# Paired Combination (六合)
PAIRED_COMBINATIONS = {
    "水六合": ("子", "丑"),
    "木六合": ("寅", "亥"),
    "火六合": ("卯", "戌"),
    "金六合": ("辰", "酉"),
    "土六合": ("午", "未"),
}

# Five Bureaus (五局), keyed by the element they stand for
FIVE_BUREAUS = {
    "水": "水二局",
    "木": "木三局",
    "金": "金四局",
    "土": "土五局",
    "火": "火六局",
}

BUREAU_DESCRIPTIONS = {
    "木三会": "寅卯辰会于东方，木气专旺，主仁厚进取，生发之力强。",
    "火三会": "巳午未会于南方，火气专旺，主热情显达，行事急进。",
    "金三会": "申酉戌会于西方，金气专旺，主刚毅果断，重义守信。",
    "水三会": "亥子丑会于北方，水气专旺，主聪慧机变，心思深沉。",
    "水三合": "申子辰合成水局，水势流通，主智谋灵活，善于应变。",
    "木三合": "亥卯未合成木局，木气条达，主仁慈宽和，利于成长。",
    "火三合": "寅午戌合成火局，火势炎上，主光明积极，名声外显。",
    "金三合": "巳酉丑合成金局，金气坚实，主决断有力，行事严谨。",
    "水二局": "水二局，水性润下，主聪明善变，宜静中求进。",
    "木三局": "木三局，木性曲直，主正直向上，宜稳步发展。",
    "金四局": "金四局，金性从革，主刚健果决，宜守正持重。",
    "土五局": "土五局，土性稼穑，主敦厚诚信，宜积累守成。",
    "火六局": "火六局，火性炎上，主热烈进取，宜收敛锋芒。",
    "水六合": "子丑相合，情意相投，主人缘和睦，合中带稳。",
    "木六合": "寅亥相合，生扶有情，主贵人相助，利于合作。",
    "火六合": "卯戌相合，阴阳相配，主感情融洽，易得助力。",
    "金六合": "辰酉相合，刚柔相济，主处事圆通，利于守成。",
    "土六合": "午未相合，日月相会，主家庭和顺，根基稳固。",
}


@dataclass(frozen=True)
class CombinationResult:
    dominant: str = ""
    description: str = ""
    bureau: tuple[str, ...] = field(default_factory=tuple)
    triad: tuple[str, ...] = field(default_factory=tuple)
    pair: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self):
        return {
            "dominant": self.dominant,
            "description": self.description,
            "secondary": {
                "bureau": list(self.bureau),
                "triad": list(self.triad),
                "pair": list(self.pair),
            },
        }


def _groups(table):
    def detect(branches, found):
        present = set(branches)
        return [name for name, group in table.items() if present.issuperset(group)]
    return detect


def _bureaus(branches, found):
    # Only inferred from a triad already detected for the same element
    formed = found["tri_harmony"] + found["tri_combination"]
    return [bureau for element, bureau in FIVE_BUREAUS.items()
            if any(name.startswith(element) for name in formed)]


# Evaluated in this order, which is also the priority order for the dominant pattern
PATTERNS = [
    ("tri_harmony", _groups(TRI_HARMONY)),
    ("tri_combination", _groups(TRI_COMBINATION)),
    ("five_bureau", _bureaus),
    ("paired", _groups(PAIRED_COMBINATIONS)),
]

_SECONDARY_FIELDS = {
    "tri_harmony": "triad",
    "tri_combination": "triad",
    "five_bureau": "bureau",
    "paired": "pair",
}


def detect_combinations(pillars: PillarsLike) -> CombinationResult:
    """
    Detect branch combination patterns among the four pillars.

    Priority: Tri-Harmony > Tri-Combination > Five Bureau > Paired.
    The first match of the highest non-empty category is the dominant
    pattern; every other match is reported as secondary.
    """
    branches = [p.branch.chinese for p in parse_pillars(pillars)]

    found = {}
    for category, detect in PATTERNS:
        found[category] = detect(branches, found)

    dominant = next((found[category][0] for category, _ in PATTERNS if found[category]), "")

    secondary = {"bureau": [], "triad": [], "pair": []}
    for category, _ in PATTERNS:
        for name in found[category]:
            if name != dominant:
                secondary[_SECONDARY_FIELDS[category]].append(name)

    logger.debug("Branches %s form %s", "".join(branches), found)
    return CombinationResult(
        dominant=dominant,
        description=BUREAU_DESCRIPTIONS.get(dominant, ""),
        bureau=tuple(secondary["bureau"]),
        triad=tuple(secondary["triad"]),
        pair=tuple(secondary["pair"]),
    )
