"""
BaZi (Four Pillars of Destiny) pillar computation.

Handles:
- Heavenly Stem / Earthly Branch reference data (elements, polarity, hidden stems)
- Year and month pillars cut over on solar terms, not civil years and months
- Day pillar from the sixty-day cycle, with the late Zi hour rolling forward
- Hour pillar from the day stem (Five Rats Escape)

Three cycles are coupled here: stems (period 10), branches (period 12) and
the Jia-Zi cycle (period 60). Every index below is taken modulo its own period;
a stem/branch pair is valid only when both indices share parity.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union

import swisseph as swe

from fourpillars.astro_calendar import (
    JIE_BRANCHES,
    JIE_NAMES,
    START_OF_SPRING,
    DateLike,
    SolarTermProvider,
    default_solar_terms,
    to_datetime,
)
from fourpillars.errors import InvalidArityError, InvalidSymbolError, MissingSolarTermError

logger = logging.getLogger(__name__)


# ============================================================
# FUNDAMENTAL DATA STRUCTURES
# ============================================================

class Polarity(Enum):
    YANG = "阳"
    YIN = "阴"


class Element(Enum):
    # Declaration order is the order element tallies are reported in
    METAL = "金"
    WOOD = "木"
    WATER = "水"
    FIRE = "火"
    EARTH = "土"


@dataclass(frozen=True)
class HeavenlyStem:
    chinese: str
    pinyin: str
    element: Element
    polarity: Polarity
    index: int  # 0-9 in the cycle

    def __str__(self):
        return f"{self.pinyin} ({self.polarity.name.lower()} {self.element.name.lower()})"

    @property
    def attribute(self) -> str:
        """Polarity + element label, e.g. 阴水."""
        return f"{self.polarity.value}{self.element.value}"


@dataclass(frozen=True)
class EarthlyBranch:
    chinese: str
    pinyin: str
    animal: str
    element: Element  # primary/season element
    polarity: Polarity
    index: int  # 0-11 in the cycle
    hidden_stems: tuple[str, ...]  # stored stems [main_qi, middle_qi, residual_qi]

    def __str__(self):
        return f"{self.pinyin} ({self.animal})"

    @property
    def hidden(self) -> tuple[HeavenlyStem, ...]:
        return tuple(STEM_BY_CHINESE[s] for s in self.hidden_stems)

    @property
    def primary_stem(self) -> Optional[HeavenlyStem]:
        return STEM_BY_CHINESE[self.hidden_stems[0]] if self.hidden_stems else None


@dataclass(frozen=True)
class Pillar:
    stem: HeavenlyStem
    branch: EarthlyBranch
    position: str  # "year", "month", "day", "hour", "luck"

    def __str__(self):
        return self.combined

    @property
    def combined(self) -> str:
        return f"{self.stem.chinese}{self.branch.chinese}"

    @property
    def cycle_index(self) -> int:
        """Position in the sixty Jia-Zi cycle (0 = 甲子)."""
        # Unique n with n = stem (mod 10) and n = branch (mod 12)
        return (6 * self.stem.index - 5 * self.branch.index) % 60

    def to_dict(self):
        return {
            "position": self.position,
            "stem": {
                "chinese": self.stem.chinese,
                "pinyin": self.stem.pinyin,
                "element": self.stem.element.value,
                "polarity": self.stem.polarity.value,
            },
            "branch": {
                "chinese": self.branch.chinese,
                "pinyin": self.branch.pinyin,
                "animal": self.branch.animal,
                "element": self.branch.element.value,
                "polarity": self.branch.polarity.value,
                "hidden_stems": list(self.branch.hidden_stems),
            },
            "combined": self.combined,
            "cycle_index": self.cycle_index,
        }


# ============================================================
# STEM AND BRANCH DEFINITIONS
# ============================================================

HEAVENLY_STEMS = [
    HeavenlyStem("甲", "Jia", Element.WOOD, Polarity.YANG, 0),
    HeavenlyStem("乙", "Yi", Element.WOOD, Polarity.YIN, 1),
    HeavenlyStem("丙", "Bing", Element.FIRE, Polarity.YANG, 2),
    HeavenlyStem("丁", "Ding", Element.FIRE, Polarity.YIN, 3),
    HeavenlyStem("戊", "Wu", Element.EARTH, Polarity.YANG, 4),
    HeavenlyStem("己", "Ji", Element.EARTH, Polarity.YIN, 5),
    HeavenlyStem("庚", "Geng", Element.METAL, Polarity.YANG, 6),
    HeavenlyStem("辛", "Xin", Element.METAL, Polarity.YIN, 7),
    HeavenlyStem("壬", "Ren", Element.WATER, Polarity.YANG, 8),
    HeavenlyStem("癸", "Gui", Element.WATER, Polarity.YIN, 9),
]

EARTHLY_BRANCHES = [
    EarthlyBranch("子", "Zi", "Rat", Element.WATER, Polarity.YANG, 0,
                  ("癸",)),  # main: Gui Water
    EarthlyBranch("丑", "Chou", "Ox", Element.EARTH, Polarity.YIN, 1,
                  ("己", "癸", "辛")),  # main: Ji Earth, mid: Gui Water, res: Xin Metal
    EarthlyBranch("寅", "Yin", "Tiger", Element.WOOD, Polarity.YANG, 2,
                  ("甲", "丙", "戊")),  # main: Jia Wood, mid: Bing Fire, res: Wu Earth
    EarthlyBranch("卯", "Mao", "Rabbit", Element.WOOD, Polarity.YIN, 3,
                  ("乙",)),  # main: Yi Wood
    EarthlyBranch("辰", "Chen", "Dragon", Element.EARTH, Polarity.YANG, 4,
                  ("戊", "乙", "癸")),  # main: Wu Earth, mid: Yi Wood, res: Gui Water
    EarthlyBranch("巳", "Si", "Snake", Element.FIRE, Polarity.YIN, 5,
                  ("丙", "戊", "庚")),  # main: Bing Fire, mid: Wu Earth, res: Geng Metal
    EarthlyBranch("午", "Wu", "Horse", Element.FIRE, Polarity.YANG, 6,
                  ("丁", "己")),  # main: Ding Fire, mid: Ji Earth
    EarthlyBranch("未", "Wei", "Goat", Element.EARTH, Polarity.YIN, 7,
                  ("己", "丁", "乙")),  # main: Ji Earth, mid: Ding Fire, res: Yi Wood
    EarthlyBranch("申", "Shen", "Monkey", Element.METAL, Polarity.YANG, 8,
                  ("庚", "壬", "戊")),  # main: Geng Metal, mid: Ren Water, res: Wu Earth
    EarthlyBranch("酉", "You", "Rooster", Element.METAL, Polarity.YIN, 9,
                  ("辛",)),  # main: Xin Metal
    EarthlyBranch("戌", "Xu", "Dog", Element.EARTH, Polarity.YANG, 10,
                  ("戊", "辛", "丁")),  # main: Wu Earth, mid: Xin Metal, res: Ding Fire
    EarthlyBranch("亥", "Hai", "Pig", Element.WATER, Polarity.YIN, 11,
                  ("壬", "甲")),  # main: Ren Water, mid: Jia Wood
]

# Lookup helpers
STEM_BY_CHINESE = {s.chinese: s for s in HEAVENLY_STEMS}
STEM_BY_PINYIN = {s.pinyin: s for s in HEAVENLY_STEMS}
BRANCH_BY_CHINESE = {b.chinese: b for b in EARTHLY_BRANCHES}
BRANCH_BY_PINYIN = {b.pinyin: b for b in EARTHLY_BRANCHES}

POSITIONS = ("year", "month", "day", "hour")


def get_stem(symbol: Union[HeavenlyStem, str]) -> HeavenlyStem:
    """Look up a stem by character or pinyin."""
    if isinstance(symbol, HeavenlyStem):
        return symbol
    stem = STEM_BY_CHINESE.get(symbol) or STEM_BY_PINYIN.get(symbol)
    if stem is None:
        raise InvalidSymbolError(f"Unknown heavenly stem: {symbol!r}")
    return stem


def get_branch(symbol: Union[EarthlyBranch, str]) -> EarthlyBranch:
    """Look up a branch by character or pinyin."""
    if isinstance(symbol, EarthlyBranch):
        return symbol
    branch = BRANCH_BY_CHINESE.get(symbol) or BRANCH_BY_PINYIN.get(symbol)
    if branch is None:
        raise InvalidSymbolError(f"Unknown earthly branch: {symbol!r}")
    return branch


def make_pillar(stem_index: int, branch_index: int, position: str) -> Pillar:
    return Pillar(
        stem=HEAVENLY_STEMS[stem_index % 10],
        branch=EARTHLY_BRANCHES[branch_index % 12],
        position=position,
    )


def parse_pillars(values: Iterable[Union[Pillar, str]]) -> tuple[Pillar, ...]:
    """
    Normalize a Year/Month/Day/Hour sequence into Pillar objects.

    Accepts Pillar objects or two-character strings such as "丙子".

    Raises:
        InvalidArityError: if there are not exactly four pillars
        InvalidSymbolError: for unknown symbols or pairs outside the Jia-Zi cycle
    """
    values = list(values)
    if len(values) != 4:
        raise InvalidArityError(
            f"Four pillars must hold exactly 4 entries (year, month, day, hour), got {len(values)}"
        )

    pillars = []
    for value, position in zip(values, POSITIONS):
        if isinstance(value, Pillar):
            pillars.append(value)
            continue
        if not isinstance(value, str) or len(value) != 2:
            raise InvalidSymbolError(f"Expected a stem+branch pair such as 甲子, got {value!r}")
        stem, branch = get_stem(value[0]), get_branch(value[1])
        if stem.index % 2 != branch.index % 2:
            raise InvalidSymbolError(f"{value} is not a pair of the sixty-day cycle")
        pillars.append(Pillar(stem=stem, branch=branch, position=position))
    return tuple(pillars)


# ============================================================
# PILLAR COMPUTATION
# ============================================================

def _provider(solar_terms: Optional[SolarTermProvider]) -> SolarTermProvider:
    return solar_terms if solar_terms is not None else default_solar_terms()


def solar_year(moment: DateLike, solar_terms: Optional[SolarTermProvider] = None) -> int:
    """
    The BaZi year in effect at ``moment``.

    The BaZi year starts at Li Chun (Start of Spring), usually Feb 3-5.
    Before Li Chun, the previous year's pillar applies.
    """
    moment = to_datetime(moment)
    li_chun = _provider(solar_terms).terms(moment.year).get(START_OF_SPRING)
    if li_chun is None:
        raise MissingSolarTermError(f"{START_OF_SPRING} missing from the solar terms of {moment.year}")
    return moment.year - 1 if moment < li_chun else moment.year


def year_pillar(moment: DateLike, solar_terms: Optional[SolarTermProvider] = None) -> Pillar:
    """
    Compute the Year Pillar.

    Stem: (year - 4) % 10 gives index into heavenly stems,
    branch: (year - 4) % 12 into earthly branches
    (Year 4 CE was Jia Zi, the start of the cycle).
    """
    effective_year = solar_year(moment, solar_terms)
    return make_pillar(effective_year - 4, effective_year - 4, "year")


def _month_pillar_from(year_stem_index: int, month_branch_index: int) -> Pillar:
    """
    Month pillar using the Five Tigers Escape (Wu Hu Dun) formula.

    Five Tigers Escape rule:
    - Year stem Jia/Ji → month 1 stem starts at Bing
    - Year stem Yi/Geng → month 1 stem starts at Wu
    - Year stem Bing/Xin → month 1 stem starts at Geng
    - Year stem Ding/Ren → month 1 stem starts at Ren
    - Year stem Wu/Gui → month 1 stem starts at Jia

    Month 1 (Tiger/Yin) has branch_index 2.
    """
    tiger_start_stems = {
        0: 2, 5: 2,   # Jia/Ji year → Bing Tiger
        1: 4, 6: 4,   # Yi/Geng year → Wu Tiger
        2: 6, 7: 6,   # Bing/Xin year → Geng Tiger
        3: 8, 8: 8,   # Ding/Ren year → Ren Tiger
        4: 0, 9: 0,   # Wu/Gui year → Jia Tiger
    }

    start_stem = tiger_start_stems[year_stem_index]
    months_from_tiger = (month_branch_index - 2) % 12
    return make_pillar(start_stem + months_from_tiger, month_branch_index, "month")


def month_pillar(moment: DateLike, solar_terms: Optional[SolarTermProvider] = None) -> Pillar:
    """
    Compute the Month Pillar.

    The month is opened by the latest Jie term at or before ``moment``,
    scanning the civil year's 12 Jie terms in calendar order (Xiao Han first).
    Before that year's Xiao Han the moment still belongs to the Rat month
    (Da Xue) of the previous year.
    """
    moment = to_datetime(moment)
    provider = _provider(solar_terms)
    terms = provider.terms(moment.year, jie_only=True)
    missing = [name for name in JIE_NAMES if name not in terms]
    if missing:
        raise MissingSolarTermError(f"Jie terms {missing} missing from the solar terms of {moment.year}")

    current = None
    for name in JIE_NAMES:
        if moment >= terms[name]:
            current = name
        else:
            break

    if current is None:
        month_branch_index = JIE_BRANCHES[JIE_NAMES[-1]]
        stem_year = moment.year - 1
    else:
        month_branch_index = JIE_BRANCHES[current]
        stem_year = solar_year(moment, provider)

    year_stem_index = (stem_year - 4) % 10
    logger.debug("Month of %s opened by %s, stem year %s", moment, current, stem_year)
    return _month_pillar_from(year_stem_index, month_branch_index)


# Reference day: 1899-12-22 is a Jia Zi day (index 0 of the sixty-day cycle)
_REFERENCE_JDN = swe.julday(1899, 12, 22, 0)


def day_offset(moment: DateLike) -> int:
    """
    Days elapsed since the reference Jia Zi day.

    From 23:00 the late Zi hour already belongs to the next day.
    """
    moment = to_datetime(moment)
    jdn = swe.julday(moment.year, moment.month, moment.day, 0)
    offset = round(jdn - _REFERENCE_JDN)
    if moment.hour == 23:
        offset += 1
    return offset


def day_pillar(moment: DateLike) -> Pillar:
    """Compute the Day Pillar: stem = offset % 10, branch = offset % 12."""
    offset = day_offset(moment)
    return make_pillar(offset, offset, "day")


def hour_branch_index(hour: int) -> int:
    """
    Map a clock hour to its shi chen branch.

    23:00-00:59 = Zi (Rat)      = branch 0
    01:00-02:59 = Chou (Ox)     = branch 1
    ...
    21:00-22:59 = Hai (Pig)     = branch 11
    """
    if hour == 23 or hour == 0:
        return 0  # Zi
    return ((hour + 1) // 2) % 12


def _hour_pillar_from(day_stem_index: int, hour: int) -> Pillar:
    """Hour pillar using the Five Rats Escape (Wu Shu Dun) formula."""
    branch_index = hour_branch_index(hour)

    # Five Rats Escape: starting stem for Zi hour based on day stem
    zi_start_stems = {
        0: 0, 5: 0,   # Jia/Ji day → Jia Zi hour
        1: 2, 6: 2,   # Yi/Geng day → Bing Zi hour
        2: 4, 7: 4,   # Bing/Xin day → Wu Zi hour
        3: 6, 8: 6,   # Ding/Ren day → Geng Zi hour
        4: 8, 9: 8,   # Wu/Gui day → Ren Zi hour
    }

    start_stem = zi_start_stems[day_stem_index]
    return make_pillar(start_stem + branch_index, branch_index, "hour")


def hour_pillar(moment: DateLike) -> Pillar:
    """
    Compute the Hour Pillar.

    The stem follows the day pillar of the same moment, so a 23:00 birth
    takes its stem from the next day's pillar.
    """
    moment = to_datetime(moment)
    return _hour_pillar_from(day_pillar(moment).stem.index, moment.hour)


def four_pillars(moment: DateLike,
                 solar_terms: Optional[SolarTermProvider] = None) -> tuple[Pillar, ...]:
    """Year, Month, Day and Hour pillars for ``moment``, in that order."""
    moment = to_datetime(moment)
    provider = _provider(solar_terms)
    pillars = (
        year_pillar(moment, provider),
        month_pillar(moment, provider),
        day_pillar(moment),
        hour_pillar(moment),
    )
    logger.debug("Four pillars for %s: %s", moment, " ".join(p.combined for p in pillars))
    return pillars


def four_pillar_labels(moment: DateLike,
                       solar_terms: Optional[SolarTermProvider] = None) -> list[str]:
    """The four pillars as stem+branch strings, e.g. ["丙子", "辛丑", "癸亥", "庚申"]."""
    return [p.combined for p in four_pillars(moment, solar_terms)]
