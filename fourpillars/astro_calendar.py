"""
Calendar utilities for Four Pillars calculations.
Handles timestamp parsing, solar term datasets and the
solar/lunar date lookup tables.
"""

import json
import logging
import re
from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Mapping, Optional, Protocol, Union
from zoneinfo import ZoneInfo

import swisseph as swe

from fourpillars import config
from fourpillars.errors import InvalidDateError, InvalidSymbolError

logger = logging.getLogger(__name__)

DateLike = Union[datetime, date, str]


def to_datetime(value: DateLike, tz: Optional[str] = None) -> datetime:
    """
    Normalize a timestamp input to a naive chart-local datetime.

    Args:
        value: datetime, date, or ISO format string
            ("1997-01-21 16:30:00", "1997-01-21T16:30", "1997-01-21")
        tz: timezone name aware values are converted to
            (defaults to the configured chart timezone)

    Raises:
        InvalidDateError: if the value cannot be read as a date-time
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            moment = datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise InvalidDateError(f"Unparseable date-time: {value!r}") from exc
    else:
        raise InvalidDateError(f"Expected a date-time value, got {type(value).__name__}")

    if moment.tzinfo is not None:
        moment = moment.astimezone(ZoneInfo(tz or config.TIMEZONE)).replace(tzinfo=None)
    return moment


def minutes_between(a: datetime, b: datetime) -> float:
    """Absolute distance between two moments in minutes."""
    return abs((b - a).total_seconds()) / 60


# ============================================================
# SOLAR TERMS
# ============================================================
#
# The 24 solar terms in calendar order, starting from Xiao Han in January.
# Each term is the moment the Sun reaches the given ecliptic longitude.
# The 12 Jie (节) terms open a BaZi month and carry the month's branch index;
# the 12 Qi (气) terms carry None.

# (longitude, term_name, pinyin, month_branch_index)
SOLAR_TERMS = [
    (285, "小寒", "Xiao Han", 1),
    (300, "大寒", "Da Han", None),
    (315, "立春", "Li Chun", 2),
    (330, "雨水", "Yu Shui", None),
    (345, "惊蛰", "Jing Zhe", 3),
    (0,   "春分", "Chun Fen", None),
    (15,  "清明", "Qing Ming", 4),
    (30,  "谷雨", "Gu Yu", None),
    (45,  "立夏", "Li Xia", 5),
    (60,  "小满", "Xiao Man", None),
    (75,  "芒种", "Mang Zhong", 6),
    (90,  "夏至", "Xia Zhi", None),
    (105, "小暑", "Xiao Shu", 7),
    (120, "大暑", "Da Shu", None),
    (135, "立秋", "Li Qiu", 8),
    (150, "处暑", "Chu Shu", None),
    (165, "白露", "Bai Lu", 9),
    (180, "秋分", "Qiu Fen", None),
    (195, "寒露", "Han Lu", 10),
    (210, "霜降", "Shuang Jiang", None),
    (225, "立冬", "Li Dong", 11),
    (240, "小雪", "Xiao Xue", None),
    (255, "大雪", "Da Xue", 0),
    (270, "冬至", "Dong Zhi", None),
]

SOLAR_TERM_NAMES = [name for _, name, _, _ in SOLAR_TERMS]

# Month boundaries in calendar order: name -> month branch index
JIE_BRANCHES = {name: branch for _, name, _, branch in SOLAR_TERMS if branch is not None}
JIE_NAMES = list(JIE_BRANCHES)

START_OF_SPRING = "立春"


class SolarTermProvider(Protocol):
    def terms(self, year: int, jie_only: bool = False) -> dict[str, datetime]:
        ...


def jie_terms(terms: Mapping[str, datetime]) -> dict[str, datetime]:
    """Filter a solar term set down to the 12 month-boundary (Jie) terms."""
    return {name: terms[name] for name in JIE_NAMES if name in terms}


class SolarTermTable:
    """
    Solar term provider backed by a precomputed table.

    The table maps year -> {term name: local timestamp}, e.g.
        {"1997": {"小寒": "1997-01-05 15:24:00", "立春": "1997-02-04 03:02:00", ...}}
    """

    def __init__(self, table: Mapping[Union[int, str], Mapping[str, DateLike]]):
        self._table: dict[int, dict[str, datetime]] = {}
        for year, terms in table.items():
            unknown = [name for name in terms if name not in SOLAR_TERM_NAMES]
            if unknown:
                raise InvalidSymbolError(f"Unknown solar term names for {year}: {unknown}")
            self._table[int(year)] = {name: to_datetime(value) for name, value in terms.items()}

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "SolarTermTable":
        with open(path, encoding="utf-8") as f:
            return cls(json.load(f))

    def years(self) -> list[int]:
        return sorted(self._table)

    def terms(self, year: int, jie_only: bool = False) -> dict[str, datetime]:
        """Return the year's terms in calendar order (empty if the year is not tabled)."""
        if year not in self._table:
            logger.warning("No solar terms tabled for %s", year)
            return {}
        table = self._table[year]
        terms = {name: table[name] for name in SOLAR_TERM_NAMES if name in table}
        return jie_terms(terms) if jie_only else terms


def _jd_to_local(jd: float, tz: ZoneInfo) -> datetime:
    """Convert a UT Julian Day to a naive wall-clock datetime in ``tz``."""
    y, m, d, h = swe.revjul(jd)
    utc = datetime(y, m, d, tzinfo=timezone.utc) + timedelta(seconds=round(h * 3600))
    return utc.astimezone(tz).replace(tzinfo=None)


class EphemerisSolarTerms:
    """
    Solar term provider reading term moments from the Swiss Ephemeris.

    swe.solcross_ut() finds the exact moment the Sun crosses each term
    longitude; results are converted to chart-local time and cached per year.
    """

    def __init__(self, tz: Optional[str] = None, ephe_path: Optional[str] = None):
        self.timezone = ZoneInfo(tz or config.TIMEZONE)
        if ephe_path:
            swe.set_ephe_path(ephe_path)
        self._cache: dict[int, dict[str, datetime]] = {}

    def terms(self, year: int, jie_only: bool = False) -> dict[str, datetime]:
        if year not in self._cache:
            self._cache[year] = self._compute(year)
        terms = dict(self._cache[year])
        return jie_terms(terms) if jie_only else terms

    def _compute(self, year: int) -> dict[str, datetime]:
        jd_year_start = swe.julday(year, 1, 1, 0)
        results = {}
        for lon, name, _, _ in SOLAR_TERMS:
            jd_cross = swe.solcross_ut(float(lon), jd_year_start, 0)
            moment = _jd_to_local(jd_cross, self.timezone)
            # Only keep crossings that fall within this year locally
            if moment.year == year:
                results[name] = moment
        logger.debug("Computed %d solar terms for %s", len(results), year)
        return results


@lru_cache(maxsize=None)
def default_solar_terms() -> SolarTermProvider:
    """Process-wide provider: the configured table, else the ephemeris."""
    if config.SOLAR_TERMS_PATH:
        logger.info("Loading solar terms from %s", config.SOLAR_TERMS_PATH)
        return SolarTermTable.from_json(config.SOLAR_TERMS_PATH)
    return EphemerisSolarTerms(ephe_path=config.EPHE_PATH)


def export_solar_terms(provider: SolarTermProvider, years: Iterable[int],
                       path: Union[str, Path]) -> Path:
    """Write a provider's terms as a JSON table readable by SolarTermTable.from_json()."""
    table = {
        str(year): {name: moment.strftime("%Y-%m-%d %H:%M:%S")
                    for name, moment in provider.terms(year).items()}
        for year in years
    }
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(table, f, indent=2, ensure_ascii=False)
    return path


# ============================================================
# SOLAR / LUNAR LOOKUP
# ============================================================

_DATE_KEY = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})")


def _date_key(value: DateLike) -> str:
    # Lunar dates such as 1996-02-30 are not valid Gregorian dates,
    # so strings are normalized without parsing them as dates
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, str):
        match = _DATE_KEY.match(value)
        if match:
            y, m, d = match.groups()
            return f"{y}-{int(m):02d}-{int(d):02d}"
    raise InvalidDateError(f"Expected a YYYY-MM-DD date, got {value!r}")


class CalendarLookup:
    """Solar <-> lunar date lookup over precomputed "YYYY-MM-DD" maps."""

    def __init__(self, lunar_map: Optional[Mapping[str, str]] = None,
                 solar_map: Optional[Mapping[str, str]] = None):
        self._lunar_map = dict(lunar_map or {})
        self._solar_map = dict(solar_map or {})

    @classmethod
    def from_json(cls, lunar_path: Optional[Union[str, Path]] = None,
                  solar_path: Optional[Union[str, Path]] = None) -> "CalendarLookup":
        maps = []
        for path in (lunar_path, solar_path):
            if path is None:
                maps.append({})
                continue
            with open(path, encoding="utf-8") as f:
                maps.append(json.load(f))
        return cls(*maps)

    def solar_to_lunar(self, value: DateLike) -> Optional[str]:
        """Lunar date for a solar date, or None if not in the map."""
        return self._lunar_map.get(_date_key(value))

    def lunar_to_solar(self, value: DateLike) -> Optional[str]:
        """Solar date for a lunar date, or None if not in the map."""
        return self._solar_map.get(_date_key(value))


@lru_cache(maxsize=None)
def default_calendar_lookup() -> CalendarLookup:
    if not (config.LUNAR_MAP_PATH or config.SOLAR_MAP_PATH):
        logger.debug("No calendar maps configured; lunar lookups will not resolve")
    return CalendarLookup.from_json(config.LUNAR_MAP_PATH, config.SOLAR_MAP_PATH)
