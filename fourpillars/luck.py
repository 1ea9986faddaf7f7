"""
Luck Pillars (大运 Da Yun).

Direction of count depends on gender + year stem polarity:
- Yang stem year + Male OR Yin stem year + Female → count FORWARD
- Yang stem year + Female OR Yin stem year + Male → count BACKWARD

Starting age is the distance from birth to the next (forward) or previous
(backward) Jie solar term, at 3 days = 1 year, i.e. 4320 minutes per year.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from fourpillars import config
from fourpillars.astro_calendar import (
    DateLike,
    SolarTermProvider,
    default_solar_terms,
    minutes_between,
    to_datetime,
)
from fourpillars.bazi import HeavenlyStem, Pillar, Polarity, four_pillars, get_stem, make_pillar
from fourpillars.errors import InvalidCountError, InvalidGenderError, NoReferenceTermError
from fourpillars.ten_gods import TenGod, resolve

logger = logging.getLogger(__name__)

MINUTES_PER_LUCK_YEAR = 4320  # 3 days × 24 h × 60 min


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


def parse_gender(value: Union[Gender, str]) -> Gender:
    try:
        return Gender(value)
    except ValueError as exc:
        raise InvalidGenderError(f"Gender must be 'male' or 'female', got {value!r}") from exc


def is_forward(year: Union[Pillar, HeavenlyStem, str], gender: Union[Gender, str]) -> bool:
    """
    Whether luck pillars count forward for this year pillar and gender.

    Args:
        year: the year pillar, its stem, or a year pillar string such as "丙子"
        gender: Gender or "male" / "female"
    """
    gender = parse_gender(gender)
    if isinstance(year, Pillar):
        stem = year.stem
    elif isinstance(year, str):
        stem = get_stem(year[:1])
    else:
        stem = year
    year_yang = stem.polarity == Polarity.YANG
    return (year_yang and gender == Gender.MALE) or (not year_yang and gender == Gender.FEMALE)


@dataclass(frozen=True)
class LuckStart:
    age: float
    date: datetime
    forward: bool
    reference_term: str
    reference_time: datetime

    def to_dict(self):
        return {
            "age": self.age,
            "date": self.date.strftime("%Y-%m-%d %H:%M:%S"),
            "direction": "forward" if self.forward else "backward",
            "reference_term": self.reference_term,
            "reference_time": self.reference_time.strftime("%Y-%m-%d %H:%M:%S"),
        }


@dataclass(frozen=True)
class LuckCycle:
    step: int
    pillar: Pillar
    start_age: float
    start_date: datetime
    stem_god: TenGod
    branch_god: TenGod

    def to_dict(self):
        stem, branch = self.pillar.stem, self.pillar.branch
        return {
            "step": self.step,
            "pillar": self.pillar.combined,
            "start_age": self.start_age,
            "start_date": self.start_date.strftime("%Y-%m-%d %H:%M:%S"),
            "hidden_stems": list(branch.hidden_stems),
            "elements": {
                "stem": stem.element.value,
                "branch": branch.element.value,
                "hidden_stems": [s.element.value for s in branch.hidden],
            },
            "ten_gods": {
                "stem": self.stem_god.value,
                "branch": self.branch_god.value,
            },
        }


def age_delta(age: float) -> relativedelta:
    """
    Split a luck age into whole years, months and days.

    Fractions use a 12-month year of 30-day months.
    """
    age = Decimal(str(age))
    years = int(age)
    months_exact = (age - years) * 12
    months = int(months_exact)
    days = int(((months_exact - months) * 30).to_integral_value(rounding=ROUND_HALF_UP))
    return relativedelta(years=years, months=months, days=days)


def shift_date(moment: datetime, delta: relativedelta) -> datetime:
    """
    Add ``delta`` as three steps: years, then months, then days.

    A day the target month does not have rolls over into the next month
    (Jan 31 + 1 month = Mar 3, Feb 29 + 1 year = Mar 1) instead of being
    clamped to the month's last day.
    """
    for step in (relativedelta(years=delta.years), relativedelta(months=delta.months)):
        shifted = moment + step
        # relativedelta clamps to the last day of the month; add back the excess
        moment = shifted + timedelta(days=moment.day - shifted.day)
    return moment + timedelta(days=delta.days)


def starting_offset(birth: DateLike, gender: Union[Gender, str],
                    solar_terms: Optional[SolarTermProvider] = None) -> LuckStart:
    """
    Starting age and date of the first luck pillar.

    Jie terms of the year before, of and after the birth year are merged;
    counting forward uses the first term strictly after birth, counting
    backward the last term strictly before it.

    Raises:
        NoReferenceTermError: if no Jie term lies on the required side of birth
    """
    birth = to_datetime(birth)
    gender = parse_gender(gender)
    provider = solar_terms if solar_terms is not None else default_solar_terms()

    pillars = four_pillars(birth, provider)
    forward = is_forward(pillars[0], gender)

    window = []
    for year in (birth.year - 1, birth.year, birth.year + 1):
        window.extend((moment, name) for name, moment in provider.terms(year, jie_only=True).items())
    window.sort()

    if forward:
        reference = next(((m, n) for m, n in window if m > birth), None)
    else:
        reference = next(((m, n) for m, n in reversed(window) if m < birth), None)
    if reference is None:
        raise NoReferenceTermError(
            f"No Jie term {'after' if forward else 'before'} {birth} in {birth.year - 1}-{birth.year + 1}"
        )

    reference_time, reference_term = reference
    age = round(minutes_between(birth, reference_time) / MINUTES_PER_LUCK_YEAR, 2)
    start_date = shift_date(birth, age_delta(age))
    logger.debug("Luck starts at %.2f (%s) from %s %s", age, start_date, reference_term, reference_time)

    return LuckStart(
        age=age,
        date=start_date,
        forward=forward,
        reference_term=reference_term,
        reference_time=reference_time,
    )


def luck_cycles(birth: DateLike, gender: Union[Gender, str], count: Optional[int] = None,
                solar_terms: Optional[SolarTermProvider] = None) -> list[LuckCycle]:
    """
    Compute Luck Pillars.

    The sequence starts from the Day Pillar and steps one stem and one
    branch per decade in the luck direction. Each pillar is annotated with
    its Ten Gods relative to the day stem.

    Args:
        birth: birth moment
        gender: Gender or "male" / "female"
        count: number of luck pillars (defaults to the configured count);
            0 gives an empty list

    Raises:
        InvalidCountError: if count is negative
    """
    if count is None:
        count = config.LUCK_CYCLE_COUNT
    if count < 0:
        raise InvalidCountError(f"count must not be negative, got {count}")

    birth = to_datetime(birth)
    provider = solar_terms if solar_terms is not None else default_solar_terms()
    start = starting_offset(birth, gender, provider)

    day = four_pillars(birth, provider)[2]
    day_master = day.stem
    start_stem, start_branch = day.stem.index, day.branch.index

    cycles = []
    for i in range(count):
        if start.forward:
            s_idx = (start_stem + i) % 10
            b_idx = (start_branch + i) % 12
        else:
            s_idx = (start_stem + 10 - i) % 10
            b_idx = (start_branch + 12 - i) % 12

        pillar = make_pillar(s_idx, b_idx, "luck")
        cycles.append(LuckCycle(
            step=i + 1,
            pillar=pillar,
            start_age=round(start.age + i * 10, 2),
            start_date=shift_date(start.date, relativedelta(years=i * 10)),
            stem_god=resolve(day_master, pillar.stem),
            branch_god=resolve(day_master, pillar.branch),
        ))

    return cycles
