"""
Chart creation library.
Computes a full Four Pillars chart from a birth moment and writes chart_data JSON.

Usage from Python:
    from fourpillars.chart import compute_and_save_chart
    compute_and_save_chart(name="Alex", birth="1997-01-21 16:30", gender="male")
"""

import json
import logging
import re
from pathlib import Path
from typing import Optional, Union

from fourpillars import config
from fourpillars.astro_calendar import (
    CalendarLookup,
    DateLike,
    SolarTermProvider,
    default_calendar_lookup,
    default_solar_terms,
    to_datetime,
)
from fourpillars.bazi import four_pillars
from fourpillars.elements import breakdown, detect_combinations, tally_full, tally_simple
from fourpillars.luck import Gender, luck_cycles, parse_gender, starting_offset
from fourpillars.ten_gods import interpret_ten_gods, ten_god_distribution

logger = logging.getLogger(__name__)


def compute_chart(birth: DateLike, gender: Union[Gender, str], count: Optional[int] = None,
                  solar_terms: Optional[SolarTermProvider] = None,
                  calendar: Optional[CalendarLookup] = None) -> dict:
    """
    Compute a full Four Pillars chart from birth data.

    Args:
        birth: birth moment, chart-local time
        gender: "male" or "female", sets the luck pillar direction
        count: number of luck pillars (defaults to the configured count)

    Returns:
        Complete chart dict with pillars, element analysis, Ten Gods and
        luck pillars.
    """
    birth = to_datetime(birth)
    gender = parse_gender(gender)
    provider = solar_terms if solar_terms is not None else default_solar_terms()
    calendar = calendar if calendar is not None else default_calendar_lookup()

    pillars = four_pillars(birth, provider)
    day_master = pillars[2].stem
    start = starting_offset(birth, gender, provider)
    cycles = luck_cycles(birth, gender, count, provider)

    return {
        "birth": birth.strftime("%Y-%m-%d %H:%M:%S"),
        "lunar_date": calendar.solar_to_lunar(birth),
        "gender": gender.value,
        "four_pillars": [p.combined for p in pillars],
        "pillars": {p.position: p.to_dict() for p in pillars},
        "day_master": {
            "stem": day_master.chinese,
            "pinyin": day_master.pinyin,
            "element": day_master.element.value,
            "polarity": day_master.polarity.value,
            "description": str(day_master),
        },
        "element_distribution": {
            "simple": tally_simple(pillars),
            "full": tally_full(pillars),
        },
        "element_breakdown": breakdown(pillars),
        "combinations": detect_combinations(pillars).to_dict(),
        "ten_gods": ten_god_distribution(pillars),
        "ten_god_analysis": interpret_ten_gods(pillars),
        "luck_start": start.to_dict(),
        "luck_pillars": [cycle.to_dict() for cycle in cycles],
    }


def compute_and_save_chart(name: str, birth: DateLike, gender: Union[Gender, str],
                           count: Optional[int] = None,
                           chart_dir: Optional[Union[str, Path]] = None,
                           solar_terms: Optional[SolarTermProvider] = None) -> dict:
    """
    Compute a chart and save it to <chart_dir>/<name>.json.

    Returns:
        dict with keys: path, four_pillars, day_master, luck_pillars
    """
    chart = compute_chart(birth, gender, count, solar_terms)
    chart_data = {"user": {"name": name}, "bazi": chart}

    chart_dir = Path(chart_dir or config.CHART_DIR)
    chart_dir.mkdir(parents=True, exist_ok=True)
    filename = re.sub(r"\s+", "_", name.strip().lower())
    chart_path = chart_dir / f"{filename}.json"

    with open(chart_path, "w", encoding="utf-8") as f:
        json.dump(chart_data, f, indent=2, ensure_ascii=False)
    logger.info("Saved chart for %s to %s", name, chart_path)

    return {
        "path": str(chart_path),
        "four_pillars": chart["four_pillars"],
        "day_master": chart["day_master"]["description"],
        "luck_pillars": len(chart["luck_pillars"]),
    }
