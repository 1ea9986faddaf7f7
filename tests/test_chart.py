from __future__ import annotations

import json

import pytest

from fourpillars.astro_calendar import CalendarLookup
from fourpillars.chart import compute_and_save_chart, compute_chart
from fourpillars.errors import InvalidGenderError

from .conftest import SAMPLE_BIRTH, SAMPLE_PILLARS


def test_compute_chart(terms) -> None:
    calendar = CalendarLookup(lunar_map={"1997-01-21": "1996-12-13"})
    chart = compute_chart(SAMPLE_BIRTH, "male", 3, terms, calendar)

    assert chart["birth"] == "1997-01-21 16:30:00"
    assert chart["lunar_date"] == "1996-12-13"
    assert chart["gender"] == "male"
    assert chart["four_pillars"] == SAMPLE_PILLARS
    assert list(chart["pillars"]) == ["year", "month", "day", "hour"]
    assert chart["pillars"]["day"]["combined"] == "癸亥"
    assert chart["pillars"]["day"]["cycle_index"] == 59
    assert chart["day_master"]["stem"] == "癸"
    assert chart["day_master"]["element"] == "水"
    assert chart["day_master"]["polarity"] == "阴"
    assert chart["element_distribution"]["simple"] == {"金": 3, "木": 0, "水": 3, "火": 1, "土": 1}
    assert chart["combinations"]["dominant"] == "水三会"
    assert chart["ten_gods"]["day_master"] == "癸"
    assert chart["ten_god_analysis"]["statistics"]["印星"] == 3
    assert chart["luck_start"]["direction"] == "forward"
    assert [c["pillar"] for c in chart["luck_pillars"]] == ["癸亥", "甲子", "乙丑"]


def test_chart_is_json_serializable(terms) -> None:
    chart = compute_chart(SAMPLE_BIRTH, "female", 2, terms, CalendarLookup())
    assert chart["lunar_date"] is None
    assert json.loads(json.dumps(chart, ensure_ascii=False)) == chart


def test_chart_rejects_bad_gender(terms) -> None:
    with pytest.raises(InvalidGenderError):
        compute_chart(SAMPLE_BIRTH, "other", 2, terms, CalendarLookup())


def test_compute_and_save_chart(terms, tmp_path) -> None:
    summary = compute_and_save_chart("Test User", SAMPLE_BIRTH, "female", 4,
                                     chart_dir=tmp_path, solar_terms=terms)

    assert summary["path"] == str(tmp_path / "test_user.json")
    assert summary["four_pillars"] == SAMPLE_PILLARS
    assert summary["day_master"] == "Gui (yin water)"
    assert summary["luck_pillars"] == 4

    with open(summary["path"], encoding="utf-8") as f:
        saved = json.load(f)
    assert saved["user"] == {"name": "Test User"}
    assert saved["bazi"]["luck_start"]["reference_term"] == "小寒"
    assert [c["pillar"] for c in saved["bazi"]["luck_pillars"]] == ["癸亥", "壬戌", "辛酉", "庚申"]
