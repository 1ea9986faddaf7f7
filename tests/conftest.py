import pytest

from fourpillars import config
from fourpillars.astro_calendar import SolarTermTable, default_solar_terms, export_solar_terms

# Jie terms (plus 大寒 1997) in Beijing time
SOLAR_TERMS = {
    "1996": {
        "小寒": "1996-01-06 09:31:00", "立春": "1996-02-04 21:08:00",
        "惊蛰": "1996-03-05 15:10:00", "清明": "1996-04-04 20:02:00",
        "立夏": "1996-05-05 13:26:00", "芒种": "1996-06-05 17:41:00",
        "小暑": "1996-07-07 04:00:00", "立秋": "1996-08-07 13:49:00",
        "白露": "1996-09-07 16:42:00", "寒露": "1996-10-08 08:19:00",
        "立冬": "1996-11-07 11:27:00", "大雪": "1996-12-07 04:14:00",
    },
    "1997": {
        "小寒": "1997-01-05 15:24:00", "大寒": "1997-01-20 08:43:00",
        "立春": "1997-02-04 03:02:00", "惊蛰": "1997-03-05 20:04:00",
        "清明": "1997-04-05 01:56:00", "立夏": "1997-05-05 19:19:00",
        "芒种": "1997-06-05 23:33:00", "小暑": "1997-07-07 09:49:00",
        "立秋": "1997-08-07 19:36:00", "白露": "1997-09-07 22:29:00",
        "寒露": "1997-10-08 14:05:00", "立冬": "1997-11-07 17:15:00",
        "大雪": "1997-12-07 10:05:00",
    },
    "1998": {
        "小寒": "1998-01-05 21:18:00", "立春": "1998-02-04 08:57:00",
        "惊蛰": "1998-03-06 02:57:00", "清明": "1998-04-05 07:45:00",
        "立夏": "1998-05-06 01:03:00", "芒种": "1998-06-06 05:13:00",
        "小暑": "1998-07-07 15:30:00", "立秋": "1998-08-08 01:20:00",
        "白露": "1998-09-08 04:16:00", "寒露": "1998-10-08 19:56:00",
        "立冬": "1998-11-07 23:08:00", "大雪": "1998-12-07 16:02:00",
    },
}

SAMPLE_BIRTH = "1997-01-21 16:30:00"
SAMPLE_PILLARS = ["丙子", "辛丑", "癸亥", "庚申"]


@pytest.fixture
def terms():
    return SolarTermTable(SOLAR_TERMS)


@pytest.fixture
def configured_terms(tmp_path, monkeypatch, terms):
    """Point the process-wide provider at the fixture table."""
    path = export_solar_terms(terms, [1996, 1997, 1998], tmp_path / "solar_terms.json")
    monkeypatch.setattr(config, "SOLAR_TERMS_PATH", str(path))
    default_solar_terms.cache_clear()
    yield path
    default_solar_terms.cache_clear()
