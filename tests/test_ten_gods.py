from __future__ import annotations

import pytest

from fourpillars.bazi import EARTHLY_BRANCHES, HEAVENLY_STEMS, Element
from fourpillars.errors import InvalidSymbolError
from fourpillars.ten_gods import (
    GROUP_NOTES,
    TenGod,
    element_relationship,
    interpret_ten_gods,
    resolve,
    ten_god_distribution,
)

from .conftest import SAMPLE_PILLARS


@pytest.mark.parametrize("stem", HEAVENLY_STEMS, ids=lambda s: s.pinyin)
def test_day_master_resolves_to_itself(stem) -> None:
    assert resolve(stem, stem) is TenGod.DAY_MASTER
    assert resolve(stem.chinese, stem.pinyin) is TenGod.DAY_MASTER


@pytest.mark.parametrize("target, expected", [
    ("乙", TenGod.ROB_WEALTH),
    ("壬", TenGod.INDIRECT_RESOURCE),
    ("癸", TenGod.DIRECT_RESOURCE),
    ("丙", TenGod.EATING_GOD),
    ("丁", TenGod.HURTING_OFFICER),
    ("庚", TenGod.SEVEN_KILLINGS),
    ("辛", TenGod.DIRECT_OFFICER),
    ("戊", TenGod.INDIRECT_WEALTH),
    ("己", TenGod.DIRECT_WEALTH),
])
def test_ten_gods_of_jia(target, expected) -> None:
    assert resolve("甲", target) is expected


def test_branch_reads_through_primary_stem() -> None:
    assert resolve("癸", "子") is TenGod.COMPANION
    assert resolve("癸", "丑") is TenGod.SEVEN_KILLINGS
    assert resolve("癸", "亥") is TenGod.ROB_WEALTH
    assert resolve("癸", "申") is TenGod.DIRECT_RESOURCE


def test_wu_pinyin_means_the_stem() -> None:
    assert resolve("甲", "Wu") is TenGod.INDIRECT_WEALTH
    assert resolve("甲", "午") is TenGod.HURTING_OFFICER


def test_every_pair_resolves() -> None:
    gods = set(TenGod) - {TenGod.DAY_MASTER, TenGod.UNRESOLVED}
    for day_master in HEAVENLY_STEMS:
        for target in HEAVENLY_STEMS:
            god = resolve(day_master, target)
            assert god in gods or target == day_master
        for branch in EARTHLY_BRANCHES:
            assert resolve(day_master, branch) is not TenGod.UNRESOLVED


def test_unknown_symbol() -> None:
    with pytest.raises(InvalidSymbolError):
        resolve("甲", "X")
    with pytest.raises(InvalidSymbolError):
        resolve("子", "甲")


def test_element_relationship() -> None:
    assert element_relationship(Element.WATER, Element.WATER) == "same"
    assert element_relationship(Element.WATER, Element.METAL) == "produces_me"
    assert element_relationship(Element.WATER, Element.WOOD) == "i_produce"
    assert element_relationship(Element.WATER, Element.EARTH) == "controls_me"
    assert element_relationship(Element.WATER, Element.FIRE) == "i_control"


def test_distribution() -> None:
    result = ten_god_distribution(SAMPLE_PILLARS)
    assert result["day_master"] == "癸"
    assert result["day_master_attribute"] == "阴水"
    assert result["distribution"] == {
        "year": {"stem": ["丙", "正财"], "branch": ["子", "比肩"]},
        "month": {"stem": ["辛", "偏印"], "branch": ["丑", "七杀"]},
        "day": {"stem": ["癸", "日主"], "branch": ["亥", "劫财"]},
        "hour": {"stem": ["庚", "正印"], "branch": ["申", "正印"]},
    }


def test_repeated_day_stem_is_the_day_master() -> None:
    """The day stem in another pillar keeps the sentinel and is not counted."""
    pillars = ["癸丑", "甲子", "癸亥", "壬子"]
    result = ten_god_distribution(pillars)
    assert result["distribution"]["year"]["stem"] == ["癸", "日主"]
    assert result["distribution"]["day"]["stem"] == ["癸", "日主"]

    frequency = interpret_ten_gods(pillars)["frequency"]
    assert frequency == {"七杀": 1, "伤官": 1, "比肩": 2, "劫财": 2}
    assert sum(frequency.values()) == 6


def test_interpretation() -> None:
    result = interpret_ten_gods(SAMPLE_PILLARS)
    assert result["frequency"] == {
        "正财": 1, "比肩": 1, "偏印": 1, "七杀": 1, "劫财": 1, "正印": 2,
    }
    assert result["statistics"] == {"印星": 3, "比劫": 2, "食伤": 0, "官杀": 1, "财星": 1}
    assert result["analysis"][:2] == [GROUP_NOTES["印星"], GROUP_NOTES["比劫"]]
    assert "偏强" in result["analysis"][-1]
    assert len(result["analysis"]) == 3


def test_interpretation_counts_seven_positions() -> None:
    result = interpret_ten_gods(SAMPLE_PILLARS)
    assert sum(result["frequency"].values()) == 7


def test_interpretation_is_deterministic() -> None:
    assert interpret_ten_gods(SAMPLE_PILLARS) == interpret_ten_gods(list(SAMPLE_PILLARS))


def test_balanced_chart() -> None:
    # 癸 day master: 印星 3 + 比劫 1 against 财星 1 + 官杀 1 + 食伤 1
    result = interpret_ten_gods(["丙子", "辛丑", "癸卯", "庚申"])
    assert result["statistics"] == {"印星": 3, "比劫": 1, "食伤": 1, "官杀": 1, "财星": 1}
    assert "均衡" in result["analysis"][-1]


def test_repeated_day_stem_does_not_add_support() -> None:
    # 甲 day master: 甲子 year (日主, 正印), 丙寅 month (食神, 比肩),
    # 戊辰 hour (偏财, 偏财), day branch 午 (伤官): help 2, drain 4
    result = interpret_ten_gods(["甲子", "丙寅", "甲午", "戊辰"])
    assert result["statistics"] == {"印星": 1, "比劫": 1, "食伤": 2, "官杀": 0, "财星": 2}
    assert "偏弱" in result["analysis"][-1]


def test_weak_chart() -> None:
    result = interpret_ten_gods(["庚申", "辛酉", "甲午", "丙戌"])
    assert result["statistics"] == {"印星": 0, "比劫": 0, "食伤": 2, "官杀": 4, "财星": 1}
    assert "偏弱" in result["analysis"][-1]
