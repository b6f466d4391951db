import json
import re
from pathlib import Path

import pytest

from labdigest.tools import labs_tool as LT
from labdigest.constants import READINGS_COLS

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture():
    with open(FIXTURES_DIR / "readings.json", "r") as f:
        return json.load(f)


@pytest.mark.parametrize("case", load_fixture()["cases"])
def test_single_reading_matches_fixture(case):
    readings = LT.extract_readings(case["text"])
    assert len(readings) == 1, f"Expected one reading for {case['text']!r}, got {readings}"
    got = readings[0].to_dict()
    expected = case["expected"]
    assert got["name"] == expected["name"]
    assert got["value"] == pytest.approx(expected["value"], rel=0, abs=1e-9)
    assert got["unit"] == expected["unit"]
    assert got["referenceRange"] == expected["referenceRange"]
    assert got["status"] == expected["status"]


@pytest.mark.parametrize(
    "value,status",
    [(11.99, "low"), (12, "normal"), (14.5, "normal"), (17, "normal"), (17.01, "high")],
)
def test_classify_bounds_are_inclusive(value, status):
    assert LT.classify(value, 12.0, 17.0).value == status


def test_classify_unknown_when_a_bound_is_missing():
    assert LT.classify(5.0, None, 10.0) == LT.ReadingStatus.UNKNOWN
    assert LT.classify(5.0, 1.0, None) == LT.ReadingStatus.UNKNOWN


def test_output_follows_lexicon_order_not_text_order():
    text = "Glucose: 110 mg/dL\nHemoglobin 13.2 g/dL"
    names = [r.name for r in LT.extract_readings(text)]
    assert names == ["Hemoglobin", "Glucose"]


def test_first_match_wins_per_test():
    text = "Hemoglobin: 11.0 g/dL on admission. Hemoglobin: 14.0 g/dL at discharge."
    readings = LT.extract_readings(text)
    assert [r.value for r in readings] == [11.0]


def test_no_match_yields_no_reading():
    assert LT.extract_readings("The patient feels well and has no complaints.") == []
    assert LT.extract_readings("") == []


def test_alias_case_insensitive():
    readings = LT.extract_readings("HGB 9.8 g/dL")
    assert len(readings) == 1
    assert readings[0].name == "Hemoglobin"
    assert readings[0].status == LT.ReadingStatus.LOW


def test_custom_lexicon_with_open_range_is_unknown():
    lexicon = LT.build_lexicon([("vitamin d", ["vit d"], None, None, "ng/mL")])
    readings = LT.extract_readings("Vit D: 31", lexicon)
    assert len(readings) == 1
    r = readings[0]
    assert r.name == "Vitamin D"
    assert r.unit == "ng/mL"
    assert r.status == LT.ReadingStatus.UNKNOWN
    assert r.to_dict()["referenceRange"] == {"min": None, "max": None}


def test_missing_unit_everywhere_is_empty_string():
    lexicon = LT.build_lexicon([("ratio", [], 1, 2, "")])
    readings = LT.extract_readings("ratio: 1.5", lexicon)
    assert readings[0].unit == ""


def test_overlapping_aliases_keep_declaration_order():
    lexicon = LT.build_lexicon([
        ("total chol", ["chol"], 0, 200, "mg/dL"),
        ("chol panel", ["chol"], 0, 300, "mg/dL"),
    ])
    readings = LT.extract_readings("chol: 250", lexicon)
    assert [r.name for r in readings] == ["Total Chol", "Chol Panel"]
    assert [r.status.value for r in readings] == ["high", "normal"]


def test_compile_lexicon_is_deterministic():
    lexicon = LT.default_lexicon()
    a = LT.compile_lexicon(lexicon)
    b = LT.compile_lexicon(lexicon)
    assert [m.pattern.pattern for m in a] == [m.pattern.pattern for m in b]
    assert [m.test.name for m in a] == [t.name for t in lexicon]


def test_default_lexicon_declaration_order():
    names = [t.name for t in LT.default_lexicon()]
    assert len(names) == 21
    assert names[0] == "hemoglobin"
    assert names[-1] == "basophils"


def test_load_lexicon_from_json(tmp_path):
    fp = tmp_path / "lexicon.json"
    fp.write_text(json.dumps({
        "tests": [
            {"name": "Ferritin", "aliases": ["Serum Ferritin"], "min": 30, "max": 400, "unit": "ng/mL"},
            {"name": "crp", "aliases": [], "min": None, "max": 5, "unit": "mg/L"},
        ]
    }))
    lexicon = LT.load_lexicon(str(fp))
    assert [t.name for t in lexicon] == ["ferritin", "crp"]
    assert lexicon[0].aliases == ("serum ferritin",)
    readings = LT.extract_readings("Serum Ferritin: 12 ng/mL; CRP = 3", lexicon)
    assert [(r.name, r.status.value) for r in readings] == [("Ferritin", "low"), ("Crp", "unknown")]


@pytest.fixture
def fresh_default_lexicon():
    LT.default_lexicon.cache_clear()
    yield
    LT.default_lexicon.cache_clear()


def test_default_lexicon_reads_configured_path(tmp_path, monkeypatch, fresh_default_lexicon):
    fp = tmp_path / "lexicon.json"
    fp.write_text(json.dumps({"tests": [{"name": "Ferritin", "min": 30, "max": 400, "unit": "ng/mL"}]}))
    monkeypatch.setattr(LT, "LAB_LEXICON_PATH", str(fp))
    assert [t.name for t in LT.default_lexicon()] == ["ferritin"]
    readings = LT.extract_readings("Ferritin: 12 ng/mL; Hemoglobin: 10.5 g/dL")
    assert [r.name for r in readings] == ["Ferritin"]


@pytest.mark.parametrize("content", [None, "{not json", "[1, 2]", '{"tests": [{"aliases": []}]}'])
def test_default_lexicon_falls_back_when_configured_path_is_bad(
    tmp_path, monkeypatch, caplog, fresh_default_lexicon, content
):
    fp = tmp_path / "lexicon.json"
    if content is not None:
        fp.write_text(content)
    monkeypatch.setattr(LT, "LAB_LEXICON_PATH", str(fp))
    with caplog.at_level("ERROR", logger=LT.__name__):
        lexicon = LT.default_lexicon()
    assert len(lexicon) == 21
    assert "Failed to load lab lexicon" in caplog.text
    assert str(fp) in caplog.text
    assert [r.name for r in LT.extract_readings("Hemoglobin: 10.5 g/dL")] == ["Hemoglobin"]


def test_readings_frame_columns_and_rows():
    readings = LT.extract_readings("Hemoglobin: 10.5 g/dL\nGlucose - 95")
    df = LT.readings_frame(readings)
    assert list(df.columns) == READINGS_COLS
    assert df["name"].tolist() == ["Hemoglobin", "Glucose"]
    assert df["status"].tolist() == ["low", "normal"]
    assert df.iloc[1]["unit"] == "mg/dL"


def test_readings_frame_empty():
    df = LT.readings_frame([])
    assert df.empty
    assert list(df.columns) == READINGS_COLS




def _lexicon_cases():
    cases = []
    for test in LT.default_lexicon():
        lo = test.ref_min if test.ref_min is not None else 0.0
        for i, label in enumerate((test.name, *test.aliases)):
            value = round(lo + 1.5 * (i + 1), 2)
            cases.append((test, label, value))
    return cases


@pytest.mark.parametrize("test,label,value", _lexicon_cases(), ids=lambda x: getattr(x, "name", str(x)))
def test_every_name_and_alias_yields_one_reading(test, label, value):
    text = f"{label}: {value} {test.unit}"
    expected_name = LT.display_name(test.name)
    hits = [r for r in LT.extract_readings(text) if r.name == expected_name]
    assert len(hits) == 1, f"{text!r} -> {hits}"
    r = hits[0]
    assert r.value == pytest.approx(value)
    assert r.status == LT.classify(value, test.ref_min, test.ref_max)
    if re.fullmatch(r"\w+(?:/\w+)?", test.unit):
        assert r.unit == test.unit


def main(argv=None):
    import sys
    import pytest as _pytest
    from pathlib import Path as _Path
    test_path = str(_Path(__file__).resolve())
    opts = [test_path]
    rc = _pytest.main(opts if argv is None else argv + [test_path])
    sys.exit(rc)


if __name__ == "__main__":
    main()
