import json

from erranza.config.settings import get_settings
from erranza.quality.report import build_quality_report


def _settings_for(path):
    base = get_settings()
    return base.model_copy(update={"catalog": base.catalog.model_copy(update={"path": str(path)})})


def test_quality_report_flags_catalog_problems(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(
        json.dumps(
            [
                {"id": "a", "name": "A", "restorative_score": 140, "flight_time_hours": 3},
                {"id": "a", "name": "A again", "flight_time_hours": 3},
                {"id": "c", "name": "C", "is_active": False},
            ]
        ),
        encoding="utf-8",
    )

    report = build_quality_report(_settings_for(path))
    codes = {i["code"] for i in report["issues"]}

    assert report["overall"]["severity"] == "error"
    assert {
        "CATALOG_DUPLICATE_ID",
        "CATALOG_MISSING_SCORE",
        "CATALOG_SCORE_OUT_OF_RANGE",
        "CATALOG_INACTIVE",
    } <= codes
    assert "CATALOG_MISSING_FLIGHT_TIME" not in codes


def test_quality_report_load_failure(tmp_path):
    report = build_quality_report(_settings_for(tmp_path / "missing.json"))

    assert report["overall"] == {"severity": "error", "issue_count": 1}
    assert report["issues"][0]["code"] == "CATALOG_LOAD_FAILED"


def test_sample_catalog_report_is_not_an_error():
    report = build_quality_report(get_settings())

    codes = {i["code"] for i in report["issues"]}
    assert report["overall"]["severity"] == "warning"
    # dest-marrakech ships without a luxury score.
    assert "CATALOG_MISSING_SCORE" in codes
    assert "CATALOG_INACTIVE" in codes
