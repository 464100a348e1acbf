"""Tests for risk scoring and classification."""

import pytest

from safechange_cli.models import AnalysisRecord, ExportSymbol
from safechange_cli.risk import RiskScorer, classify, risk_ordinal, risk_score


def make_record(path="src/app.ts", deps=0, dependents=0, exports=0) -> AnalysisRecord:
    return AnalysisRecord(
        path=path,
        exports=[ExportSymbol(name=f"e{i}", kind="const", line_number=i + 1) for i in range(exports)],
        dependencies=[f"dep{i}" for i in range(deps)],
        dependents=[f"user{i}" for i in range(dependents)],
    )


def test_score_formula():
    record = make_record(deps=2, dependents=3, exports=4)
    assert risk_score(record) == 2 + 3 * 2 + 4


@pytest.mark.parametrize(
    "path, bonus",
    [
        ("src/lib/thing.ts", 5),
        ("src/utils/thing.ts", 5),
        ("src/lib/utils/thing.ts", 5),
        ("src/api/thing.ts", 3),
        ("src/lib/api/thing.ts", 8),
        ("src/routes/thing.ts", 0),
    ],
)
def test_path_bonuses(path: str, bonus: int):
    assert risk_score(make_record(path=path)) == bonus


@pytest.mark.parametrize(
    "score, level",
    [(0, "low"), (9, "low"), (10, "medium"), (14, "medium"), (15, "high"), (19, "high"), (20, "critical"), (99, "critical")],
)
def test_classify_thresholds(score: int, level: str):
    assert classify(score) == level


def test_more_dependents_never_lowers_risk():
    previous = 0
    for dependents in range(15):
        level = risk_ordinal(RiskScorer().score(make_record(dependents=dependents)))
        assert level >= previous
        previous = level


def test_sample_project_levels(sample_records):
    levels = {path: record.risk_level for path, record in sample_records.items()}
    assert levels == {
        "src/lib/api/client.ts": "high",
        "src/lib/stores/user.ts": "medium",
        "src/lib/utils/format.ts": "medium",
        "src/lib/utils/index.ts": "low",
        "src/routes/+page.svelte": "low",
        "src/routes/dashboard/index.ts": "low",
    }
    assert risk_score(sample_records["src/lib/api/client.ts"]) == 15
    assert risk_score(sample_records["src/lib/utils/format.ts"]) == 14


def test_direct_change_impacts():
    records = {"hub": make_record(path="hub", dependents=12)}
    RiskScorer().score_all(records)
    hub = records["hub"]

    assert hub.risk_level == "critical"
    assert [i.affected_file for i in hub.change_impacts] == hub.dependents
    assert {i.severity for i in hub.change_impacts} == {"high"}
    assert {i.impact_type for i in hub.change_impacts} == {"unknown"}


def test_direct_change_impacts_non_critical(sample_records):
    impacts = sample_records["src/lib/api/client.ts"].change_impacts

    assert [i.affected_file for i in impacts] == ["src/lib/stores/user.ts", "src/routes/dashboard/index.ts"]
    assert all(i.severity == "medium" for i in impacts)
