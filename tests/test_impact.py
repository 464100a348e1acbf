"""Tests for blast-radius prediction."""

import pytest

from safechange_cli.impact import ImpactPredictor, impact_kind_for
from safechange_cli.models import dedupe_affected_files
from safechange_cli.orchestrator import DependencyAnalyzer


FORMAT = "src/lib/utils/format.ts"


def test_delete_format(sample_records):
    """Deleting a shared utility breaks direct dependents and reaches one more hop."""
    impacts = DependencyAnalyzer.predict_impact(sample_records, FORMAT, "delete")

    direct = [i for i in impacts if i.impact_type == "breaking"]
    assert [i.affected_file for i in direct] == [
        "src/lib/api/client.ts",
        "src/routes/+page.svelte",
        "src/routes/dashboard/index.ts",
    ]
    assert all(i.severity == "critical" for i in direct)

    indirect = impacts[len(direct):]
    assert [i.affected_file for i in indirect] == [
        "src/lib/stores/user.ts",
        "src/routes/dashboard/index.ts",
    ]
    assert all(i.impact_type == "unknown" and i.severity == "low" for i in indirect)

    assert len(dedupe_affected_files(impacts)) == 4


def test_modify_is_not_breaking(sample_records):
    impacts = ImpactPredictor(sample_records).predict(FORMAT, "modify")

    direct = impacts[:3]
    assert all(i.impact_type == "unknown" and i.severity == "medium" for i in direct)
    assert direct[0].description == "modify change directly affects this file"
    assert impacts[3].description == "modify change indirectly affects this file"


def test_prediction_is_deterministic(sample_records):
    predictor = ImpactPredictor(sample_records)
    assert predictor.predict(FORMAT, "rename") == predictor.predict(FORMAT, "rename")


def test_unknown_target_has_no_impacts(sample_records):
    assert ImpactPredictor(sample_records).predict("src/nope.ts", "delete") == []


def test_leaf_file_has_no_impacts(sample_records):
    assert ImpactPredictor(sample_records).predict("src/routes/+page.svelte", "delete") == []


def test_only_two_hops(analyzer):
    records = analyzer.analyze_records({
        "a": "export const a = 1\n",
        "b": "import { a } from './a'\n",
        "c": "import { b } from './b'\n",
        "d": "import { c } from './c'\n",
    })

    affected = dedupe_affected_files(ImpactPredictor(records).predict("a", "modify"))

    assert affected == ["b", "c"]


def test_rejects_unknown_kind(sample_records):
    with pytest.raises(ValueError):
        ImpactPredictor(sample_records).predict(FORMAT, "move")


@pytest.mark.parametrize(
    "change_type, kind",
    [("modify", "modify"), ("delete", "delete"), ("rename", "rename"), ("add", "modify"), ("move", "rename")],
)
def test_impact_kind_for(change_type: str, kind: str):
    assert impact_kind_for(change_type) == kind


def test_three_file_chain(analyzer, chain_sources):
    records = analyzer.analyze_records(chain_sources)

    assert records["a"].risk_level == "low"
    impacts = ImpactPredictor(records).predict("a", "delete")

    assert [(i.affected_file, i.impact_type, i.severity) for i in impacts] == [
        ("b", "breaking", "critical"),
        ("c", "unknown", "low"),
    ]
