"""Blast-radius prediction for a prospective change to one file."""

from __future__ import annotations

from typing import List, Mapping

from .models import AnalysisRecord, ImpactRecord


_PLAN_TO_IMPACT_KIND = {
    "modify": "modify",
    "delete": "delete",
    "rename": "rename",
    "add": "modify",
    "move": "rename",
}


def impact_kind_for(change_type: str) -> str:
    """Map a plan change type onto the kinds the predictor understands."""
    return _PLAN_TO_IMPACT_KIND[change_type]


class ImpactPredictor:
    """Walks the reverse dependency graph from a target file, two hops deep.

    The result is not deduplicated: a file reachable along several paths
    appears once per path.  Use :func:`models.dedupe_affected_files` when a
    unique set is needed.
    """

    def __init__(self, records: Mapping[str, AnalysisRecord]) -> None:
        self.records = records

    def predict(self, target: str, change_kind: str) -> List[ImpactRecord]:
        if change_kind not in ("modify", "delete", "rename"):
            raise ValueError(f"Unsupported change kind: {change_kind}")

        record = self.records.get(target)
        if record is None:
            return []

        impacts: List[ImpactRecord] = []
        is_delete = change_kind == "delete"

        for dependent in record.dependents:
            impacts.append(ImpactRecord(
                affected_file=dependent,
                impact_type="breaking" if is_delete else "unknown",
                description=f"{change_kind} change directly affects this file",
                severity="critical" if is_delete else "medium",
            ))

        for dependent in record.dependents:
            dependent_record = self.records.get(dependent)
            if dependent_record is None:
                continue
            for indirect in dependent_record.dependents:
                impacts.append(ImpactRecord(
                    affected_file=indirect,
                    impact_type="unknown",
                    description=f"{change_kind} change indirectly affects this file",
                    severity="low",
                ))

        return impacts
