"""Risk classification of graph nodes.

Score = dependencies + 2 * dependents + exports, plus a flat bonus for
shared-utility (``/utils/``, ``/lib/``) and API (``/api/``) paths.
"""

from __future__ import annotations

from typing import Dict, List

from .models import AnalysisRecord, ImpactRecord, RISK_LEVELS

UTILITY_MARKERS = ("/utils/", "/lib/")
API_MARKER = "/api/"

CRITICAL_THRESHOLD = 20
HIGH_THRESHOLD = 15
MEDIUM_THRESHOLD = 10


def risk_score(record: AnalysisRecord) -> int:
    score = len(record.dependencies) * 1
    score += len(record.dependents) * 2
    score += len(record.exports) * 1
    if any(marker in record.path for marker in UTILITY_MARKERS):
        score += 5
    if API_MARKER in record.path:
        score += 3
    return score


def classify(score: int) -> str:
    if score >= CRITICAL_THRESHOLD:
        return "critical"
    if score >= HIGH_THRESHOLD:
        return "high"
    if score >= MEDIUM_THRESHOLD:
        return "medium"
    return "low"


def risk_ordinal(level: str) -> int:
    return RISK_LEVELS.index(level)


class RiskScorer:
    """Assigns ``risk_level`` and per-file change impacts to a built graph."""

    def score(self, record: AnalysisRecord) -> str:
        return classify(risk_score(record))

    def score_all(self, records: Dict[str, AnalysisRecord]) -> None:
        for record in records.values():
            record.risk_level = self.score(record)
        for record in records.values():
            record.change_impacts = self.direct_change_impacts(record)

    @staticmethod
    def direct_change_impacts(record: AnalysisRecord) -> List[ImpactRecord]:
        severity = "high" if record.risk_level == "critical" else "medium"
        return [
            ImpactRecord(
                affected_file=dependent,
                impact_type="unknown",
                description="Affected through a direct dependency",
                severity=severity,
            )
            for dependent in record.dependents
        ]
