"""Core data models shared by scanning, graph building, impact and planning."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Optional

ImportKind = Literal["relative", "absolute", "package"]
ExportKind = Literal["function", "class", "interface", "type", "const", "let", "var"]
RiskLevel = Literal["low", "medium", "high", "critical"]
ImpactType = Literal["breaking", "non-breaking", "unknown"]
Severity = Literal["low", "medium", "high", "critical"]
ChangeType = Literal["modify", "delete", "rename", "move", "add"]
ChangeStatus = Literal["pending", "in_progress", "completed", "failed", "rolled_back"]
ChangeStep = Literal["analysis", "backup", "preparation", "execution", "validation", "cleanup"]

RISK_LEVELS: List[str] = ["low", "medium", "high", "critical"]
CHANGE_TYPES: List[str] = ["modify", "delete", "rename", "move", "add"]
CHANGE_STEPS: List[str] = ["analysis", "backup", "preparation", "execution", "validation", "cleanup"]
TERMINAL_STATUSES = frozenset({"completed", "rolled_back"})


@dataclass
class ImportEdge:
    from_path: str
    raw_specifier: str
    kind: ImportKind
    line_number: int
    imported_symbols: List[str] = field(default_factory=list)
    resolved_path: Optional[str] = None


@dataclass
class ExportSymbol:
    name: str
    kind: ExportKind
    line_number: int
    is_default: bool = False


@dataclass
class ImpactRecord:
    affected_file: str
    impact_type: ImpactType
    description: str
    severity: Severity


@dataclass
class AnalysisRecord:
    """Per-file snapshot of imports, exports and graph edges."""
    path: str
    imports: List[ImportEdge] = field(default_factory=list)
    exports: List[ExportSymbol] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    dependents: List[str] = field(default_factory=list)
    risk_level: RiskLevel = "low"
    change_impacts: List[ImpactRecord] = field(default_factory=list)

    @property
    def fan_in(self) -> int:
        return len(self.dependents)

    @property
    def fan_out(self) -> int:
        return len(self.dependencies)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AnalysisRecord":
        return cls(
            path=payload["path"],
            imports=[ImportEdge(**item) for item in payload.get("imports", [])],
            exports=[ExportSymbol(**item) for item in payload.get("exports", [])],
            dependencies=list(payload.get("dependencies", [])),
            dependents=list(payload.get("dependents", [])),
            risk_level=payload.get("risk_level", "low"),
            change_impacts=[ImpactRecord(**item) for item in payload.get("change_impacts", [])],
        )


# ---------------------------------------------------------------------------
# Phase results
# ---------------------------------------------------------------------------

@dataclass
class ImportExtraction:
    """Result of import extraction for one file."""
    path: str
    imports: List[ImportEdge] = field(default_factory=list)


@dataclass
class ExportExtraction:
    """Result of export extraction for one file."""
    path: str
    exports: List[ExportSymbol] = field(default_factory=list)


@dataclass
class GraphBuildResult:
    """Outcome of a dependency graph build over a complete record map."""
    records: Dict[str, AnalysisRecord]
    edge_count: int = 0
    unresolved: List[ImportEdge] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Change planning
# ---------------------------------------------------------------------------

def dedupe_affected_files(impacts: List[ImpactRecord]) -> List[str]:
    """Unique affected files in first-seen order."""
    return list(dict.fromkeys(impact.affected_file for impact in impacts))


@dataclass
class ChangePlan:
    """A staged description of how a risky edit is applied and undone."""
    id: str
    file_path: str
    change_type: ChangeType
    description: str
    created_at: str
    updated_at: str
    status: ChangeStatus = "pending"
    current_step: ChangeStep = "analysis"
    analysis: Optional[AnalysisRecord] = None
    impacts: List[ImpactRecord] = field(default_factory=list)
    procedure: List[str] = field(default_factory=list)
    risks: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    rollback_plan: List[str] = field(default_factory=list)
    validation_checks: List[str] = field(default_factory=list)
    last_error: Optional[str] = None

    @property
    def affected_files(self) -> List[str]:
        return dedupe_affected_files(self.impacts)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["affected_files"] = self.affected_files
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ChangePlan":
        analysis = payload.get("analysis")
        return cls(
            id=payload["id"],
            file_path=payload["file_path"],
            change_type=payload["change_type"],
            description=payload.get("description", ""),
            created_at=payload["created_at"],
            updated_at=payload["updated_at"],
            status=payload.get("status", "pending"),
            current_step=payload.get("current_step", "analysis"),
            analysis=AnalysisRecord.from_dict(analysis) if analysis else None,
            impacts=[ImpactRecord(**item) for item in payload.get("impacts", [])],
            procedure=list(payload.get("procedure", [])),
            risks=list(payload.get("risks", [])),
            recommendations=list(payload.get("recommendations", [])),
            rollback_plan=list(payload.get("rollback_plan", [])),
            validation_checks=list(payload.get("validation_checks", [])),
            last_error=payload.get("last_error"),
        )


@dataclass
class StepResult:
    """Outcome of one execute or rollback call."""
    success: bool
    message: str
    next_step: Optional[ChangeStep] = None

    def __str__(self) -> str:
        if self.success:
            return f"✅ {self.message}"
        return f"❌ {self.message}"


@dataclass
class ValidationResult:
    """Result of validating a proposed change."""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        if self.is_valid:
            return "✅ Validation passed"
        return f"❌ Validation failed: {', '.join(self.errors)}"
