"""Coordinates scanning, extraction, graph building and risk scoring."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional

from .config_manager import ScanConfig, load_scan_config
from .graph import DependencyGraphBuilder
from .impact import ImpactPredictor
from .models import AnalysisRecord, GraphBuildResult, ImpactRecord
from .parser import Extractor, FileAnalyzer
from .risk import RiskScorer
from .scanner import SourceScanner, read_sources

logger = logging.getLogger(__name__)


class DependencyAnalyzer:
    """Runs a full analysis pass and answers impact queries.

    Every call to :meth:`analyze_project` starts from scratch; the returned
    map is owned by the caller and nothing is cached between runs.
    """

    def __init__(
        self,
        scan_config: Optional[ScanConfig] = None,
        extractor: Optional[Extractor] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.scan_config = scan_config or load_scan_config()
        self.file_analyzer = FileAnalyzer(extractor)
        self.graph_builder = DependencyGraphBuilder(self.scan_config.extensions)
        self.risk_scorer = RiskScorer()
        self.cancel_event = cancel_event

    def _scanner(self, root: Optional[Path]) -> SourceScanner:
        return SourceScanner(
            root or Path(self.scan_config.root),
            extensions=self.scan_config.extensions,
            ignore_patterns=self.scan_config.ignore_patterns,
            cancel_event=self.cancel_event,
        )

    def build_graph(self, root: Optional[Path] = None) -> GraphBuildResult:
        files = self._scanner(root).scan()
        logger.info("Analyzing dependencies of %d file(s)", len(files))

        sources = read_sources(files, max_workers=self.scan_config.max_workers)
        records = self.file_analyzer.analyze_files(sources, max_workers=self.scan_config.max_workers)

        # Barrier: the builder needs every record before it starts.
        result = self.graph_builder.build(records)
        self.risk_scorer.score_all(result.records)
        logger.info("Dependency analysis complete: %d file(s)", len(result.records))
        return result

    def analyze_project(self, root: Optional[Path] = None) -> Dict[str, AnalysisRecord]:
        return self.build_graph(root).records

    def analyze_records(self, sources: Dict[str, str]) -> Dict[str, AnalysisRecord]:
        """Analyze in-memory sources keyed by path, without touching disk."""
        records = self.file_analyzer.analyze_files(sources, max_workers=self.scan_config.max_workers)
        self.graph_builder.build(records)
        self.risk_scorer.score_all(records)
        return records

    def analyze_file(self, file_path: Path) -> Optional[AnalysisRecord]:
        """Import/export analysis of one file, without graph edges."""
        try:
            text = file_path.read_text(encoding="utf-8", errors="ignore")
        except OSError as exc:
            logger.error("Failed to analyze %s: %s", file_path, exc)
            return None
        return self.file_analyzer.analyze(file_path.as_posix(), text)

    @staticmethod
    def predict_impact(
        records: Dict[str, AnalysisRecord],
        target: str,
        change_kind: str,
    ) -> List[ImpactRecord]:
        return ImpactPredictor(records).predict(target, change_kind)


def summarize(records: Dict[str, AnalysisRecord]) -> Dict[str, int]:
    """Counts used by the CLI summary panel and JSON output."""
    levels = [record.risk_level for record in records.values()]
    return {
        "total_files": len(records),
        "high_risk_files": sum(1 for level in levels if level in ("high", "critical")),
        "critical_files": levels.count("critical"),
        "edges": sum(len(record.dependencies) for record in records.values()),
    }
