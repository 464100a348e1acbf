"""Dependency graph construction over a complete set of analysis records."""

from __future__ import annotations

import logging
import posixpath
from typing import Dict, List, Mapping, Optional, Sequence

from . import config
from .models import AnalysisRecord, GraphBuildResult, ImportEdge

logger = logging.getLogger(__name__)


def resolve_import_path(
    from_path: str,
    specifier: str,
    known_paths: Mapping[str, object],
    extensions: Sequence[str] = config.SUPPORTED_EXTENSIONS,
) -> Optional[str]:
    """Resolve a relative *specifier* imported by *from_path* to a known path key.

    Candidates are tried in order: the joined path itself, the path plus
    each extension, then ``<path>/index`` plus each extension.  Returns
    ``None`` when nothing matches.
    """
    base = posixpath.dirname(from_path)
    joined = posixpath.normpath(posixpath.join(base, specifier))

    candidates = [joined]
    candidates.extend(joined + ext for ext in extensions)
    candidates.extend(posixpath.join(joined, "index") + ext for ext in extensions)

    for candidate in candidates:
        if candidate in known_paths:
            return candidate
    return None


class DependencyGraphBuilder:
    """Fill ``dependencies`` and ``dependents`` for every record.

    Pass 1 resolves every relative import into a dependency edge.  Pass 2
    inverts the relation into dependents; it runs only after every
    dependency list is complete, so no record sees a partial graph.
    Both lists are rebuilt from scratch on each call.
    """

    def __init__(self, extensions: Optional[Sequence[str]] = None) -> None:
        self.extensions = list(extensions if extensions is not None else config.SUPPORTED_EXTENSIONS)

    def build(self, records: Dict[str, AnalysisRecord]) -> GraphBuildResult:
        unresolved: List[ImportEdge] = []
        edge_count = 0

        for record in records.values():
            record.dependencies = []
            record.dependents = []

        # Pass 1: dependencies
        for path, record in records.items():
            seen = set()
            for edge in record.imports:
                if edge.kind != "relative":
                    continue
                target = resolve_import_path(path, edge.raw_specifier, records, self.extensions)
                edge.resolved_path = target
                if target is None:
                    unresolved.append(edge)
                    continue
                if target == path or target in seen:
                    continue
                seen.add(target)
                record.dependencies.append(target)
                edge_count += 1

        # Pass 2: dependents (inverse of the completed dependency lists)
        for path, record in records.items():
            for target in record.dependencies:
                records[target].dependents.append(path)

        if unresolved:
            logger.debug("%d relative import(s) did not resolve to analyzed files", len(unresolved))
        logger.info("Built dependency graph: %d file(s), %d edge(s)", len(records), edge_count)
        return GraphBuildResult(records=records, edge_count=edge_count, unresolved=unresolved)


def check_symmetry(records: Mapping[str, AnalysisRecord]) -> List[str]:
    """Return human-readable violations of dependents/dependencies symmetry."""
    problems: List[str] = []
    for path, record in records.items():
        for dep in record.dependencies:
            if dep not in records or path not in records[dep].dependents:
                problems.append(f"{path} -> {dep} missing from dependents")
        for dependent in record.dependents:
            if dependent not in records or path not in records[dependent].dependencies:
                problems.append(f"{dependent} listed as dependent of {path} without dependency")
    return problems
