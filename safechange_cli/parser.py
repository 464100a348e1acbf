"""Import/export extraction for JavaScript-family source files.

The default strategy is line-oriented pattern matching, not a parser.
Recognised per (stripped) line:

- ``import <bindings> from '<specifier>'`` where bindings are ``{ a, b }``,
  ``* as ns`` or a default identifier
- ``require('<specifier>')``
- ``export [async] <const|let|var|function|class|interface|type> <name>``
- ``export default <name>`` (also ``export default function|class <name>``)

Known unhandled shapes: multi-line import statements, ``export * from``,
dynamic ``import()`` and ``export { a, b }`` lists.  An AST-backed
extractor can replace :class:`TextualHeuristicExtractor` by implementing
:class:`Extractor`; nothing downstream depends on how records are filled.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Mapping, Optional

from . import config
from .models import (
    AnalysisRecord,
    ExportExtraction,
    ExportSymbol,
    ImportEdge,
    ImportExtraction,
)

logger = logging.getLogger(__name__)

ES6_IMPORT_RE = re.compile(
    r"""^import\s+(?:\{[^}]*\}|\*\s+as\s+\w+|\w+)\s+from\s+['"]([^'"]+)['"]"""
)
REQUIRE_RE = re.compile(r"""require\(['"]([^'"]+)['"]\)""")
NAMED_IMPORT_RE = re.compile(r"import\s+\{([^}]+)\}\s+from")
DEFAULT_IMPORT_RE = re.compile(r"import\s+(\w+)\s+from")
NAMESPACE_IMPORT_RE = re.compile(r"import\s+\*\s+as\s+(\w+)\s+from")

NAMED_EXPORT_RE = re.compile(
    r"^export\s+(?:async\s+)?(?:const|let|var|function|class|interface|type)\s+(\w+)"
)
DEFAULT_EXPORT_RE = re.compile(
    r"^export\s+default\s+(?:(?:async\s+)?function\*?(?=[\s(])\s*|class\s+)?(\w+)?"
)

# Priority order matters: the first keyword found decides the kind.
EXPORT_KIND_PRIORITY = ("function", "class", "interface", "type", "const", "let", "var")
_KIND_RES = [(kind, re.compile(rf"\b{kind}\b")) for kind in EXPORT_KIND_PRIORITY]


def classify_specifier(specifier: str) -> str:
    """Return ``relative``, ``absolute`` or ``package`` for an import specifier."""
    if specifier.startswith("."):
        return "relative"
    if specifier.startswith("/"):
        return "absolute"
    return "package"


def infer_export_kind(line: str) -> str:
    for kind, pattern in _KIND_RES:
        if pattern.search(line):
            return kind
    return "var"


def extract_imported_symbols(line: str) -> List[str]:
    """Identifiers bound by an ES6 import line, in source order."""
    items: List[str] = []

    named = NAMED_IMPORT_RE.search(line)
    if named:
        items.extend(item.strip() for item in named.group(1).split(",") if item.strip())

    default = DEFAULT_IMPORT_RE.search(line)
    if default and "{" not in line:
        items.append(default.group(1))

    namespace = NAMESPACE_IMPORT_RE.search(line)
    if namespace:
        items.append(namespace.group(1))

    return items


# ===================================================================
# Extractor strategy
# ===================================================================

class Extractor(ABC):
    """Strategy that pulls import edges and export symbols out of source text."""

    @abstractmethod
    def extract_imports(self, path: str, text: str) -> ImportExtraction:
        ...

    @abstractmethod
    def extract_exports(self, path: str, text: str) -> ExportExtraction:
        ...


class TextualHeuristicExtractor(Extractor):
    """Line-based regular-expression extractor (see module docstring)."""

    def extract_imports(self, path: str, text: str) -> ImportExtraction:
        imports: List[ImportEdge] = []
        for index, raw_line in enumerate(text.split("\n")):
            line = raw_line.strip()

            es6 = ES6_IMPORT_RE.match(line)
            if es6:
                specifier = es6.group(1)
                imports.append(ImportEdge(
                    from_path=path,
                    raw_specifier=specifier,
                    kind=classify_specifier(specifier),
                    line_number=index + 1,
                    imported_symbols=extract_imported_symbols(line),
                ))

            required = REQUIRE_RE.search(line)
            if required:
                specifier = required.group(1)
                imports.append(ImportEdge(
                    from_path=path,
                    raw_specifier=specifier,
                    kind=classify_specifier(specifier),
                    line_number=index + 1,
                ))

        return ImportExtraction(path=path, imports=imports)

    def extract_exports(self, path: str, text: str) -> ExportExtraction:
        exports: List[ExportSymbol] = []
        for index, raw_line in enumerate(text.split("\n")):
            line = raw_line.strip()

            named = NAMED_EXPORT_RE.match(line)
            if named:
                exports.append(ExportSymbol(
                    name=named.group(1),
                    kind=infer_export_kind(line),
                    line_number=index + 1,
                ))
                continue

            default = DEFAULT_EXPORT_RE.match(line)
            if default:
                exports.append(ExportSymbol(
                    name=default.group(1) or "default",
                    kind=infer_export_kind(line),
                    line_number=index + 1,
                    is_default=True,
                ))

        return ExportExtraction(path=path, exports=exports)


# ===================================================================
# File analysis
# ===================================================================

class FileAnalyzer:
    """Turns (path, text) pairs into analysis record shells.

    Graph edges, risk level and change impacts are left empty; they are
    filled by later passes once every file has been analyzed.
    """

    def __init__(self, extractor: Optional[Extractor] = None) -> None:
        self.extractor = extractor or TextualHeuristicExtractor()

    def analyze(self, path: str, text: str) -> AnalysisRecord:
        imports = self.extractor.extract_imports(path, text)
        exports = self.extractor.extract_exports(path, text)
        return AnalysisRecord(path=path, imports=imports.imports, exports=exports.exports)

    def analyze_files(
        self,
        sources: Mapping[str, str],
        max_workers: int = config.DEFAULT_MAX_WORKERS,
    ) -> Dict[str, AnalysisRecord]:
        """Analyze many files in parallel and merge them into one map.

        The map keeps the iteration order of *sources*.  A file whose
        analysis raises is logged and left out.
        """
        records: Dict[str, AnalysisRecord] = {}
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
            futures = [(path, pool.submit(self.analyze, path, text)) for path, text in sources.items()]
            for path, future in futures:
                try:
                    records[path] = future.result()
                except Exception as exc:
                    logger.error("Failed to analyze %s: %s", path, exc)
        return records
