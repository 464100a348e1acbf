"""Tests for import/export extraction."""

import pytest

from safechange_cli.parser import (
    FileAnalyzer,
    TextualHeuristicExtractor,
    classify_specifier,
    extract_imported_symbols,
    infer_export_kind,
)


@pytest.fixture
def extractor() -> TextualHeuristicExtractor:
    return TextualHeuristicExtractor()


@pytest.mark.parametrize(
    "specifier, kind",
    [
        ("./helpers", "relative"),
        ("../lib/utils", "relative"),
        ("/abs/path", "absolute"),
        ("react", "package"),
        ("@scope/pkg", "package"),
    ],
)
def test_classify_specifier(specifier: str, kind: str):
    assert classify_specifier(specifier) == kind


def test_extract_imports(extractor, sample_ts_code: str):
    """ES6 imports and require calls both become edges, in line order."""
    result = extractor.extract_imports("src/app.ts", sample_ts_code)

    specs = [(e.raw_specifier, e.kind, e.line_number) for e in result.imports]
    assert specs == [
        ("./helpers", "relative", 1),
        ("react", "package", 2),
        ("path", "package", 3),
        ("fs", "package", 4),
    ]
    assert all(edge.from_path == "src/app.ts" for edge in result.imports)
    assert all(edge.resolved_path is None for edge in result.imports)


def test_imported_symbols(extractor, sample_ts_code: str):
    imports = extractor.extract_imports("src/app.ts", sample_ts_code).imports

    assert imports[0].imported_symbols == ["a", "b as c"]
    assert imports[1].imported_symbols == ["React"]
    assert imports[2].imported_symbols == ["path"]
    # require() edges carry no symbols
    assert imports[3].imported_symbols == []


def test_extract_imported_symbols_skips_empty_items():
    assert extract_imported_symbols("import { a, , b, } from './x'") == ["a", "b"]


def test_indented_import_is_recognised(extractor):
    text = "<script>\n  import { x } from './x'\n</script>\n"
    imports = extractor.extract_imports("src/App.svelte", text).imports
    assert len(imports) == 1
    assert imports[0].line_number == 2


def test_extract_exports(extractor, sample_ts_code: str):
    """Every export shape yields a symbol with the right kind."""
    exports = extractor.extract_exports("src/app.ts", sample_ts_code).exports

    by_name = {(e.name, e.is_default): e.kind for e in exports}
    assert by_name[("LIMIT", False)] == "const"
    assert by_name[("counter", False)] == "let"
    assert by_name[("legacy", False)] == "var"
    assert by_name[("compute", False)] == "function"
    assert by_name[("load", False)] == "function"
    assert by_name[("Service", False)] == "class"
    assert by_name[("Options", False)] == "interface"
    assert by_name[("Mode", False)] == "type"
    assert ("Service", True) in by_name
    assert len(exports) == 9


def test_default_export_forms(extractor):
    text = (
        "export default function Dashboard() {}\n"
        "export default class Store {}\n"
        "export default function () {}\n"
        "export default functionName\n"
    )
    exports = extractor.extract_exports("src/x.ts", text).exports

    assert [(e.name, e.kind) for e in exports] == [
        ("Dashboard", "function"),
        ("Store", "class"),
        ("default", "function"),
        ("functionName", "var"),
    ]
    assert all(e.is_default for e in exports)


def test_infer_export_kind_uses_word_boundaries():
    # "typeof" and "classic" must not be read as type/class keywords
    assert infer_export_kind("export const classic = typeof x") == "const"
    assert infer_export_kind("export default foo") == "var"


def test_unhandled_shapes_produce_nothing(extractor):
    text = (
        "export * from './format'\n"
        "export { a, b }\n"
        "const lazy = import('./lazy')\n"
    )
    assert extractor.extract_imports("src/x.ts", text).imports == []
    assert extractor.extract_exports("src/x.ts", text).exports == []


def test_file_analyzer_builds_record_shell(sample_ts_code: str):
    record = FileAnalyzer().analyze("src/app.ts", sample_ts_code)

    assert record.path == "src/app.ts"
    assert len(record.imports) == 4
    assert len(record.exports) == 9
    assert record.dependencies == []
    assert record.dependents == []
    assert record.risk_level == "low"


def test_analyze_files_keeps_input_order():
    sources = {f"src/f{i}.ts": f"export const v{i} = {i}\n" for i in range(20)}
    records = FileAnalyzer().analyze_files(sources, max_workers=4)

    assert list(records) == list(sources)
    assert records["src/f7.ts"].exports[0].name == "v7"


def test_analyze_files_drops_failing_file():
    class Exploding(TextualHeuristicExtractor):
        def extract_exports(self, path, text):
            if path == "bad.ts":
                raise RuntimeError("boom")
            return super().extract_exports(path, text)

    records = FileAnalyzer(Exploding()).analyze_files(
        {"good.ts": "export const a = 1", "bad.ts": "export const b = 2"}
    )
    assert list(records) == ["good.ts"]
