"""ValidationEngine for checking proposed file content before a change."""

from __future__ import annotations

import logging
import re
from typing import List, Tuple

from .models import ValidationResult

logger = logging.getLogger(__name__)

LOCALHOST_RE = re.compile(r"\blocalhost\b|\b\d{1,3}(?:\.\d{1,3}){3}\b")
AWAIT_RE = re.compile(r"\bawait\b")
TRY_CATCH_RE = re.compile(r"\btry\b|\bcatch\b")
TYPE_DEF_RE = re.compile(r"\binterface\b|\btype\b")

# Strings and comments are removed before delimiter counting.
_STRIP_RE = re.compile(
    r"//[^\n]*|/\*.*?\*/|`(?:\\.|[^`\\])*`|'(?:\\.|[^'\\\n])*'|\"(?:\\.|[^\"\\\n])*\"",
    re.DOTALL,
)
DELIMITERS: List[Tuple[str, str, str]] = [
    ("{", "}", "braces"),
    ("[", "]", "brackets"),
    ("(", ")", "parentheses"),
]

RULE_SETS = {
    "global": [
        "Check every call site when changing a shared utility function",
        "Check client code when changing an API endpoint",
        "Plan a migration when changing a database schema",
        "Check every implementation when changing a type definition",
    ],
    "page": [
        "Check parent and child components when changing a page component",
        "Check navigation links when changing a route",
        "Check related components when changing state management",
        "Check theme consistency when changing styles",
    ],
    "api": [
        "Check client compatibility when changing the response format",
        "Check security impact when changing auth or permission logic",
        "Check performance impact when changing database queries",
        "Check client error handling when changing error responses",
    ],
}

CHANGE_TYPE_RECOMMENDATIONS = {
    "delete": ["Remove all references before deleting", "Prepare a replacement"],
    "rename": ["Rename in stages and keep an alias meanwhile", "Update all references"],
    "move": ["Update import paths in every dependent", "Keep a re-export at the old path meanwhile"],
    "modify": ["Keep backward compatibility", "Version the API if its contract changes"],
    "add": ["Add tests alongside the new file"],
}


class ValidationEngine:
    """Stateless rule checks for a proposed change.

    Rules are chosen by path: shared utilities (``/utils/``, ``/lib/``),
    pages and routes (``/routes/``, ``/pages/``) and API handlers
    (``/api/``), followed by rules that apply to every file.  Delimiter
    counts ignore strings and comments but not regex literals, so an
    imbalance is only a warning.  The one error is empty content for a
    modify or add.  :meth:`validate_change` never raises.
    """

    def validate_change(self, file_path: str, change_type: str, content: str) -> ValidationResult:
        result = ValidationResult()
        try:
            if "/utils/" in file_path or "/lib/" in file_path:
                self._validate_global_file(content, result)
            if "/routes/" in file_path or "/pages/" in file_path:
                self._validate_page_file(file_path, content, result)
            if "/api/" in file_path:
                self._validate_api_file(content, result)
            self._validate_general_rules(change_type, content, result)
        except Exception as exc:
            logger.error("Validation of %s aborted: %s", file_path, exc)
            result.errors.append(f"Validation could not complete: {exc}")

        result.recommendations.extend(CHANGE_TYPE_RECOMMENDATIONS.get(change_type, []))
        result.is_valid = not result.errors
        return result

    @staticmethod
    def rules_for(file_path: str) -> List[str]:
        """Checklist entries that apply to *file_path*."""
        rules: List[str] = []
        if "/utils/" in file_path or "/lib/" in file_path:
            rules.extend(RULE_SETS["global"])
        if "/routes/" in file_path or "/pages/" in file_path:
            rules.extend(RULE_SETS["page"])
        if "/api/" in file_path:
            rules.extend(RULE_SETS["api"])
        return rules

    def _validate_global_file(self, content: str, result: ValidationResult) -> None:
        if "export" in content and "export default" not in content:
            result.warnings.append("Shared utility exports changed: check every call site")
        if TYPE_DEF_RE.search(content):
            result.warnings.append("Type definitions changed: check every implementation")

    def _validate_page_file(self, file_path: str, content: str, result: ValidationResult) -> None:
        if "export let" in content:
            result.warnings.append("Component props changed: check parent components")
        if "/routes/" in file_path:
            result.warnings.append("Route changed: check navigation links")

    def _validate_api_file(self, content: str, result: ValidationResult) -> None:
        if "json(" in content:
            result.warnings.append("API response format changed: check client compatibility")
        if "auth" in content or "permission" in content:
            result.warnings.append("Auth or permission logic changed: check security impact")

    def _validate_general_rules(self, change_type: str, content: str, result: ValidationResult) -> None:
        if change_type in ("modify", "add") and not content.strip():
            result.errors.append(f"Empty content for a {change_type} change")

        if LOCALHOST_RE.search(content):
            result.warnings.append("Hardcoded host or IP address: use environment configuration")

        if AWAIT_RE.search(content) and not TRY_CATCH_RE.search(content):
            result.warnings.append("Async operations without error handling: add try/catch")

        result.warnings.extend(self.check_delimiters(content))

    @staticmethod
    def check_delimiters(content: str) -> List[str]:
        """Report unbalanced braces, brackets and parentheses."""
        code = _STRIP_RE.sub("", content)
        problems = []
        for opener, closer, label in DELIMITERS:
            balance = code.count(opener) - code.count(closer)
            if balance:
                side = "unclosed" if balance > 0 else "unmatched closing"
                problems.append(f"{abs(balance)} {side} {label}")
        return problems
