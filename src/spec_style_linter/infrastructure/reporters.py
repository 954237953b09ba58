"""Report renderers: plain text for terminals, JSON for CI, and the description outline."""

import json
from collections import Counter
from itertools import groupby
from typing import TYPE_CHECKING, Any

from spec_style_linter.domain.constants import EXIT_OK, EXIT_VIOLATIONS
from spec_style_linter.domain.entities import Severity
from spec_style_linter.domain.protocols import ReporterProtocol

if TYPE_CHECKING:
    from spec_style_linter.domain.entities import (
        DescriptionNode,
        DescriptionTree,
        FileFailure,
        LintReport,
    )


def exit_status(report: "LintReport") -> int:
    """0 when clean; 1 when there are violations or unparseable files."""
    return EXIT_VIOLATIONS if report.has_failures() else EXIT_OK


def summary_counts(report: "LintReport") -> dict[str, int]:
    by_severity = Counter(v.severity for v in report.violations)
    return {
        "files_checked": report.files_checked,
        "files_with_violations": len(report.files_with_violations()),
        "violations": len(report.violations),
        "errors": by_severity[Severity.ERROR],
        "warnings": by_severity[Severity.WARNING],
        "infos": by_severity[Severity.INFO],
        "unparseable": len(report.unparseable),
        "rule_errors": len(report.rule_errors),
    }


class TextReporter(ReporterProtocol):
    """file:line: [rule-id] message, grouped by file, followed by a summary line."""

    def render(self, report: "LintReport") -> str:
        blocks: list[str] = []
        for _path, violations in groupby(report.violations, key=lambda v: v.location.path):
            blocks.append(
                "\n".join(f"{v.location}: [{v.rule_id}] {v.message}" for v in violations)
            )
        if report.unparseable:
            blocks.append("\n".join(self._failure_line(f) for f in report.unparseable))
        if report.rule_errors:
            blocks.append(
                "\n".join(
                    f"{e.location}: [rule-error] {e.rule_id} raised {e.error}" for e in report.rule_errors
                )
            )
        blocks.append(self._summary(report))
        return "\n\n".join(blocks)

    @staticmethod
    def _failure_line(failure: "FileFailure") -> str:
        where = f"line {failure.line}: " if failure.line is not None else ""
        return f"{failure.path}: [{failure.kind}] {where}{failure.error}"

    @staticmethod
    def _summary(report: "LintReport") -> str:
        counts = summary_counts(report)
        files = f"{counts['files_checked']} file{'s' if counts['files_checked'] != 1 else ''}"
        if counts["violations"]:
            line = (
                f"Found {counts['violations']} violation{'s' if counts['violations'] != 1 else ''} "
                f"({counts['errors']} error, {counts['warnings']} warning, {counts['infos']} info) "
                f"in {counts['files_with_violations']} of {files}."
            )
        else:
            line = f"No violations in {files}."
        if counts["unparseable"]:
            line += f" {counts['unparseable']} file(s) could not be checked."
        if counts["rule_errors"]:
            line += f" {counts['rule_errors']} rule error(s)."
        return line


class JsonReporter(ReporterProtocol):
    """Machine-readable variant for CI."""

    def __init__(self, indent: int = 2) -> None:
        self._indent = indent

    def render(self, report: "LintReport") -> str:
        payload: dict[str, Any] = {
            "files_checked": report.files_checked,
            "violations": [v.to_dict() for v in report.violations],
            "unparseable": [f.to_dict() for f in report.unparseable],
            "rule_errors": [e.to_dict() for e in report.rule_errors],
            "summary": summary_counts(report),
        }
        return json.dumps(payload, indent=self._indent)


class OutlineRenderer:
    """Indented description outline, like a documentation-format dry run."""

    def render(self, trees: "list[DescriptionTree]", failures: "tuple[FileFailure, ...]" = ()) -> str:
        blocks: list[str] = []
        for tree in trees:
            lines = [tree.path]
            for ctx in tree.walk():
                lines.append(self._node_line(ctx.node))
            blocks.append("\n".join(lines))
        for failure in failures:
            blocks.append(TextReporter._failure_line(failure))
        return "\n\n".join(blocks)

    @staticmethod
    def _node_line(node: "DescriptionNode") -> str:
        indent = "  " * (node.depth + 1)
        text = node.text or "(no description)"
        notes = [node.keyword, f"line {node.location.line}"]
        if not node.has_block:
            notes.append("pending")
        if node.metadata:
            notes.append(" ".join(f":{tag}" for tag in node.metadata))
        if node.generated_by is not None:
            notes.append(f"generated by {node.generated_by.construct}")
        return f"{indent}{text}  ({', '.join(notes)})"
