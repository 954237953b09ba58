"""Use Case: Check Specs - discover spec files, parse them and run the rule engine."""

from typing import TYPE_CHECKING, Optional, Sequence

from spec_style_linter.domain.entities import (
    DescriptionTree,
    FileFailure,
    LintReport,
    RuleError,
    Violation,
)
from spec_style_linter.domain.exceptions import ParseError

if TYPE_CHECKING:
    from spec_style_linter.domain.config import LinterConfig
    from spec_style_linter.domain.protocols import (
        FileSystemProtocol,
        SpecParserProtocol,
        TelemetryPort,
    )
    from spec_style_linter.use_cases.rule_engine import RuleEngine


class CheckSpecsUseCase:
    """
    The batch pipeline: discovery -> parse -> evaluate -> LintReport.

    Files are processed one at a time in sorted discovery order. A file that
    cannot be read or parsed becomes a FileFailure and the run goes on.
    """

    def __init__(
        self,
        config: "LinterConfig",
        filesystem: "FileSystemProtocol",
        parser: "SpecParserProtocol",
        engine: "RuleEngine",
        telemetry: "TelemetryPort",
    ) -> None:
        self.config = config
        self.filesystem = filesystem
        self.parser = parser
        self.engine = engine
        self.telemetry = telemetry

    def discover(self, paths: Sequence[str]) -> tuple[list[str], list[FileFailure]]:
        """Expand paths into spec files; paths that do not exist are failures."""
        files: list[str] = []
        missing: list[FileFailure] = []
        seen: set[str] = set()
        for path in paths:
            if not (self.filesystem.is_file(path) or self.filesystem.is_directory(path)):
                missing.append(FileFailure(path, "no such file or directory", kind="read-error"))
                continue
            for found in self.filesystem.collect_files(path, self.config.include, self.config.exclude):
                if found not in seen:
                    seen.add(found)
                    files.append(found)
        return files, missing

    def parse_file(self, path: str) -> tuple[Optional[DescriptionTree], Optional[FileFailure]]:
        """Read and parse one file. Exactly one of the two results is set."""
        try:
            source = self.filesystem.read_text(path)
        except UnicodeDecodeError as exc:
            self.telemetry.warning(f"{path}: not valid UTF-8 ({exc.reason})")
            return None, FileFailure(path, f"not valid UTF-8: {exc.reason}", kind="read-error")
        except OSError as exc:
            self.telemetry.warning(f"{path}: cannot read ({exc.strerror or exc})")
            return None, FileFailure(path, f"cannot read: {exc.strerror or exc}", kind="read-error")
        try:
            tree = self.parser.parse(source, path)
        except ParseError as exc:
            self.telemetry.warning(f"{path}: {exc}")
            return None, FileFailure(path, exc.message, line=exc.line)
        self.telemetry.debug(f"{path}: {tree.node_count()} description node(s)")
        return tree, None

    def execute(self, paths: Sequence[str]) -> LintReport:
        files, failures = self.discover(paths)
        self.telemetry.step(f"Checking {len(files)} spec file(s)")
        violations: list[Violation] = []
        rule_errors: list[RuleError] = []
        for path in files:
            tree, failure = self.parse_file(path)
            if tree is None:
                if failure is not None:
                    failures.append(failure)
                continue
            result = self.engine.evaluate(tree)
            violations.extend(result.violations)
            rule_errors.extend(result.rule_errors)
        return LintReport(
            files_checked=len(files),
            violations=tuple(sorted(violations, key=Violation.sort_key)),
            unparseable=tuple(failures),
            rule_errors=tuple(rule_errors),
        )

    def outline(self, paths: Sequence[str]) -> tuple[list[DescriptionTree], list[FileFailure]]:
        """Parse without evaluating rules (for the tree command)."""
        files, failures = self.discover(paths)
        trees: list[DescriptionTree] = []
        for path in files:
            tree, failure = self.parse_file(path)
            if failure is not None:
                failures.append(failure)
            elif tree is not None:
                trees.append(tree)
        return trees, failures
