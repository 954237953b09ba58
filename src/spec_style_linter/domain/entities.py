"""Domain entities: the description tree, violations and the lint report."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional


class NodeKind(Enum):
    """Closed set of description node kinds."""

    SUITE = "suite"
    CONTEXT = "context"
    EXAMPLE = "example"


class Severity(Enum):
    """Severity attached to a violation."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Parse a severity name (case-insensitive). Raises ValueError on unknown names."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            allowed = "|".join(s.value for s in cls)
            raise ValueError(f"unknown severity '{value}' (expected {allowed})") from None


@dataclass(frozen=True)
class SourceLocation:
    """A 1-based line in a file."""

    path: str
    line: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}"


@dataclass(frozen=True)
class LoopSite:
    """A loop construct that generates description nodes."""

    construct: str
    location: SourceLocation


@dataclass(frozen=True)
class DescriptionNode:
    """
    One describe/context/it block.

    Children are owned by their parent and kept in source order. full_name is
    always the parent's full_name joined with this node's text.
    """

    kind: NodeKind
    keyword: str
    text: str
    full_name: str
    depth: int
    location: SourceLocation
    children: tuple["DescriptionNode", ...] = ()
    metadata: tuple[str, ...] = ()
    expectation_lines: tuple[int, ...] = ()
    generated_by: Optional[LoopSite] = None
    has_block: bool = True

    _TIGHT_PREFIXES = ("#", ".", "::")

    @staticmethod
    def join_names(parent_name: str, text: str) -> str:
        """Join a parent full name and a child text the way RSpec builds full descriptions."""
        if not parent_name:
            return text
        if not text:
            return parent_name
        if text.startswith(DescriptionNode._TIGHT_PREFIXES):
            return f"{parent_name}{text}"
        return f"{parent_name} {text}"

    @property
    def is_group(self) -> bool:
        return self.kind is not NodeKind.EXAMPLE

    def signature(self) -> tuple[Any, ...]:
        """Structural identity used to compare trees independently of line numbers."""
        return (
            self.kind,
            self.text,
            self.full_name,
            self.depth,
            tuple(child.signature() for child in self.children),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "keyword": self.keyword,
            "text": self.text,
            "full_name": self.full_name,
            "depth": self.depth,
            "line": self.location.line,
            "metadata": list(self.metadata),
            "expectations": len(self.expectation_lines),
            "generated_by": (
                {"construct": self.generated_by.construct, "line": self.generated_by.location.line}
                if self.generated_by
                else None
            ),
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True)
class NodeContext:
    """A node seen during a pre-order walk: ancestors, siblings and the tree path."""

    node: DescriptionNode
    ancestors: tuple[DescriptionNode, ...]
    siblings: tuple[DescriptionNode, ...]
    path: str = ""

    @property
    def parent(self) -> Optional[DescriptionNode]:
        return self.ancestors[-1] if self.ancestors else None


@dataclass(frozen=True)
class DescriptionTree:
    """The description forest of one file."""

    path: str
    roots: tuple[DescriptionNode, ...] = ()

    def walk(self) -> Iterator[NodeContext]:
        """Yield every node once, pre-order, children in source order."""
        stack: list[tuple[DescriptionNode, tuple[DescriptionNode, ...], tuple[DescriptionNode, ...]]] = [
            (root, (), self.roots) for root in reversed(self.roots)
        ]
        while stack:
            node, ancestors, siblings = stack.pop()
            yield NodeContext(node=node, ancestors=ancestors, siblings=siblings, path=self.path)
            chain = ancestors + (node,)
            for child in reversed(node.children):
                stack.append((child, chain, node.children))

    def node_count(self) -> int:
        return sum(1 for _ in self.walk())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"path": self.path, "roots": [root.to_dict() for root in self.roots]}

    def to_source(self) -> str:
        """Re-serialize the tree as canonical spec source. Bodies are not preserved."""
        lines: list[str] = []
        for root in self.roots:
            self._emit(root, lines)
        return "\n".join(lines) + ("\n" if lines else "")

    @staticmethod
    def _quote(text: str) -> str:
        escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("#{", "\\#{")
        return f'"{escaped}"'

    def _emit(self, node: DescriptionNode, lines: list[str]) -> None:
        indent = "  " * node.depth
        head = f"{indent}{node.keyword} {self._quote(node.text)}"
        for tag in node.metadata:
            head += f", :{tag}"
        if not node.has_block:
            lines.append(head)
            return
        lines.append(f"{head} do")
        for child in node.children:
            self._emit(child, lines)
        lines.append(f"{indent}end")


@dataclass(frozen=True)
class Violation:
    """A single deviation from a rule. The node is a non-owning back-reference."""

    rule_id: str
    severity: Severity
    message: str
    location: SourceLocation
    node: Optional[DescriptionNode] = field(default=None, compare=False, repr=False)

    def sort_key(self) -> tuple[str, int, str]:
        return (self.location.path, self.location.line, self.rule_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
            "path": self.location.path,
            "line": self.location.line,
            "description": self.node.full_name if self.node else None,
        }


@dataclass(frozen=True)
class RuleError:
    """A rule that raised on a node; the rule was skipped for that node."""

    rule_id: str
    location: SourceLocation
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "path": self.location.path,
            "line": self.location.line,
            "error": self.error,
        }


@dataclass(frozen=True)
class FileFailure:
    """A file that could not be read (read-error) or parsed (parse-error)."""

    path: str
    error: str
    line: Optional[int] = None
    kind: str = "parse-error"

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "line": self.line, "kind": self.kind, "error": self.error}


@dataclass(frozen=True)
class LintReport:
    """Result of a complete run across all files."""

    files_checked: int = 0
    violations: tuple[Violation, ...] = ()
    unparseable: tuple[FileFailure, ...] = ()
    rule_errors: tuple[RuleError, ...] = ()

    def has_failures(self) -> bool:
        """Violations or unparseable files make the run fail."""
        return bool(self.violations or self.unparseable)

    def files_with_violations(self) -> list[str]:
        return sorted({v.location.path for v in self.violations})
