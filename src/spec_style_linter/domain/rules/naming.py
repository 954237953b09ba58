"""Naming rules: how suites, contexts and examples are worded."""

from __future__ import annotations

import re

from spec_style_linter.domain.entities import NodeKind, NodeContext, Severity
from spec_style_linter.domain.rules import BaseRule, RuleOutcome

_SHOULD = re.compile(r"^\s*(?:it\s+)?should(?P<neg>n't|\s+not)?\b\s*(?P<rest>.*)$", re.IGNORECASE | re.DOTALL)
_IRREGULAR_VERBS = {"be": "is", "have": "has", "do": "does", "go": "goes"}


class NoShouldInExampleName(BaseRule):
    """Example descriptions use the third person present, never 'should'."""

    rule_id = "no-should"
    title = "Do not use 'should' in example descriptions"
    target_kinds = frozenset({NodeKind.EXAMPLE})
    default_severity = Severity.WARNING

    def check(self, ctx: NodeContext) -> RuleOutcome:
        match = _SHOULD.match(ctx.node.text)
        if match is None:
            return RuleOutcome.ok()
        suggestion = self.suggest(match.group("rest"), negated=bool(match.group("neg")))
        message = f"Example '{ctx.node.text}' starts with 'should'"
        if suggestion:
            message += f"; write '{suggestion}' instead"
        return RuleOutcome.fail(message)

    @staticmethod
    def suggest(rest: str, negated: bool = False) -> str:
        """Rewrite 'should <verb> ...' into the third person ('<verb>s ...')."""
        words = rest.split()
        if not words:
            return ""
        if negated:
            return " ".join(["does", "not"] + words)
        return " ".join([NoShouldInExampleName.third_person(words[0])] + words[1:])

    @staticmethod
    def third_person(verb: str) -> str:
        lower = verb.lower()
        if lower in _IRREGULAR_VERBS:
            return _IRREGULAR_VERBS[lower]
        if len(lower) > 1 and lower.endswith("y") and lower[-2] not in "aeiou":
            return verb[:-1] + "ies"
        if lower.endswith(("s", "sh", "ch", "x", "z", "o")):
            return verb + "es"
        return verb + "s"


class ContextWording(BaseRule):
    """
    Context descriptions read as a condition: 'when ...', 'with ...', 'without ...'.

    Best-effort grammar check: concatenated with the suite and example text the
    full name should read as a sentence ("Article when published returns true").
    """

    rule_id = "context-wording"
    title = "Start context descriptions with when/with/without"
    target_kinds = frozenset({NodeKind.CONTEXT})
    default_severity = Severity.WARNING
    heuristic = True

    def check(self, ctx: NodeContext) -> RuleOutcome:
        text = ctx.node.text.strip()
        first_word = re.split(r"[\s,:]+", text, maxsplit=1)[0].lower() if text else ""
        if first_word in self.config.context_prefixes:
            return RuleOutcome.ok()
        allowed = "', '".join(self.config.context_prefixes)
        return RuleOutcome.fail(
            f"Context '{text}' should start with one of '{allowed}' "
            f"so that '{ctx.node.full_name}' reads as a sentence"
        )


class ExampleLength(BaseRule):
    """Keep example descriptions short; split long ones into contexts."""

    rule_id = "example-length"
    title = "Keep example descriptions short"
    target_kinds = frozenset({NodeKind.EXAMPLE})
    default_severity = Severity.INFO

    def check(self, ctx: NodeContext) -> RuleOutcome:
        length = len(ctx.node.text)
        limit = self.config.max_example_length
        if length <= limit:
            return RuleOutcome.ok()
        return RuleOutcome.fail(
            f"Example description is {length} characters long (limit {limit}); move conditions into a context"
        )


class MethodDescription(BaseRule):
    """Describe methods as '#instance_method' or '.class_method'."""

    rule_id = "method-description"
    title = "Use '#' or '.' when describing methods"
    target_kinds = frozenset({NodeKind.SUITE})
    default_severity = Severity.WARNING
    heuristic = True

    _DESCRIBE_KEYWORDS = frozenset({"describe", "xdescribe", "fdescribe", "RSpec.describe"})
    _METHOD_LIKE = re.compile(r"^[a-z_][a-z0-9_]*(?:[?!=]|_[a-z0-9_]+|\(.*\))$")

    def check(self, ctx: NodeContext) -> RuleOutcome:
        node = ctx.node
        if node.keyword not in self._DESCRIBE_KEYWORDS:
            return RuleOutcome.ok()
        if not self._METHOD_LIKE.match(node.text):
            return RuleOutcome.ok()
        name = node.text.split("(", 1)[0]
        return RuleOutcome.fail(
            f"'{node.text}' looks like a method; describe it as '#{name}' (instance) or '.{name}' (class)"
        )
