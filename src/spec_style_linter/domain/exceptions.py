"""Domain exceptions for specstyle."""

from typing import Optional


class SpecStyleError(Exception):
    """Base class for every error raised by specstyle."""


class ParseError(SpecStyleError):
    """Source could not be turned into a description tree (unbalanced or unknown blocks)."""

    def __init__(self, message: str, line: Optional[int] = None) -> None:
        self.message = message
        self.line = line
        if line is not None:
            super().__init__(f"line {line}: {message}")
        else:
            super().__init__(message)


class ConfigurationError(SpecStyleError):
    """Invalid configuration. Fatal: raised before any file is processed."""


class RuleEvaluationError(SpecStyleError):
    """A rule raised while checking a node."""

    def __init__(self, rule_id: str, cause: BaseException) -> None:
        self.rule_id = rule_id
        self.cause = cause
        super().__init__(f"{rule_id}: {type(cause).__name__}: {cause}")
