from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .spans import Span


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Phase(str, Enum):
    """Build phase whose source text a report's spans point into."""

    LEXER = "lexer"
    GRAMMAR = "grammar"


class ReportKind(str, Enum):
    LEX_ERROR = "lex-error"
    GRAMMAR_ERROR = "grammar-error"
    WARNING = "warning"
    MISSING_TOKEN = "missing-token"
    REDUCE_REDUCE = "reduce-reduce"
    SHIFT_REDUCE = "shift-reduce"


@dataclass(frozen=True, slots=True)
class Label:
    span: Span | None
    text: str


@dataclass(frozen=True, slots=True)
class DiagnosticReport:
    """One renderer-agnostic diagnostic.

    The first label is the primary location. `summary` lines are only shown by
    the plain-text renderer; `note` is shown by every renderer.
    """

    severity: Severity
    message: str
    labels: tuple[Label, ...] = ()
    note: str | None = None
    summary: tuple[str, ...] = ()
    kind: ReportKind = ReportKind.GRAMMAR_ERROR
    phase: Phase = Phase.GRAMMAR

    @property
    def primary(self) -> Label | None:
        return self.labels[0] if self.labels else None
