from __future__ import annotations

from dataclasses import dataclass

from .spans import Span


@dataclass(slots=True)
class LexBuildError(Exception):
    span: Span
    message: str
    hint: str | None = None

    def __str__(self) -> str:
        base = f"{self.span.format()}: {self.message}"
        if self.hint:
            return f"{base}\nhint: {self.hint}"
        return base


@dataclass(slots=True)
class GrammarBuildError(Exception):
    span: Span
    message: str
    hint: str | None = None

    def __str__(self) -> str:
        base = f"{self.span.format()}: {self.message}"
        if self.hint:
            return f"{base}\nhint: {self.hint}"
        return base


@dataclass(frozen=True, slots=True)
class GrammarWarning:
    span: Span
    message: str


@dataclass(slots=True)
class DiagnosticsFailed(Exception):
    """Every problem found in one build, rendered into a single body."""

    body: str

    def __str__(self) -> str:
        return self.body


class AggregatorStateError(RuntimeError):
    pass
