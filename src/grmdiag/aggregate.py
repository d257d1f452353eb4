from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol

from .conflicts import Conflicts
from .describe import describe_conflicts
from .errors import (
    AggregatorStateError,
    DiagnosticsFailed,
    GrammarBuildError,
    GrammarWarning,
    LexBuildError,
)
from .grammar import GrammarIndex
from .render import PlainTextRenderer, Renderer, SourceMap
from .report import DiagnosticReport, Label, Phase, ReportKind, Severity
from .spans import Span


logger = logging.getLogger(__name__)

Entry = str | DiagnosticReport


class LexerPhaseSink(Protocol):
    """What the lexer compilation phase may report."""

    def record_source(self, phase: Phase, path: str, text: str) -> None: ...

    def record_lex_error(self, errors: Iterable[LexBuildError | str]) -> None: ...

    def record_warning(
        self, warnings: Iterable[GrammarWarning | str], *, phase: Phase = Phase.GRAMMAR
    ) -> None: ...


class GrammarPhaseSink(Protocol):
    """What the grammar compilation phase may report."""

    def record_source(self, phase: Phase, path: str, text: str) -> None: ...

    def record_grammar_error(self, errors: Iterable[GrammarBuildError | str]) -> None: ...

    def record_warning(
        self, warnings: Iterable[GrammarWarning | str], *, phase: Phase = Phase.GRAMMAR
    ) -> None: ...

    def record_missing_in_lexer(
        self, names: Iterable[str], grammar: GrammarIndex | None = None, *, as_warning: bool = False
    ) -> None: ...

    def record_missing_in_parser(
        self,
        names: Iterable[str],
        lexer_tokens: Mapping[str, Span] | None = None,
        *,
        as_warning: bool = True,
    ) -> None: ...

    def record_conflicts(self, conflicts: Conflicts, grammar: GrammarIndex) -> None: ...


class DiagnosticAggregator:
    """Collects every problem of one build and reports them once.

    One owner creates it, hands it to the lexer phase and then the grammar
    phase, and finally calls `finalize()`. After that, any further call raises
    AggregatorStateError.
    """

    def __init__(self, *, warnings_are_errors: bool = False, renderer: Renderer | None = None) -> None:
        self.warnings_are_errors = warnings_are_errors
        self.renderer: Renderer = renderer if renderer is not None else PlainTextRenderer()
        self.sources = SourceMap()
        self._errors: list[Entry] = []
        self._warnings: list[Entry] = []
        self._finalized = False

    @property
    def errors(self) -> tuple[Entry, ...]:
        return tuple(self._errors)

    @property
    def warnings(self) -> tuple[Entry, ...]:
        return tuple(self._warnings)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def has_errors(self) -> bool:
        return bool(self._errors)

    def _check_open(self) -> None:
        if self._finalized:
            raise AggregatorStateError("diagnostics were already finalized")

    def set_warnings_are_errors(self, flag: bool) -> None:
        self._check_open()
        self.warnings_are_errors = flag

    def record_source(self, phase: Phase, path: str, text: str) -> None:
        self._check_open()
        phase = Phase(phase)
        if phase in self.sources:
            raise AggregatorStateError(f"{phase.value} source already recorded")
        self.sources.add(phase, path, text)

    def record_lex_error(self, errors: Iterable[LexBuildError | str]) -> None:
        self._check_open()
        for e in errors:
            if isinstance(e, str):
                self._errors.append(f"Lex error: {e}")
                continue
            self._errors.append(
                DiagnosticReport(
                    severity=Severity.ERROR,
                    message=f"Lex error: {e.message}",
                    labels=(Label(e.span, e.hint or e.message),),
                    kind=ReportKind.LEX_ERROR,
                    phase=Phase.LEXER,
                )
            )

    def record_grammar_error(self, errors: Iterable[GrammarBuildError | str]) -> None:
        self._check_open()
        for e in errors:
            if isinstance(e, str):
                self._errors.append(f"Parse error: {e}")
                continue
            self._errors.append(
                DiagnosticReport(
                    severity=Severity.ERROR,
                    message=f"Parse error: {e.message}",
                    labels=(Label(e.span, e.hint or e.message),),
                    kind=ReportKind.GRAMMAR_ERROR,
                    phase=Phase.GRAMMAR,
                )
            )

    def record_warning(
        self, warnings: Iterable[GrammarWarning | str], *, phase: Phase = Phase.GRAMMAR
    ) -> None:
        """Record warnings whose spans point into the `phase` source."""
        self._check_open()
        phase = Phase(phase)
        for w in warnings:
            if isinstance(w, str):
                self._warnings.append(w)
                continue
            self._warnings.append(
                DiagnosticReport(
                    severity=Severity.WARNING,
                    message=w.message,
                    labels=(Label(w.span, w.message),),
                    kind=ReportKind.WARNING,
                    phase=phase,
                )
            )

    def _record_missing(
        self,
        message: str,
        names: Iterable[str],
        spans: Mapping[str, Span | None],
        phase: Phase,
        as_warning: bool,
    ) -> None:
        ordered = sorted(set(names))
        if not ordered:
            return
        # Every name gets a label, spanless when its location is unknown.
        report = DiagnosticReport(
            severity=Severity.WARNING if as_warning else Severity.ERROR,
            message=message,
            labels=tuple(Label(spans.get(name), name) for name in ordered),
            summary=tuple(ordered),
            kind=ReportKind.MISSING_TOKEN,
            phase=phase,
        )
        (self._warnings if as_warning else self._errors).append(report)

    def record_missing_in_lexer(
        self, names: Iterable[str], grammar: GrammarIndex | None = None, *, as_warning: bool = False
    ) -> None:
        """Tokens the grammar uses but the lexer never defines; located in the grammar."""
        self._check_open()
        names = set(names)
        spans: dict[str, Span | None] = {}
        if grammar is not None:
            spans = {name: grammar.token_span(grammar.token_index(name)) for name in names}
        self._record_missing(
            "Tokens used in the grammar but not defined in the lexer",
            names,
            spans,
            Phase.GRAMMAR,
            as_warning,
        )

    def record_missing_in_parser(
        self,
        names: Iterable[str],
        lexer_tokens: Mapping[str, Span] | None = None,
        *,
        as_warning: bool = True,
    ) -> None:
        """Tokens the lexer defines but the grammar never uses; located in the lexer."""
        self._check_open()
        self._record_missing(
            "Tokens defined in the lexer but not used in the grammar",
            names,
            lexer_tokens or {},
            Phase.LEXER,
            as_warning,
        )

    def record_conflicts(self, conflicts: Conflicts, grammar: GrammarIndex) -> None:
        self._check_open()
        reports = describe_conflicts(conflicts, grammar)
        logger.debug(
            "recording %d reduce/reduce and %d shift/reduce conflicts",
            conflicts.rr_count(),
            conflicts.sr_count(),
        )
        self._errors.extend(reports)

    def render(self, entries: Sequence[Entry]) -> str:
        """Render entries in order; consecutive reports go through the renderer together."""
        pieces: list[str] = []
        run: list[DiagnosticReport] = []
        for e in entries:
            if isinstance(e, DiagnosticReport):
                run.append(e)
                continue
            if run:
                pieces.append(self.renderer.render(run, self.sources))
                run = []
            pieces.append(e)
        if run:
            pieces.append(self.renderer.render(run, self.sources))
        return "\n".join(pieces)

    def finalize(self) -> None:
        """Close the aggregator; raise DiagnosticsFailed if the build must fail."""
        self._check_open()
        self._finalized = True
        logger.debug(
            "finalizing diagnostics: %d error(s), %d warning(s)", len(self._errors), len(self._warnings)
        )

        if not self._errors and not self._warnings:
            return

        if not self._errors:
            rendered = self.render(self._warnings)
            if not self.warnings_are_errors:
                for line in rendered.splitlines():
                    logger.warning("%s", line)
                return
            raise DiagnosticsFailed(rendered)

        errors = self.render(self._errors)
        if self._warnings:
            raise DiagnosticsFailed(f"Warnings:\n{self.render(self._warnings)}\n\nErrors:\n{errors}")
        raise DiagnosticsFailed(errors)
