from __future__ import annotations

import logging

from .conflicts import Conflicts, ReduceReduce, ShiftReduce
from .grammar import GrammarIndex
from .report import DiagnosticReport, Label, Phase, ReportKind, Severity


logger = logging.getLogger(__name__)


def _quoted(symbols: list[tuple[str, object]]) -> str:
    return " ".join(f"'{name}'" for name, _ in symbols)


def _rule_display(grammar: GrammarIndex, production: int) -> str:
    rule = grammar.rule_of(production)
    if rule is None:
        return f"<unknown production #{production}>"
    return grammar.rule_name(rule)


def _token_display(grammar: GrammarIndex, token: int) -> str:
    name = grammar.token_name(token)
    return name if name is not None else f"<unknown token #{token}>"


def describe_reduce_reduce(left: int, right: int, grammar: GrammarIndex) -> DiagnosticReport:
    left_rule = grammar.rule_of(left)
    right_rule = grammar.rule_of(right)
    left_syms = grammar.production_symbols(left)
    right_syms = grammar.production_symbols(right)
    return DiagnosticReport(
        severity=Severity.ERROR,
        message="Reduce/Reduce",
        labels=(
            Label(grammar.rule_span(left_rule), "1st Reduce"),
            Label(grammar.rule_span(right_rule), "2nd Reduce"),
        ),
        summary=(
            f"Left: {_rule_display(grammar, left)}",
            f"Right: {_rule_display(grammar, right)}",
            f"Left Productions: {_quoted(left_syms)}",
            f"Right Productions: {_quoted(right_syms)}",
        ),
        kind=ReportKind.REDUCE_REDUCE,
        phase=Phase.GRAMMAR,
    )


def describe_shift_reduce(token: int, production: int, grammar: GrammarIndex) -> DiagnosticReport:
    rule = grammar.rule_of(production)
    syms = grammar.production_symbols(production)
    labels = [Label(grammar.rule_span(rule), "Reduced rule")]
    token_span = grammar.token_span(token)
    if token_span is not None:
        labels.append(Label(token_span, "Shifted"))
    labels.extend(Label(span, name) for name, span in syms)
    return DiagnosticReport(
        severity=Severity.ERROR,
        message="Shift/Reduce",
        labels=tuple(labels),
        summary=(
            f"Shift: {_token_display(grammar, token)}",
            f"Reduce: {_rule_display(grammar, production)}",
            f"Reduce Productions: {_quoted(syms)}",
        ),
        kind=ReportKind.SHIFT_REDUCE,
        phase=Phase.GRAMMAR,
    )


def describe(conflict: ReduceReduce | ShiftReduce, grammar: GrammarIndex) -> DiagnosticReport:
    if isinstance(conflict, ReduceReduce):
        logger.debug(
            "reduce/reduce in state %d: productions %d and %d",
            conflict.state,
            conflict.left,
            conflict.right,
        )
        return describe_reduce_reduce(conflict.left, conflict.right, grammar)
    if isinstance(conflict, ShiftReduce):
        logger.debug(
            "shift/reduce in state %d: token %d against production %d",
            conflict.state,
            conflict.token,
            conflict.production,
        )
        return describe_shift_reduce(conflict.token, conflict.production, grammar)
    raise TypeError(f"not a conflict: {type(conflict)!r}")


def describe_conflicts(conflicts: Conflicts, grammar: GrammarIndex) -> list[DiagnosticReport]:
    """Describe every conflict: all reduce/reduce first, then shift/reduce.

    Within each kind the table builder's order is kept as-is.
    """
    return [describe(c, grammar) for c in conflicts]
