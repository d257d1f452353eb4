from __future__ import annotations

from .aggregate import DiagnosticAggregator, GrammarPhaseSink, LexerPhaseSink
from .api import BuildResult, check_files, check_sources, compile_grammar, compile_lexer
from .config import DiagnosticsConfig
from .conflicts import Conflict, Conflicts, ReduceReduce, ShiftReduce
from .describe import describe_conflicts, describe_reduce_reduce, describe_shift_reduce
from .errors import (
    AggregatorStateError,
    DiagnosticsFailed,
    GrammarBuildError,
    GrammarWarning,
    LexBuildError,
)
from .grammar import GrammarAST, GrammarIndex, Production, Rule, RuleRef, Token, TokenRef
from .render import OutputFormat, PlainTextRenderer, RichRenderer, SourceMap, make_renderer
from .report import DiagnosticReport, Label, Phase, ReportKind, Severity
from .spans import NewlineCache, Span, resolve

__all__ = [
    "AggregatorStateError",
    "BuildResult",
    "Conflict",
    "Conflicts",
    "DiagnosticAggregator",
    "DiagnosticReport",
    "DiagnosticsConfig",
    "DiagnosticsFailed",
    "GrammarAST",
    "GrammarBuildError",
    "GrammarIndex",
    "GrammarPhaseSink",
    "GrammarWarning",
    "Label",
    "LexBuildError",
    "LexerPhaseSink",
    "NewlineCache",
    "OutputFormat",
    "Phase",
    "PlainTextRenderer",
    "Production",
    "ReduceReduce",
    "ReportKind",
    "RichRenderer",
    "Rule",
    "RuleRef",
    "Severity",
    "ShiftReduce",
    "SourceMap",
    "Span",
    "Token",
    "TokenRef",
    "check_files",
    "check_sources",
    "compile_grammar",
    "compile_lexer",
    "describe_conflicts",
    "describe_reduce_reduce",
    "describe_shift_reduce",
    "make_renderer",
    "resolve",
]
