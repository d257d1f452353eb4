from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .aggregate import DiagnosticAggregator, GrammarPhaseSink, LexerPhaseSink
from .config import DiagnosticsConfig
from .frontend import LoadedLexer, load_grammar, load_lexer
from .grammar import GrammarAST, GrammarIndex
from .lalr import StateTable, build_state_table
from .report import Phase
from .spans import Span


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BuildResult:
    lexer_tokens: dict[str, Span]
    grammar: GrammarAST
    table: StateTable


def compile_lexer(sink: LexerPhaseSink, path: str, text: str) -> LoadedLexer | None:
    logger.debug("compiling lexer %s", path)
    sink.record_source(Phase.LEXER, path, text)
    loaded = load_lexer(text)
    if loaded.warnings:
        sink.record_warning(loaded.warnings, phase=Phase.LEXER)
    if loaded.errors:
        sink.record_lex_error(loaded.errors)
        return None
    return loaded


def compile_grammar(
    sink: GrammarPhaseSink,
    path: str,
    text: str,
    *,
    lexer_tokens: Mapping[str, Span] | None = None,
    config: DiagnosticsConfig | None = None,
) -> tuple[GrammarAST, StateTable] | None:
    """Load the grammar, build its state table and record what went wrong.

    Conflicts are only recorded when their counts differ from the grammar's
    `%expect` / `%expect-rr` declarations (0 when absent).
    """
    config = config or DiagnosticsConfig()
    logger.debug("compiling grammar %s", path)
    sink.record_source(Phase.GRAMMAR, path, text)
    loaded = load_grammar(text)
    if loaded.warnings:
        sink.record_warning(loaded.warnings, phase=Phase.GRAMMAR)
    if loaded.ast is None:
        sink.record_grammar_error(loaded.errors)
        return None

    ast = loaded.ast
    index = GrammarIndex(ast)
    if lexer_tokens is not None:
        in_lexer = set(lexer_tokens)
        used = index.used_token_names()
        sink.record_missing_in_lexer(used - in_lexer, index, as_warning=config.allow_missing_terms_in_lexer)
        sink.record_missing_in_parser(
            in_lexer - used, lexer_tokens, as_warning=config.allow_missing_tokens_in_parser
        )

    table = build_state_table(ast)
    conflicts = table.conflicts
    if conflicts.sr_count() != (ast.expect_sr or 0) or conflicts.rr_count() != (ast.expect_rr or 0):
        sink.record_conflicts(conflicts, index)
    return ast, table


def check_sources(
    *,
    lexer_path: str,
    lexer_text: str,
    grammar_path: str,
    grammar_text: str,
    config: DiagnosticsConfig | None = None,
) -> BuildResult:
    """Run both phases against one aggregator; raise DiagnosticsFailed on failure."""
    config = config or DiagnosticsConfig()
    diags = DiagnosticAggregator(warnings_are_errors=config.warnings_are_errors, renderer=config.renderer())

    lexer = compile_lexer(diags, lexer_path, lexer_text)
    compiled = compile_grammar(
        diags,
        grammar_path,
        grammar_text,
        lexer_tokens=None if lexer is None else lexer.tokens,
        config=config,
    )
    diags.finalize()

    if lexer is None or compiled is None:
        raise RuntimeError("build failed without recording an error")
    ast, table = compiled
    return BuildResult(lexer_tokens=lexer.tokens, grammar=ast, table=table)


def check_files(
    lexer_path: str | Path,
    grammar_path: str | Path,
    *,
    config: DiagnosticsConfig | None = None,
) -> BuildResult:
    lp = Path(lexer_path).expanduser()
    gp = Path(grammar_path).expanduser()
    return check_sources(
        lexer_path=str(lexer_path),
        lexer_text=lp.read_text(encoding="utf-8"),
        grammar_path=str(grammar_path),
        grammar_text=gp.read_text(encoding="utf-8"),
        config=config,
    )
