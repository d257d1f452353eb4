from __future__ import annotations

from grmdiag import DiagnosticsConfig, DiagnosticsFailed, OutputFormat, check_sources
from grmdiag.testing import generate_grammar_sources


def _run(lexer: str, grammar: str, fmt: OutputFormat) -> str:
    try:
        res = check_sources(
            lexer_path="gen.l",
            lexer_text=lexer,
            grammar_path="gen.y",
            grammar_text=grammar,
            config=DiagnosticsConfig(output_format=fmt, warnings_are_errors=True),
        )
    except DiagnosticsFailed as e:
        return e.body
    return f"ok: {res.table.n_states} states"


def test_generated_corpus_is_deterministic() -> None:
    cases = generate_grammar_sources(seed=1, count=60)
    assert cases == generate_grammar_sources(seed=1, count=60)
    failures = 0
    for lexer, grammar in cases:
        for fmt in OutputFormat:
            first = _run(lexer, grammar, fmt)
            assert first == _run(lexer, grammar, fmt)
            if not first.startswith("ok: "):
                failures += 1
                assert first.strip() == first
                assert "\n\n\n" not in first
    assert failures > 0
