from __future__ import annotations

from grmdiag import GrammarAST, GrammarIndex, Production, Rule, RuleRef, Span, Token, TokenRef
from grmdiag.frontend import load_grammar


def _ast() -> GrammarAST:
    # Expr: Expr 'PLUS' Term | Term;  Term: 'NUM';
    return GrammarAST(
        rules=(
            Rule("Expr", Span(0, 4), (0, 1)),
            Rule("Term", Span(40, 44), (2,)),
        ),
        prods=(
            Production(0, (RuleRef("Expr", Span(6, 10)), TokenRef("PLUS", Span(12, 16)), RuleRef("Term", Span(18, 22)))),
            Production(0, (RuleRef("Term", Span(25, 29)),)),
            Production(1, (TokenRef("NUM", Span(47, 50)),)),
        ),
        tokens=(Token("PLUS", Span(12, 16)), Token("NUM", Span(47, 50)), Token("EOF")),
    )


def test_lookups() -> None:
    g = GrammarIndex(_ast())
    assert g.rule_of(2) == 1
    assert g.rule_name(1) == "Term"
    assert g.rule_span(0) == Span(0, 4)
    assert g.token_name(0) == "PLUS"
    assert g.token_span(1) == Span(47, 50)
    assert g.token_span(2) is None
    assert g.production_symbols(0) == [
        ("Expr", Span(6, 10)),
        ("PLUS", Span(12, 16)),
        ("Term", Span(18, 22)),
    ]
    assert g.token_index("NUM") == 1
    assert g.used_token_names() == {"PLUS", "NUM"}


def test_out_of_range_indices_degrade() -> None:
    g = GrammarIndex(_ast())
    assert g.production_symbols(3) == []
    assert g.production_symbols(-1) == []
    assert g.rule_of(99) is None
    assert g.rule_name(None) == "<unknown rule #None>"
    assert g.rule_span(5) is None
    assert g.token_name(17) is None
    assert g.token_span(None) is None


def test_index_over_loaded_grammar() -> None:
    src = "%%\nS: A 'x' | ;\nA: 'y';\n"
    loaded = load_grammar(src)
    assert loaded.ast is not None
    g = GrammarIndex(loaded.ast)
    assert [src[s.start : s.end] for _, s in g.production_symbols(0)] == ["A", "x"]
    assert g.production_symbols(1) == []
    assert [t.name for t in loaded.ast.tokens] == ["x", "y"]
    assert loaded.ast.production_str(1) == "S -> ε"
