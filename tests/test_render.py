from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from grmdiag import (
    DiagnosticReport,
    GrammarIndex,
    Label,
    OutputFormat,
    Phase,
    PlainTextRenderer,
    ReportKind,
    RichRenderer,
    Severity,
    ShiftReduce,
    SourceMap,
    Span,
    describe_shift_reduce,
    make_renderer,
)
from grmdiag.frontend import load_grammar


EXPR_SRC = "%%\nExpr: Expr 'PLUS' Expr | 'INT';\n"
EXPR_LINE = "Expr: Expr 'PLUS' Expr | 'INT';"


def _sources(text: str = EXPR_SRC) -> SourceMap:
    sources = SourceMap()
    sources.add(Phase.GRAMMAR, "expr.y", text)
    return sources


def _sr_report() -> DiagnosticReport:
    loaded = load_grammar(EXPR_SRC)
    assert loaded.ast is not None
    g = GrammarIndex(loaded.ast)
    return describe_shift_reduce(g.token_index("PLUS"), 0, g)


def _error(message: str, *labels: Label, kind: ReportKind = ReportKind.GRAMMAR_ERROR) -> DiagnosticReport:
    return DiagnosticReport(severity=Severity.ERROR, message=message, labels=labels, kind=kind)


def test_empty_reports_render_empty() -> None:
    assert PlainTextRenderer().render([]) == ""
    assert RichRenderer().render([], _sources()) == ""


def test_plain_blank_line_only_between_kinds() -> None:
    rr = DiagnosticReport(Severity.ERROR, "Reduce/Reduce", summary=("Left: A",), kind=ReportKind.REDUCE_REDUCE)
    sr = DiagnosticReport(Severity.ERROR, "Shift/Reduce", summary=("Shift: T",), kind=ReportKind.SHIFT_REDUCE)
    out = PlainTextRenderer().render([rr, rr, sr])
    assert out == (
        "Reduce/Reduce:\n\tLeft: A\n"
        "Reduce/Reduce:\n\tLeft: A\n"
        "\n"
        "Shift/Reduce:\n\tShift: T"
    )
    assert PlainTextRenderer().render([sr, sr]) == "Shift/Reduce:\n\tShift: T\nShift/Reduce:\n\tShift: T"
    assert not out.endswith("\n")


def test_plain_locations_and_fallbacks() -> None:
    report = _error(
        "Parse error: unknown rule 'Term'",
        Label(Span(3, 7), "here"),
        Label(Span(500, 501), "far away"),
        Label(None, "nowhere"),
    )
    out = PlainTextRenderer().render([report], _sources())
    assert out.splitlines() == [
        "Parse error: unknown rule 'Term'",
        "\texpr.y:2:1: here",
        "\texpr.y:@500..501: far away",
        "\t<unknown location>: nowhere",
    ]
    # Without a recorded source only raw offsets are available.
    assert PlainTextRenderer().render([report]).splitlines()[1] == "\t<grammar>:@3..7: here"


def test_plain_note() -> None:
    report = DiagnosticReport(Severity.WARNING, "careful", note="first\nsecond", kind=ReportKind.WARNING)
    assert PlainTextRenderer().render([report]) == "careful\n\tnote: first\n\tnote: second"


def test_rich_shift_reduce_excerpts() -> None:
    out = RichRenderer().render([_sr_report()], _sources())
    lines = out.splitlines()
    assert lines[0] == "error: Shift/Reduce"
    assert lines[1] == "  --> expr.y:2:1"
    assert lines[2] == "  |"
    assert lines[3] == f"2 | {EXPR_LINE}"
    assert lines[4] == "  | ^^^^ Reduced rule"
    assert lines[5] == f"2 | {EXPR_LINE}"
    assert lines[6] == "  | " + " " * 12 + "---- Shifted"
    # one excerpt per production symbol follows
    assert lines[8] == "  | " + " " * 6 + "---- Expr"
    assert lines[10] == "  | " + " " * 12 + "---- PLUS"
    assert lines[12] == "  | " + " " * 18 + "---- Expr"
    assert len(lines) == 13


def test_rich_unresolved_labels_and_notes() -> None:
    report = DiagnosticReport(
        Severity.WARNING,
        "odd",
        labels=(Label(Span(900, 901), "gone"), Label(None, "nowhere")),
        note="see above",
        kind=ReportKind.WARNING,
    )
    out = RichRenderer().render([report], _sources())
    assert out.splitlines() == [
        "warning: odd",
        "  --> expr.y:@900..901",
        "  = expr.y:@900..901: gone",
        "  = nowhere",
        "  = note: see above",
    ]


def test_rich_reports_joined_in_input_order() -> None:
    a = _error("first", Label(Span(3, 7), "a"))
    b = _error("second", Label(Span(3, 7), "b"))
    out = RichRenderer().render([a, b], _sources())
    blocks = out.split("\n\n")
    assert [blk.splitlines()[0] for blk in blocks] == ["error: first", "error: second"]


def test_rich_underline_is_clipped_to_line() -> None:
    text = "ab\ncd"
    report = _error("wide", Label(Span(0, 5), "all"))
    out = RichRenderer().render([report], _sources(text))
    assert "  | ^^ all" in out.splitlines()


def test_rich_color_wraps_header() -> None:
    out = RichRenderer(color=True).render([_error("boom", Label(Span(3, 7), "x"))], _sources())
    assert out.startswith("\033[1;31merror\033[0m: \033[1mboom\033[0m")


def test_renderers_are_deterministic() -> None:
    reports = [_sr_report(), _sr_report()]
    for renderer in (PlainTextRenderer(), RichRenderer()):
        assert renderer.render(reports, _sources()) == renderer.render(reports, _sources())


def test_make_renderer() -> None:
    assert isinstance(make_renderer("plain"), PlainTextRenderer)
    assert isinstance(make_renderer(OutputFormat.RICH, color=True), RichRenderer)
    assert make_renderer(OutputFormat.RICH, color=True).color is True


_spans = st.one_of(
    st.none(),
    st.tuples(st.integers(0, 60), st.integers(0, 10)).map(lambda t: Span(t[0], t[0] + t[1])),
)
_reports = st.builds(
    DiagnosticReport,
    severity=st.sampled_from(Severity),
    message=st.text(alphabet="abc /:", min_size=1, max_size=12),
    labels=st.lists(st.builds(Label, _spans, st.text(alphabet="xyz", max_size=5)), max_size=3).map(tuple),
    note=st.none() | st.just("n"),
    summary=st.lists(st.text(alphabet="pq", min_size=1, max_size=4), max_size=2).map(tuple),
    kind=st.sampled_from(ReportKind),
)


@given(st.lists(_reports, max_size=6))
def test_render_is_a_function_of_its_input(reports: list[DiagnosticReport]) -> None:
    for renderer in (PlainTextRenderer(), RichRenderer()):
        out = renderer.render(reports, _sources())
        assert out == renderer.render(list(reports), _sources())
        assert not out.endswith("\n")
        if not reports:
            assert out == ""
