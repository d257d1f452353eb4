from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import GrammarBuildError, GrammarWarning, LexBuildError
from .grammar import GrammarAST, Production, Rule, RuleRef, Token, TokenRef
from .spans import Span


_SEPARATOR_RE = re.compile(r"^%%[ \t]*\r?$", re.M)
_LEX_RULE_RE = re.compile(r'^\s*(?P<regex>\S.*?)\s+(?:"(?P<name>[^"]*)"|(?P<skip>;))\s*$')
_DIRECTIVE_RE = re.compile(r"^[ \t]*%(?P<name>[A-Za-z][A-Za-z-]*)(?:[ \t]+(?P<arg>\S+))?[ \t]*$")
_SCAN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<comment>//[^\n]*)
    | '(?P<sq>[^'\n]*)'
    | "(?P<dq>[^"\n]*)"
    | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<punct>[:|;])
    """,
    re.X,
)


@dataclass(frozen=True, slots=True)
class LoadedLexer:
    tokens: dict[str, Span]  # token name -> span of the name in the lexer source
    errors: tuple[LexBuildError, ...] = ()
    warnings: tuple[GrammarWarning, ...] = ()


@dataclass(frozen=True, slots=True)
class LoadedGrammar:
    ast: GrammarAST | None
    errors: tuple[GrammarBuildError, ...] = ()
    warnings: tuple[GrammarWarning, ...] = ()


def _split_sections(text: str) -> tuple[int, int] | None:
    """Return (end of header, start of rules) around the `%%` line."""
    m = _SEPARATOR_RE.search(text)
    if m is None:
        return None
    nl = text.find("\n", m.end())
    return m.start(), len(text) if nl == -1 else nl + 1


def _lines(text: str, start: int, end: int):
    offset = start
    for raw in text[start:end].splitlines(keepends=True):
        yield offset, raw.rstrip("\r\n")
        offset += len(raw)


def load_lexer(text: str) -> LoadedLexer:
    """Read a lexer definition: after `%%`, one `<regex> "<NAME>"` or `<regex> ;` per line."""
    sections = _split_sections(text)
    if sections is None:
        return LoadedLexer(
            tokens={},
            errors=(LexBuildError(Span(0, 0), "missing '%%' separator", hint="add a line containing only %%"),),
        )

    tokens: dict[str, Span] = {}
    errors: list[LexBuildError] = []
    warnings: list[GrammarWarning] = []
    for line_start, line in _lines(text, sections[1], len(text)):
        stripped = line.strip()
        if not stripped or stripped.startswith("//"):
            continue
        lead = len(line) - len(line.lstrip())
        m = _LEX_RULE_RE.match(line)
        if m is None:
            errors.append(
                LexBuildError(
                    Span(line_start + lead, line_start + len(line.rstrip())),
                    "missing token name",
                    hint='end the rule with "NAME" or ;',
                )
            )
            continue
        regex_span = Span(line_start + m.start("regex"), line_start + m.end("regex"))
        try:
            compiled = re.compile(m.group("regex"))
        except re.error as exc:
            errors.append(LexBuildError(regex_span, f"invalid regular expression: {exc.msg}"))
            continue
        if compiled.fullmatch("") is not None:
            warnings.append(
                GrammarWarning(regex_span, f"regular expression {m.group('regex')!r} matches the empty string")
            )
        if m.group("skip"):
            continue
        name = m.group("name")
        name_span = Span(line_start + m.start("name"), line_start + m.end("name"))
        if not name:
            errors.append(LexBuildError(name_span, "empty token name"))
        elif name in tokens:
            errors.append(
                LexBuildError(name_span, f"duplicate token name {name!r}", hint="each token may be defined once")
            )
        else:
            tokens[name] = name_span
    return LoadedLexer(tokens=tokens, errors=tuple(errors), warnings=tuple(warnings))


@dataclass(frozen=True, slots=True)
class _Lexeme:
    kind: str  # "ident" | "token" | ":" | "|" | ";"
    value: str
    span: Span


def _scan(text: str, start: int, errors: list[GrammarBuildError]) -> list[_Lexeme]:
    out: list[_Lexeme] = []
    i = start
    while i < len(text):
        m = _SCAN_RE.match(text, i)
        if m is None:
            errors.append(GrammarBuildError(Span(i, i + 1), f"unexpected character {text[i]!r}"))
            i += 1
            continue
        i = m.end()
        kind = m.lastgroup
        if kind in ("ws", "comment"):
            continue
        if kind in ("sq", "dq"):
            name = m.group(kind)
            span = Span(m.start(kind), m.end(kind))
            if not name:
                errors.append(GrammarBuildError(Span(m.start(), m.end()), "empty token name"))
                continue
            out.append(_Lexeme("token", name, span))
        elif kind == "ident":
            out.append(_Lexeme("ident", m.group(), Span(m.start(), m.end())))
        else:
            out.append(_Lexeme(m.group(), m.group(), Span(m.start(), m.end())))
    return out


def load_grammar(text: str) -> LoadedGrammar:
    """Read a grammar definition.

    Header directives (`%start`, `%expect`, `%expect-rr`) come before `%%`;
    after it, rules look like `Name: sym sym | alt ;`. Quoted names are
    tokens, bare identifiers are rule references. Syntax errors recover at
    the next `;`, so one pass reports every problem.
    """
    errors: list[GrammarBuildError] = []
    sections = _split_sections(text)
    if sections is None:
        err = GrammarBuildError(Span(0, 0), "missing '%%' separator", hint="add a line containing only %%")
        return LoadedGrammar(ast=None, errors=(err,))

    start_name: tuple[str, Span] | None = None
    expect: dict[str, int] = {}
    for line_start, line in _lines(text, 0, sections[0]):
        stripped = line.strip()
        if not stripped or stripped.startswith("//"):
            continue
        m = _DIRECTIVE_RE.match(line)
        line_span = Span(line_start + len(line) - len(line.lstrip()), line_start + len(line.rstrip()))
        if m is None or m.group("name") not in ("start", "expect", "expect-rr"):
            errors.append(GrammarBuildError(line_span, f"unknown directive {stripped!r}"))
            continue
        arg = m.group("arg")
        if arg is None:
            errors.append(GrammarBuildError(line_span, f"%{m.group('name')} needs an argument"))
            continue
        arg_span = Span(line_start + m.start("arg"), line_start + m.end("arg"))
        if m.group("name") == "start":
            start_name = (arg, arg_span)
        elif arg.isdigit():
            expect[m.group("name")] = int(arg)
        else:
            errors.append(GrammarBuildError(arg_span, f"expected a number, got {arg!r}"))

    lexemes = _scan(text, sections[1], errors)

    order: list[str] = []
    name_spans: dict[str, Span] = {}
    bodies: list[tuple[str, list[_Lexeme]]] = []  # (rule name, symbols), source order
    i, n = 0, len(lexemes)
    while i < n:
        head = lexemes[i]
        bad = False
        if head.kind != "ident":
            errors.append(GrammarBuildError(head.span, f"expected a rule name, found {head.value!r}"))
            bad = True
        elif i + 1 >= n or lexemes[i + 1].kind != ":":
            errors.append(
                GrammarBuildError(head.span, f"expected ':' after rule name {head.value!r}")
            )
            bad = True
        if bad:
            while i < n and lexemes[i].kind != ";":
                i += 1
            i += 1
            continue

        i += 2
        alts: list[list[_Lexeme]] = [[]]
        while i < n and lexemes[i].kind != ";":
            lx = lexemes[i]
            if lx.kind == "|":
                alts.append([])
            elif lx.kind == ":":
                errors.append(
                    GrammarBuildError(lx.span, "unexpected ':'", hint="is a ';' missing after the previous rule?")
                )
                bad = True
            else:
                alts[-1].append(lx)
            i += 1
        if i >= n:
            errors.append(GrammarBuildError(head.span, f"rule {head.value!r} is missing a closing ';'"))
        i += 1
        if bad:
            continue

        if head.value not in name_spans:
            order.append(head.value)
            name_spans[head.value] = head.span
        bodies.extend((head.value, alt) for alt in alts)

    if not order and not errors:
        errors.append(GrammarBuildError(Span(sections[1], sections[1]), "grammar has no rules"))

    for _, syms in bodies:
        for lx in syms:
            if lx.kind == "ident" and lx.value not in name_spans:
                errors.append(
                    GrammarBuildError(
                        lx.span,
                        f"unknown rule {lx.value!r}",
                        hint="define the rule, or quote the name to use a token",
                    )
                )

    start = 0
    if start_name is not None:
        if start_name[0] in name_spans:
            start = order.index(start_name[0])
        else:
            errors.append(GrammarBuildError(start_name[1], f"start rule {start_name[0]!r} is not defined"))

    if errors:
        return LoadedGrammar(ast=None, errors=tuple(errors))

    rule_index = {name: k for k, name in enumerate(order)}
    prods: list[Production] = []
    prods_of: dict[str, list[int]] = {name: [] for name in order}
    token_spans: dict[str, Span] = {}
    for name, syms in bodies:
        symbols: list[RuleRef | TokenRef] = []
        for lx in syms:
            if lx.kind == "token":
                token_spans.setdefault(lx.value, lx.span)
                symbols.append(TokenRef(lx.value, lx.span))
            else:
                symbols.append(RuleRef(lx.value, lx.span))
        prods_of[name].append(len(prods))
        prods.append(Production(rule=rule_index[name], symbols=tuple(symbols)))

    ast = GrammarAST(
        rules=tuple(Rule(name, name_spans[name], tuple(prods_of[name])) for name in order),
        prods=tuple(prods),
        tokens=tuple(Token(name, span) for name, span in token_spans.items()),
        start=start,
        expect_sr=expect.get("expect"),
        expect_rr=expect.get("expect-rr"),
    )
    return LoadedGrammar(ast=ast, warnings=tuple(_unused_rules(ast)))


def _unused_rules(ast: GrammarAST) -> list[GrammarWarning]:
    reached = {ast.start}
    work = [ast.start]
    names = {r.name: k for k, r in enumerate(ast.rules)}
    while work:
        for p in ast.rules[work.pop()].prods:
            for sym in ast.prods[p].symbols:
                if isinstance(sym, RuleRef) and names[sym.name] not in reached:
                    reached.add(names[sym.name])
                    work.append(names[sym.name])
    return [
        GrammarWarning(r.span, f"rule {r.name!r} is never used")
        for k, r in enumerate(ast.rules)
        if k not in reached
    ]
