from __future__ import annotations

from dataclasses import dataclass

from .spans import Span


@dataclass(frozen=True, slots=True)
class RuleRef:
    name: str
    span: Span

    def __str__(self) -> str:
        return f"N({self.name})"


@dataclass(frozen=True, slots=True)
class TokenRef:
    name: str
    span: Span

    def __str__(self) -> str:
        return f"T({self.name})"


Symbol = RuleRef | TokenRef


@dataclass(frozen=True, slots=True)
class Production:
    rule: int  # index into GrammarAST.rules
    symbols: tuple[Symbol, ...]


@dataclass(frozen=True, slots=True)
class Rule:
    name: str
    span: Span  # span of the rule name at its first definition
    prods: tuple[int, ...]  # indices into GrammarAST.prods, declaration order


@dataclass(frozen=True, slots=True)
class Token:
    name: str
    span: Span | None = None  # None for tokens only the lexer knows about


@dataclass(frozen=True, slots=True)
class GrammarAST:
    rules: tuple[Rule, ...]
    prods: tuple[Production, ...]
    tokens: tuple[Token, ...]
    start: int = 0
    expect_sr: int | None = None
    expect_rr: int | None = None

    def production_str(self, index: int) -> str:
        prod = self.prods[index]
        rhs = " ".join(s.name for s in prod.symbols) if prod.symbols else "ε"
        return f"{self.rules[prod.rule].name} -> {rhs}"


def _in_range(index: int | None, seq: tuple) -> bool:
    return isinstance(index, int) and 0 <= index < len(seq)


class GrammarIndex:
    """Read-only lookups over a GrammarAST.

    Every lookup is bounds-checked: a malformed index yields None, a
    placeholder name, or an empty list. Nothing here raises on bad indices.
    """

    __slots__ = ("ast", "_token_by_name")

    def __init__(self, ast: GrammarAST) -> None:
        self.ast = ast
        self._token_by_name = {t.name: i for i, t in enumerate(ast.tokens)}

    def rule_of(self, production_index: int | None) -> int | None:
        if not _in_range(production_index, self.ast.prods):
            return None
        rule = self.ast.prods[production_index].rule
        return rule if _in_range(rule, self.ast.rules) else None

    def rule_name(self, rule_index: int | None) -> str:
        if not _in_range(rule_index, self.ast.rules):
            return f"<unknown rule #{rule_index}>"
        return self.ast.rules[rule_index].name

    def rule_span(self, rule_index: int | None) -> Span | None:
        if not _in_range(rule_index, self.ast.rules):
            return None
        return self.ast.rules[rule_index].span

    def token_name(self, token_index: int | None) -> str | None:
        if not _in_range(token_index, self.ast.tokens):
            return None
        return self.ast.tokens[token_index].name

    def token_span(self, token_index: int | None) -> Span | None:
        if not _in_range(token_index, self.ast.tokens):
            return None
        return self.ast.tokens[token_index].span

    def production_symbols(self, production_index: int | None) -> list[tuple[str, Span]]:
        # Conflict tuples may carry indices past the AST's productions (e.g. an
        # augmented start production added by the table builder).
        if not _in_range(production_index, self.ast.prods):
            return []
        return [(sym.name, sym.span) for sym in self.ast.prods[production_index].symbols]

    def token_index(self, name: str) -> int | None:
        return self._token_by_name.get(name)

    def used_token_names(self) -> set[str]:
        return {
            sym.name
            for prod in self.ast.prods
            for sym in prod.symbols
            if isinstance(sym, TokenRef)
        }
