from __future__ import annotations

import random


_TOKENS = ["ID", "NUM", "PLUS", "STAR", "LPAREN", "RPAREN", "COMMA"]
_REGEXES = {
    "ID": "[a-zA-Z_][a-zA-Z0-9_]*",
    "NUM": "[0-9]+",
    "PLUS": r"\+",
    "STAR": r"\*",
    "LPAREN": r"\(",
    "RPAREN": r"\)",
    "COMMA": ",",
}


def generate_grammar_sources(*, seed: int, count: int) -> list[tuple[str, str]]:
    """Generate a deterministic set of (lexer source, grammar source) pairs.

    Grammars are small and often ambiguous, so most of them have conflicts.
    Every rule reference points at a defined rule; the lexer defines every
    token the grammar uses, plus sometimes one it does not.
    """
    r = random.Random(seed)
    return [_gen_one(r) for _ in range(count)]


def _gen_one(r: random.Random) -> tuple[str, str]:
    rule_names = [f"R{i}" for i in range(r.randint(1, 4))]
    used: list[str] = []
    lines: list[str] = []
    for name in rule_names:
        alts: list[str] = []
        for _ in range(r.randint(1, 3)):
            syms: list[str] = []
            for _ in range(r.randint(0, 3)):
                if r.random() < 0.4:
                    syms.append(r.choice(rule_names))
                else:
                    tok = r.choice(_TOKENS)
                    if tok not in used:
                        used.append(tok)
                    syms.append(f"'{tok}'")
            alts.append(" ".join(syms))
        lines.append(f"{name}: " + "\n    | ".join(alts) + ";")

    grammar = "%start R0\n%%\n" + "\n".join(lines) + "\n"

    lexed = list(used)
    if r.random() < 0.3:
        extra = r.choice(_TOKENS)
        if extra not in lexed:
            lexed.append(extra)
    lexer = "%%\n" + "".join(f'{_REGEXES[t]} "{t}"\n' for t in lexed) + "[ \\t\\n]+ ;\n"
    return lexer, grammar
