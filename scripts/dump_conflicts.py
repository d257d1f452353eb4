from __future__ import annotations

import argparse
from pathlib import Path

from grmdiag import GrammarIndex, OutputFormat, SourceMap, describe_conflicts, make_renderer
from grmdiag.frontend import load_grammar
from grmdiag.lalr import StateTable, build_state_table
from grmdiag.report import Phase


def _dump_states(table: StateTable, grammar: GrammarIndex) -> None:
    for st in range(table.n_states):
        actions = []
        for tok, (kind, arg) in sorted(table.action.get(st, {}).items()):
            name = "$" if tok == table.eof else grammar.token_name(tok)
            actions.append(f"{name}:{kind[0]}{arg}" if kind != "accept" else f"{name}:acc")
        gotos = [f"{grammar.rule_name(r)}:{j}" for r, j in sorted(table.goto.get(st, {}).items())]
        print(f"state {st:>3}: {' '.join(actions)}" + (f" | {' '.join(gotos)}" if gotos else ""))


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="dump_conflicts")
    ap.add_argument("grammar")
    ap.add_argument("--format", choices=[f.value for f in OutputFormat], default="plain")
    ap.add_argument("--states", action="store_true", help="Also print the ACTION/GOTO rows")
    args = ap.parse_args(argv)

    text = Path(args.grammar).read_text(encoding="utf-8")
    loaded = load_grammar(text)
    if loaded.ast is None:
        for e in loaded.errors:
            print(e)
        return 1

    table = build_state_table(loaded.ast)
    index = GrammarIndex(loaded.ast)
    print(f"productions: {len(loaded.ast.prods)}  states: {table.n_states}")
    for i in range(len(loaded.ast.prods)):
        print(f"{i:>3}: {loaded.ast.production_str(i)}")
    if args.states:
        _dump_states(table, index)

    conflicts = table.conflicts
    print(f"conflicts: {conflicts.rr_count()} reduce/reduce, {conflicts.sr_count()} shift/reduce")
    if conflicts:
        sources = SourceMap()
        sources.add(Phase.GRAMMAR, args.grammar, text)
        print(make_renderer(args.format).render(describe_conflicts(conflicts, index), sources))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
