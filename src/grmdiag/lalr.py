from __future__ import annotations

import logging
from dataclasses import dataclass

from .conflicts import Conflicts, ReduceReduce, ShiftReduce
from .grammar import GrammarAST, TokenRef


logger = logging.getLogger(__name__)

# (is_terminal, index): token index for terminals, rule index otherwise.
Sym = tuple[bool, int]


@dataclass(frozen=True, slots=True)
class LR1Item:
    prod_index: int
    dot: int
    lookahead: int

    def core(self) -> tuple[int, int]:
        return (self.prod_index, self.dot)


@dataclass(frozen=True, slots=True)
class StateTable:
    """ACTION / GOTO tables for an LALR parser, plus the conflicts met building them.

    ACTION[state][token] = ("shift", next_state) | ("reduce", prod_index) | ("accept", 0)
    GOTO[state][rule] = next_state

    The augmented start production has index len(ast.prods) and the EOF
    token has index len(ast.tokens); neither exists in the GrammarAST.
    """

    action: dict[int, dict[int, tuple[str, int]]]
    goto: dict[int, dict[int, int]]
    conflicts: Conflicts
    n_states: int
    eof: int


def build_state_table(ast: GrammarAST) -> StateTable:
    rule_by_name = {r.name: i for i, r in enumerate(ast.rules)}
    tok_by_name = {t.name: i for i, t in enumerate(ast.tokens)}
    eof = len(ast.tokens)

    heads: list[int] = []
    bodies: list[tuple[Sym, ...]] = []
    for p in ast.prods:
        heads.append(p.rule)
        bodies.append(
            tuple(
                (True, tok_by_name[s.name]) if isinstance(s, TokenRef) else (False, rule_by_name[s.name])
                for s in p.symbols
            )
        )
    # Augment grammar with S' -> start, appended after the real productions.
    start_prod = len(bodies)
    start_rule = len(ast.rules)
    heads.append(start_rule)
    bodies.append(((False, ast.start),))

    prods_for: dict[int, list[int]] = {}
    for i, h in enumerate(heads):
        prods_for.setdefault(h, []).append(i)

    # FIRST sets over rules, with nullable tracking.
    first: dict[int, set[int]] = {r: set() for r in range(start_rule + 1)}
    nullable: set[int] = set()

    def first_seq(seq: tuple[Sym, ...]) -> tuple[set[int], bool]:
        out: set[int] = set()
        for is_term, idx in seq:
            if is_term:
                out.add(idx)
                return out, False
            out |= first[idx]
            if idx not in nullable:
                return out, False
        return out, True

    changed = True
    while changed:
        changed = False
        for i, body in enumerate(bodies):
            h = heads[i]
            f, null = first_seq(body)
            if not f <= first[h]:
                first[h] |= f
                changed = True
            if null and h not in nullable:
                nullable.add(h)
                changed = True

    def closure(items: set[LR1Item]) -> frozenset[LR1Item]:
        out = set(items)
        work = list(items)
        while work:
            it = work.pop()
            body = bodies[it.prod_index]
            if it.dot >= len(body):
                continue
            is_term, idx = body[it.dot]
            if is_term:
                continue
            lookaheads, null = first_seq(body[it.dot + 1 :])
            if null:
                lookaheads.add(it.lookahead)
            for j in prods_for.get(idx, ()):
                for la in lookaheads:
                    new_it = LR1Item(j, 0, la)
                    if new_it not in out:
                        out.add(new_it)
                        work.append(new_it)
        return frozenset(out)

    def goto(items: frozenset[LR1Item], sym: Sym) -> frozenset[LR1Item]:
        moved = {
            LR1Item(it.prod_index, it.dot + 1, it.lookahead)
            for it in items
            if it.dot < len(bodies[it.prod_index]) and bodies[it.prod_index][it.dot] == sym
        }
        return closure(moved) if moved else frozenset()

    symbols = sorted({s for body in bodies for s in body})

    # Canonical LR(1) collection, numbered breadth-first.
    states: list[frozenset[LR1Item]] = [closure({LR1Item(start_prod, 0, eof)})]
    state_index = {states[0]: 0}
    transitions: dict[tuple[int, Sym], int] = {}
    i = 0
    while i < len(states):
        st = states[i]
        for sym in symbols:
            nxt = goto(st, sym)
            if not nxt:
                continue
            j = state_index.get(nxt)
            if j is None:
                j = len(states)
                states.append(nxt)
                state_index[nxt] = j
            transitions[(i, sym)] = j
        i += 1

    # Merge LR(1) states with same LR(0) core => LALR
    core_to_states: dict[frozenset[tuple[int, int]], list[int]] = {}
    for i, st in enumerate(states):
        core_to_states.setdefault(frozenset(it.core() for it in st), []).append(i)

    merged_states: list[frozenset[LR1Item]] = []
    old_to_new: dict[int, int] = {}
    for idxs in core_to_states.values():
        merged: set[LR1Item] = set()
        for i in idxs:
            merged |= states[i]
            old_to_new[i] = len(merged_states)
        merged_states.append(frozenset(merged))

    merged_trans = {(old_to_new[i], sym): old_to_new[j] for (i, sym), j in transitions.items()}

    action: dict[int, dict[int, tuple[str, int]]] = {}
    goto_tbl: dict[int, dict[int, int]] = {}
    conflicts = Conflicts()
    seen: set[ReduceReduce | ShiftReduce] = set()

    def record(c: ReduceReduce | ShiftReduce) -> None:
        if c not in seen:
            seen.add(c)
            conflicts.add(c)

    def add_action(st: int, term: int, act: tuple[str, int]) -> None:
        row = action.setdefault(st, {})
        prev = row.get(term)
        if prev is None or prev == act:
            row[term] = act
            return
        (prev_kind, prev_arg), (kind, arg) = prev, act
        # accept always wins against a reduce on EOF
        if "accept" in (prev_kind, kind):
            row[term] = ("accept", 0)
        elif prev_kind == "shift" and kind == "reduce":
            record(ShiftReduce(token=term, production=arg, state=st))
        elif prev_kind == "reduce" and kind == "shift":
            record(ShiftReduce(token=term, production=prev_arg, state=st))
            row[term] = act
        elif prev_kind == "reduce" and kind == "reduce":
            lo, hi = sorted((prev_arg, arg))
            record(ReduceReduce(left=lo, right=hi, state=st))
            row[term] = ("reduce", lo)

    for i, st in enumerate(merged_states):
        for it in sorted(st, key=lambda x: (x.prod_index, x.dot, x.lookahead)):
            body = bodies[it.prod_index]
            if it.dot < len(body):
                sym = body[it.dot]
                if sym[0]:
                    j = merged_trans.get((i, sym))
                    if j is not None:
                        add_action(i, sym[1], ("shift", j))
            elif it.prod_index == start_prod:
                add_action(i, eof, ("accept", 0))
            else:
                add_action(i, it.lookahead, ("reduce", it.prod_index))

        for sym in symbols:
            if not sym[0]:
                j = merged_trans.get((i, sym))
                if j is not None:
                    goto_tbl.setdefault(i, {})[sym[1]] = j

    logger.debug(
        "built %d LALR states (%d LR(1)); %d reduce/reduce, %d shift/reduce conflicts",
        len(merged_states),
        len(states),
        conflicts.rr_count(),
        conflicts.sr_count(),
    )
    return StateTable(
        action=action,
        goto=goto_tbl,
        conflicts=conflicts,
        n_states=len(merged_states),
        eof=eof,
    )
