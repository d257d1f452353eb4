from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ReduceReduce:
    left: int  # production index
    right: int  # production index
    state: int


@dataclass(frozen=True, slots=True)
class ShiftReduce:
    token: int
    production: int
    state: int


Conflict = ReduceReduce | ShiftReduce


@dataclass(slots=True)
class Conflicts:
    """Conflicts of one state table, in the order the table builder found them."""

    rr: list[ReduceReduce] = field(default_factory=list)
    sr: list[ShiftReduce] = field(default_factory=list)

    def add(self, conflict: Conflict) -> None:
        if isinstance(conflict, ReduceReduce):
            self.rr.append(conflict)
        else:
            self.sr.append(conflict)

    def __len__(self) -> int:
        return len(self.rr) + len(self.sr)

    def __iter__(self) -> Iterator[Conflict]:
        yield from self.rr
        yield from self.sr

    def rr_count(self) -> int:
        return len(self.rr)

    def sr_count(self) -> int:
        return len(self.sr)
