from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from .report import DiagnosticReport, Phase, Severity
from .spans import NewlineCache, Span, resolve


class OutputFormat(str, Enum):
    PLAIN = "plain"  # stable text, the format snapshot tests compare against
    RICH = "rich"  # source excerpts with underlined labels


@dataclass(slots=True)
class SourceFile:
    path: str
    text: str
    newlines: NewlineCache = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.newlines = NewlineCache(self.text)


class SourceMap:
    """The lexer and grammar sources of one build, keyed by phase.

    Each file keeps a single NewlineCache shared by every report that points
    into it.
    """

    __slots__ = ("_files",)

    def __init__(self, files: dict[Phase, SourceFile] | None = None) -> None:
        self._files: dict[Phase, SourceFile] = dict(files or {})

    def add(self, phase: Phase, path: str, text: str) -> SourceFile:
        sf = SourceFile(path=path, text=text)
        self._files[phase] = sf
        return sf

    def get(self, phase: Phase) -> SourceFile | None:
        return self._files.get(phase)

    def __contains__(self, phase: object) -> bool:
        return phase in self._files

    def path(self, phase: Phase) -> str:
        sf = self._files.get(phase)
        return sf.path if sf is not None else f"<{phase.value}>"

    def resolve(self, phase: Phase, span: Span | None) -> tuple[int, int] | None:
        sf = self._files.get(phase)
        if sf is None or span is None:
            return None
        return resolve(span, sf.text, sf.newlines)

    def location(self, phase: Phase, span: Span | None) -> str:
        if span is None:
            return "<unknown location>"
        lc = self.resolve(phase, span)
        if lc is None:
            # Offsets outside the known source: show them raw.
            return f"{self.path(phase)}:{span.format()}"
        return f"{self.path(phase)}:{lc[0]}:{lc[1]}"


class Renderer(Protocol):
    def render(self, reports: Sequence[DiagnosticReport], sources: SourceMap | None = None) -> str: ...


@dataclass(frozen=True, slots=True)
class PlainTextRenderer:
    """Stable, byte-for-byte reproducible text.

    Reports with summary lines print as `<message>:` followed by one
    tab-indented line each; other reports list their labels' locations.
    A blank line separates runs of reports of different kinds.
    """

    def render(self, reports: Sequence[DiagnosticReport], sources: SourceMap | None = None) -> str:
        sources = sources if sources is not None else SourceMap()
        out: list[str] = []
        prev = None
        for r in reports:
            if prev is not None and r.kind != prev:
                out.append("")
            out.append(self.render_one(r, sources))
            prev = r.kind
        return "\n".join(out)

    def render_one(self, report: DiagnosticReport, sources: SourceMap) -> str:
        if report.summary:
            lines = [f"{report.message}:"]
            lines.extend(f"\t{s}" for s in report.summary)
        else:
            lines = [report.message]
            lines.extend(
                f"\t{sources.location(report.phase, lb.span)}: {lb.text}" for lb in report.labels
            )
        if report.note:
            lines.extend(f"\tnote: {n}" for n in report.note.splitlines())
        return "\n".join(lines)


_SEVERITY_COLOR = {
    Severity.ERROR: "\033[1;31m",  # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
}


@dataclass(frozen=True, slots=True)
class RichRenderer:
    """Compiler-style output: header, location, then one excerpt per label.

    Example (plain, no color):
        error: Shift/Reduce
          --> grammar.y:3:1
          |
        3 | Expr: Expr '+' Expr
          | ^^^^ Reduced rule
    """

    color: bool = False

    def render(self, reports: Sequence[DiagnosticReport], sources: SourceMap | None = None) -> str:
        sources = sources if sources is not None else SourceMap()
        return "\n\n".join(self.render_one(r, sources) for r in reports)

    def render_one(self, report: DiagnosticReport, sources: SourceMap) -> str:
        reset = "\033[0m" if self.color else ""
        bold = "\033[1m" if self.color else ""
        blue = "\033[94m" if self.color else ""
        level = _SEVERITY_COLOR[report.severity] if self.color else ""

        lines = [f"{level}{report.severity.value}{reset}: {bold}{report.message}{reset}"]
        primary = report.primary
        if primary is not None and primary.span is not None:
            lines.append(f"  {blue}-->{reset} {sources.location(report.phase, primary.span)}")

        resolved = [(lb, sources.resolve(report.phase, lb.span)) for lb in report.labels]
        width = max((len(str(lc[0])) for _, lc in resolved if lc is not None), default=1)
        gutter = " " * width
        sf = sources.get(report.phase)
        if sf is not None and any(lc is not None for _, lc in resolved):
            lines.append(f"{gutter} {blue}|{reset}")

        for i, (lb, lc) in enumerate(resolved):
            if lb.span is None:
                lines.append(f"{gutter} {blue}={reset} {lb.text}")
                continue
            if lc is None or sf is None:
                lines.append(
                    f"{gutter} {blue}={reset} {sources.location(report.phase, lb.span)}: {lb.text}"
                )
                continue
            line, col = lc
            src_line = sf.newlines.line_text(line)
            lines.append(f"{blue}{line:>{width}} |{reset} {src_line}")
            # Underline at least one column, never past the end of the line.
            length = max(1, min(len(lb.span), len(src_line) - (col - 1)))
            mark = ("^" if i == 0 else "-") * length
            mark_color = level if i == 0 else blue
            text = f" {lb.text}" if lb.text else ""
            lines.append(f"{gutter} {blue}|{reset} {' ' * (col - 1)}{mark_color}{mark}{text}{reset}")

        if report.note:
            lines.extend(f"{gutter} {blue}={reset} note: {n}" for n in report.note.splitlines())
        return "\n".join(lines)


def make_renderer(fmt: OutputFormat | str = OutputFormat.PLAIN, *, color: bool = False) -> Renderer:
    fmt = OutputFormat(fmt)
    if fmt is OutputFormat.RICH:
        return RichRenderer(color=color)
    return PlainTextRenderer()
