from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .render import OutputFormat, Renderer, make_renderer


_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def _flag(environ: Mapping[str, str], key: str, default: bool) -> bool:
    raw = environ.get(key)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in _TRUTHY:
        return True
    if v in _FALSY:
        return False
    raise ValueError(f"{key}: expected a boolean, got {raw!r}")


@dataclass(frozen=True, slots=True)
class DiagnosticsConfig:
    """Settings of one build's diagnostics.

    `allow_missing_terms_in_lexer` / `allow_missing_tokens_in_parser` turn the
    corresponding missing-token report into a warning instead of an error.
    """

    warnings_are_errors: bool = False
    output_format: OutputFormat = OutputFormat.PLAIN
    color: bool = False
    allow_missing_terms_in_lexer: bool = False
    allow_missing_tokens_in_parser: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "DiagnosticsConfig":
        env = os.environ if environ is None else environ
        fmt = env.get("GRMDIAG_FORMAT", "").strip().lower()
        try:
            output_format = OutputFormat(fmt) if fmt else OutputFormat.PLAIN
        except ValueError:
            raise ValueError(f"GRMDIAG_FORMAT: unknown output format {fmt!r}") from None
        return cls(
            warnings_are_errors=_flag(env, "GRMDIAG_WARNINGS_ARE_ERRORS", False),
            output_format=output_format,
            color=_flag(env, "GRMDIAG_COLOR", False),
        )

    def renderer(self) -> Renderer:
        return make_renderer(self.output_format, color=self.color)
