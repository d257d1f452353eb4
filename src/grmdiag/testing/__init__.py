from __future__ import annotations

from .grammars import generate_grammar_sources

__all__ = ["generate_grammar_sources"]
