from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace

from .api import check_files
from .config import DiagnosticsConfig
from .errors import DiagnosticsFailed
from .render import OutputFormat


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="grmdiag", description="Check a lexer/grammar pair for LR conflicts")
    ap.add_argument("lexer", help="Lexer specification (.l)")
    ap.add_argument("grammar", help="Grammar specification (.y)")
    ap.add_argument(
        "--warnings-are-errors",
        action="store_true",
        default=None,
        help="Fail the check when only warnings were found",
    )
    ap.add_argument(
        "--format",
        choices=[f.value for f in OutputFormat],
        default=None,
        help="Diagnostic output format (default: plain)",
    )
    ap.add_argument("--color", action="store_true", default=None, help="Use ANSI colors in rich output")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log build progress")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = DiagnosticsConfig.from_env()
    except ValueError as e:
        ap.error(str(e))
    overrides: dict[str, object] = {}
    if args.warnings_are_errors is not None:
        overrides["warnings_are_errors"] = True
    if args.format is not None:
        overrides["output_format"] = OutputFormat(args.format)
    if args.color is not None:
        overrides["color"] = True
    config = replace(config, **overrides)

    try:
        res = check_files(args.lexer, args.grammar, config=config)
    except DiagnosticsFailed as e:
        print(e.body, file=sys.stderr)
        return 1

    print(
        f"{args.grammar}: {len(res.grammar.rules)} rules, "
        f"{len(res.grammar.prods)} productions, {res.table.n_states} states"
    )
    return 0
