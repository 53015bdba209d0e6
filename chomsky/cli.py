"""Command-line programs: CYK membership and CNF conversion.

Both programs read a grammar from standard input, a production count
followed by that many `<Var>:<rhs>` lines. `chomsky-cyk` then reads one
whitespace-delimited word and prints `Yes` or `No`.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import TextIO

from chomsky.cyk import cyk_table, recognize, require_cnf, table_frame
from chomsky.grammar import (
    GrammarSyntaxError,
    NotCNFError,
    format_grammar,
    read_grammar_file,
    read_grammar_prefix,
)
from chomsky.normalize import draw_unit_graph, remove_epsilon, to_cnf

log = logging.getLogger(Path(__file__).stem)


def configure_logging(verbosity: int):
    level = [logging.WARNING, logging.INFO, logging.DEBUG][min(verbosity, 2)]
    logging.basicConfig(level=level, format="%(name)s: %(message)s")


def add_verbosity(parser: argparse.ArgumentParser):
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="log pipeline progress (repeat for debug output)",
    )


def parse_cyk_args(argv: list[str] | None) -> tuple[argparse.ArgumentParser, argparse.Namespace]:
    parser = argparse.ArgumentParser(
        prog="chomsky-cyk",
        description="Decide whether a word belongs to the language of a grammar",
    )
    parser.add_argument(
        "mode", nargs="?", choices=["+"],
        help="'+' converts the grammar to CNF first (same as --convert)",
    )
    parser.add_argument(
        "-c", "--convert", action="store_true",
        help="convert the grammar to CNF instead of requiring CNF input",
    )
    parser.add_argument(
        "-t", "--table", action="store_true",
        help="print the CYK table before the answer",
    )
    add_verbosity(parser)
    return parser, parser.parse_args(argv)


def cyk_main(argv: list[str] | None = None, stdin: TextIO | None = None) -> int:
    parser, args = parse_cyk_args(argv)
    configure_logging(args.verbose)

    try:
        grammar, rest = read_grammar_prefix((stdin or sys.stdin).read())
    except GrammarSyntaxError as e:
        print(f"{parser.prog}: {e}", file=sys.stderr)
        return 1

    words = rest.split()
    word = words[0] if words else ""
    log.info(f"Input word: {word!r}")

    if args.convert or args.mode == "+":
        grammar = to_cnf(grammar)
    else:
        try:
            require_cnf(grammar)
        except NotCNFError as e:
            parser.error(f"{e} (pass '+' to convert it)")

    if args.table and word:
        print(table_frame(cyk_table(grammar, word), word))
        print()

    print("Yes" if recognize(grammar, word) else "No")
    return 0


def parse_cnf_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="chomsky-cnf",
        description="Convert a context-free grammar to Chomsky Normal Form",
    )
    parser.add_argument(
        "-p", "--plot", type=Path, metavar="PATH",
        help="draw the unit production graph of the epsilon-free grammar to PATH",
    )
    add_verbosity(parser)
    return parser.parse_args(argv)


def cnf_main(argv: list[str] | None = None, stdin: TextIO | None = None) -> int:
    args = parse_cnf_args(argv)
    configure_logging(args.verbose)

    try:
        grammar = read_grammar_file(stdin or sys.stdin)
    except GrammarSyntaxError as e:
        print(f"chomsky-cnf: {e}", file=sys.stderr)
        return 1

    if args.plot:
        draw_unit_graph(remove_epsilon(grammar), args.plot)
        log.info(f"Unit graph written to {args.plot}")

    print(format_grammar(to_cnf(grammar)), end="")
    return 0


if __name__ == "__main__":
    sys.exit(cyk_main())
