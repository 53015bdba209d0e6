"""CYK membership test for grammars in Chomsky Normal Form."""

import logging
from collections import defaultdict
from pathlib import Path
from typing import Iterable

import pandas as pd

from chomsky.grammar import Grammar, NotCNFError, Term, Var

log = logging.getLogger(Path(__file__).stem)

MATH_NA = "∅"

Table = list[list[set[Var]]]


def terminal_index(grammar: Grammar) -> dict[Term, set[Var]]:
    index = defaultdict(set)
    for rule in grammar.productions:
        if rule.is_terminal():
            index[rule.rhs[0]].add(rule.lhs)
    return index


def pair_index(grammar: Grammar) -> dict[tuple[Var, Var], set[Var]]:
    index = defaultdict(set)
    for rule in grammar.productions:
        if rule.is_binary():
            index[rule.rhs].add(rule.lhs)
    return index


def require_cnf(grammar: Grammar):
    for rule in grammar.sorted():
        if not (rule.is_terminal() or rule.is_binary()):
            raise NotCNFError(f"grammar is not in CNF: {rule}")


def as_terminals(word: str | Iterable[Term]) -> list[Term]:
    return [Term(c) if isinstance(c, str) else c for c in word]


def cyk_table(grammar: Grammar, word: str | Iterable[Term]) -> Table:
    """Fills the CYK table for `word`.

    `table[i][j]` holds the variables deriving the symbols from position `i`
    to position `j` inclusive. Cells below the diagonal stay empty.
    """
    word = as_terminals(word)
    n = len(word)
    by_terminal = terminal_index(grammar)
    by_pair = pair_index(grammar)

    table = [[set() for _ in range(n)] for _ in range(n)]
    for i, a in enumerate(word):
        table[i][i] = set(by_terminal.get(a, ()))

    for d in range(1, n):
        for i in range(n - d):
            j = i + d
            cell = table[i][j]
            for k in range(i, j):
                for b in table[i][k]:
                    for c in table[k + 1][j]:
                        cell |= by_pair.get((b, c), set())
        log.debug(f"Filled spans of length {d + 1}")

    return table


def recognize(grammar: Grammar, word: str | Iterable[Term]) -> bool:
    word = as_terminals(word)
    if not word:
        return grammar.derives_empty

    table = cyk_table(grammar, word)
    return grammar.start in table[0][-1]


def table_frame(table: Table, word: str | Iterable[Term]) -> pd.DataFrame:
    """Returns the table as a DataFrame, rows by start and columns by end."""
    word = as_terminals(word)
    labels = [f"{i}:{a}" for i, a in enumerate(word)]

    records = []
    for i, row in enumerate(table):
        record = {}
        for j, cell in enumerate(row):
            if j < i:
                record[labels[j]] = ""
            elif cell:
                record[labels[j]] = " ".join(v.name for v in sorted(cell))
            else:
                record[labels[j]] = MATH_NA
        records.append(record)

    df = pd.DataFrame.from_records(records, columns=labels)
    df.index = labels
    return df
