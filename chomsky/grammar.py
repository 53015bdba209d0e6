import logging
from dataclasses import dataclass, field, replace
from functools import cached_property
from pathlib import Path
from typing import Iterable, Self, TextIO

log = logging.getLogger(Path(__file__).stem)

FRESH_PREFIX = "C"
WRAPPER_PREFIX = "T"


class GrammarError(Exception):
    pass


class GrammarSyntaxError(GrammarError, ValueError):
    def __init__(self, message: str, line: int | None = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class UnexpectedEOF(GrammarSyntaxError):
    def __init__(self, line: int | None = None):
        super().__init__("unexpected end of input", line)


class NotCNFError(GrammarError):
    """Raised when a grammar handed to the recognizer is not in CNF."""


class GrammarInvariantError(GrammarError, AssertionError):
    """A normalization stage produced or received a grammar it must never see."""


@dataclass(frozen=True, slots=True)
class Term:
    value: str

    def __lt__(self, other: "Symbol") -> bool:
        if isinstance(other, Var):
            return True
        return self.value < other.value

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Var:
    name: str

    def __lt__(self, other: "Symbol") -> bool:
        if isinstance(other, Term):
            return False
        return self.name < other.name

    def __str__(self) -> str:
        return f"<{self.name}>"


Symbol = Term | Var


@dataclass(frozen=True, slots=True)
class Production:
    lhs: Var
    rhs: tuple[Symbol, ...] = ()

    def __post_init__(self):
        # Callers often hand in lists.
        object.__setattr__(self, "rhs", tuple(self.rhs))

    def __lt__(self, other: Self) -> bool:
        return (self.lhs, self.rhs) < (other.lhs, other.rhs)

    def is_epsilon(self) -> bool:
        return not self.rhs

    def is_unit(self) -> bool:
        return len(self.rhs) == 1 and isinstance(self.rhs[0], Var)

    def is_terminal(self) -> bool:
        return len(self.rhs) == 1 and isinstance(self.rhs[0], Term)

    def is_binary(self) -> bool:
        return len(self.rhs) == 2 and all(isinstance(s, Var) for s in self.rhs)

    def __str__(self) -> str:
        return f"{self.lhs}:{''.join(map(str, self.rhs))}"


@dataclass(frozen=True)
class Grammar:
    """A start variable plus a set of productions.

    `next_id` is the counter behind `fresh_var`; it only ever grows.
    `derives_empty` remembers whether the start symbol of the grammar this
    one was derived from could produce the empty string. Epsilon
    elimination loses that fact, so it is carried along explicitly.
    """

    start: Var
    productions: frozenset[Production] = field(default_factory=frozenset)
    next_id: int = 0
    derives_empty: bool = False

    def __post_init__(self):
        object.__setattr__(self, "productions", frozenset(self.productions))

    @classmethod
    def from_rules(cls, start: Var, rules: Iterable[Production], **kwargs) -> Self:
        return cls(start=start, productions=frozenset(rules), **kwargs)

    def derive(self, rules: Iterable[Production], **changes) -> Self:
        """Returns a new grammar with the same start symbol and bookkeeping."""
        return replace(self, productions=frozenset(rules), **changes)

    @cached_property
    def variables(self) -> frozenset[Var]:
        s = {self.start}
        for p in self.productions:
            s.add(p.lhs)
            s.update(v for v in p.rhs if isinstance(v, Var))
        return frozenset(s)

    @cached_property
    def terminals(self) -> frozenset[Term]:
        return frozenset(
            t for p in self.productions for t in p.rhs if isinstance(t, Term)
        )

    def rules_for(self, lhs: Var) -> list[Production]:
        return sorted(p for p in self.productions if p.lhs == lhs)

    def sorted(self) -> list[Production]:
        return sorted(self.productions)

    def fresh_var(self, taken: frozenset[str] | set[str] | None = None) -> tuple[Var, Self]:
        """Returns an unused variable and the grammar with its counter advanced.

        Names listed in `taken` are skipped along with every variable already
        in the grammar.
        """
        if taken is None:
            taken = {v.name for v in self.variables}
        n = self.next_id
        while f"{FRESH_PREFIX}{n}" in taken:
            n += 1
        return Var(f"{FRESH_PREFIX}{n}"), replace(self, next_id=n + 1)

    def __str__(self) -> str:
        return format_grammar(self)


def read_symbol(c: str, line: int | None = None) -> Symbol:
    if c.isalpha():
        return Var(c)
    if c.isspace():
        raise GrammarSyntaxError(f"unexpected whitespace {c!r}", line)
    return Term(c)


def read_production(text: str, line: int | None = None) -> Production:
    if not text:
        raise UnexpectedEOF(line)

    lhs, sep, rhs = text[0], text[1:2], text[2:]
    if not lhs.isalpha():
        raise GrammarSyntaxError(f"expected a variable, got {lhs!r}", line)
    if sep != ":":
        raise GrammarSyntaxError("expected ':'", line)

    return Production(Var(lhs), [read_symbol(c, line) for c in rhs])


def read_grammar_prefix(text: str) -> tuple[Grammar, str]:
    """Reads a grammar from the head of `text` and returns it with the rest.

    The format is a production count followed by that many `<Var>:<rhs>`
    lines. Blank lines between productions are skipped. The left-hand side
    of the first production becomes the start symbol.
    """
    lines = text.splitlines(keepends=True)
    i = 0

    while i < len(lines) and not lines[i].strip():
        i += 1
    if i == len(lines):
        raise UnexpectedEOF(i + 1)

    head, _, tail = lines[i].strip().partition(" ")
    try:
        count = int(head)
    except ValueError:
        raise GrammarSyntaxError(f"expected a production count, got {head!r}", i + 1) from None
    if count <= 0:
        raise GrammarSyntaxError(f"production count must be positive, got {count}", i + 1)
    if tail.strip():
        # Anything after the count on its line belongs to the first production.
        lines[i] = tail.lstrip()
    else:
        i += 1

    rules = []
    while len(rules) < count:
        while i < len(lines) and not lines[i].strip():
            i += 1
        if i == len(lines):
            raise UnexpectedEOF(i + 1)
        rules.append(read_production(lines[i].strip(), i + 1))
        i += 1

    grammar = Grammar.from_rules(rules[0].lhs, rules)
    log.debug(f"Read {count} productions, start symbol {grammar.start}")
    return grammar, "".join(lines[i:])


def read_grammar(text: str) -> Grammar:
    grammar, _ = read_grammar_prefix(text)
    return grammar


def read_grammar_file(stream: TextIO) -> Grammar:
    return read_grammar(stream.read())


def format_grammar(grammar: Grammar) -> str:
    rules = grammar.sorted()
    lines = [str(len(rules))]
    lines += [str(p) for p in rules if p.lhs == grammar.start]
    lines += [str(p) for p in rules if p.lhs != grammar.start]
    return "\n".join(lines) + "\n"
