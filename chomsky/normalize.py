"""Conversion of context-free grammars to Chomsky Normal Form.

The conversion runs in three stages, each a pure function from one grammar to
a new one:

1. `remove_epsilon` drops empty productions, adding every variant of a rule
   with some nullable variables left out.
2. `remove_units` replaces chains of `A -> B` rules by copies of the non-unit
   rules reachable through them.
3. `binarize` moves terminals of long rules into wrapper variables and splits
   every remaining rule into pairs.
"""

import itertools as it
import logging
from collections import defaultdict, deque
from pathlib import Path

import networkx as nx
from matplotlib import pyplot as plt

from chomsky.grammar import (
    WRAPPER_PREFIX,
    Grammar,
    GrammarInvariantError,
    Production,
    Term,
    Var,
)

log = logging.getLogger(Path(__file__).stem)


def powerset(iterable):
    s = list(iterable)
    return it.chain.from_iterable(it.combinations(s, r) for r in range(len(s) + 1))


def nullable(grammar: Grammar) -> frozenset[Var]:
    """Returns the variables that derive the empty string."""
    nullable_set: set[Var] = set()

    is_changing = True
    while is_changing:
        is_changing = False
        for rule in grammar.productions:
            if rule.lhs in nullable_set:
                continue
            # An empty right-hand side passes trivially
            if all(isinstance(s, Var) and s in nullable_set for s in rule.rhs):
                nullable_set.add(rule.lhs)
                is_changing = True

    return frozenset(nullable_set)


def remove_epsilon(grammar: Grammar, nullable_set: frozenset[Var] | None = None) -> Grammar:
    if nullable_set is None:
        nullable_set = nullable(grammar)
    log.debug(f"Nullable variables: {sorted(nullable_set)}")

    rules = set()
    for rule in grammar.productions:
        positions = [i for i, s in enumerate(rule.rhs) if s in nullable_set]
        for dropped in map(set, powerset(positions)):
            rhs = tuple(s for i, s in enumerate(rule.rhs) if i not in dropped)
            if rhs:
                rules.add(Production(rule.lhs, rhs))

    result = grammar.derive(
        rules,
        derives_empty=grammar.derives_empty or grammar.start in nullable_set,
    )
    log.debug(f"Epsilon elimination: {len(grammar.productions)} -> {len(rules)} productions")
    return result


def unit_graph(grammar: Grammar) -> nx.DiGraph:
    """Returns the graph with an edge `A -> B` for every unit production."""
    graph = nx.DiGraph()
    graph.add_nodes_from(grammar.variables)
    for rule in grammar.productions:
        if rule.is_unit():
            graph.add_edge(rule.lhs, rule.rhs[0])
    return graph


def unit_pairs(grammar: Grammar) -> frozenset[tuple[Var, Var]]:
    """Returns every pair (A, B) such that A derives B through unit rules.

    The relation is reflexive: (A, A) is present for every variable, even
    one without a unit rule back to itself.
    """
    graph = unit_graph(grammar)
    pairs = set()

    for var in graph.nodes:
        visited = {var}
        queue = deque([var])
        while queue:
            current = queue.popleft()
            pairs.add((var, current))
            for target in graph.successors(current):
                if target not in visited:
                    visited.add(target)
                    queue.append(target)

    return frozenset(pairs)


def remove_units(grammar: Grammar) -> Grammar:
    non_unit = defaultdict(list)
    for rule in grammar.productions:
        if not rule.is_unit():
            non_unit[rule.lhs].append(rule.rhs)

    rules = {rule for rule in grammar.productions if not rule.is_unit()}
    for a, b in unit_pairs(grammar):
        for rhs in non_unit[b]:
            rules.add(Production(a, rhs))

    log.debug(f"Unit elimination: {len(grammar.productions)} -> {len(rules)} productions")
    return grammar.derive(rules)


def binarize(grammar: Grammar) -> Grammar:
    taken = {v.name for v in grammar.variables}
    wrappers: dict[Term, Var] = {}
    counter = grammar
    rules = set()

    def new_var() -> Var:
        nonlocal counter
        var, counter = counter.fresh_var(taken)
        taken.add(var.name)
        return var

    def wrap(term: Term) -> Var:
        if term not in wrappers:
            name = f"{WRAPPER_PREFIX}{term.value}"
            if name in taken:
                var = new_var()
            else:
                var = Var(name)
                taken.add(name)
            wrappers[term] = var
            rules.add(Production(var, (term,)))
        return wrappers[term]

    # Sorted so that fresh names do not depend on set iteration order
    for rule in grammar.sorted():
        if rule.is_epsilon() or rule.is_unit():
            raise GrammarInvariantError(f"cannot binarize {rule}")
        if rule.is_terminal():
            rules.add(rule)
            continue

        rhs = [wrap(s) if isinstance(s, Term) else s for s in rule.rhs]
        while len(rhs) > 2:
            var = new_var()
            rules.add(Production(var, rhs[-2:]))
            rhs[-2:] = [var]
        rules.add(Production(rule.lhs, rhs))

    log.debug(
        f"Binarization: {len(grammar.productions)} -> {len(rules)} productions, "
        f"{len(wrappers)} terminal wrappers"
    )
    return grammar.derive(rules, next_id=counter.next_id)


def is_cnf(grammar: Grammar) -> bool:
    return all(p.is_terminal() or p.is_binary() for p in grammar.productions)


def to_cnf(grammar: Grammar) -> Grammar:
    cnf = binarize(remove_units(remove_epsilon(grammar)))
    if not is_cnf(cnf):
        raise GrammarInvariantError("conversion produced a grammar outside CNF")
    log.info(
        f"Converted {len(grammar.productions)} productions to "
        f"{len(cnf.productions)} in CNF"
    )
    return cnf


def draw_unit_graph(grammar: Grammar, path) -> nx.DiGraph:
    graph = unit_graph(grammar)
    pos = nx.circular_layout(graph)

    fig, ax = plt.subplots()
    nx.draw(graph, pos, ax=ax, arrows=True, node_shape="o", node_size=1500, alpha=0.4)
    nx.draw_networkx_labels(graph, pos, ax=ax, labels={v: v.name for v in graph.nodes})
    fig.savefig(path)
    plt.close(fig)

    return graph
