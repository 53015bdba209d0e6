from chomsky.cyk import cyk_table, recognize, require_cnf, table_frame
from chomsky.grammar import (
    Grammar,
    GrammarError,
    GrammarInvariantError,
    GrammarSyntaxError,
    NotCNFError,
    Production,
    Term,
    UnexpectedEOF,
    Var,
    format_grammar,
    read_grammar,
)
from chomsky.normalize import (
    binarize,
    is_cnf,
    nullable,
    remove_epsilon,
    remove_units,
    to_cnf,
    unit_pairs,
)
