"""
neighbours_core.py

Core data structures and operations for navigating the Hasse diagram of
monotone Boolean functions.

This module implements the function lattice using the following encoding:
- Clauses are bit-vectors over a fixed universe of n variables (a conjunction
  of the variables whose bits are set)
- Formulas are antichains of clauses (the prime-implicant normal form of a
  monotone function)
- The power set graph is the Hasse diagram of all non-empty clauses, stored
  as a NetworkX DiGraph with edges from each clause to its direct subsets

Formulas are ordered by logical implication. A formula is consistent when its
clauses are pairwise independent and every variable appears in some clause.

Author: Ported from the function neighbours GUI
"""

import re
import sys
import warnings
from collections import namedtuple

import networkx as nx
from tqdm import tqdm


# ============================================================================
# SECTION 0: CONFIGURATION
# ============================================================================

DEFAULT_DIMENSION = 4
DEFAULT_FUNCTION = "{{1,2,3},{1,3,4},{2,4}}"

# The power set graph has 2^n - 1 nodes; beyond this it stops being practical
PRACTICAL_DIMENSION_LIMIT = 8

# Number of consistent (non-degenerate) monotone functions for small n
KNOWN_LATTICE_SIZES = {
    1: 1,
    2: 2,
    3: 9,
    4: 114,
    5: 6894,
    6: 7785062,
    7: 2414627396434,
    8: 56130437209370320359966,
}

_CLAUSE_RE = re.compile(r"\{[^{}]*\}")


# ============================================================================
# SECTION 1: CLAUSES
# ============================================================================

class Clause:
    """
    A clause: an immutable bit-vector of fixed width.

    Bit i is set iff variable i+1 takes part in the clause. Clauses compare
    by dominance (subset inclusion of their bits):
    - A dominates-or-equals B iff every bit set in B is also set in A
    - A and B are independent iff neither dominates the other

    The clause with all bits set is the unique top element. Equality and
    hashing are structural, so clauses can be shared freely between
    formulas and graph nodes.
    """

    def __init__(self, width, signature):
        """
        Create a clause.

        Args:
            width: Number of variables in the universe (>= 1)
            signature: int bit mask of the variables in the clause

        Raises:
            ValueError: if width < 1 or a set bit lies beyond width
        """
        if isinstance(width, bool) or not isinstance(width, int):
            raise TypeError(f"Clause width must be an int, got {type(width).__name__}")
        if width < 1:
            raise ValueError(f"Clause width must be at least 1, got {width}")
        if isinstance(signature, bool) or not isinstance(signature, int):
            raise TypeError(f"Clause signature must be an int, got {type(signature).__name__}")
        if signature < 0:
            raise ValueError(f"Clause signature must be non-negative, got {signature}")
        if signature >> width:
            raise ValueError(
                f"Clause signature {signature:b} has bits set beyond width {width}"
            )
        self.width = width
        self.signature = signature

    @classmethod
    def top(cls, width):
        """Return the clause with all `width` bits set."""
        return cls(width, (1 << width) - 1)

    @classmethod
    def from_indices(cls, width, indices):
        """
        Create a clause from 0-based variable indices.

        Args:
            width: Number of variables
            indices: iterable of ints in range(width)

        Returns:
            Clause
        """
        signature = 0
        for i in indices:
            if i < 0 or i >= width:
                raise ValueError(f"Variable index {i} out of range for width {width}")
            signature |= 1 << i
        return cls(width, signature)

    @classmethod
    def from_string(cls, width, string):
        """
        Parse a clause from its textual form: '{1,3,4}'.

        Indices are 1-based and comma separated. Whitespace is ignored.

        Raises:
            ValueError: on a malformed clause or an index outside 1..width
        """
        string = string.strip()
        if len(string) < 2 or string[0] != '{' or string[-1] != '}':
            raise ValueError(f"Clause must be enclosed in braces: {string!r}")

        body = string[1:-1].strip()
        if not body:
            raise ValueError("Empty clause not allowed")

        indices = []
        for token in body.split(','):
            token = token.strip()
            try:
                var = int(token)
            except ValueError:
                raise ValueError(f"Invalid variable '{token}' in clause {string!r}") from None
            if var < 1 or var > width:
                raise ValueError(
                    f"Variable {var} in clause {string!r} out of range 1..{width}"
                )
            indices.append(var - 1)
        return cls.from_indices(width, indices)

    def order(self):
        """Number of variables in the clause (cardinality of the set bits)."""
        return bin(self.signature).count("1")

    def variables(self):
        """Sorted tuple of the 1-based variables in the clause."""
        return tuple(i + 1 for i in range(self.width) if self.signature >> i & 1)

    def is_set(self, pos):
        return 0 <= pos < self.width and bool(self.signature >> pos & 1)

    def is_top(self):
        return self.signature == (1 << self.width) - 1

    def dominates_or_equal_to(self, other):
        """Return True if every bit of `other` is also set in this clause."""
        return other.signature & self.signature == other.signature

    def dominates_strictly(self, other):
        return self.signature != other.signature and self.dominates_or_equal_to(other)

    def dominated_or_equal_to(self, other):
        return other.dominates_or_equal_to(self)

    def dominated_strictly(self, other):
        return other.dominates_strictly(self)

    def is_independent(self, other):
        """
        Check independence against a clause or a collection of clauses.

        Args:
            other: Clause, or an iterable of Clauses

        Returns:
            For a Clause: True if neither clause dominates the other.
            For an iterable: True if independent of every member.
        """
        if isinstance(other, Clause):
            return (not self.dominates_or_equal_to(other)
                    and not other.dominates_or_equal_to(self))
        return all(self.is_independent(c) for c in other)

    def contains(self, clauses):
        """True if this clause dominates-or-equals some member of `clauses`."""
        return any(self.dominates_or_equal_to(c) for c in clauses)

    def is_contained_in(self, clauses):
        """True if some member of `clauses` strictly dominates this clause."""
        return any(self.dominated_strictly(c) for c in clauses)

    def sort_key(self):
        return self.variables()

    def __repr__(self):
        return f"Clause({self.to_string()})"

    def __str__(self):
        return self.to_string()

    def __hash__(self):
        return hash((self.width, self.signature))

    def __eq__(self, other):
        if not isinstance(other, Clause):
            return False
        return self.width == other.width and self.signature == other.signature

    def to_string(self):
        """Convert clause to string: '{1,3,4}'"""
        return "{" + ",".join(str(v) for v in self.variables()) + "}"


# ============================================================================
# SECTION 2: POWER SET GRAPH
# ============================================================================

class PowerSetGraph:
    """
    The Hasse diagram of all non-empty subsets of {1..n}.

    Wraps a NetworkX DiGraph whose nodes are Clauses and whose edges go from
    a clause to each clause with exactly one bit fewer (its direct subsets).
    The graph has 2^n - 1 nodes and is built once, top-down, from the clause
    with all bits set. It is never modified after construction.
    """

    def __init__(self, nvars, verbose=False):
        """
        Build the power set graph.

        Args:
            nvars: Number of variables (>= 1)
            verbose: If True, print progress to stderr

        Raises:
            TypeError: if nvars is not an int
            ValueError: if nvars < 1
        """
        if isinstance(nvars, bool) or not isinstance(nvars, int):
            raise TypeError(f"Dimension must be an int, got {type(nvars).__name__}")
        if nvars < 1:
            raise ValueError(f"Dimension must be at least 1, got {nvars}")
        if nvars > PRACTICAL_DIMENSION_LIMIT:
            warnings.warn(
                f"Building a power set graph for n={nvars} ({2 ** nvars - 1} clauses); "
                f"n > {PRACTICAL_DIMENSION_LIMIT} is not practical",
                RuntimeWarning,
                stacklevel=2,
            )

        self.nvars = nvars
        self.top = Clause.top(nvars)
        self.graph = nx.DiGraph()
        self._build_graph(verbose)

    def _build_graph(self, verbose):
        """
        Compute the graph top-down with an explicit work stack.

        From each clause, its direct subsets are computed by clearing one set
        bit at a time. A clause reachable through several paths is expanded
        only once. Order-1 clauses have no subsets (the empty set is excluded).
        """
        expanded = set()
        stack = [self.top]
        self.graph.add_node(self.top)

        if verbose:
            print(f"Building power set graph for n={self.nvars}...", file=sys.stderr)
        with tqdm(total=2 ** self.nvars - 1, disable=not verbose) as progress:
            while stack:
                superset = stack.pop()
                if superset in expanded:
                    continue
                expanded.add(superset)
                progress.update(1)

                if superset.order() == 1:
                    continue
                for subset in self._compute_subsets(superset):
                    self.graph.add_edge(superset, subset)
                    if subset not in expanded:
                        stack.append(subset)

        if verbose:
            print(f"Power set graph built: {self.graph.number_of_nodes()} clauses, "
                  f"{self.graph.number_of_edges()} edges", file=sys.stderr)

    def _compute_subsets(self, clause):
        """List the clauses with exactly one bit fewer than `clause`."""
        return [
            Clause(self.nvars, clause.signature & ~(1 << i))
            for i in range(self.nvars)
            if clause.signature >> i & 1
        ]

    def _check_known(self, clause):
        if clause not in self.graph:
            raise ValueError(
                f"Unknown clause: {clause} is not in the power set graph for n={self.nvars}"
            )

    def __len__(self):
        return self.graph.number_of_nodes()

    def __contains__(self, clause):
        return clause in self.graph

    def all_clauses(self):
        """Return the frozenset of all clauses in the graph."""
        return frozenset(self.graph.nodes())

    def get_direct_subsets(self, clause):
        """Clauses with exactly one bit fewer than `clause`."""
        self._check_known(clause)
        return frozenset(self.graph.successors(clause))

    def get_direct_supersets(self, clause):
        """Clauses with exactly one bit more than `clause`."""
        self._check_known(clause)
        return frozenset(self.graph.predecessors(clause))

    def get_dominated(self, clause):
        """All clauses strictly dominated by `clause` (reachable downward)."""
        self._check_known(clause)
        return frozenset(nx.descendants(self.graph, clause))

    def get_dominant(self, clause):
        """All clauses strictly dominating `clause` (reachable upward)."""
        self._check_known(clause)
        return frozenset(nx.ancestors(self.graph, clause))

    def meet(self, first, second):
        """
        The meet operator on direct supersets.

        Returns the clause that is a direct superset of both `first` and
        `second`, or None if no such clause exists. Two different clauses
        share at most one direct superset.
        """
        if first == second:
            return None
        common = self.get_direct_supersets(first) & self.get_direct_supersets(second)
        return next(iter(common)) if common else None

    def get_independent(self, clauses):
        """
        Find every clause with no dominance relation to any of `clauses`.

        Collects all ancestors and descendants of the given clauses in the
        graph, then removes them and the clauses themselves from the full
        node set.

        Args:
            clauses: iterable of Clauses (nodes of this graph)

        Returns:
            frozenset of Clauses
        """
        clauses = frozenset(clauses)
        dependent = set()
        for clause in clauses:
            self._check_known(clause)
            dependent.update(nx.descendants(self.graph, clause))
            dependent.update(nx.ancestors(self.graph, clause))
        return self.all_clauses() - clauses - dependent

    @staticmethod
    def get_minimal(clauses):
        """Members of `clauses` that do not strictly dominate another member."""
        members = list(set(clauses))
        return frozenset(
            c for c in members
            if not any(c.dominates_strictly(other) for other in members)
        )

    @staticmethod
    def get_maximal(clauses):
        """Members of `clauses` not strictly dominated by another member."""
        members = list(set(clauses))
        return frozenset(
            c for c in members
            if not any(c.dominated_strictly(other) for other in members)
        )

    @staticmethod
    def no_superset(clauses, clause):
        """True if no member of `clauses` dominates-or-equals `clause`."""
        return not any(x.dominates_or_equal_to(clause) for x in clauses)

    @staticmethod
    def no_subset(clauses, clause):
        """True if `clause` dominates-or-equals no member of `clauses`."""
        return not any(clause.dominates_or_equal_to(x) for x in clauses)

    def hasse_edges(self):
        """
        Return edges for the Hasse diagram (covering relations).

        Returns list of (lower, upper) pairs where upper has exactly one bit
        more than lower.
        """
        return [(subset, superset) for superset, subset in self.graph.edges()]

    def to_string(self):
        lines = []
        for clause in sorted(self.graph.nodes(), key=Clause.sort_key):
            supersets = clauseset_to_string(self.graph.predecessors(clause))
            subsets = clauseset_to_string(self.graph.successors(clause))
            lines.append(f"{clause}\tSuper: {{{supersets}}}\tSub: {{{subsets}}}")
        return "\n".join(lines)


def clauseset_to_string(clauses):
    """Convert a set of clauses to comma-separated string: '{1,2},{3}'"""
    return ",".join(c.to_string() for c in sorted(clauses, key=Clause.sort_key))


# ============================================================================
# SECTION 3: FORMULAS
# ============================================================================

class Formula:
    """
    A monotone Boolean function as an antichain of clauses.

    The clause set is frozen; every derivation (clone_add, clone_remove,
    clone_replace) builds a new Formula and recomputes consistency from
    scratch. A formula is consistent when:
    - its clauses are pairwise independent, and
    - the union of their variables covers all nvars variables
    """

    def __init__(self, nvars, clauses):
        """
        Create a formula. Never fails; inconsistency is a property, not an error.

        Args:
            nvars: Number of variables
            clauses: iterable of Clauses (duplicates collapse)
        """
        self.nvars = nvars
        self.clauses = frozenset(clauses)

        self.var_represented = 0
        for clause in self.clauses:
            self.var_represented |= clause.signature

        self.consistent = self._independent_clauses() and self._all_vars_represented()

    def _independent_clauses(self):
        members = list(self.clauses)
        for i in range(len(members)):
            for j in range(i + 1, len(members)):
                if not members[i].is_independent(members[j]):
                    return False
        return True

    def _all_vars_represented(self):
        return self.var_represented == (1 << self.nvars) - 1

    def clone_add(self, clause):
        """Return a new formula with `clause` added."""
        return Formula(self.nvars, self.clauses | {clause})

    def clone_remove(self, clause):
        """Return a new formula without `clause`."""
        return Formula(self.nvars, self.clauses - {clause})

    def clone_replace(self, removed, added):
        """Return a new formula with `removed` clauses dropped and `added` ones included."""
        return Formula(self.nvars, (self.clauses - frozenset(removed)) | frozenset(added))

    def clone_sub(self):
        """Return the set of formulas obtained by dropping exactly one clause."""
        return {self.clone_remove(clause) for clause in self.clauses}

    def clauses_avg_length(self):
        if not self.clauses:
            return 0.0
        return sum(c.order() for c in self.clauses) / len(self.clauses)

    def is_smaller_than(self, other):
        """
        Check whether this formula implies `other`.

        True when every clause of this formula dominates-or-equals some
        clause of `other` (each of its implicants is covered by one of
        `other`'s).
        """
        return all(clause.contains(other.clauses) for clause in self.clauses)

    def __len__(self):
        return len(self.clauses)

    def __iter__(self):
        return iter(sorted(self.clauses, key=Clause.sort_key))

    def __contains__(self, clause):
        return clause in self.clauses

    def __repr__(self):
        return f"Formula({self.to_string()})"

    def __str__(self):
        return self.to_string()

    def __hash__(self):
        return hash((self.nvars, self.clauses))

    def __eq__(self, other):
        if not isinstance(other, Formula):
            return False
        return self.nvars == other.nvars and self.clauses == other.clauses

    def to_string(self):
        """Convert to string: '{{1,2,3},{1,3,4},{2,4}}'"""
        return "{" + clauseset_to_string(self.clauses) + "}"

    @classmethod
    def from_string(cls, nvars, string):
        """
        Parse from string: '{{1,2,3},{1,3,4},{2,4}}'

        One clause per inner brace group, one 1-based variable per comma
        separated token. Nothing is built unless the whole string parses.

        Raises:
            ValueError: on malformed input
        """
        string = string.strip()
        if len(string) < 2 or string[0] != '{' or string[-1] != '}':
            raise ValueError(f"Formula must be enclosed in braces: {string!r}")

        body = string[1:-1].strip()
        if not body:
            raise ValueError("Formula must contain at least one clause")

        groups = _CLAUSE_RE.findall(body)
        separators = [s.strip() for s in _CLAUSE_RE.split(body)]
        if (not groups or separators[0] or separators[-1]
                or any(sep != ',' for sep in separators[1:-1])):
            raise ValueError(f"Invalid formula format: {string!r}")

        return cls(nvars, [Clause.from_string(nvars, group) for group in groups])


# ============================================================================
# SECTION 4: HASSE DIAGRAM OF FORMULAS
# ============================================================================

Neighbourhood = namedtuple("Neighbourhood", ["parents", "siblings", "children"])


class HasseDiagram:
    """
    Direct neighbours of formulas in the function lattice.

    Holds one PowerSetGraph for a fixed number of variables and answers
    parent/child queries over formulas built from its clauses. Parents are
    more general formulas (implied by the given one), children are more
    specific ones.

    Lattice sizes grow quickly (see KNOWN_LATTICE_SIZES), so closures
    (ancestors, descendants) are only practical for small n.
    """

    def __init__(self, nvars, verbose=False):
        """
        Args:
            nvars: Number of variables (>= 1)
            verbose: If True, print progress to stderr
        """
        self.nvars = nvars
        self.verbose = verbose
        self.power_set = PowerSetGraph(nvars, verbose=verbose)
        # The most specific formula: every variable required
        self.bottom = Formula(nvars, [self.power_set.top])

    def get_size(self):
        return self.nvars

    def _repair(self, clauses, added):
        """Add clauses, dropping every clause that strictly dominates one of them."""
        kept = {c for c in clauses if not any(c.dominates_strictly(a) for a in added)}
        return Formula(self.nvars, kept | set(added))

    def get_formula_parents(self, formula, include_degenerate=False):
        """
        Compute the direct parents of a formula.

        Rule 1: adding a maximal clause independent of every clause of the
        formula.
        Rule 2: replacing the clauses that strictly dominate a maximal direct
        subset of some clause by that subset. When the result loses a
        variable, it is kept as a degenerate parent or, without
        include_degenerate, combined with one more rule 2 candidate.
        Without include_degenerate, results lying above another result are
        dropped.

        Args:
            formula: Formula
            include_degenerate: Whether to return inconsistent formulas

        Returns:
            set of Formulas
        """
        clauses = formula.clauses
        parents = set()

        # Rule 1
        independent = self.power_set.get_independent(clauses)
        for clause in self.power_set.get_maximal(independent):
            parent = formula.clone_add(clause)
            if parent.consistent or include_degenerate:
                parents.add(parent)

        # Rule 2
        dominated = set()
        for clause in clauses:
            dominated.update(self.power_set.get_direct_subsets(clause))
        candidates = sorted(
            (c for c in self.power_set.get_maximal(dominated)
             if not c.is_contained_in(independent)),
            key=Clause.sort_key,
        )

        for i, ci in enumerate(candidates):
            parent = self._repair(clauses, [ci])
            if parent.consistent or include_degenerate:
                parents.add(parent)
                continue
            for cj in candidates[i + 1:]:
                parent = self._repair(clauses, [ci, cj])
                if parent.consistent:
                    parents.add(parent)

        if not include_degenerate:
            # A pair repair can overshoot a single repair; keep only the
            # parents no other parent lies below
            parents = {g for g in parents
                       if not any(q != g and q.is_smaller_than(g) for q in parents)}

        return parents

    def get_formula_children(self, formula, include_degenerate=False):
        """
        Compute the direct children of a formula.

        Rule 3: dropping a clause that has no direct superset independent of
        the remaining clauses.
        Rule 4: dropping a clause and folding in all of its direct supersets
        independent of the remaining clauses. Without include_degenerate,
        pairs of clauses whose removal loses a variable are merged into their
        meet instead; with it, those inconsistent removals are returned as is.

        Args:
            formula: Formula
            include_degenerate: Whether to return inconsistent formulas

        Returns:
            set of Formulas
        """
        clauses = formula.clauses
        children = set()
        unresolved = []

        for clause in sorted(clauses, key=Clause.sort_key):
            remaining = clauses - {clause}
            if not remaining:
                continue
            independent = self.power_set.get_independent(remaining)

            # Rule 4
            if clause.is_contained_in(independent):
                supersets = self.power_set.get_direct_supersets(clause) & independent
                if supersets:
                    child = Formula(self.nvars, remaining | supersets)
                    if child.consistent or include_degenerate:
                        children.add(child)
                    continue

            # Rule 3
            child = Formula(self.nvars, remaining)
            if child.consistent or include_degenerate:
                children.add(child)
            else:
                unresolved.append(clause)

        if not include_degenerate:
            for i, ci in enumerate(unresolved):
                for cj in unresolved[i + 1:]:
                    meet = self.power_set.meet(ci, cj)
                    if meet is None:
                        continue
                    child = Formula(self.nvars, (clauses - {ci, cj}) | {meet})
                    if child.consistent:
                        children.add(child)

        return children

    def _closure(self, formula, neighbours, include_degenerate, label):
        explored = set()
        frontier = {formula}

        if self.verbose:
            print(f"Computing {label} of {formula}...", file=sys.stderr)
        with tqdm(disable=not self.verbose, unit=" formulas") as progress:
            while frontier:
                current = frontier.pop()
                explored.add(current)
                frontier |= neighbours(current, include_degenerate) - explored
                progress.update(1)

        if self.verbose:
            print(f"Found {len(explored)} formulas", file=sys.stderr)
        return explored

    def get_formula_ancestors(self, formula, include_degenerate=False):
        """
        All formulas reachable through parent edges, including `formula`.

        Returns:
            set of Formulas
        """
        return self._closure(formula, self.get_formula_parents, include_degenerate, "ancestors")

    def get_formula_descendants(self, formula, include_degenerate=False):
        """
        All formulas reachable through child edges, including `formula`.

        Returns:
            set of Formulas
        """
        return self._closure(formula, self.get_formula_children, include_degenerate, "descendants")

    def get_formula_siblings(self, formula, include_degenerate=False,
                             parents=None, children=None):
        """
        Parents of every child together with children of every parent.

        Already computed parents/children can be passed in to avoid
        recomputing them.

        Returns:
            set of Formulas, never containing `formula` itself
        """
        if parents is None:
            parents = self.get_formula_parents(formula, include_degenerate)
        if children is None:
            children = self.get_formula_children(formula, include_degenerate)

        siblings = set()
        for child in children:
            siblings |= self.get_formula_parents(child, include_degenerate)
        for parent in parents:
            siblings |= self.get_formula_children(parent, include_degenerate)
        siblings.discard(formula)
        return siblings

    def get_neighbourhood(self, formula, parents=True, siblings=True, children=True,
                          include_degenerate=False):
        """
        Compute the requested neighbour sets of a formula.

        Parents and children are computed whenever siblings are requested,
        since siblings are derived from them; only the requested sets are
        returned (the others are empty).

        Returns:
            Neighbourhood(parents, siblings, children)
        """
        f_parents = set()
        if parents or siblings:
            f_parents = self.get_formula_parents(formula, include_degenerate)
        f_children = set()
        if children or siblings:
            f_children = self.get_formula_children(formula, include_degenerate)
        f_siblings = set()
        if siblings:
            f_siblings = self.get_formula_siblings(
                formula, include_degenerate, parents=f_parents, children=f_children
            )

        return Neighbourhood(
            parents=f_parents if parents else set(),
            siblings=f_siblings,
            children=f_children if children else set(),
        )


# ============================================================================
# SECTION 5: COVER GRAPHS
# ============================================================================

def build_cover_graph(hasse, formulas, include_degenerate=False):
    """
    Build the covering relation restricted to a set of formulas.

    Args:
        hasse: HasseDiagram
        formulas: iterable of Formulas
        include_degenerate: Passed on to the parent computation

    Returns:
        NetworkX DiGraph with an edge g -> h whenever h is a direct parent of g
    """
    nodes = set(formulas)
    G = nx.DiGraph()
    G.add_nodes_from(nodes)
    for formula in nodes:
        for parent in hasse.get_formula_parents(formula, include_degenerate):
            if parent in nodes:
                G.add_edge(formula, parent)
    return G


# ============================================================================
# SECTION 6: CONVENIENCE FUNCTIONS
# ============================================================================

def parse_formula(nvars, string):
    """Parse a formula string for the given number of variables."""
    return Formula.from_string(nvars, string)


def format_formula(formula):
    return formula.to_string()


def format_formulas(formulas):
    """
    Render a collection of formulas as a sorted list of strings.

    Sorted by number of clauses, then text, so output does not depend on
    set iteration order.
    """
    return [f.to_string() for f in sorted(formulas, key=lambda f: (len(f), f.to_string()))]
