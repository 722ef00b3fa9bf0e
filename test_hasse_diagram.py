"""Tests for neighbours_core.HasseDiagram: direct neighbours and closures.

The n=3 lattice is small enough to check exhaustively: 9 consistent
functions, from {{1,2,3}} (every variable required) up to {{1},{2},{3}}.
"""

from itertools import combinations

import networkx as nx
import pytest

from neighbours_core import (
    KNOWN_LATTICE_SIZES, Clause, Formula, HasseDiagram, build_cover_graph
)


def F(nvars, text):
    return Formula.from_string(nvars, text)


def Fs(nvars, *texts):
    return {F(nvars, t) for t in texts}


LATTICE_3 = [
    "{{1,2,3}}",
    "{{1,2},{1,3}}", "{{1,2},{2,3}}", "{{1,3},{2,3}}",
    "{{1,2},{1,3},{2,3}}",
    "{{1},{2,3}}", "{{2},{1,3}}", "{{3},{1,2}}",
    "{{1},{2},{3}}",
]


class TestDefaultScenario:
    """n=4, f = {{1,2,3},{1,3,4},{2,4}}."""

    def test_parents(self, hasse4, default_formula):
        parents = hasse4.get_formula_parents(default_formula)
        assert parents == Fs(4,
                             "{{1,2},{1,3,4},{2,4}}",
                             "{{1,3},{2,4}}",
                             "{{2,3},{1,3,4},{2,4}}",
                             "{{1,2,3},{1,4},{2,4}}",
                             "{{1,2,3},{3,4},{2,4}}")

    def test_children(self, hasse4, default_formula):
        children = hasse4.get_formula_children(default_formula)
        assert children == Fs(4,
                              "{{1,3,4},{2,4}}",
                              "{{1,2,3},{2,4}}",
                              "{{1,2,3},{1,2,4},{1,3,4},{2,3,4}}")

    def test_parents_are_more_general(self, hasse4, default_formula):
        parents = hasse4.get_formula_parents(default_formula)
        assert parents
        for parent in parents:
            assert parent.consistent
            assert parent != default_formula
            assert default_formula.is_smaller_than(parent)
            assert not parent.is_smaller_than(default_formula)

    def test_children_are_more_specific(self, hasse4, default_formula):
        children = hasse4.get_formula_children(default_formula)
        assert children
        for child in children:
            assert child.consistent
            assert child != default_formula
            assert child.is_smaller_than(default_formula)
            assert not default_formula.is_smaller_than(child)

    def test_pair_repair_does_not_overshoot(self, hasse4, default_formula):
        # {{1,2},{2,4},{3,4}} lies between f and this pair repair
        parents = hasse4.get_formula_parents(default_formula)
        assert F(4, "{{1,2},{1,4},{2,4},{3,4}}") not in parents

    def test_idempotence(self, hasse4, default_formula):
        assert (hasse4.get_formula_parents(default_formula)
                == hasse4.get_formula_parents(default_formula))
        assert (hasse4.get_formula_children(default_formula)
                == hasse4.get_formula_children(default_formula))


class TestTwoVariables:
    def test_bottom_has_single_parent(self, hasse2):
        assert hasse2.get_formula_parents(hasse2.bottom) == Fs(2, "{{1},{2}}")

    def test_bottom_degenerate_parents(self, hasse2):
        assert hasse2.get_formula_parents(hasse2.bottom, True) == Fs(2, "{{1}}", "{{2}}")

    def test_top_has_no_parents(self, hasse2):
        assert hasse2.get_formula_parents(F(2, "{{1},{2}}")) == set()

    def test_top_children_through_meet(self, hasse2):
        assert hasse2.get_formula_children(F(2, "{{1},{2}}")) == {hasse2.bottom}

    def test_top_degenerate_children(self, hasse2):
        assert hasse2.get_formula_children(F(2, "{{1},{2}}"), True) == Fs(2, "{{1}}", "{{2}}")

    def test_bottom_has_no_children(self, hasse2):
        assert hasse2.get_formula_children(hasse2.bottom) == set()
        assert hasse2.get_formula_children(hasse2.bottom, True) == set()


class TestThreeVariables:
    def test_bottom_parents(self, hasse3):
        assert hasse3.get_formula_parents(hasse3.bottom) == Fs(
            3, "{{1,2},{1,3}}", "{{1,2},{2,3}}", "{{1,3},{2,3}}")

    def test_majority_parents(self, hasse3):
        assert hasse3.get_formula_parents(F(3, "{{1,2},{1,3},{2,3}}")) == Fs(
            3, "{{1},{2,3}}", "{{2},{1,3}}", "{{3},{1,2}}")

    def test_top_children(self, hasse3):
        assert hasse3.get_formula_children(F(3, "{{1},{2},{3}}")) == Fs(
            3, "{{1},{2,3}}", "{{2},{1,3}}", "{{3},{1,2}}")

    def test_children_fold_independent_supersets(self, hasse3):
        assert hasse3.get_formula_children(F(3, "{{1},{2,3}}")) == Fs(3, "{{1,2},{1,3},{2,3}}")

    def test_ancestors_of_bottom_span_lattice(self, hasse3):
        ancestors = hasse3.get_formula_ancestors(hasse3.bottom)
        assert len(ancestors) == KNOWN_LATTICE_SIZES[3]
        assert ancestors == Fs(3, *LATTICE_3)

    def test_descendants_of_top_span_lattice(self, hasse3):
        descendants = hasse3.get_formula_descendants(F(3, "{{1},{2},{3}}"))
        assert descendants == Fs(3, *LATTICE_3)

    def test_parents_and_children_are_dual(self, hasse3):
        for f in Fs(3, *LATTICE_3):
            for parent in hasse3.get_formula_parents(f):
                assert f in hasse3.get_formula_children(parent)
            for child in hasse3.get_formula_children(f):
                assert f in hasse3.get_formula_parents(child)

    def test_cover_graph(self, hasse3):
        G = build_cover_graph(hasse3, Fs(3, *LATTICE_3))
        assert G.number_of_nodes() == 9
        assert G.number_of_edges() == 12
        assert nx.is_directed_acyclic_graph(G)
        assert [f for f in G.nodes() if G.in_degree(f) == 0] == [hasse3.bottom]

    def test_degenerate_parents_of_bottom(self, hasse3):
        assert hasse3.get_formula_parents(hasse3.bottom, True) == Fs(
            3, "{{1,2}}", "{{1,3}}", "{{2,3}}")

    def test_degenerate_children_of_top(self, hasse3):
        assert hasse3.get_formula_children(F(3, "{{1},{2},{3}}"), True) == Fs(
            3, "{{2},{3}}", "{{1},{3}}", "{{1},{2}}")

    def test_siblings(self, hasse3):
        assert hasse3.get_formula_siblings(F(3, "{{1,2},{1,3}}")) == Fs(
            3, "{{1,2},{2,3}}", "{{1,3},{2,3}}")

    def test_siblings_exclude_formula(self, hasse3):
        for f in Fs(3, *LATTICE_3):
            assert f not in hasse3.get_formula_siblings(f)


def consistent_formulas(hasse):
    """Every consistent formula over hasse.nvars, by brute force over clause sets."""
    clauses = sorted(hasse.power_set.all_clauses(), key=Clause.sort_key)
    found = set()
    for k in range(1, len(clauses) + 1):
        layer = {Formula(hasse.nvars, combo) for combo in combinations(clauses, k)}
        layer = {f for f in layer if f.consistent}
        if not layer and found:
            break
        found |= layer
    return found


def implication_covers(formulas):
    """Direct parents of each formula, read off the implication order."""
    above = {f: {g for g in formulas if g != f and f.is_smaller_than(g)} for f in formulas}
    return {f: {g for g in above[f] if not any(g in above[h] for h in above[f])}
            for f in formulas}


@pytest.fixture(scope="module")
def lattice4(hasse4):
    formulas = consistent_formulas(hasse4)
    return formulas, implication_covers(formulas)


class TestFourVariablesExhaustive:
    def test_lattice_size(self, lattice4):
        formulas, _ = lattice4
        assert len(formulas) == KNOWN_LATTICE_SIZES[4]

    def test_parents_are_exactly_the_covers(self, hasse4, lattice4):
        formulas, covers = lattice4
        for f in formulas:
            assert hasse4.get_formula_parents(f) == covers[f], f

    def test_children_are_exactly_the_covers(self, hasse4, lattice4):
        formulas, covers = lattice4
        for f in formulas:
            below = {g for g in formulas if f in covers[g]}
            assert hasse4.get_formula_children(f) == below, f

    def test_cover_graph_is_transitively_reduced(self, hasse4, lattice4):
        formulas, _ = lattice4
        G = build_cover_graph(hasse4, formulas)
        assert nx.is_directed_acyclic_graph(G)
        assert set(nx.transitive_reduction(G).edges()) == set(G.edges())


class TestClosures:
    def test_ancestors_are_sound(self, hasse4, default_formula):
        ancestors = hasse4.get_formula_ancestors(default_formula)
        assert default_formula in ancestors
        assert F(4, "{{1},{2},{3},{4}}") in ancestors
        for f in ancestors:
            assert f.consistent
            assert default_formula.is_smaller_than(f)

    def test_descendants_are_sound(self, hasse4, default_formula):
        descendants = hasse4.get_formula_descendants(default_formula)
        assert hasse4.bottom in descendants
        for f in descendants:
            assert f.consistent
            assert f.is_smaller_than(default_formula)

    def test_degenerate_ancestors_terminate(self, hasse3):
        ancestors = hasse3.get_formula_ancestors(hasse3.bottom, True)
        assert Fs(3, *LATTICE_3) <= ancestors
        assert any(not f.consistent for f in ancestors)

    def test_single_variable(self):
        hasse = HasseDiagram(1)
        assert hasse.get_formula_ancestors(hasse.bottom) == {hasse.bottom}
        assert hasse.get_formula_descendants(hasse.bottom) == {hasse.bottom}

    def test_verbose_progress(self, capsys):
        hasse = HasseDiagram(2, verbose=True)
        hasse.get_formula_ancestors(hasse.bottom)
        err = capsys.readouterr().err
        assert "Computing ancestors of {{1,2}}" in err
        assert "Found 2 formulas" in err


class TestNeighbourhood:
    def test_all_sets(self, hasse3):
        f = F(3, "{{1,2},{1,3}}")
        neighbourhood = hasse3.get_neighbourhood(f)
        assert neighbourhood.parents == Fs(3, "{{1,2},{1,3},{2,3}}")
        assert neighbourhood.children == {hasse3.bottom}
        assert neighbourhood.siblings == hasse3.get_formula_siblings(f)

    def test_toggles(self, hasse3):
        f = F(3, "{{1,2},{1,3}}")
        neighbourhood = hasse3.get_neighbourhood(f, parents=False, children=False)
        assert neighbourhood.parents == set()
        assert neighbourhood.children == set()
        assert neighbourhood.siblings

        neighbourhood = hasse3.get_neighbourhood(f, siblings=False)
        assert neighbourhood.siblings == set()
        assert neighbourhood.parents


class TestInputs:
    def test_bottom_is_owned_per_diagram(self):
        first, second = HasseDiagram(2), HasseDiagram(3)
        assert first.bottom == Formula(2, [Clause.top(2)])
        assert second.bottom == Formula(3, [Clause.top(3)])
        assert first.get_size() == 2

    def test_inconsistent_formula_can_be_queried(self, hasse3):
        f = F(3, "{{1},{1,2}}")
        assert not f.consistent
        for g in hasse3.get_formula_parents(f) | hasse3.get_formula_children(f):
            assert g.consistent

    def test_invalid_dimension(self):
        with pytest.raises(ValueError):
            HasseDiagram(0)
