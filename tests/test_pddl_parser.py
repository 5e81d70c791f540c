"""
tests/test_pddl_parser.py

Unit tests for the PDDL reader: s-expressions, typed lists, domains and problems.
"""

import pytest

from walkplan.errors import UnsupportedProblem
from walkplan.pddl_parser import parse_domain, parse_problem, typed_list


class TestTypedList:
    def test_mixed_typed_and_untyped(self):
        items = ["a", "b", "-", "block", "c", "-", "ball", "d"]
        assert typed_list(items) == [("a", "block"), ("b", "block"), ("c", "ball"), ("d", "object")]

    def test_untyped(self):
        assert typed_list(["?x", "?y"]) == [("?x", "object"), ("?y", "object")]

    def test_either_is_unsupported(self):
        with pytest.raises(UnsupportedProblem):
            typed_list(["?x", "-", ["either", "a", "b"]])

    def test_dangling_dash(self):
        with pytest.raises(ValueError):
            typed_list(["?x", "-"])


class TestDomain:
    def test_blocksworld(self, blocksworld_pddl):
        domain = parse_domain(blocksworld_pddl[0])
        assert domain.name == "blocksworld"
        assert domain.requirements == {":strips"}
        assert domain.predicates == {"clear": 1, "ontable": 1, "handempty": 0, "holding": 1, "on": 2}
        assert list(domain.actions) == ["pick-up", "put-down", "stack", "unstack"]
        stack = domain.actions["stack"]
        assert stack.parameters == [("?x", "object"), ("?y", "object")]
        assert stack.preconditions[0] == "and"
        assert domain.types == {}

    def test_types_constants_and_typed_parameters(self, delivery_pddl):
        domain = parse_domain(delivery_pddl[0])
        assert domain.types == {"location": "object", "locatable": "object", "truck": "locatable", "package": "locatable"}
        assert domain.constants == {"depot": "location"}
        assert domain.predicates["road"] == 2
        assert domain.actions["drive"].parameters == [("?t", "truck"), ("?from", "location"), ("?to", "location")]
        assert ":action-costs" in domain.requirements

    def test_case_and_comments_are_ignored(self):
        domain = parse_domain(
            """
            ; header comment
            (DEFINE (Domain Lights) ; trailing comment
              (:Predicates (ON ?x))
              (:action Switch :parameters (?x) :effect (on ?x)))
            """
        )
        assert domain.name == "lights"
        assert domain.predicates == {"on": 1}
        assert domain.actions["switch"].effects == ["on", "?x"]
        assert domain.actions["switch"].preconditions is None

    def test_implied_requirements(self):
        domain = parse_domain(
            "(define (domain t) (:requirements :strips)"
            " (:durative-action go :parameters () :duration (= ?duration 1) :condition () :effect ()))"
        )
        assert ":durative-actions" in domain.requirements

    @pytest.mark.parametrize(
        "action",
        [
            "(:action)",
            "(:action a :parameters)",
            "(:action a :parameters ?x :effect (p))",
            "(:action a (p) (q))",
        ],
    )
    def test_malformed_action(self, action):
        with pytest.raises(ValueError):
            parse_domain(f"(define (domain d) (:predicates (p) (q)) {action})")

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "(define (domain d)",
            "(define (domain d)))",
            "(domain d)",
            "(define (domain d)) (extra)",
        ],
    )
    def test_malformed_input(self, text):
        with pytest.raises(ValueError):
            parse_domain(text)


class TestProblem:
    def test_blocksworld(self, blocksworld_pddl):
        problem = parse_problem(blocksworld_pddl[1])
        assert problem.name == "bw-3"
        assert problem.domain_name == "blocksworld"
        assert problem.objects == {"a": "object", "b": "object", "c": "object"}
        assert ["handempty"] in problem.init
        assert problem.goal == [["and", ["on", "a", "b"]]]

    def test_typed_objects_keep_declaration_order(self, delivery_pddl):
        problem = parse_problem(delivery_pddl[1])
        assert list(problem.objects.items()) == [
            ("t1", "truck"),
            ("p1", "package"),
            ("p2", "package"),
            ("shop", "location"),
        ]
        assert ["=", ["total-cost"], "0"] in problem.init

    def test_missing_sections(self):
        problem = parse_problem("(define (problem empty))")
        assert problem.objects == {}
        assert problem.init == []
        assert problem.goal == []
        assert problem.domain_name == "unknown"
