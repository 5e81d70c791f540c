import logging
from itertools import product
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from walkplan.action import Action, ConditionalEffect
from walkplan.errors import UnsupportedProblem
from walkplan.pddl_ir import ROOT_TYPE, ActionSchema, DomainIR, ProblemIR
from walkplan.pddl_parser import typed_list
from walkplan.problem import Problem, check_requirements
from walkplan.state import Condition, Effect, State

logger = logging.getLogger(__name__)

Literal = Tuple[str, Tuple[str, ...]]  # ("pred", ("a","b",...))

_UNSUPPORTED_FORMULAS = {"or", "imply", "exists", "<", ">", "<=", ">="}
_NUMERIC_EFFECTS = {"increase", "decrease", "assign", "scale-up", "scale-down"}


def _is_list(x: Any) -> bool:
    return isinstance(x, list)


def _is_sym(x: Any) -> bool:
    return isinstance(x, str)


def _head(node: Any) -> str:
    return node[0].lower() if _is_list(node) and node and _is_sym(node[0]) else ""


def _as_conjunction(terms: Any) -> Any:
    # problem init/goal are stored as a list of terms; wrap them into (and ...)
    if _is_list(terms) and terms and terms[0] == "and":
        return terms
    return ["and"] + list(terms or [])


def _ground(term: Any, var_map: Dict[str, str]) -> Literal:
    if not _is_list(term) or not term or not _is_sym(term[0]):
        raise ValueError(f"Invalid literal term: {term}")
    if not all(_is_sym(a) for a in term[1:]):
        raise UnsupportedProblem(f"function terms are not supported: {term}")
    return (term[0], tuple(var_map.get(a, a) for a in term[1:]))


def _state_from_init(init_tree: Any) -> State:
    facts: Set[Literal] = set()
    for t in init_tree[1:]:
        head = _head(t)
        if head == "=":
            continue  # numeric fluent initialisation, e.g. (= (total-cost) 0)
        if head == "not":
            facts.discard(_ground(t[1], {}))
            continue
        facts.add(_ground(t, {}))
    return State.of(facts)


def _effect_predicates(node: Any) -> Set[str]:
    head = _head(node)
    if not head or head in _NUMERIC_EFFECTS:
        return set()
    if head == "and":
        out: Set[str] = set()
        for ch in node[1:]:
            out |= _effect_predicates(ch)
        return out
    if head in ("forall", "when"):
        return _effect_predicates(node[2]) if len(node) > 2 else set()
    if head == "not":
        return _effect_predicates(node[1])
    return {head}


class _Grounder:
    def __init__(self, domain: DomainIR, problem: ProblemIR, init: State):
        self.types = domain.types
        self.objects: Dict[str, str] = dict(domain.constants)
        self.objects.update(problem.objects)
        self.init = init
        self.action_costs = ":action-costs" in domain.requirements | problem.requirements
        fluent = set()
        for schema in domain.actions.values():
            fluent |= _effect_predicates(schema.effects)
        self.static = (set(domain.predicates) | {lit[0] for lit in init}) - fluent
        self._by_type: Dict[str, List[str]] = {}

    def _is_subtype(self, typ: str, ancestor: str) -> bool:
        seen = set()
        while typ != ancestor:
            if ancestor == ROOT_TYPE:
                return True
            if typ in seen or typ not in self.types:
                return False
            seen.add(typ)
            typ = self.types[typ]
        return True

    def objects_of(self, typ: str) -> List[str]:
        if typ not in self._by_type:
            self._by_type[typ] = [o for o, t in self.objects.items() if self._is_subtype(t, typ)]
        return self._by_type[typ]

    def bindings(self, params: List[Tuple[str, str]]) -> Iterator[Dict[str, str]]:
        names = [v for v, _ in params]
        for combo in product(*(self.objects_of(t) for _, t in params)):
            yield dict(zip(names, combo))

    def _equal(self, node: Any, var_map: Dict[str, str]) -> bool:
        if len(node) != 3 or not _is_sym(node[1]) or not _is_sym(node[2]):
            raise UnsupportedProblem(f"only object equality is supported: {node}")
        return var_map.get(node[1], node[1]) == var_map.get(node[2], node[2])

    def condition(self, node: Any, var_map: Dict[str, str], pos: Set[Literal], neg: Set[Literal]) -> bool:
        """Collect the literals of a precondition or goal formula; False if it can never hold."""
        if node is None or node == []:
            return True
        head = _head(node)
        if not head:
            raise ValueError(f"Invalid formula: {node}")
        if head == "and":
            return all(self.condition(ch, var_map, pos, neg) for ch in node[1:])
        if head == "forall":
            for binding in self.bindings(typed_list(node[1])):
                if not self.condition(node[2], {**var_map, **binding}, pos, neg):
                    return False
            return True
        if head == "=":
            return self._equal(node, var_map)
        if head == "not":
            inner = node[1]
            inner_head = _head(inner)
            if inner_head == "=":
                return not self._equal(inner, var_map)
            if inner_head in _UNSUPPORTED_FORMULAS or inner_head in ("and", "not", "forall"):
                raise UnsupportedProblem(f"negated compound formulas are not supported: {node}")
            neg.add(_ground(inner, var_map))
            return True
        if head in _UNSUPPORTED_FORMULAS:
            raise UnsupportedProblem(f"'{head}' formulas are not supported")
        if head == "when":
            raise ValueError(f"'when' is only allowed in effects: {node}")
        pos.add(_ground(node, var_map))
        return True

    def effect(
        self,
        node: Any,
        var_map: Dict[str, str],
        add: Set[Literal],
        delete: Set[Literal],
        conditional: Optional[List[ConditionalEffect]],
    ) -> float:
        """Collect effect literals into add/delete and ``when`` blocks into conditional; return the cost increase."""
        if node is None or node == []:
            return 0.0
        head = _head(node)
        if not head:
            raise ValueError(f"Invalid effect: {node}")
        if head == "and":
            return sum(self.effect(ch, var_map, add, delete, conditional) for ch in node[1:])
        if head == "forall":
            return sum(
                self.effect(node[2], {**var_map, **binding}, add, delete, conditional)
                for binding in self.bindings(typed_list(node[1]))
            )
        if head == "when":
            if conditional is None:
                raise UnsupportedProblem(f"nested conditional effects are not supported: {node}")
            pos: Set[Literal] = set()
            neg: Set[Literal] = set()
            if not self.condition(node[1], var_map, pos, neg):
                return 0.0
            e_add: Set[Literal] = set()
            e_del: Set[Literal] = set()
            if self.effect(node[2], var_map, e_add, e_del, None):
                raise UnsupportedProblem(f"conditional action costs are not supported: {node}")
            effect = Effect.of(e_add, e_del)
            if not effect.is_empty():
                conditional.append(ConditionalEffect(Condition.of(pos, neg), effect))
            return 0.0
        if head == "not":
            delete.add(_ground(node[1], var_map))
            return 0.0
        if head == "increase":
            return self._cost_increase(node)
        if head in _NUMERIC_EFFECTS:
            raise UnsupportedProblem(f"numeric effect '{head}' is not supported")
        add.add(_ground(node, var_map))
        return 0.0

    def _cost_increase(self, node: Any) -> float:
        # (increase (total-cost) 3)
        if len(node) == 3 and node[1] == ["total-cost"] and _is_sym(node[2]):
            try:
                return float(node[2])
            except ValueError:
                pass
        raise UnsupportedProblem(f"only constant (increase (total-cost) n) effects are supported: {node}")

    def _static_ok(self, pos: Set[Literal], neg: Set[Literal]) -> bool:
        for lit in pos:
            if lit[0] in self.static and lit not in self.init:
                return False
        for lit in neg:
            if lit[0] in self.static and lit in self.init:
                return False
        return True

    def action(self, schema: ActionSchema, binding: Dict[str, str]) -> Optional[Action]:
        pos: Set[Literal] = set()
        neg: Set[Literal] = set()
        if not self.condition(schema.preconditions, binding, pos, neg):
            return None
        if not self._static_ok(pos, neg):
            return None
        add: Set[Literal] = set()
        delete: Set[Literal] = set()
        conditional: List[ConditionalEffect] = []
        cost = self.effect(schema.effects, binding, add, delete, conditional)
        effects: List[ConditionalEffect] = []
        unconditional = Effect.of(add, delete)
        if not unconditional.is_empty():
            effects.append(ConditionalEffect(Condition(), unconditional))
        effects.extend(conditional)
        name = "(" + " ".join([schema.name] + [binding[v] for v, _ in schema.parameters]) + ")"
        return Action(
            name=name,
            precondition=Condition.of(pos, neg),
            effects=tuple(effects),
            cost=cost if self.action_costs else 1.0,
        )


def ground(domain: DomainIR, problem: ProblemIR) -> Problem:
    """
    Instantiate every action schema of ``domain`` over the objects of ``problem``.

    Groundings whose static preconditions fail in the initial state are dropped.
    Raises UnsupportedProblem for requirements or constructs outside the supported fragment.
    """
    requirements = frozenset(domain.requirements | problem.requirements)
    check_requirements(requirements)
    if problem.domain_name not in ("unknown", domain.name):
        logger.warning(f"Problem {problem.name} targets domain {problem.domain_name}, grounding with {domain.name}")

    init = _state_from_init(_as_conjunction(problem.init))
    grounder = _Grounder(domain, problem, init)

    actions: List[Action] = []
    for schema in domain.actions.values():
        for binding in grounder.bindings(schema.parameters):
            action = grounder.action(schema, binding)
            if action is not None:
                actions.append(action)

    pos: Set[Literal] = set()
    neg: Set[Literal] = set()
    if not grounder.condition(_as_conjunction(problem.goal), {}, pos, neg):
        raise UnsupportedProblem(f"goal of problem {problem.name} contains an equality that never holds")

    logger.info(f"Grounded {len(actions)} actions, {len(init)} initial facts, {len(pos) + len(neg)} goal literals")
    return Problem(
        initial_state=init,
        goal=Condition.of(pos, neg),
        actions=tuple(actions),
        requirements=requirements,
        name=problem.name,
    )

