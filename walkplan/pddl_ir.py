from dataclasses import dataclass, field
from typing import Any, Dict, List, Set, Tuple

ROOT_TYPE = "object"


@dataclass
class ActionSchema:
    name: str
    parameters: List[Tuple[str, str]]  # (variable, type) as they appear in the domain (e.g., ("?x", "block"))
    preconditions: Any = None  # raw s-expression subtree of :precondition
    effects: Any = None        # raw s-expression subtree of :effect


@dataclass
class DomainIR:
    name: str
    predicates: Dict[str, int]  # predicate name -> arity
    actions: Dict[str, ActionSchema]  # action name -> schema
    requirements: Set[str] = field(default_factory=set)
    types: Dict[str, str] = field(default_factory=dict)  # type -> parent type
    constants: Dict[str, str] = field(default_factory=dict)  # constant -> type


@dataclass
class ProblemIR:
    objects: Dict[str, str]  # object -> type, in declaration order
    init: Any  # raw s-expression subtree of init
    goal: Any  # raw s-expression subtree of goal
    name: str = "unknown"
    domain_name: str = "unknown"
    requirements: Set[str] = field(default_factory=set)
