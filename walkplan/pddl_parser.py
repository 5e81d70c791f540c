from typing import Any, Dict, List, Set, Tuple

from walkplan.errors import UnsupportedProblem
from walkplan.pddl_ir import ROOT_TYPE, ActionSchema, DomainIR, ProblemIR


def _tokenize(s: str) -> List[str]:
    # drop ";" comments; PDDL names are case-insensitive
    s = "\n".join(line.split(";", 1)[0] for line in s.splitlines()).lower()
    s = s.replace("(", " ( ").replace(")", " ) ")
    return [t for t in s.split() if t]


def _parse(tokens: List[str]) -> Any:
    if not tokens:
        raise ValueError("empty PDDL input")

    def read(i: int) -> Tuple[Any, int]:
        if tokens[i] == ")":
            raise ValueError("unexpected ')' in PDDL input")
        if tokens[i] != "(":
            return tokens[i], i + 1
        i += 1
        out = []
        while i < len(tokens) and tokens[i] != ")":
            node, i = read(i)
            out.append(node)
        if i >= len(tokens):
            raise ValueError("unbalanced parentheses in PDDL input")
        return out, i + 1

    node, j = read(0)
    if j != len(tokens):
        raise ValueError(f"unexpected tokens after the PDDL definition: {' '.join(tokens[j:j + 5])}")
    return node


def _is_kw(x: Any, kw: str) -> bool:
    return isinstance(x, str) and x.lower() == kw


def _sexpr_find_blocks(tree: Any, head_kw: str) -> List[Any]:
    blocks = []
    if isinstance(tree, list) and tree:
        if isinstance(tree[0], str) and tree[0].lower() == head_kw:
            blocks.append(tree)
        for ch in tree:
            blocks.extend(_sexpr_find_blocks(ch, head_kw))
    return blocks


def _arity(pred_node: List[Any]) -> int:
    # (p ?x ?y) -> 2, (p ?x ?y - block) -> 2
    return len(typed_list(pred_node[1:]))


def typed_list(items: List[Any]) -> List[Tuple[str, str]]:
    # (a b - block c - ball d) -> [(a, block), (b, block), (c, ball), (d, object)]
    out: List[Tuple[str, str]] = []
    pending: List[str] = []
    i = 0
    while i < len(items):
        tok = items[i]
        if _is_kw(tok, "-"):
            if i + 1 >= len(items):
                raise ValueError(f"missing type after '-' in typed list: {items}")
            typ = items[i + 1]
            if isinstance(typ, list):
                raise UnsupportedProblem(f"'either' types are not supported: {typ}")
            out.extend((name, typ) for name in pending)
            pending = []
            i += 2
            continue
        if not isinstance(tok, str):
            raise ValueError(f"invalid entry in typed list: {tok}")
        pending.append(tok)
        i += 1
    out.extend((name, ROOT_TYPE) for name in pending)
    return out


def _check_define(tree: Any) -> None:
    if not (isinstance(tree, list) and tree and _is_kw(tree[0], "define")):
        raise ValueError("PDDL input does not start with (define ...)")


def _extract_name(tree: Any, kw: str) -> str:
    # (define (domain NAME) ...) / (define (problem NAME) ...)
    for node in tree[1:]:
        if isinstance(node, list) and len(node) >= 2 and _is_kw(node[0], kw):
            if isinstance(node[1], str):
                return node[1]
    return "unknown"


def _requirements(tree: Any) -> Set[str]:
    reqs: Set[str] = set()
    for blk in _sexpr_find_blocks(tree, ":requirements"):
        reqs.update(r for r in blk[1:] if isinstance(r, str))
    return reqs


def _action_schema(blk: List[Any]) -> ActionSchema:
    # (:action name :parameters (...) :precondition (...) :effect (...))
    if len(blk) < 2 or not isinstance(blk[1], str):
        raise ValueError(f"action without a name: {blk[:2]}")
    keys = blk[2::2]
    if len(blk) % 2 or not all(isinstance(k, str) and k.startswith(":") for k in keys):
        raise ValueError(f"action {blk[1]} is not a list of :keyword value pairs")
    fields = dict(zip(keys, blk[3::2]))
    params = fields.get(":parameters", [])
    if not isinstance(params, list):
        raise ValueError(f"invalid :parameters in action {blk[1]}: {params}")
    return ActionSchema(
        name=blk[1],
        parameters=typed_list(params),
        preconditions=fields.get(":precondition"),
        effects=fields.get(":effect"),
    )


def parse_domain(domain_pddl: str) -> DomainIR:
    tokens = _tokenize(domain_pddl)
    root = _parse(tokens)
    _check_define(root)

    # domain name
    name = _extract_name(root, "domain")
    requirements = _requirements(root)

    # types and constants
    types: Dict[str, str] = {}
    for blk in _sexpr_find_blocks(root, ":types"):
        for typ, parent in typed_list(blk[1:]):
            if typ != ROOT_TYPE:
                types[typ] = parent
    constants: Dict[str, str] = {}
    for blk in _sexpr_find_blocks(root, ":constants"):
        constants.update(typed_list(blk[1:]))

    # (:predicates (p ?x) (q ?x ?y - block) ...)
    predicates: Dict[str, int] = {}
    for blk in _sexpr_find_blocks(root, ":predicates"):
        for pred in blk[1:]:
            if isinstance(pred, list) and pred and isinstance(pred[0], str):
                predicates[pred[0]] = _arity(pred)

    actions: Dict[str, ActionSchema] = {}
    for blk in _sexpr_find_blocks(root, ":action"):
        schema = _action_schema(blk)
        actions[schema.name] = schema

    # constructs that imply requirements even when the domain does not declare them
    if _sexpr_find_blocks(root, ":durative-action"):
        requirements.add(":durative-actions")
    if _sexpr_find_blocks(root, ":derived"):
        requirements.add(":derived-predicates")

    return DomainIR(
        name=name,
        predicates=predicates,
        actions=actions,
        requirements=requirements,
        types=types,
        constants=constants,
    )


def parse_problem(problem_pddl: str) -> ProblemIR:
    tokens = _tokenize(problem_pddl)
    root = _parse(tokens)
    _check_define(root)

    objects: Dict[str, str] = {}
    for blk in _sexpr_find_blocks(root, ":objects"):
        # (:objects a b c - block)
        objects.update(typed_list(blk[1:]))

    domain_blocks = _sexpr_find_blocks(root, ":domain")
    domain_name = domain_blocks[0][1] if domain_blocks and len(domain_blocks[0]) > 1 else "unknown"

    # init/goal raw subtrees (keep original structure for grounding)
    init_blocks = _sexpr_find_blocks(root, ":init")
    goal_blocks = _sexpr_find_blocks(root, ":goal")
    init_tree = init_blocks[0][1:] if init_blocks else []
    goal_tree = goal_blocks[0][1:] if goal_blocks else []

    return ProblemIR(
        objects=objects,
        init=init_tree,
        goal=goal_tree,
        name=_extract_name(root, "problem"),
        domain_name=domain_name,
        requirements=_requirements(root),
    )
