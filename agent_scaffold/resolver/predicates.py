"""Declarative inclusion predicates.

A rule's ``when`` string is written in a small subset of Jinja expression
syntax::

    project_type == "Python"
    ai_tool in ["Claude", "All"] and use_git
    not (include_testing or project_type != "PHP")

The string is parsed once, with Jinja's own parser, into a tree of typed
nodes.  Anything outside the subset is rejected at load time, so evaluation
over a resolved mapping never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

from jinja2 import Environment, nodes
from jinja2.exceptions import TemplateSyntaxError
from jinja2.parser import Parser


class PredicateSyntaxError(ValueError):
    """Raised when a ``when`` expression uses syntax outside the supported subset."""


# ---------------------------------------------------------------------------
# Operands
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Var:
    name: str

    def value(self, values: Mapping[str, Any]) -> Any:
        return values.get(self.name)


@dataclass(frozen=True)
class Const:
    literal: Any

    def value(self, values: Mapping[str, Any]) -> Any:
        return self.literal


@dataclass(frozen=True)
class ConstList:
    items: tuple[Any, ...]

    def value(self, values: Mapping[str, Any]) -> Any:
        return self.items


Operand = Union[Var, Const, ConstList]


# ---------------------------------------------------------------------------
# Predicate nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Truthy:
    """``use_git`` -- true when the operand is truthy."""

    operand: Operand

    def evaluate(self, values: Mapping[str, Any]) -> bool:
        return bool(self.operand.value(values))

    def variables(self) -> set[str]:
        return _operand_variables(self.operand)


@dataclass(frozen=True)
class Compare:
    """``left == right`` or ``left != right``."""

    left: Operand
    op: str
    right: Operand

    def evaluate(self, values: Mapping[str, Any]) -> bool:
        equal = self.left.value(values) == self.right.value(values)
        return equal if self.op == "eq" else not equal

    def variables(self) -> set[str]:
        return _operand_variables(self.left) | _operand_variables(self.right)


@dataclass(frozen=True)
class Membership:
    """``item in container`` or ``item not in container``."""

    item: Operand
    container: Operand
    negated: bool = False

    def evaluate(self, values: Mapping[str, Any]) -> bool:
        item = self.item.value(values)
        container = self.container.value(values)
        if isinstance(container, str):
            found = isinstance(item, str) and item in container
        elif isinstance(container, tuple):
            found = item in container
        else:
            found = False
        return not found if self.negated else found

    def variables(self) -> set[str]:
        return _operand_variables(self.item) | _operand_variables(self.container)


@dataclass(frozen=True)
class Not:
    inner: "Predicate"

    def evaluate(self, values: Mapping[str, Any]) -> bool:
        return not self.inner.evaluate(values)

    def variables(self) -> set[str]:
        return self.inner.variables()


@dataclass(frozen=True)
class All:
    items: tuple["Predicate", ...]

    def evaluate(self, values: Mapping[str, Any]) -> bool:
        return all(item.evaluate(values) for item in self.items)

    def variables(self) -> set[str]:
        return set().union(*(item.variables() for item in self.items))


@dataclass(frozen=True)
class AnyOf:
    items: tuple["Predicate", ...]

    def evaluate(self, values: Mapping[str, Any]) -> bool:
        return any(item.evaluate(values) for item in self.items)

    def variables(self) -> set[str]:
        return set().union(*(item.variables() for item in self.items))


Predicate = Union[Truthy, Compare, Membership, Not, All, AnyOf]


def _operand_variables(operand: Operand) -> set[str]:
    return {operand.name} if isinstance(operand, Var) else set()


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_COMPARE_OPS = {"eq": "eq", "ne": "ne"}


def parse_predicate(source: str | bool, env: Environment) -> Predicate:
    """Parse a ``when`` expression into a predicate tree.

    ``True``/``False`` (YAML booleans) become constant predicates.

    Raises:
        PredicateSyntaxError: If the expression is malformed or uses
            anything beyond names, literals, ``==``/``!=``, ``in``/``not in``,
            ``not``, ``and`` and ``or``.
    """
    if isinstance(source, bool):
        return Truthy(Const(source))

    try:
        parser = Parser(env, str(source), state="variable")
        expr = parser.parse_expression()
        if not parser.stream.eos:
            raise PredicateSyntaxError(f"unexpected trailing input in {source!r}")
    except TemplateSyntaxError as exc:
        raise PredicateSyntaxError(exc.message or str(exc)) from exc

    return _to_predicate(expr)


def _to_predicate(node: nodes.Node) -> Predicate:
    if isinstance(node, nodes.And):
        return All((_to_predicate(node.left), _to_predicate(node.right)))
    if isinstance(node, nodes.Or):
        return AnyOf((_to_predicate(node.left), _to_predicate(node.right)))
    if isinstance(node, nodes.Not):
        return Not(_to_predicate(node.node))
    if isinstance(node, nodes.Compare):
        if len(node.ops) != 1:
            raise PredicateSyntaxError("chained comparisons are not supported")
        operand = node.ops[0]
        left = _to_operand(node.expr)
        right = _to_operand(operand.expr)
        if operand.op in _COMPARE_OPS:
            return Compare(left, _COMPARE_OPS[operand.op], right)
        if operand.op in ("in", "notin"):
            return Membership(left, right, negated=operand.op == "notin")
        raise PredicateSyntaxError(f"unsupported operator {operand.op!r}")
    if isinstance(node, (nodes.Name, nodes.Const)):
        return Truthy(_to_operand(node))
    raise PredicateSyntaxError(f"unsupported expression {type(node).__name__}")


def _to_operand(node: nodes.Node) -> Operand:
    if isinstance(node, nodes.Name):
        return Var(node.name)
    if isinstance(node, nodes.Const):
        return Const(node.value)
    if isinstance(node, (nodes.List, nodes.Tuple)):
        items = []
        for item in node.items:
            if not isinstance(item, nodes.Const):
                raise PredicateSyntaxError("list operands may only contain literals")
            items.append(item.value)
        return ConstList(tuple(items))
    raise PredicateSyntaxError(f"unsupported operand {type(node).__name__}")
