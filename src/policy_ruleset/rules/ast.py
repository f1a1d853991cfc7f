"""Abstract syntax tree for policy rule expressions.

A parsed rule is a tree of immutable nodes.  Leaves are :class:`Const`
(``@`` / ``!``) and :class:`Check` (``lhs:rhs``); inner nodes are
:class:`And`, :class:`Or` and :class:`Not`.

Calling :func:`str` on any node renders its simplest representation in the
rule language, which parses back into an equivalent expression.

Example
-------
>>> str(And(Const(True), Or(Const(False), Not(Const(True)))))
'@ and (! or not @)'
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union


# ---------------------------------------------------------------------------
# Left-hand sides
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Literal:
    """A quoted constant string, compared verbatim against the right-hand side."""

    value: str

    def __str__(self) -> str:
        return f"'{self.value}'"


@dataclass(frozen=True)
class Identifier:
    """An unquoted name, resolved as a checker name or an API attribute."""

    name: str

    def __str__(self) -> str:
        return self.name


LeftHandSide = Union[Literal, Identifier]


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Const:
    """A constant truth value: ``@`` is true, ``!`` is false."""

    value: bool

    def __str__(self) -> str:
        return "@" if self.value else "!"


@dataclass(frozen=True)
class Check:
    """A single ``lhs:rhs`` test.

    ``rhs`` is kept as raw text; ``%(name)s`` interpolation happens at
    evaluation time.
    """

    lhs: LeftHandSide
    rhs: str

    def __str__(self) -> str:
        return f"{self.lhs}:{self.rhs}"


@dataclass(frozen=True)
class And:
    left: Expression
    right: Expression

    def __str__(self) -> str:
        # `and` binds tighter than `or`, so an `or` operand needs parentheses.
        left = f"({self.left})" if isinstance(self.left, Or) else str(self.left)
        right = f"({self.right})" if isinstance(self.right, Or) else str(self.right)
        return f"{left} and {right}"


@dataclass(frozen=True)
class Or:
    left: Expression
    right: Expression

    def __str__(self) -> str:
        return f"{self.left} or {self.right}"


@dataclass(frozen=True)
class Not:
    operand: Expression

    def __str__(self) -> str:
        if isinstance(self.operand, (And, Or)):
            return f"not ({self.operand})"
        return f"not {self.operand}"


Expression = Union[Const, Check, And, Or, Not]
