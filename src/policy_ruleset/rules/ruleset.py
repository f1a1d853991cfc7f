"""Rule container and evaluation engine.

A :class:`RuleSet` maps rule names to parsed expressions and owns the
checkers consulted while evaluating them.  Evaluation is fail-closed: an
undefined rule, a missing API attribute or a missing target attribute makes
the affected test ``False`` instead of raising.

Build a rule set completely before sharing it between threads; evaluation
only reads from it.  To reload a policy, build a new rule set and swap the
reference.

Example
-------
>>> ruleset = RuleSet()
>>> ruleset.add_rules({
...     "admin_required": "role:admin",
...     "cloud_admin": "rule:admin_required and domain_id:admin_domain_id",
... })
>>> token = StaticToken(roles=["admin"], api_attributes={"domain_id": "admin_domain_id"})
>>> ruleset.evaluate("cloud_admin", Request(token))
True
"""
from __future__ import annotations

import logging
from collections.abc import Mapping

from policy_ruleset.request import Request, resolve_target_attr_refs
from policy_ruleset.rules.ast import (
    And,
    Check,
    Const,
    Expression,
    Identifier,
    LeftHandSide,
    Literal,
    Not,
    Or,
)
from policy_ruleset.rules.checkers import Checker, RoleChecker, RuleChecker
from policy_ruleset.rules.parser import RuleSyntaxError, parse_expression

logger = logging.getLogger(__name__)


class ParseError(ValueError):
    """Raised when a rule added to a :class:`RuleSet` fails to parse.

    Attributes
    ----------
    rule_name:
        Name under which the rule was being added.
    error:
        The underlying :class:`~policy_ruleset.rules.parser.RuleSyntaxError`
        with the failing position.
    """

    def __init__(self, rule_name: str, error: RuleSyntaxError) -> None:
        self.rule_name = rule_name
        self.error = error
        super().__init__(f"could not parse rule {rule_name!r}: {error}")


class RuleSet:
    """A container and evaluation engine for policy rules.

    The ``rule`` and ``role`` checkers are registered on construction.
    """

    def __init__(self) -> None:
        self._rules: dict[str, Expression] = {}
        self._checkers: dict[str, Checker] = {}
        self.add_checker("rule", RuleChecker())
        self.add_checker("role", RoleChecker())

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def add_checker(self, name: str, checker: Checker) -> None:
        """Register ``checker`` under ``name``, replacing any earlier one."""
        self._checkers[name] = checker

    def add_rule(self, name: str, text: str) -> None:
        """Parse ``text`` and store it as the rule ``name``.

        An existing rule with the same name is replaced.

        Raises
        ------
        ParseError
            If ``text`` is not a valid rule.  The rule set is left unchanged.
        """
        try:
            expr = parse_expression(text)
        except RuleSyntaxError as exc:
            raise ParseError(name, exc) from exc
        self._rules[name] = expr
        logger.debug("Stored rule %r: %s", name, expr)

    def add_rules(self, rules: Mapping[str, str]) -> None:
        """Parse and store every ``name -> text`` entry of ``rules``.

        Entries are applied in the mapping's iteration order, which callers
        should not rely on.  There is no rollback: entries applied before a
        failing one stay in the rule set.

        Raises
        ------
        ParseError
            For the first entry that fails to parse.
        """
        for name, text in rules.items():
            self.add_rule(name, text)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_rule(self, name: str) -> Expression | None:
        """Return the parsed expression of rule ``name``, if defined."""
        return self._rules.get(name)

    def rule_names(self) -> list[str]:
        return sorted(self._rules)

    def checker_names(self) -> list[str]:
        return sorted(self._checkers)

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet(rules={len(self._rules)}, checkers={self.checker_names()!r})"

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, rule_name: str, request: Request) -> bool:
        """Evaluate the rule ``rule_name`` for ``request``.

        Parameters
        ----------
        rule_name:
            Name of a rule previously added with :meth:`add_rule`.
        request:
            The request to authorize.

        Returns
        -------
        bool
            ``True`` when the rule grants the request.  Undefined rules
            return ``False``.
        """
        expr = self._rules.get(rule_name)
        if expr is None:
            logger.debug("Rule %r is not defined; denying", rule_name)
            return False

        result = self._evaluate_expr(expr, request)
        logger.debug("Rule %r evaluated to %s", rule_name, result)
        return result

    def _evaluate_expr(self, expr: Expression, request: Request) -> bool:
        match expr:
            case Const(value):
                return value
            case Check(lhs, rhs):
                return self._evaluate_check(lhs, rhs, request)
            case And(left, right):
                return self._evaluate_expr(left, request) and self._evaluate_expr(right, request)
            case Or(left, right):
                return self._evaluate_expr(left, request) or self._evaluate_expr(right, request)
            case Not(operand):
                return not self._evaluate_expr(operand, request)
        raise TypeError(f"Not a rule expression: {expr!r}")

    def _evaluate_check(self, lhs: LeftHandSide, rhs: str, request: Request) -> bool:
        resolved = resolve_target_attr_refs(rhs, request.target)
        if resolved is None:
            logger.debug("Check %s:%s references a missing target attribute", lhs, rhs)
            return False

        match lhs:
            case Literal(value):
                return value == resolved
            case Identifier(name):
                checker = self._checkers.get(name)
                if checker is not None:
                    return checker.check(self, request, resolved)
                actual = request.token.get_api_attribute(name)
                if actual is None:
                    logger.debug("Check %s:%s references a missing API attribute", lhs, rhs)
                    return False
                return actual == resolved
        raise TypeError(f"Not a check left-hand side: {lhs!r}")
