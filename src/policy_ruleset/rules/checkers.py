"""Pluggable checkers invoked for identifier checks.

In a rule, every ``lhs:rhs`` token is a check.  When the left-hand side is an
identifier that names a checker registered with the
:class:`~policy_ruleset.rules.ruleset.RuleSet`, the checker decides the
check's outcome.  For example, ``rule:compute:get_all`` hands the right-hand
side ``compute:get_all`` to the checker registered as ``rule``.

Checkers are shared by concurrent evaluations, so implementations must not
keep mutable state (or must synchronize it themselves).

Example
-------
>>> class ProjectChecker(Checker):
...     def check(self, ruleset, request, rhs):
...         return request.token.get_api_attribute("project_id") == rhs
>>> ruleset = RuleSet()
>>> ruleset.add_checker("project", ProjectChecker())
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from policy_ruleset.request import Request
    from policy_ruleset.rules.ruleset import RuleSet


class Checker(ABC):
    """Interface for policy building blocks."""

    @abstractmethod
    def check(self, ruleset: RuleSet, request: Request, rhs: str) -> bool:
        """Decide a check whose left-hand side is this checker's name.

        Parameters
        ----------
        ruleset:
            The rule set performing the evaluation.
        request:
            The request being evaluated.
        rhs:
            Right-hand side of the check, after ``%(name)s`` interpolation.
        """


class RoleChecker(Checker):
    """Matches when the request's token covers the role named by ``rhs``.

    Registered as ``role`` by default, so ``role:admin`` asks whether the
    caller holds ``admin``.
    """

    def check(self, ruleset: RuleSet, request: Request, rhs: str) -> bool:
        return request.token.has_role(rhs)


class RuleChecker(Checker):
    """Evaluates the rule named by ``rhs`` in the same rule set.

    Registered as ``rule`` by default.  An undefined rule evaluates to
    ``False``.  Cyclic references are not detected.
    """

    def check(self, ruleset: RuleSet, request: Request, rhs: str) -> bool:
        return ruleset.evaluate(rhs, request)
