"""Rule language package for policy-ruleset.

Exports the AST node types, the parser, the checker interface and the
rule set evaluation engine.
"""
from __future__ import annotations

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
from policy_ruleset.rules.ruleset import ParseError, RuleSet

__all__ = [
    "And",
    "Check",
    "Checker",
    "Const",
    "Expression",
    "Identifier",
    "LeftHandSide",
    "Literal",
    "Not",
    "Or",
    "ParseError",
    "RoleChecker",
    "RuleChecker",
    "RuleSet",
    "RuleSyntaxError",
    "parse_expression",
]
