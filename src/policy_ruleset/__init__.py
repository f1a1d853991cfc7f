"""policy-ruleset — embeddable evaluation engine for oslo.policy-style rules.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import policy_ruleset as pr
>>> ruleset = pr.RuleSet()
>>> ruleset.add_rule("owner", "user_id:%(user_id)s")
>>> token = pr.StaticToken(api_attributes={"user_id": "u-1"})
>>> request = pr.Request(token, pr.MappingTarget({"user_id": "u-1"}))
>>> ruleset.evaluate("owner", request)
True
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Rule language
# ---------------------------------------------------------------------------
from policy_ruleset.rules.ast import Expression, LeftHandSide
from policy_ruleset.rules.checkers import Checker, RoleChecker, RuleChecker
from policy_ruleset.rules.parser import RuleSyntaxError, parse_expression
from policy_ruleset.rules.ruleset import ParseError, RuleSet

# ---------------------------------------------------------------------------
# Request attributes
# ---------------------------------------------------------------------------
from policy_ruleset.request import (
    EmptyTarget,
    MappingTarget,
    Request,
    StaticToken,
    Target,
    Token,
)

# ---------------------------------------------------------------------------
# Policy files
# ---------------------------------------------------------------------------
from policy_ruleset.loader import PolicyConfig, PolicyLoader

__all__ = [
    "__version__",
    "Checker",
    "EmptyTarget",
    "Expression",
    "LeftHandSide",
    "MappingTarget",
    "ParseError",
    "PolicyConfig",
    "PolicyLoader",
    "Request",
    "RoleChecker",
    "RuleChecker",
    "RuleSet",
    "RuleSyntaxError",
    "StaticToken",
    "Target",
    "Token",
    "parse_expression",
]
