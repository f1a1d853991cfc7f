#!/usr/bin/env python3
"""Example: Quickstart — policy-ruleset

Minimal working example: load a Keystone-style policy, then authorize a
few requests against it.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install policy-ruleset
"""
from __future__ import annotations

import policy_ruleset as pr

POLICY = """\
admin_required: "role:admin"
cloud_admin: "rule:admin_required and domain_id:admin_domain_id"
service_role: "role:service"
service_or_admin: "rule:admin_required or rule:service_role"
owner: "user_id:%(user_id)s or user_id:%(target.token.user_id)s"
service_admin_or_owner: "rule:service_or_admin or rule:owner"
"""


def main() -> None:
    print(f"policy-ruleset version: {pr.__version__}")

    # Step 1: Parse the policy into a rule set
    loader = pr.PolicyLoader()
    ruleset = pr.RuleSet()
    ruleset.add_rules(loader.load_policy_string(POLICY))
    print(f"Rule set ready: {len(ruleset)} rules loaded")

    # Step 2: Describe some callers
    admin = pr.StaticToken(roles=["admin"], api_attributes={"domain_id": "admin_domain_id"})
    user = pr.StaticToken(roles=["member"], api_attributes={"user_id": "u-1"})

    requests = [
        ("cloud_admin", pr.Request(admin)),
        ("cloud_admin", pr.Request(user)),
        ("service_admin_or_owner", pr.Request(user, pr.MappingTarget({"user_id": "u-1"}))),
        ("service_admin_or_owner", pr.Request(user, pr.MappingTarget({"user_id": "u-2"}))),
    ]

    # Step 3: Evaluate
    print("\nPolicy evaluation:")
    for rule_name, request in requests:
        icon = "ALLOW" if ruleset.evaluate(rule_name, request) else "DENY"
        print(f"  [{icon}] {rule_name} for {request.token!r} on {request.target!r}")

    # Step 4: Syntax errors carry the rule name and position
    try:
        ruleset.add_rule("broken", "'foo bar':%(user_id)s")
    except pr.ParseError as exc:
        print(f"\nRejected rule: {exc}")


if __name__ == "__main__":
    main()
