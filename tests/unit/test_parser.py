"""Unit tests for rules/parser.py — grammar, precedence and tokenization quirks."""
from __future__ import annotations

import pytest

from policy_ruleset.rules.ast import And, Check, Const, Identifier, Literal, Not, Or
from policy_ruleset.rules.parser import RuleSyntaxError, parse_expression

T = Const(True)
F = Const(False)


def check(lhs: str, rhs: str) -> Check:
    return Check(Identifier(lhs), rhs)


def literal_check(lhs: str, rhs: str) -> Check:
    return Check(Literal(lhs), rhs)


def assert_all_identical(inputs: list[str]) -> None:
    first = parse_expression(inputs[0])
    for text in inputs[1:]:
        assert parse_expression(text) == first, f"{text!r} differs from {inputs[0]!r}"


# ---------------------------------------------------------------------------
# Basics
# ---------------------------------------------------------------------------


class TestBasics:
    def test_constants(self) -> None:
        assert parse_expression("@") == T
        assert parse_expression("!") == F

    def test_and(self) -> None:
        assert parse_expression("@ and !") == And(T, F)

    def test_surrounding_whitespace_is_ignored(self) -> None:
        assert parse_expression("    @    or   !  ") == Or(T, F)
        assert parse_expression("\t@\nor\n!\n") == Or(T, F)

    def test_whitespace_inside_parentheses_is_optional(self) -> None:
        assert parse_expression("(@)and(!)") == And(T, F)
        assert parse_expression("not(@)") == Not(T)

    def test_binary_operators_are_left_associative(self) -> None:
        assert parse_expression("@ or ! or @") == Or(Or(T, F), T)
        assert parse_expression("@ and ! and @") == And(And(T, F), T)

    def test_not_is_right_recursive(self) -> None:
        assert parse_expression("not not @") == Not(Not(T))


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestPrecedence:
    def test_and_binds_tighter_than_or(self) -> None:
        assert parse_expression("@ and ! or @") == parse_expression("(@ and !) or @")
        assert parse_expression("@ and ! or @") != parse_expression("@ and (! or @)")
        assert parse_expression("@ or ! and @") == Or(T, And(F, T))

    def test_not_binds_tighter_than_and(self) -> None:
        assert parse_expression("not @ and !") == And(Not(T), F)
        assert parse_expression("not @ or @") == Or(Not(T), T)

    def test_parentheses_override_precedence(self) -> None:
        assert parse_expression("not (@ or @)") == Not(Or(T, T))

    def test_redundant_parentheses_group_one(self) -> None:
        assert_all_identical(
            [
                "( @ ) and ! or @",
                "@ and ( ! ) or @",
                "@ and ! or ( @ )",
                "( @ ) and ! or ( @ )",
                "@ and ( ! ) or ( @ )",
                "( @ ) and ( ! ) or ( @ )",
                "( @ and ! ) or @",
                "( ( @ ) and ! ) or @",
                "( @ and ( ! ) ) or @",
                "( ( @ and ! ) ) or @",
                "( @ and ! or @ )",
            ]
        )

    def test_redundant_parentheses_with_leading_not(self) -> None:
        assert_all_identical(
            [
                "not ( @ ) and ! or @",
                "not @ and ( ! ) or @",
                "not @ and ! or ( @ )",
                "( not @ ) and ! or @",
                "( not @ and ! ) or @",
                "( not @ and ! or @ )",
            ]
        )

    def test_redundant_parentheses_with_inner_not(self) -> None:
        assert_all_identical(
            [
                "( @ ) and not ! or @",
                "@ and ( not ! ) or @",
                "@ and not ( ! ) or @",
                "@ and not ! or ( @ )",
                "( @ and not ! ) or @",
                "( @ and not ! or @ )",
            ]
        )

    def test_redundant_parentheses_with_trailing_not(self) -> None:
        assert_all_identical(
            [
                "( @ ) and ! or not @",
                "@ and ( ! ) or not @",
                "@ and ! or not ( @ )",
                "@ and ! or ( not @ )",
                "( @ and ! ) or not @",
                "( @ and ! or not @ )",
            ]
        )

    def test_redundant_parentheses_around_checks(self) -> None:
        assert_all_identical(
            [
                "role:admin and user_id:%(user_id)s or @",
                "(role:admin) and user_id:%(user_id)s or @",
                "role:admin and (user_id:%(user_id)s) or @",
                "(role:admin and user_id:%(user_id)s) or @",
                "((role:admin) and (user_id:%(user_id)s)) or (@)",
            ]
        )


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


class TestChecks:
    def test_identifier_checks(self) -> None:
        text = "user_id:%(target.user_id)s and role:compute:get_all"
        expected = And(check("user_id", "%(target.user_id)s"), check("role", "compute:get_all"))
        parsed = parse_expression(text)
        assert parsed == expected
        assert str(parsed) == text

    def test_single_quoted_literal(self) -> None:
        text = "is_admin:True or 'Member':%(role.name)s"
        parsed = parse_expression(text)
        assert parsed == Or(check("is_admin", "True"), literal_check("Member", "%(role.name)s"))
        assert str(parsed) == text

    def test_double_quoted_literal(self) -> None:
        parsed = parse_expression('"Member":%(role.name)s')
        assert parsed == literal_check("Member", "%(role.name)s")
        assert parsed == parse_expression("'Member':%(role.name)s")

    def test_only_first_colon_splits(self) -> None:
        assert parse_expression("rule:a:b:c") == check("rule", "a:b:c")

    def test_rhs_may_contain_quotes_and_parentheses(self) -> None:
        assert parse_expression("name:it's") == check("name", "it's")
        assert parse_expression("call:f(x)") == check("call", "f(x)")

    def test_rhs_gives_back_closing_parentheses_inside_group(self) -> None:
        assert parse_expression("(role:admin)") == check("role", "admin")
        assert parse_expression("(call:f(x))") == check("call", "f(x)")
        assert parse_expression("((role:admin))") == check("role", "admin")

    def test_rhs_keeps_closing_parenthesis_when_group_closes_later(self) -> None:
        assert parse_expression("( call:f(x) )") == check("call", "f(x)")
        assert parse_expression("( name:(x) or @ )") == Or(check("name", "(x)"), T)

    def test_keywords_need_no_following_whitespace(self) -> None:
        assert parse_expression("@ and!") == And(T, F)
        assert parse_expression("not@") == Not(T)
        assert parse_expression("not'x':y") == Not(literal_check("x", "y"))

    def test_keyword_prefixes_are_check_names(self) -> None:
        assert parse_expression("nothing:x") == check("nothing", "x")
        assert parse_expression("android:x") == check("android", "x")
        assert parse_expression("order:x or orbit:y") == Or(check("order", "x"), check("orbit", "y"))

    def test_keywords_can_be_check_names(self) -> None:
        assert parse_expression("not:x") == check("not", "x")
        assert parse_expression("and:x and or:y") == And(check("and", "x"), check("or", "y"))


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "'foo bar':%(role.name)s",
            "foo bar:x",
            "role :admin",
            "role: admin",
            "@ and",
            "or @",
            "not",
            "@ @",
            "( @",
            "@ )",
            "()",
            "role",
            "role:",
            ":admin",
            "'':x",
            "'foo\":x",
            "@ AND !",
        ],
    )
    def test_rejected(self, text: str) -> None:
        with pytest.raises(RuleSyntaxError):
            parse_expression(text)

    @pytest.mark.parametrize("escape", ["\\n", "\\\\", '\\"', "\\'"])
    def test_escape_sequences_in_literals_are_rejected(self, escape: str) -> None:
        with pytest.raises(RuleSyntaxError):
            parse_expression(f"'foo{escape}bar':%(role.name)s")

    def test_empty_input_position(self) -> None:
        with pytest.raises(RuleSyntaxError) as excinfo:
            parse_expression("")
        err = excinfo.value
        assert (err.line, err.column, err.offset) == (1, 1, 0)
        assert err.expected == "expression"

    def test_error_position_on_later_line(self) -> None:
        with pytest.raises(RuleSyntaxError) as excinfo:
            parse_expression("role:admin or\n  'a b':x")
        err = excinfo.value
        assert err.line == 2
        assert err.column == 5
        assert "closing '" in err.expected

    def test_unmatched_parenthesis_expects_close(self) -> None:
        with pytest.raises(RuleSyntaxError) as excinfo:
            parse_expression("(@ and !")
        assert excinfo.value.expected == "')'"
        assert excinfo.value.offset == 8

    def test_message_mentions_position(self) -> None:
        with pytest.raises(RuleSyntaxError, match="line 1, column 3"):
            parse_expression("@ @")


# ---------------------------------------------------------------------------
# Rendering round trip
# ---------------------------------------------------------------------------


class TestRoundTrip:
    @pytest.mark.parametrize(
        "text",
        [
            "@ and (! or not @)",
            "(@ or !) and not @",
            "not (role:a or role:b) and 'x':%(y)s",
            "rule:a or rule:b and not rule:c",
        ],
    )
    def test_rendered_expression_parses_back(self, text: str) -> None:
        parsed = parse_expression(text)
        assert parse_expression(str(parsed)) == parsed
