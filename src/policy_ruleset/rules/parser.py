"""Parser for the policy rule language.

Grammar (whitespace between tokens is optional)::

    expr   := and_expr ( "or" and_expr )*
    and    := unary ( "and" unary )*
    unary  := "not" unary | atom
    atom   := "@" | "!" | "(" expr ")" | check
    check  := lhs ":" rhs

The tokenization rules follow the reference policy file format, which splits
rules on whitespace before it looks at anything else:

- a check never contains whitespace, not even inside a quoted literal, so
  ``'foo bar':x`` is rejected;
- only the first ``:`` separates the left-hand side from the right-hand
  side, so ``role:compute:get_all`` has the right-hand side
  ``compute:get_all``;
- quoted literals have no escape sequences; a backslash on the left-hand
  side is a syntax error;
- the empty rule is a syntax error (write ``@`` to allow everything).

Example
-------
>>> str(parse_expression("role:admin or not (role:guest)"))
'role:admin or not role:guest'
"""
from __future__ import annotations

from collections.abc import Iterator

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

_WHITESPACE: frozenset[str] = frozenset(" \t\n")
_QUOTES: frozenset[str] = frozenset("'\"")
_LHS_EXCLUDED: frozenset[str] = _WHITESPACE | _QUOTES | frozenset(":\\")
_KEYWORD_TERMINATORS: frozenset[str] = _WHITESPACE | _QUOTES | frozenset("(@!")


class RuleSyntaxError(Exception):
    """Raised when rule text does not match the grammar.

    Attributes
    ----------
    expected:
        Description of what the parser expected at the failing position.
    line:
        1-based line number of the failing position.
    column:
        1-based column number of the failing position.
    offset:
        0-based character offset of the failing position.
    """

    def __init__(self, expected: str, line: int, column: int, offset: int) -> None:
        self.expected = expected
        self.line = line
        self.column = column
        self.offset = offset
        super().__init__(f"expected {expected} at line {line}, column {column}")


class _Parser:
    """Backtracking recursive descent parser over the raw characters of a rule.

    Every ``_parse_*`` method is a generator of ``(expression, end)`` pairs,
    where ``end`` is the offset just past the parsed text.  The only real
    ambiguity in the grammar is how many trailing ``)`` belong to a check's
    right-hand side, so a check yields its greedy reading first and then
    readings that leave trailing ``)`` for enclosing groups.

    Syntax errors report the furthest offset any alternative reached.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._failure_offset = -1
        self._failure_expected: list[str] = []

    def parse(self) -> Expression:
        for expr, end in self._parse_or(0):
            end = self._skip_whitespace(end)
            if end == len(self._text):
                return expr
            self._fail(end, "'and', 'or' or end of input")
        raise self._error()

    # -- Precedence levels --

    def _parse_or(self, pos: int) -> Iterator[tuple[Expression, int]]:
        for left, end in self._parse_and(pos):
            yield from self._continue_or(left, end)

    def _continue_or(self, left: Expression, pos: int) -> Iterator[tuple[Expression, int]]:
        after = self._accept_keyword(pos, "or")
        if after is None:
            yield left, pos
            return
        for right, end in self._parse_and(after):
            yield from self._continue_or(Or(left, right), end)

    def _parse_and(self, pos: int) -> Iterator[tuple[Expression, int]]:
        for left, end in self._parse_unary(pos):
            yield from self._continue_and(left, end)

    def _continue_and(self, left: Expression, pos: int) -> Iterator[tuple[Expression, int]]:
        after = self._accept_keyword(pos, "and")
        if after is None:
            yield left, pos
            return
        for right, end in self._parse_unary(after):
            yield from self._continue_and(And(left, right), end)

    def _parse_unary(self, pos: int) -> Iterator[tuple[Expression, int]]:
        after = self._accept_keyword(pos, "not")
        if after is None:
            yield from self._parse_atom(pos)
            return
        for operand, end in self._parse_unary(after):
            yield Not(operand), end

    def _parse_atom(self, pos: int) -> Iterator[tuple[Expression, int]]:
        pos = self._skip_whitespace(pos)
        ch = self._peek(pos)
        if not ch:
            self._fail(pos, "expression")
        elif ch == "@":
            yield Const(True), self._skip_whitespace(pos + 1)
        elif ch == "!":
            yield Const(False), self._skip_whitespace(pos + 1)
        elif ch == "(":
            for expr, end in self._parse_or(pos + 1):
                end = self._skip_whitespace(end)
                if self._peek(end) == ")":
                    yield expr, self._skip_whitespace(end + 1)
                else:
                    self._fail(end, "')'")
        else:
            for check, end in self._parse_check(pos):
                yield check, self._skip_whitespace(end)

    # -- Checks --

    def _parse_check(self, pos: int) -> Iterator[tuple[Expression, int]]:
        lhs, pos = self._parse_lhs(pos)
        if lhs is None:
            return
        if self._peek(pos) != ":":
            self._fail(pos, "':'")
            return

        start = end = pos + 1
        while end < len(self._text) and self._text[end] not in _WHITESPACE:
            end += 1
        if end == start:
            self._fail(start, "right-hand side of check")
            return

        # At least one character always stays in the rhs.
        while True:
            yield Check(lhs, self._text[start:end]), end
            if end - start < 2 or self._text[end - 1] != ")":
                return
            end -= 1

    def _parse_lhs(self, pos: int) -> tuple[LeftHandSide | None, int]:
        quote = self._peek(pos)
        if quote not in _QUOTES:
            end = self._take_lhs_chars(pos)
            if end == pos:
                self._fail(pos, "check or opening parenthesis")
                return None, pos
            return Identifier(self._text[pos:end]), end

        start = pos + 1
        end = self._take_lhs_chars(start)
        if end == start:
            self._fail(start, "literal text")
            return None, start
        if self._peek(end) != quote:
            self._fail(end, f"closing {quote}")
            return None, end
        return Literal(self._text[start:end]), end + 1

    def _take_lhs_chars(self, pos: int) -> int:
        while pos < len(self._text) and self._text[pos] not in _LHS_EXCLUDED:
            pos += 1
        return pos

    # -- Utility methods --

    def _accept_keyword(self, pos: int, keyword: str) -> int | None:
        """Return the offset after ``keyword`` at ``pos``, or ``None``."""
        pos = self._skip_whitespace(pos)
        end = pos + len(keyword)
        if not self._text.startswith(keyword, pos):
            return None
        if end < len(self._text) and self._text[end] not in _KEYWORD_TERMINATORS:
            return None
        return end

    def _skip_whitespace(self, pos: int) -> int:
        while pos < len(self._text) and self._text[pos] in _WHITESPACE:
            pos += 1
        return pos

    def _peek(self, pos: int) -> str:
        return self._text[pos] if pos < len(self._text) else ""

    def _fail(self, offset: int, expected: str) -> None:
        if offset > self._failure_offset:
            self._failure_offset = offset
            self._failure_expected = [expected]
        elif offset == self._failure_offset and expected not in self._failure_expected:
            self._failure_expected.append(expected)

    def _error(self) -> RuleSyntaxError:
        offset = max(self._failure_offset, 0)
        expected = " or ".join(self._failure_expected) or "expression"
        line = self._text.count("\n", 0, offset) + 1
        column = offset - (self._text.rfind("\n", 0, offset) + 1) + 1
        return RuleSyntaxError(expected, line, column, offset)


def parse_expression(text: str) -> Expression:
    """Parse rule text into an :class:`~policy_ruleset.rules.ast.Expression`.

    Parameters
    ----------
    text:
        Rule source, e.g. ``"role:admin or rule:owner"``.

    Returns
    -------
    Expression
        The root node of the parsed tree.

    Raises
    ------
    RuleSyntaxError
        If ``text`` does not match the grammar.  No partial result is
        returned.
    """
    return _Parser(text).parse()
