"""Infix expression parser.

Text is tokenized by character class, converted to postfix with the
shunting-yard algorithm and built into a tree by operator arity.

Precedence from loosest to tightest: ``+ -``, ``* / % mod``, unary minus,
``^`` (right-associative). Functions require a parenthesized argument.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

from primefold.expression.nodes import NAMED_CONSTANTS, UNARY_OPS, Binary, Const, Expr, Id, Unary

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(
    r"(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z_][A-Za-z_0-9]*)"
    r"|(?P<space>\s+)"
    r"|(?P<symbol>.)"
)

_OPERATOR_SYMBOLS = {"+": "+", "-": "-", "*": "*", "/": "/", "%": "mod", "^": "^"}
_PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2, "mod": 2, "neg": 3, "^": 4}
_RIGHT_ASSOCIATIVE = {"^", "neg"}


class ExpressionSyntaxError(ValueError):
    """Raised by ParseResult.unwrap() when the text could not be parsed."""

    def __init__(self, message: str, unknown_tokens: tuple[str, ...] = ()):
        super().__init__(message)
        self.unknown_tokens = unknown_tokens


@dataclass(frozen=True)
class ParseError:
    message: str
    unknown_tokens: tuple[str, ...] = ()


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parse(): exactly one of expr or error is set."""

    expr: Expr | None = None
    error: ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Expr:
        """Return the parsed tree or raise ExpressionSyntaxError."""
        if self.error is not None:
            raise ExpressionSyntaxError(self.error.message, self.error.unknown_tokens)
        return self.expr


@dataclass(frozen=True)
class Token:
    kind: str  # number, variable, constant, function, operator, lparen, rparen
    text: str


class _Failure(Exception):
    pass


def tokenize(text: str) -> tuple[list[Token], list[str]]:
    """Split text into tokens.

    Returns:
        Tuple of (tokens, unknown) where unknown lists every token that is
        not part of the grammar, in order of appearance.
    """
    tokens: list[Token] = []
    unknown: list[str] = []

    for match in _TOKEN_RE.finditer(text):
        kind = match.lastgroup
        value = match.group()
        if kind == "space":
            continue
        if kind == "number":
            tokens.append(Token("number", value))
        elif kind == "name":
            if value == "n":
                tokens.append(Token("variable", value))
            elif value in NAMED_CONSTANTS:
                tokens.append(Token("constant", value))
            elif value in UNARY_OPS:
                tokens.append(Token("function", value))
            elif value == "mod":
                tokens.append(Token("operator", "mod"))
            else:
                unknown.append(value)
        elif value in _OPERATOR_SYMBOLS:
            tokens.append(Token("operator", _OPERATOR_SYMBOLS[value]))
        elif value == "(":
            tokens.append(Token("lparen", value))
        elif value == ")":
            tokens.append(Token("rparen", value))
        else:
            unknown.append(value)

    return tokens, unknown


def _to_postfix(tokens: list[Token]) -> list[Token]:
    output: list[Token] = []
    stack: list[Token] = []
    expect_operand = True

    for position, token in enumerate(tokens):
        if token.kind in ("number", "variable", "constant"):
            if not expect_operand:
                raise _Failure(f"Missing operator before {token.text!r}")
            output.append(token)
            expect_operand = False

        elif token.kind == "function":
            if not expect_operand:
                raise _Failure(f"Missing operator before {token.text!r}")
            following = tokens[position + 1] if position + 1 < len(tokens) else None
            if following is None or following.kind != "lparen":
                raise _Failure(f"Function {token.text!r} requires a parenthesized argument")
            stack.append(token)

        elif token.kind == "lparen":
            if not expect_operand:
                raise _Failure("Missing operator before '('")
            stack.append(token)

        elif token.kind == "rparen":
            if expect_operand:
                raise _Failure("Missing operand before ')'")
            while stack and stack[-1].kind != "lparen":
                output.append(stack.pop())
            if not stack:
                raise _Failure("Unbalanced ')'")
            stack.pop()
            if stack and stack[-1].kind == "function":
                output.append(stack.pop())

        else:
            op = token.text
            if expect_operand:
                if op == "-":
                    stack.append(Token("operator", "neg"))
                elif op != "+":
                    raise _Failure(f"Missing operand before {op!r}")
                continue

            while stack and stack[-1].kind == "operator":
                top = _PRECEDENCE[stack[-1].text]
                if top > _PRECEDENCE[op] or (top == _PRECEDENCE[op] and op not in _RIGHT_ASSOCIATIVE):
                    output.append(stack.pop())
                else:
                    break
            stack.append(token)
            expect_operand = True

    if expect_operand:
        raise _Failure("Incomplete expression")

    while stack:
        token = stack.pop()
        if token.kind == "lparen":
            raise _Failure("Unbalanced '('")
        output.append(token)

    return output


def _build(postfix: list[Token]) -> Expr:
    stack: list[Expr] = []
    for token in postfix:
        if token.kind == "number":
            value = float(token.text)
            if not math.isfinite(value):
                raise _Failure(f"Numeric literal out of range: {token.text}")
            stack.append(Const(value))
        elif token.kind == "variable":
            stack.append(Id())
        elif token.kind == "constant":
            stack.append(Const(NAMED_CONSTANTS[token.text]))
        elif token.kind == "function":
            stack.append(Unary(token.text, stack.pop()))
        elif token.text == "neg":
            operand = stack.pop()
            if isinstance(operand, Const):
                stack.append(Const(-operand.value))
            else:
                stack.append(Binary("*", Const(-1), operand))
        else:
            right = stack.pop()
            left = stack.pop()
            stack.append(Binary(token.text, left, right))

    if len(stack) != 1:
        raise _Failure("Malformed expression")
    return stack[0]


def parse(text: str) -> ParseResult:
    """Parse infix text into an expression tree.

    Never raises: malformed input is reported through ParseResult.error.

    Example:
        >>> parse("n^2 + 1").unwrap().evaluate(3)
        10.0
    """
    tokens, unknown = tokenize(text)
    if unknown:
        message = "Unknown tokens: " + ", ".join(repr(t) for t in unknown)
        logger.debug("Failed to parse %r: %s", text, message)
        return ParseResult(error=ParseError(message, tuple(unknown)))
    if not tokens:
        return ParseResult(error=ParseError("Empty expression"))

    try:
        expr = _build(_to_postfix(tokens))
    except _Failure as e:
        logger.debug("Failed to parse %r: %s", text, e)
        return ParseResult(error=ParseError(str(e)))

    return ParseResult(expr=expr)


def parse_expression(text: str) -> Expr:
    """Parse text, raising ExpressionSyntaxError on failure."""
    return parse(text).unwrap()
