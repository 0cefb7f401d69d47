"""Restricted scalar expressions applied to raw noise values.

Expressions come from a free-form text control, so they are never handed to
the interpreter. Source text is tokenized, parsed into a small immutable tree
and evaluated with a fixed whitelist of operators and math functions. The
only variable is ``N``, the live noise scalar.

Grammar (lowest to highest precedence)::

    expr    := term (("+" | "-") term)*
    term    := unary (("*" | "/" | "%") unary)*
    unary   := ("+" | "-") unary | power
    power   := primary ("^" unary)?          # right-associative
    primary := NUMBER | "N" | CONSTANT | NAME "(" args ")"
             | "(" expr ")" | "|" expr "|"

Evaluation never raises to callers of :func:`evaluate`: any failure returns
the untouched noise value together with the error that caused the fallback.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Tuple

from .errors import EvaluationError, ParseError

LOGGER = logging.getLogger(__name__)

MAX_EXPRESSION_LENGTH = 1024
MAX_NESTING_DEPTH = 64
VARIABLE = "N"

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    |(?P<name>[A-Za-z_][A-Za-z_0-9]*)
    |(?P<op>\*\*|[-+*/%^(),|])
    """,
    re.VERBOSE,
)


# -- Whitelisted math -----------------------------------------------------

def _sign(value: float) -> float:
    if value > 0.0:
        return 1.0
    if value < 0.0:
        return -1.0
    return 0.0


def _cbrt(value: float) -> float:
    return math.copysign(abs(value) ** (1.0 / 3.0), value)


def _log(value: float, base: Optional[float] = None) -> float:
    if base is None:
        return math.log(value)
    return math.log(value, base)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _mix(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def _round(value: float) -> float:
    return float(math.floor(value + 0.5))


# name -> (callable, minimum arity, maximum arity or None for variadic)
FUNCTIONS: Dict[str, Tuple[Callable[..., float], int, Optional[int]]] = {
    "sin": (math.sin, 1, 1),
    "cos": (math.cos, 1, 1),
    "tan": (math.tan, 1, 1),
    "asin": (math.asin, 1, 1),
    "acos": (math.acos, 1, 1),
    "atan": (math.atan, 1, 1),
    "atan2": (math.atan2, 2, 2),
    "sinh": (math.sinh, 1, 1),
    "cosh": (math.cosh, 1, 1),
    "tanh": (math.tanh, 1, 1),
    "sqrt": (math.sqrt, 1, 1),
    "cbrt": (_cbrt, 1, 1),
    "abs": (abs, 1, 1),
    "pow": (math.pow, 2, 2),
    "exp": (math.exp, 1, 1),
    "log": (_log, 1, 2),
    "log2": (math.log2, 1, 1),
    "log10": (math.log10, 1, 1),
    "floor": (math.floor, 1, 1),
    "ceil": (math.ceil, 1, 1),
    "round": (_round, 1, 1),
    "sign": (_sign, 1, 1),
    "min": (min, 2, None),
    "max": (max, 2, None),
    "clamp": (_clamp, 3, 3),
    "mix": (_mix, 3, 3),
}

CONSTANTS: Dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
    "tau": math.tau,
}


# -- Syntax tree ----------------------------------------------------------

class Node:
    """Base class for expression tree nodes."""

    def evaluate(self, n: float) -> float:
        raise NotImplementedError


@dataclass(frozen=True)
class Number(Node):
    value: float

    def evaluate(self, n: float) -> float:
        return self.value


@dataclass(frozen=True)
class Variable(Node):
    def evaluate(self, n: float) -> float:
        return n


@dataclass(frozen=True)
class Unary(Node):
    op: str
    operand: Node

    def evaluate(self, n: float) -> float:
        value = self.operand.evaluate(n)
        return -value if self.op == "-" else value


@dataclass(frozen=True)
class Binary(Node):
    op: str
    left: Node
    right: Node

    def evaluate(self, n: float) -> float:
        left = self.left.evaluate(n)
        right = self.right.evaluate(n)
        if self.op == "+":
            return left + right
        if self.op == "-":
            return left - right
        if self.op == "*":
            return left * right
        if self.op == "/":
            return left / right
        if self.op == "%":
            return math.fmod(left, right)
        # math.pow raises instead of returning a complex number for negative bases.
        return math.pow(left, right)


@dataclass(frozen=True)
class Absolute(Node):
    operand: Node

    def evaluate(self, n: float) -> float:
        return abs(self.operand.evaluate(n))


@dataclass(frozen=True)
class Call(Node):
    name: str
    args: Tuple[Node, ...]

    def evaluate(self, n: float) -> float:
        function = FUNCTIONS[self.name][0]
        return float(function(*(arg.evaluate(n) for arg in self.args)))


# -- Tokenizer ------------------------------------------------------------

@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int


def tokenize(source: str) -> List[Token]:
    """Split ``source`` into tokens, rejecting any unsupported character."""

    tokens: List[Token] = []
    position = 0
    while position < len(source):
        match = _TOKEN_RE.match(source, position)
        if match is None:
            raise ParseError(
                f"unexpected character {source[position]!r} at {position}", source, position
            )
        kind = match.lastgroup
        text = match.group()
        if kind != "ws":
            if kind == "op" and text == "**":
                text = "^"
            tokens.append(Token(kind, text, position))
        position = match.end()
    tokens.append(Token("end", "", len(source)))
    return tokens


# -- Parser ---------------------------------------------------------------

class _Parser:
    def __init__(self, source: str) -> None:
        self._source = source
        self._tokens = tokenize(source)
        self._index = 0
        self._depth = 0

    def parse(self) -> Node:
        node = self._expression()
        token = self._peek()
        if token.kind != "end":
            raise self._error(f"unexpected {token.text!r}", token)
        return node

    # //1.- Token cursor helpers.
    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _accept(self, text: str) -> bool:
        token = self._peek()
        if token.kind == "op" and token.text == text:
            self._index += 1
            return True
        return False

    def _expect(self, text: str) -> None:
        if not self._accept(text):
            token = self._peek()
            found = token.text or "end of input"
            raise self._error(f"expected {text!r} but found {found!r}", token)

    def _error(self, message: str, token: Token) -> ParseError:
        return ParseError(f"{message} at {token.position}", self._source, token.position)

    def _enter(self) -> None:
        self._depth += 1
        if self._depth > MAX_NESTING_DEPTH:
            raise self._error("expression nested too deeply", self._peek())

    def _leave(self) -> None:
        self._depth -= 1

    # //2.- Grammar rules, lowest precedence first.
    def _expression(self) -> Node:
        self._enter()
        node = self._term()
        while True:
            token = self._peek()
            if token.kind == "op" and token.text in "+-":
                self._advance()
                node = Binary(token.text, node, self._term())
            else:
                break
        self._leave()
        return node

    def _term(self) -> Node:
        node = self._unary()
        while True:
            token = self._peek()
            if token.kind == "op" and token.text in ("*", "/", "%"):
                self._advance()
                node = Binary(token.text, node, self._unary())
            else:
                break
        return node

    def _unary(self) -> Node:
        token = self._peek()
        if token.kind == "op" and token.text in "+-":
            self._advance()
            self._enter()
            operand = self._unary()
            self._leave()
            return Unary(token.text, operand)
        return self._power()

    def _power(self) -> Node:
        base = self._primary()
        if self._accept("^"):
            self._enter()
            exponent = self._unary()
            self._leave()
            return Binary("^", base, exponent)
        return base

    def _primary(self) -> Node:
        token = self._advance()
        if token.kind == "number":
            return Number(float(token.text))
        if token.kind == "name":
            return self._name(token)
        if token.kind == "op" and token.text == "(":
            node = self._expression()
            self._expect(")")
            return node
        if token.kind == "op" and token.text == "|":
            node = self._expression()
            self._expect("|")
            return Absolute(node)
        found = token.text or "end of input"
        raise self._error(f"unexpected {found!r}", token)

    def _name(self, token: Token) -> Node:
        name = token.text
        if name == VARIABLE:
            return Variable()
        if name in FUNCTIONS:
            self._expect("(")
            args: List[Node] = []
            if not self._accept(")"):
                args.append(self._expression())
                while self._accept(","):
                    args.append(self._expression())
                self._expect(")")
            _, minimum, maximum = FUNCTIONS[name]
            if len(args) < minimum or (maximum is not None and len(args) > maximum):
                raise self._error(f"wrong number of arguments for {name}()", token)
            return Call(name, tuple(args))
        if name in CONSTANTS:
            return Number(CONSTANTS[name])
        raise self._error(f"unknown name {name!r}", token)


# -- Public API -----------------------------------------------------------

@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of one evaluation; ``error`` is set whenever ``value`` is a fallback."""

    value: float
    error: Optional[EvaluationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CompiledExpression:
    """A parsed expression that can be evaluated repeatedly."""

    def __init__(self, source: str, root: Node) -> None:
        self._source = source
        self._root = root

    @property
    def source(self) -> str:
        return self._source

    @property
    def is_identity(self) -> bool:
        return isinstance(self._root, Variable)

    def evaluate(self, n: float) -> EvaluationResult:
        try:
            value = self._root.evaluate(n)
        except ZeroDivisionError:
            return EvaluationResult(n, EvaluationError("division by zero", self._source))
        except (ValueError, OverflowError) as exc:
            return EvaluationResult(n, EvaluationError(f"math error: {exc}", self._source))
        if not math.isfinite(value):
            return EvaluationResult(n, EvaluationError(f"non-finite result {value!r}", self._source))
        return EvaluationResult(float(value))

    def __call__(self, n: float) -> float:
        return self.evaluate(n).value

    def __repr__(self) -> str:
        return f"CompiledExpression({self._source!r})"


@lru_cache(maxsize=128)
def compile_expression(source: str) -> CompiledExpression:
    """Parse ``source`` into a reusable expression; raises :class:`ParseError`."""

    if not isinstance(source, str):
        raise ParseError(f"expression must be a string, got {type(source).__name__}")
    if len(source) > MAX_EXPRESSION_LENGTH:
        raise ParseError(f"expression longer than {MAX_EXPRESSION_LENGTH} characters", source[:32])
    if not source.strip():
        raise ParseError("empty expression", source)
    return CompiledExpression(source, _Parser(source).parse())


def evaluate(expression: str, n: float) -> EvaluationResult:
    """Apply ``expression`` to the noise value ``n``.

    Malformed input or a non-finite result yields ``n`` unchanged and the
    error that triggered the fallback.
    """

    try:
        compiled = compile_expression(expression)
    except ParseError as exc:
        LOGGER.debug("Expression %r rejected: %s", expression, exc)
        return EvaluationResult(n, exc)
    return compiled.evaluate(n)
