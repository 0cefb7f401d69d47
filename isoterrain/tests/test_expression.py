"""Tests for the restricted scalar expression language."""
from __future__ import annotations

import math

import pytest

from isoterrain.errors import EvaluationError, ParseError
from isoterrain.expression import MAX_EXPRESSION_LENGTH, compile_expression, evaluate


@pytest.mark.parametrize(
    "source, n, expected",
    [
        ("N", 0.42, 0.42),
        ("N^2", 0.5, 0.25),
        ("N**2", -0.5, 0.25),
        ("-N^2", 0.5, -0.25),
        ("|N|*2", -0.5, 1.0),
        ("2 + 3 * N", 2.0, 8.0),
        ("(2 + 3) * N", 2.0, 10.0),
        ("2^3^2", 0.0, 512.0),
        ("N % 0.3", 1.0, math.fmod(1.0, 0.3)),
        ("sin(pi / 2) * N", 0.75, 0.75),
        ("max(N, 0.1, -4)", -1.0, 0.1),
        ("clamp(N * 10, -1, 1)", 0.5, 1.0),
        ("mix(0, 10, N)", 0.25, 2.5),
        ("sign(N) * sqrt(abs(N))", -0.25, -0.5),
        ("1.5e1 / 3", 0.0, 5.0),
    ],
)
def test_supported_expressions(source, n, expected):
    result = evaluate(source, n)
    assert result.ok
    assert result.value == pytest.approx(expected)


def test_malformed_expression_falls_back_to_noise_value():
    result = evaluate("not an expression", 0.3)
    assert result.value == 0.3
    assert isinstance(result.error, ParseError)
    assert not result.ok


@pytest.mark.parametrize(
    "source",
    [
        "",
        "   ",
        "N +",
        "(N",
        "|N",
        "N N",
        "foo(N)",
        "x * 2",
        "__import__('os')",
        "N.real",
        "sin()",
        "atan2(N)",
        "min(N)",
        "N; 1",
    ],
)
def test_compile_rejects_unsupported_input(source):
    with pytest.raises(ParseError):
        compile_expression(source)


def test_parse_error_reports_position():
    with pytest.raises(ParseError) as info:
        compile_expression("N + $")
    assert info.value.position == 4
    assert info.value.expression == "N + $"


def test_overlong_and_deeply_nested_input_is_rejected():
    with pytest.raises(ParseError):
        compile_expression("N+" * MAX_EXPRESSION_LENGTH + "N")
    with pytest.raises(ParseError):
        compile_expression("(" * 200 + "N" + ")" * 200)


@pytest.mark.parametrize(
    "source, n",
    [
        ("1 / N", 0.0),
        ("N % 0", 0.5),
        ("sqrt(N)", -1.0),
        ("log(N)", 0.0),
        ("N ^ 0.5", -0.25),
        ("exp(N * 1000)", 1.0),
        ("10 ^ (N * 400)", 1.0),
    ],
)
def test_math_failures_fall_back_to_noise_value(source, n):
    result = evaluate(source, n)
    assert result.value == n
    assert isinstance(result.error, EvaluationError)


def test_non_finite_input_is_reported():
    result = evaluate("N * 2", float("inf"))
    assert result.value == float("inf")
    assert result.error is not None


def test_compiled_expressions_are_reused():
    assert compile_expression("N * 3") is compile_expression("N * 3")
    assert compile_expression("N").is_identity
    assert compile_expression("N * 3")(2.0) == pytest.approx(6.0)
