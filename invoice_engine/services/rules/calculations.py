"""Usage: derive row fields from configured calculations (multiply, add, custom formulas, ...)."""

from __future__ import annotations

import ast
import logging
import math
import operator
import re
from functools import reduce
from typing import Callable, Sequence

from invoice_engine.schemas.extraction import ExtractedRow
from invoice_engine.schemas.tenant import CalculationKind, FieldCalculation, ResultType

logger = logging.getLogger(__name__)


class CalculationError(ValueError):
    """Raised when a derived value cannot be computed."""


ALLOWED_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}

ALLOWED_UNARY_OPERATORS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_PLACEHOLDER_RE = re.compile(r"\{\s*([^{}\s]+)\s*\}")
_OPERATOR_ALIASES = str.maketrans({"×": "*", "÷": "/", "−": "-"})


def evaluate_expression(expression: str) -> float:
    """Safely evaluate an arithmetic expression built from numbers, + - * / and parentheses."""

    try:
        parsed = ast.parse(expression.translate(_OPERATOR_ALIASES).strip(), mode="eval")
    except SyntaxError as exc:
        raise CalculationError(f"Invalid expression '{expression}': {exc}") from exc

    def _eval(node: ast.AST) -> float:
        if isinstance(node, ast.Expression):
            return _eval(node.body)
        if isinstance(node, ast.Constant):
            if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
                raise CalculationError(f"Unsupported constant {node.value!r} in '{expression}'")
            return node.value
        if isinstance(node, ast.BinOp):
            op_type = type(node.op)
            if op_type not in ALLOWED_BINARY_OPERATORS:
                raise CalculationError(f"Unsupported binary operator: {ast.dump(node.op)}")
            return ALLOWED_BINARY_OPERATORS[op_type](_eval(node.left), _eval(node.right))
        if isinstance(node, ast.UnaryOp):
            op_type = type(node.op)
            if op_type not in ALLOWED_UNARY_OPERATORS:
                raise CalculationError(f"Unsupported unary operator: {ast.dump(node.op)}")
            return ALLOWED_UNARY_OPERATORS[op_type](_eval(node.operand))
        raise CalculationError(f"Unsupported expression component: {ast.dump(node)}")

    try:
        return _eval(parsed)
    except ZeroDivisionError as exc:
        raise CalculationError(f"Division by zero in '{expression}'") from exc


def render_formula(formula: str, values: dict[str, float]) -> str:
    """Substitute every ``{field}`` placeholder with the field's decimal string."""

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in values:
            raise CalculationError(f"Formula placeholder {{{name}}} is not a source field")
        return f"({values[name]!r})" if values[name] < 0 else repr(values[name])

    return _PLACEHOLDER_RE.sub(_replace, formula)


def _multiply(values: Sequence[float], _calc: FieldCalculation) -> float:
    return reduce(operator.mul, values)


def _add(values: Sequence[float], _calc: FieldCalculation) -> float:
    return sum(values)


def _subtract(values: Sequence[float], _calc: FieldCalculation) -> float:
    result = values[0]
    for value in values[1:]:
        result -= value
    return result


def _divide(values: Sequence[float], _calc: FieldCalculation) -> float:
    result = values[0]
    for divisor in values[1:]:
        if divisor == 0:
            raise CalculationError("Division by zero")
        result /= divisor
    return result


def _percentage(values: Sequence[float], _calc: FieldCalculation) -> float:
    if len(values) < 2:
        raise CalculationError("Percentage needs a base and a rate")
    return values[0] * values[1] / 100


def _custom(values: Sequence[float], calc: FieldCalculation) -> float:
    named = dict(zip(calc.source_fields, values))
    return evaluate_expression(render_formula(calc.formula or "", named))


CALCULATORS: dict[CalculationKind, Callable[[Sequence[float], FieldCalculation], float]] = {
    CalculationKind.MULTIPLY: _multiply,
    CalculationKind.ADD: _add,
    CalculationKind.SUBTRACT: _subtract,
    CalculationKind.DIVIDE: _divide,
    CalculationKind.PERCENTAGE: _percentage,
    CalculationKind.CUSTOM: _custom,
}


def compute(calc: FieldCalculation, row: ExtractedRow) -> int | float | None:
    """Return the cast result of ``calc`` on ``row``, or None when it does not apply."""

    if calc.apply_only_if_missing and calc.target_field in row:
        return None
    numbers = [row.get_number(name) for name in calc.source_fields]
    if any(number is None for number in numbers):
        return None
    values = [number for number in numbers if number is not None]
    if not values and calc.kind is not CalculationKind.CUSTOM:
        return None

    try:
        result = CALCULATORS[calc.kind](values, calc)
        if not math.isfinite(result):
            raise CalculationError(f"Non-finite result {result!r}")
    except (CalculationError, OverflowError) as exc:
        logger.debug("Calculation %s -> %s skipped: %s", calc.kind.value, calc.target_field, exc)
        return None

    if calc.result_type is ResultType.INTEGER:
        return int(result)
    return float(result)


def apply_calculations(row: ExtractedRow, calculations: Sequence[FieldCalculation]) -> ExtractedRow:
    """Mutate ``row`` in place, running calculations by ascending priority."""

    for calc in sorted(calculations, key=lambda item: item.priority):
        result = compute(calc, row)
        if result is None:
            continue
        row[calc.target_field] = result
        logger.debug("Derived %s=%s via %s", calc.target_field, result, calc.kind.value)
    return row
