#!/usr/bin/env python3
# src/mcp_sse_relay/tools/calculator.py
"""
Calculator tool - the four basic arithmetic operations.

Invalid input (unknown operation, division by zero) is reported as a normal
text result rather than an error envelope.
"""

from ..types import ToolHandler, ToolParameter, text_result

OPERATIONS = {
    "add": "+",
    "+": "+",
    "subtract": "-",
    "-": "-",
    "multiply": "×",
    "*": "×",
    "divide": "÷",
    "/": "÷",
}

MSG_DIVIDE_BY_ZERO = "错误：除数不能为零！"
MSG_UNSUPPORTED = "错误：不支持的运算类型。支持的运算：add(加法), subtract(减法), multiply(乘法), divide(除法)"


def format_number(value: float) -> str:
    """Render numbers the way clients expect: ``8`` rather than ``8.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def calculate(operation: str, a: float, b: float) -> dict:
    try:
        symbol = OPERATIONS.get(operation.lower())
        if symbol is None:
            return text_result(MSG_UNSUPPORTED)

        if symbol == "+":
            result = a + b
        elif symbol == "-":
            result = a - b
        elif symbol == "×":
            result = a * b
        else:
            if b == 0:
                return text_result(MSG_DIVIDE_BY_ZERO)
            result = a / b

        return text_result(f"{format_number(a)} {symbol} {format_number(b)} = {format_number(result)}")
    except (ArithmeticError, ValueError) as e:
        return text_result(f"计算错误：{e}")


def create_tool() -> ToolHandler:
    return ToolHandler.from_function(
        calculate,
        name="calculator",
        title="四则运算计算器",
        description="执行基本的加减乘除运算",
        parameters=[
            ToolParameter("operation", "string", "运算类型: add(加法), subtract(减法), multiply(乘法), divide(除法)"),
            ToolParameter("a", "number", "第一个数字"),
            ToolParameter("b", "number", "第二个数字"),
        ],
    )
