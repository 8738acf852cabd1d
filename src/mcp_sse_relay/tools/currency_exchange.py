#!/usr/bin/env python3
# src/mcp_sse_relay/tools/currency_exchange.py
"""
Currency exchange tool - conversions over a fixed USD-based rate table.

Amounts are converted to USD first, then to the target currency, and
rounded half-up to two decimals. Bad input yields an ``isError`` result.
"""

import math
from typing import Any

from ..types import ToolHandler, ToolParameter, text_result

# Units per 1 USD
EXCHANGE_RATES = {
    "USD": 1.0,
    "EUR": 1.083,
    "GBP": 1.272,
    "JPY": 156.8,
    "CNY": 7.243,
    "CAD": 1.37,
    "AUD": 1.515,
    "CHF": 0.915,
    "HKD": 7.81,
    "NZD": 1.646,
}

CURRENCY_NAMES = {
    "USD": "美元",
    "EUR": "欧元",
    "GBP": "英镑",
    "JPY": "日元",
    "CNY": "人民币",
    "CAD": "加拿大元",
    "AUD": "澳大利亚元",
    "CHF": "瑞士法郎",
    "HKD": "港元",
    "NZD": "新西兰元",
}


class ExchangeError(ValueError):
    pass


def round_half_up(value: float, digits: int = 2) -> float:
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def convert(amount: Any, from_currency: str | None, to_currency: str | None) -> tuple[str, str, float]:
    """Return ``(FROM, TO, converted)`` or raise ExchangeError."""
    if isinstance(amount, bool) or not isinstance(amount, int | float) or amount <= 0:
        raise ExchangeError("金额必须是一个大于0的数字")
    if not from_currency or not to_currency:
        raise ExchangeError("源货币和目标货币不能为空")

    from_upper = from_currency.upper()
    to_upper = to_currency.upper()
    if from_upper not in EXCHANGE_RATES:
        raise ExchangeError(f"不支持的源货币: {from_currency}")
    if to_upper not in EXCHANGE_RATES:
        raise ExchangeError(f"不支持的目标货币: {to_currency}")

    if from_upper == to_upper:
        return from_upper, to_upper, float(amount)

    usd_amount = amount / EXCHANGE_RATES[from_upper]
    return from_upper, to_upper, round_half_up(usd_amount * EXCHANGE_RATES[to_upper])


def currency_exchange(amount: float | None = None, fromCurrency: str | None = None, toCurrency: str | None = None):
    try:
        from_upper, to_upper, converted = convert(amount, fromCurrency, toCurrency)
    except ExchangeError as e:
        return text_result(f"兑换失败: {e}", is_error=True)

    if from_upper == to_upper:
        return text_result(f"兑换结果: {amount:.2f} {from_upper} = {amount:.2f} {to_upper} (相同货币无需兑换)")
    return text_result(f"兑换结果: {amount:.2f} {from_upper} = {converted:.2f} {to_upper}")


def supported_currencies() -> str:
    lines = [f"{code} - {CURRENCY_NAMES.get(code, code)} (汇率: {rate})" for code, rate in EXCHANGE_RATES.items()]
    return "支持的货币列表:\n" + "\n".join(lines)


def create_tool() -> ToolHandler:
    return ToolHandler.from_function(
        currency_exchange,
        title="货币兑换",
        description="按固定汇率在常见货币之间兑换金额。" + supported_currencies(),
        parameters=[
            ToolParameter("amount", "number", "兑换金额", required=False),
            ToolParameter("fromCurrency", "string", "源货币代码，如 USD", required=False),
            ToolParameter("toCurrency", "string", "目标货币代码，如 CNY", required=False),
        ],
    )
