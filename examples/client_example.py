#!/usr/bin/env python3
"""
mcp-sse-relay - Client Example

Connects to a running relay (``mcp-sse-relay --port 3000``), performs the
handshake and exercises every built-in tool and the greeting resource.
"""

import asyncio
import logging
import sys

import orjson

from mcp_sse_relay import RelayClient, RelayClientError, RelayRequestError

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

SERVER_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:3000"

CALLS = [
    ("calculator", {"operation": "add", "a": 5, "b": 3}),
    ("calculator", {"operation": "divide", "a": 10, "b": 0}),
    ("joker", {"topic": "programmers"}),
    ("student_grades", {"query_type": "all_highest"}),
    ("currency_exchange", {"amount": 100, "fromCurrency": "USD", "toCurrency": "CNY"}),
    ("calculater", {}),
]


def show(label: str, payload) -> None:
    print(f"\n=== {label} ===")
    print(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode())


async def main() -> int:
    try:
        async with RelayClient(SERVER_URL) as client:
            show("server", client.server_info)
            show("initialize", await client.initialize())

            for name, arguments in CALLS:
                try:
                    show(f"tools/call {name}", await client.call_tool(name, arguments))
                except RelayRequestError as e:
                    show(f"tools/call {name} failed", {"code": e.code, "message": str(e), "data": e.data})

            show("resources/read greeting://World", await client.read_resource("greeting://World"))
    except RelayClientError as e:
        print(f"Relay unavailable at {SERVER_URL}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
