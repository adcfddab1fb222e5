#!/usr/bin/env python3
"""Simple CLI for talking to a running Wallet Assistant API"""

import argparse
import asyncio
import os
from typing import Any, Dict, Optional

import httpx

from wallet_assistant.core.streaming import DecodedReply, StreamDecoder, TextFrame

DEFAULT_BASE_URL = os.environ.get("WALLET_ASSISTANT_URL", "http://localhost:8000")


async def stream_question(
    base_url: str,
    query: str,
    address: Optional[str],
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    echo: bool = True,
) -> DecodedReply:
    """POST /ai and decode frames as they arrive."""

    decoder = StreamDecoder()
    reply = DecodedReply()
    payload: Dict[str, Any] = {"query": query}
    if address:
        payload["address"] = address

    async with httpx.AsyncClient(transport=transport, timeout=60) as client:
        async with client.stream("POST", f"{base_url.rstrip('/')}/ai", json=payload) as response:
            if response.status_code != 200:
                await response.aread()
                raise RuntimeError(f"/ai returned {response.status_code}: {response.text}")
            async for chunk in response.aiter_bytes():
                for frame in decoder.feed(chunk):
                    reply.add(frame)
                    if echo and isinstance(frame, TextFrame):
                        print(frame.text)
    for frame in decoder.close():
        reply.add(frame)
    return reply


async def cli_ask(base_url: str, query: str, address: Optional[str], show_json: bool):
    print(f"💬 {query}")
    try:
        reply = await stream_question(base_url, query, address)
    except (httpx.HTTPError, RuntimeError) as e:
        print(f"❌ Error: {e}")
        return

    if show_json and reply.structured is not None:
        print(f"\n📦 {reply.structured}")
    if not reply.done:
        print("⚠️  Stream ended without a done marker")


async def _get_json(base_url: str, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    async with httpx.AsyncClient(timeout=30) as client:
        response = await client.get(f"{base_url.rstrip('/')}{path}", params=params)
        response.raise_for_status()
        return response.json()


async def cli_portfolio(base_url: str, address: str):
    """Pretty print portfolio data"""
    print(f"🔍 Fetching portfolio for {address}...")
    try:
        data = await _get_json(base_url, f"/wallet/{address}/portfolio")
    except httpx.HTTPError as e:
        print(f"❌ Error: {e}")
        return

    print("\nPortfolio")
    print("=" * 50)
    print(f"Address: {data['address']}")
    print(f"Total Value: ${data.get('totalUsd', 0):,.2f} USD")
    print("-" * 50)
    for i, asset in enumerate(data.get("assets", []), 1):
        print(f"{i:2d}. {asset['balance']:>14.6f} {asset['symbol']:<8} ${asset.get('usd', 0):>12,.2f}")


async def cli_txs(base_url: str, address: str, max_count: int):
    print(f"📜 Fetching {max_count} transfers for {address}...")
    try:
        data = await _get_json(base_url, f"/wallet/{address}/txs", {"maxCount": max_count})
    except httpx.HTTPError as e:
        print(f"❌ Error: {e}")
        return

    for tx in data.get("txs", []):
        block_time = (tx.get("metadata") or {}).get("blockTimestamp", "")
        print(f" - {tx.get('hash', '')[:12]}… {tx.get('category', ''):<8} {tx.get('value')} {tx.get('asset') or ''} {block_time}")


async def cli_dao(base_url: str, address: str):
    try:
        data = await _get_json(base_url, f"/dao/{address}/votes")
    except httpx.HTTPError as e:
        print(f"❌ Error: {e}")
        return

    print(f"🗳️  {data.get('count', 0)} open proposals")
    for proposal in data.get("open", []):
        print(f" - {proposal['dao']}: {proposal['title']} (ends {proposal['ends'][:10]})")
        print(f"   {proposal['link']}")


async def cli_tx(base_url: str, tx_hash: str):
    try:
        data = await _get_json(base_url, "/debug", {"hash": tx_hash})
    except httpx.HTTPError as e:
        print(f"❌ Error: {e}")
        return

    for key in ("tx", "receipt"):
        exchange = data.get(key) or {}
        body = exchange.get("body")
        result = body.get("result") if isinstance(body, dict) else None
        print(f"{key}: HTTP {exchange.get('status')} {'found' if result else 'not found'}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Wallet Assistant CLI")
    parser.add_argument("--url", default=DEFAULT_BASE_URL, help=f"API base URL (default: {DEFAULT_BASE_URL})")
    subparsers = parser.add_subparsers(dest="command")

    ask_parser = subparsers.add_parser("ask", help="Ask the assistant a question")
    ask_parser.add_argument("query", help="Question, e.g. 'how much gas did I spend?'")
    ask_parser.add_argument("--address", help="Wallet address")
    ask_parser.add_argument("--json", action="store_true", help="Print the structured payload")

    portfolio_parser = subparsers.add_parser("portfolio", help="Get portfolio snapshot")
    portfolio_parser.add_argument("address", help="Wallet address")

    txs_parser = subparsers.add_parser("txs", help="List recent transfers")
    txs_parser.add_argument("address", help="Wallet address")
    txs_parser.add_argument("--max-count", type=int, default=50, help="Transfers to fetch (10-500)")

    dao_parser = subparsers.add_parser("dao", help="List open DAO proposals")
    dao_parser.add_argument("address", help="Wallet address")

    tx_parser = subparsers.add_parser("tx", help="Inspect a transaction and its receipt")
    tx_parser.add_argument("hash", help="Transaction hash")

    return parser


async def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    command = args.command.lower()

    if command == "ask":
        await cli_ask(args.url, args.query, args.address, args.json)

    elif command == "portfolio":
        await cli_portfolio(args.url, args.address)

    elif command == "txs":
        if args.max_count <= 0:
            raise ValueError("max-count must be positive")
        await cli_txs(args.url, args.address, args.max_count)

    elif command == "dao":
        await cli_dao(args.url, args.address)

    elif command == "tx":
        await cli_tx(args.url, args.hash)

    else:
        print(f"❌ Unknown command: {command}")
        parser.print_help()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
