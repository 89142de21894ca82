"""Resolve ENS names through a trusted on-chain parser contract."""

import asyncio
import logging
import os

from dotenv import load_dotenv

from onchain_parsers import (
    ChainCallFailed,
    DecodeError,
    ParserClient,
    SchemaTag,
    encode_parser_data,
)

# Configure logging to see dispatch details
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()


async def main() -> None:
    rpc_url = os.getenv("RPC_URL")
    if not rpc_url:
        raise ValueError("RPC_URL not found in environment variables")

    handler = os.getenv("ENS_PARSER_ADDRESS")
    if not handler:
        raise ValueError("ENS_PARSER_ADDRESS not found in environment variables")

    client = ParserClient(rpc_url, chain_id=1, call_timeout=5.0)
    client.register_parser(handler, "ENS names", SchemaTag.ADDRESS20)

    async with client:
        for name in ("vitalik.eth", "vitalik.eth", "unknown.eth"):
            try:
                result = await client.parse(handler, encode_parser_data(["string"], [name]))
                print(f"{name:>12} -> {result.decoded_value}")
            except (ChainCallFailed, DecodeError) as exc:
                # Surface as "could not resolve" without aborting the flow
                print(f"{name:>12} -> could not resolve metadata ({exc.message})")

        print(f"Cached results: {len(client.cache)}")


if __name__ == "__main__":
    asyncio.run(main())
