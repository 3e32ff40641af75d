#!/usr/bin/env python3
"""
MongoDB connectivity probe.

Pings the configured MONGODB_URI with the same timeouts the API uses and
reports the full error on failure. Exits non-zero when the ping fails.
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path so we can import from the main application
sys.path.append(str(Path(__file__).parent.parent))

import config
from config import mask_uri
from database.db import BASE_OPTIONS, try_connect

async def main() -> int:
    uri = config.MONGODB_URI
    print(f"URI preview: {mask_uri(uri)[:120] if uri else '<empty>'}")
    if not uri:
        print("No MONGODB_URI found in .env")
        return 1

    try:
        client = await try_connect(uri, **BASE_OPTIONS)
    except Exception as e:
        print(f"CONNECT ERROR (full): {e!r}")
        return 1

    client.close()
    print("Ping OK - MongoDB reachable")
    return 0

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
