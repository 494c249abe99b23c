#!/usr/bin/env python3
"""
Run a single expiry sweep (intents past their window, then stale pending matches).
"""

import asyncio
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from apps.workers.expiry_worker import ExpiryWorker
from core.config import settings


async def run_once() -> None:
    intents, matches = await ExpiryWorker().sweep()
    print(f"Expired intents: {intents}")
    print(f"Expired pending matches: {matches}")


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    asyncio.run(run_once())
