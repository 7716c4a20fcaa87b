#!/usr/bin/env python3
"""
Repair stored URLs that were saved before normalization existed
(HTML-entity escaping, duplicated protocol prefixes).

Runs against whichever store is active: the primary database when it is
reachable, otherwise the fallback snapshot file.

Usage:
    python cleanup_urls.py [--fallback-only] [-v]
"""

import argparse
import asyncio
import sys

from config import Config
from tinyurl.bootstrap import build_services
from tinyurl.common.logging_config import setup_logging
from tinyurl.exceptions import TinyURLError


async def main():
    parser = argparse.ArgumentParser(description="Repair legacy malformed URLs")
    parser.add_argument(
        "--fallback-only",
        action="store_true",
        help="Only repair the fallback snapshot file"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    
    args = parser.parse_args()
    
    logger = setup_logging(level="DEBUG" if args.verbose else "INFO")
    config = Config(heartbeat_seconds=0)
    bundle = build_services(config, logger=logger, use_primary=not args.fallback_only)
    
    try:
        await bundle.start(wait_for_primary=True)
        logger.info(f"Repairing URLs in {bundle.selector.active_kind} storage")
        fixed = await bundle.service.repair_stored_urls()
        logger.info(f"Fixed {fixed} URLs total")
        return 0
    except TinyURLError as e:
        logger.error(f"Cleanup failed: {e}")
        return 1
    finally:
        await bundle.close()


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
