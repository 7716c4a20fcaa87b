#!/usr/bin/env python3
"""
Command-line interface for the TinyURL service.

Usage:
    python tinyurl_cli.py shorten <url> [--owner-id ID]
    python tinyurl_cli.py resolve <short_code>
    python tinyurl_cli.py urls <owner_id>
    python tinyurl_cli.py collisions
    python tinyurl_cli.py health
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

from config import Config
from tinyurl.bootstrap import build_services, ServiceBundle
from tinyurl.common.logging_config import setup_logging
from tinyurl.common.validators import is_valid_url, prepare_submitted_url
from tinyurl.exceptions import TinyURLError


def _emit(payload: dict, ok: bool = True) -> int:
    print(json.dumps(payload, indent=2, default=str), file=sys.stdout if ok else sys.stderr)
    return 0 if ok else 1


def _error(message: str, code: Optional[str] = None) -> int:
    payload = {"success": False, "error": message}
    if code:
        payload["error_code"] = code
    return _emit(payload, ok=False)


class TinyURLCLI:
    """Command-line interface for the TinyURL service."""

    def __init__(self, config: Config, fallback_only: bool = False, verbose: bool = False):
        self.config = config
        self.fallback_only = fallback_only
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING")
        self.bundle: Optional[ServiceBundle] = None

    async def initialize(self):
        self.bundle = build_services(self.config, logger=self.logger, use_primary=not self.fallback_only)
        await self.bundle.start(wait_for_primary=True)

    async def cleanup(self):
        if self.bundle:
            await self.bundle.close()

    async def shorten(self, url: str, owner_id: Optional[int] = None) -> int:
        url = prepare_submitted_url(url)
        is_valid, error = is_valid_url(url)
        if not is_valid:
            return _error(f"Invalid URL: {error}")

        record = await self.bundle.service.shorten(url, owner_id=owner_id)
        return _emit({
            "success": True,
            "short_url": record.short_url,
            "short_code": record.short_code,
            "original_url": record.original_url,
            "created_at": record.created_at.isoformat(),
            "storage": self.bundle.selector.active_kind,
        })

    async def resolve(self, short_code: str) -> int:
        record = await self.bundle.resolver.resolve(short_code)
        await self.bundle.resolver.drain()
        return _emit({
            "success": True,
            "short_code": record.short_code,
            "original_url": record.original_url,
        })

    async def urls(self, owner_id: int) -> int:
        records = await self.bundle.service.list_records(owner_id)
        return _emit({
            "success": True,
            "count": len(records),
            "urls": [record.to_dict() for record in records],
        })

    async def collisions(self) -> int:
        return _emit({"success": True, **await self.bundle.service.collision_statistics()})

    async def health(self) -> int:
        health = await self.bundle.service.health_check()
        return _emit({"success": health["overall"], "health": health}, ok=health["overall"])


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="TinyURL CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Shorten a URL anonymously
  %(prog)s shorten https://example.com/long/url

  # Shorten for a registered owner
  %(prog)s shorten example.com/long/url --owner-id 1

  # Resolve (counts a click)
  %(prog)s resolve aB3_x

  # An owner's history
  %(prog)s urls 1

  # Work on the snapshot file only
  %(prog)s --fallback-only collisions
        """
    )

    parser.add_argument(
        "--fallback-only",
        action="store_true",
        help="Skip the primary store and use the fallback snapshot file"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    shorten_parser = subparsers.add_parser("shorten", help="Shorten a URL")
    shorten_parser.add_argument("url", help="URL to shorten")
    shorten_parser.add_argument("--owner-id", type=int, help="Registered owner id")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a short code")
    resolve_parser.add_argument("short_code", help="Short code to lookup")

    urls_parser = subparsers.add_parser("urls", help="List an owner's URLs")
    urls_parser.add_argument("owner_id", type=int, help="Owner id")

    subparsers.add_parser("collisions", help="Collision statistics")
    subparsers.add_parser("health", help="Check storage health")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    cli = TinyURLCLI(Config(), fallback_only=args.fallback_only, verbose=args.verbose)

    try:
        await cli.initialize()

        if args.command == "shorten":
            return await cli.shorten(args.url, args.owner_id)
        elif args.command == "resolve":
            return await cli.resolve(args.short_code)
        elif args.command == "urls":
            return await cli.urls(args.owner_id)
        elif args.command == "collisions":
            return await cli.collisions()
        elif args.command == "health":
            return await cli.health()
        else:
            parser.print_help()
            return 1

    except TinyURLError as e:
        return _error(str(e), e.error_code)
    finally:
        await cli.cleanup()


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
