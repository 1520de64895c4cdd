"""Module uploader - mirrors a local directory into the registry bucket.

Usage:
    registry-sync [path] -b BUCKET [-v VERSION] [-c CONCURRENCY]

Every file is stored as <dirname>@<version>/<relative path> with a
Content-Type inferred from its extension. .git, .terraform and .vscode
directories are skipped.

Credentials come from AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY,
AWS_SESSION_TOKEN (optional) and AWS_REGION.

Exit codes:
    0: walk completed (per-file failures are logged, not fatal), or --help
    1: the store could not be configured
    2: invalid arguments
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from providers.impl.storage_s3 import S3StorageProvider
from uploader.sync import DEFAULT_CONCURRENCY, DEFAULT_VERSION, sync_directory

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="registry-sync",
        description="Uploads the content of a directory to the registry bucket.",
    )
    parser.add_argument("path", nargs="?", default=".", help="Directory to upload (default: current directory)")
    parser.add_argument("-b", "--bucket", required=True, help="Destination bucket")
    parser.add_argument(
        "-v",
        "--version",
        default=DEFAULT_VERSION,
        help=f"The version of the module being uploaded (default: {DEFAULT_VERSION})",
    )
    parser.add_argument(
        "-c",
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help=f"Maximum uploads in flight (default: {DEFAULT_CONCURRENCY})",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.concurrency < 1:
        logger.error("--concurrency must be >= 1")
        return 2

    try:
        store = S3StorageProvider.from_env(bucket=args.bucket)
    except Exception as e:
        logger.error("could not configure the store: %s", e)
        return 1

    asyncio.run(sync_directory(store, args.path, args.version, args.concurrency))
    return 0


if __name__ == "__main__":
    sys.exit(main())
