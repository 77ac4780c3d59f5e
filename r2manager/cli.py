"""Command-line access to the configured bucket."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError

from r2manager.exceptions import ConfigurationError
from r2manager.logging_config import get_logger, setup_logging
from r2manager.settings import Settings, StorageSettings
from r2manager.storage import ObjectStorage, R2Manager, is_not_found

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_CONFIG = 2
EXIT_STORAGE = 3
EXIT_LOCAL_FILE = 4

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="r2manager",
        description="Manage objects in Cloudflare R2, OVH or any S3-compatible bucket",
    )
    parser.add_argument("--config", type=Path, help="YAML config (default: $R2MANAGER_CONFIG or config/default.yaml)")
    parser.add_argument("--log-level", help="Override the configured log level")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create-bucket", help="Create a bucket")
    create.add_argument("name", nargs="?", help="Bucket name (default: configured bucket)")

    delete_bucket = commands.add_parser("delete-bucket", help="Delete an empty bucket")
    delete_bucket.add_argument("name", nargs="?", help="Bucket name (default: configured bucket)")

    upload = commands.add_parser("upload", help="Upload a file as an object")
    upload.add_argument("key", help="Object key")
    upload.add_argument("file", help="Local file, or - for stdin")
    upload.add_argument("--cache-control", help="Cache-Control header, e.g. max-age=60")
    upload.add_argument("--content-type", help="Content-Type header, e.g. text/plain")

    get = commands.add_parser("get", help="Download an object")
    get.add_argument("key", help="Object key")
    get.add_argument("--output", type=Path, help="Write to this file instead of stdout")

    delete = commands.add_parser("delete", help="Delete an object")
    delete.add_argument("key", help="Object key")

    return parser


async def dispatch(args: argparse.Namespace, storage: ObjectStorage) -> None:
    if args.command == "create-bucket":
        await storage.create_bucket(args.name)
    elif args.command == "delete-bucket":
        await storage.delete_bucket(args.name)
    elif args.command == "upload":
        body = sys.stdin.buffer.read() if args.file == "-" else Path(args.file).read_bytes()
        await storage.upload(
            args.key,
            body,
            cache_control=args.cache_control,
            content_type=args.content_type,
        )
    elif args.command == "get":
        data = await storage.get(args.key)
        if args.output:
            args.output.write_bytes(data)
        else:
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()
    elif args.command == "delete":
        await storage.delete(args.key)
    else:
        raise ValueError(f"Unknown command: {args.command}")


async def run_command(args: argparse.Namespace, settings: StorageSettings) -> int:
    async with await R2Manager.from_settings(settings) as manager:
        await dispatch(args, manager)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.load(args.config)
    except (FileNotFoundError, ValueError) as exc:
        logger.error(f"Could not load configuration: {exc}")
        return EXIT_CONFIG

    setup_logging(
        level=args.log_level or settings.logging.level,
        json_format=settings.logging.json_format,
        log_file=settings.logging.file,
    )

    try:
        return asyncio.run(run_command(args, settings.storage))
    except ConfigurationError as exc:
        logger.error(f"Configuration error: {exc.message}")
        return EXIT_CONFIG
    except (ClientError, BotoCoreError) as exc:
        if is_not_found(exc):
            return EXIT_NOT_FOUND
        return EXIT_STORAGE
    except OSError as exc:
        logger.error(f"Local file error: {exc}")
        return EXIT_LOCAL_FILE


if __name__ == "__main__":
    raise SystemExit(main())
