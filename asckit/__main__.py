"""Asset upload entry point.

Usage:
    python -m asckit upload previews --version-localization LOC_ID \\
        --type IPHONE_65 --path ./previews

    Or via the console script:
    asckit upload screenshots --version-localization LOC_ID \\
        --type APP_IPHONE_65 --path ./shot.png

Environment variables:
    ASC_TOKEN: Bearer token (required)
    ASC_API_URL, ASC_TIMEOUT, ASC_UPLOAD_TIMEOUT, ASC_POLL_INTERVAL,
    ASC_UPLOAD_CONCURRENCY, ASC_MAX_RETRIES: see AscConfig
"""

import argparse
import asyncio
import json
import logging
import sys

from pydantic import ValidationError

from .client import ASSET_KINDS, AscApiClient
from .config import AscConfig
from .deadline import Deadline
from .errfmt import format_stderr
from .retry import with_retry
from .upload import AssetUploader, AssetUploadResult, collect_asset_files

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="asckit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    upload = commands.add_parser("upload", help="Upload previews or screenshots")
    upload.add_argument("kind", choices=sorted(ASSET_KINDS))
    upload.add_argument(
        "--version-localization", required=True, help="Version localization ID"
    )
    upload.add_argument(
        "--type", required=True, help="Preview type or screenshot display type"
    )
    upload.add_argument("--path", required=True, help="File or directory to upload")
    return parser


async def run_upload(args: argparse.Namespace, config: AscConfig) -> list[dict]:
    """Ensure the target set exists and upload every file under ``args.path``."""
    kind = ASSET_KINDS[args.kind]
    set_type = kind.normalize_set_type(args.type)
    files = collect_asset_files(args.path)
    retry_options = config.retry_options()

    async with AscApiClient(config) as client:
        # Set lookup and creation share one ASC_TIMEOUT deadline, retries included
        deadline = Deadline.after(config.timeout)
        asset_set = await with_retry(
            lambda: client.ensure_asset_set(
                kind, args.version_localization, set_type, deadline
            ),
            retry_options,
            deadline,
        )
        uploader = AssetUploader(
            client.asset_target(kind, asset_set.id),
            client.upload_executor(),
            poll_interval=config.poll_interval,
            timeout=config.upload_timeout,
            retry_options=retry_options,
        )
        results: list[AssetUploadResult] = await uploader.upload_many(files)

    return [{"setId": asset_set.id, **r.model_dump()} for r in results]


def main(argv: list[str] | None = None) -> int:
    """Run the command line interface."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    try:
        config = AscConfig()
    except ValidationError as e:
        sys.stderr.write(f"Error: invalid configuration: {e}\n")
        return 1

    try:
        results = asyncio.run(run_upload(args, config))
    except KeyboardInterrupt:
        logger.info("Upload interrupted")
        return 130
    except Exception as e:
        sys.stderr.write(format_stderr(e))
        return 1

    json.dump(results, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
