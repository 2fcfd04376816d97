"""Command-line front door for content-navigator.

Loads configuration from the environment, connects to the content service
and runs one bulk operation: upload local paths, download remote resources,
or empty the recycle bin.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from content_navigator.config import load_config
from content_navigator.errors import NavigatorError
from content_navigator.navigator.identity import LOCATOR_SCHEME, Locator
from content_navigator.navigator.provider import navigator_from_config
from content_navigator.repository.models import MY_FOLDER_DELEGATE

if TYPE_CHECKING:
    from content_navigator.navigator.provider import ContentNavigator
    from content_navigator.repository.models import Resource

logger = logging.getLogger(__name__)


class ConsoleEditorHost:
    """Editor host for unattended runs: no open tabs, errors go to stderr."""

    def find_open_document(self, locator: Locator) -> Any | None:
        return None

    async def close_document(self, handle: Any) -> bool:
        return True

    async def open_document(self, locator: Locator) -> None:
        return None

    def show_error(self, message: str) -> None:
        print(message, file=sys.stderr)

    def reveal(self, resource: Resource) -> None:
        return None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="content-navigator")
    commands = parser.add_subparsers(dest="command", required=True)

    upload = commands.add_parser("upload", help="upload local files and folders")
    upload.add_argument("paths", nargs="+", type=Path)
    upload.add_argument(
        "--target",
        default=MY_FOLDER_DELEGATE,
        help="folder URI or delegate name (default: %(default)s)",
    )

    download = commands.add_parser("download", help="download remote files and folders")
    download.add_argument("uris", nargs="+")
    download.add_argument("--dest", type=Path, default=Path.cwd())

    commands.add_parser("empty-trash", help="permanently delete the recycle bin's contents")
    return parser


async def _resolve(navigator: ContentNavigator, uri: str) -> Resource:
    """Resolve a folder URI or ``@delegate`` name to a resource."""
    repository = navigator.repository
    if uri.startswith("@"):
        folder = await repository.get_delegate_folder(uri)
        if folder is None:
            raise NavigatorError(f"delegate folder {uri} is not available")
        return folder
    return await repository.get_resource_by_locator(
        Locator(scheme=LOCATOR_SCHEME, name="", resource_uri=uri)
    )


async def _run(args: argparse.Namespace, navigator: ContentNavigator, endpoint: str) -> bool:
    await navigator.connect(endpoint)
    if args.command == "upload":
        target = await _resolve(navigator, args.target)
        report = await navigator.transfers.upload_paths(args.paths, target)
        return report.ok
    if args.command == "download":
        selections = [await _resolve(navigator, uri) for uri in args.uris]
        report = await navigator.download_content_items(args.dest, selections, selections)
        return report.ok
    return await navigator.empty_recycle_bin()


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run the requested command and return the exit status."""
    args = _build_parser().parse_args(argv)
    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    navigator = navigator_from_config(config, ConsoleEditorHost())
    try:
        ok = asyncio.run(_run(args, navigator, config.endpoint))
    except NavigatorError:
        logger.exception("[main] %s failed", args.command)
        return 1
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
