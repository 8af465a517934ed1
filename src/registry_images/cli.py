"""CLI for registry images."""

import argparse
import json
import logging
import re
import sys
from pathlib import Path

import httpx
import structlog

from .config import Config
from .exceptions import RegistryError
from .factory import Factory
from .models.image import RepositoryTags


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Manage images in a container registry."
    )
    parser.add_argument(
        "-c",
        "--config-file",
        "--file",
        type=Path,
        help="configuration file",
        default=Path("/etc/registry-images/config.yaml"),
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
        default=False,
    )
    parser.add_argument(
        "-x",
        "--dry-run",
        action="store_true",
        help="Dry run only: do not delete any images",
        default=False,
    )
    commands = parser.add_subparsers(dest="command", required=True)
    images = commands.add_parser(
        "images", help="perform operations on images in the registry"
    )
    actions = images.add_subparsers(dest="action", required=True)

    ls = actions.add_parser("list", help="list images in the registry")
    ls.add_argument("--filter", help="Regex to filter results", default=None)
    ls.add_argument(
        "--include-digests",
        action="store_true",
        help="Include digests in tag output",
        default=False,
    )
    ls.add_argument(
        "--json", action="store_true", help="Output JSON", default=False
    )

    rm = actions.add_parser(
        "delete", help="remove an image from the registry"
    )
    rm.add_argument(
        "image",
        help="image to delete: 'repo:tag' for one tag, 'repo' for all",
    )
    return parser.parse_args(argv)


def _load_config(args: argparse.Namespace) -> Config:
    cfg = Config.from_file(args.config_file)

    # Override settings in config, if dry_run or debug are specified here
    if args.dry_run:
        cfg.dry_run = True
    if args.debug:
        cfg.debug = True
    return cfg


def _configure_logging(debug: bool) -> None:
    log_level = logging.DEBUG if debug else logging.INFO
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(log_level)
    )


def report(images: list[RepositoryTags], *, as_json: bool = False) -> None:
    """Print repositories and tags as JSON or as a table."""
    if as_json:
        print(json.dumps([x.to_dict() for x in images], indent=2))
        return
    rows = [("REPOSITORY", "TAG")]
    rows.extend((img.name, tag) for img in images for tag in img.tags)
    maxlen = max(len(x[0]) for x in rows)
    for name, tag in rows:
        print(name, " " * (maxlen - len(name)), tag)


def run(
    args: argparse.Namespace,
    cfg: Config,
    transport: httpx.BaseTransport | None = None,
) -> None:
    with Factory.standalone(cfg, transport=transport) as factory:
        if args.action == "list":
            lister = factory.create_image_lister()
            images = lister.list_images(
                args.filter, include_digests=args.include_digests
            )
            report(images, as_json=args.json)
        else:
            factory.create_image_deleter().delete(args.image)


def main(argv: list[str] | None = None) -> None:
    """Run the ``images`` commands; exit non-zero on any fatal error."""
    args = _parse_args(argv)
    cfg = _load_config(args)
    _configure_logging(cfg.debug)
    logger = structlog.get_logger(__name__)
    try:
        run(args, cfg)
    except (RegistryError, httpx.HTTPError, ValueError, re.error) as exc:
        if args.action == "list":
            logger.error(f"Error listing images: {exc}")
        else:
            logger.error(f"Error when removing image: {exc}")
        sys.exit(1)
