#!/usr/bin/env python3
"""Generate thumbnails for images already in the gallery.

Usage:
    python generate_thumbnails.py [--force] [--config FILE]
    python generate_thumbnails.py --item ID --x 50 --y 25

Options:
    --force      Regenerate thumbnails that already exist
    --item ID    Regenerate a single item at the position given by --x/--y
    --config     Path to config.yaml (defaults to the standard search paths)
"""

import argparse
import logging
import sys

from ai_gallery.config import Config
from ai_gallery.db import MediaStore
from ai_gallery.exceptions import GalleryError
from ai_gallery.log_config import setup_logging_from_config
from ai_gallery.models import ThumbnailPosition
from ai_gallery.thumbnails import regenerate_thumbnail_for_item, regenerate_thumbnails

logger = logging.getLogger("generate_thumbnails")


def main():
    parser = argparse.ArgumentParser(description="Generate gallery thumbnails")
    parser.add_argument("--force", action="store_true",
                        help="Regenerate thumbnails that already exist")
    parser.add_argument("--item", type=int, default=None,
                        help="Regenerate a single item by id")
    parser.add_argument("--x", type=int, default=50, help="Focal x percent for --item (default: 50)")
    parser.add_argument("--y", type=int, default=25, help="Focal y percent for --item (default: 25)")
    parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")
    args = parser.parse_args()

    config = Config.load(args.config)
    setup_logging_from_config(config.logging)
    store = MediaStore.from_config(config)

    if args.item is not None:
        try:
            position = ThumbnailPosition(args.x, args.y)
            done = regenerate_thumbnail_for_item(store, args.item, position, config.thumbnails)
        except (GalleryError, ValueError, OSError) as e:
            logger.error("Thumbnail regeneration failed: %s", e)
            sys.exit(1)
        logger.info("Item %d: %s", args.item, "regenerated" if done else "skipped (video)")
        return

    result = regenerate_thumbnails(
        store,
        force=args.force,
        settings=config.thumbnails,
        progress_callback=lambda p: logger.info("Generated %d/%d: %s", p["current"], p["total"], p["current_item"]),
    )
    logger.info("Results: %s", result)
    if result.errors:
        sys.exit(1)


if __name__ == "__main__":
    main()
