#!/usr/bin/env python3
"""Import images and videos from a folder into the gallery.

Usage:
    python import_media.py FOLDER [--recursive] [--dry-run] [--config FILE]

Options:
    --recursive  Include subfolders
    --dry-run    Only list what would be imported
"""

import argparse
import logging
import sys
from pathlib import Path

from ai_gallery.config import Config
from ai_gallery.db import MediaStore
from ai_gallery.ingest import MediaIngestor, scan_import_directory
from ai_gallery.log_config import setup_logging_from_config

logger = logging.getLogger("import_media")


def main():
    parser = argparse.ArgumentParser(description="Import a folder of media into the gallery")
    parser.add_argument("folder", type=Path, help="Folder to import")
    parser.add_argument("--recursive", action="store_true", help="Include subfolders")
    parser.add_argument("--dry-run", action="store_true", help="List candidates without importing")
    parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")
    args = parser.parse_args()

    config = Config.load(args.config)
    setup_logging_from_config(config.logging)

    if args.dry_run:
        candidates = scan_import_directory(args.folder, recursive=args.recursive)
        if candidates.empty:
            logger.info("No files found in %s", args.folder)
            return
        logger.info("Files by type:\n%s", candidates.groupby(["media_type", "source_tool"], dropna=False).size())
        return

    ingestor = MediaIngestor(MediaStore.from_config(config), config)
    result = ingestor.import_directory(args.folder, recursive=args.recursive)
    logger.info("Results: %s", result)
    if result.errors:
        sys.exit(1)


if __name__ == "__main__":
    main()
