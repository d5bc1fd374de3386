#!/usr/bin/env python3
"""Export or import a JSON backup of the gallery database.

Usage:
    python backup.py export [--output FILE] [--csv FILE] [--config FILE]
    python backup.py import BACKUP_FILE [--config FILE]

An export holds metadata and thumbnails; media files stay in the library
folder. On import, media embedded in an older browser backup is written
back into the library.
"""

import argparse
import json
import logging
from pathlib import Path

from ai_gallery.config import Config
from ai_gallery.db import MediaStore
from ai_gallery.ingest import MediaIngestor
from ai_gallery.log_config import setup_logging_from_config
from ai_gallery.utils import generate_safe_filename

logger = logging.getLogger("backup")


def export_backup(store: MediaStore, output: Path, csv_path: Path = None) -> None:
    data = store.export_all()
    with open(output, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    logger.info("Exported %d items to %s", data["total_items"], output)

    if csv_path:
        MediaStore.to_dataframe(store.list_media()).to_csv(csv_path, index=False)
        logger.info("Wrote item table to %s", csv_path)


def import_backup(ingestor: MediaIngestor, backup_file: Path) -> int:
    with open(backup_file, "r", encoding="utf-8") as f:
        data = json.load(f)
    return ingestor.import_backup(data)


def main():
    parser = argparse.ArgumentParser(description="Gallery backup export/import")
    parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    export_cmd = sub.add_parser("export", help="Write a JSON backup")
    export_cmd.add_argument("--output", type=Path, default=None,
                            help="Output file (default: ai_gallery_backup_<date>.json)")
    export_cmd.add_argument("--csv", type=Path, default=None, help="Also write an item table as CSV")

    import_cmd = sub.add_parser("import", help="Load a JSON backup")
    import_cmd.add_argument("backup_file", type=Path)

    args = parser.parse_args()

    config = Config.load(args.config)
    setup_logging_from_config(config.logging)
    store = MediaStore.from_config(config)

    if args.command == "export":
        output = args.output or Path(generate_safe_filename("ai_gallery", "backup") + ".json")
        export_backup(store, output, args.csv)
    else:
        count = import_backup(MediaIngestor(store, config), args.backup_file)
        logger.info("Imported %d items", count)


if __name__ == "__main__":
    main()
