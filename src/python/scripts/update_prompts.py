#!/usr/bin/env python3
"""Clean every stored prompt with the current prompt cleaner.

Usage:
    python update_prompts.py [--config FILE]
"""

import argparse
import logging

from ai_gallery.config import Config
from ai_gallery.db import MediaStore
from ai_gallery.log_config import setup_logging_from_config
from ai_gallery.maintenance import update_all_prompts

logger = logging.getLogger("update_prompts")


def main():
    parser = argparse.ArgumentParser(description="Clean stored prompts")
    parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")
    args = parser.parse_args()

    config = Config.load(args.config)
    setup_logging_from_config(config.logging)

    result = update_all_prompts(MediaStore.from_config(config))
    logger.info("Results: %s", result)


if __name__ == "__main__":
    main()
