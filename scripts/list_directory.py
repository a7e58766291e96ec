#!/usr/bin/env python
"""
Index a directory of the gallery image folder and print its listing as JSON.

Usage:
  GALLERY_IMAGE_FOLDER=~/Pictures python scripts/list_directory.py 2023/holiday
  python scripts/list_directory.py --image-folder ~/Pictures --rescan .
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from gallery_index.core.config import GalleryConfig
from gallery_index.core.env import configure_logging, load_dotenv_if_present
from gallery_index.core.errors import GalleryError
from gallery_index.index import GalleryManager, init_db, session_factory

logger = logging.getLogger("list_directory")


def main() -> int:
    parser = argparse.ArgumentParser(description="List (and index) a gallery directory.")
    parser.add_argument("directory", nargs="?", default=".", help="Path relative to the image folder")
    parser.add_argument("--image-folder", type=Path, help="Overrides GALLERY_IMAGE_FOLDER")
    parser.add_argument(
        "--rescan", action="store_true", help="Scan disk even if the index looks current"
    )
    args = parser.parse_args()

    load_dotenv_if_present()
    configure_logging()
    config = GalleryConfig.from_env()
    if args.image_folder is not None:
        config.image_folder = args.image_folder
    engine = init_db(config.database_url)
    manager = GalleryManager(config, session_factory(engine))
    try:
        if args.rescan:
            node, stats = manager.index_directory(args.directory)
            logger.info("Rescan wrote %d changes", stats.writes)
        else:
            node = manager.list_directory(args.directory)
    except GalleryError as exc:
        logger.error("%s", exc)
        return 1
    finally:
        manager.close()

    if node is None:
        print("{}")
    else:
        print(node.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
