#!/usr/bin/env python
"""
Build the similarity graph from a catalog snapshot and print recommendations.

Steps:
1. Load configuration (configs/config.yaml + .env overrides)
2. Open the SQLite catalog snapshot
3. Build the recommendation engine (scores the listener similarity graph)
4. Show similar listeners, weekly discovery and an optional seeded radio

Usage:
    # Weekly discovery for one listener
    LISTENER_ID="u42" python scripts/build_recommendations.py

    # Seeded radio, custom limit and catalog
    LISTENER_ID="u42" SEED_TRACK_ID="t7" LIMIT=30 CATALOG_PATH=data/cache/catalog.db \
        python scripts/build_recommendations.py
"""

from __future__ import annotations
import os
import sys

from dotenv import load_dotenv
from loguru import logger

from sgrec.config import load_config
from sgrec.engine import RecommendationEngine
from sgrec.errors import SgrecError
from sgrec.store import SQLiteCatalogStore


def main():
    """Main entry point for building recommendations."""
    load_dotenv()

    listener_id = os.getenv("LISTENER_ID")
    if not listener_id:
        logger.error("LISTENER_ID environment variable is required")
        print("\nUsage:")
        print('  LISTENER_ID="u42" python scripts/build_recommendations.py')
        print("\nOptional parameters:")
        print("  SEED_TRACK_ID=t7     # Generate a seeded radio as well")
        print("  LIMIT=20             # Tracks per list (default: engine default)")
        print("  CATALOG_PATH=path    # Catalog snapshot (default: data/cache/catalog.db)")
        sys.exit(1)

    seed_track_id = os.getenv("SEED_TRACK_ID")
    catalog_path = os.getenv("CATALOG_PATH", "data/cache/catalog.db")

    try:
        config = load_config()
        limit = int(os.getenv("LIMIT", str(config.default_limit)))
    except (SgrecError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    logger.info("=" * 60)
    logger.info("Building Recommendations")
    logger.info("=" * 60)
    logger.info(f"Listener: {listener_id}")
    logger.info(f"Seed Track: {seed_track_id or '-'}")
    logger.info(f"Limit: {limit}")
    logger.info(f"Catalog Path: {catalog_path}")
    logger.info("=" * 60)

    with SQLiteCatalogStore(catalog_path) as store:
        store_stats = store.get_store_stats()
        logger.info("Catalog Statistics:")
        logger.info(f"  • Listeners: {store_stats['listeners']}")
        logger.info(f"  • Tracks: {store_stats['tracks']}")
        logger.info(f"  • Favorites: {store_stats['favorites']}")

        engine = RecommendationEngine(store, config)
        for line in engine.get_statistics().splitlines():
            logger.info(line)

        logger.info("\nMost Similar Listeners:")
        similar = engine.find_similar_listeners(listener_id)
        if similar:
            for i, match in enumerate(similar[:5], 1):
                logger.info(f"  {i}. {match.listener_id} (confidence {match.confidence:.3f})")
        else:
            logger.info("  No similar listeners found")

        logger.info("\nWeekly Discovery:")
        weekly = engine.generate_weekly_discovery(listener_id, limit)
        if weekly:
            for i, track in enumerate(weekly, 1):
                logger.info(f"  {i}. {track.title} by {track.artist} [{track.genre}]")
        else:
            logger.info("  No recommendations available (unknown listener or empty catalog)")

        if seed_track_id:
            logger.info(f"\nRadio seeded by {seed_track_id}:")
            radio = engine.generate_seeded_radio(listener_id, seed_track_id, limit)
            for i, track in enumerate(radio, 1):
                logger.info(f"  {i}. {track.title} by {track.artist} [{track.genre}]")

    logger.success("Done")


if __name__ == "__main__":
    main()
