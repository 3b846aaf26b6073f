#!/usr/bin/env python3
"""
Seed the built-in level catalog into Snowflake.

Writes DEFAULT_LEVEL_CONFIG as the saved level document so administrators
start from the catalog values and edit them in the admin UI. An existing
saved document is left alone unless --force is given.

Usage:
    python scripts/seed_level_config.py [--dry-run] [--force]

Requires:
    - .env file with Snowflake credentials
    - tuition_level_config table (config_id, levels VARIANT, updated_at)
"""

import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from src.config.settings import get_settings
from src.core.tuition.defaults import DEFAULT_LEVEL_CONFIG, build_levels
from src.core.tuition.models import WEEKDAY_ABBREVIATIONS
from src.infrastructure.snowflake.client import create_snowflake_connection
from src.infrastructure.snowflake.repositories import LevelConfigRepository, SnowflakeConfig


def describe_catalog() -> None:
    """Print one line per catalog level."""
    levels = build_levels(DEFAULT_LEVEL_CONFIG)
    for name, level in levels.items():
        days = ", ".join(WEEKDAY_ABBREVIATIONS[wd] for wd in sorted(level.schedule)) or "-"
        reduced = (
            f", reduced ${level.reduced_rate_per_hour}/hr under {level.min_days_per_week} days"
            if level.reduced_rate_per_hour is not None else ""
        )
        print(f"  {name}: ${level.default_rate_per_hour}/hr, {level.days_per_week} days ({days}){reduced}")


def seed(force: bool = False, dry_run: bool = False) -> bool:
    settings = get_settings()
    
    missing = settings.validate_required_fields()
    if missing and not settings.snowflake_mock_mode:
        print(f"ERROR: Missing configuration: {', '.join(missing)}")
        return False
    
    if dry_run:
        print("\n=== DRY RUN - Nothing will be written ===\n")
        describe_catalog()
        print(f"\nTotal: {len(DEFAULT_LEVEL_CONFIG)} levels")
        return True
    
    config = SnowflakeConfig.from_settings(settings)
    
    with create_snowflake_connection(config=config, mock_mode=settings.snowflake_mock_mode) as conn:
        repo = LevelConfigRepository(conn, config_id=settings.tuition_level_config_id)
        
        existing = repo.get_raw_levels()
        if existing and not force:
            print(f"Level config '{settings.tuition_level_config_id}' already has "
                  f"{len(existing)} saved levels. Use --force to overwrite.")
            return False
        
        repo.save_levels(DEFAULT_LEVEL_CONFIG)
    
    print(f"Saved {len(DEFAULT_LEVEL_CONFIG)} levels to '{settings.tuition_level_config_id}':")
    describe_catalog()
    return True


def main():
    import argparse
    
    parser = argparse.ArgumentParser(description="Seed the built-in level catalog into Snowflake")
    parser.add_argument("--dry-run", action="store_true", help="Print the catalog without writing")
    parser.add_argument("--force", action="store_true", help="Overwrite an existing saved document")
    args = parser.parse_args()
    
    success = seed(force=args.force, dry_run=args.dry_run)
    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
