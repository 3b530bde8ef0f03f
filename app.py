#!/usr/bin/env python3
#USE VENV: source venv/bin/activate
"""
Run script for the Asset Compliance tracker
"""

import argparse
import sys

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from asset_compliance import create_app
from asset_compliance.build import build_database
from asset_compliance.buisness.equipment import EquipmentManager
from asset_compliance.buisness.plant import PlantManager
from asset_compliance.logger import get_logger
from asset_compliance.services.cache_warmer import warm_cache

# Note: configuration is read from environment variables.
# Run 'python generate_env.py' to create a starter .env file.

logger = get_logger("asset_compliance.run")


def parse_arguments():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Asset Compliance tracker')
    parser.add_argument('--build-only', action='store_true',
                        help='Create tables only, do not insert critical lookup data')
    parser.add_argument('--recompute-statuses', action='store_true',
                        help='Re-derive and persist the status of every equipment and plant item')
    parser.add_argument('--warm-cache', action='store_true',
                        help='Prime the cache with every collection')
    parser.add_argument('--org', action='append', dest='org_ids', default=[],
                        help='Organization whose scoped collections are warmed as well (repeatable)')
    return parser.parse_args()


def main():
    args = parse_arguments()
    app = create_app()

    with app.app_context():
        build_database(insert_data=not args.build_only)
        if args.build_only:
            logger.debug("Build completed.")
            return 0

        equipment_manager = EquipmentManager.from_app(app)
        plant_manager = PlantManager.from_app(app)
        exit_code = 0

        if args.recompute_statuses:
            for result in (equipment_manager.recompute_all_statuses(), plant_manager.recompute_all_statuses()):
                if result.ok:
                    logger.info(f"Status recompute updated {result.data} row(s)")
                else:
                    logger.error(result.error)
                    exit_code = 1

        if args.warm_cache:
            result = warm_cache(equipment_manager, plant_manager, args.org_ids)
            if not result.ok:
                exit_code = 1

        return exit_code


if __name__ == '__main__':
    sys.exit(main())
