"""Module defining a script that repairs the stored counts and legacy item statuses of every equipment pool"""

import argparse
import logging

from police_equipment_pool_api.core.database import get_database
from police_equipment_pool_api.repositories.equipment_pool import EquipmentPoolRepo


def main():
    """Runs the repair"""
    parser = argparse.ArgumentParser(
        prog="Pool Count Repair",
        description="Recomputes the stored counts of every equipment pool from its items, normalising any item "
        "statuses left behind by older versions of the API",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Flag for setting the log level to debug to output more info"
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)

    repaired = EquipmentPoolRepo(get_database()).repair_stored_counts()
    logging.info("Repaired %s equipment pool(s)", repaired)


if __name__ == "__main__":
    main()
