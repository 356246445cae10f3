"""Module defining a CLI Script for setting up and looking after the development database"""

import argparse
import json
import logging
import subprocess
import sys
import time
from abc import ABC, abstractmethod
from pathlib import Path

from police_equipment_pool_api.core.database import INDEXES, ensure_indexes, get_database
from police_equipment_pool_api.repositories.equipment_pool import EquipmentPoolRepo

MONGODB_CONTAINER = "pep_api_mongodb_container"
RS_KEYFILE = Path("./mongodb/keys/rs_keyfile")


def run_command(args: list[str], **kwargs) -> int:
    """
    Runs a command, failing the script if it doesn't succeed
    """
    logging.debug("Running command: %s", " ".join(args))
    return_code = subprocess.run(args, check=False, **kwargs).returncode
    if return_code != 0:
        sys.exit(f"Command '{args[0]}' failed with exit code {return_code}")
    return return_code


def mongosh_eval(script: str, args: argparse.Namespace) -> int:
    """
    Evaluates a script with mongosh inside the MongoDB container
    """
    return run_command(
        ["docker", "exec", "-i", MONGODB_CONTAINER, "mongosh", "--quiet"]
        + ["--username", args.username, "--password", args.password, "--authenticationDatabase=admin"]
        + ["--eval", script]
    )


class SubCommand(ABC):
    """Base class for a sub command"""

    def __init__(self, help: str):
        self.help = help

    def setup(self, parser: argparse.ArgumentParser):
        """Setup the parser by adding any parameters here"""

    @abstractmethod
    def run(self, args: argparse.Namespace):
        """Run the command with the given parameters as added by 'setup'"""


class CommandDBInit(SubCommand):
    """Command that starts MongoDB as a single member replica set

    Transactions, which request approval relies on, are only available on a replica set.
    """

    def __init__(self):
        super().__init__(help="Start the development database (using docker on linux)")

    def setup(self, parser: argparse.ArgumentParser):
        parser.add_argument("-u", "--username", default="root", help="Username of the MongoDB root user")
        parser.add_argument("-p", "--password", default="example", help="Password of the MongoDB root user")
        parser.add_argument("--member-host", default="localhost", help="Host the replica set member is reachable on")

    def run(self, args: argparse.Namespace):
        if not RS_KEYFILE.is_file():
            logging.info("Generating replica set keyfile %s", RS_KEYFILE)
            with open(RS_KEYFILE, "w", encoding="utf-8") as file:
                run_command(["openssl", "rand", "-base64", "756"], stdout=file)
            run_command(["sudo", "chmod", "0400", str(RS_KEYFILE)])
            run_command(["sudo", "chown", "999:999", str(RS_KEYFILE)])

        logging.info("Starting MongoDB")
        run_command(["docker", "compose", "up", "-d", "--wait", "--wait-timeout", "30", "mongo-db"])
        # mongod refuses rs.initiate for a few seconds after reporting healthy
        time.sleep(10)

        logging.info("Initialising replica set")
        members = [{"_id": 0, "host": f"{args.member_host}:27017"}]
        mongosh_eval(f"rs.initiate({json.dumps({'_id': 'rs0', 'members': members})})", args)
        mongosh_eval("rs.status().members.map(member => member.stateStr)", args)


class CommandDBIndexes(SubCommand):
    """Command that creates the indexes the API relies on

    The unique prefix index keeps item unique IDs from clashing between pools.
    """

    def __init__(self):
        super().__init__(help="Create the database indexes")

    def run(self, args: argparse.Namespace):
        ensure_indexes(get_database())


class CommandDBClear(SubCommand):
    """Command that deletes every equipment pool and request (after confirmation)"""

    def __init__(self):
        super().__init__(help="Delete all equipment pools and requests")

    def setup(self, parser: argparse.ArgumentParser):
        parser.add_argument("-y", "--yes", action="store_true", help="Don't ask for confirmation")

    def run(self, args: argparse.Namespace):
        if not args.yes and input("This will delete all pools and requests, are you sure? ") not in ("y", "yes"):
            return

        database = get_database()
        for collection_name in INDEXES:
            result = database[collection_name].delete_many({})
            logging.info("Deleted %s document(s) from %s", result.deleted_count, collection_name)


class CommandDBRepairCounts(SubCommand):
    """Command that recomputes the stored counts of every equipment pool from its items"""

    def __init__(self):
        super().__init__(help="Repair the stored counts of every equipment pool")

    def run(self, args: argparse.Namespace):
        repaired = EquipmentPoolRepo(get_database()).repair_stored_counts()
        logging.info("Repaired %s equipment pool(s)", repaired)


commands: dict[str, SubCommand] = {
    "db-init": CommandDBInit(),
    "db-indexes": CommandDBIndexes(),
    "db-clear": CommandDBClear(),
    "db-repair-counts": CommandDBRepairCounts(),
}


def main():
    """Runs CLI commands"""
    parser = argparse.ArgumentParser(
        prog="Police Equipment Pool API Dev Script", description="Commands for the development database"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Flag for setting the log level to debug to output more info"
    )

    subparser = parser.add_subparsers(dest="command", required=True)
    for command_name, command in commands.items():
        command.setup(subparser.add_parser(command_name, help=command.help))

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)

    commands[args.command].run(args)


if __name__ == "__main__":
    main()
