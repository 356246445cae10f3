"""
Module for connecting to the MongoDB database holding the equipment pools and requests.

Approving a request writes to a pool and to one or more requests, so the database must be a replica set for the
transactions this relies on to be available.
"""

import logging
from typing import Annotated

from fastapi import Depends
from pymongo import ASCENDING, DESCENDING, IndexModel, MongoClient, WriteConcern
from pymongo.database import Database
from pymongo.read_concern import ReadConcern

from police_equipment_pool_api.core.config import config

logger = logging.getLogger()

# Concerns of the transactions that apply an approved request
TRANSACTION_READ_CONCERN = ReadConcern("snapshot")
TRANSACTION_WRITE_CONCERN = WriteConcern("majority")

# Unique prefixes keep item unique IDs from clashing between pools
INDEXES = {
    "equipment_pools": [
        IndexModel([("pool_name", ASCENDING)], unique=True),
        IndexModel([("prefix", ASCENDING)], unique=True),
        IndexModel([("items.status", ASCENDING)]),
        IndexModel([("items.usage_history.officer_id", ASCENDING)]),
    ],
    "requests": [
        IndexModel([("request_number", ASCENDING)], unique=True),
        IndexModel([("requested_by.user_id", ASCENDING), ("status", ASCENDING)]),
        IndexModel([("pool_id", ASCENDING), ("status", ASCENDING)]),
        IndexModel([("created_time", DESCENDING)]),
    ],
}

db_config = config.database
mongodb_client = MongoClient(
    f"{db_config.protocol.get_secret_value()}://"
    f"{db_config.username.get_secret_value()}:{db_config.password.get_secret_value()}@"
    f"{db_config.host_and_options.get_secret_value()}",
    tz_aware=True,
    appname="police-equipment-pool-api",
)


def get_database() -> Database:
    """
    Get the database of the API from the shared client.

    :return: The MongoDB database object.
    """
    return mongodb_client[db_config.name.get_secret_value()]


def ensure_indexes(database: Database) -> None:
    """
    Create the indexes of the pool and request collections that don't exist yet.

    :param database: The database to create the indexes in.
    """
    for collection_name, indexes in INDEXES.items():
        created = database[collection_name].create_indexes(indexes)
        logger.info("Ensured indexes on %s: %s", collection_name, ", ".join(created))


DatabaseDep = Annotated[Database, Depends(get_database)]
