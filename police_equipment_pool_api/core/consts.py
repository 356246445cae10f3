"""
Contains constants used in multiple places so they are easier to change
"""

import sys
from typing import Optional

from police_equipment_pool_api.core.config import config

# Number of digits the numeric part of an item unique ID is zero-padded to e.g. GLK-001
UNIQUE_ID_NUMBER_WIDTH: int = 3

# Number of digits the daily sequence of a request number is zero-padded to e.g. REQ-20250101-0001
REQUEST_NUMBER_SEQUENCE_WIDTH: int = 4

# Remarks recorded against the custody period of an item that has been reported lost
LOST_ITEM_RETURN_REMARKS: str = "Reported lost"

# Number of days back the dashboard counts recent requests over, also the default period of the request summary
RECENT_REQUESTS_DAYS: int = 30

# Number of the newest pending requests listed on the dashboard
DASHBOARD_PENDING_REQUESTS_LIMIT: int = 5

# Only read when authentication is enabled
PUBLIC_KEY: Optional[str] = None

if config.authentication.enabled:
    # Read the content of the public key file into a constant. This is used for decoding of JWT access tokens.
    try:
        with open(config.authentication.public_key_path, "r", encoding="utf-8") as file:
            PUBLIC_KEY = file.read()
    except FileNotFoundError as exc:
        sys.exit(f"Cannot find public key: {exc}")
