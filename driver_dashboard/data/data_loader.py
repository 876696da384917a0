# driver_dashboard/data/data_loader.py

import json
import os
import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from driver_dashboard.core.security import register_user
from driver_dashboard.data.storage import MemStorage

logger = logging.getLogger(__name__)

# Define base path for data files relative to this file's location
DATA_DIR = os.path.dirname(os.path.abspath(__file__))
SAMPLE_DATA_FILE = os.path.join(DATA_DIR, "sample_data.json")


def get_sample_data(path: str = SAMPLE_DATA_FILE) -> Dict[str, List[Dict[str, Any]]]:
    """Loads seed records from a JSON file keyed by entity name."""
    try:
        if os.path.exists(path):
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
                if isinstance(data, dict):
                    return data
                logger.warning(f"{path} does not contain an object. Nothing to seed.")
        else:
            logger.warning(f"Data file {path} not found.")
    except json.JSONDecodeError:
        logger.error(f"Error decoding JSON from {path}")
    except OSError as e:
        logger.error(f"Error reading {path}: {e}")
    return {}


def seed_storage(storage: MemStorage, path: str = SAMPLE_DATA_FILE) -> None:
    """
    Populates an empty store with the demo driver and sample stations.
    Invalid records are logged and skipped.
    """
    data = get_sample_data(path)

    for user in data.get("users", []):
        try:
            register_user(storage, user)
        except (ValidationError, ValueError, KeyError) as e:
            logger.warning(f"Skipping sample user {user.get('username')}: {e}")

    for station in data.get("stations", []):
        try:
            storage.stations.insert(station)
        except ValidationError as e:
            logger.warning(f"Skipping sample station {station.get('name')}: {e}")

    logger.info(f"Seeded {len(storage.users)} users and {len(storage.stations)} stations from {path}")
