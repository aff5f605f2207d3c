"""Runtime configuration: data location and fixed locale settings."""

import os
from pathlib import Path
from typing import Optional, Union

DATA_DIR_ENV = "FLEET_DATA_DIR"
DEFAULT_DATA_DIR = Path("data")

CURRENCY = "KES"


def get_data_dir(override: Optional[Union[str, Path]] = None) -> Path:
    """
    Resolve the directory holding the entity files.

    Order: explicit override, then $FLEET_DATA_DIR, then ./data.
    """
    if override:
        return Path(override)
    env_value = os.environ.get(DATA_DIR_ENV)
    if env_value:
        return Path(env_value)
    return DEFAULT_DATA_DIR
