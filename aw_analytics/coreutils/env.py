from dotenv import load_dotenv
from typing import Dict
import os

load_dotenv()  # AW_* settings may live in a local .env


def env_get(key: str, default: str | None = None) -> str | None:
    """Get environment variable or return default."""
    return os.getenv(key, default)


def env_values(keys: Dict[str, str]) -> Dict[str, str]:
    """Map each name to its environment value, skipping unset or empty variables."""
    values = {}
    for name, key in keys.items():
        value = env_get(key)
        if value:
            values[name] = value
    return values
