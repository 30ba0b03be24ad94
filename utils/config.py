"""
Configuration Management

Loading and validation of the .env settings the dashboard runs on.
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Settings that must parse as positive numbers, with their defaults
NUMERIC_SETTINGS = {
    "LOCK_WINDOW_MINUTES": "5",
    "ACTIVE_REFRESH_SECONDS": "1",
    "IDLE_REFRESH_SECONDS": "60",
    "TARGET_FLOW_RATE_TON_H": "7.125",
}


def load_config(env_path: Optional[str] = None) -> bool:
    """
    Load environment configuration from .env file.

    Args:
        env_path: Optional path to .env file. If None, searches in current directory.

    Returns:
        bool: True if .env file was found and loaded, False otherwise
    """
    if env_path:
        return load_dotenv(env_path)
    return load_dotenv()


def get_database_config(database_type: str = "records") -> dict:
    """
    Connection settings for the records database (cooking cycles,
    downtime, production and raw material receipts).

    Args:
        database_type: Only "records" is known

    Returns:
        dict: keyword arguments for psycopg2.connect

    Raises:
        ValueError: If the type is unknown or required configuration is missing
    """
    if database_type != "records":
        raise ValueError(f"Unknown database type: {database_type}")

    config = {
        "host": os.getenv("RECORDSDB_HOST"),
        "port": os.getenv("RECORDSDB_PORT", "5432"),
        "database": os.getenv("RECORDSDB_NAME"),
        "user": os.getenv("RECORDSDB_USER"),
        "password": os.getenv("RECORDSDB_PASS"),
    }

    missing = sorted(k for k, v in config.items() if not v)
    if missing:
        raise ValueError(
            f"Missing records database settings {missing}. "
            f"Set RECORDSDB_* in your .env file."
        )

    config["connect_timeout"] = int(os.getenv("RECORDSDB_CONNECT_TIMEOUT", "10"))
    return config


def get_app_config() -> dict:
    """Process-accounting settings as plain values, defaults applied"""
    settings = {
        "timezone": os.getenv("TIMEZONE", "America/Sao_Paulo"),
        "factory_id": os.getenv("FACTORY_ID"),
    }
    for name, default in NUMERIC_SETTINGS.items():
        settings[name.lower()] = float(os.getenv(name, default))
    return settings


def validate_config() -> list:
    """
    Validate all required configuration is present.

    Returns:
        list: Human-readable problems (empty if all valid)
    """
    problems = []

    try:
        get_database_config("records")
    except ValueError as e:
        problems.append(f"RECORDS: {e}")

    if not os.getenv("SUPERVISOR_PASSWORD"):
        problems.append("SECURITY: SUPERVISOR_PASSWORD is not set; aged records cannot be unlocked")

    for name, default in NUMERIC_SETTINGS.items():
        raw = os.getenv(name, default)
        try:
            value = float(raw)
        except ValueError:
            problems.append(f"SETTINGS: {name}={raw!r} is not a number")
            continue
        if value <= 0:
            problems.append(f"SETTINGS: {name} must be positive, got {raw}")

    return problems
