"""
Configuration Management
Loads and validates environment variables
"""
import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Application configuration"""

    # RECORDS Database (cooking cycles, downtime, production, receipts)
    RECORDS_HOST = os.getenv("RECORDSDB_HOST")
    RECORDS_PORT = int(os.getenv("RECORDSDB_PORT", 5432))
    RECORDS_DB = os.getenv("RECORDSDB_NAME")
    RECORDS_USER = os.getenv("RECORDSDB_USER")
    RECORDS_PASS = os.getenv("RECORDSDB_PASS")

    # Application Settings
    TIMEZONE = os.getenv("TIMEZONE", "America/Sao_Paulo")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    FACTORY_ID = os.getenv("FACTORY_ID")

    # Process accounting
    TARGET_FLOW_RATE_TON_H = float(os.getenv("TARGET_FLOW_RATE_TON_H", 7.125))
    ACTIVE_REFRESH_SECONDS = float(os.getenv("ACTIVE_REFRESH_SECONDS", 1))
    IDLE_REFRESH_SECONDS = float(os.getenv("IDLE_REFRESH_SECONDS", 60))
    FETCH_RETRIES = int(os.getenv("FETCH_RETRIES", 3))

    # Edit lock (security gate)
    LOCK_WINDOW_MINUTES = float(os.getenv("LOCK_WINDOW_MINUTES", 5))
    SUPERVISOR_PASSWORD = os.getenv("SUPERVISOR_PASSWORD")

    @classmethod
    def validate(cls):
        """Return the names of required settings that are missing"""
        required = [
            'RECORDS_HOST', 'RECORDS_DB', 'RECORDS_USER', 'RECORDS_PASS',
            'SUPERVISOR_PASSWORD'
        ]

        return [field for field in required if not getattr(cls, field)]
