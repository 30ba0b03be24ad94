"""
Database Connection Pool
Manages connections to the RECORDS database (operator-entered process records)
"""
import psycopg2
from psycopg2 import pool
import logging
import os
from contextlib import contextmanager
from utils.config import get_database_config

logger = logging.getLogger(__name__)

# Streamlit serves each session on its own thread; one shared pool
_records_pool = None

def get_records_pool():
    """Get or create RECORDS connection pool"""
    global _records_pool

    if _records_pool is None:
        settings = get_database_config("records")
        max_connections = int(os.getenv("RECORDSDB_MAX_CONNECTIONS", "10"))
        try:
            _records_pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=1,
                maxconn=max_connections,
                **settings
            )
            logger.info(
                f"RECORDS connection pool created "
                f"({settings['host']}:{settings['port']}/{settings['database']}, max {max_connections})"
            )
        except psycopg2.Error as e:
            logger.error(f"Failed to create RECORDS pool: {e}")
            raise

    return _records_pool

@contextmanager
def get_records_connection():
    """
    Context manager for RECORDS database connections.

    Commits when the block succeeds, rolls back and re-raises otherwise.
    """
    records_pool = get_records_pool()
    conn = None

    try:
        conn = records_pool.getconn()
        yield conn
        conn.commit()
    except Exception as e:
        if conn:
            conn.rollback()
        logger.error(f"RECORDS connection error: {e}")
        raise
    finally:
        if conn:
            records_pool.putconn(conn)

def close_all_pools():
    """Close the connection pool (call on application shutdown)"""
    global _records_pool

    if _records_pool:
        _records_pool.closeall()
        _records_pool = None
        logger.info("RECORDS pool closed")
