"""
Neo4j database access

This module centralizes ALL access to the graph database:
- A process-wide driver created lazily with retry logic
- Per-request sessions for FastAPI (session_dep)
- Small helpers that run a parameterized Cypher query and return dicts

Author: TM3
Updated: 2025-10-17
"""
import time
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from neo4j import Driver, GraphDatabase, Session
from neo4j.exceptions import ServiceUnavailable, SessionExpired

from .config import settings

logger = logging.getLogger(__name__)

_driver: Optional[Driver] = None


# ============================================================================
# Driver with Retry Logic
# ============================================================================

def create_driver_with_retry(max_retries=3, retry_delay=1.0) -> Driver:
    """
    Create a Neo4j driver and verify connectivity, retrying on transport errors

    Args:
        max_retries: Maximum number of connection attempts (default: 3)
        retry_delay: Initial delay between retries in seconds (default: 1.0)

    Returns:
        neo4j.Driver

    Raises:
        ServiceUnavailable: If all retry attempts fail
    """
    last_error = None

    for attempt in range(1, max_retries + 1):
        driver = None
        try:
            logger.debug(f"Neo4j connection attempt {attempt}/{max_retries}")
            driver = GraphDatabase.driver(
                settings.NEO4J_URI,
                auth=(settings.NEO4J_USER, settings.NEO4J_PASSWORD),
                max_connection_lifetime=settings.NEO4J_MAX_CONNECTION_LIFETIME,
                max_connection_pool_size=settings.NEO4J_MAX_POOL_SIZE,
                connection_acquisition_timeout=settings.NEO4J_CONNECTION_ACQUISITION_TIMEOUT,
            )
            driver.verify_connectivity()
            logger.info(f"Connected to Neo4j at {settings.NEO4J_URI}")
            return driver

        except (ServiceUnavailable, SessionExpired) as e:
            last_error = e
            logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {e}")
            if driver is not None:
                driver.close()

            if attempt < max_retries:
                # Exponential backoff
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)
            else:
                logger.error(f"All {max_retries} connection attempts failed")
                raise

        except Exception as e:
            # Auth errors and bad URIs are not retried
            logger.error(f"Unexpected error during connection: {e}")
            if driver is not None:
                driver.close()
            raise

    raise last_error if last_error else ServiceUnavailable("Connection failed after all retries")


def get_driver() -> Driver:
    """Return the shared driver, creating it on first use"""
    global _driver
    if _driver is None:
        _driver = create_driver_with_retry()
    return _driver


def close_driver() -> None:
    """Close the shared driver (application shutdown, end of scripts)"""
    global _driver
    if _driver is not None:
        _driver.close()
        _driver = None
        logger.info("Neo4j driver closed")


def get_session() -> Session:
    """Open a new session on the configured database. Caller must close it."""
    return get_driver().session(database=settings.NEO4J_DATABASE)


def session_dep() -> Iterator[Session]:
    """
    FastAPI dependency that provides one Neo4j session per request

    Usage:
        @router.get("/items")
        def read_items(session: Session = Depends(session_dep)):
            ...
    """
    session = get_session()
    try:
        yield session
    finally:
        session.close()


# ============================================================================
# Query helpers
# ============================================================================

def fetch_all(session: Session, query: str, **params) -> List[Dict[str, Any]]:
    """Run a query and return every record as a dict"""
    return session.run(query, params).data()


def fetch_one(session: Session, query: str, **params) -> Optional[Dict[str, Any]]:
    """Run a query and return the first record as a dict, or None"""
    rows = session.run(query, params).data()
    return rows[0] if rows else None


def execute(session: Session, query: str, **params) -> None:
    """Run a write query whose records are not needed"""
    session.run(query, params).consume()


def run_query(query: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """Run a single query in its own session"""
    session = get_session()
    try:
        return session.run(query, params or {}).data()
    finally:
        session.close()


def test_connection() -> bool:
    """Return True when the database answers a trivial query"""
    try:
        run_query("RETURN 1 AS ok")
        return True
    except Exception as e:
        logger.error(f"Neo4j connection test failed: {e}")
        return False


def now_millis() -> int:
    return int(time.time() * 1000)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
