"""
Snowflake connections: the real one and an in-memory stand-in.

Repositories only need cursor() and commit(), so local development and tests
run against MockSnowflakeConnection, which understands exactly the
statements the tuition repositories issue.
"""

import base64
import logging
import re
from contextlib import contextmanager
from typing import Any, Generator, Optional

from .repositories.base import SnowflakeConfig, SnowflakeConnection
from .repositories.swimmers import SWIMMER_COLUMNS

logger = logging.getLogger(__name__)


class SnowflakeConnectionError(Exception):
    """Raised when a Snowflake connection cannot be opened."""
    pass


def _load_private_key(key_path: Optional[str] = None, key_base64: Optional[str] = None) -> bytes:
    """
    Read an unencrypted PEM key and return it as PKCS8 DER bytes.

    The connector wants DER bytes, never a path. The PEM comes from a file
    or, on hosts where mounting one is awkward, from a base64 setting.
    """
    from cryptography.hazmat.backends import default_backend
    from cryptography.hazmat.primitives import serialization

    if key_path:
        with open(key_path, "rb") as key_file:
            pem = key_file.read()
    else:
        pem = base64.b64decode(key_base64 or "")

    private_key = serialization.load_pem_private_key(pem, password=None, backend=default_backend())
    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def _connect_params(config: SnowflakeConfig) -> dict[str, Any]:
    params: dict[str, Any] = {
        "account": config.account,
        "user": config.user,
        "database": config.database,
        "schema": config.schema,
        "warehouse": config.warehouse,
        "role": config.role,
        "client_session_keep_alive": True,
    }

    if config.private_key_path or config.private_key_base64:
        logger.info("Using key-pair authentication for Snowflake")
        params["private_key"] = _load_private_key(config.private_key_path, config.private_key_base64)
    elif config.password:
        logger.info("Using password authentication for Snowflake")
        params["password"] = config.password
    else:
        raise SnowflakeConnectionError("Either password or a private key must be provided")

    return params


@contextmanager
def get_snowflake_connection(config: SnowflakeConfig) -> Generator[SnowflakeConnection, None, None]:
    """
    Open a Snowflake connection and always close it afterwards.

    Usage:
        with get_snowflake_connection(config) as conn:
            LevelConfigRepository(conn).get_levels()
    """
    import snowflake.connector

    params = _connect_params(config)
    try:
        conn = snowflake.connector.connect(**params)
    except snowflake.connector.errors.DatabaseError as e:
        logger.error(
            "Snowflake connection failed",
            extra={"error": str(e), "account": config.account}
        )
        raise SnowflakeConnectionError(f"Database connection failed: {e}")

    logger.debug(
        "Opened Snowflake connection",
        extra={"account": config.account, "database": config.database, "schema": config.schema}
    )

    try:
        yield conn
    finally:
        try:
            conn.close()
        except Exception as e:
            logger.warning("Error closing Snowflake connection", extra={"error": str(e)})


# ---------------------------------------------------------------------------
# In-memory connection
# ---------------------------------------------------------------------------

_SET_COLUMN = re.compile(r"(\w+)\s*=\s*(?:PARSE_JSON\()?%s", re.IGNORECASE)

# table -> column holding the VARIANT document
_DOCUMENT_TABLES = {
    "TUITION_LEVEL_CONFIG": ("tuition_level_config", "levels"),
    "TUITION_MONTH_CONFIG": ("tuition_month_config", "no_training_dates"),
}


class MockSnowflakeCursor:
    """
    Cursor over the in-memory tables.

    Statements are recognised by their shape: MERGE upserts of a config
    document, SELECTs of a document or of swimmers, and UPDATEs of swimmer
    training columns. Anything else is accepted and does nothing.
    """

    def __init__(self, storage: dict) -> None:
        self._storage = storage
        self._results: list = []
        self._rowcount = 0

    def execute(self, query: str, params: Optional[tuple] = None) -> "MockSnowflakeCursor":
        logger.debug("Mock cursor execute", extra={"query": query[:100], "params": params})

        normalized = " ".join(query.split()).upper()
        self._results = []
        self._rowcount = 0

        if normalized.startswith("MERGE INTO"):
            self._merge_document(normalized, params)
        elif normalized.startswith("SELECT") and "FROM SWIMMERS" in normalized:
            self._select_swimmers(params)
        elif normalized.startswith("SELECT"):
            self._select_document(normalized, params)
        elif normalized.startswith("UPDATE SWIMMERS"):
            self._update_swimmer(query, params)

        return self

    def _document_table(self, normalized: str) -> Optional[tuple[str, str]]:
        for marker, table in _DOCUMENT_TABLES.items():
            if marker in normalized:
                return table
        return None

    def _merge_document(self, normalized: str, params: Optional[tuple]) -> None:
        """Params are (key, document_json, updated_at, ...insert copies)."""
        table = self._document_table(normalized)
        if not table or not params:
            return
        name, column = table
        key, document_json, updated_at = params[0], params[1], params[2]
        self._storage[name][key] = {column: document_json, "updated_at": updated_at}
        self._rowcount = 1

    def _select_document(self, normalized: str, params: Optional[tuple]) -> None:
        table = self._document_table(normalized)
        if not table or not params:
            return
        name, column = table
        row = self._storage[name].get(params[0])
        if row:
            self._results = [(row[column],)]

    def _select_swimmers(self, params: Optional[tuple]) -> None:
        """By id when a parameter is bound, otherwise every non-frozen swimmer."""
        swimmers = self._storage["swimmers"]
        if params:
            rows = [swimmers[params[0]]] if params[0] in swimmers else []
        else:
            rows = [row for row in swimmers.values() if not row.get("is_frozen")]
        self._results = [tuple(row.get(column) for column in SWIMMER_COLUMNS) for row in rows]

    def _update_swimmer(self, query: str, params: Optional[tuple]) -> None:
        """SET col = %s [, col = PARSE_JSON(%s)] ... WHERE swimmer_id = %s"""
        if not params:
            return
        set_clause = re.split(r"\bWHERE\b", query, flags=re.IGNORECASE)[0]
        columns = [c.lower() for c in _SET_COLUMN.findall(set_clause)]
        row = self._storage["swimmers"].get(params[-1])
        if row is None:
            return
        row.update(zip(columns, params[:-1]))
        self._rowcount = 1

    def fetchone(self):
        return self._results[0] if self._results else None

    def fetchall(self) -> list:
        return self._results

    def close(self) -> None:
        pass

    @property
    def rowcount(self) -> int:
        return self._rowcount


class MockSnowflakeConnection:
    """
    In-memory Snowflake for local development and tests.

    Tables are dicts keyed by primary key: tuition_level_config by
    config_id, tuition_month_config by month, swimmers by swimmer_id.
    Writes are visible immediately; commit and rollback do nothing.
    """

    def __init__(self) -> None:
        self._storage: dict[str, dict[str, dict]] = {
            "tuition_level_config": {},
            "tuition_month_config": {},
            "swimmers": {},
        }
        logger.info("Initialized mock Snowflake connection (in-memory)")

    def cursor(self) -> MockSnowflakeCursor:
        return MockSnowflakeCursor(self._storage)

    def commit(self) -> None:
        logger.debug("Mock connection commit")

    def rollback(self) -> None:
        logger.debug("Mock connection rollback")

    def close(self) -> None:
        logger.debug("Mock connection close")

    # Fixtures for tests and local seeding

    def _add_swimmer(self, swimmer_id: str, **columns: Any) -> None:
        """Insert a swimmer row; unspecified columns are NULL."""
        row = {column: None for column in SWIMMER_COLUMNS}
        row.update(columns)
        row["swimmer_id"] = swimmer_id
        self._storage["swimmers"][swimmer_id] = row

    def _get_swimmer(self, swimmer_id: str) -> Optional[dict]:
        return self._storage["swimmers"].get(swimmer_id)

    def _clear(self) -> None:
        for table in self._storage.values():
            table.clear()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

@contextmanager
def create_snowflake_connection(
    config: Optional[SnowflakeConfig] = None,
    mock_mode: bool = False,
) -> Generator[SnowflakeConnection, None, None]:
    """
    Yield a fresh mock connection in mock mode, otherwise a real one.

    Raises ValueError when config is missing outside mock mode.
    """
    if mock_mode:
        conn = MockSnowflakeConnection()
        try:
            yield conn
        finally:
            conn.close()
        return

    if config is None:
        raise ValueError("config is required when not in mock mode")

    with get_snowflake_connection(config) as conn:
        yield conn
