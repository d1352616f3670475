"""DuckDB connection management."""

import threading
from pathlib import Path
from typing import Any, Dict, Optional

import duckdb

from ..config import Config
from ..logger import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """Manages thread-local DuckDB connections to the training store."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self.db_path = Path(self.config.database.path)
        self.max_connections = self.config.database.max_connections

        self._connections: Dict[str, duckdb.DuckDBPyConnection] = {}
        self._lock = threading.Lock()

        # Ensure database directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Database manager initialized: {self.db_path}")

    def get_connection(self, thread_name: Optional[str] = None) -> duckdb.DuckDBPyConnection:
        """Get a thread-local DuckDB connection.

        Connections beyond ``max_connections`` are cursors on the first
        connection, which DuckDB allows to be used from other threads.

        Args:
            thread_name: Optional thread identifier for connection pooling

        Returns:
            DuckDB connection instance
        """
        if thread_name is None:
            thread_name = threading.current_thread().name

        with self._lock:
            if thread_name not in self._connections:
                logger.debug(f"Creating new database connection for thread: {thread_name}")
                if self._connections and len(self._connections) >= self.max_connections:
                    conn = next(iter(self._connections.values())).cursor()
                else:
                    conn = duckdb.connect(str(self.db_path))
                self._connections[thread_name] = conn

        return self._connections[thread_name]

    def execute(self, query: str, params: Optional[tuple] = None,
                thread_name: Optional[str] = None) -> Any:
        """Execute a SQL query and fetch all rows.

        Args:
            query: SQL query string
            params: Query parameters
            thread_name: Optional thread identifier

        Returns:
            Query results
        """
        conn = self.get_connection(thread_name)
        try:
            if params:
                return conn.execute(query, params).fetchall()
            return conn.execute(query).fetchall()
        except Exception as e:
            logger.error(f"Database query error: {query[:100]}... - {e}")
            raise

    def close_all_connections(self) -> None:
        """Close all database connections."""
        with self._lock:
            # Cursors first, the owning connection last
            for thread_name, conn in reversed(list(self._connections.items())):
                try:
                    conn.close()
                    logger.debug(f"Closed database connection for thread: {thread_name}")
                except duckdb.Error as e:
                    logger.error(f"Error closing connection for {thread_name}: {e}")

            self._connections.clear()
            logger.info("All database connections closed")

    def get_database_info(self) -> Dict[str, Any]:
        """Get database path, size and table count."""
        conn = self.get_connection()

        db_size = "Unknown"
        if self.db_path.exists():
            size_bytes = self.db_path.stat().st_size
            if size_bytes < 1024:
                db_size = f"{size_bytes} bytes"
            elif size_bytes < 1024 * 1024:
                db_size = f"{size_bytes / 1024:.1f} KB"
            else:
                db_size = f"{size_bytes / (1024 * 1024):.1f} MB"

        table_count = conn.execute(
            "SELECT COUNT(*) FROM information_schema.tables WHERE table_schema = 'main'"
        ).fetchone()[0]

        return {
            "database_path": str(self.db_path),
            "database_size": db_size,
            "table_count": table_count,
            "active_connections": len(self._connections),
            "max_connections": self.max_connections
        }
