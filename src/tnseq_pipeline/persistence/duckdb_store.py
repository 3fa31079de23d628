"""DuckDB-backed storage for annotation and simulation result tables."""

from pathlib import Path
from typing import Optional

import duckdb
import polars as pl


class ResultStore:
    """
    DuckDB storage for pipeline result tables.

    The annotate and simulate commands save their tables here so that a
    finished step can be skipped on the next run (--force re-runs it).
    """

    def __init__(self, db_path: Path):
        """
        Open (or create) the DuckDB database.

        Args:
            db_path: Path to DuckDB database file. Parent directories
                     are created automatically.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.conn = duckdb.connect(str(self.db_path))

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS _results (
                table_name VARCHAR PRIMARY KEY,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                row_count INTEGER,
                config_hash VARCHAR
            )
        """)

    def save_dataframe(
        self,
        df: pl.DataFrame,
        table_name: str,
        config_hash: str = "",
    ) -> None:
        """
        Save a polars DataFrame as a table, replacing any previous version.

        Args:
            df: DataFrame to save
            table_name: Name for the DuckDB table
            config_hash: Hash of the config that produced the table
        """
        if not isinstance(df, pl.DataFrame):
            raise ValueError("df must be a polars.DataFrame")

        self.conn.execute(f"CREATE OR REPLACE TABLE {table_name} AS SELECT * FROM df")
        self.conn.execute("""
            INSERT OR REPLACE INTO _results (table_name, row_count, config_hash, created_at)
            VALUES (?, ?, ?, CURRENT_TIMESTAMP)
        """, [table_name, df.height, config_hash])

    def load_dataframe(self, table_name: str) -> Optional[pl.DataFrame]:
        """
        Load a table as a polars DataFrame.

        Returns:
            DataFrame or None if table doesn't exist
        """
        try:
            return self.conn.execute(f"SELECT * FROM {table_name}").pl()
        except duckdb.CatalogException:
            return None

    def has_table(self, table_name: str, config_hash: Optional[str] = None) -> bool:
        """
        Check whether a result table exists.

        Args:
            table_name: Name of the table
            config_hash: When given, only a table produced by this config counts

        Returns:
            True if the table is recorded (and matches config_hash)
        """
        if config_hash is None:
            result = self.conn.execute(
                "SELECT COUNT(*) FROM _results WHERE table_name = ?",
                [table_name],
            ).fetchone()
        else:
            result = self.conn.execute(
                "SELECT COUNT(*) FROM _results WHERE table_name = ? AND config_hash = ?",
                [table_name, config_hash],
            ).fetchone()
        return result[0] > 0

    def list_tables(self) -> list[dict]:
        """
        List recorded result tables with metadata.

        Returns:
            List of dicts with keys table_name, created_at, row_count, config_hash
        """
        result = self.conn.execute("""
            SELECT table_name, created_at, row_count, config_hash
            FROM _results
            ORDER BY table_name
        """).fetchall()

        return [
            {
                "table_name": row[0],
                "created_at": row[1],
                "row_count": row[2],
                "config_hash": row[3],
            }
            for row in result
        ]

    def close(self) -> None:
        """Close the DuckDB connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @classmethod
    def from_config(cls, config: "PipelineConfig") -> "ResultStore":
        """Create a ResultStore at config.duckdb_path."""
        return cls(config.duckdb_path)
