"""
SQLite vector store implementation using aiosqlite.

Local-first default: one database file holds every namespace, rows are
keyed by (vector_path, id) and similarity search is an exact numpy scan.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import numpy as np

from notegraph.core.vector_store.base import VectorStore
from notegraph.models.vector import StoredVector, VectorSearchHit
from notegraph.utils.exceptions import ValidationError, VectorStoreError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)


class SQLiteVectorStore(VectorStore):
    """
    SQLite-based vector store for chunk embeddings.

    Features:
    - Fast local storage
    - JSON-serialized vectors and metadata
    - Namespaces per vector path in a single table
    """

    def __init__(
        self,
        vector_path: str,
        dimension: int,
        db_path: str = "data/notegraph_vectors.db",
    ):
        """
        Initialize SQLite vector store.

        Args:
            vector_path: Namespace for this store's rows
            dimension: Vector length accepted by this namespace
            db_path: Path to SQLite database file
        """
        super().__init__(vector_path, dimension)
        self.db_path = db_path
        self.connection: aiosqlite.Connection | None = None
        self._closed = False

    async def connect(self) -> None:
        """Establish connection to SQLite."""
        if self._closed:
            raise VectorStoreError(f"SQLite vector store {self.vector_path} is closed")
        if self.connection is None:
            try:
                if self.db_path != ":memory:":
                    Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                self.connection = await aiosqlite.connect(self.db_path)
                await self.connection.execute("PRAGMA journal_mode = WAL")
                await self.connection.commit()
            except Exception as e:
                logger.error(f"Failed to open SQLite vector store {self.db_path}: {e}")
                raise VectorStoreError(f"Failed to open SQLite vector store: {e}") from e

    async def initialize(self) -> None:
        """Initialize database schema."""
        self._closed = False
        await self.connect()

        try:
            await self.connection.execute(
                """
                CREATE TABLE IF NOT EXISTS vectors (
                    vector_path TEXT NOT NULL,
                    id TEXT NOT NULL,
                    text TEXT NOT NULL,
                    embedding TEXT NOT NULL,
                    metadata TEXT DEFAULT '{}',
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (vector_path, id)
                )
            """
            )
            await self.connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_vectors_path ON vectors(vector_path)"
            )
            await self.connection.commit()
        except Exception as e:
            logger.error(f"Failed to initialize SQLite vector store: {e}")
            raise VectorStoreError(f"Failed to initialize SQLite vector store: {e}") from e

    # ═══════════════════════════════════════════════════════════
    # WRITE OPERATIONS
    # ═══════════════════════════════════════════════════════════

    async def upsert_embedding(
        self,
        id: str,
        text: str,
        vector: list[float],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Update the row if it exists, otherwise insert it."""
        self._validate(id, vector)
        await self.connect()

        embedding_json = json.dumps([float(x) for x in vector])
        metadata_json = json.dumps(metadata or {})
        now = datetime.now(timezone.utc).isoformat()

        try:
            cursor = await self.connection.execute(
                """
                UPDATE vectors SET text = ?, embedding = ?, metadata = ?, updated_at = ?
                WHERE vector_path = ? AND id = ?
                """,
                (text, embedding_json, metadata_json, now, self.vector_path, id),
            )
            if cursor.rowcount == 0:
                await self.connection.execute(
                    """
                    INSERT INTO vectors (vector_path, id, text, embedding, metadata, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (self.vector_path, id, text, embedding_json, metadata_json, now),
                )
            await self.connection.commit()
        except Exception as e:
            logger.error(
                f"Failed to upsert vector {id}: {e}",
                extra={"vector_path": self.vector_path, "id": id, "error": str(e)},
            )
            raise VectorStoreError(f"Failed to upsert vector: {e}") from e

    async def delete_embedding(self, id: str) -> None:
        """Delete one row from this namespace."""
        if not id or not id.strip():
            raise ValidationError("Vector ID cannot be empty")
        await self.connect()

        try:
            await self.connection.execute(
                "DELETE FROM vectors WHERE vector_path = ? AND id = ?", (self.vector_path, id)
            )
            await self.connection.commit()
        except Exception as e:
            logger.error(f"Failed to delete vector {id}: {e}")
            raise VectorStoreError(f"Failed to delete vector: {e}") from e

    async def clear(self) -> None:
        """Delete every row in this namespace."""
        await self.connect()

        try:
            await self.connection.execute(
                "DELETE FROM vectors WHERE vector_path = ?", (self.vector_path,)
            )
            await self.connection.commit()
        except Exception as e:
            logger.error(f"Failed to clear vector path {self.vector_path}: {e}")
            raise VectorStoreError(f"Failed to clear vector store: {e}") from e

    # ═══════════════════════════════════════════════════════════
    # READ OPERATIONS
    # ═══════════════════════════════════════════════════════════

    async def get_all(self) -> list[StoredVector]:
        await self.connect()

        try:
            cursor = await self.connection.execute(
                "SELECT id, text, embedding, metadata FROM vectors "
                "WHERE vector_path = ? ORDER BY rowid",
                (self.vector_path,),
            )
            rows = await cursor.fetchall()
        except Exception as e:
            logger.error(f"Failed to read vectors from {self.vector_path}: {e}")
            raise VectorStoreError(f"Failed to read vectors: {e}") from e

        return [self._row_to_vector(row) for row in rows]

    async def count(self) -> int:
        await self.connect()

        try:
            cursor = await self.connection.execute(
                "SELECT COUNT(*) FROM vectors WHERE vector_path = ?", (self.vector_path,)
            )
            row = await cursor.fetchone()
        except Exception as e:
            raise VectorStoreError(f"Failed to count vectors: {e}") from e

        return row[0] if row else 0

    async def search_by_embedding(
        self, vector: list[float], top_k: int = 10
    ) -> list[VectorSearchHit]:
        """Exact cosine search over this namespace."""
        if len(vector) != self.dimension:
            raise ValidationError(
                f"Query length {len(vector)} does not match store dimension {self.dimension}"
            )

        records = [r for r in await self.get_all() if len(r.vector) == self.dimension]
        if not records or top_k <= 0:
            return []

        matrix = np.asarray([r.vector for r in records], dtype=np.float64)
        query = np.asarray(vector, dtype=np.float64)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        scores = np.divide(matrix @ query, norms, out=np.zeros(len(records)), where=norms > 0)

        order = np.argsort(-scores, kind="stable")[:top_k]
        return [
            VectorSearchHit(
                id=records[i].id,
                text=records[i].text,
                score=float(scores[i]),
                metadata=records[i].metadata,
            )
            for i in order
        ]

    def _row_to_vector(self, row) -> StoredVector:
        return StoredVector(
            id=row[0],
            text=row[1],
            vector=json.loads(row[2]),
            metadata=json.loads(row[3]) if row[3] else {},
        )

    async def close(self) -> None:
        """Close the connection to SQLite."""
        self._closed = True
        if self.connection is not None:
            await self.connection.close()
            self.connection = None
