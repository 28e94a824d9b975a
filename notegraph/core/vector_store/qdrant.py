"""
Qdrant vector store implementation.

One collection per vector path. Runs against a Qdrant server (url) or
an embedded local database (path).
"""

from typing import Any
from uuid import NAMESPACE_DNS, UUID, uuid5

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    HnswConfigDiff,
    PointStruct,
    VectorParams,
)

from notegraph.core.vector_store.base import VectorStore
from notegraph.models.vector import StoredVector, VectorSearchHit
from notegraph.utils.exceptions import ValidationError, VectorStoreError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)


class QdrantVectorStore(VectorStore):
    """
    Qdrant vector store for chunk embeddings.

    Features:
    - Server (HTTP/gRPC) or embedded local mode
    - HNSW indexing for fast search
    - Deterministic UUIDs for string chunk ids (original id kept in payload)
    """

    def __init__(
        self,
        vector_path: str,
        dimension: int,
        url: str | None = None,
        path: str | None = "data/qdrant",
        api_key: str | None = None,
        use_grpc: bool = False,
        hnsw_m: int = 16,
        hnsw_ef_construct: int = 100,
        on_disk: bool = False,
        scroll_batch: int = 256,
    ):
        """
        Initialize Qdrant store.

        Args:
            vector_path: Namespace; used as the collection name
            dimension: Embedding dimension
            url: Qdrant server URL (takes precedence over path)
            path: Embedded local database directory
            api_key: Qdrant API key
            use_grpc: Use gRPC connection (faster)
            hnsw_m: HNSW M parameter (connections per node)
            hnsw_ef_construct: HNSW ef_construct parameter
            on_disk: Store vectors on disk (reduces RAM usage)
            scroll_batch: Page size when reading the whole collection
        """
        super().__init__(vector_path, dimension)
        self.collection_name = vector_path
        self.url = url
        self.path = path
        self.api_key = api_key
        self.use_grpc = use_grpc
        self.hnsw_m = hnsw_m
        self.hnsw_ef_construct = hnsw_ef_construct
        self.on_disk = on_disk
        self.scroll_batch = scroll_batch
        self.client: AsyncQdrantClient | None = None
        self._closed = False

    def _to_uuid(self, id_str: str) -> str:
        """
        Convert string ID to UUID format consistently.

        Args:
            id_str: String identifier

        Returns:
            UUID string
        """
        try:
            UUID(id_str)
            return id_str
        except ValueError:
            return str(uuid5(NAMESPACE_DNS, id_str))

    async def connect(self) -> None:
        """
        Establish connection to Qdrant.

        Raises:
            VectorStoreError: If connection fails
        """
        if self._closed:
            raise VectorStoreError(f"Qdrant vector store {self.vector_path} is closed")
        if self.client is None:
            try:
                if self.url:
                    self.client = AsyncQdrantClient(
                        url=self.url,
                        api_key=self.api_key,
                        prefer_grpc=self.use_grpc,
                        timeout=30,
                    )
                else:
                    self.client = AsyncQdrantClient(path=self.path)
            except Exception as e:
                logger.error(
                    f"Failed to connect to Qdrant: {e}",
                    extra={"url": self.url, "path": self.path, "error": str(e)},
                )
                raise VectorStoreError(f"Failed to connect to Qdrant: {e}") from e

    async def initialize(self) -> None:
        """
        Create the collection for this vector path if missing.

        Raises:
            VectorStoreError: If initialization fails
        """
        self._closed = False
        try:
            await self.connect()

            collections = await self.client.get_collections()
            collection_names = [col.name for col in collections.collections]

            if self.collection_name not in collection_names:
                await self._create_collection()
                logger.info(f"Created Qdrant collection {self.collection_name}")
        except VectorStoreError:
            raise
        except Exception as e:
            logger.error(
                f"Failed to initialize Qdrant collection: {e}",
                extra={"collection": self.collection_name, "error": str(e)},
            )
            raise VectorStoreError(f"Failed to initialize Qdrant collection: {e}") from e

    async def _create_collection(self) -> None:
        await self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=VectorParams(
                size=self.dimension,
                distance=Distance.COSINE,
                hnsw_config=HnswConfigDiff(
                    m=self.hnsw_m,
                    ef_construct=self.hnsw_ef_construct,
                    full_scan_threshold=10000,
                ),
                on_disk=self.on_disk,
            ),
        )

    async def upsert_embedding(
        self,
        id: str,
        text: str,
        vector: list[float],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """
        Store or update a vector.

        Raises:
            ValidationError: If id or vector is invalid
            VectorStoreError: If upsert operation fails
        """
        self._validate(id, vector)

        try:
            await self.connect()

            point = PointStruct(
                id=self._to_uuid(id),
                vector=[float(x) for x in vector],
                payload={"original_id": id, "text": text, "metadata": metadata or {}},
            )

            await self.client.upsert(
                collection_name=self.collection_name,
                points=[point],
                wait=True,  # Wait for write to complete for consistency
            )
        except ValidationError:
            raise
        except Exception as e:
            logger.error(
                f"Failed to upsert vector {id}: {e}",
                extra={"id": id, "collection": self.collection_name, "error": str(e)},
            )
            raise VectorStoreError(f"Failed to upsert vector: {e}") from e

    async def delete_embedding(self, id: str) -> None:
        """
        Delete a vector from the collection.

        Raises:
            ValidationError: If id is invalid
            VectorStoreError: If deletion operation fails
        """
        if not id or not id.strip():
            raise ValidationError("Vector ID cannot be empty")

        try:
            await self.connect()

            await self.client.delete(
                collection_name=self.collection_name,
                points_selector=[self._to_uuid(id)],
                wait=True,
            )
        except Exception as e:
            logger.error(
                f"Failed to delete vector {id}: {e}",
                extra={"id": id, "error": str(e)},
            )
            raise VectorStoreError(f"Failed to delete vector: {e}") from e

    async def search_by_embedding(
        self, vector: list[float], top_k: int = 10
    ) -> list[VectorSearchHit]:
        """
        Search for similar vectors.

        Args:
            vector: Query embedding vector
            top_k: Maximum results

        Returns:
            Hits ranked by cosine similarity
        """
        if len(vector) != self.dimension:
            raise ValidationError(
                f"Query length {len(vector)} does not match store dimension {self.dimension}"
            )

        try:
            await self.connect()

            response = await self.client.query_points(
                collection_name=self.collection_name,
                query=vector,
                limit=top_k,
                with_payload=True,
                with_vectors=False,
            )
        except Exception as e:
            logger.error(f"Qdrant search failed: {e}", extra={"collection": self.collection_name})
            raise VectorStoreError(f"Qdrant search failed: {e}") from e

        return [
            VectorSearchHit(
                id=point.payload.get("original_id", str(point.id)),
                text=point.payload.get("text", ""),
                score=point.score,
                metadata=point.payload.get("metadata", {}),
            )
            for point in response.points
        ]

    async def get_all(self) -> list[StoredVector]:
        """Scroll through the whole collection."""
        try:
            await self.connect()

            records = []
            offset = None
            while True:
                points, offset = await self.client.scroll(
                    collection_name=self.collection_name,
                    limit=self.scroll_batch,
                    offset=offset,
                    with_payload=True,
                    with_vectors=True,
                )
                for point in points:
                    records.append(
                        StoredVector(
                            id=point.payload.get("original_id", str(point.id)),
                            text=point.payload.get("text", ""),
                            vector=list(point.vector or []),
                            metadata=point.payload.get("metadata", {}),
                        )
                    )
                if offset is None:
                    break
        except Exception as e:
            logger.error(f"Failed to read Qdrant collection {self.collection_name}: {e}")
            raise VectorStoreError(f"Failed to read vectors: {e}") from e

        return records

    async def count(self) -> int:
        try:
            await self.connect()
            response = await self.client.count(collection_name=self.collection_name, exact=True)
        except Exception as e:
            raise VectorStoreError(f"Failed to count vectors: {e}") from e

        return response.count

    async def clear(self) -> None:
        """Drop and recreate the collection."""
        try:
            await self.connect()
            await self.client.delete_collection(collection_name=self.collection_name)
            await self._create_collection()
        except Exception as e:
            logger.error(f"Failed to clear Qdrant collection {self.collection_name}: {e}")
            raise VectorStoreError(f"Failed to clear vector store: {e}") from e

    async def close(self) -> None:
        """Close the connection to Qdrant."""
        self._closed = True
        if self.client is not None:
            await self.client.close()
            self.client = None
