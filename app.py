"""
NoteGraph FastAPI Application

A REST API server for the NoteGraph retrieval engine.
Provides endpoints for indexing notes, searching, switching embedding
providers and reading index status.
"""

from contextlib import asynccontextmanager
from typing import Any, Literal

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from notegraph.config import Config
from notegraph.models import (
    AtlasData,
    ChunkingMethod,
    IndexStatus,
    NoteInput,
    SearchBackend,
    SearchResult,
    SemanticChunkingOptions,
)
from notegraph.services import EmbeddingsService, to_atlas_data
from notegraph.utils.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    NotFoundError,
    NoteGraphError,
    ServiceStateError,
    ValidationError,
)
from notegraph.utils.logger import get_logger, setup_logging

# Global service instance
service: EmbeddingsService | None = None
logger = get_logger(__name__)


# Pydantic models for API
class AddNoteRequest(BaseModel):
    """Request model for indexing a note."""

    id: str = Field(..., min_length=1, description="Note ID")
    title: str = Field(default="", description="Note title")
    content: str = Field(default="", description="Flattened note text")
    chunking_method: ChunkingMethod | None = None
    semantic_options: SemanticChunkingOptions | None = None


class AddNoteResponse(BaseModel):
    """Response model for add note."""

    note_id: str
    chunks_indexed: int


class SyncNotesRequest(BaseModel):
    """Request model for bulk indexing."""

    notes: list[NoteInput]
    chunking_method: ChunkingMethod | None = None
    semantic_options: SemanticChunkingOptions | None = None


class SyncNotesResponse(BaseModel):
    """Response model for bulk indexing."""

    notes_indexed: int
    notes_received: int


class RemoveNoteResponse(BaseModel):
    """Response model for remove note."""

    note_id: str
    chunks_removed: int


class SearchRequest(BaseModel):
    """Request model for search."""

    query: str = Field(..., description="Free-text query")
    top_k: int = Field(default=10, ge=1, le=100, description="Max results")
    backend: SearchBackend | None = Field(
        default=None, description="Override the configured search backend"
    )


class SwitchProviderRequest(BaseModel):
    """Request model for switching the embedding provider."""

    provider_id: str
    credential: str | None = Field(default=None, description="API key, when required")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service_initialized: bool
    provider: dict[str, Any] | None = None
    search_backend: str | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global service

    # Load configuration from environment or use defaults
    config = Config.from_env()

    # Initialize logging with config
    setup_logging(
        level=config.logging.level,
        log_to_file=config.logging.log_to_file,
        log_dir=config.logging.log_dir,
        file_rotation=config.logging.file_rotation,
        file_retention=config.logging.file_retention,
        compression=config.logging.compression,
        serialize=config.logging.serialize,
    )

    logger.info("Starting NoteGraph server")
    logger.info(
        f"Configuration: Embedder={config.embedder.provider}, "
        f"Index={config.index.backend}, VectorStore={config.vector_store.backend}, "
        f"Search={config.search.backend}"
    )

    service = EmbeddingsService(config=config)
    await service.initialize()
    logger.info("NoteGraph service initialized")

    yield

    # Cleanup
    logger.info("Shutting down NoteGraph server")
    await service.dispose()
    logger.info("Cleanup complete")


# Create FastAPI app
app = FastAPI(
    title="NoteGraph API",
    description="Graph-augmented semantic search over notes",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


_STATUS_CODES: list[tuple[type[NoteGraphError], int]] = [
    (ValidationError, 400),
    (ConfigurationError, 400),
    (NotFoundError, 404),
    (ServiceStateError, 409),
    (DimensionMismatchError, 422),
]


@app.exception_handler(NoteGraphError)
async def notegraph_error_handler(request: Request, exc: NoteGraphError):
    """Map engine errors to HTTP responses carrying the error context."""
    status_code = next(
        (code for error_type, code in _STATUS_CODES if isinstance(exc, error_type)), 500
    )
    if status_code >= 500:
        logger.error(f"Error handling {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={
            "error": type(exc).__name__,
            "detail": exc.message,
            "context": {k: v for k, v in exc.context.items() if k != "credential"},
        },
    )


def get_service() -> EmbeddingsService:
    if not service:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return service


# Health check endpoint
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy" if service else "initializing",
        service_initialized=service is not None,
        provider=service.get_current_provider() if service else None,
        search_backend=service.get_search_backend().value if service else None,
    )


@app.get("/status", response_model=IndexStatus)
async def index_status():
    """Graph and persisted index sizes for the active provider."""
    return await get_service().get_index_status()


# Note endpoints
@app.post("/notes", response_model=AddNoteResponse)
async def add_note(request: AddNoteRequest):
    """
    Index or re-index a note.

    The note is chunked, embedded and added to the knowledge graph. Chunks
    from a previous version of the note are replaced.
    """
    chunks = await get_service().add_note(
        request.id,
        request.title,
        request.content,
        chunking_method=request.chunking_method,
        semantic_options=request.semantic_options,
    )
    return AddNoteResponse(note_id=request.id, chunks_indexed=chunks)


@app.post("/notes/sync", response_model=SyncNotesResponse)
async def sync_notes(request: SyncNotesRequest):
    """Index many notes; individual failures are skipped."""
    indexed = await get_service().sync_all_notes(
        request.notes,
        chunking_method=request.chunking_method,
        semantic_options=request.semantic_options,
    )
    return SyncNotesResponse(notes_indexed=indexed, notes_received=len(request.notes))


@app.delete("/notes/{note_id}", response_model=RemoveNoteResponse)
async def remove_note(note_id: str):
    """Remove every chunk of a note."""
    removed = await get_service().remove_note(note_id)
    if not removed:
        raise NotFoundError(f"Note {note_id} is not indexed", {"note_id": note_id})
    return RemoveNoteResponse(note_id=note_id, chunks_removed=removed)


# Search endpoints
@app.post("/search", response_model=list[SearchResult])
async def search(request: SearchRequest):
    """
    Search notes.

    The graphrag backend blends query similarity with random-walk visits
    over semantic edges; the vector backend queries the persisted store.
    """
    svc = get_service()
    if request.backend == SearchBackend.GRAPHRAG:
        return await svc.search_graphrag(request.query, request.top_k)
    if request.backend == SearchBackend.VECTOR:
        return await svc.search_vector_store(request.query, request.top_k)
    return await svc.search(request.query, request.top_k)


# Provider endpoints
@app.get("/provider")
async def get_provider():
    """Active provider and the registered alternatives."""
    svc = get_service()
    return {
        "active": svc.get_current_provider(),
        "available": [
            {
                "id": spec.id,
                "name": spec.name,
                "dimension": spec.dimension,
                "requires_credential": spec.requires_credential,
            }
            for spec in svc.registry.list_providers()
        ],
    }


@app.post("/provider")
async def switch_provider(request: SwitchProviderRequest):
    """Switch the embedding provider. Notes are not re-embedded automatically."""
    svc = get_service()
    await svc.switch_provider(request.provider_id, request.credential)
    return {"active": svc.get_current_provider()}


# Atlas endpoint
@app.get("/atlas", response_model=AtlasData)
async def atlas(method: Literal["axes", "pca"] = Query(default="axes")):
    """2D projection of every indexed chunk."""
    return to_atlas_data(get_service().get_atlas_data(), method=method)


@app.delete("/index")
async def clear_index():
    """Clear graph, index and persisted vectors for the active provider."""
    await get_service().clear()
    return {"status": "cleared"}
