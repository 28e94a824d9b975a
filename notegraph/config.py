"""
Configuration for NoteGraph.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)
"""

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class EmbedderConfig(BaseModel):
    """Embedding provider configuration."""

    provider: str = "minilm"  # minilm, embeddinggemma, nomic, openai
    state_path: str = "data/embedding_provider.json"
    device: str | None = None
    cache_dir: str | None = None
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "nomic-embed-text"
    openai_api_key: str | None = None
    openai_model: str = "text-embedding-3-small"
    openai_base_url: str | None = None
    timeout: float = 120.0


class ChunkingConfig(BaseModel):
    """Text chunking configuration."""

    method: Literal["original", "basic", "sentences", "semantic"] = "original"
    max_chunk_chars: int = Field(default=1000, gt=0)
    max_token_size: int = Field(default=500, gt=0)
    similarity_threshold: float = Field(default=0.7, ge=-1.0, le=1.0)
    combine_chunks: bool = True
    min_chunk_tokens: int = Field(default=50, ge=0)


class GraphConfig(BaseModel):
    """Knowledge graph edge building and ranking configuration."""

    semantic_threshold: float = Field(default=0.82, ge=-1.0, le=1.0)
    semantic_k: int = Field(default=5, ge=1)
    random_walk_steps: int = Field(default=100, ge=0)
    restart_prob: float = Field(default=0.15, ge=0.0, le=1.0)
    walk_edge_type: Literal["semantic", "sequential"] = "semantic"
    seed_count: int = Field(default=5, ge=1)
    walk_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    random_seed: int | None = 42


class IndexConfig(BaseModel):
    """Approximate nearest-neighbor index configuration."""

    backend: Literal["hnsw", "exact"] = "hnsw"
    m: int = Field(default=16, gt=0)
    ef_construction: int = Field(default=200, gt=0)
    ef_search: int = Field(default=50, gt=0)
    initial_capacity: int = Field(default=1024, gt=0)


class VectorStoreConfig(BaseModel):
    """Persisted vector store configuration."""

    backend: Literal["sqlite", "qdrant"] = "sqlite"
    db_path: str = "data/notegraph_vectors.db"
    # Qdrant: a URL for a server, otherwise an embedded local path
    qdrant_url: str | None = None
    qdrant_path: str = "data/qdrant"
    qdrant_api_key: str | None = None
    use_grpc: bool = False
    hnsw_m: int = 16
    hnsw_ef_construct: int = 100
    on_disk: bool = False


class SearchConfig(BaseModel):
    """Search dispatch configuration."""

    backend: Literal["graphrag", "vector"] = "graphrag"
    default_top_k: int = Field(default=10, ge=1)


class WorkerConfig(BaseModel):
    """Embedding worker configuration."""

    batch_size: int = Field(default=5, ge=1)


class TokenizerConfig(BaseModel):
    """Token counting configuration."""

    provider: Literal["tiktoken", "approximate"] = "tiktoken"
    model: str = "cl100k_base"
    chars_per_token: float = Field(default=4.0, gt=0)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class Config(BaseModel):
    """Main configuration."""

    embedder: EmbedderConfig = Field(default_factory=EmbedderConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    tokenizer: TokenizerConfig = Field(default_factory=TokenizerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in project root)

        Returns:
            Config instance

        Environment variables:
            NOTEGRAPH_EMBEDDER_PROVIDER: Default provider id (minilm, embeddinggemma, nomic, openai)
            NOTEGRAPH_EMBEDDER_STATE_PATH: File persisting the active provider choice
            NOTEGRAPH_OLLAMA_BASE_URL: Ollama server URL
            NOTEGRAPH_OPENAI_API_KEY: OpenAI API key
            NOTEGRAPH_CHUNKING_METHOD: Default chunking method
            NOTEGRAPH_GRAPH_SEMANTIC_THRESHOLD: Minimum similarity for semantic edges
            NOTEGRAPH_GRAPH_RESTART_PROB: Random walk restart probability
            NOTEGRAPH_INDEX_BACKEND: ANN index backend (hnsw, exact)
            NOTEGRAPH_VECTOR_STORE_BACKEND: Persisted store backend (sqlite, qdrant)
            NOTEGRAPH_VECTOR_STORE_DB_PATH: SQLite database path
            NOTEGRAPH_QDRANT_URL: Qdrant server URL
            NOTEGRAPH_SEARCH_BACKEND: Search backend (graphrag, vector)
            NOTEGRAPH_LOG_LEVEL: Log level
        """
        # Load .env file if provided or exists
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None:
                return default
            # If value is empty string, return default
            if value == "":
                return default
            # Convert boolean strings
            if isinstance(default, bool):
                return str(value).lower() in ("true", "1", "yes")
            # Convert numeric strings
            if isinstance(default, int):
                return int(value)
            if isinstance(default, float):
                return float(value)
            return value

        return cls(
            embedder=EmbedderConfig(
                provider=get_env("NOTEGRAPH_EMBEDDER_PROVIDER", "minilm"),
                state_path=get_env(
                    "NOTEGRAPH_EMBEDDER_STATE_PATH", "data/embedding_provider.json"
                ),
                device=get_env("NOTEGRAPH_EMBEDDER_DEVICE"),
                cache_dir=get_env("NOTEGRAPH_EMBEDDER_CACHE_DIR"),
                ollama_base_url=get_env("NOTEGRAPH_OLLAMA_BASE_URL", "http://localhost:11434"),
                ollama_model=get_env("NOTEGRAPH_OLLAMA_MODEL", "nomic-embed-text"),
                openai_api_key=get_env("NOTEGRAPH_OPENAI_API_KEY"),
                openai_model=get_env("NOTEGRAPH_OPENAI_MODEL", "text-embedding-3-small"),
                openai_base_url=get_env("NOTEGRAPH_OPENAI_BASE_URL"),
                timeout=get_env("NOTEGRAPH_EMBEDDER_TIMEOUT", 120.0),
            ),
            chunking=ChunkingConfig(
                method=get_env("NOTEGRAPH_CHUNKING_METHOD", "original"),
                max_chunk_chars=get_env("NOTEGRAPH_CHUNKING_MAX_CHARS", 1000),
                max_token_size=get_env("NOTEGRAPH_CHUNKING_MAX_TOKENS", 500),
                similarity_threshold=get_env("NOTEGRAPH_CHUNKING_SIMILARITY_THRESHOLD", 0.7),
                combine_chunks=get_env("NOTEGRAPH_CHUNKING_COMBINE", True),
            ),
            graph=GraphConfig(
                semantic_threshold=get_env("NOTEGRAPH_GRAPH_SEMANTIC_THRESHOLD", 0.82),
                semantic_k=get_env("NOTEGRAPH_GRAPH_SEMANTIC_K", 5),
                random_walk_steps=get_env("NOTEGRAPH_GRAPH_RANDOM_WALK_STEPS", 100),
                restart_prob=get_env("NOTEGRAPH_GRAPH_RESTART_PROB", 0.15),
                walk_edge_type=get_env("NOTEGRAPH_GRAPH_WALK_EDGE_TYPE", "semantic"),
                walk_weight=get_env("NOTEGRAPH_GRAPH_WALK_WEIGHT", 0.3),
                random_seed=get_env("NOTEGRAPH_GRAPH_RANDOM_SEED", 42),
            ),
            index=IndexConfig(
                backend=get_env("NOTEGRAPH_INDEX_BACKEND", "hnsw"),
                m=get_env("NOTEGRAPH_INDEX_M", 16),
                ef_construction=get_env("NOTEGRAPH_INDEX_EF_CONSTRUCTION", 200),
                ef_search=get_env("NOTEGRAPH_INDEX_EF_SEARCH", 50),
            ),
            vector_store=VectorStoreConfig(
                backend=get_env("NOTEGRAPH_VECTOR_STORE_BACKEND", "sqlite"),
                db_path=get_env("NOTEGRAPH_VECTOR_STORE_DB_PATH", "data/notegraph_vectors.db"),
                qdrant_url=get_env("NOTEGRAPH_QDRANT_URL"),
                qdrant_path=get_env("NOTEGRAPH_QDRANT_PATH", "data/qdrant"),
                qdrant_api_key=get_env("NOTEGRAPH_QDRANT_API_KEY"),
                use_grpc=get_env("NOTEGRAPH_QDRANT_USE_GRPC", False),
            ),
            search=SearchConfig(
                backend=get_env("NOTEGRAPH_SEARCH_BACKEND", "graphrag"),
                default_top_k=get_env("NOTEGRAPH_SEARCH_TOP_K", 10),
            ),
            worker=WorkerConfig(
                batch_size=get_env("NOTEGRAPH_WORKER_BATCH_SIZE", 5),
            ),
            tokenizer=TokenizerConfig(
                provider=get_env("NOTEGRAPH_TOKENIZER_PROVIDER", "tiktoken"),
                model=get_env("NOTEGRAPH_TOKENIZER_MODEL", "cl100k_base"),
            ),
            logging=LoggingConfig(
                level=get_env("NOTEGRAPH_LOG_LEVEL", "INFO"),
                log_to_file=get_env("NOTEGRAPH_LOG_TO_FILE", True),
                log_dir=get_env("NOTEGRAPH_LOG_DIR", "logs"),
                file_rotation=get_env("NOTEGRAPH_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("NOTEGRAPH_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("NOTEGRAPH_LOG_COMPRESSION", "zip"),
                serialize=get_env("NOTEGRAPH_LOG_SERIALIZE", True),
            ),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        Args:
            yaml_path: Optional path to YAML config
            env_file: Optional path to .env file

        Returns:
            Config instance
        """
        # Start with YAML if provided
        if yaml_path and Path(yaml_path).exists():
            with open(yaml_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            config_dict = {}

        env_config = cls.from_env(env_file=env_file)

        # Merge: env vars override YAML
        final_dict = {**config_dict}

        # Apply env overrides (non-default sections only)
        default = cls()
        for section in cls.model_fields:
            env_section = getattr(env_config, section)
            if env_section != getattr(default, section):
                final_dict[section] = env_section.model_dump()

        return cls(**final_dict) if final_dict else env_config


# Default config instance
default_config = Config()
