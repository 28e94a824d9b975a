"""
Embedding provider registry.

Keeps the catalogue of available providers under stable string ids,
tracks which one is active, and persists that choice to a small JSON
state file so the next session starts with the same provider.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from notegraph.core.embeddings.base import Embedder
from notegraph.utils.exceptions import ConfigurationError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)

# credential -> embedder instance
ProviderFactory = Callable[[str | None], Embedder]


@dataclass(frozen=True)
class ProviderSpec:
    """Descriptor of one registered embedding provider."""

    id: str
    name: str
    dimension: int
    factory: ProviderFactory
    requires_credential: bool = False
    description: str = ""


class ProviderRegistry:
    """
    Registry of embedding providers.

    Usage:
        registry = ProviderRegistry(default_provider="minilm", state_path="data/provider.json")
        registry.register(ProviderSpec("minilm", "MiniLM", 384, make_minilm))
        registry.initialize_from_storage()
        embedder = registry.get_active_provider()
    """

    def __init__(self, default_provider: str = "minilm", state_path: str | Path | None = None):
        """
        Initialize registry.

        Args:
            default_provider: Provider id used when nothing is persisted
            state_path: JSON file persisting the active provider id (None disables persistence)
        """
        self.default_provider = default_provider
        self.state_path = Path(state_path) if state_path else None
        self._specs: dict[str, ProviderSpec] = {}
        self._credentials: dict[str, str] = {}
        self._active_id: str | None = None
        self._active: Embedder | None = None

    def register(self, spec: ProviderSpec, credential: str | None = None):
        """
        Register a provider.

        Raises:
            ConfigurationError: If the id is taken or the dimension is not a positive integer
        """
        if not spec.id:
            raise ConfigurationError("Provider id cannot be empty")
        if spec.id in self._specs:
            raise ConfigurationError(
                f"Provider {spec.id} is already registered", {"provider": spec.id}
            )
        if (
            not isinstance(spec.dimension, int)
            or isinstance(spec.dimension, bool)
            or spec.dimension <= 0
        ):
            raise ConfigurationError(
                f"Provider {spec.id} declares invalid dimension {spec.dimension!r}",
                {"provider": spec.id, "dimension": spec.dimension},
            )

        self._specs[spec.id] = spec
        if credential:
            self._credentials[spec.id] = credential

        logger.debug(f"Registered embedding provider {spec.id} ({spec.dimension}d)")

    def set_credential(self, provider_id: str, credential: str):
        """Store a credential (API key) for a provider."""
        self.get_provider(provider_id)
        self._credentials[provider_id] = credential

    def get_provider(self, provider_id: str) -> ProviderSpec:
        """
        Look up a provider descriptor.

        Raises:
            ConfigurationError: If the id is unknown
        """
        spec = self._specs.get(provider_id)
        if spec is None:
            raise ConfigurationError(
                f"Unknown embedding provider: {provider_id}",
                {"provider": provider_id, "available": list(self._specs)},
            )
        return spec

    def list_providers(self) -> list[ProviderSpec]:
        """All registered providers in registration order."""
        return list(self._specs.values())

    @property
    def active_provider_id(self) -> str | None:
        return self._active_id

    @property
    def active_spec(self) -> ProviderSpec | None:
        return self._specs.get(self._active_id) if self._active_id else None

    def initialize_from_storage(self) -> ProviderSpec:
        """
        Resolve the active provider id from the state file.

        Falls back to the default provider when the file is missing,
        unreadable or names a provider that is no longer registered.

        Raises:
            ConfigurationError: If neither the stored nor the default provider is registered
        """
        stored_id = self._read_state()

        if stored_id and stored_id in self._specs:
            self._active_id = stored_id
        elif self.default_provider in self._specs:
            if stored_id:
                logger.warning(
                    f"Stored provider {stored_id} is not registered, "
                    f"using default {self.default_provider}"
                )
            self._active_id = self.default_provider
        else:
            raise ConfigurationError(
                "No embedding provider available",
                {"stored": stored_id, "default": self.default_provider},
            )

        logger.info(f"Active embedding provider: {self._active_id}")
        return self._specs[self._active_id]

    def get_active_provider(self) -> Embedder:
        """
        Get the active embedder, instantiating it on first use.

        Raises:
            ConfigurationError: If no provider can be activated
        """
        if self._active is None:
            provider_id = self._active_id or self.initialize_from_storage().id
            self._active = self._instantiate(self.get_provider(provider_id))
        return self._active

    def set_active_provider(self, provider_id: str, credential: str | None = None) -> Embedder:
        """
        Switch the active provider and persist the choice.

        The previously active embedder is not closed here; the caller owns
        its disposal.

        Args:
            provider_id: Registered provider id
            credential: API key for providers that need one

        Returns:
            The newly active embedder

        Raises:
            ConfigurationError: If the id is unknown or a required credential is missing
        """
        spec = self.get_provider(provider_id)
        if credential:
            self._credentials[provider_id] = credential

        embedder = self._instantiate(spec)

        self._active = embedder
        self._active_id = provider_id
        self._write_state()

        logger.info(f"Switched embedding provider to {provider_id} ({spec.dimension}d)")
        return embedder

    def _instantiate(self, spec: ProviderSpec) -> Embedder:
        credential = self._credentials.get(spec.id)
        if spec.requires_credential and not credential:
            raise ConfigurationError(
                f"Provider {spec.name} requires a credential", {"provider": spec.id}
            )

        embedder = spec.factory(credential)
        if embedder.dimension != spec.dimension:
            raise ConfigurationError(
                f"Provider {spec.id} produced an embedder with dimension "
                f"{embedder.dimension}, declared {spec.dimension}",
                {"provider": spec.id},
            )
        return embedder

    def _read_state(self) -> str | None:
        if self.state_path is None or not self.state_path.exists():
            return None
        try:
            data = json.loads(self.state_path.read_text())
            return data.get("provider_id")
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Could not read provider state from {self.state_path}: {e}")
            return None

    def _write_state(self):
        if self.state_path is None:
            return
        try:
            self.state_path.parent.mkdir(parents=True, exist_ok=True)
            self.state_path.write_text(json.dumps({"provider_id": self._active_id}))
        except OSError as e:
            logger.warning(f"Could not persist provider choice to {self.state_path}: {e}")
