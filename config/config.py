import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_OLLAMA_HOST = "http://127.0.0.1:11434"
DEFAULT_CLOUD_MODEL = "gpt-oss:120b-cloud"
PLACEHOLDER_API_KEYS = {"OLLAMA_API_KEY", "your_api_key_here"}
MIN_API_KEY_LENGTH = 10
API_KEYS_URL = "https://ollama.com/settings/keys"


class BackendMode(str, Enum):
    """Where completions are served from."""

    LOCAL = "local"
    CLOUD = "cloud"


class SearchBackend(str, Enum):
    GOOGLE = "google"
    TAVILY = "tavily"


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}; using {default}")
        return default


def _float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}; using {default}")
        return default


def sanitize_api_key(raw: str | None) -> str | None:
    """
    Trim the Ollama API key and drop obvious placeholder values.

    Returns:
        The usable key, or None when unset or a placeholder
    """
    key = (raw or "").strip()
    if not key:
        return None
    if key in PLACEHOLDER_API_KEYS or len(key) < MIN_API_KEY_LENGTH:
        logger.error(
            f"OLLAMA_API_KEY appears to be a placeholder value. "
            f"Replace it with your actual API key from {API_KEYS_URL}"
        )
        return None
    return key


@dataclass(frozen=True)
class Config:
    """
    Process-wide configuration, resolved once at startup and injected everywhere.

    Never mutated after construction; the orchestrator receives only the
    values it needs (policy, clients) rather than reading this as a global.
    """

    ollama_host: str = DEFAULT_OLLAMA_HOST
    ollama_api_key: str | None = None
    ollama_timeout_s: float = 120.0
    cloud_default_model: str = DEFAULT_CLOUD_MODEL

    search_backend: SearchBackend = SearchBackend.GOOGLE
    google_api_key: str | None = None
    google_engine_id: str | None = None
    tavily_api_key: str | None = None
    search_max_results: int = 5
    search_timeout_s: float = 10.0
    search_cache_ttl_seconds: int = 600

    draft_chunk_size: int = 10
    max_adequacy_retries: int = 1

    host: str = "127.0.0.1"
    port: int = 3000

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from the environment, reading `.env` first if present.

        Args:
            env_file: Optional explicit dotenv path (defaults to the project root `.env`)
        """
        env_path = Path(env_file) if env_file else Path(__file__).parent.parent / ".env"
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=True)

        backend_raw = (os.getenv("SEARCH_PROVIDER") or SearchBackend.GOOGLE.value).strip().lower()
        try:
            search_backend = SearchBackend(backend_raw)
        except ValueError:
            logger.warning(
                f"Unknown SEARCH_PROVIDER '{backend_raw}'. Must be one of: "
                f"{', '.join(b.value for b in SearchBackend)}; falling back to google"
            )
            search_backend = SearchBackend.GOOGLE

        return cls(
            ollama_host=(os.getenv("OLLAMA_HOST") or DEFAULT_OLLAMA_HOST).strip().rstrip("/"),
            ollama_api_key=sanitize_api_key(os.getenv("OLLAMA_API_KEY")),
            ollama_timeout_s=_float_env("OLLAMA_TIMEOUT_S", 120.0),
            cloud_default_model=(os.getenv("CLOUD_DEFAULT_MODEL") or DEFAULT_CLOUD_MODEL).strip(),
            search_backend=search_backend,
            google_api_key=(os.getenv("GOOGLE_SEARCH_API_KEY") or "").strip() or None,
            google_engine_id=(os.getenv("GOOGLE_SEARCH_ENGINE_ID") or "").strip() or None,
            tavily_api_key=(os.getenv("TAVILY_API_KEY") or "").strip() or None,
            search_max_results=max(1, _int_env("SEARCH_MAX_RESULTS", 5)),
            search_timeout_s=_float_env("SEARCH_TIMEOUT_S", 10.0),
            search_cache_ttl_seconds=max(0, _int_env("SEARCH_CACHE_TTL_SECONDS", 600)),
            draft_chunk_size=max(1, _int_env("DRAFT_CHUNK_SIZE", 10)),
            max_adequacy_retries=max(0, _int_env("MAX_ADEQUACY_RETRIES", 1)),
            host=(os.getenv("HOST") or "127.0.0.1").strip(),
            port=_int_env("PORT", 3000),
        )

    @property
    def is_cloud(self) -> bool:
        return "ollama.com" in self.ollama_host

    @property
    def mode(self) -> BackendMode:
        return BackendMode.CLOUD if self.is_cloud else BackendMode.LOCAL

    @property
    def search_configured(self) -> bool:
        if self.search_backend == SearchBackend.TAVILY:
            return bool(self.tavily_api_key)
        return bool(self.google_api_key and self.google_engine_id)

    def validate(self) -> bool:
        """
        Check that the selected backend can authenticate.

        Returns:
            bool: False when cloud mode is selected without a usable API key
        """
        if self.is_cloud and not self.ollama_api_key:
            logger.error(
                "OLLAMA_HOST is set to cloud but OLLAMA_API_KEY is not set or invalid. "
                f"Set OLLAMA_API_KEY in your .env file (get one from {API_KEYS_URL})"
            )
            return False
        return True

    def describe(self) -> list[str]:
        """Startup banner lines; never includes the full API key."""
        lines = [f"Ollama Host: {self.ollama_host}"]
        if self.is_cloud:
            if self.ollama_api_key:
                lines.append("Mode: Ollama Cloud")
                lines.append(f"Default model: {self.cloud_default_model}")
                lines.append(f"API Key: Set ({self.ollama_api_key[:8]}...)")
            else:
                lines.append("Mode: Ollama Cloud (API key missing or invalid)")
                lines.append("Requests will fail with 401 Unauthorized until OLLAMA_API_KEY is set")
        else:
            lines.append("Mode: Local Ollama (make sure Ollama is running)")
        if self.search_configured:
            lines.append(f"Web search: {self.search_backend.value}")
        else:
            lines.append(f"Web search: {self.search_backend.value} (credentials missing, answers without evidence)")
        return lines
