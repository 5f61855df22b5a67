"""
Inquiry Embedding Client
Generates embeddings for inquiry text using Ollama, an OpenAI-compatible API or sentence-transformers
"""

from typing import Optional, Protocol

import httpx
import structlog

logger = structlog.get_logger()


class EmbeddingError(Exception):
    """Embedding failed for one text; other texts are unaffected"""


class Embedder(Protocol):
    """Anything that turns one text into one fixed-length vector"""

    def embed(self, text: str) -> list[float]:
        ...


class InquiryEmbedder:
    """
    Generates embeddings for inquiry text.

    Supports three backends:
    1. Ollama (default)
    2. OpenAI-compatible /v1/embeddings endpoint
    3. Sentence-transformers (local)

    Every failure surfaces as EmbeddingError; there is no fallback between backends.
    """

    BACKENDS = ("ollama", "openai", "local")

    # Max characters to send to embedding model
    MAX_TEXT_LENGTH = 8000

    def __init__(
        self,
        backend: str = "ollama",
        url: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        api_key: Optional[str] = None,
        dimension: Optional[int] = None,
        max_length: int = None,
        timeout: float = 30.0,
        local_model: str = "paraphrase-multilingual-MiniLM-L12-v2",
    ):
        """
        Args:
            backend: One of "ollama", "openai", "local"
            url: Base URL of the embedding server
            model: Embedding model name
            api_key: Bearer token for the openai backend
            dimension: Expected vector length; mismatches raise EmbeddingError
            max_length: Max text length (default: MAX_TEXT_LENGTH)
            timeout: HTTP timeout in seconds
            local_model: sentence-transformers model for the local backend
        """
        if backend not in self.BACKENDS:
            raise ValueError(f"Unknown embedding backend: {backend}")
        self.backend = backend
        self.url = url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.dimension = dimension
        self.max_length = max_length or self.MAX_TEXT_LENGTH
        self.timeout = timeout
        self.local_model_name = local_model
        self._local_model = None

    def embed(self, text: str) -> list[float]:
        """
        Generate embedding for a single text.

        Args:
            text: Text to embed

        Returns:
            List of floats (embedding vector)

        Raises:
            EmbeddingError: if the text is blank or the backend fails
        """
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed blank text")

        if len(text) > self.max_length:
            logger.debug("Truncated text", original=len(text), max=self.max_length)
            text = text[:self.max_length]

        if self.backend == "local":
            embedding = self._embed_local(text)
        elif self.backend == "openai":
            embedding = self._embed_openai(text)
        else:
            embedding = self._embed_ollama(text)

        if not embedding:
            raise EmbeddingError("Empty embedding returned")
        if self.dimension is not None and len(embedding) != self.dimension:
            raise EmbeddingError(
                f"Invalid embedding dimension: expected {self.dimension}, got {len(embedding)}"
            )
        return [float(x) for x in embedding]

    def _post(self, path: str, payload: dict, headers: dict) -> dict:
        try:
            response = httpx.post(
                f"{self.url}{path}",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            error_text = e.response.text if e.response is not None else str(e)
            logger.error("Embedding HTTP error", status=e.response.status_code, error=error_text[:200])
            raise EmbeddingError(f"HTTP {e.response.status_code} from embedding server") from e
        except httpx.HTTPError as e:
            logger.error("Embedding request failed", error=str(e), model=self.model)
            raise EmbeddingError(str(e)) from e
        except ValueError as e:
            raise EmbeddingError("Embedding server returned invalid JSON") from e

    def _embed_ollama(self, text: str) -> list[float]:
        """Generate embedding using Ollama API"""
        result = self._post(
            "/api/embeddings",
            {"model": self.model, "prompt": text},
            {"Content-Type": "application/json"},
        )
        return result.get("embedding") or []

    def _embed_openai(self, text: str) -> list[float]:
        """Generate embedding using an OpenAI-compatible embeddings API"""
        if not self.api_key:
            raise EmbeddingError("API key is not configured for the openai backend")
        result = self._post(
            "/v1/embeddings",
            {"model": self.model, "input": text},
            {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
        )
        try:
            return result["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise EmbeddingError("Malformed embeddings response") from e

    def _embed_local(self, text: str) -> list[float]:
        """Generate embedding using sentence-transformers"""
        if self._local_model is None:
            self._init_local_model()

        embedding = self._local_model.encode(text, convert_to_numpy=True)
        return embedding.tolist()

    def _init_local_model(self):
        """Initialize local sentence-transformer model"""
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError:
            raise RuntimeError(
                "sentence-transformers not installed. "
                "Run: pip install 'inquiry-faq-clustering[local]'"
            )
        self._local_model = SentenceTransformer(self.local_model_name)
        logger.info(
            "Initialized local embedding model",
            model=self.local_model_name,
            dim=self._local_model.get_sentence_embedding_dimension(),
        )
