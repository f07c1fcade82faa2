"""
Embedding provider abstraction.

Providers
---------
- local   : sentence-transformers (default all-MiniLM-L6-v2)
            384-dim, runs on CPU, no API key, no rate limits.
- openai  : any OpenAI-compatible POST /embeddings endpoint
            (OpenAI, Ollama /v1, vLLM ...). Uses EMBEDDING_ENDPOINT + EMBEDDING_API_KEY.
- gemini  : google gemini-embedding-001 via google-genai, requires EMBEDDING_API_KEY.

Switch provider via EMBEDDING_PROVIDER in .env, no code changes needed.

Vectors are returned exactly as the provider produced them. Every provider
checks the length against EMBEDDING_DIM, since all three catalog columns are
declared vector(EMBEDDING_DIM).
"""
from __future__ import annotations

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from typing import List, Optional

import httpx

from swiss_travel.core.config import settings
from swiss_travel.core.errors import EmbeddingError

logger = logging.getLogger(__name__)

# Gemini task types; the other providers have no notion of one
TASK_DOCUMENT = "RETRIEVAL_DOCUMENT"
TASK_QUERY = "RETRIEVAL_QUERY"

_MAX_RETRIES = 3
_BASE_DELAY = 1.0


# ── Abstract interface ────────────────────────────────────────────────────────

class EmbeddingProvider(ABC):
    def __init__(self, dim: int) -> None:
        self.dim = dim

    @abstractmethod
    async def _embed(self, text: str, task_type: str) -> List[float]: ...

    async def embed(self, text: str, task_type: str = TASK_QUERY) -> List[float]:
        """
        text → vector of length ``dim``. Raises EmbeddingError on any failure.

        Catalog rows being stored pass TASK_DOCUMENT; search queries keep the default.
        """
        text = text.replace("\n", " ").strip()
        try:
            vector = await self._embed(text, task_type)
        except EmbeddingError:
            raise
        except Exception as exc:
            raise EmbeddingError(f"Embedding failed: {exc}") from exc
        if len(vector) != self.dim:
            raise EmbeddingError(
                f"Embedding has dimension {len(vector)}, expected {self.dim}"
            )
        return [float(x) for x in vector]


# ── Retry helper ──────────────────────────────────────────────────────────────

async def _with_retry(coro_fn, *args, **kwargs):
    last_exc: Exception | None = None
    for attempt in range(_MAX_RETRIES):
        try:
            return await coro_fn(*args, **kwargs)
        except (httpx.TransportError, httpx.HTTPStatusError) as exc:
            last_exc = exc
            delay = _BASE_DELAY * (2 ** attempt)
            logger.warning(
                "Embedding call failed (attempt %d/%d): %s, retrying in %.1fs",
                attempt + 1, _MAX_RETRIES, exc, delay,
            )
            await asyncio.sleep(delay)
    raise last_exc


# ── Local provider (sentence-transformers) ────────────────────────────────────

class LocalEmbeddingProvider(EmbeddingProvider):
    """
    Runs all-MiniLM-L6-v2 (or any sentence-transformers model) locally.

    - Model loaded once, reused for every call
    - encode() is synchronous, wrapped in run_in_executor to avoid
      blocking the async event loop
    """

    def __init__(self, model_name: str, dim: int) -> None:
        super().__init__(dim)
        from sentence_transformers import SentenceTransformer
        logger.info(
            "Loading local embedding model '%s' (a few seconds on first run)",
            model_name,
        )
        self._model = SentenceTransformer(model_name)
        logger.info("Local embedding model loaded. dim=%d", dim)

    async def _embed(self, text: str, task_type: str) -> List[float]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            lambda: self._model.encode(text, show_progress_bar=False).tolist(),
        )


# ── OpenAI-compatible provider (httpx) ────────────────────────────────────────

class OpenAIEmbeddingProvider(EmbeddingProvider):
    def __init__(
        self,
        endpoint: str,
        api_key: str,
        model_name: str,
        dim: int,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(dim)
        self._url = endpoint.rstrip("/") + "/embeddings"
        self._model = model_name
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._transport = transport
        self._timeout = timeout

    async def _call_embed(self, text: str) -> List[float]:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.post(
                self._url,
                json={"model": self._model, "input": text},
                headers=self._headers,
            )
            resp.raise_for_status()
        try:
            return resp.json()["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise EmbeddingError(f"Malformed embedding response: {exc}") from exc

    async def _embed(self, text: str, task_type: str) -> List[float]:
        return await _with_retry(self._call_embed, text)


# ── Gemini provider ───────────────────────────────────────────────────────────

class GeminiEmbeddingProvider(EmbeddingProvider):
    """
    Uses google-genai async client. Requires EMBEDDING_API_KEY.
    output_dimensionality pins the vector length to EMBEDDING_DIM.
    """

    def __init__(self, api_key: str, model_name: str, dim: int) -> None:
        super().__init__(dim)
        from google import genai
        self._client = genai.Client(api_key=api_key)
        self._model = model_name

    async def _embed(self, text: str, task_type: str) -> List[float]:
        from google.genai import types as genai_types
        result = await self._client.aio.models.embed_content(
            model=self._model,
            contents=text,
            config=genai_types.EmbedContentConfig(
                task_type=task_type,
                output_dimensionality=self.dim,
            ),
        )
        return list(result.embeddings[0].values)


# ── Factory ───────────────────────────────────────────────────────────────────

def build_provider() -> EmbeddingProvider:
    name = settings.EMBEDDING_PROVIDER.lower()
    if name == "local":
        return LocalEmbeddingProvider(settings.EMBEDDING_MODEL, settings.EMBEDDING_DIM)
    if name == "openai":
        return OpenAIEmbeddingProvider(
            settings.EMBEDDING_ENDPOINT,
            settings.EMBEDDING_API_KEY,
            settings.EMBEDDING_MODEL,
            settings.EMBEDDING_DIM,
        )
    if name == "gemini":
        return GeminiEmbeddingProvider(
            settings.EMBEDDING_API_KEY,
            settings.EMBEDDING_MODEL,
            settings.EMBEDDING_DIM,
        )
    raise ValueError(
        f"Unknown EMBEDDING_PROVIDER='{name}'. "
        "Set EMBEDDING_PROVIDER=local, openai or gemini in .env"
    )


# Built once, on first use, so importing this module never loads a model.
# Sync FastAPI dependencies call the getter from threadpool workers, hence the lock.
_provider: Optional[EmbeddingProvider] = None
_provider_lock = threading.Lock()


def get_embedding_provider() -> EmbeddingProvider:
    global _provider
    if _provider is None:
        with _provider_lock:
            if _provider is None:
                _provider = build_provider()
    return _provider


async def load_embedding_provider() -> EmbeddingProvider:
    """
    Awaitable form of get_embedding_provider(). The first call may load or
    download a model, so it runs in the default executor and the event loop
    keeps serving meanwhile.
    """
    if _provider is not None:
        return _provider
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, get_embedding_provider)
