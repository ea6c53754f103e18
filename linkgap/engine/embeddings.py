"""Embedding retrieval from an Ollama service with a deterministic fallback."""

from __future__ import annotations

import http.client
import json
import logging
import math
import re
import time
import urllib.request
from typing import Callable, List, Optional, Sequence

from .config import EngineConfig
from .errors import MalformedEmbeddingData, ServiceUnavailable
from .session import AnalysisSession
from .text import normalize_whitespace
from .types import Embedding, EmbeddingResult

logger = logging.getLogger(__name__)

METHOD_SERVICE = "ollama"
METHOD_FALLBACK = "fallback"
METHOD_RESTORED = "restored"
FALLBACK_MODEL = "fallback-hash"

_WRAPPER_PREFIX_RE = re.compile(r'^\[?\{?"embedding":\s*"?')
_METADATA_SUFFIX_RE = re.compile(r'"?,?"method".*$', re.DOTALL)
_EMBEDDING_GRAMMAR_RE = re.compile(r"^-?\d+(\.\d+)?(,-?\d+(\.\d+)?)*$")


def _utf16_units(text: str) -> List[int]:
    data = text.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(data[i : i + 2], "little") for i in range(0, len(data), 2)]


def _rolling_hash(units: Sequence[int], seed: int = 0) -> int:
    """Signed 32-bit ``h * 31 + unit`` hash over UTF-16 code units."""

    h = seed
    for unit in units:
        h = (h * 31 + unit) & 0xFFFFFFFF
    return h - 0x100000000 if h >= 0x80000000 else h


def fallback_embedding(text: str, dimensions: int = 768) -> Embedding:
    """Return a deterministic, non-semantic pseudo-embedding for ``text``.

    Component ``i`` hashes the lower-cased, stripped text followed by the
    decimal index and maps the hash through ``sin(h / 1e6) * 0.5``.
    """

    normalized = (text or "").lower().strip()
    prefix = _rolling_hash(_utf16_units(normalized))
    vector: Embedding = []
    for index in range(dimensions):
        h = _rolling_hash(_utf16_units(str(index)), seed=prefix & 0xFFFFFFFF)
        vector.append(round(math.sin(h / 1e6) * 0.5, 6))
    return vector


def repair_embedding(raw: str) -> str:
    """Recover a comma-separated embedding from a nested serialisation.

    Raises ``MalformedEmbeddingData`` when the cleaned value is not a strict
    list of signed decimals.
    """

    original = raw or ""
    text = re.sub(r"\s+", "", original)
    while True:
        stripped = _WRAPPER_PREFIX_RE.sub("", text, count=1)
        if stripped == text:
            break
        text = stripped
    text = _METADATA_SUFFIX_RE.sub("", text)
    text = text.strip("[]{}\"")

    if not _EMBEDDING_GRAMMAR_RE.match(text):
        raise MalformedEmbeddingData(f"Embedding string failed validation: {original[:60]!r}")
    return text


def parse_embedding(raw: str) -> Embedding:
    return [float(value) for value in repair_embedding(raw).split(",")]


def serialize_embedding(vector: Sequence[float]) -> str:
    """Format a vector so that ``repair_embedding`` accepts it unchanged."""

    parts = []
    for value in vector:
        formatted = format(float(value), ".8f").rstrip("0").rstrip(".")
        parts.append("0" if formatted in ("", "-0") else formatted)
    return ",".join(parts)


class OllamaClient:
    """Minimal HTTP client for the Ollama embeddings API."""

    def __init__(
        self,
        config: EngineConfig,
        opener: Optional[Callable] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.config = config
        self._opener = opener or urllib.request.urlopen
        self._sleep = sleep or time.sleep
        self.request_count = 0

    @property
    def endpoint(self) -> str:
        return str(self.config.ollama("endpoint", "http://localhost:11434")).rstrip("/")

    @property
    def model(self) -> str:
        return str(self.config.ollama("model", "nomic-embed-text"))

    def embed(self, text: str) -> Embedding:
        """POST ``text`` to ``/api/embeddings``, retrying with exponential backoff."""

        max_length = int(self.config.ollama("max_content_length", 8192))
        payload = json.dumps({"model": self.model, "prompt": text[:max_length]}).encode("utf-8")
        timeout = float(self.config.ollama("timeout", 30.0))
        retries = max(1, int(self.config.ollama("max_retries", 3)))
        backoff = float(self.config.ollama("backoff_base", 0.5))

        last_error: Exception | None = None
        for attempt in range(retries):
            request = urllib.request.Request(
                f"{self.endpoint}/api/embeddings",
                data=payload,
                headers={"Content-Type": "application/json"},
                method="POST",
            )
            try:
                self.request_count += 1
                with self._opener(request, timeout=timeout) as resp:
                    body = json.loads(resp.read().decode("utf-8"))
                vector = body.get("embedding") if isinstance(body, dict) else None
                if not isinstance(vector, list) or not vector:
                    raise ValueError("response carried no embedding")
                return [float(value) for value in vector]
            except (OSError, ValueError, TypeError, http.client.HTTPException) as exc:
                # URLError, HTTPError and socket timeouts are OSErrors; a non-HTTP peer raises HTTPException
                last_error = exc
                logger.warning(
                    "Embedding request to %s failed (attempt %d/%d): %s",
                    self.endpoint,
                    attempt + 1,
                    retries,
                    exc,
                )
            if attempt < retries - 1:
                self._sleep(backoff * (2**attempt))

        raise ServiceUnavailable(
            f"Embedding service at {self.endpoint} unavailable after {retries} attempts: {last_error}",
            attempts=retries,
        )

    def is_available(self) -> bool:
        """Liveness probe against ``/api/tags``."""

        timeout = float(self.config.ollama("probe_timeout", 5.0))
        try:
            with self._opener(f"{self.endpoint}/api/tags", timeout=timeout) as resp:
                return 200 <= getattr(resp, "status", 200) < 300
        except (OSError, ValueError, http.client.HTTPException) as exc:
            logger.info("Embedding service probe failed: %s", exc)
            return False


class EmbeddingProvider:
    """Session-cached embeddings with fallback substitution and request throttling."""

    def __init__(
        self,
        session: AnalysisSession,
        config: EngineConfig,
        client: Optional[OllamaClient] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.session = session
        self.config = config
        self.client = client if client is not None else OllamaClient(config)
        self._sleep = sleep or time.sleep
        self._requested = False

    @property
    def dimensions(self) -> int:
        return int(self.config.ollama("dimensions", 768))

    def normalize(self, text: str) -> str:
        return normalize_whitespace(text)[: int(self.config.ollama("max_content_length", 8192))]

    def embed(self, text: str) -> EmbeddingResult:
        key = self.normalize(text)
        cached = self.session.embeddings.get(key)
        if cached is not None:
            self.session.stats["cache_hits"] += 1
            return cached
        result = self._compute(key)
        self.session.embeddings[key] = result
        return result

    def embed_many(self, texts: Sequence[str]) -> List[EmbeddingResult]:
        """Embed texts one at a time in groups of ``batch_size``."""

        batch_size = max(1, int(self.config.ollama("batch_size", 20)))
        results: List[EmbeddingResult] = []
        for start in range(0, len(texts), batch_size):
            batch = texts[start : start + batch_size]
            logger.debug("Embedding batch %d (%d texts)", start // batch_size + 1, len(batch))
            results.extend(self.embed(text) for text in batch)
        return results

    def restore(self, raw: str, text: str) -> EmbeddingResult:
        """Reuse a previously serialised embedding for ``text``.

        A string that cannot be repaired is discarded and the fallback
        vector is generated in its place.
        """

        key = self.normalize(text)
        try:
            result = EmbeddingResult(parse_embedding(raw), METHOD_RESTORED)
            self.session.stats["restored"] += 1
        except MalformedEmbeddingData as exc:
            logger.warning("Discarding malformed embedding: %s", exc)
            result = self._fallback(key)
        self.session.embeddings[key] = result
        return result

    def _compute(self, key: str) -> EmbeddingResult:
        if self.session.service_available is False:
            return self._fallback(key)

        if self._requested:
            self._sleep(float(self.config.ollama("rate_limit_delay", 0.15)))
        self._requested = True
        try:
            vector = self.client.embed(key)
        except ServiceUnavailable as exc:
            logger.warning("Using fallback embedding: %s", exc)
            self.session.service_available = False
            return self._fallback(key)

        self.session.service_available = True
        self.session.stats["service_calls"] += 1
        return EmbeddingResult(vector, METHOD_SERVICE)

    def _fallback(self, key: str) -> EmbeddingResult:
        self.session.stats["fallbacks"] += 1
        return EmbeddingResult(fallback_embedding(key, self.dimensions), METHOD_FALLBACK)
