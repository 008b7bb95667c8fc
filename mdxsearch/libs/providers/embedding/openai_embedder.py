from __future__ import annotations

import json
import os
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any

from ....ingestion.errors import EmbeddingProviderError
from ...interfaces.embedding import Embedding


@dataclass
class OpenAIEmbedder:
    """Embeddings over the OpenAI-compatible `/embeddings` HTTP endpoint.

    One request per text, so every section gets its own token count from
    the response's `usage.total_tokens`.
    """

    model: str = "text-embedding-ada-002"
    base_url: str = "https://api.openai.com/v1"
    api_key_env: str = "OPENAI_KEY"
    timeout: float = 30.0

    def embed(self, texts: list[str]) -> list[Embedding]:
        api_key = os.environ.get(self.api_key_env, "")
        if not api_key:
            raise EmbeddingProviderError(f"missing API key: set ${self.api_key_env}")
        return [self._embed_one(t, api_key) for t in texts]

    def _embed_one(self, text: str, api_key: str) -> Embedding:
        body = json.dumps({"model": self.model, "input": text}).encode("utf-8")
        req = urllib.request.Request(
            self.base_url.rstrip("/") + "/embeddings",
            data=body,
            method="POST",
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "User-Agent": "mdxsearch/embedder",
            },
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as r:
                status = r.status
                raw = r.read()
        except urllib.error.HTTPError as e:
            detail = e.read().decode("utf-8", errors="replace")[:500]
            raise EmbeddingProviderError(f"embedding request failed: HTTP {e.code}: {detail}") from e
        except urllib.error.URLError as e:
            raise EmbeddingProviderError(f"embedding request failed: {e.reason}") from e

        if status != 200:
            raise EmbeddingProviderError(f"embedding request failed: HTTP {status}")
        return _parse_response(raw)


def _parse_response(raw: bytes) -> Embedding:
    try:
        payload: Any = json.loads(raw.decode("utf-8"))
        vector = payload["data"][0]["embedding"]
        tokens = payload.get("usage", {}).get("total_tokens", 0)
    except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
        raise EmbeddingProviderError(f"malformed embedding response: {e}") from e

    if not isinstance(vector, list) or not all(isinstance(v, (int, float)) for v in vector):
        raise EmbeddingProviderError("malformed embedding response: vector is not a list of numbers")
    return Embedding(vector=[float(v) for v in vector], token_count=int(tokens or 0))
