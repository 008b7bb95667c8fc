from __future__ import annotations

import hashlib
from dataclasses import dataclass

from ...interfaces.embedding import Embedding


@dataclass
class FakeEmbedder:
    """Deterministic embedder for tests and local runs.

    Vectors are derived from the SHA-256 of the text; the token count is the
    number of whitespace-separated words.
    """

    dim: int = 8

    def embed(self, texts: list[str]) -> list[Embedding]:
        if self.dim <= 0:
            raise ValueError("dim must be positive")
        return [Embedding(vector=self._vector(t), token_count=len(t.split())) for t in texts]

    def _vector(self, text: str) -> list[float]:
        buf = hashlib.sha256(text.encode("utf-8")).digest()
        while len(buf) < self.dim * 4:
            buf += hashlib.sha256(buf).digest()

        vec: list[float] = []
        for i in range(self.dim):
            val = int.from_bytes(buf[i * 4 : (i + 1) * 4], "big", signed=False)
            vec.append((val % 1_000_000) / 1_000_000.0)
        return vec
