from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Embedding:
    vector: list[float]
    token_count: int


class Embedder(Protocol):
    def embed(self, texts: list[str]) -> list[Embedding]:
        ...
