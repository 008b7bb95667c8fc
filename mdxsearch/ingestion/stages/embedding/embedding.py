from __future__ import annotations

from dataclasses import dataclass

from ....libs.interfaces.embedding import Embedder
from ....observability.obs import api as obs


@dataclass(frozen=True)
class EmbeddedSection:
    ordinal: int
    content: str
    embedding: list[float]
    token_count: int


@dataclass
class EmbeddingStage:
    """Embed each section of a page, in order.

    The embedding input has newlines replaced by spaces; the stored
    content keeps the section text as rendered.
    """

    embedder: Embedder
    embedder_id: str = "embedder.unknown"

    def run(self, sections: list[str], *, document: str = "") -> list[EmbeddedSection]:
        out: list[EmbeddedSection] = []
        total_tokens = 0
        for ordinal, section in enumerate(sections):
            embedding_input = embedding_text(section)
            try:
                results = self.embedder.embed([embedding_input])
                if len(results) != 1:
                    raise ValueError("embedder returned mismatched vector count")
            except Exception:
                obs.event(
                    "ingest.section_failed",
                    {"document": document, "ordinal": ordinal, "preview": embedding_input[:40]},
                )
                raise
            result = results[0]
            total_tokens += result.token_count
            out.append(
                EmbeddedSection(
                    ordinal=ordinal,
                    content=section,
                    embedding=result.vector,
                    token_count=result.token_count,
                )
            )

        obs.metric("embedding_tokens", total_tokens, {"embedder_id": self.embedder_id})
        return out


def embedding_text(section: str) -> str:
    return section.replace("\n", " ")
