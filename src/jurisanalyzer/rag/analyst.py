"""Query collaborator — questions over the stored decisions.

The store only guarantees well-formed LegalRecords; this module turns them
into a plain context block, appends the running conversation, and asks the
configured model. Each record's full text is cut to ``max_context_chars``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from jurisanalyzer.db.models import LegalRecord
from jurisanalyzer.rag.llm_client import complete

_SYSTEM_PROMPT = (
    "You are a legal research assistant specialised in Portuguese case law. "
    "Answer in European Portuguese using only the decisions in the context. "
    "Cite decisions as '<processo> de <data>' with their URL as a Markdown link, "
    "and say so clearly when the context does not contain the answer."
)

NO_ANSWER = "Não foi possível gerar uma resposta."


@dataclass
class ChatMessage:
    role: str  # "user" | "assistant"
    content: str


def build_context(records: Sequence[LegalRecord], max_chars: int = 15_000) -> str:
    """Render *records* as one context block, full text truncated per record."""
    blocks = []
    for r in records:
        blocks.append(
            "DOCUMENTO:\n"
            f"ECLI: {r.ecli}\n"
            f"Processo: {r.processo}\n"
            f"Data: {r.data}\n"
            f"Relator: {r.relator}\n"
            f"Descritores: {', '.join(r.descritores)}\n"
            f"URL: {r.url}\n"
            f"SUMÁRIO: {r.sumario}\n"
            f"TEXTO INTEGRAL: {r.texto_integral[:max_chars]}\n"
            "---"
        )
    return "\n\n".join(blocks)


def build_messages(
    question: str,
    history: Sequence[ChatMessage],
    records: Sequence[LegalRecord],
    max_chars: int = 15_000,
) -> list[dict]:
    """Return the OpenAI-style message list sent to the model."""
    messages: list[dict] = [{"role": "system", "content": _SYSTEM_PROMPT}]
    for msg in history:
        role = "user" if msg.role == "user" else "assistant"
        messages.append({"role": role, "content": msg.content})
    context = build_context(records, max_chars)
    messages.append(
        {
            "role": "user",
            "content": f"CONTEXTO DE JURISPRUDÊNCIA:\n{context}\n\nPERGUNTA: {question}",
        }
    )
    return messages


def analyze(
    question: str,
    history: Sequence[ChatMessage],
    records: Sequence[LegalRecord],
    model: str,
    *,
    temperature: float = 0.1,
    max_context_chars: int = 15_000,
) -> str:
    """Ask *model* about *records*; returns the answer text."""
    messages = build_messages(question, history, records, max_context_chars)
    answer = complete(model, messages, temperature=temperature)
    return answer or NO_ANSWER
