from typing import Sequence

from django_ai_knowledge.llm import Prompt

from .schema import RetrievedDocument

RAG_PROMPT = Prompt(
    "Answer the user's question using only the reference documents below. "
    "If the documents do not contain the information needed, say that you "
    "could not find it in the documents.\n"
    "\n"
    "Reference documents:\n"
    "{context}\n"
    "\n"
    "User question: {query}\n"
    "\n"
    "Please provide an accurate and complete answer:"
)


def format_context(documents: Sequence[RetrievedDocument]) -> str:
    return "".join(
        f"[Document {number}]: {document.content}\n\n"
        for number, document in enumerate(documents, start=1)
    )


def build_prompt(query: str, documents: Sequence[RetrievedDocument]) -> str:
    """Build a retrieval-augmented prompt. Without documents the query is
    returned as-is."""
    if not documents:
        return query

    return RAG_PROMPT.render(context=format_context(documents), query=query)
