from django_ai_knowledge.exceptions import MalformedInputError

from .schema import (
    CONTENT_FIELD,
    METADATA_FIELD,
    VECTOR_FIELD,
    Document,
    FieldValue,
    IndexRecord,
)


class DocumentMapper:
    """Maps Documents to the IndexRecords stored for a knowledge base."""

    def __init__(self, knowledge_base: str, *, vector_field: str = VECTOR_FIELD):
        self.knowledge_base = knowledge_base
        self.vector_field = vector_field

    def get_key(self, document: Document) -> str:
        return f"{self.knowledge_base}:{document.id}"

    def map(self, document: Document, source_label: str | None = None) -> IndexRecord:
        """Build the IndexRecord for a document.

        The content is marked for embedding into ``vector_field``; the source
        label is stored alongside it as plain text. Without an explicit label
        the document's ``source`` metadata is used.
        """
        if not document.id:
            raise MalformedInputError("Document id is required")
        if document.content is None:
            raise MalformedInputError(f"Document {document.id} has no content")

        if source_label is None:
            source = document.metadata.get("source", "")
            source_label = source if isinstance(source, str) else ""

        return IndexRecord(
            key=self.get_key(document),
            fields={
                CONTENT_FIELD: FieldValue(
                    value=document.content, embed_key=self.vector_field
                ),
                METADATA_FIELD: FieldValue(value=source_label),
            },
        )

    __call__ = map
