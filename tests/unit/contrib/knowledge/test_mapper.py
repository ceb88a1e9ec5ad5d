import pytest

from django_ai_knowledge.contrib.knowledge.mapper import DocumentMapper
from django_ai_knowledge.contrib.knowledge.schema import Document, FieldValue
from django_ai_knowledge.exceptions import MalformedInputError


def test_key_combines_knowledge_base_and_document_id():
    mapper = DocumentMapper("handbook.md")
    record = mapper.map(Document(id="doc_1", content="Text"), "uploads/a/handbook.md")

    assert record.key == "handbook.md:doc_1"


def test_content_is_embedded_into_vector_field():
    record = DocumentMapper("kb").map(Document(id="1", content="Some text"), "src")

    assert record.fields["content"] == FieldValue(value="Some text", embed_key="vector")
    assert record.embed_fields() == {"content": record.fields["content"]}


def test_source_label_stored_verbatim_as_plain_metadata():
    label = "uploads/alice/My Notes (final).txt"
    record = DocumentMapper("kb").map(Document(id="1", content="Text"), label)

    assert record.fields["metadata"] == FieldValue(value=label)
    assert record.fields["metadata"].embed_key is None


def test_source_label_falls_back_to_document_metadata():
    document = Document(id="1", content="Text", metadata={"source": "notes.txt"})
    record = DocumentMapper("kb")(document)

    assert record.plain_fields() == {"content": "Text", "metadata": "notes.txt"}


def test_missing_source_is_empty_string():
    record = DocumentMapper("kb").map(Document(id="1", content="Text"))
    assert record.fields["metadata"].value == ""


def test_custom_vector_field():
    mapper = DocumentMapper("kb", vector_field="embedding")
    record = mapper.map(Document(id="1", content="Text"), "")
    assert record.fields["content"].embed_key == "embedding"


@pytest.mark.parametrize(
    "document",
    [Document(id="", content="Text"), Document(id="1", content=None)],
)
def test_malformed_documents_rejected(document):
    with pytest.raises(MalformedInputError):
        DocumentMapper("kb").map(document, "src")


def test_with_vectors_keeps_key_and_fields():
    record = DocumentMapper("kb").map(Document(id="1", content="Text"), "src")
    embedded = record.with_vectors({"vector": [0.1, 0.2, 0.3]})

    assert embedded.key == record.key
    assert embedded.fields == record.fields
    assert embedded.vectors == {"vector": [0.1, 0.2, 0.3]}
