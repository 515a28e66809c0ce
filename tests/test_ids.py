import hashlib
import json

from pdf_search.index.ids import chunk_id, question_id


def test_chunk_id_is_sha256_of_json_identity():
    expected = hashlib.sha256(json.dumps(["doc.pdf", 3, "Hello."]).encode("utf-8")).hexdigest()
    assert chunk_id("doc.pdf", 3, "Hello.") == expected
    assert len(expected) == 64


def test_chunk_id_is_stable_and_sensitive_to_each_field():
    base = chunk_id("doc.pdf", 1, "Same text.")
    assert base == chunk_id("doc.pdf", 1, "Same text.")
    assert base != chunk_id("other.pdf", 1, "Same text.")
    assert base != chunk_id("doc.pdf", 2, "Same text.")
    assert base != chunk_id("doc.pdf", 1, "Same text!")


def test_field_boundaries_do_not_collide():
    assert chunk_id("a", 1, "bc") != chunk_id("a1", 1, "c")


def test_question_id_shape():
    parent = chunk_id("doc.pdf", 1, "Cats sleep a lot.")
    qid = question_id(parent, "Why do cats sleep?")
    prefix, digest = qid.rsplit("-q-", 1)
    assert prefix == parent
    assert digest == hashlib.sha256("Why do cats sleep?".encode("utf-8")).hexdigest()[:16]
    assert question_id(parent, "Why do cats sleep?") == qid
    assert question_id(parent, "Where do cats sleep?") != qid
