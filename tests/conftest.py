from typing import List, Optional

import pytest

from pdf_search.embeddings import HashingEmbedder
from pdf_search.errors import ConflictError, NotFoundError, StoreError
from pdf_search.store.memory import InMemoryStore


def _pdf_escape(s: str) -> str:
    return s.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def make_pdf(pages: List[str]) -> bytes:
    """Minimal valid PDF, one Helvetica text line per page ("" gives a blank page)."""
    objects: List[bytes] = []
    n = len(pages)
    kids = " ".join(f"{4 + 2 * i} 0 R" for i in range(n))
    objects.append(b"<< /Type /Catalog /Pages 2 0 R >>")
    objects.append(f"<< /Type /Pages /Kids [{kids}] /Count {n} >>".encode())
    objects.append(b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>")
    for i, text in enumerate(pages):
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {5 + 2 * i} 0 R >>"
            ).encode()
        )
        stream = f"BT /F1 12 Tf 72 720 Td ({_pdf_escape(text)}) Tj ET".encode("latin-1") if text else b""
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for num, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % num + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for off in offsets:
        out += b"%010d 00000 n \n" % off
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    return bytes(out)


class CountingStore(InMemoryStore):
    """InMemoryStore that records every call as (method, first_arg)."""

    def __init__(self):
        super().__init__()
        self.calls: List[tuple] = []

    def create(self, name):
        self.calls.append(("create", name))
        return super().create(name)

    def get_by_name(self, name):
        self.calls.append(("get_by_name", name))
        return super().get_by_name(name)

    def list(self, name=None):
        self.calls.append(("list", name))
        return super().list(name)

    def add(self, collection_id, ids, embeddings, documents, metadatas):
        self.calls.append(("add", collection_id))
        return super().add(collection_id, ids, embeddings, documents, metadatas)

    def query(self, collection_id, vector, top_k):
        self.calls.append(("query", collection_id))
        return super().query(collection_id, vector, top_k)


class ScriptedStore:
    """
    Store double whose lookup endpoints can be scripted to misbehave, the way
    different Chroma releases do.
    """

    def __init__(
        self,
        create: Optional[Exception | str] = None,
        get: Optional[Exception | str] = None,
        filtered: Optional[Exception | list] = None,
        full: Optional[Exception | list] = None,
    ):
        self.script = {"create": create, "get": get, "filtered": filtered, "full": full}
        self.calls: List[tuple] = []
        self.added: List[dict] = []
        self.query_response: dict = {}

    def _play(self, key, default):
        val = self.script[key]
        if isinstance(val, Exception):
            raise val
        return default if val is None else val

    def create(self, name):
        self.calls.append(("create", name))
        return self._play("create", f"new-{name}")

    def get_by_name(self, name):
        self.calls.append(("get_by_name", name))
        cid = self._play("get", None)
        if cid is None:
            raise NotFoundError(f"{name} does not exist", status=404)
        return cid

    def list(self, name=None):
        self.calls.append(("list", name))
        return self._play("filtered" if name else "full", [])

    def add(self, collection_id, ids, embeddings, documents, metadatas):
        self.calls.append(("add", collection_id))
        self.added.append(
            {"collection_id": collection_id, "ids": list(ids), "documents": list(documents),
             "metadatas": list(metadatas), "embeddings": list(embeddings)}
        )
        return True  # bare boolean ack, like Chroma's /add

    def query(self, collection_id, vector, top_k):
        self.calls.append(("query", collection_id))
        return self.query_response


@pytest.fixture
def conflict():
    return ConflictError("collection already exists", status=409)


@pytest.fixture
def transport_error():
    return StoreError("connection refused")


@pytest.fixture
def embedder():
    return HashingEmbedder(dim=256)


@pytest.fixture
def counting_store():
    return CountingStore()


@pytest.fixture
def pdf_bytes():
    return make_pdf


@pytest.fixture
def scripted():
    return ScriptedStore
