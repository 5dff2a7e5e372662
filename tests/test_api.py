import json
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from conftest import FakeExtractor, make_doc

from docqa.api.main import app
from docqa.api.routes_ask import get_answerer_factory, get_retriever, get_store
from docqa.core.errors import GenerationError
from docqa.generation.answerer import INSUFFICIENT_EVIDENCE, Answerer
from docqa.indexing.document_store import InMemoryDocumentStore
from docqa.retrieval.retriever import LexicalRetriever


class FakeLLM:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error

    def generate(self, system_prompt, user_prompt):
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


@pytest.fixture
def store():
    return InMemoryDocumentStore(
        [
            make_doc("d1", "The termination notice period is thirty days.", name="contract.txt", minutes=1),
            make_doc("d2", "Holiday schedule for the office.", name="holidays.txt", minutes=2),
        ]
    )


@pytest.fixture
def client(store):
    llm = FakeLLM(
        text=json.dumps(
            {
                "answer": "Thirty days.",
                "citations": [
                    {"chunkId": "d1_chunk_0", "docId": "d1", "startChar": 4, "endChar": 30},
                    {"chunkId": "made_up", "docId": "nope"},
                ],
                "confidence": "high",
            }
        )
    )
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_retriever] = lambda: LexicalRetriever(store, FakeExtractor())
    app.dependency_overrides[get_answerer_factory] = lambda: (lambda: Answerer(llm))
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_ask_returns_validated_citations(client):
    r = client.post("/ask", json={"question": "What is the termination notice?", "top_k": 99, "doc_limit": 0})
    assert r.status_code == 200
    body = r.json()
    assert body["answer"] == "Thirty days."
    assert body["confidence"] == "high"
    assert body["retrieval"] == {"doc_limit": 1, "top_k": 10}
    assert [c["chunk_id"] for c in body["based_on_docs"]] == ["d1_chunk_0"]
    cit = body["based_on_docs"][0]
    assert (cit["start_char"], cit["end_char"]) == (4, 30)
    assert cit["doc_name"] == "contract.txt"
    assert "X-Request-ID" in r.headers


def test_blank_question_is_bad_request(client):
    r = client.post("/ask", json={"question": "   "})
    assert r.status_code == 400
    assert r.json() == {"error": {"message": "Missing question", "code": "BAD_REQUEST"}}


def test_unknown_doc_id_is_insufficient_evidence(client):
    r = client.post("/ask", json={"question": "termination?", "doc_id": "missing", "debug": True})
    assert r.status_code == 200
    body = r.json()
    assert body["answer"] == INSUFFICIENT_EVIDENCE
    assert body["based_on_docs"] == []
    assert body["debug"]["retrieved"] == []


def test_generator_failure_is_bad_gateway(store):
    app.dependency_overrides[get_retriever] = lambda: LexicalRetriever(store, FakeExtractor())
    app.dependency_overrides[get_answerer_factory] = lambda: (lambda: Answerer(FakeLLM(error=GenerationError("down"))))
    try:
        r = TestClient(app).post("/ask", json={"question": "termination notice"})
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 502
    assert r.json()["error"]["code"] == "LLM_ERROR"


def test_search_lists_matching_documents(client):
    r = client.get("/search", params={"q": "holiday"})
    assert r.status_code == 200
    assert [h["id"] for h in r.json()["results"]] == ["d2"]
