import pytest

from docqa.core.types import Chunk
from docqa.generation.citation_guard import (
    build_citations,
    find_matching_chunk,
    sanitize_quote,
    validate_citation,
)


def _sliceable():
    return Chunk(
        chunk_id="docA_chunk_1",
        doc_id="docA",
        doc_name="a.txt",
        text="0123456789abcdefghijklmnopqrst",
        start_char=100,
        end_char=130,
    )


def test_uses_valid_claimed_citation(retrieved_chunks):
    claims = [
        {
            "chunkId": "doc123_chunk_0",
            "docId": "doc123",
            "docName": "policy.pdf",
            "startChar": 120,
            "endChar": 180,
            "quote": "Q" * 500,
        }
    ]
    out = build_citations(claims, retrieved_chunks, max_citations=3)
    assert len(out) == 1
    c = out[0]
    assert (c.chunk_id, c.doc_id, c.doc_name) == ("doc123_chunk_0", "doc123", "policy.pdf")
    assert (c.start_char, c.end_char) == (120, 180)
    assert len(c.quote) <= 200
    assert "\n" not in c.quote and "\t" not in c.quote


def test_hallucinated_claim_falls_back_to_retrieval(retrieved_chunks):
    claims = [{"chunkId": "fake_chunk", "docId": "fake_doc", "startChar": 0, "endChar": 10, "quote": "fake"}]
    out = build_citations(claims, retrieved_chunks, max_citations=3)
    assert [c.chunk_id for c in out] == [c.chunk_id for c in retrieved_chunks]
    assert all(c.quote != "fake" for c in out)


def test_hallucinated_claims_from_an_iterator_fall_back(retrieved_chunks):
    claims = iter([{"chunkId": "fake_chunk"}, {"chunkId": "other_fake"}])
    out = build_citations(claims, retrieved_chunks, max_citations=3)
    assert [c.chunk_id for c in out] == [c.chunk_id for c in retrieved_chunks]


def test_valid_claims_from_a_generator_are_kept(retrieved_chunks):
    claims = (c for c in [{"chunkId": "doc123_chunk_0", "quote": "From the policy"}])
    out = build_citations(claims, retrieved_chunks, max_citations=3)
    assert [c.chunk_id for c in out] == ["doc123_chunk_0"]


def test_missing_claims_fall_back_to_top_retrieved(retrieved_chunks):
    out = build_citations(None, retrieved_chunks, max_citations=2)
    assert [c.chunk_id for c in out] == ["doc123_chunk_0", "doc999_chunk_1"]
    assert out[0].quote.startswith("Line1 Line2 Line3 ")
    assert len(out[0].quote) <= 200
    assert (out[0].start_char, out[0].end_char) == (100, 300)


def test_empty_claims_fall_back(retrieved_chunks):
    assert [c.chunk_id for c in build_citations([], retrieved_chunks, 1)] == ["doc123_chunk_0"]


def test_every_citation_references_a_retrieved_chunk(retrieved_chunks):
    claims = [
        {"chunkId": "doc999_chunk_1"},
        {"chunkId": "ghost"},
        {"docId": "doc777", "startChar": 10, "endChar": 20},
        {"docId": "doc777", "startChar": 150, "endChar": 250},
    ]
    out = build_citations(claims, retrieved_chunks, max_citations=10)
    ids = {c.chunk_id for c in retrieved_chunks}
    assert [c.chunk_id for c in out] == ["doc999_chunk_1", "doc777_chunk_0"]
    assert all(c.chunk_id in ids for c in out)


def test_range_containment_match():
    ch = _sliceable()
    assert find_matching_chunk({"docId": "docA", "startChar": 105, "endChar": 125}, [ch]) is ch
    assert find_matching_chunk({"docId": "docA", "startChar": 95, "endChar": 125}, [ch]) is None
    assert find_matching_chunk({"docId": "docB", "startChar": 105, "endChar": 125}, [ch]) is None
    assert find_matching_chunk({"docId": "docA"}, [ch]) is None


def test_range_match_without_chunk_id_after_unknown_chunk_id():
    ch = _sliceable()
    claim = {"chunkId": "invented", "docId": "docA", "startChar": 105, "endChar": 110}
    assert find_matching_chunk(claim, [ch]) is ch


def test_boolean_offsets_are_not_numbers():
    ch = _sliceable()
    assert find_matching_chunk({"docId": "docA", "startChar": True, "endChar": True}, [ch]) is None


def test_quote_is_sliced_from_chunk_at_clamped_offsets():
    v = validate_citation({"docId": "docA", "startChar": 110, "endChar": 120}, [_sliceable()])
    assert v.quote == "abcdefghij"
    assert (v.start_char, v.end_char) == (110, 120)


def test_range_is_clamped_to_matched_chunk():
    v = validate_citation({"chunkId": "docA_chunk_1", "startChar": 50, "endChar": 500}, [_sliceable()])
    assert (v.start_char, v.end_char) == (100, 130)
    assert v.quote == "0123456789abcdefghijklmnopqrst"


def test_inverted_range_never_ends_before_start():
    v = validate_citation({"chunkId": "docA_chunk_1", "startChar": 125, "endChar": 105}, [_sliceable()])
    assert v.start_char == 125
    assert v.end_char == 125
    # empty slice: fall back to the chunk preview
    assert v.quote == "0123456789abcdefghijklmnopqrst"


def test_claim_quote_is_sanitized():
    v = validate_citation({"chunkId": "docA_chunk_1", "quote": "  some\n\tquoted   text "}, [_sliceable()])
    assert v.quote == "some quoted text"
    assert (v.start_char, v.end_char) == (100, 130)


def test_snake_case_claims_are_accepted():
    v = validate_citation({"chunk_id": "docA_chunk_1", "start_char": 101, "end_char": 103}, [_sliceable()])
    assert v.chunk_id == "docA_chunk_1"
    assert v.quote == "12"


@pytest.mark.parametrize("claim", [None, "docA_chunk_1", 42, ["docA_chunk_1"]])
def test_non_mapping_claims_are_discarded(claim):
    assert validate_citation(claim, [_sliceable()]) is None


def test_dedupes_by_chunk_id_and_respects_limit_in_generator_order(retrieved_chunks):
    claims = [
        {"chunkId": "doc777_chunk_0", "quote": "first"},
        {"chunkId": "doc777_chunk_0", "quote": "second"},
        {"chunkId": "doc123_chunk_0"},
        {"chunkId": "doc999_chunk_1"},
    ]
    out = build_citations(claims, retrieved_chunks, max_citations=2)
    assert [c.chunk_id for c in out] == ["doc777_chunk_0", "doc123_chunk_0"]
    assert out[0].quote == "first"


def test_max_citations_is_clamped(retrieved_chunks):
    assert build_citations(None, retrieved_chunks, max_citations=0) == []
    assert len(build_citations(None, retrieved_chunks, max_citations=50)) == 3
    assert len(build_citations(None, retrieved_chunks, max_citations="junk")) == 3


def test_no_retrieved_chunks_gives_no_citations():
    assert build_citations([{"chunkId": "x"}], [], 3) == []
    assert build_citations(None, None, 3) == []


def test_never_raises_on_bad_input(retrieved_chunks):
    assert build_citations([{"chunkId": "doc123_chunk_0"}], [object()], 3) == []


def test_sanitize_quote():
    s = sanitize_quote("  hello\nworld\t\t" + "x" * 300 + "   ")
    assert "\n" not in s and "\t" not in s
    assert s.startswith("hello world")
    assert len(s) == 200


def test_sanitize_quote_non_string():
    assert sanitize_quote(None) == ""
    assert sanitize_quote(12) == ""
