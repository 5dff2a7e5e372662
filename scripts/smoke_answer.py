import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from docqa.core.config import settings
from docqa.core.observability import configure_logging
from docqa.indexing.document_store import SQLDocumentStore
from docqa.ingestion.chunker import CharChunker
from docqa.ingestion.extractor import FileTextExtractor
from docqa.retrieval.retriever import LexicalRetriever
from docqa.generation.openai_client import OpenAILLM
from docqa.generation.answerer import Answerer

load_dotenv()
configure_logging(settings.log_level)

question = " ".join(sys.argv[1:]) or "What does the agreement say about termination?"

retriever = LexicalRetriever(
    repo=SQLDocumentStore(settings.database_url),
    extractor=FileTextExtractor(),
    chunker=CharChunker(settings.chunk_size, settings.chunk_overlap),
)
chunks = retriever.retrieve_chunks(question, doc_limit=settings.default_doc_limit, top_k=settings.default_top_k)

print("RETRIEVED:")
for i, ch in enumerate(chunks, start=1):
    print(i, ch.chunk_id, "score=", round(ch.score, 3), "|", ch.text[:80])

llm = OpenAILLM(api_key=settings.openai_api_key or "", model=settings.llm_model)
result = Answerer(llm, max_citations=settings.max_citations, fallback_on_error=True).answer(question, chunks)

print("\nANSWER:\n", result.answer)
print("CONFIDENCE:", result.confidence)
for c in result.citations:
    print(f"- [{c.doc_name} {c.chunk_id} {c.start_char}-{c.end_char}] {c.quote}")
