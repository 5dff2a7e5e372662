import sys
from pathlib import Path
# Ensure project root is on sys.path so `import docqa` works when running this file directly.
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from docqa.core.config import settings
from docqa.core.errors import AppError
from docqa.core.observability import configure_logging
from docqa.indexing.document_store import SQLDocumentStore
from docqa.ingestion.ingest_pipeline import Ingestor

load_dotenv()
configure_logging(settings.log_level)

if len(sys.argv) < 2:
    print("Usage: python scripts/ingest_docs.py <file> [<file> ...]")
    raise SystemExit(1)

ingestor = Ingestor(store=SQLDocumentStore(settings.database_url))

failed = 0
for path in sys.argv[1:]:
    try:
        doc_id = ingestor.ingest_file(path)
    except AppError as e:
        failed += 1
        print(f"FAILED {path}: {e.message} ({e.code})")
        continue
    print(f"OK {path} -> {doc_id}")

raise SystemExit(1 if failed else 0)
