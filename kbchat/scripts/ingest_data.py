#!/usr/bin/env python3
"""
Data ingestion script for the knowledge-base chatbot.

Loads an already-parsed Q&A file (JSON or CSV) for one tenant, embeds every
question and stores the pairs as a completed corpus document.

Usage:
    python -m kbchat.scripts.ingest_data --tenant <client id> --file faq.json
"""

import csv
import json
import os
from typing import Any, Dict, List

from ..schemas.io_models import IngestionRequest, QAPairIn


def _full_text(pairs: List[QAPairIn]) -> str:
    return "\n\n".join(f"Q: {p.question}\nA: {p.answer}" for p in pairs)


def _pair_from_row(row: Dict[str, Any]) -> QAPairIn:
    confidence = row.get("confidence")
    return QAPairIn(
        question=str(row["question"]).strip(),
        answer=str(row["answer"]).strip(),
        category=str(row.get("category") or "general").strip(),
        confidence=float(confidence) if confidence not in (None, "") else 1.0,
    )


def load_csv_file(filepath: str) -> IngestionRequest:
    """
    Read a CSV with question,answer[,category,confidence] columns.

    Args:
        filepath: Path to the CSV file

    Returns:
        Ingestion request for the file
    """
    pairs = []
    with open(filepath, "r", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            if row.get("question") and row.get("answer"):
                pairs.append(_pair_from_row(row))
    print(f"Parsed {len(pairs)} Q&A pairs from CSV")
    return IngestionRequest(file_name=os.path.basename(filepath), file_type="csv",
                            pairs=pairs, full_text=_full_text(pairs))


def load_json_file(filepath: str) -> IngestionRequest:
    """
    Read either a list of pairs or an object with ``pairs``/``qa_pairs`` and
    an optional ``fullText``.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        data = json.load(f)

    items = data if isinstance(data, list) else data.get("pairs") or data.get("qa_pairs") or []
    pairs = [_pair_from_row(item) for item in items if item.get("question") and item.get("answer")]
    full_text = data.get("fullText") if isinstance(data, dict) else None
    print(f"Parsed {len(pairs)} Q&A pairs from JSON")
    return IngestionRequest(file_name=os.path.basename(filepath), file_type="json",
                            pairs=pairs, full_text=full_text or _full_text(pairs))


def load_file(filepath: str) -> IngestionRequest:
    ext = os.path.splitext(filepath)[1].lower()
    if ext == ".csv":
        return load_csv_file(filepath)
    if ext == ".json":
        return load_json_file(filepath)
    raise ValueError(f"Unsupported file type: {ext} (expected .csv or .json)")


def main():
    """Main function to run the ingestion pipeline."""
    import argparse

    parser = argparse.ArgumentParser(description='Ingest a parsed Q&A file into a client corpus')
    parser.add_argument('--tenant', '-t', required=True,
                        help='Client (tenant) id that owns the corpus')
    parser.add_argument('--file', '-f', required=True,
                        help='CSV or JSON file with question/answer pairs')

    args = parser.parse_args()

    from ..app.gateway import build_gateway
    from ..app.ingestion import IngestionService
    from ..data.corpus_store import CorpusStore

    request = load_file(args.file)
    store = CorpusStore()
    service = IngestionService(build_gateway(), store)
    document_id = service.ingest(args.tenant, request)
    print(f"Document {document_id}: {store.list_documents(args.tenant)[0]['status']}")

if __name__ == '__main__':
    main()
