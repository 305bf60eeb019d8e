"""Command-line ingestion of ``.pdf`` / ``.txt`` files.

Usage
-----
    python -m university_rag.ingestion.cli handbook.pdf fees.txt
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from university_rag.config import configure_logging, settings
from university_rag.errors import RagError

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Ingest documents into the vector store")
    parser.add_argument("files", nargs="+", help="Paths to .pdf or .txt files")
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)

    from university_rag.services import build_ingestion_pipeline

    pipeline = build_ingestion_pipeline(settings)
    failures = 0

    for file in args.files:
        path = Path(file).resolve()
        if not path.is_file():
            logger.error("File not found: %s", path)
            failures += 1
            continue
        try:
            report = pipeline.ingest_path(path)
        except RagError as exc:
            logger.error("FAILED %s: %s", path, exc.message)
            failures += 1
            continue
        print(
            f"{path}: {report.chunks_inserted}/{report.total_chunks} chunks stored, "
            f"{report.chunks_skipped} already present"
        )
        for err in report.errors:
            print(f"  chunk {err.chunk}: {err.message}")

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
