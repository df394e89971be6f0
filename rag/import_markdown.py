"""
IMPORT MARKDOWN DOCUMENTATION INTO THE KNOWLEDGE BASE
=====================================================
This script:
1. Reads a markdown file
2. Splits it into sections on ## / ### headers
3. Clears chunks previously imported from the same file (slug prefix)
4. Optionally generates embeddings (--embed), otherwise stores zero vectors
5. Inserts the sections into the document store

Exits with status 1 if anything fails.

Run: python rag/import_markdown.py path/to/file.md [--embed]
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

# Add project root to path for package imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Load .env with explicit path (before config import, for standalone execution)
from dotenv import load_dotenv

load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))

from docs_assistant.api.deps import get_store_gateway  # noqa: E402
from docs_assistant.config import STORE_BACKEND  # noqa: E402
from docs_assistant.utils.ingest import import_markdown_file  # noqa: E402

logger = logging.getLogger("import_markdown")

DEFAULT_FILE = "./premier_league_rankings_knowledge_base_1992_2025.md"


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Import a markdown file into the knowledge base")
    parser.add_argument("file", nargs="?", default=DEFAULT_FILE, help="Markdown file to import")
    parser.add_argument("--embed", action="store_true", help="Generate embeddings (needed for vector retrieval)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if STORE_BACKEND == "memory":
        logger.warning("[IMPORT] STORE_BACKEND=memory: imported chunks are discarded when this script exits")

    try:
        gateway = get_store_gateway()
        imported = import_markdown_file(os.path.abspath(args.file), gateway, embed=args.embed)
        total = gateway.count()
    except Exception:
        logger.exception("[IMPORT] Import failed")
        return 1

    logger.info(f"[IMPORT] Successfully imported {imported} sections. Total chunks in store: {total}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
