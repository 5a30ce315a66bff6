"""
Upload a local template document to the configured vector index.

Usage:
    python scripts/upload_templates.py templates.md
    python scripts/upload_templates.py templates.md --dry-run
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from template_indexer.api.dependencies import get_uploader
from template_indexer.templates import count_hyperlinks, extract_hyperlinks, parse_templates


def print_templates(templates):
    for position, template in enumerate(templates, start=1):
        links = extract_hyperlinks(template.raw_content)
        print(f"[{position}] {template.title} "
              f"({len(template.content)} chars, {count_hyperlinks(template.raw_content)} links)")
        for label, url in links:
            print(f"      - {label}: {url}")


async def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("path", type=Path, help="Document containing quoted templates")
    parser.add_argument("--source-name", help="Value stored as source_file (defaults to the file name)")
    parser.add_argument("--dry-run", action="store_true", help="Parse only, do not embed or upload")
    args = parser.parse_args(argv)

    text = args.path.read_text(encoding="utf-8")
    templates = parse_templates(text)
    print(f"Found {len(templates)} templates in {args.path}.")

    if not templates:
        return 1

    if args.dry_run:
        print_templates(templates)
        return 0

    print("Creating embeddings and uploading (this may take time)...")
    uploader = get_uploader()
    summary = await uploader.upload(templates, source_file=args.source_name or args.path.name)

    for result in summary.results:
        print(f"  {result.index:>3}. {result.title} -> {result.id}")
    print(f"Done! Uploaded {summary.uploaded} templates (index total: {summary.total_vectors}).")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
