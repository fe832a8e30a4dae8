"""Run figure extraction over every report in a local folder.

For each project found in the folder, the authoritative file (JSON >
spreadsheet > PDF) is extracted and a summary is written as JSON: records,
error annotations and how many slots were resolved.  Useful for checking a
batch of new reports before they go into the Drive knowledge base.

Usage:
    python scripts/extract_folder.py reports/
    python scripts/extract_folder.py reports/ --all-files --output data/extraction_summary.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from tqdm import tqdm

# Ensure project root is importable
ROOT = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(ROOT / "src"))

from finreport_rag.drive.projects import file_format, group_projects  # pylint: disable=wrong-import-position
from finreport_rag.drive.store import DriveFile, LocalFolderStore  # pylint: disable=wrong-import-position
from finreport_rag.ingestion.pipeline import extract_report  # pylint: disable=wrong-import-position

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = ROOT / "data" / "extraction_summary.json"


def summarize_file(store: LocalFolderStore, file: DriveFile) -> dict:
    """Extract one file and return a JSON-serialisable summary."""
    data = store.download_file(file.id, file.mime_type, file.name)
    if data is None:
        return {"file": file.name, "records": [], "errors": ["download failed or unsupported type"]}
    fmt = file_format(file)
    result = extract_report(data, fmt if fmt is not None else file.mime_type, file.name)
    return {
        "file": file.name,
        "format": fmt.value if fmt is not None else None,
        "records": [r.model_dump(mode="json") for r in result.records],
        "resolved_slots": sum(r.resolved_count for r in result.records),
        "errors": result.errors,
        "table_candidates": len(result.tables),
    }


def run(folder: Path, all_files: bool = False) -> list[dict]:
    """Summarize the authoritative file of each project (or every readable file)."""
    store = LocalFolderStore(folder)
    projects = group_projects(store.list_files())
    logger.info("Found %d project(s) in %s", len(projects), folder)

    summaries: list[dict] = []
    for project in tqdm(projects, desc="Extracting"):
        if all_files:
            files = [f for f in project.files if file_format(f) is not None]
        else:
            source = project.authoritative_file()
            files = [source] if source is not None else []
        if not files:
            logger.warning("No readable file for project %s", project.display_name)
        for file in files:
            summary = summarize_file(store, file)
            summary["project"] = project.display_name
            summaries.append(summary)
            if summary["errors"]:
                logger.warning("%s: %s", file.name, "; ".join(summary["errors"]))
    return summaries


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    parser = argparse.ArgumentParser(description="Extract figures from every report in a folder")
    parser.add_argument("folder", type=Path)
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT)
    parser.add_argument("--all-files", action="store_true", help="Extract every readable file, not only the authoritative one")
    args = parser.parse_args()

    results = run(args.folder, all_files=args.all_files)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(json.dumps(results, indent=2), encoding="utf-8")
    logger.info("Wrote %d summaries to %s", len(results), args.output)
