"""
Command line entry point: review a design document against a code inventory.

    python run.py design.docx project.axpp -o review.json
"""

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from docx.opc.exceptions import PackageNotFoundError
from jsonschema import ValidationError
from pypdf.errors import PdfReadError

from config import DEFAULTS
from design_ingestor import DesignDocIngestor, UnsupportedDocumentError
from inventory_ingestor import SUPPORTED_SUFFIXES, InventoryIngestor
from models import ImplementationModel, RequirementModel
from reviewer import CodeReviewer, ReviewResult
from schemas import IMPLEMENTATION_MODEL_SCHEMA, REQUIREMENT_MODEL_SCHEMA, load_json_file


def load_requirement_model(path: str) -> RequirementModel:
    """A design document, or a RequirementModel already saved as JSON."""
    if Path(path).suffix.lower() == ".json":
        return RequirementModel.from_dict(load_json_file(path, REQUIREMENT_MODEL_SCHEMA))
    return DesignDocIngestor(DEFAULTS.ingest).parse(path)


def load_implementation_model(path: str) -> ImplementationModel:
    """An .axpp/.xml project export, or an ImplementationModel already saved as JSON."""
    if Path(path).suffix.lower() in SUPPORTED_SUFFIXES:
        return InventoryIngestor(DEFAULTS.inventory).parse(path)
    return ImplementationModel.from_dict(load_json_file(path, IMPLEMENTATION_MODEL_SCHEMA))


def run_review(design_path: str, inventory_path: str, output_path: Optional[str] = None) -> ReviewResult:
    requirements = load_requirement_model(design_path)
    implementation = load_implementation_model(inventory_path)

    result = CodeReviewer(requirements, implementation, DEFAULTS.review).review()
    if output_path:
        result.write_json(output_path)
    return result


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Review an implementation inventory against a design document")
    ap.add_argument("design", help="Design document (DOCX/PDF/TXT/MD) or RequirementModel JSON")
    ap.add_argument("inventory", help=".axpp archive, metadata .xml, or ImplementationModel JSON")
    ap.add_argument("-o", "--output", default="review.json", help="Where to write the JSON report")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log per-item matching decisions")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        result = run_review(args.design, args.inventory, args.output)
    except ValidationError as e:
        raise SystemExit(f"[SchemaError] invalid input model: {e.message}")
    except (UnsupportedDocumentError, FileNotFoundError, json.JSONDecodeError,
            UnicodeDecodeError, PackageNotFoundError, PdfReadError) as e:
        raise SystemExit(f"[InputError] {e}")

    for key, count in result.summary.items():
        print(f"[INFO] {key}: {count}")
    print(f"[INFO] report written to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
