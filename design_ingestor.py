# design_ingestor.py
"""
Design Document Ingestor

Reads a functional design document (DOCX, PDF, TXT or MD) and extracts the
RequirementModel the reviewer works from: required entities, functions,
extensions and free-text requirements.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from docx import Document
from docx.table import Table
from docx.text.paragraph import Paragraph
from pypdf import PdfReader

from config import DEFAULTS, IngestConfig
from models import RequiredEntity, RequiredExtension, RequiredFunction, RequirementModel
from utils import collapse_whitespace, unique_in_order

logger = logging.getLogger(__name__)

GENERAL_SECTION = "general"


class UnsupportedDocumentError(ValueError):
    """The design document has a file type we cannot read."""


class DesignDocIngestor:
    """Parses a design document into a RequirementModel."""

    def __init__(self, cfg: Optional[IngestConfig] = None):
        self.cfg = cfg or DEFAULTS.ingest
        self.content: str = ""
        self.sections: Dict[str, str] = {}
        self.heading_patterns = self._build_heading_patterns()

    # ---------- Public API ----------

    def parse(self, path: str) -> RequirementModel:
        """Read the document at ``path`` and extract its requirement model."""
        suffix = Path(path).suffix.lower()
        if suffix == ".docx":
            text = self._read_docx(path)
        elif suffix == ".pdf":
            text = self._read_pdf(path)
        elif suffix in (".txt", ".md"):
            text = Path(path).read_text(encoding="utf-8")
        else:
            raise UnsupportedDocumentError(f"Unsupported design document format: {suffix or path}")
        logger.info("read %d characters from %s", len(text), path)
        return self.parse_text(text)

    def parse_text(self, text: str) -> RequirementModel:
        """Extract a requirement model from already-extracted document text."""
        self.content = text
        self.sections = self._split_sections(text)

        requirements: List[str] = []
        functions: List[RequiredFunction] = []
        entities: List[RequiredEntity] = []
        extensions: List[RequiredExtension] = []

        for section_type, body in self.sections.items():
            if section_type in ("requirements", GENERAL_SECTION):
                requirements.extend(self._extract_requirements(body))
            elif section_type == "functions":
                functions.extend(self._extract_functions(body))
            elif section_type == "entities":
                entities.extend(self._extract_entities(body))
            elif section_type == "extensions":
                extensions.extend(self._extract_extensions(body))

        requirements = unique_in_order(requirements)
        if len(requirements) < self.cfg.implied_requirement_floor:
            requirements.extend(r for r in self._implied_requirements(text) if r not in requirements)

        model = RequirementModel(
            entities=tuple(entities),
            functions=tuple(functions),
            extensions=tuple(extensions),
            requirements=tuple(requirements),
        )
        logger.info(
            "extracted %d entities, %d functions, %d extensions, %d requirements",
            len(model.entities), len(model.functions), len(model.extensions), len(model.requirements),
        )
        return model

    def search_keyword(self, keyword: str) -> List[str]:
        """Return the distinct ~200 character contexts around each hit of ``keyword``."""
        if not keyword or len(keyword) < 3:
            return []
        pattern = re.compile(r".{0,100}" + re.escape(keyword) + r".{0,100}", re.IGNORECASE | re.DOTALL)
        contexts = (collapse_whitespace(m.group(0)) for m in pattern.finditer(self.content))
        return unique_in_order(contexts)

    # ---------- Document readers ----------

    def _read_docx(self, path: str) -> str:
        doc = Document(path)
        lines: List[str] = []
        for element in doc.element.body:
            if element.tag.endswith("}p"):
                lines.append(Paragraph(element, doc).text)
            elif element.tag.endswith("}tbl"):
                for row in Table(element, doc).rows:
                    lines.append("".join(f"{cell.text} | " for cell in row.cells))
                lines.append("")
        return "\n".join(lines)

    def _read_pdf(self, path: str) -> str:
        reader = PdfReader(path)
        return "\n".join((page.extract_text() or "") for page in reader.pages)

    # ---------- Internal methods ----------

    def _build_heading_patterns(self):
        return {
            section_type: [
                re.compile(rf"^{re.escape(name)}(?:\s+|:|$)", re.IGNORECASE)
                for name in names
            ]
            for section_type, names in self.cfg.section_headings.items()
        }

    def _split_sections(self, text: str) -> Dict[str, str]:
        """Bucket lines under the most recent recognised heading."""
        buckets: Dict[str, List[str]] = {GENERAL_SECTION: []}
        current = GENERAL_SECTION
        for line in text.splitlines():
            for section_type, patterns in self.heading_patterns.items():
                if any(p.match(line) for p in patterns):
                    current = section_type
                    buckets.setdefault(current, [])
                    break
            buckets[current].append(line)
        return {k: "\n".join(v) + "\n" for k, v in buckets.items()}

    def _extract_requirements(self, body: str) -> List[str]:
        found: List[str] = []
        for pattern in self.cfg.requirement_patterns:
            for m in re.finditer(pattern, body, re.IGNORECASE | re.MULTILINE):
                req = (m.group(1) if m.groups() else m.group(0)).strip()
                if len(req) > self.cfg.min_requirement_length:
                    found.append(req)
        return found

    def _extract_functions(self, body: str) -> List[RequiredFunction]:
        out = []
        for m in re.finditer(self.cfg.function_regex, body, re.IGNORECASE | re.MULTILINE):
            name = m.group(1).strip()
            out.append(RequiredFunction(name, m.group(2).strip(), self._find_description_near(body, name)))
        return out

    def _extract_entities(self, body: str) -> List[RequiredEntity]:
        out = []
        for m in re.finditer(self.cfg.entity_regex, body, re.IGNORECASE | re.MULTILINE):
            name = m.group(1).strip()
            out.append(RequiredEntity(name, self._find_description_near(body, name)))
        return out

    def _extract_extensions(self, body: str) -> List[RequiredExtension]:
        out = []
        for m in re.finditer(self.cfg.extension_regex, body, re.IGNORECASE | re.MULTILINE):
            ext_type, base = m.group(1).strip(), m.group(2).strip()
            out.append(RequiredExtension(ext_type, base, self._find_description_near(body, f"{ext_type} {base}")))
        return out

    def _find_description_near(self, content: str, term: str) -> str:
        pos = content.find(term)
        if pos < 0:
            return ""
        window = self.cfg.description_window
        context = content[max(0, pos - window):pos + window]
        m = re.search(self.cfg.description_regex, context, re.IGNORECASE)
        if m:
            return m.group(1).strip()
        return context.replace(term, "").strip()

    def _implied_requirements(self, text: str) -> List[str]:
        """Sentences phrased like requirements ('must', 'shall', ...) anywhere in the document."""
        out = []
        for sentence in re.split(r"(?<=[.!?])\s+", text):
            sentence = sentence.strip()
            if len(sentence) < self.cfg.min_implied_sentence_length:
                continue
            lowered = sentence.lower()
            if any(indicator in lowered for indicator in self.cfg.requirement_indicators):
                out.append(sentence)
        return unique_in_order(out)


if __name__ == "__main__":
    import argparse
    import json
    import sys

    ap = argparse.ArgumentParser(description="Extract the requirement model from a design document")
    ap.add_argument("document", help="Path to DOCX, PDF, TXT or MD")
    ap.add_argument("--search", help="Print the contexts around a keyword instead")
    args = ap.parse_args()

    ing = DesignDocIngestor()
    model = ing.parse(args.document)
    if args.search:
        sys.stdout.write("\n\n".join(ing.search_keyword(args.search)) + "\n")
    else:
        json.dump(model.to_dict(), sys.stdout, indent=2)
        sys.stdout.write("\n")
