# inventory_ingestor.py
"""
Implementation Inventory Ingestor

Reads a project export and builds the ImplementationModel the reviewer
compares against the design. Accepted inputs:

- an .axpp archive whose .xml members are element metadata
  (AxClass, AxTable, AxForm, AxQuery, AxReport) and whose .xpp members
  are raw X++ source
- a single metadata .xml file
- a file that is not XML at all, read as raw X++ source

Methods of classes, tables, forms and reports are tagged with their
container and flattened into ``ImplementationModel.methods``.
"""

import logging
import re
import zipfile
from pathlib import Path
from typing import List, Optional, Tuple

from lxml import etree

from config import DEFAULTS, InventoryConfig
from models import (
    ContainerKind,
    ImplClass,
    ImplDataSource,
    ImplementationModel,
    ImplExtension,
    ImplField,
    ImplForm,
    ImplMethod,
    ImplQuery,
    ImplReport,
    ImplTable,
)
from utils import collapse_whitespace

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".axpp", ".xml")

XSI_TYPE = "{http://www.w3.org/2001/XMLSchema-instance}type"

# Raw X++ declarations; bodies are cut out by brace matching
_CLASS_HEADER = re.compile(r"\bclass\s+(\w+)(?:\s+extends\s+(\w+))?[^{;]*\{")
_TABLE_HEADER = re.compile(r"\btable\s+(\w+)\s*\{")
_FIELD_BLOCK = re.compile(r"\bfield\s+(\w+)\s*\{([^}]*)\}")
_FIELD_TYPE = re.compile(r"type\s*=\s*(\w+)")
_METHOD_HEADER = re.compile(
    r"(?:\b(?:public|private|protected|internal|static|final|server|client|display|edit)\s+)*"
    r"(\w+)\s+(\w+)\s*\(([^)]*)\)\s*\{"
)
_CONTROL_WORDS = frozenset({"if", "else", "while", "for", "switch", "catch", "return", "new", "do"})


class UnsupportedInventoryError(ValueError):
    """The inventory file has a type we cannot read."""


def _block(text: str, open_brace: int) -> Tuple[str, int]:
    """Body of the brace block opening at ``open_brace`` and the index just past it."""
    depth = 0
    for i in range(open_brace, len(text)):
        if text[i] == "{":
            depth += 1
        elif text[i] == "}":
            depth -= 1
            if depth == 0:
                return text[open_brace + 1:i], i + 1
    return text[open_brace + 1:], len(text)


class InventoryIngestor:
    """Parses a project export into an ImplementationModel."""

    def __init__(self, cfg: Optional[InventoryConfig] = None):
        self.cfg = cfg or DEFAULTS.inventory
        self.extension_of = re.compile(self.cfg.extension_of_regex, re.IGNORECASE)
        self.parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)
        self._reset()

    # ---------- Public API ----------

    def parse(self, path: str) -> ImplementationModel:
        """Read the export at ``path`` and build its implementation model."""
        suffix = Path(path).suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            raise UnsupportedInventoryError(f"Inventory must be an .axpp or .xml file, got: {suffix or path}")

        self._reset()
        try:
            with zipfile.ZipFile(path) as archive:
                for info in archive.infolist():
                    member = info.filename.lower()
                    if member.endswith(".xml"):
                        self._parse_document(archive.read(info), info.filename)
                    elif member.endswith(".xpp"):
                        self._parse_source(archive.read(info).decode("utf-8-sig"))
        except zipfile.BadZipFile:
            # A single metadata file, or raw source
            self._parse_document(Path(path).read_bytes(), Path(path).name)

        model = self._build()
        if not any((model.classes, model.tables, model.extensions, model.forms, model.queries, model.reports)):
            logger.warning("no project elements found in %s", path)
        return model

    def parse_text(self, text: str, filename: str = "") -> ImplementationModel:
        """Build a model from one metadata XML document or one piece of X++ source."""
        self._reset()
        self._parse_document(text.encode("utf-8"), filename)
        return self._build()

    # ---------- Internal methods ----------

    def _reset(self) -> None:
        self.classes: List[ImplClass] = []
        self.tables: List[ImplTable] = []
        self.extensions: List[ImplExtension] = []
        self.forms: List[ImplForm] = []
        self.queries: List[ImplQuery] = []
        self.reports: List[ImplReport] = []

    def _build(self) -> ImplementationModel:
        model = ImplementationModel.from_units(
            tuple(self.classes),
            tuple(self.tables),
            tuple(self.extensions),
            tuple(self.forms),
            tuple(self.queries),
            tuple(self.reports),
        )
        logger.info(
            "inventory: %d classes, %d tables, %d extensions, %d forms, %d queries, %d reports, %d methods",
            len(model.classes), len(model.tables), len(model.extensions),
            len(model.forms), len(model.queries), len(model.reports), len(model.methods),
        )
        return model

    def _parse_document(self, data: bytes, filename: str) -> None:
        try:
            root = etree.fromstring(data, self.parser)
        except etree.XMLSyntaxError:
            logger.debug("%s is not XML; reading it as X++ source", filename or "<text>")
            self._parse_source(data.decode("utf-8-sig"))
            return

        handlers = {
            "class": self._parse_class,
            "table": self._parse_table,
            "form": self._parse_form,
            "query": self._parse_query,
            "report": self._parse_report,
        }
        kind = self._element_type(root, filename)
        logger.debug("%s parsed as %s", filename or "<text>", kind)
        handlers[kind](root, filename)

    def _element_type(self, root, filename: str) -> str:
        """Root element first, then the file name, then any known element below the root."""
        root_name = etree.QName(root).localname
        for kind, tags in self.cfg.root_tags.items():
            if root_name in tags:
                return kind
        lowered = filename.lower()
        for kind in self.cfg.root_tags:
            if kind in lowered:
                return kind
        for kind, tags in self.cfg.root_tags.items():
            if any(self._find(root, tag) for tag in tags):
                return kind
        return "class"

    # ---------- XML lookups ----------

    @staticmethod
    def _find(node, tag: str, axis: str = ".//") -> list:
        # local-name() so namespaced exports match too
        return node.xpath(f"{axis}*[local-name()=$tag]", tag=tag)

    def _text(self, node, tags: Tuple[str, ...], axis: str = ".//") -> str:
        for tag in tags:
            for hit in self._find(node, tag, axis):
                text = "".join(hit.itertext()).strip()
                if text:
                    return text
        return ""

    def _own_text(self, node, tags: Tuple[str, ...]) -> str:
        """Prefer a direct child over a match deeper down."""
        return self._text(node, tags, "./") or self._text(node, tags)

    def _container_name(self, root, kind: str, filename: str) -> str:
        tags = self.cfg.name_tags + self.cfg.container_name_tags.get(kind, ())
        return self._own_text(root, tags) or Path(filename).stem

    def _methods(self, root, kind: Optional[ContainerKind], owner: Optional[str]) -> Tuple[ImplMethod, ...]:
        methods = []
        for tag in self.cfg.method_tags:
            for node in self._find(root, tag):
                name = self._own_text(node, self.cfg.method_name_tags)
                if not name:
                    continue
                body = self._text(node, self.cfg.body_tags)
                parameters = self._text(node, self.cfg.parameter_tags)
                return_type = self._text(node, self.cfg.return_type_tags)
                if not parameters or not return_type:
                    signature_return, signature_params = self._signature(name, body)
                    parameters = parameters or signature_params
                    return_type = return_type or signature_return
                methods.append(ImplMethod(name, parameters, body, return_type, kind, owner))
        return tuple(methods)

    @staticmethod
    def _signature(name: str, body: str) -> Tuple[str, str]:
        """Return type and parameter list from the method's own declaration in its source."""
        m = re.search(rf"(\w+)\s+{re.escape(name)}\s*\(([^)]*)\)", body)
        if not m:
            return "", ""
        return m.group(1), collapse_whitespace(m.group(2))

    # ---------- Element parsers ----------

    def _parse_class(self, root, filename: str) -> None:
        name = self._container_name(root, "class", filename)
        extends = self._text(root, self.cfg.extends_tags)
        if not extends:
            m = self.extension_of.search("".join(root.itertext()))
            extends = m.group(1) if m else ""
        if extends:
            self.extensions.append(ImplExtension(name, extends, self._methods(root, None, None)))
        else:
            self.classes.append(ImplClass(name, self._methods(root, ContainerKind.CLASS, name)))

    def _parse_table(self, root, filename: str) -> None:
        name = self._container_name(root, "table", filename)
        fields = []
        for tag in self.cfg.field_tags:
            for node in self._find(root, tag):
                field_name = self._own_text(node, self.cfg.field_name_tags)
                if field_name:
                    field_type = self._text(node, self.cfg.field_type_tags) or node.get(XSI_TYPE, "")
                    fields.append(ImplField(field_name, field_type))
        self.tables.append(ImplTable(name, tuple(fields), self._methods(root, ContainerKind.TABLE, name)))

    def _parse_form(self, root, filename: str) -> None:
        name = self._container_name(root, "form", filename)
        self.forms.append(ImplForm(name, self._methods(root, ContainerKind.FORM, name)))

    def _parse_query(self, root, filename: str) -> None:
        name = self._container_name(root, "query", filename)
        data_sources = []
        for tag in self.cfg.data_source_tags:
            for node in self._find(root, tag):
                ds_name = self._own_text(node, self.cfg.name_tags)
                table_name = self._own_text(node, self.cfg.data_source_table_tags)
                if ds_name or table_name:
                    data_sources.append(ImplDataSource(ds_name or table_name, table_name))
        self.queries.append(ImplQuery(name, tuple(data_sources)))

    def _parse_report(self, root, filename: str) -> None:
        name = self._container_name(root, "report", filename)
        self.reports.append(ImplReport(name, self._methods(root, ContainerKind.REPORT, name)))

    # ---------- Raw X++ ----------

    def _parse_source(self, source: str) -> None:
        pos = 0
        while True:
            m = _CLASS_HEADER.search(source, pos)
            if not m:
                break
            start = pos
            body, pos = _block(source, m.end() - 1)
            name, extends = m.group(1), m.group(2)
            if not extends:
                attr = self.extension_of.search(source, start, m.start())
                extends = attr.group(1) if attr else None
            if extends:
                self.extensions.append(ImplExtension(name, extends, self._source_methods(body, None, None)))
            else:
                self.classes.append(ImplClass(name, self._source_methods(body, ContainerKind.CLASS, name)))

        pos = 0
        while True:
            m = _TABLE_HEADER.search(source, pos)
            if not m:
                break
            body, pos = _block(source, m.end() - 1)
            name = m.group(1)
            fields = []
            for fm in _FIELD_BLOCK.finditer(body):
                type_match = _FIELD_TYPE.search(fm.group(2))
                fields.append(ImplField(fm.group(1), type_match.group(1) if type_match else ""))
            self.tables.append(ImplTable(name, tuple(fields), self._source_methods(body, ContainerKind.TABLE, name)))

    def _source_methods(
        self, body: str, kind: Optional[ContainerKind], owner: Optional[str]
    ) -> Tuple[ImplMethod, ...]:
        methods = []
        pos = 0
        while True:
            m = _METHOD_HEADER.search(body, pos)
            if not m:
                break
            method_body, pos = _block(body, m.end() - 1)
            return_type, name, parameters = m.groups()
            if name in _CONTROL_WORDS or return_type in _CONTROL_WORDS:
                continue
            methods.append(ImplMethod(
                name, collapse_whitespace(parameters), method_body.strip(), return_type, kind, owner,
            ))
        return tuple(methods)


if __name__ == "__main__":
    import argparse
    import json
    import sys

    from models import to_dict

    ap = argparse.ArgumentParser(description="Extract the implementation model from an .axpp or .xml export")
    ap.add_argument("inventory", help="Path to .axpp archive or metadata .xml")
    args = ap.parse_args()

    model = InventoryIngestor().parse(args.inventory)
    json.dump(to_dict(model), sys.stdout, indent=2)
    sys.stdout.write("\n")
