# models.py
"""
Data structures for the design/implementation review.
Holds the two input models (what the design asks for, what the code has)
and the records the reviewer emits.
"""

from dataclasses import dataclass, fields, is_dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union


class ContainerKind(str, Enum):
    CLASS = "class"
    TABLE = "table"
    FORM = "form"
    REPORT = "report"


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class DiscrepancyKind(str, Enum):
    MISSING_ENTITY = "MissingEntity"
    MISSING_FUNCTION = "MissingFunction"
    PARAMETER_MISMATCH = "ParameterMismatch"
    UNIMPLEMENTED_REQUIREMENT = "UnimplementedRequirement"
    MISSING_EXTENSION = "MissingExtension"


class FeatureKind(str, Enum):
    ENTITY = "entity"
    FUNCTION = "function"
    REQUIREMENT = "requirement"
    EXTENSION = "extension"


class NoteKind(str, Enum):
    EXTRA_ENTITY = "extra_entity"
    EXTRA_FUNCTION = "extra_function"
    EXTRA_EXTENSION = "extra_extension"


# ==========================
# Requirement model (design side)
# ==========================

@dataclass(frozen=True)
class RequiredEntity:
    name: str
    description: str = ""


@dataclass(frozen=True)
class RequiredFunction:
    name: str
    parameters: str = ""
    description: str = ""


@dataclass(frozen=True)
class RequiredExtension:
    extension_type: str
    base_name: str
    description: str = ""


@dataclass(frozen=True)
class RequirementModel:
    """Everything the design document asks for, in document order."""
    entities: Tuple[RequiredEntity, ...] = ()
    functions: Tuple[RequiredFunction, ...] = ()
    extensions: Tuple[RequiredExtension, ...] = ()
    requirements: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RequirementModel":
        return cls(
            entities=tuple(
                RequiredEntity(e["name"], e.get("description", ""))
                for e in data.get("entities", [])
            ),
            functions=tuple(
                RequiredFunction(f["name"], f.get("parameters", ""), f.get("description", ""))
                for f in data.get("functions", [])
            ),
            extensions=tuple(
                RequiredExtension(x.get("extension_type", ""), x["base_name"], x.get("description", ""))
                for x in data.get("extensions", [])
            ),
            requirements=tuple(data.get("requirements", [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return to_dict(self)


# ==========================
# Implementation model (code side)
# ==========================

@dataclass(frozen=True)
class ImplMethod:
    name: str
    parameters: str = ""
    body: str = ""
    return_type: str = ""
    # None when the inventory did not say where the method lives
    container_kind: Optional[ContainerKind] = None
    container_name: Optional[str] = None

    @property
    def container_description(self) -> Optional[str]:
        """'class CustTable'-style label, or None when the container is unknown."""
        if self.container_kind is None or not self.container_name:
            return None
        return f"{self.container_kind.value} {self.container_name}"

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        container_kind: Optional[ContainerKind] = None,
        container_name: Optional[str] = None,
    ) -> "ImplMethod":
        kind = data.get("container_kind")
        name = data.get("container_name")
        if kind is None:
            # Inventories that tag methods with class_name/table_name/... instead
            for ck in ContainerKind:
                legacy = data.get(f"{ck.value}_name")
                if legacy:
                    kind, name = ck, legacy
                    break
        if kind is None:
            kind, name = container_kind, container_name
        return cls(
            name=data["name"],
            parameters=data.get("parameters", ""),
            body=data.get("body", ""),
            return_type=data.get("return_type", ""),
            container_kind=ContainerKind(kind) if kind is not None else None,
            container_name=name,
        )


@dataclass(frozen=True)
class ImplField:
    name: str
    type: str = ""


@dataclass(frozen=True)
class ImplClass:
    name: str
    methods: Tuple[ImplMethod, ...] = ()


@dataclass(frozen=True)
class ImplTable:
    name: str
    fields: Tuple[ImplField, ...] = ()
    methods: Tuple[ImplMethod, ...] = ()


@dataclass(frozen=True)
class ImplExtension:
    name: str
    extends_name: str
    methods: Tuple[ImplMethod, ...] = ()


@dataclass(frozen=True)
class ImplForm:
    name: str
    methods: Tuple[ImplMethod, ...] = ()


@dataclass(frozen=True)
class ImplDataSource:
    name: str
    table_name: str = ""


@dataclass(frozen=True)
class ImplQuery:
    name: str
    data_sources: Tuple[ImplDataSource, ...] = ()


@dataclass(frozen=True)
class ImplReport:
    name: str
    methods: Tuple[ImplMethod, ...] = ()


def _methods(data: Dict[str, Any], kind: Optional[ContainerKind], owner: Optional[str]) -> Tuple[ImplMethod, ...]:
    return tuple(ImplMethod.from_dict(m, kind, owner) for m in data.get("methods", []))


@dataclass(frozen=True)
class ImplementationModel:
    """Inventory of what the codebase declares, in discovery order."""
    classes: Tuple[ImplClass, ...] = ()
    tables: Tuple[ImplTable, ...] = ()
    extensions: Tuple[ImplExtension, ...] = ()
    forms: Tuple[ImplForm, ...] = ()
    queries: Tuple[ImplQuery, ...] = ()
    reports: Tuple[ImplReport, ...] = ()
    methods: Tuple[ImplMethod, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImplementationModel":
        classes = tuple(
            ImplClass(c["name"], _methods(c, ContainerKind.CLASS, c["name"]))
            for c in data.get("classes", [])
        )
        tables = tuple(
            ImplTable(
                t["name"],
                tuple(ImplField(f["name"], f.get("type", "")) for f in t.get("fields", [])),
                _methods(t, ContainerKind.TABLE, t["name"]),
            )
            for t in data.get("tables", [])
        )
        extensions = tuple(
            ImplExtension(x["name"], x.get("extends_name", ""), _methods(x, None, None))
            for x in data.get("extensions", [])
        )
        forms = tuple(
            ImplForm(f["name"], _methods(f, ContainerKind.FORM, f["name"]))
            for f in data.get("forms", [])
        )
        queries = tuple(
            ImplQuery(
                q["name"],
                tuple(ImplDataSource(ds["name"], ds.get("table_name", "")) for ds in q.get("data_sources", [])),
            )
            for q in data.get("queries", [])
        )
        reports = tuple(
            ImplReport(r["name"], _methods(r, ContainerKind.REPORT, r["name"]))
            for r in data.get("reports", [])
        )

        methods = None
        if "methods" in data:
            methods = tuple(ImplMethod.from_dict(m) for m in data["methods"])
        return cls.from_units(classes, tables, extensions, forms, queries, reports, methods)

    @classmethod
    def from_units(
        cls,
        classes: Tuple[ImplClass, ...] = (),
        tables: Tuple[ImplTable, ...] = (),
        extensions: Tuple[ImplExtension, ...] = (),
        forms: Tuple[ImplForm, ...] = (),
        queries: Tuple[ImplQuery, ...] = (),
        reports: Tuple[ImplReport, ...] = (),
        methods: Optional[Tuple[ImplMethod, ...]] = None,
    ) -> "ImplementationModel":
        """Assemble a model; without an explicit ``methods`` list, flatten the container methods."""
        if methods is None:
            methods = tuple(
                m
                for container in (*classes, *tables, *forms, *reports)
                for m in container.methods
            )
        return cls(classes, tables, extensions, forms, queries, reports, methods)

    def unit_count(self) -> int:
        return len(self.classes) + len(self.tables) + len(self.extensions) + len(self.methods)


# ==========================
# Review output
# ==========================

@dataclass(frozen=True)
class MissingEntity:
    kind: ClassVar[DiscrepancyKind] = DiscrepancyKind.MISSING_ENTITY
    severity: ClassVar[Severity] = Severity.HIGH
    entity_name: str
    description: str = ""


@dataclass(frozen=True)
class MissingFunction:
    kind: ClassVar[DiscrepancyKind] = DiscrepancyKind.MISSING_FUNCTION
    severity: ClassVar[Severity] = Severity.HIGH
    function_name: str
    parameters: str = ""
    description: str = ""


@dataclass(frozen=True)
class ParameterMismatch:
    kind: ClassVar[DiscrepancyKind] = DiscrepancyKind.PARAMETER_MISMATCH
    severity: ClassVar[Severity] = Severity.MEDIUM
    function_name: str
    expected_params: str
    actual_params: str


@dataclass(frozen=True)
class UnimplementedRequirement:
    kind: ClassVar[DiscrepancyKind] = DiscrepancyKind.UNIMPLEMENTED_REQUIREMENT
    severity: ClassVar[Severity] = Severity.MEDIUM
    requirement: str
    keywords: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MissingExtension:
    kind: ClassVar[DiscrepancyKind] = DiscrepancyKind.MISSING_EXTENSION
    severity: ClassVar[Severity] = Severity.MEDIUM
    base_name: str
    extension_type: str = ""
    description: str = ""


Discrepancy = Union[MissingEntity, MissingFunction, ParameterMismatch, UnimplementedRequirement, MissingExtension]


@dataclass(frozen=True)
class MethodMatch:
    """One code unit that covers a free-text requirement."""
    unit_name: str
    container_description: Optional[str]
    score: float


@dataclass(frozen=True)
class ImplementedFeature:
    kind: FeatureKind
    name: str
    implementation_kind: str
    implementation_name: str = ""
    container_kind: Optional[ContainerKind] = None
    container_name: Optional[str] = None
    matches: Optional[Tuple[MethodMatch, ...]] = None


@dataclass(frozen=True)
class MissingFeature:
    kind: FeatureKind
    name: str = ""
    description: str = ""
    keywords: Optional[Tuple[str, ...]] = None
    base_name: Optional[str] = None


@dataclass(frozen=True)
class AnalysisNote:
    kind: NoteKind
    subject_name: str
    extra_info: str
    note: str


# ==========================
# Serialization
# ==========================

def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value):
        return to_dict(value)
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


def to_dict(record: Any) -> Dict[str, Any]:
    """Convert a model record to plain JSON types, omitting absent optionals."""
    out: Dict[str, Any] = {}
    for tag in ("kind", "severity"):
        if tag in getattr(type(record), "__annotations__", {}) and tag not in {f.name for f in fields(record)}:
            out[tag] = _jsonable(getattr(record, tag))
    for f in fields(record):
        value = getattr(record, f.name)
        if value is None:
            continue
        out[f.name] = _jsonable(value)
    return out


def records_to_list(records: List[Any]) -> List[Dict[str, Any]]:
    return [to_dict(r) for r in records]
