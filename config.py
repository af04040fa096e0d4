# config.py
from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass
class IngestConfig:
    # Heading vocabulary used to bucket design-document lines
    section_headings: Dict[str, Tuple[str, ...]] = field(default_factory=lambda: {
        "requirements": ("Requirements", "Functional Requirements", "System Requirements",
                         "Business Requirements", "Technical Requirements"),
        "functions": ("Functions", "Methods", "Procedures", "Operations", "X++ Methods"),
        "entities": ("Entities", "Tables", "Data Model", "Data Structures", "Classes"),
        "extensions": ("Extensions", "Customizations", "Overrides", "Class Extensions"),
    })
    requirement_patterns: Tuple[str, ...] = (
        r"REQ-\d+\s*:(.+?)(?=REQ-\d+\s*:|$)",
        r"Requirement\s+\d+\s*:(.+?)(?=Requirement\s+\d+\s*:|$)",
        r"R\d+\s*:(.+?)(?=R\d+\s*:|$)",
        r"(?:shall|must|will|should)(.+?)(?:\.|$)",
        r"(?:Function|Method|Procedure)\s+([a-zA-Z0-9_]+)(.+?)(?:\.|$)",
    )
    # e.g. "str customerName(str accountNum)"
    function_regex: str = r"(?:Function|Method|Procedure|void|str|int)\s+([a-zA-Z0-9_]+)\s*\(([^)]*)\)"
    entity_regex: str = r"(?:Table|Entity|Class)\s+([a-zA-Z0-9_]+)"
    extension_regex: str = r"(?:Extension|Customization)\s+([a-zA-Z0-9_]+)(?:\s+on|:)\s+([a-zA-Z0-9_]+)"
    description_regex: str = r"(?:description|desc|details|implements)(?:\s*:|\s+is|\s+are)?\s*([^.]+)"
    requirement_indicators: Tuple[str, ...] = (
        "shall", "must", "will", "should", "needs to", "has to", "required",
    )
    min_requirement_length: int = 10
    min_implied_sentence_length: int = 15
    implied_requirement_floor: int = 5
    description_window: int = 100


@dataclass
class InventoryConfig:
    # Element names tried in order when reading exported metadata XML
    root_tags: Dict[str, Tuple[str, ...]] = field(default_factory=lambda: {
        "class": ("Class", "AxClass"),
        "table": ("Table", "AxTable"),
        "form": ("Form", "AxForm"),
        "query": ("Query", "AxQuery"),
        "report": ("Report", "AxReport"),
    })
    name_tags: Tuple[str, ...] = ("Name", "name")
    container_name_tags: Dict[str, Tuple[str, ...]] = field(default_factory=lambda: {
        "class": ("AxClassName", "className"),
        "table": ("AxTableName", "tableName"),
        "form": ("AxFormName", "formName"),
        "query": ("AxQueryName", "queryName"),
        "report": ("AxReportName", "reportName"),
    })
    method_tags: Tuple[str, ...] = ("Method", "method", "AxMethod")
    method_name_tags: Tuple[str, ...] = ("Name", "name", "MethodName")
    parameter_tags: Tuple[str, ...] = ("Parameters", "params", "MethodParameters")
    body_tags: Tuple[str, ...] = ("Source", "source", "MethodSource", "Body")
    return_type_tags: Tuple[str, ...] = ("ReturnType", "returnType", "MethodReturnType")
    extends_tags: Tuple[str, ...] = ("Extends", "extends", "ExtendsClass")
    field_tags: Tuple[str, ...] = ("Field", "field", "AxField", "AxTableField")
    field_name_tags: Tuple[str, ...] = ("Name", "name", "FieldName")
    field_type_tags: Tuple[str, ...] = ("Type", "type", "FieldType", "ExtendedDataType")
    data_source_tags: Tuple[str, ...] = ("DataSource", "dataSource", "AxDataSource")
    data_source_table_tags: Tuple[str, ...] = ("Table", "table", "TableName")
    # [ExtensionOf(classStr(CustTable))] on a class declaration
    extension_of_regex: str = r"\[\s*ExtensionOf\s*\(\s*\w+Str\s*\(\s*(\w+)"


@dataclass(frozen=True)
class ReviewConfig:
    # Name normalization
    vendor_prefixes: Tuple[str, ...] = ("Ax", "CUS", "ISV", "USR")
    kind_suffixes: Tuple[str, ...] = ("Table", "Class", "Form", "Query", "Report", "Ext")
    # Fuzzy thresholds
    name_similarity_threshold: float = 0.8
    fuzzy_min_length: int = 3
    param_similarity_threshold: float = 0.7
    # Requirement coverage: matches >= max(min_keyword_matches, floor(n * ratio))
    keyword_match_ratio: float = 0.5
    min_keyword_matches: int = 1
    max_requirement_matches: int = 3
    requirement_name_length: int = 50
    # Pairwise matching is quadratic; warn above this many units per model
    large_model_warning: int = 5000


@dataclass
class AppConfig:
    ingest: IngestConfig = field(default_factory=IngestConfig)
    inventory: InventoryConfig = field(default_factory=InventoryConfig)
    review: ReviewConfig = field(default_factory=ReviewConfig)


# Global defaults used across modules
DEFAULTS = AppConfig()
