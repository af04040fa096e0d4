# schemas.py
"""
JSON Schemas (draft 2020-12) for the two input models and the review report.
"""

import json
from copy import deepcopy
from typing import Any, Dict, Union

from jsonschema import Draft202012Validator

_STR = {"type": "string"}
_STR_LIST = {"type": "array", "items": _STR}


def _obj(required, properties, additional=False) -> Dict[str, Any]:
    return {
        "type": "object",
        "required": list(required),
        "properties": properties,
        "additionalProperties": additional,
    }


REQUIREMENT_MODEL_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "RequirementModel",
    "type": "object",
    "properties": {
        "entities": {"type": "array", "items": _obj(["name"], {"name": _STR, "description": _STR})},
        "functions": {
            "type": "array",
            "items": _obj(["name"], {"name": _STR, "parameters": _STR, "description": _STR}),
        },
        "extensions": {
            "type": "array",
            "items": _obj(["base_name"], {"extension_type": _STR, "base_name": _STR, "description": _STR}),
        },
        "requirements": _STR_LIST,
    },
    "additionalProperties": False,
}


IMPLEMENTATION_MODEL_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "ImplementationModel",
    "type": "object",
    "$defs": {
        "method": {
            "type": "object",
            "required": ["name"],
            "properties": {
                "name": _STR,
                "parameters": _STR,
                "body": _STR,
                "return_type": _STR,
                "container_kind": {"enum": ["class", "table", "form", "report", None]},
                "container_name": {"type": ["string", "null"]},
                "class_name": _STR,
                "table_name": _STR,
                "form_name": _STR,
                "report_name": _STR,
            },
        },
        "methods": {"type": "array", "items": {"$ref": "#/$defs/method"}},
        "container": _obj(["name"], {"name": _STR, "methods": {"$ref": "#/$defs/methods"}}),
    },
    "properties": {
        "classes": {"type": "array", "items": {"$ref": "#/$defs/container"}},
        "tables": {
            "type": "array",
            "items": _obj(["name"], {
                "name": _STR,
                "fields": {"type": "array", "items": _obj(["name"], {"name": _STR, "type": _STR})},
                "methods": {"$ref": "#/$defs/methods"},
            }),
        },
        "extensions": {
            "type": "array",
            "items": _obj(["name", "extends_name"], {
                "name": _STR,
                "extends_name": _STR,
                "methods": {"$ref": "#/$defs/methods"},
            }),
        },
        "forms": {"type": "array", "items": {"$ref": "#/$defs/container"}},
        "queries": {
            "type": "array",
            "items": _obj(["name"], {
                "name": _STR,
                "data_sources": {"type": "array", "items": _obj(["name"], {"name": _STR, "table_name": _STR})},
            }),
        },
        "reports": {"type": "array", "items": {"$ref": "#/$defs/container"}},
        "methods": {"$ref": "#/$defs/methods"},
    },
    "additionalProperties": False,
}


def _discrepancy(kind: str, severity: str, required, properties) -> Dict[str, Any]:
    props = {"kind": {"const": kind}, "severity": {"const": severity}}
    props.update(properties)
    return _obj(["kind", "severity", *required], props)


_COUNT = {"type": "integer", "minimum": 0}

REPORT_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "ReviewReport",
    "type": "object",
    "required": ["review_summary", "discrepancies", "implemented_features", "missing_features", "analysis_notes"],
    "$defs": {
        "discrepancy": {
            "oneOf": [
                _discrepancy("MissingEntity", "High", ["entity_name"],
                             {"entity_name": _STR, "description": _STR}),
                _discrepancy("MissingFunction", "High", ["function_name"],
                             {"function_name": _STR, "parameters": _STR, "description": _STR}),
                _discrepancy("ParameterMismatch", "Medium", ["function_name", "expected_params", "actual_params"],
                             {"function_name": _STR, "expected_params": _STR, "actual_params": _STR}),
                _discrepancy("UnimplementedRequirement", "Medium", ["requirement", "keywords"],
                             {"requirement": _STR, "keywords": _STR_LIST}),
                _discrepancy("MissingExtension", "Medium", ["base_name"],
                             {"base_name": _STR, "extension_type": _STR, "description": _STR}),
            ]
        },
        "method_match": _obj(["unit_name", "score"], {
            "unit_name": _STR,
            "container_description": _STR,
            "score": {"type": "number", "minimum": 0, "maximum": 1},
        }),
        "implemented_feature": _obj(["kind", "name", "implementation_kind"], {
            "kind": {"enum": ["entity", "function", "requirement", "extension"]},
            "name": _STR,
            "implementation_kind": _STR,
            "implementation_name": _STR,
            "container_kind": {"enum": ["class", "table", "form", "report"]},
            "container_name": _STR,
            "matches": {"type": "array", "maxItems": 3, "items": {"$ref": "#/$defs/method_match"}},
        }),
        "missing_feature": _obj(["kind"], {
            "kind": {"enum": ["entity", "function", "requirement", "extension"]},
            "name": _STR,
            "description": _STR,
            "keywords": _STR_LIST,
            "base_name": _STR,
        }),
        "analysis_note": _obj(["kind", "subject_name", "extra_info", "note"], {
            "kind": {"enum": ["extra_entity", "extra_function", "extra_extension"]},
            "subject_name": _STR,
            "extra_info": _STR,
            "note": _STR,
        }),
    },
    "properties": {
        "review_summary": _obj(
            ["total_discrepancies", "total_implemented_features", "total_missing_features", "total_analysis_notes"],
            {
                "total_discrepancies": _COUNT,
                "total_implemented_features": _COUNT,
                "total_missing_features": _COUNT,
                "total_analysis_notes": _COUNT,
            },
        ),
        "discrepancies": {"type": "array", "items": {"$ref": "#/$defs/discrepancy"}},
        "implemented_features": {"type": "array", "items": {"$ref": "#/$defs/implemented_feature"}},
        "missing_features": {"type": "array", "items": {"$ref": "#/$defs/missing_feature"}},
        "analysis_notes": {"type": "array", "items": {"$ref": "#/$defs/analysis_note"}},
    },
    "additionalProperties": False,
}


def with_max_matches(schema: Dict[str, Any], max_matches: int) -> Dict[str, Any]:
    """Copy of REPORT_SCHEMA with a different cap on requirement matches."""
    merged = deepcopy(schema)
    merged["$defs"]["implemented_feature"]["properties"]["matches"]["maxItems"] = max_matches
    return merged


def validate_json(schema: Dict[str, Any], data: Union[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Validate a JSON document (text or already-decoded) and return the decoded data.

    Raises jsonschema.ValidationError on the first violation.
    """
    if isinstance(data, str):
        data = json.loads(data)
    Draft202012Validator(schema).validate(data)
    return data


def load_json_file(path: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return validate_json(schema, f.read())
