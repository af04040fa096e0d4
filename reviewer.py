# reviewer.py
"""
Design-vs-implementation reviewer.

Runs four independent passes over a RequirementModel and an
ImplementationModel (entities, functions, free-text requirements,
extensions). Each pass looks in both directions: required items with no
counterpart in code become discrepancies, code units with no counterpart in
the design become analysis notes.

Matching is heuristic. A missed or spurious match is the expected failure
mode; nothing here raises because of one odd entry.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from config import DEFAULTS, ReviewConfig
from keyword_scorer import KeywordScorer
from models import (
    AnalysisNote,
    Discrepancy,
    FeatureKind,
    ImplementationModel,
    ImplementedFeature,
    MethodMatch,
    MissingEntity,
    MissingExtension,
    MissingFeature,
    MissingFunction,
    NoteKind,
    ParameterMismatch,
    RequirementModel,
    UnimplementedRequirement,
    records_to_list,
)
from name_matcher import NameMatcher
from param_checker import ParameterChecker
from schemas import REPORT_SCHEMA, validate_json, with_max_matches
from utils import container_info, truncate_for_name

logger = logging.getLogger(__name__)

# Framework and lifecycle methods that a design document never lists
STANDARD_METHODS = frozenset({
    "new", "run", "main", "construct", "delete", "insert", "update",
    "find", "getfromid", "init", "pack", "unpack", "validate", "cansubmit",
    "executequery", "fetchnext", "next", "first", "last", "reread", "research", "forupdate",
    "fieldsort", "exists", "getchanges", "getfieldname", "getfieldtype", "getindexname", "getprimarykey",
    "getrecordid", "settableid", "skipdeleted", "crosscompany", "setcompany", "gettableinfo",
})


@dataclass
class PassOutput:
    """Private accumulator for one pass."""
    discrepancies: List[Discrepancy] = field(default_factory=list)
    implemented_features: List[ImplementedFeature] = field(default_factory=list)
    missing_features: List[MissingFeature] = field(default_factory=list)
    analysis_notes: List[AnalysisNote] = field(default_factory=list)

    def extend(self, other: "PassOutput") -> None:
        self.discrepancies.extend(other.discrepancies)
        self.implemented_features.extend(other.implemented_features)
        self.missing_features.extend(other.missing_features)
        self.analysis_notes.extend(other.analysis_notes)


@dataclass(frozen=True)
class ReviewResult:
    """Read-only outcome of one review run."""
    discrepancies: Tuple[Discrepancy, ...] = ()
    implemented_features: Tuple[ImplementedFeature, ...] = ()
    missing_features: Tuple[MissingFeature, ...] = ()
    analysis_notes: Tuple[AnalysisNote, ...] = ()
    # maxItems for requirement matches when the report is validated
    max_matches: int = DEFAULTS.review.max_requirement_matches

    @classmethod
    def from_pass_output(cls, out: PassOutput, max_matches: int) -> "ReviewResult":
        return cls(
            tuple(out.discrepancies),
            tuple(out.implemented_features),
            tuple(out.missing_features),
            tuple(out.analysis_notes),
            max_matches,
        )

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "total_discrepancies": len(self.discrepancies),
            "total_implemented_features": len(self.implemented_features),
            "total_missing_features": len(self.missing_features),
            "total_analysis_notes": len(self.analysis_notes),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "review_summary": self.summary,
            "discrepancies": records_to_list(list(self.discrepancies)),
            "implemented_features": records_to_list(list(self.implemented_features)),
            "missing_features": records_to_list(list(self.missing_features)),
            "analysis_notes": records_to_list(list(self.analysis_notes)),
        }

    def to_json(self, indent: int = 2) -> str:
        report = self.to_dict()
        validate_json(with_max_matches(REPORT_SCHEMA, self.max_matches), report)
        return json.dumps(report, indent=indent)

    def write_json(self, output_file: str) -> Dict[str, Any]:
        """Validate and write the report; returns the written dict."""
        text = self.to_json()
        with open(output_file, "w", encoding="utf-8") as fw:
            fw.write(text)
        return json.loads(text)


class CodeReviewer:
    """Reconciles a RequirementModel against an ImplementationModel."""

    def __init__(
        self,
        requirements: RequirementModel,
        implementation: ImplementationModel,
        cfg: Optional[ReviewConfig] = None,
    ):
        self.cfg = cfg or DEFAULTS.review
        self.requirements = requirements
        self.implementation = implementation
        self.names = NameMatcher(self.cfg)
        self.params = ParameterChecker(self.cfg)
        self.keywords = KeywordScorer(self.cfg)
        self.result: Optional[ReviewResult] = None

    # ---------- Public API ----------

    def review(self) -> ReviewResult:
        """Run all passes and return a fresh result; earlier results are discarded."""
        self._warn_if_large()

        passes: Tuple[Callable[[], PassOutput], ...] = (
            self.review_entities,
            self.review_functions,
            self.review_requirements,
            self.review_extensions,
        )
        out = PassOutput()
        for review_pass in passes:
            out.extend(review_pass())

        self.result = ReviewResult.from_pass_output(out, self.cfg.max_requirement_matches)
        logger.info("review complete: %s", self.result.summary)
        return self.result

    def review_entities(self) -> PassOutput:
        out = PassOutput()
        entities = self.requirements.entities
        candidates = [("class", c.name) for c in self.implementation.classes]
        candidates += [("table", t.name) for t in self.implementation.tables]

        for entity in entities:
            found = next(((kind, name) for kind, name in candidates if self.names.matches(name, entity.name)), None)
            if found:
                kind, name = found
                out.implemented_features.append(ImplementedFeature(
                    kind=FeatureKind.ENTITY,
                    name=entity.name,
                    implementation_kind=kind,
                    implementation_name=name,
                ))
            else:
                out.discrepancies.append(MissingEntity(entity.name, entity.description))
                out.missing_features.append(MissingFeature(
                    kind=FeatureKind.ENTITY,
                    name=entity.name,
                    description=entity.description,
                ))

        for kind, name in candidates:
            if not any(self.names.matches(name, e.name) for e in entities):
                out.analysis_notes.append(AnalysisNote(
                    kind=NoteKind.EXTRA_ENTITY,
                    subject_name=name,
                    extra_info=kind,
                    note=f"{kind.capitalize()} exists in implementation but not in design document",
                ))

        logger.info("entity pass: %d implemented, %d missing, %d extra",
                    len(out.implemented_features), len(out.discrepancies), len(out.analysis_notes))
        return out

    def review_functions(self) -> PassOutput:
        out = PassOutput()
        functions = self.requirements.functions
        methods = self.implementation.methods

        for function in functions:
            method = next((m for m in methods if self.names.matches(m.name, function.name)), None)
            if method is None:
                out.discrepancies.append(MissingFunction(function.name, function.parameters, function.description))
                out.missing_features.append(MissingFeature(
                    kind=FeatureKind.FUNCTION,
                    name=function.name,
                    description=function.description,
                ))
                continue

            out.implemented_features.append(ImplementedFeature(
                kind=FeatureKind.FUNCTION,
                name=function.name,
                implementation_kind="method",
                implementation_name=method.name,
                container_kind=method.container_kind,
                container_name=method.container_name,
            ))
            if function.parameters.strip() and method.parameters.strip() and \
                    not self.params.compatible(function.parameters, method.parameters):
                out.discrepancies.append(ParameterMismatch(function.name, function.parameters, method.parameters))

        for method in methods:
            if method.name.lower() in STANDARD_METHODS:
                continue
            if any(self.names.matches(method.name, f.name) for f in functions):
                continue
            kind = method.container_kind.value if method.container_kind else None
            info = container_info(kind, method.container_name)
            out.analysis_notes.append(AnalysisNote(
                kind=NoteKind.EXTRA_FUNCTION,
                subject_name=method.name,
                extra_info=info,
                note=f"Method exists in implementation{info} but not in design document",
            ))

        logger.info("function pass: %d implemented, %d discrepancies, %d extra",
                    len(out.implemented_features), len(out.discrepancies), len(out.analysis_notes))
        return out

    def review_requirements(self) -> PassOutput:
        out = PassOutput()

        for requirement in self.requirements.requirements:
            keywords = self.keywords.extract_keywords(requirement)
            if not keywords:
                logger.debug("skipping requirement without keywords: %r", requirement)
                continue

            needed = self.keywords.threshold(len(keywords))
            matches: List[MethodMatch] = []
            for method in self.implementation.methods:
                if not method.body:
                    continue
                hits = self.keywords.match_count(keywords, method.body)
                if hits >= needed:
                    matches.append(MethodMatch(method.name, method.container_description, hits / len(keywords)))

            name = truncate_for_name(requirement, self.cfg.requirement_name_length)
            if matches:
                # sorted() is stable: equal scores keep inventory order
                top = sorted(matches, key=lambda m: m.score, reverse=True)[:self.cfg.max_requirement_matches]
                out.implemented_features.append(ImplementedFeature(
                    kind=FeatureKind.REQUIREMENT,
                    name=name,
                    implementation_kind="code",
                    matches=tuple(top),
                ))
            else:
                out.discrepancies.append(UnimplementedRequirement(requirement, keywords))
                out.missing_features.append(MissingFeature(
                    kind=FeatureKind.REQUIREMENT,
                    name=name,
                    description=requirement,
                    keywords=keywords,
                ))

        logger.info("requirement pass: %d covered, %d uncovered",
                    len(out.implemented_features), len(out.discrepancies))
        return out

    def review_extensions(self) -> PassOutput:
        out = PassOutput()
        required = self.requirements.extensions
        extensions = self.implementation.extensions

        for req in required:
            ext = next((x for x in extensions if self.names.matches(x.extends_name, req.base_name)), None)
            if ext:
                out.implemented_features.append(ImplementedFeature(
                    kind=FeatureKind.EXTENSION,
                    name=ext.name,
                    implementation_kind="extension",
                    implementation_name=f"extends {ext.extends_name}",
                ))
            else:
                out.discrepancies.append(MissingExtension(req.base_name, req.extension_type, req.description))
                out.missing_features.append(MissingFeature(
                    kind=FeatureKind.EXTENSION,
                    name=req.base_name,
                    description=req.description,
                    base_name=req.base_name,
                ))

        for ext in extensions:
            if not any(self.names.matches(ext.extends_name, r.base_name) for r in required):
                out.analysis_notes.append(AnalysisNote(
                    kind=NoteKind.EXTRA_EXTENSION,
                    subject_name=ext.name,
                    extra_info=ext.extends_name,
                    note=f"Extension of {ext.extends_name} exists in implementation but not in design document",
                ))

        logger.info("extension pass: %d implemented, %d missing, %d extra",
                    len(out.implemented_features), len(out.discrepancies), len(out.analysis_notes))
        return out

    # ---------- Internal methods ----------

    def _warn_if_large(self) -> None:
        required = (len(self.requirements.entities) + len(self.requirements.functions)
                    + len(self.requirements.extensions) + len(self.requirements.requirements))
        implemented = self.implementation.unit_count()
        limit = self.cfg.large_model_warning
        if required > limit or implemented > limit:
            logger.warning(
                "large models (%d required items, %d implementation units): pairwise name matching may be slow",
                required, implemented,
            )
