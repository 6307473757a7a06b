from __future__ import annotations

import json
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from facility_registry.core.mapper import DEFAULT_MAPPER, FacilityRecordMapper
from facility_registry.core.models import STATUS_UNKNOWN, Facility, FilterSpecification

LABEL_FIELDS = ("facility_type_label", "facility_owner", "facility_affiliation")
INDEXED_FIELDS = ("governorate", "facility_status") + LABEL_FIELDS
SEARCH_FIELDS = ("facility_name", "establishment_name")
_LOGICAL_METHODS = frozenset({"or", "and"})


def _collapse(value: Any) -> str:
    return " ".join(str(value).split()) if value is not None else ""


@dataclass(frozen=True)
class QueryConstraint:
    method: str
    attribute: str | None = None
    values: tuple[Any, ...] = ()

    @classmethod
    def equal(cls, attribute: str, values: Iterable[Any]) -> QueryConstraint:
        return cls("equal", attribute, tuple(sorted(values, key=str)))

    @classmethod
    def search(cls, attribute: str, term: str) -> QueryConstraint:
        return cls("search", attribute, (term,))

    @classmethod
    def any_of(cls, constraints: Iterable[QueryConstraint]) -> QueryConstraint:
        children = tuple(constraints)
        if len(children) == 1:
            return children[0]
        return cls("or", None, children)

    @classmethod
    def all_of(cls, constraints: Iterable[QueryConstraint]) -> QueryConstraint:
        children = tuple(constraints)
        if len(children) == 1:
            return children[0]
        return cls("and", None, children)

    @classmethod
    def is_null(cls, attribute: str) -> QueryConstraint:
        return cls("isNull", attribute)

    @classmethod
    def limit(cls, value: int) -> QueryConstraint:
        return cls("limit", None, (value,))

    @classmethod
    def cursor_after(cls, document_id: str) -> QueryConstraint:
        return cls("cursorAfter", None, (document_id,))

    @classmethod
    def order_desc(cls, attribute: str) -> QueryConstraint:
        return cls("orderDesc", attribute)

    @classmethod
    def order_asc(cls, attribute: str) -> QueryConstraint:
        return cls("orderAsc", attribute)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"method": self.method}
        if self.attribute is not None:
            payload["attribute"] = self.attribute
        if self.method in _LOGICAL_METHODS:
            payload["values"] = [child.to_dict() for child in self.values]
        elif self.values:
            payload["values"] = list(self.values)
        return payload

    def to_query_string(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def _equal(document: Mapping[str, Any], constraint: QueryConstraint) -> bool:
    value = document.get(constraint.attribute or "")
    if isinstance(value, list):
        return any(item in constraint.values for item in value)
    return value in constraint.values


def _search(document: Mapping[str, Any], constraint: QueryConstraint) -> bool:
    value = document.get(constraint.attribute or "")
    if not isinstance(value, str) or not constraint.values:
        return False
    return _collapse(constraint.values[0]).lower() in _collapse(value).lower()


def _or(document: Mapping[str, Any], constraint: QueryConstraint) -> bool:
    return any(matches_constraint(document, child) for child in constraint.values)


def _and(document: Mapping[str, Any], constraint: QueryConstraint) -> bool:
    return all(matches_constraint(document, child) for child in constraint.values)


def _is_null(document: Mapping[str, Any], constraint: QueryConstraint) -> bool:
    return document.get(constraint.attribute or "") is None


_PREDICATES = {"equal": _equal, "search": _search, "isNull": _is_null, "or": _or, "and": _and}


def matches_constraint(document: Mapping[str, Any], constraint: QueryConstraint) -> bool:
    if constraint.method in ("limit", "cursorAfter", "orderAsc", "orderDesc"):
        return True
    evaluate = _PREDICATES.get(constraint.method)
    if evaluate is None:
        raise ValueError(f"unsupported query method '{constraint.method}'")
    return evaluate(document, constraint)


def apply_constraints(document: Mapping[str, Any], constraints: Iterable[QueryConstraint]) -> bool:
    """Evaluate constraints against a raw document the way the backend does."""
    return all(matches_constraint(document, constraint) for constraint in constraints)


class RawValueIndex:
    """Raw spellings observed per canonical value, per logical field.

    Lets remote queries include every stored spelling that canonicalizes to a
    requested value (``hospital``, ``HOSPITAL ``, ...), not only the casings
    that can be guessed.
    """

    def __init__(self, values: Mapping[str, Mapping[str, frozenset[str]]] | None = None) -> None:
        self._values = {field: dict(items) for field, items in (values or {}).items()}

    @classmethod
    def from_documents(
        cls,
        documents: Iterable[Mapping[str, Any]],
        mapper: FacilityRecordMapper | None = None,
    ) -> RawValueIndex:
        mapper = mapper or DEFAULT_MAPPER
        engine = FilterEngine(mapper)
        collected: dict[str, dict[str, set[str]]] = defaultdict(lambda: defaultdict(set))
        for document in documents:
            for field in INDEXED_FIELDS:
                for key in mapper.field_keys(field):
                    raw = document.get(key)
                    if not isinstance(raw, str) or not raw.strip():
                        continue
                    collected[field][engine.canonical_value(field, raw)].add(raw)
        return cls(
            {field: {canonical: frozenset(raws) for canonical, raws in items.items()} for field, items in collected.items()}
        )

    def variants(self, field: str, canonical: str) -> frozenset[str]:
        return self._values.get(field, {}).get(canonical, frozenset())

    def __len__(self) -> int:
        return sum(len(items) for items in self._values.values())


class FilterEngine:
    def __init__(self, mapper: FacilityRecordMapper | None = None) -> None:
        self._mapper = mapper or DEFAULT_MAPPER
        self._canonicalizer = self._mapper.canonicalizer
        self._status = self._mapper.status_normalizer

    def canonical_value(self, field: str, value: Any) -> str:
        if field == "facility_status":
            return self._status.normalize(value)
        if field in LABEL_FIELDS:
            return self._canonicalizer.canonicalize(value)
        return _collapse(value)

    def matches(self, facility: Facility, spec: FilterSpecification) -> bool:
        governorate = _collapse(spec.governorate)
        if governorate and facility.governorate != governorate:
            return False
        for field, members in self._multi_value_constraints(spec):
            if not members:
                continue
            current = self.canonical_value(field, getattr(facility, field))
            if current not in {self.canonical_value(field, member) for member in members}:
                return False
        term = _collapse(spec.normalized_search)
        if term:
            names = (facility.facility_name.lower(), facility.establishment_name.lower())
            if not any(term in name for name in names):
                return False
        return True

    def compile(self, spec: FilterSpecification, index: RawValueIndex | None = None) -> list[QueryConstraint]:
        constraints: list[QueryConstraint] = []
        governorate = _collapse(spec.governorate)
        if governorate:
            # stored values are compared exactly; cover the usual edge padding
            governorate_values = {governorate, spec.governorate, f" {governorate}", f"{governorate} ", f" {governorate} "}
            if index is not None:
                governorate_values |= index.variants("governorate", governorate)
            constraints.append(self._over_aliases("governorate", governorate_values))
        for field, members in self._multi_value_constraints(spec):
            if not members:
                continue
            values: set[str] = set()
            for member in members:
                values |= self._raw_values(field, member, index)
            constraint = self._over_aliases(field, values)
            if field == "facility_status" and STATUS_UNKNOWN in {self.canonical_value(field, m) for m in members}:
                # a document without any status key reads back as unknown too
                constraint = QueryConstraint.any_of([constraint, self._all_aliases_null(field)])
            constraints.append(constraint)
        term = _collapse(spec.normalized_search)
        if term:
            constraints.append(
                QueryConstraint.any_of(
                    QueryConstraint.search(key, term)
                    for field in SEARCH_FIELDS
                    for key in self._mapper.field_keys(field)
                )
            )
        return constraints

    def _raw_values(self, field: str, member: str, index: RawValueIndex | None) -> set[str]:
        canonical = self.canonical_value(field, member)
        if field == "facility_status":
            values = set(self._status.raw_variants(canonical))
        else:
            values = set(self._canonicalizer.casing_variants(member)) | {canonical}
        values.add(member)
        if index is not None:
            values |= index.variants(field, canonical)
        values = {value for value in values if value}
        if field == "facility_status" and canonical == STATUS_UNKNOWN:
            # blank statuses are stored as "" and read back as unknown
            values.add("")
        return values

    def _over_aliases(self, field: str, values: set[str]) -> QueryConstraint:
        return QueryConstraint.any_of(QueryConstraint.equal(key, values) for key in self._mapper.field_keys(field))

    def _all_aliases_null(self, field: str) -> QueryConstraint:
        return QueryConstraint.all_of(QueryConstraint.is_null(key) for key in self._mapper.field_keys(field))

    @staticmethod
    def _multi_value_constraints(spec: FilterSpecification) -> tuple[tuple[str, frozenset[str]], ...]:
        return (
            ("facility_status", spec.statuses),
            ("facility_type_label", spec.facility_types),
            ("facility_owner", spec.owners),
            ("facility_affiliation", spec.affiliations),
        )


DEFAULT_FILTER_ENGINE = FilterEngine()


def matches_filter(facility: Facility, spec: FilterSpecification) -> bool:
    return DEFAULT_FILTER_ENGINE.matches(facility, spec)


def compile_filter(spec: FilterSpecification, index: RawValueIndex | None = None) -> list[QueryConstraint]:
    return DEFAULT_FILTER_ENGINE.compile(spec, index)


def filter_facilities(facilities: Iterable[Facility], spec: FilterSpecification) -> list[Facility]:
    return [facility for facility in facilities if matches_filter(facility, spec)]
