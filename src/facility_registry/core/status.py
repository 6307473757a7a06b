from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from facility_registry.core.models import (
    CANONICAL_STATUSES,
    STATUS_NOT_OPERATIONAL,
    STATUS_OPERATIONAL,
    STATUS_PARTIALLY_OPERATIONAL,
    STATUS_UNKNOWN,
)

UNREACHABLE_SECURITY_AR = "تعمل ولكن لا يمكن الوصول اليه بسبب الوضع الأمني"
UNREACHABLE_OTHER_AR = "تعمل ولكن لا يمكن الوصول اليه لسبب أخر (يرجى التحديد)"
UNREACHABLE_SECURITY_EN = "operational (unreachable due to security)"
UNREACHABLE_OTHER_EN = "operational (unreachable for another reason)"

_DEFAULT_TABLE: dict[str, str] = {
    "تعمل": STATUS_OPERATIONAL,
    "عاملة": STATUS_OPERATIONAL,
    UNREACHABLE_SECURITY_AR: STATUS_OPERATIONAL,
    UNREACHABLE_OTHER_AR: STATUS_OPERATIONAL,
    "متوقفة جزئياً": STATUS_PARTIALLY_OPERATIONAL,
    "تعمل بشكل جزئي": STATUS_PARTIALLY_OPERATIONAL,
    "تعمل جزئياً": STATUS_PARTIALLY_OPERATIONAL,
    "لا تعمل": STATUS_NOT_OPERATIONAL,
    "غير عاملة": STATUS_NOT_OPERATIONAL,
    "operational": STATUS_OPERATIONAL,
    "active": STATUS_OPERATIONAL,
    UNREACHABLE_SECURITY_EN: STATUS_OPERATIONAL,
    UNREACHABLE_OTHER_EN: STATUS_OPERATIONAL,
    "partially operational": STATUS_PARTIALLY_OPERATIONAL,
    "partially_operational": STATUS_PARTIALLY_OPERATIONAL,
    "not operational": STATUS_NOT_OPERATIONAL,
    "not_operational": STATUS_NOT_OPERATIONAL,
    "inactive": STATUS_NOT_OPERATIONAL,
}

_DEFAULT_FALLBACK_KEYWORDS = frozenset({"inactive", "suspended", "pending", "not operational"})

_DEFAULT_DISPLAY: dict[str, dict[str, str]] = {
    "en": {
        STATUS_OPERATIONAL: "Operational",
        STATUS_PARTIALLY_OPERATIONAL: "Partially operational",
        STATUS_NOT_OPERATIONAL: "Not operational",
        STATUS_UNKNOWN: "Unknown",
    },
    "ar": {
        STATUS_OPERATIONAL: "عاملة",
        STATUS_PARTIALLY_OPERATIONAL: "تعمل جزئياً",
        STATUS_NOT_OPERATIONAL: "غير عاملة",
        STATUS_UNKNOWN: "غير معروفة",
    },
}

_DEFAULT_DETAIL: dict[str, dict[str, str]] = {
    "en": {
        UNREACHABLE_SECURITY_AR: "Operational (unreachable due to security)",
        UNREACHABLE_OTHER_AR: "Operational (unreachable for another reason)",
        UNREACHABLE_SECURITY_EN: "Operational (unreachable due to security)",
        UNREACHABLE_OTHER_EN: "Operational (unreachable for another reason)",
    },
    "ar": {
        UNREACHABLE_SECURITY_AR: "عاملة (يتعذر الوصول بسبب الوضع الأمني)",
        UNREACHABLE_OTHER_AR: "عاملة (يتعذر الوصول لسبب آخر)",
        UNREACHABLE_SECURITY_EN: "عاملة (يتعذر الوصول بسبب الوضع الأمني)",
        UNREACHABLE_OTHER_EN: "عاملة (يتعذر الوصول لسبب آخر)",
    },
}

_DEFAULT_BACKEND_VALUES: dict[str, str] = {
    STATUS_OPERATIONAL: "تعمل",
    STATUS_PARTIALLY_OPERATIONAL: "تعمل بشكل جزئي",
    STATUS_NOT_OPERATIONAL: "لا تعمل",
    STATUS_UNKNOWN: "",
}


def _collapse(value: object) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split())


def _casings(value: str) -> set[str]:
    return {value, value.lower(), value.upper(), value.capitalize(), value.title()}


@dataclass(frozen=True)
class StatusVocabulary:
    """Lookup tables for one registry's status strings.

    ``table`` maps known raw strings onto canonical tokens. Strings absent from
    the table but listed in ``fallback_keywords`` (compared lowercased) count
    as not operational; everything else is unknown.
    """

    table: Mapping[str, str] = field(default_factory=lambda: MappingProxyType(dict(_DEFAULT_TABLE)))
    fallback_keywords: frozenset[str] = _DEFAULT_FALLBACK_KEYWORDS
    display_labels: Mapping[str, Mapping[str, str]] = field(
        default_factory=lambda: MappingProxyType({k: MappingProxyType(v) for k, v in _DEFAULT_DISPLAY.items()})
    )
    detail_labels: Mapping[str, Mapping[str, str]] = field(
        default_factory=lambda: MappingProxyType({k: MappingProxyType(v) for k, v in _DEFAULT_DETAIL.items()})
    )
    backend_values: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(_DEFAULT_BACKEND_VALUES))
    )
    default_locale: str = "en"

    def __post_init__(self) -> None:
        unsupported = sorted(set(self.table.values()) - set(CANONICAL_STATUSES))
        if unsupported:
            raise ValueError(f"unsupported canonical statuses: {', '.join(unsupported)}")


DEFAULT_STATUS_VOCABULARY = StatusVocabulary()


class StatusNormalizer:
    def __init__(self, vocabulary: StatusVocabulary | None = None) -> None:
        self._vocabulary = vocabulary or DEFAULT_STATUS_VOCABULARY
        self._exact = {_collapse(key): value for key, value in self._vocabulary.table.items()}
        self._folded = {key.lower(): value for key, value in self._exact.items()}
        self._keywords = frozenset(_collapse(word).lower() for word in self._vocabulary.fallback_keywords)

    @property
    def vocabulary(self) -> StatusVocabulary:
        return self._vocabulary

    def normalize(self, raw: object) -> str:
        key = _collapse(raw)
        if not key:
            return STATUS_UNKNOWN
        if key in CANONICAL_STATUSES:
            return key
        matched = self._exact.get(key) or self._folded.get(key.lower())
        if matched:
            return matched
        if key.lower() in self._keywords:
            return STATUS_NOT_OPERATIONAL
        return STATUS_UNKNOWN

    def display(self, canonical: str, locale: str | None = None) -> str:
        token = canonical if canonical in CANONICAL_STATUSES else self.normalize(canonical)
        labels = self._labels(self._vocabulary.display_labels, locale)
        return labels.get(token, token)

    def describe(self, raw: object, locale: str | None = None) -> str:
        """Human label that keeps detail the canonical token drops."""
        key = _collapse(raw)
        if not key:
            return ""
        details = self._labels(self._vocabulary.detail_labels, locale)
        detail = details.get(key) or details.get(key.lower())
        if detail:
            return detail
        token = self.normalize(key)
        if token == STATUS_UNKNOWN:
            return key
        return self.display(token, locale)

    def backend_value(self, canonical: str) -> str:
        return self._vocabulary.backend_values.get(canonical, "")

    def raw_variants(self, canonical: str) -> frozenset[str]:
        token = self.normalize(canonical)
        if token == STATUS_UNKNOWN:
            return frozenset({STATUS_UNKNOWN, _collapse(canonical)} - {""})
        variants: set[str] = {token}
        for key, value in self._exact.items():
            if value == token:
                variants |= _casings(key)
        if token == STATUS_NOT_OPERATIONAL:
            for keyword in self._keywords:
                variants |= _casings(keyword)
        return frozenset(variants)

    def is_operational(self, status: str) -> bool:
        return self.normalize(status) == STATUS_OPERATIONAL

    def is_partially_operational(self, status: str) -> bool:
        return self.normalize(status) == STATUS_PARTIALLY_OPERATIONAL

    def is_not_operational(self, status: str) -> bool:
        return self.normalize(status) == STATUS_NOT_OPERATIONAL

    def is_unknown(self, status: str) -> bool:
        return self.normalize(status) == STATUS_UNKNOWN

    def _labels(self, tables: Mapping[str, Mapping[str, str]], locale: str | None) -> Mapping[str, str]:
        chosen = (locale or self._vocabulary.default_locale).lower()
        return tables.get(chosen) or tables.get(self._vocabulary.default_locale) or {}


DEFAULT_STATUS_NORMALIZER = StatusNormalizer()


def normalize_status(raw: object) -> str:
    return DEFAULT_STATUS_NORMALIZER.normalize(raw)


def display_status(canonical: str, locale: str | None = None) -> str:
    return DEFAULT_STATUS_NORMALIZER.display(canonical, locale)
