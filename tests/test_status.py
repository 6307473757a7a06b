import pytest

from facility_registry.core.models import CANONICAL_STATUSES
from facility_registry.core.status import (
    UNREACHABLE_SECURITY_AR,
    StatusNormalizer,
    StatusVocabulary,
    display_status,
    normalize_status,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("تعمل", "operational"),
        (UNREACHABLE_SECURITY_AR, "operational"),
        ("Active", "operational"),
        (" operational ", "operational"),
        ("متوقفة جزئياً", "partially_operational"),
        ("تعمل بشكل جزئي", "partially_operational"),
        ("Partially Operational", "partially_operational"),
        ("لا تعمل", "not_operational"),
        ("SUSPENDED", "not_operational"),
        ("pending", "not_operational"),
        ("under rehabilitation", "unknown"),
        ("", "unknown"),
        (None, "unknown"),
    ],
)
def test_normalize_status(raw, expected) -> None:
    assert normalize_status(raw) == expected


def test_canonical_tokens_pass_through() -> None:
    for token in CANONICAL_STATUSES:
        assert normalize_status(token) == token


def test_exactly_one_predicate_holds_for_known_statuses() -> None:
    normalizer = StatusNormalizer()
    for token in CANONICAL_STATUSES:
        flags = [
            normalizer.is_operational(token),
            normalizer.is_partially_operational(token),
            normalizer.is_not_operational(token),
        ]
        if token == "unknown":
            assert flags == [False, False, False]
            assert normalizer.is_unknown(token)
        else:
            assert flags.count(True) == 1


def test_display_and_detail_labels() -> None:
    normalizer = StatusNormalizer()
    assert display_status("operational") == "Operational"
    assert normalizer.display("not_operational", "ar") == "غير عاملة"
    assert normalizer.display("partially_operational", "fr") == "Partially operational"
    assert normalizer.describe(UNREACHABLE_SECURITY_AR) == "Operational (unreachable due to security)"
    assert normalizer.describe("تعمل") == "Operational"
    assert normalizer.describe("under rehabilitation") == "under rehabilitation"
    assert normalizer.describe("") == ""


def test_raw_variants_include_every_bucket_spelling() -> None:
    normalizer = StatusNormalizer()
    operational = normalizer.raw_variants("operational")
    assert {"تعمل", UNREACHABLE_SECURITY_AR, "active", "Active", "operational"} <= operational
    not_operational = normalizer.raw_variants("not_operational")
    assert {"لا تعمل", "suspended", "Suspended", "inactive"} <= not_operational
    assert normalizer.raw_variants("unknown") == frozenset({"unknown"})


def test_backend_value_per_bucket() -> None:
    normalizer = StatusNormalizer()
    assert normalizer.backend_value("operational") == "تعمل"
    assert normalizer.backend_value("partially_operational") == "تعمل بشكل جزئي"
    assert normalizer.backend_value("unknown") == ""


def test_injected_vocabulary_replaces_defaults() -> None:
    vocabulary = StatusVocabulary(table={"open": "operational", "closed": "not_operational"}, fallback_keywords=frozenset())
    normalizer = StatusNormalizer(vocabulary)
    assert normalizer.normalize("OPEN") == "operational"
    assert normalizer.normalize("تعمل") == "unknown"
    assert normalizer.normalize("suspended") == "unknown"


def test_vocabulary_rejects_unsupported_tokens() -> None:
    with pytest.raises(ValueError):
        StatusVocabulary(table={"open": "running"})
