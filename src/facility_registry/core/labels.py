from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LabelCanonicalizer:
    """Collapses free-text classification labels onto one display form.

    Short tokens and codes (``MOH``, ``UN-OCHA``) are uppercased; anything
    longer is title-cased word by word. Internal runs of whitespace are
    collapsed, so ``" MINISTRY  OF  HEALTH "`` and ``"ministry of health"``
    canonicalize identically.
    """

    acronym_max_length: int = 5
    code_markers: tuple[str, ...] = ("-",)

    def __call__(self, raw: object) -> str:
        return self.canonicalize(raw)

    def canonicalize(self, raw: object) -> str:
        if raw is None:
            return ""
        words = str(raw).split()
        if not words:
            return ""
        collapsed = " ".join(words)
        if len(collapsed) <= self.acronym_max_length or any(marker in collapsed for marker in self.code_markers):
            return collapsed.upper()
        return " ".join(word[:1].upper() + word[1:].lower() for word in words)

    def same_label(self, left: object, right: object) -> bool:
        return self.canonicalize(left) == self.canonicalize(right)

    def casing_variants(self, value: str) -> frozenset[str]:
        collapsed = " ".join(value.split())
        if not collapsed:
            return frozenset()
        return frozenset(
            {
                collapsed,
                collapsed.lower(),
                collapsed.upper(),
                self.canonicalize(collapsed),
            }
        )


DEFAULT_CANONICALIZER = LabelCanonicalizer()


def canonicalize(raw: object) -> str:
    return DEFAULT_CANONICALIZER.canonicalize(raw)
