"""Eligibility rules deciding which catalog items enter the branding pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from config import DarkroomSettings
from core import CatalogItem, EligibilityVerdict, PreflightItem


@dataclass(frozen=True)
class EligibilityRules:
    """Tag vocabulary for the rules; defaults match the live catalog."""

    excluded_source_tag: str = "source:printify"
    excluded_source_label: str = "Printify"
    excluded_department_tag: str = "dept:wardrobe"
    excluded_department_label: str = "Wardrobe"
    required_source_tag: str = "source:faire"
    required_department_tag: str = "dept:objects"

    @classmethod
    def from_settings(cls, settings: DarkroomSettings) -> "EligibilityRules":
        return cls(
            excluded_source_tag=settings.excluded_source_tag,
            excluded_source_label=_label_from_tag(settings.excluded_source_tag),
            excluded_department_tag=settings.excluded_department_tag,
            excluded_department_label=_label_from_tag(settings.excluded_department_tag),
            required_source_tag=settings.required_source_tag,
            required_department_tag=settings.required_department_tag,
        )


def _label_from_tag(tag: str) -> str:
    # "source:printify" -> "Printify"
    value = str(tag or "").split(":", 1)[-1].strip()
    return value[:1].upper() + value[1:]


DEFAULT_RULES = EligibilityRules()


def evaluate(item: CatalogItem, rules: Optional[EligibilityRules] = None) -> EligibilityVerdict:
    """First failing rule wins; an item failing several rules gets one reason."""
    r = rules or DEFAULT_RULES
    tags = set(item.tags)

    if r.excluded_source_tag in tags:
        return EligibilityVerdict.skip(f"{r.excluded_source_label} product")
    if r.excluded_department_tag in tags:
        return EligibilityVerdict.skip(f"{r.excluded_department_label} product")
    if r.required_source_tag not in tags:
        return EligibilityVerdict.skip(f"Missing {r.required_source_tag} tag")
    if r.required_department_tag not in tags:
        return EligibilityVerdict.skip(f"Missing {r.required_department_tag} tag")
    if item.image_count == 0:
        return EligibilityVerdict.skip("No images")
    return EligibilityVerdict.eligible()


def preflight(items: Iterable[CatalogItem], rules: Optional[EligibilityRules] = None) -> List[PreflightItem]:
    rows: List[PreflightItem] = []
    for item in items:
        verdict = evaluate(item, rules)
        rows.append(
            PreflightItem(
                id=item.id,
                handle=item.handle,
                title=item.title,
                tags=list(item.tags),
                image_count=item.image_count,
                will_process=verdict.will_process,
                skip_reason=verdict.skip_reason,
            )
        )
    return rows


def preflight_summary(rows: List[PreflightItem]) -> Dict[str, int]:
    will_process = sum(1 for row in rows if row.will_process)
    return {
        "total": len(rows),
        "will_process": will_process,
        "will_skip": len(rows) - will_process,
    }
