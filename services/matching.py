"""
Rank every active lender product for one applicant.

Each product is judged by the eligibility evaluator; the requested amount and the
applicant's country are checked here because they belong to the product, not its rules.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from schemas.canonical import Lender, LenderProduct
from schemas.eligibility import ApplicantProfile, Eligible, Indeterminate, Ineligible, ProductMatch
from schemas.enums import CountryOffered, LifecycleStatus
from services.canonical import to_applicant_profile
from services.eligibility import evaluate_eligibility

logger = logging.getLogger(__name__)

_KIND_ORDER = {"eligible": 0, "indeterminate": 1, "ineligible": 2}


def _product_reasons(
    product: LenderProduct, requested_amount: Optional[float], country: Optional[CountryOffered]
) -> list[str]:
    reasons: list[str] = []
    if requested_amount is not None:
        low, high = product.amount_range.min, product.amount_range.max
        if (low is not None and requested_amount < low) or (high is not None and requested_amount > high):
            reasons.append("amount_outside_range")
    if country is not None and product.country_offered is not None and product.country_offered != country:
        reasons.append("country_not_offered")
    return reasons


def _with_product_reasons(
    verdict: Eligible | Ineligible | Indeterminate, extra: list[str]
) -> Eligible | Ineligible | Indeterminate:
    if not extra:
        return verdict
    common = {
        "advisories": verdict.advisories,
        "advanced_logic": verdict.advanced_logic,
        "requires_manual_review": verdict.requires_manual_review,
    }
    if isinstance(verdict, Ineligible):
        return Ineligible(reasons=[*verdict.reasons, *extra], missing_fields=verdict.missing_fields, **common)
    missing = verdict.missing_fields if isinstance(verdict, Indeterminate) else []
    return Ineligible(reasons=extra, missing_fields=missing, **common)


def _sort_key(match: ProductMatch) -> tuple:
    verdict = match.verdict
    weight = len(getattr(verdict, "reasons", [])) + len(getattr(verdict, "missing_fields", []))
    return (_KIND_ORDER[verdict.kind], weight, (match.product_name or "").lower())


def match_products(
    profile: ApplicantProfile | dict[str, Any] | None,
    products: Iterable[LenderProduct],
    lenders: Optional[dict[str, Lender]] = None,
    requested_amount: Optional[float] = None,
    country: Optional[CountryOffered] = None,
) -> list[ProductMatch]:
    """
    Evaluate all active products (of active lenders, when lenders are given) and rank them:
    eligible first, then indeterminate, then ineligible; fewer problems first within a group.
    """
    if not isinstance(profile, ApplicantProfile):
        profile = to_applicant_profile(profile or {})
    lenders = lenders or {}

    matches: list[ProductMatch] = []
    for product in products:
        if product.status != LifecycleStatus.ACTIVE:
            continue
        lender = lenders.get(product.lender_id) if product.lender_id else None
        if lender is not None and lender.status != LifecycleStatus.ACTIVE:
            continue
        verdict = evaluate_eligibility(profile, product.rules)
        verdict = _with_product_reasons(verdict, _product_reasons(product, requested_amount, country))
        matches.append(
            ProductMatch(
                product_id=product.id,
                product_name=product.name,
                lender_id=product.lender_id,
                lender_name=lender.name if lender else None,
                category=product.category.value if product.category else None,
                verdict=verdict,
            )
        )

    matches.sort(key=_sort_key)
    logger.info(
        f"Matched applicant against {len(matches)} products: "
        f"{sum(1 for m in matches if m.verdict.kind == 'eligible')} eligible"
    )
    return matches
