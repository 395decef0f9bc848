import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.common import (
    CATALOG_ERRORS,
    change_status,
    flush_versioned,
    get_product_or_404,
    parse_status,
    product_to_response,
    to_http_error,
    update_product,
)
from database import get_db
from models import LenderProduct
from schemas.enums import CATEGORY_LABELS, LifecycleStatus, ProductCategory, normalize_category
from services.canonical import to_applicant_profile
from services.catalog import product_from_row
from services.eligibility import evaluate_eligibility

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lender-products", tags=["lender-products"])


@router.get("", response_model=list[dict])
async def list_products(
    lender_id: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
    include_purged: bool = False,
    db: AsyncSession = Depends(get_db),
):
    query = select(LenderProduct).order_by(LenderProduct.name)
    if lender_id:
        query = query.where(LenderProduct.lender_id == lender_id)
    if category:
        resolved = normalize_category(category)
        if resolved is None:
            raise HTTPException(status_code=400, detail=f"Unknown category '{category}'")
        query = query.where(LenderProduct.category == resolved.value)
    wanted = parse_status(status)
    if wanted is not None:
        query = query.where(LenderProduct.status == wanted.value)
    elif not include_purged:
        query = query.where(LenderProduct.status != LifecycleStatus.PURGED_PENDING_DELETION.value)
    result = await db.execute(query)
    return [product_to_response(p) for p in result.scalars().all()]


@router.get("/categories", response_model=list[dict])
async def list_categories():
    """Category vocabulary for the product form."""
    return [{"value": c.value, "label": CATEGORY_LABELS[c]} for c in ProductCategory]


@router.get("/{product_id}", response_model=dict)
async def get_product(product_id: str, db: AsyncSession = Depends(get_db)):
    return product_to_response(await get_product_or_404(db, product_id))


@router.patch("/{product_id}", response_model=dict)
async def patch_product(
    product_id: str, body: dict[str, Any] = Body(...), db: AsyncSession = Depends(get_db)
):
    """Partial update from a raw body in any supported shape; must carry the version it was read at."""
    product = await get_product_or_404(db, product_id)
    try:
        update_product(product, body)
    except CATALOG_ERRORS as e:
        raise to_http_error(e) from e
    await flush_versioned(db, product)
    logger.info(f"Updated product {product.id} to version {product.version}")
    return product_to_response(product)


@router.post("/{product_id}/deactivate", response_model=dict)
async def deactivate_product(
    product_id: str, body: Optional[dict[str, Any]] = Body(None), db: AsyncSession = Depends(get_db)
):
    return await _apply_action(db, product_id, "deactivate", body)


@router.post("/{product_id}/reactivate", response_model=dict)
async def reactivate_product(
    product_id: str, body: Optional[dict[str, Any]] = Body(None), db: AsyncSession = Depends(get_db)
):
    return await _apply_action(db, product_id, "reactivate", body)


@router.delete("/{product_id}", response_model=dict)
async def delete_product(
    product_id: str, version: Optional[int] = Query(None), db: AsyncSession = Depends(get_db)
):
    """Soft delete: the product is marked purged_pending_deletion and hidden from lists."""
    return await _apply_action(db, product_id, "purge", {"version": version})


@router.post("/{product_id}/evaluate", response_model=dict)
async def evaluate_product(
    product_id: str, body: Optional[dict[str, Any]] = Body(None), db: AsyncSession = Depends(get_db)
):
    """Evaluate one applicant (raw profile in any supported shape) against this product's rules."""
    row = await get_product_or_404(db, product_id)
    product = product_from_row(row)
    profile = to_applicant_profile(body or {})
    verdict = evaluate_eligibility(profile, product.rules)
    return {
        "productId": product.id,
        "applicant": profile.model_dump(by_alias=True, mode="json"),
        "verdict": verdict.model_dump(by_alias=True, mode="json"),
    }


async def _apply_action(
    db: AsyncSession, product_id: str, action: str, body: Optional[dict[str, Any]]
) -> dict[str, Any]:
    product = await get_product_or_404(db, product_id)
    try:
        change_status(product, action, body)
    except CATALOG_ERRORS as e:
        raise to_http_error(e) from e
    await flush_versioned(db, product)
    logger.info(f"Product {product.id} {action}: now {product.status}")
    return product_to_response(product)
