import logging
import uuid
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.common import (
    CATALOG_ERRORS,
    apply_columns,
    change_status,
    ensure_editable,
    ensure_unique_lender_name,
    flush_versioned,
    get_lender_or_404,
    get_product_or_404,
    lender_name_taken,
    lender_to_response,
    new_product_id,
    parse_status,
    product_to_response,
    slug_to_id,
    to_http_error,
    update_product,
)
from database import get_db
from models import Lender, LenderProduct
from schemas.canonical import MissingIdentity
from schemas.enums import LifecycleStatus
from services.canonical import to_canonical_lender, to_canonical_product
from services.catalog import (
    CatalogValidationError,
    build_lender,
    build_product,
    check_version,
    lender_columns,
    merge_lender,
    product_columns,
    requested_status,
    validate_lender,
    validate_product,
)
from services.reconciliation import LENDER_NAME, aliases, reconcile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lenders", tags=["lenders"])

# Products embedded in a lender record (create and bulk import)
NESTED_PRODUCTS = aliases("products", "programs", "lender_products")

PURGED = LifecycleStatus.PURGED_PENDING_DELETION.value


def _nested_products(raw: dict[str, Any]) -> list[Any]:
    products = reconcile(raw, NESTED_PRODUCTS)
    return products if isinstance(products, list) else []


async def _products_of(db: AsyncSession, lender_id: str, include_purged: bool = True) -> list[LenderProduct]:
    query = select(LenderProduct).where(LenderProduct.lender_id == lender_id).order_by(LenderProduct.name)
    if not include_purged:
        query = query.where(LenderProduct.status != PURGED)
    result = await db.execute(query)
    return list(result.scalars().all())


async def _purge_products(db: AsyncSession, lender_id: str) -> None:
    """Purging a lender purges every product it still offers."""
    for product in await _products_of(db, lender_id, include_purged=False):
        product.status = PURGED


def _add_product(db: AsyncSession, lender_id: str, raw: dict[str, Any]) -> LenderProduct:
    product = build_product(raw, new_product_id(lender_id), lender_id)
    if product.status == LifecycleStatus.PURGED_PENDING_DELETION:
        raise CatalogValidationError("A new product cannot start purged")
    row = LenderProduct(id=product.id, status=product.status.value, **product_columns(product))
    db.add(row)
    return row


@router.get("", response_model=list[dict])
async def list_lenders(
    status: Optional[str] = None,
    search: Optional[str] = None,
    include_purged: bool = False,
    db: AsyncSession = Depends(get_db),
):
    query = select(Lender).order_by(Lender.name)
    wanted = parse_status(status)
    if wanted is not None:
        query = query.where(Lender.status == wanted.value)
    elif not include_purged:
        query = query.where(Lender.status != PURGED)
    if search and search.strip():
        query = query.where(Lender.name.ilike(f"%{search.strip()}%"))
    result = await db.execute(query)
    return [lender_to_response(l) for l in result.scalars().all()]


@router.get("/{lender_id}", response_model=dict)
async def get_lender(lender_id: str, db: AsyncSession = Depends(get_db)):
    return lender_to_response(await get_lender_or_404(db, lender_id))


@router.post("", response_model=dict, status_code=201)
async def create_lender(body: dict[str, Any] = Body(...), db: AsyncSession = Depends(get_db)):
    """
    Create a lender from a raw body in any supported shape (legacy snake_case, v1 camelCase, nested).
    Products listed under `products` are created with it.
    """
    name = reconcile(body, LENDER_NAME, "text") or ""
    lender_id = slug_to_id(name)
    if await db.get(Lender, lender_id) is not None:
        lender_id = f"{lender_id}-{uuid.uuid4().hex[:6]}"
    try:
        lender = build_lender(body, lender_id)
        if lender.status == LifecycleStatus.PURGED_PENDING_DELETION:
            raise CatalogValidationError("A new lender cannot start purged")
    except CatalogValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    await ensure_unique_lender_name(db, lender.name)

    row = Lender(id=lender.id, status=lender.status.value, **lender_columns(lender))
    db.add(row)
    await db.flush()
    try:
        for raw_product in _nested_products(body):
            _add_product(db, lender.id, raw_product if isinstance(raw_product, dict) else {})
    except CatalogValidationError as e:
        raise HTTPException(status_code=400, detail=f"Product: {e}")
    await db.flush()
    logger.info(f"Created lender {row.id}")
    return lender_to_response(row)


@router.patch("/{lender_id}", response_model=dict)
async def update_lender(lender_id: str, body: dict[str, Any] = Body(...), db: AsyncSession = Depends(get_db)):
    """Partial update from a raw body; `version` must match the stored version."""
    row = await get_lender_or_404(db, lender_id)
    try:
        ensure_editable(row)
        check_version(body, row.version)
        status = requested_status(body, row.status)
        lender = merge_lender(row, body)
    except CATALOG_ERRORS as e:
        raise to_http_error(e) from e
    await ensure_unique_lender_name(db, lender.name, row.id)

    apply_columns(row, lender_columns(lender))
    row.status = status.value
    if status == LifecycleStatus.PURGED_PENDING_DELETION:
        await _purge_products(db, row.id)
    await flush_versioned(db, row)
    logger.info(f"Updated lender {row.id} to version {row.version}")
    return lender_to_response(row)


@router.post("/{lender_id}/deactivate", response_model=dict)
async def deactivate_lender(
    lender_id: str, body: Optional[dict[str, Any]] = Body(None), db: AsyncSession = Depends(get_db)
):
    """Deactivated lenders stay listed but their products are left out of matching."""
    return await _apply_action(db, lender_id, "deactivate", body)


@router.post("/{lender_id}/reactivate", response_model=dict)
async def reactivate_lender(
    lender_id: str, body: Optional[dict[str, Any]] = Body(None), db: AsyncSession = Depends(get_db)
):
    return await _apply_action(db, lender_id, "reactivate", body)


@router.delete("/{lender_id}", response_model=dict)
async def delete_lender(
    lender_id: str, version: Optional[int] = Query(None), db: AsyncSession = Depends(get_db)
):
    """Soft delete: lender and products move to purged_pending_deletion."""
    return await _apply_action(db, lender_id, "purge", {"version": version})


async def _apply_action(
    db: AsyncSession, lender_id: str, action: str, body: Optional[dict[str, Any]]
) -> dict[str, Any]:
    row = await get_lender_or_404(db, lender_id)
    try:
        change_status(row, action, body)
    except CATALOG_ERRORS as e:
        raise to_http_error(e) from e
    if action == "purge":
        await _purge_products(db, row.id)
    await flush_versioned(db, row)
    logger.info(f"Lender {row.id} {action}: now {row.status}")
    return lender_to_response(row)


@router.post("/import", response_model=dict)
async def import_lenders(body: list[Any] = Body(...), db: AsyncSession = Depends(get_db)):
    """
    Bulk upsert raw lender records of any historical shape, keyed by their own ids.
    Records without an id are reported as missing identity rather than given a new one.
    Each record may carry its products under `products` / `programs`.

    An existing record is replaced as a whole: columns the record omits are cleared, except
    the lifecycle status, which is kept unless the record carries `status` or `is_active`.
    Imports do not check `version`.
    """
    results: list[dict[str, Any]] = []
    counts = {"created": 0, "updated": 0, "skipped": 0, "rejected": 0}

    for index, record in enumerate(body):
        lender = to_canonical_lender(record)
        if isinstance(lender, MissingIdentity):
            counts["skipped"] += 1
            results.append({"index": index, "outcome": "skipped", "missingIdentity": lender.model_dump(by_alias=True)})
            continue
        try:
            validate_lender(lender)
        except CatalogValidationError as e:
            counts["rejected"] += 1
            results.append({"index": index, "id": lender.id, "outcome": "rejected", "error": str(e)})
            continue
        if await lender_name_taken(db, lender.name, lender.id):
            counts["rejected"] += 1
            results.append(
                {"index": index, "id": lender.id, "outcome": "rejected", "error": "Lender name already in use"}
            )
            continue

        row = await db.get(Lender, lender.id)
        if row is not None and row.status == PURGED:
            counts["rejected"] += 1
            results.append({"index": index, "id": lender.id, "outcome": "rejected", "error": "Lender is purged"})
            continue
        if row is None:
            db.add(Lender(id=lender.id, status=lender.status.value, **lender_columns(lender)))
            outcome = "created"
        else:
            status = requested_status(record, row.status)
            apply_columns(row, lender_columns(lender))
            row.status = status.value
            await flush_versioned(db, row)
            outcome = "updated"
        counts[outcome] += 1
        await db.flush()

        products = [await _import_product(db, lender.id, raw) for raw in _nested_products(record)]
        results.append({"index": index, "id": lender.id, "outcome": outcome, "products": products})

    await db.flush()
    logger.info(
        f"Imported {len(body)} lender records: {counts['created']} created, {counts['updated']} updated, "
        f"{counts['skipped']} without identity, {counts['rejected']} rejected"
    )
    return {**counts, "results": results}


async def _import_product(db: AsyncSession, lender_id: str, raw: Any) -> dict[str, Any]:
    product = to_canonical_product(raw)
    if isinstance(product, MissingIdentity):
        return {"outcome": "skipped", "missingIdentity": product.model_dump(by_alias=True)}
    if product.lender_id not in (None, lender_id):
        return {"id": product.id, "outcome": "rejected", "error": "Product belongs to another lender"}
    product.lender_id = lender_id
    try:
        validate_product(product, raw)
    except CatalogValidationError as e:
        return {"id": product.id, "outcome": "rejected", "error": str(e)}

    row = await db.get(LenderProduct, product.id)
    if row is not None and row.lender_id != lender_id:
        return {"id": product.id, "outcome": "rejected", "error": "Product belongs to another lender"}
    if row is not None and row.status == PURGED:
        return {"id": product.id, "outcome": "rejected", "error": "Product is purged"}
    if row is None:
        db.add(LenderProduct(id=product.id, status=product.status.value, **product_columns(product)))
        outcome = "created"
    else:
        status = requested_status(raw, row.status)
        apply_columns(row, product_columns(product))
        row.status = status.value
        await flush_versioned(db, row)
        outcome = "updated"
    await db.flush()
    return {"id": product.id, "outcome": outcome}


@router.get("/{lender_id}/products", response_model=list[dict])
async def list_lender_products(
    lender_id: str, include_purged: bool = False, db: AsyncSession = Depends(get_db)
):
    await get_lender_or_404(db, lender_id)
    return [product_to_response(p) for p in await _products_of(db, lender_id, include_purged)]


@router.post("/{lender_id}/products", response_model=dict, status_code=201)
async def create_lender_product(
    lender_id: str, body: dict[str, Any] = Body(...), db: AsyncSession = Depends(get_db)
):
    """Create a product; eligibility rules may be nested under `rules` or sent as flat fields."""
    lender = await get_lender_or_404(db, lender_id)
    try:
        ensure_editable(lender)
        product = _add_product(db, lender.id, body)
    except CATALOG_ERRORS as e:
        raise to_http_error(e) from e
    await db.flush()
    logger.info(f"Created product {product.id} for lender {lender.id}")
    return product_to_response(product)


@router.get("/{lender_id}/products/{product_id}", response_model=dict)
async def get_lender_product(lender_id: str, product_id: str, db: AsyncSession = Depends(get_db)):
    return product_to_response(await get_product_or_404(db, product_id, lender_id))


@router.patch("/{lender_id}/products/{product_id}", response_model=dict)
async def update_lender_product(
    lender_id: str, product_id: str, body: dict[str, Any] = Body(...), db: AsyncSession = Depends(get_db)
):
    product = await get_product_or_404(db, product_id, lender_id)
    try:
        update_product(product, body)
    except CATALOG_ERRORS as e:
        raise to_http_error(e) from e
    await flush_versioned(db, product)
    return product_to_response(product)
