"""Helpers shared by the lender and lender-product routers."""
import re
import uuid
from typing import Any, Optional

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from models import Lender, LenderProduct
from schemas.enums import LifecycleStatus
from services.catalog import (
    CatalogValidationError,
    StaleVersion,
    check_version,
    lender_from_row,
    merge_product,
    product_columns,
    product_from_row,
    requested_status,
)
from services.lifecycle import InvalidTransition, transition

MSG_LENDER_NOT_FOUND = "Lender not found"
MSG_PRODUCT_NOT_FOUND = "Product not found"

CATALOG_ERRORS = (CatalogValidationError, StaleVersion, InvalidTransition)


def lender_to_response(row: Lender) -> dict[str, Any]:
    return lender_from_row(row).model_dump(by_alias=True, mode="json")


def product_to_response(row: LenderProduct) -> dict[str, Any]:
    return product_from_row(row).model_dump(by_alias=True, mode="json")


def slug_to_id(name: str) -> str:
    """Readable id from a display name, e.g. 'Stearns Bank' -> 'stearns-bank'."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")[:48].rstrip("-")
    return slug or f"lender-{uuid.uuid4().hex[:8]}"


def new_product_id(lender_id: str) -> str:
    return f"{lender_id}-{uuid.uuid4().hex[:8]}"


def parse_status(value: Optional[str]) -> Optional[LifecycleStatus]:
    if value is None:
        return None
    try:
        return LifecycleStatus(value.strip().lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown status '{value}'")


def to_http_error(exc: Exception) -> HTTPException:
    """Translate catalog errors into the HTTP status the API promises."""
    if isinstance(exc, StaleVersion):
        return HTTPException(
            status_code=409,
            detail={"message": str(exc), "currentVersion": exc.current},
        )
    if isinstance(exc, InvalidTransition):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


async def get_lender_or_404(db: AsyncSession, lender_id: str) -> Lender:
    result = await db.execute(select(Lender).where(Lender.id == lender_id))
    lender = result.scalar_one_or_none()
    if not lender:
        raise HTTPException(status_code=404, detail=MSG_LENDER_NOT_FOUND)
    return lender


async def get_product_or_404(db: AsyncSession, product_id: str, lender_id: Optional[str] = None) -> LenderProduct:
    query = select(LenderProduct).where(LenderProduct.id == product_id)
    if lender_id is not None:
        query = query.where(LenderProduct.lender_id == lender_id)
    result = await db.execute(query)
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail=MSG_PRODUCT_NOT_FOUND)
    return product


async def lender_name_taken(db: AsyncSession, name: str, lender_id: Optional[str] = None) -> bool:
    """Lender names are unique case-insensitively; lender_id excludes the record being edited."""
    query = select(Lender.id).where(func.lower(Lender.name) == name.lower())
    if lender_id is not None:
        query = query.where(Lender.id != lender_id)
    return (await db.execute(query)).first() is not None


async def ensure_unique_lender_name(db: AsyncSession, name: str, lender_id: Optional[str] = None) -> None:
    if await lender_name_taken(db, name, lender_id):
        raise HTTPException(status_code=409, detail=f"A lender named '{name}' already exists")


def apply_columns(row: Any, columns: dict[str, Any]) -> None:
    for column, value in columns.items():
        setattr(row, column, value)


async def flush_versioned(db: AsyncSession, row: Any) -> None:
    """
    Flush pending writes. The mapper bumps `version` and updates only where the stored
    version still equals the one loaded, so a concurrent commit surfaces here as a 409.
    """
    model, row_id = type(row), row.id
    try:
        await db.flush()
    except StaleDataError as e:
        await db.rollback()
        current = await db.scalar(select(model.version).where(model.id == row_id))
        raise to_http_error(StaleVersion(None, current)) from e


def change_status(row: Any, action: str, raw: Optional[dict[str, Any]]) -> None:
    """Apply a lifecycle action after checking the version the client read."""
    check_version(raw or {}, row.version)
    row.status = transition(row.status, action).value


def ensure_editable(row: Any) -> None:
    if row.status == LifecycleStatus.PURGED_PENDING_DELETION.value:
        raise InvalidTransition(LifecycleStatus.PURGED_PENDING_DELETION, "edit")


def update_product(row: LenderProduct, raw: dict[str, Any]) -> None:
    """Patch a product row from a raw body: version check, merge, lifecycle change."""
    ensure_editable(row)
    check_version(raw, row.version)
    status = requested_status(raw, row.status)
    product = merge_product(row, raw)
    apply_columns(row, product_columns(product))
    row.status = status.value
