import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from config import settings
from database import get_db
from models import LenderProduct
from schemas.eligibility import MatchRequest
from schemas.enums import LifecycleStatus
from services.canonical import offered_country, to_applicant_profile
from services.catalog import lender_from_row, product_from_row
from services.matching import match_products

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/eligibility", tags=["eligibility"])


@router.post("/match", response_model=dict)
async def match_applicant(body: MatchRequest, db: AsyncSession = Depends(get_db)):
    """
    Rank every active product of an active lender for one applicant.
    The applicant profile may use any supported key style; `country` is CA or US.
    """
    country = None
    if body.country:
        country = offered_country(body.country)
        if country is None:
            raise HTTPException(status_code=400, detail=f"Unknown country '{body.country}'")

    result = await db.execute(
        select(LenderProduct)
        .options(selectinload(LenderProduct.lender))
        .where(LenderProduct.status == LifecycleStatus.ACTIVE.value)
    )
    rows = result.scalars().all()
    products = [product_from_row(row) for row in rows]
    lenders = {row.lender.id: lender_from_row(row.lender) for row in rows if row.lender is not None}

    profile = to_applicant_profile(body.applicant)
    matches = match_products(
        profile,
        products,
        lenders=lenders,
        requested_amount=body.requested_amount,
        country=country,
    )
    logger.info(f"Match request evaluated {len(products)} products, returning {min(len(matches), settings.match_limit)}")
    return {
        "applicant": profile.model_dump(by_alias=True, mode="json"),
        "total": len(matches),
        "matches": [m.model_dump(by_alias=True, mode="json") for m in matches[: settings.match_limit]],
    }
