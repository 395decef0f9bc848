"""
Seed sample lenders and products. Records are written in the different shapes the
catalog has accepted over time (staff snake_case forms, v1 camelCase, nested canonical)
and go through the same reconciliation as API writes.
Run: python -m scripts.seed_lenders (from the repository root).
"""
import asyncio
import os
import sys

# Add parent so we can import the app modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import AsyncSessionLocal, init_db
from models import Lender, LenderProduct
from schemas.canonical import MissingIdentity
from services.canonical import to_canonical_lender, to_canonical_product
from services.catalog import (
    CatalogValidationError,
    lender_columns,
    product_columns,
    validate_lender,
    validate_product,
)


LENDERS_DATA = [
    # Staff form shape (snake_case, flat)
    {
        "id": "maple-capital",
        "company_name": "Maple Capital Funding",
        "contact_email": "deals@maplecapital.example",
        "contact_phone": "416-555-0142",
        "country": "Canada",
        "min_loan_amount": "25,000",
        "max_loan_amount": "$750,000",
        "funding_speed": "2-3 Days",
        "submission_method": "Email",
        "submission_email": "submissions@maplecapital.example",
        "products": [
            {
                "id": "maple-capital-term",
                "product_name": "Small Business Term Loan",
                "product_type": "Term Loan",
                "country": "CA",
                "min_amount": 25_000,
                "max_amount": 500_000,
                "min_rate": 8.5,
                "max_rate": 18,
                "rate_type": "interest",
                "min_term_months": 12,
                "max_term_months": 60,
                "min_fico": 650,
                "min_revenue": 250_000,
                "min_time_in_business": 24,
                "excluded_states": "QC",
                "doc_requirements": "Bank Statements, Tax Returns",
            },
        ],
    },
    # v1 API shape (camelCase, split contact name)
    {
        "id": "harbor-equipment",
        "name": "Harbor Equipment Finance",
        "mainContactFirst": "Dana",
        "mainContactLast": "Okafor",
        "mainContactEmail": "dana@harborfinance.example",
        "mainPhone": "(312) 555-0199",
        "websiteUrl": "https://harborfinance.example",
        "countryOffered": "US",
        "minAmount": 10_000,
        "maxAmount": 2_000_000,
        "submissionMethod": "Portal",
        "products": [
            {
                "id": "harbor-equipment-standard",
                "productName": "Equipment Financing",
                "productCategory": "equipment_financing",
                "countryOffered": "US",
                "minimumLendingAmount": 10_000,
                "maximumLendingAmount": 2_000_000,
                "minInterest": 6.99,
                "maxInterest": 15.5,
                "termMin": 24,
                "termMax": 84,
                "eligibility": {
                    "minCreditScore": 680,
                    "minAnnualRevenue": 500_000,
                    "timeInBusinessMonths": 24,
                    "preferredIndustries": ["Construction", "Transportation"],
                    "excludedIndustries": ["Cannabis"],
                },
            },
            {
                "id": "harbor-loc",
                "productName": "Business Line of Credit",
                "productType": "Business Line of Credit",
                "countryOffered": "US",
                "minAmount": 25_000,
                "maxAmount": 250_000,
                "eligibility": {
                    "minCreditScore": 700,
                    "maxDebtToIncome": 0.45,
                    "advancedLogic": "If revenue < 1M then personal guarantee required",
                },
            },
        ],
    },
    # Canonical nested shape
    {
        "id": "northstar-mca",
        "name": "Northstar Revenue Partners",
        "contact": {"name": "Priya Shah", "email": "priya@northstar.example"},
        "country": "Both",
        "loan_range": {"min": 5_000, "max": 150_000},
        "funding_speed": "1 Day",
        "submission": {"method": "API", "api_url": "https://api.northstar.example/v1/deals"},
        "products": [
            {
                "id": "northstar-mca-standard",
                "name": "Merchant Cash Advance",
                "category": "merchant_cash_advance",
                "amount_range": {"min": 5_000, "max": 150_000},
                "rate_range": {"min": 1.15, "max": 1.45},
                "rate_type": "factor",
                "rules": {
                    "min_credit_score": 550,
                    "min_annual_revenue": 120_000,
                    "time_in_business_months": 6,
                    "excluded_industries": ["Gambling", "Adult Entertainment"],
                },
            },
        ],
    },
]


async def seed():
    await init_db()
    async with AsyncSessionLocal() as session:
        for data in LENDERS_DATA:
            lender = to_canonical_lender(data)
            if isinstance(lender, MissingIdentity):
                print(f"Skipping lender without id: {lender.name}")
                continue
            if await session.get(Lender, lender.id):
                print(f"Lender {lender.id} already exists, skipping")
                continue
            try:
                validate_lender(lender)
            except CatalogValidationError as e:
                print(f"Skipping lender {lender.id}: {e}")
                continue
            session.add(Lender(id=lender.id, status=lender.status.value, **lender_columns(lender)))
            await session.flush()
            for raw in data.get("products", []):
                product = to_canonical_product({**raw, "lender_id": lender.id})
                if isinstance(product, MissingIdentity):
                    print(f"Skipping product without id: {product.name}")
                    continue
                try:
                    validate_product(product, raw)
                except CatalogValidationError as e:
                    print(f"Skipping product {product.id}: {e}")
                    continue
                session.add(
                    LenderProduct(id=product.id, status=product.status.value, **product_columns(product))
                )
            print(f"Seeded lender: {lender.name}")
        await session.commit()
    print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(seed())
