"""
Canonical view assembly for lenders and products.
Run from repo root: python -m pytest tests/test_canonical.py -v
"""
import unittest

from schemas.canonical import Lender, LenderProduct, MissingIdentity
from schemas.enums import (
    CountryOffered,
    FundingSpeed,
    LenderCountry,
    LifecycleStatus,
    ProductCategory,
    RateType,
    SubmissionMethod,
    normalize_category,
)
from services.canonical import (
    offered_country,
    to_applicant_profile,
    to_canonical_lender,
    to_canonical_product,
    to_eligibility_rules,
)


def _legacy_lender():
    return {
        "id": 42,
        "company_name": "Maple Capital",
        "contact_email": "deals@maple.example",
        "phone": "416-555-0100",
        "country": "canada",
        "min_loan_amount": "$50,000",
        "max_loan_amount": "10,000",
        "funding_speed": "1 week",
        "submission_method": "email",
        "is_active": "false",
    }


def _v1_product():
    return {
        "id": "p-1",
        "lender_id": "maple",
        "productName": "Working Capital Loan",
        "productType": "Working Capital",
        "countryOffered": "United States",
        "minimumLendingAmount": "25000",
        "maximumLendingAmount": 250_000,
        "minInterest": "9.5",
        "maxInterest": 21,
        "rate_type": "Factor Rate",
        "termMin": 6,
        "termMax": 36,
        "eligibility": {
            "minCreditScore": "650",
            "minAnnualRevenue": 300_000,
            "excludedIndustries": "Cannabis, Gambling",
            "advancedLogic": "  manual check on liens  ",
        },
        "documentRequirements": ["Bank Statements", "Bank Statements", "Void Cheque"],
    }


class TestCanonicalLender(unittest.TestCase):
    def test_legacy_shape(self):
        lender = to_canonical_lender(_legacy_lender())
        self.assertIsInstance(lender, Lender)
        self.assertEqual(lender.id, "42")
        self.assertEqual(lender.name, "Maple Capital")
        self.assertEqual(lender.contact.email, "deals@maple.example")
        self.assertEqual(lender.contact.phone, "416-555-0100")
        self.assertEqual(lender.country, LenderCountry.CANADA)
        self.assertEqual(lender.funding_speed, FundingSpeed.ONE_WEEK)
        self.assertEqual(lender.submission.method, SubmissionMethod.EMAIL)
        self.assertFalse(lender.is_active)
        self.assertEqual(lender.status, LifecycleStatus.DEACTIVATED)

    def test_inverted_range_is_swapped(self):
        lender = to_canonical_lender(_legacy_lender())
        self.assertEqual(lender.loan_range.min, 10_000)
        self.assertEqual(lender.loan_range.max, 50_000)

    def test_lone_bound_stays_alone(self):
        lender = to_canonical_lender({"id": "x", "name": "X", "maxAmount": 90_000})
        self.assertIsNone(lender.loan_range.min)
        self.assertEqual(lender.loan_range.max, 90_000)

    def test_split_contact_name(self):
        lender = to_canonical_lender({"id": "x", "mainContactFirst": "Dana", "mainContactLast": "Okafor"})
        self.assertEqual(lender.contact.name, "Dana Okafor")

    def test_full_field_set_when_empty(self):
        lender = to_canonical_lender({"id": "only-id"})
        dumped = lender.model_dump(by_alias=True)
        for key in ("name", "contact", "website", "country", "isActive", "loanRange", "fundingSpeed",
                    "submission", "description", "status", "version"):
            self.assertIn(key, dumped)
        self.assertTrue(lender.is_active)
        self.assertEqual(lender.status, LifecycleStatus.ACTIVE)

    def test_unknown_enum_values_resolve_to_none(self):
        lender = to_canonical_lender({"id": "x", "country": "Mexico", "funding_speed": "instant"})
        self.assertIsNone(lender.country)
        self.assertIsNone(lender.funding_speed)

    def test_explicit_status_wins_over_is_active(self):
        lender = to_canonical_lender({"id": "x", "status": "purged_pending_deletion", "is_active": True})
        self.assertEqual(lender.status, LifecycleStatus.PURGED_PENDING_DELETION)
        self.assertFalse(lender.is_active)

    def test_missing_identity(self):
        result = to_canonical_lender({"company_name": "No Id Lending", "email": "x@y.example"})
        self.assertIsInstance(result, MissingIdentity)
        self.assertEqual(result.entity, "lender")
        self.assertEqual(result.name, "No Id Lending")
        self.assertEqual(result.keys, ["company_name", "email"])

    def test_missing_identity_for_non_mapping(self):
        for raw in (None, [], "lender"):
            with self.subTest(raw=raw):
                self.assertIsInstance(to_canonical_lender(raw), MissingIdentity)

    def test_idempotent(self):
        first = to_canonical_lender(_legacy_lender())
        self.assertEqual(to_canonical_lender(first), first)
        self.assertEqual(to_canonical_lender(first.model_dump()), first)
        self.assertEqual(to_canonical_lender(first.model_dump(by_alias=True)), first)
        self.assertEqual(to_canonical_lender(first.model_dump(by_alias=True, mode="json")), first)


class TestCanonicalProduct(unittest.TestCase):
    def test_v1_shape(self):
        product = to_canonical_product(_v1_product())
        self.assertIsInstance(product, LenderProduct)
        self.assertEqual(product.name, "Working Capital Loan")
        self.assertEqual(product.category, ProductCategory.BUSINESS_LOAN)
        self.assertEqual(product.category_label, "Business Loan")
        self.assertEqual(product.country_offered, CountryOffered.US)
        self.assertEqual(product.amount_range.min, 25_000)
        self.assertEqual(product.rate_range.min, 9.5)
        self.assertEqual(product.rate_type, RateType.FACTOR)
        self.assertEqual(product.term_range_months.max, 36)
        self.assertEqual(product.required_documents, ["Bank Statements", "Void Cheque"])

    def test_nested_rules(self):
        rules = to_canonical_product(_v1_product()).rules
        self.assertEqual(rules.min_credit_score, 650)
        self.assertEqual(rules.min_annual_revenue, 300_000)
        self.assertEqual(rules.excluded_industries, ["Cannabis", "Gambling"])
        self.assertEqual(rules.advanced_logic, "manual check on liens")
        self.assertEqual(rules.malformed_fields, [])

    def test_flat_rule_columns(self):
        product = to_canonical_product(
            {"id": "p", "name": "Flat", "category": "sba_loan", "min_fico": 700, "excluded_states": "QC, NU"}
        )
        self.assertEqual(product.rules.min_credit_score, 700)
        self.assertEqual(product.rules.excluded_regions, ["QC", "NU"])

    def test_missing_identity(self):
        result = to_canonical_product({"productName": "Orphan"})
        self.assertIsInstance(result, MissingIdentity)
        self.assertEqual(result.entity, "product")
        self.assertEqual(result.name, "Orphan")

    def test_idempotent(self):
        first = to_canonical_product(_v1_product())
        self.assertEqual(to_canonical_product(first), first)
        self.assertEqual(to_canonical_product(first.model_dump()), first)
        self.assertEqual(to_canonical_product(first.model_dump(by_alias=True, mode="json")), first)


class TestEligibilityRulesReading(unittest.TestCase):
    def test_camel_and_snake_keys(self):
        camel = to_eligibility_rules({"minCreditScore": 600, "excludedRegions": ["TX"]})
        snake = to_eligibility_rules({"min_credit_score": 600, "excluded_regions": ["TX"]})
        self.assertEqual(camel, snake)

    def test_malformed_threshold_is_recorded(self):
        rules = to_eligibility_rules({"minCreditScore": "six fifty", "minAnnualRevenue": 100_000})
        self.assertIsNone(rules.min_credit_score)
        self.assertEqual(rules.min_annual_revenue, 100_000)
        self.assertEqual(rules.malformed_fields, ["minCreditScore"])

    def test_never_raises(self):
        for raw in (None, [], "rules", 5, {"excludedIndustries": 12}):
            with self.subTest(raw=raw):
                to_eligibility_rules(raw)


class TestApplicantProfile(unittest.TestCase):
    def test_application_shape(self):
        profile = to_applicant_profile(
            {
                "business": {"industry": "Retail", "state": "TX", "years_in_business": 3, "annual_revenue": "1,200,000"},
                "guarantor": {"fico_score": 710},
            }
        )
        self.assertEqual(profile.credit_score, 710)
        self.assertEqual(profile.annual_revenue, 1_200_000)
        self.assertEqual(profile.time_in_business_months, 36)
        self.assertEqual(profile.industry, "Retail")
        self.assertEqual(profile.state, "TX")

    def test_unreadable_values_are_absent(self):
        profile = to_applicant_profile({"creditScore": "excellent", "debtToIncome": "0.3"})
        self.assertIsNone(profile.credit_score)
        self.assertEqual(profile.debt_to_income, 0.3)


class TestVocabulary(unittest.TestCase):
    def test_legacy_categories(self):
        cases = {
            "Term Loan": ProductCategory.BUSINESS_LOAN,
            "Working Capital": ProductCategory.BUSINESS_LOAN,
            "Business Line of Credit": ProductCategory.LINE_OF_CREDIT,
            "Purchase Order Financing": ProductCategory.OTHER,
            "Asset-Based Lending": ProductCategory.OTHER,
            "Equipment Financing": ProductCategory.EQUIPMENT_FINANCING,
            "sba_loan": ProductCategory.SBA_LOAN,
        }
        for text, expected in cases.items():
            with self.subTest(text=text):
                self.assertEqual(normalize_category(text), expected)

    def test_unknown_category(self):
        self.assertIsNone(normalize_category("Crypto Loans"))
        self.assertIsNone(normalize_category(None))

    def test_offered_country(self):
        self.assertEqual(offered_country("Canada"), CountryOffered.CA)
        self.assertEqual(offered_country("us"), CountryOffered.US)
        self.assertIsNone(offered_country("MX"))


if __name__ == "__main__":
    unittest.main()
