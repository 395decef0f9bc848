"""
Product matching: active filtering, amount / country checks and ranking.
Run from repo root: python -m pytest tests/test_matching.py -v
"""
import unittest

from schemas.canonical import Lender, LenderProduct, Range
from schemas.eligibility import ApplicantProfile, EligibilityRules
from schemas.enums import CountryOffered, LifecycleStatus
from services.matching import match_products


def _product(product_id, name, lender_id="l1", **overrides):
    data = {
        "id": product_id,
        "lender_id": lender_id,
        "name": name,
        "amount_range": Range(min=10_000, max=100_000),
        "country_offered": CountryOffered.US,
        "rules": EligibilityRules(min_credit_score=650),
    }
    data.update(overrides)
    return LenderProduct(**data)


class TestMatchProducts(unittest.TestCase):
    def setUp(self):
        self.profile = ApplicantProfile(credit_score=700)
        self.lenders = {
            "l1": Lender(id="l1", name="First Lender"),
            "l2": Lender(id="l2", name="Sleepy Lender", status=LifecycleStatus.DEACTIVATED, is_active=False),
        }

    def test_ranking(self):
        products = [
            _product("p-ineligible", "Alpha", rules=EligibilityRules(min_credit_score=750)),
            _product("p-unknown", "Bravo", rules=EligibilityRules(min_annual_revenue=100_000)),
            _product("p-eligible-b", "Delta"),
            _product("p-eligible-a", "Charlie"),
        ]
        matches = match_products(self.profile, products, lenders=self.lenders)
        self.assertEqual(
            [m.product_id for m in matches],
            ["p-eligible-a", "p-eligible-b", "p-unknown", "p-ineligible"],
        )
        self.assertEqual(matches[0].lender_name, "First Lender")

    def test_inactive_products_and_lenders_are_skipped(self):
        products = [
            _product("p-active", "Active"),
            _product("p-off", "Off", status=LifecycleStatus.DEACTIVATED, is_active=False),
            _product("p-purged", "Purged", status=LifecycleStatus.PURGED_PENDING_DELETION, is_active=False),
            _product("p-sleepy", "Sleepy", lender_id="l2"),
        ]
        matches = match_products(self.profile, products, lenders=self.lenders)
        self.assertEqual([m.product_id for m in matches], ["p-active"])

    def test_amount_outside_range(self):
        matches = match_products(self.profile, [_product("p1", "One")], requested_amount=250_000)
        verdict = matches[0].verdict
        self.assertEqual(verdict.kind, "ineligible")
        self.assertEqual(verdict.reasons, ["amount_outside_range"])

    def test_country_not_offered(self):
        matches = match_products(self.profile, [_product("p1", "One")], country=CountryOffered.CA)
        self.assertEqual(matches[0].verdict.reasons, ["country_not_offered"])

    def test_product_reasons_added_to_rule_failures(self):
        product = _product("p1", "One", rules=EligibilityRules(min_credit_score=800))
        matches = match_products(self.profile, [product], requested_amount=5_000, country=CountryOffered.CA)
        self.assertEqual(
            matches[0].verdict.reasons,
            ["credit_score_below_minimum", "amount_outside_range", "country_not_offered"],
        )

    def test_raw_profile(self):
        matches = match_products({"fico": "710"}, [_product("p1", "One")])
        self.assertEqual(matches[0].verdict.kind, "eligible")

    def test_no_products(self):
        self.assertEqual(match_products(self.profile, []), [])


if __name__ == "__main__":
    unittest.main()
