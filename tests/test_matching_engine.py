"""
Tests for the compatibility filter: eligibility, fit score, rejection reasons.
Run from the project root: python -m pytest tests/test_matching_engine.py -v
Or: python -m unittest tests.test_matching_engine -v
"""
import unittest
from datetime import datetime, timezone
from decimal import Decimal

from schemas.application import ApplicationRecord
from schemas.company import CompanyRecord
from services.matching_engine import (
    evaluate_company,
    filter_compatible_companies,
    is_compatible,
    rank_companies,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _application(**overrides):
    data = {
        "id": 1,
        "client_id": 1,
        "object_cost": Decimal("2500000"),
        "down_payment": Decimal("30"),
        "leasing_term": 36,
        "leasing_type": "auto",
        "client_phone": "+7-999-123-45-67",
        "client_inn": "1234567890",
        "is_new_object": True,
        "status": "pending",
        "created_at": NOW,
        "updated_at": NOW,
    }
    data.update(overrides)
    return ApplicationRecord(**data)


def _company(company_id=1, **overrides):
    data = {
        "id": company_id,
        "name": f"Company {company_id}",
        "min_amount": Decimal("100000"),
        "max_amount": Decimal("50000000"),
        "created_at": NOW,
    }
    data.update(overrides)
    return CompanyRecord(**data)


class TestIsCompatible(unittest.TestCase):
    def test_within_bounds_is_compatible(self):
        """Cost 2.5M, 36 months, auto vs 100k..50M auto company -> compatible."""
        self.assertTrue(is_compatible(_application(), _company(work_with_auto=True)))

    def test_above_max_amount_is_not_compatible(self):
        self.assertFalse(is_compatible(_application(), _company(max_amount=Decimal("1000000"))))

    def test_bounds_are_inclusive(self):
        app = _application(object_cost=Decimal("100000"), leasing_term=12)
        company = _company(min_amount=Decimal("100000"), max_amount=Decimal("100000"), min_term=12, max_term=12)
        self.assertTrue(is_compatible(app, company))

    def test_unset_bounds_impose_nothing(self):
        company = _company(min_amount=None, max_amount=None, min_term=None, max_term=None)
        self.assertTrue(is_compatible(_application(object_cost=Decimal("1")), company))
        self.assertTrue(is_compatible(_application(object_cost=Decimal("999999999"), leasing_term=600), company))

    def test_term_bounds(self):
        company = _company(min_term=12, max_term=24)
        self.assertFalse(is_compatible(_application(leasing_term=36), company))
        self.assertFalse(is_compatible(_application(leasing_term=6), company))
        self.assertTrue(is_compatible(_application(leasing_term=24), company))

    def test_inactive_company_is_not_compatible(self):
        self.assertFalse(is_compatible(_application(), _company(is_active=False)))

    def test_leasing_type_flags(self):
        company = _company(work_with_auto=False, work_with_equipment=True, work_with_real_estate=False)
        self.assertFalse(is_compatible(_application(leasing_type="auto"), company))
        self.assertTrue(is_compatible(_application(leasing_type="equipment"), company))
        self.assertFalse(is_compatible(_application(leasing_type="real_estate"), company))

    def test_used_object_needs_work_with_used(self):
        used = _application(is_new_object=False)
        self.assertFalse(is_compatible(used, _company(work_with_used=False)))
        self.assertTrue(is_compatible(used, _company(work_with_used=True)))
        # New objects ignore the flag.
        self.assertTrue(is_compatible(_application(), _company(work_with_used=False)))


class TestFilterCompatibleCompanies(unittest.TestCase):
    def test_keeps_input_order_and_drops_incompatible(self):
        companies = [
            _company(3),
            _company(1, max_amount=Decimal("1000000")),
            _company(2),
            _company(4, is_active=False),
        ]
        result = filter_compatible_companies(_application(), companies)
        self.assertEqual([c.id for c in result], [3, 2])

    def test_empty_input(self):
        self.assertEqual(filter_compatible_companies(_application(), []), [])


class TestEvaluateCompany(unittest.TestCase):
    def test_eligible_company_scores_100(self):
        result = evaluate_company(_application(), _company())
        self.assertTrue(result.eligible)
        self.assertEqual(result.fit_score, 100)
        self.assertEqual(result.rejection_reasons, [])
        self.assertEqual([c.name for c in result.criteria_results], ["Active", "Object Cost", "Leasing Term", "Leasing Type"])

    def test_rejection_reasons_cover_every_failed_criterion(self):
        company = _company(max_amount=Decimal("1000000"), work_with_auto=False)
        result = evaluate_company(_application(), company)
        self.assertFalse(result.eligible)
        self.assertEqual(len(result.rejection_reasons), 2)
        self.assertTrue(any("Object cost" in r for r in result.rejection_reasons))
        self.assertTrue(any("auto" in r for r in result.rejection_reasons))
        self.assertEqual(result.fit_score, 50)

    def test_used_object_adds_criterion(self):
        result = evaluate_company(_application(is_new_object=False), _company(work_with_used=False))
        self.assertIn("Used Object", [c.name for c in result.criteria_results])
        self.assertFalse(result.eligible)
        self.assertEqual(result.fit_score, 80)

    def test_eligibility_agrees_with_predicate(self):
        cases = [
            _company(),
            _company(max_amount=Decimal("1000000")),
            _company(min_term=48),
            _company(is_active=False),
            _company(work_with_auto=False),
        ]
        for company in cases:
            with self.subTest(company=company.model_dump(exclude={"created_at"})):
                result = evaluate_company(_application(), company)
                self.assertEqual(result.eligible, is_compatible(_application(), company))


class TestRankCompanies(unittest.TestCase):
    def test_eligible_first_then_by_fit_score(self):
        companies = [
            _company(1, max_amount=Decimal("1000000"), work_with_auto=False),
            _company(2, min_term=48),
            _company(3),
        ]
        ranked = rank_companies(_application(), companies)
        self.assertEqual([r.company_id for r in ranked], [3, 2, 1])
        self.assertTrue(ranked[0].eligible)
        self.assertGreater(ranked[1].fit_score, ranked[2].fit_score)


if __name__ == "__main__":
    unittest.main()
