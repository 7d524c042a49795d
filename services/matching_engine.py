"""
Evaluates a leasing application against leasing company eligibility bounds.
Produces eligibility, fit score, rejection reasons, and per-criterion results.
Unset (None) bounds impose no constraint on that side.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from schemas.application import ApplicationRecord
from schemas.company import CompanyMatchResultSchema, CompanyRecord, CriterionResultSchema

TYPE_FLAGS = {
    "auto": ("work_with_auto", "Auto"),
    "equipment": ("work_with_equipment", "Equipment"),
    "real_estate": ("work_with_real_estate", "Real estate"),
}


def _money(value: Decimal | int | None) -> str:
    return f"{Decimal(value or 0):,.2f}"


def _range_str(low, high, fmt) -> str:
    if low is not None and high is not None:
        return f"{fmt(low)} – {fmt(high)}"
    if low is not None:
        return f"≥ {fmt(low)}"
    if high is not None:
        return f"≤ {fmt(high)}"
    return "Any"


def evaluate_company(application: ApplicationRecord, company: CompanyRecord) -> CompanyMatchResultSchema:
    """
    Check one company's bounds against an application.
    Every criterion is evaluated (no short-circuit) so the caller can show all reasons at once.
    """
    criteria_results: list[CriterionResultSchema] = []
    rejection_reasons: list[str] = []

    criteria_results.append(
        CriterionResultSchema(
            name="Active",
            met=company.is_active,
            reason="Company accepts applications" if company.is_active else "Company is not active",
            expected="Active",
            actual="Active" if company.is_active else "Inactive",
        )
    )
    if not company.is_active:
        rejection_reasons.append(f"{company.name} is not accepting applications")

    cost = Decimal(application.object_cost)
    min_amt, max_amt = company.min_amount, company.max_amount
    met = (min_amt is None or cost >= min_amt) and (max_amt is None or cost <= max_amt)
    expected = _range_str(min_amt, max_amt, _money)
    criteria_results.append(
        CriterionResultSchema(
            name="Object Cost",
            met=met,
            reason=f"Within {expected}" if met else f"Object cost {_money(cost)} must be {expected}",
            expected=expected,
            actual=_money(cost),
        )
    )
    if not met:
        rejection_reasons.append(f"Object cost {_money(cost)} outside range {expected}")

    term = application.leasing_term
    min_term, max_term = company.min_term, company.max_term
    met = (min_term is None or term >= min_term) and (max_term is None or term <= max_term)
    expected = _range_str(min_term, max_term, lambda m: f"{m} months")
    criteria_results.append(
        CriterionResultSchema(
            name="Leasing Term",
            met=met,
            reason=f"Within {expected}" if met else f"Leasing term {term} months must be {expected}",
            expected=expected,
            actual=f"{term} months",
        )
    )
    if not met:
        rejection_reasons.append(f"Leasing term {term} months outside range {expected}")

    flag, label = TYPE_FLAGS[application.leasing_type]
    met = bool(getattr(company, flag))
    criteria_results.append(
        CriterionResultSchema(
            name="Leasing Type",
            met=met,
            reason=f"{label} leasing offered" if met else f"{label} leasing not offered",
            expected=label,
            actual=label if met else "Not offered",
        )
    )
    if not met:
        rejection_reasons.append(f"Company does not lease {label.lower()}")

    if not application.is_new_object:
        met = company.work_with_used
        criteria_results.append(
            CriterionResultSchema(
                name="Used Object",
                met=met,
                reason="Used objects accepted" if met else "Used objects not accepted",
                expected="Accepts used",
                actual="Used",
            )
        )
        if not met:
            rejection_reasons.append("Company does not lease used objects")

    met_count = sum(1 for c in criteria_results if c.met)
    fit_score = int(100 * met_count / len(criteria_results))

    return CompanyMatchResultSchema(
        company_id=company.id,
        company_name=company.name,
        eligible=not rejection_reasons,
        fit_score=fit_score,
        rejection_reasons=rejection_reasons,
        criteria_results=criteria_results,
    )


def is_compatible(application: ApplicationRecord, company: CompanyRecord) -> bool:
    cost = Decimal(application.object_cost)
    term = application.leasing_term
    flag, _ = TYPE_FLAGS[application.leasing_type]
    return (
        company.is_active
        and (company.min_amount is None or cost >= company.min_amount)
        and (company.max_amount is None or cost <= company.max_amount)
        and (company.min_term is None or term >= company.min_term)
        and (company.max_term is None or term <= company.max_term)
        and bool(getattr(company, flag))
        and (application.is_new_object or company.work_with_used)
    )


def filter_compatible_companies(
    application: ApplicationRecord, companies: Iterable[CompanyRecord]
) -> list[CompanyRecord]:
    """Subset of companies able to serve the application; input order kept, no ranking."""
    return [c for c in companies if is_compatible(application, c)]


def rank_companies(
    application: ApplicationRecord, companies: Iterable[CompanyRecord]
) -> list[CompanyMatchResultSchema]:
    """Match results for display: eligible first, then by fit score."""
    results = [evaluate_company(application, c) for c in companies]
    results.sort(key=lambda r: (not r.eligible, -r.fit_score))
    return results
