"""
Synthetic loan data generator.

Generates a table shaped like the Lending Club ``loans_full_schema`` data:
individual and joint applications, columns with missing values, post-origination
leakage columns, and an interest rate driven by a known linear signal plus
noise. Used by the test suite and for demo runs without the real file.
"""
from typing import Optional

import numpy as np
import pandas as pd

from loan_rate import config

HOMEOWNERSHIP_CATEGORIES = ["MORTGAGE", "RENT", "OWN"]
VERIFIED_INCOME_CATEGORIES = ["Not Verified", "Source Verified", "Verified"]
LOAN_PURPOSE_CATEGORIES = [
    "debt_consolidation",
    "credit_card",
    "other",
    "home_improvement",
    "major_purchase",
    "medical",
]
EMP_TITLES = ["teacher", "manager", "nurse", "driver", "engineer", "owner", "sales"]
STATES = ["CA", "TX", "NY", "FL", "IL", "OH", "GA", "NC", "WA", "NJ"]
GRADES = ["A", "B", "C", "D", "E", "F", "G"]


def generate_loan_data(
    n_samples: int = 1000,
    random_state: Optional[int] = None,
    joint_share: float = 0.15
) -> pd.DataFrame:
    """
    Generate a synthetic loan dataset.

    Args:
        n_samples: Number of rows.
        random_state: Seed for the local random generator. If None, uses config.RANDOM_STATE.
        joint_share: Fraction of joint applications (dropped by the row filter).

    Returns:
        DataFrame with raw loan columns, including config.TARGET_COLUMN.
    """
    if random_state is None:
        random_state = config.RANDOM_STATE

    rng = np.random.default_rng(random_state)

    is_joint = rng.random(n_samples) < joint_share
    application_type = np.where(is_joint, "joint", "individual")

    # Borrower
    emp_title = rng.choice(EMP_TITLES, n_samples).astype(object)
    emp_title[rng.random(n_samples) < 0.08] = np.nan
    emp_length = rng.integers(0, 11, n_samples).astype(float)
    emp_length[rng.random(n_samples) < 0.08] = np.nan
    state = rng.choice(STATES, n_samples)
    homeownership = rng.choice(HOMEOWNERSHIP_CATEGORIES, n_samples, p=[0.45, 0.40, 0.15])
    annual_income = np.round(np.clip(rng.lognormal(11.0, 0.55, n_samples), 8000, 1_500_000), -2)
    verified_income = rng.choice(VERIFIED_INCOME_CATEGORIES, n_samples, p=[0.35, 0.40, 0.25])
    debt_to_income = np.round(np.clip(rng.gamma(4.0, 4.5, n_samples), 0, 60), 2)

    # Joint fields only exist for joint applications
    annual_income_joint = np.where(
        is_joint, np.round(annual_income * rng.uniform(1.3, 2.2, n_samples), -2), np.nan
    )
    verification_income_joint = np.where(
        is_joint, rng.choice(VERIFIED_INCOME_CATEGORIES, n_samples), None
    )
    debt_to_income_joint = np.where(is_joint, np.round(debt_to_income * 0.7, 2), np.nan)

    # Credit history
    delinq_2y = rng.poisson(0.2, n_samples)
    months_since_last_delinq = np.where(
        delinq_2y > 0, rng.integers(1, 24, n_samples), np.nan
    )
    earliest_credit_line = rng.integers(1975, 2016, n_samples)
    inquiries_last_12m = rng.poisson(1.9, n_samples)
    total_credit_lines = rng.poisson(20, n_samples) + 2
    open_credit_lines = np.minimum(rng.binomial(total_credit_lines, 0.5), total_credit_lines)
    total_credit_limit = np.round(rng.lognormal(11.7, 0.9, n_samples), -2)
    utilization = rng.beta(2.0, 3.0, n_samples)
    total_credit_utilized = np.round(total_credit_limit * utilization, -1)
    num_collections_last_12m = rng.poisson(0.01, n_samples)
    num_mort_accounts = rng.poisson(1.3, n_samples)
    account_never_delinq_percent = np.round(np.clip(100 - rng.exponential(4.0, n_samples), 40, 100), 1)
    tax_liens = rng.poisson(0.03, n_samples)
    public_record_bankrupt = rng.poisson(0.12, n_samples)

    # Loan
    loan_purpose = rng.choice(
        LOAN_PURPOSE_CATEGORIES, n_samples, p=[0.45, 0.22, 0.11, 0.1, 0.07, 0.05]
    )
    loan_amount = np.round(rng.uniform(1000, 40000, n_samples) / 25) * 25
    term = rng.choice([36, 60], n_samples, p=[0.7, 0.3])
    initial_listing_status = rng.choice(["whole", "fractional"], n_samples, p=[0.8, 0.2])
    disbursement_method = rng.choice(["Cash", "DirectPay"], n_samples, p=[0.88, 0.12])

    interest_rate = (
        12.0
        + 2.8 * (term == 60)
        + 0.09 * (debt_to_income - 18)
        + 0.45 * inquiries_last_12m
        - 1.1 * np.log(annual_income / 65000)
        + 1.4 * (verified_income == "Verified")
        + 0.6 * (verified_income == "Source Verified")
        + 0.9 * delinq_2y
        + 1.6 * public_record_bankrupt
        + 3.0 * (utilization - 0.4)
        - 0.05 * (account_never_delinq_percent - 95)
        - 1.2 * (loan_purpose == "credit_card")
        + 0.8 * (homeownership == "RENT")
        + rng.normal(0, 2.0, n_samples)
    )
    interest_rate = np.round(np.clip(interest_rate, 5.31, 30.94), 2)

    # Post-origination / rate-derived columns (excluded before modeling)
    monthly_rate = interest_rate / 100 / 12
    installment = np.round(loan_amount * monthly_rate / (1 - (1 + monthly_rate) ** -term), 2)
    grade_idx = np.clip(((interest_rate - 5.31) / 4).astype(int), 0, len(GRADES) - 1)
    grade = np.array(GRADES)[grade_idx]
    sub_grade = np.char.add(grade.astype(str), (rng.integers(1, 6, n_samples)).astype(str))
    months_paid = rng.integers(0, 4, n_samples)
    paid_principal = np.round(np.minimum(installment * months_paid * 0.7, loan_amount), 2)
    paid_interest = np.round(installment * months_paid * 0.3, 2)
    paid_late_fees = np.where(rng.random(n_samples) < 0.01, 15.0, 0.0)

    return pd.DataFrame({
        "emp_title": emp_title,
        "emp_length": emp_length,
        "state": state,
        "homeownership": homeownership,
        "annual_income": annual_income,
        "verified_income": verified_income,
        "debt_to_income": debt_to_income,
        "annual_income_joint": annual_income_joint,
        "verification_income_joint": verification_income_joint,
        "debt_to_income_joint": debt_to_income_joint,
        "delinq_2y": delinq_2y,
        "months_since_last_delinq": months_since_last_delinq,
        "earliest_credit_line": earliest_credit_line,
        "inquiries_last_12m": inquiries_last_12m,
        "total_credit_lines": total_credit_lines,
        "open_credit_lines": open_credit_lines,
        "total_credit_limit": total_credit_limit,
        "total_credit_utilized": total_credit_utilized,
        "num_collections_last_12m": num_collections_last_12m,
        "num_mort_accounts": num_mort_accounts,
        "account_never_delinq_percent": account_never_delinq_percent,
        "tax_liens": tax_liens,
        "public_record_bankrupt": public_record_bankrupt,
        "loan_purpose": loan_purpose,
        "application_type": application_type,
        "loan_amount": loan_amount,
        "term": term,
        config.TARGET_COLUMN: interest_rate,
        "installment": installment,
        "grade": grade,
        "sub_grade": sub_grade,
        "issue_month": rng.choice(["Jan-2018", "Feb-2018", "Mar-2018"], n_samples),
        "loan_status": rng.choice(["Current", "Fully Paid", "Late"], n_samples, p=[0.9, 0.08, 0.02]),
        "initial_listing_status": initial_listing_status,
        "disbursement_method": disbursement_method,
        "balance": np.round(loan_amount - paid_principal, 2),
        "paid_total": np.round(paid_principal + paid_interest + paid_late_fees, 2),
        "paid_principal": paid_principal,
        "paid_interest": paid_interest,
        "paid_late_fees": paid_late_fees,
    })
