"""
Pytest configuration and shared fixtures.

Fixtures are built from the synthetic loan generator so every test runs on
a reproducible table shaped like the real data.
"""
import pandas as pd
import pytest

from loan_rate.feature_pipeline import clean_data, infer_column_roles
from loan_rate.training_pipeline.split import split_train_test
from loan_rate.utils.synthetic import generate_loan_data


@pytest.fixture(scope="session")
def raw_loans() -> pd.DataFrame:
    """Raw synthetic loans, including joint applications and leakage columns."""
    return generate_loan_data(n_samples=1000, random_state=123, joint_share=0.15)


@pytest.fixture(scope="session")
def clean_loans(raw_loans) -> pd.DataFrame:
    """Cleaned synthetic loans (individual applications, no missing values)."""
    return clean_data(raw_loans)


@pytest.fixture(scope="session")
def roles(clean_loans):
    """Column roles of the cleaned synthetic loans."""
    return infer_column_roles(clean_loans)


@pytest.fixture(scope="session")
def loan_split(clean_loans):
    """80/20 stratified split of the cleaned synthetic loans."""
    return split_train_test(clean_loans, train_prop=0.8, random_state=123)


@pytest.fixture
def small_frame() -> pd.DataFrame:
    """Tiny hand-written frame for recipe step tests."""
    return pd.DataFrame({
        "income": [50.0, 60.0, 70.0, 80.0, 90.0, 100.0],
        "term": [36, 60, 36, 60, 36, 36],
        "home": ["RENT", "OWN", "RENT", "MORTGAGE", "OWN", "RENT"],
        "interest_rate": [10.5, 14.0, 9.8, 15.2, 11.1, 8.9],
    })
