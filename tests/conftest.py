import pandas as pd
import pytest

from pdc_adherence.config import MeasureConfig
from pdc_adherence.claims.samples import sample_tables
from pdc_adherence.claims.tables import configure_tables


@pytest.fixture
def measure():
    return MeasureConfig(start_date="2022-01-01", end_date="2022-12-31")


@pytest.fixture
def drug_ref():
    return pd.DataFrame(
        [
            ("A1", "DRUG_A", "Drug A tab"),
            ("A2", "DRUG_A", "Drug A combination"),
            ("A2", "DRUG_C", "Drug A combination"),
            ("B1", "DRUG_B", "Drug B tab"),
        ],
        columns=["ndc", "drug", "description"],
    )


@pytest.fixture
def sample_claims():
    return configure_tables(*sample_tables())


def make_fills(rows):
    """rows of (patient_id, date_of_service, ndc, days_supply)"""
    return pd.DataFrame(rows, columns=["patient_id", "date_of_service", "ndc", "days_supply"])
