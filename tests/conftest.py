from pathlib import Path

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from epiviz.api.app import app
import epiviz.viz  # noqa: F401 ensures strategies registered

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture()
def linelist() -> pd.DataFrame:
    """Line list as a caller would hold it: parsed dates, string strata."""
    df = pd.read_csv(FIXTURES / "linelist.csv")
    df["onset"] = pd.to_datetime(df["onset"], format="%Y-%m-%d", errors="coerce")
    return df
