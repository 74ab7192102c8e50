import io
import os
import time

import pandas as pd
import pytest

TARGET_MS = 2000  # 2s budget
ROWS = 20000


@pytest.mark.performance
@pytest.mark.skipif(os.getenv("RUN_PERF_TESTS") != "1", reason="Performance tests disabled")
def test_epicurve_time_budget(client):
    # Synthetic line list: two years of onsets, aggregated bars
    onsets = pd.date_range("2014-01-01", periods=730, freq="D")
    df = pd.DataFrame(
        {
            "onset": [onsets[i % len(onsets)].strftime("%Y-%m-%d") for i in range(ROWS)],
            "sex": ["Male", "Female"] * (ROWS // 2),
        }
    )
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    data = buf.getvalue().encode()

    start = time.perf_counter()
    response = client.post(
        "/api/epicurve",
        files={"linelist_file": ("linelist_large.csv", data, "text/csv")},
        data={"date_col": "onset", "options": '{"fill_by": "sex", "squares": false}'},
    )
    elapsed_ms = (time.perf_counter() - start) * 1000
    assert response.status_code == 200
    assert elapsed_ms <= TARGET_MS
