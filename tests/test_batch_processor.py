"""
Tests for the batch driver.
"""

import numpy as np
import pandas as pd
import pytest

from wavedenoise.batch_processor import (
    OUTPUT_COLUMNS, process_series, validate_input_dataframe, run_batch, get_batch_summary
)
from wavedenoise.config import PipelineConfig

SMALL = {"window_length": 64, "levels": 2}


def make_frame(lengths, seed=0, as_columns=False):
    rng = np.random.default_rng(seed)
    parts = []
    for series_id, n in lengths.items():
        parts.append(pd.DataFrame({
            "id": series_id,
            "time": np.arange(n),
            "value": 100.0 + np.cumsum(rng.standard_normal(n)),
        }))
    df = pd.concat(parts, ignore_index=True)
    return df if as_columns else df.set_index(["id", "time"])


# ------------------------------------------------------------------
# Tests: Input validation
# ------------------------------------------------------------------

class TestValidateInput:
    def test_columns_become_multiindex(self):
        df = validate_input_dataframe(make_frame({"a": 10}, as_columns=True))
        assert list(df.index.names) == ["id", "time"]

    def test_missing_value_column(self):
        df = make_frame({"a": 10}).rename(columns={"value": "price"})
        with pytest.raises(ValueError):
            validate_input_dataframe(df)

    def test_missing_id(self):
        with pytest.raises(ValueError):
            validate_input_dataframe(pd.DataFrame({"time": [0], "value": [1.0]}))

    def test_non_numeric(self):
        df = make_frame({"a": 3})
        df["value"] = ["x", "y", "z"]
        with pytest.raises(ValueError):
            validate_input_dataframe(df)

    def test_empty(self):
        df = make_frame({"a": 3}).iloc[:0]
        with pytest.raises(ValueError):
            validate_input_dataframe(df)

    def test_wrong_index_names(self):
        df = make_frame({"a": 3})
        df.index = df.index.set_names(["series", "t"])
        with pytest.raises(ValueError):
            validate_input_dataframe(df)


# ------------------------------------------------------------------
# Tests: Single series
# ------------------------------------------------------------------

class TestProcessSeries:
    def test_one_row_per_full_window(self):
        values = 100.0 + np.cumsum(np.random.default_rng(1).standard_normal(80))
        out = process_series("s1", values, SMALL)
        assert len(out) == 80 - 64 + 1
        assert list(out.columns) == ["id"] + OUTPUT_COLUMNS
        assert out.index[0] == 63 and out.index[-1] == 79
        assert np.all(np.isfinite(out[OUTPUT_COLUMNS].to_numpy()))

    def test_too_short(self):
        out = process_series("s1", np.ones(10), SMALL)
        assert out.empty


# ------------------------------------------------------------------
# Tests: Batch run
# ------------------------------------------------------------------

class TestRunBatch:
    def test_serial(self):
        df = make_frame({"a": 70, "b": 66})
        output_df, metadata_df = run_batch(df, SMALL, n_jobs=1, verbose=False)
        assert len(output_df) == (70 - 63) + (66 - 63)
        assert set(output_df["id"]) == {"a", "b"}
        assert (metadata_df["status"] == "success").all()
        assert metadata_df.loc["a", "n_steps"] == 7
        assert output_df[output_df["id"] == "a"]["time"].iloc[-1] == 69

    def test_parallel_matches_serial(self):
        df = make_frame({"a": 70, "b": 66, "c": 64}, seed=3)
        serial, _ = run_batch(df, SMALL, n_jobs=1, verbose=False)
        parallel, metadata_df = run_batch(df, SMALL, n_jobs=2, verbose=False)
        assert len(metadata_df) == 3
        pd.testing.assert_frame_equal(serial, parallel)

    def test_failed_series_does_not_stop_batch(self):
        df = make_frame({"good": 66, "bad": 66})
        df.loc[("bad", 10), "value"] = np.nan
        output_df, metadata_df = run_batch(df, SMALL, n_jobs=1, verbose=False)
        assert metadata_df.loc["bad", "status"] == "failed"
        assert metadata_df.loc["good", "status"] == "success"
        assert set(output_df["id"]) == {"good"}

    def test_unexpected_error_marks_series_failed(self, monkeypatch):
        import wavedenoise.batch_processor as bp
        real = bp.process_series

        def flaky(id_value, values, config):
            if id_value == "bad":
                raise TypeError("unsupported value type")
            return real(id_value, values, config)

        monkeypatch.setattr(bp, "process_series", flaky)
        output_df, metadata_df = run_batch(make_frame({"good": 66, "bad": 66}), SMALL, n_jobs=1, verbose=False)
        assert metadata_df.loc["bad", "status"] == "failed"
        assert "unsupported value type" in metadata_df.loc["bad", "error"]
        assert metadata_df.loc["good", "status"] == "success"
        assert set(output_df["id"]) == {"good"}

    def test_short_series(self):
        df = make_frame({"a": 20})
        output_df, metadata_df = run_batch(df, SMALL, n_jobs=1, verbose=False)
        assert output_df.empty
        assert metadata_df.loc["a", "n_steps"] == 0

    def test_invalid_config(self):
        from wavedenoise.exceptions import ConfigurationError
        with pytest.raises(ConfigurationError):
            run_batch(make_frame({"a": 70}), PipelineConfig(window_length=4, levels=3), n_jobs=1)

    def test_summary(self):
        df = make_frame({"a": 70, "b": 66})
        output_df, metadata_df = run_batch(df, SMALL, n_jobs=1, verbose=False)
        summary = get_batch_summary(output_df, metadata_df)
        assert summary["n_series"] == 2
        assert summary["n_successful"] == 2
        assert summary["n_failed"] == 0
        assert summary["n_steps"] == 10
        assert summary["avg_volatility"] > 0.0
