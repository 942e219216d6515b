import numpy as np
import pandas as pd
import pytest

from gbpu_mapping.aggregate_gbpu import aggregate_by_gbpu


def by_unit(agg):
    return agg.set_index("GBPU")


def test_two_rows_one_unit():
    df = pd.DataFrame({"GBPU": ["X", "X"], "Estimate": [10, 20], "Total_Area": [5, 5]})
    agg = aggregate_by_gbpu(df)

    assert len(agg) == 1
    row = agg.iloc[0]
    assert row["GBPU"] == "X"
    assert row["Estimate"] == 30
    assert row["Total_Area"] == 10
    assert row["Density"] == pytest.approx(3000)


def test_text_values_and_missing_count_as_zero(population_raw):
    agg = by_unit(aggregate_by_gbpu(population_raw))

    assert agg.loc["Flathead", "Estimate"] == 45
    assert agg.loc["Flathead", "Total_Area"] == 15
    assert agg.loc["Flathead", "Density"] == pytest.approx(3000)
    assert agg.loc["North Purcell", "Density"] == pytest.approx(1500)
    assert list(agg.columns) == ["Estimate", "Total_Area", "Density"]


def test_zero_area_gives_non_finite_density():
    df = pd.DataFrame({"GBPU": ["Z", "Y"], "Estimate": ["3", "0"], "Total_Area": ["0", "0"]})
    agg = by_unit(aggregate_by_gbpu(df))

    assert np.isinf(agg.loc["Z", "Density"])
    assert np.isnan(agg.loc["Y", "Density"])


def test_row_order_does_not_change_sums(population_raw):
    base = by_unit(aggregate_by_gbpu(population_raw))
    shuffled = population_raw.sample(frac=1, random_state=7).reset_index(drop=True)
    again = by_unit(aggregate_by_gbpu(shuffled))

    pd.testing.assert_frame_equal(base.sort_index(), again.sort_index())


def test_missing_value_column_raises():
    with pytest.raises(ValueError, match="Total_Area"):
        aggregate_by_gbpu(pd.DataFrame({"GBPU": ["A"], "Estimate": [1]}))
