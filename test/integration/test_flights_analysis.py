import pyarrow as pa
import pytest

from dataverbs.compute import (
    ColumnStore,
    CountTrue,
    FilterNode,
    GroupByNode,
    Mean,
    Median,
    MutateNode,
    Quantile,
    SummariseNode,
    col,
    pipeline,
)
from dataverbs.dataframe import Dataframe
from dataverbs.errors import ExpressionTypeError

FLIGHTS = ColumnStore(
    {
        "carrier": ["UA", "AA", "UA", "DL", "AA", "UA", "DL", None],
        "origin": ["EWR", "JFK", "LGA", "JFK", "LGA", "EWR", "JFK", "EWR"],
        "dep_delay": [2, None, 45, -3, 80, 12, 5, 7],
        "arr_delay": [11, None, 50, -10, 75, 20, 0, 9],
        "distance": [1400, 1089, 1416, 762, 733, 1400, 762, 229],
        "air_time": [227, None, 160, 116, 150, 200, 120, 40],
    }
)


def test_delay_report_by_carrier():
    result = pipeline(
        FLIGHTS,
        [
            FilterNode([col("distance") > 500]),
            MutateNode(
                {
                    "speed": col("distance") / col("air_time") * 60,
                    "gain": col("dep_delay") - col("arr_delay"),
                }
            ),
            GroupByNode(["carrier"]),
            SummariseNode(
                {
                    "mean_gain": Mean("gain", exclude_missing=True),
                    "late": CountTrue(col("arr_delay") > 15, exclude_missing=True),
                    "median_delay": Median("dep_delay"),
                }
            ),
        ],
    )

    assert result.column("carrier").to_pylist() == ["UA", "AA", "DL"]
    assert result.column("mean_gain").to_pylist() == pytest.approx([-22 / 3, 5.0, 6.0])
    assert result.column("late").to_pylist() == [2, 1, 0]
    # AA has a flight with an unknown delay.
    assert result.column("median_delay").to_pylist() == [12, None, 1]


def test_deviation_from_group_mean():
    result = (
        Dataframe(FLIGHTS)
        .filter(col("carrier").is_not_missing())
        .group_by("carrier")
        .mutate(above_mean=col("distance") > Mean("distance"))
        .filter(col("above_mean"))
        .ungroup()
        .select("carrier", "distance")
        .to_pydict()
    )
    assert result == {"carrier": ["AA", "UA"], "distance": [1089, 1416]}


def test_origin_quantiles():
    result = (
        Dataframe(FLIGHTS)
        .group_by("origin")
        .summarise(p90=Quantile("distance", 0.9), n=CountTrue(col("distance") > 0))
        .arrange("origin")
        .to_pydict()
    )
    assert result["origin"] == ["EWR", "JFK", "LGA"]
    assert result["n"] == [3, 3, 2]
    assert result["p90"] == pytest.approx([1400.0, 1023.6, 1347.7])


def test_type_error_stops_the_analysis():
    with pytest.raises(ExpressionTypeError):
        pipeline(
            FLIGHTS,
            [
                MutateNode({"bad": col("carrier") + 1}),
                GroupByNode(["carrier"]),
            ],
        )


def test_missing_carrier_is_its_own_group():
    result = Dataframe(FLIGHTS).count("carrier").to_arrow()
    assert result.column("carrier").to_pylist() == ["UA", "AA", "DL", None]
    assert result.column("n").to_pylist() == [3, 2, 2, 1]
    assert result.schema.field("n").type == pa.int64()
