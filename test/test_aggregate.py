import pyarrow as pa
import pytest

from dataverbs.compute import (
    ColumnStore,
    Count,
    CountTrue,
    DistinctCount,
    First,
    Last,
    Max,
    Mean,
    Median,
    Min,
    Quantile,
    StdDev,
    Sum,
    SummariseNode,
    Variance,
    col,
    count,
    group_by,
    summarise,
)
from dataverbs.errors import AggregateDomainError, ExpressionTypeError, NameResolutionError

TEST_DATA = ColumnStore(
    {
        "city": ["New York", "New York", "Los Angeles", "Los Angeles", "New York"],
        "shop": ["Shop A", "Shop B", "Shop A", "Shop A2", "Shop B"],
        "n_employees": [10, 15, 8, 12, 20],
    }
)

WITH_MISSING = ColumnStore({"v": [1.0, None, 3.0, 8.0]})


def test_summarise_scenario():
    store = ColumnStore({"c": ["A", "B", "A"], "v": [10, 20, 30]})
    result = summarise(group_by(store, "c"), mean=Mean("v"))
    assert result.to_pydict() == {"c": ["A", "B"], "mean": [20, 20]}


@pytest.mark.parametrize("keys", [["city"], ["city", "shop"]])
def test_basic_aggregation(keys):
    result = SummariseNode({"total_employees": Sum("n_employees")}).apply(
        group_by(TEST_DATA, *keys)
    )

    if keys == ["city"]:
        assert result.column_names == ["city", "total_employees"]
        assert result.column("city").to_pylist() == ["New York", "Los Angeles"]
        assert result.column("total_employees").to_pylist() == [45, 20]
    else:
        assert result.column_names == ["city", "shop", "total_employees"]
        assert result.column("city").to_pylist() == [
            "New York",
            "New York",
            "Los Angeles",
            "Los Angeles",
        ]
        assert result.column("shop").to_pylist() == ["Shop A", "Shop B", "Shop A", "Shop A2"]
        assert result.column("total_employees").to_pylist() == [10, 35, 8, 12]


@pytest.mark.parametrize(
    "aggregation, expected",
    [
        (Count(), [3, 2]),
        (Count("n_employees"), [3, 2]),
        (DistinctCount("shop"), [2, 2]),
        (Sum("n_employees"), [45, 20]),
        (Mean("n_employees"), [15, 10]),
        (Median("n_employees"), [15, 10]),
        (Quantile("n_employees", 0.5), [15, 10]),
        (Quantile("n_employees", 0), [10, 8]),
        (Quantile("n_employees", 1), [20, 12]),
        (Min("n_employees"), [10, 8]),
        (Max("n_employees"), [20, 12]),
        (First("shop"), ["Shop A", "Shop A"]),
        (Last("shop"), ["Shop B", "Shop A2"]),
        (CountTrue(col("n_employees") > 10), [2, 1]),
        (Variance("n_employees"), [25, 8]),
    ],
)
def test_aggregations(aggregation, expected):
    result = summarise(group_by(TEST_DATA, "city"), value=aggregation)
    assert result.column("value").to_pylist() == expected


def test_stddev():
    result = summarise(TEST_DATA, sd=StdDev("n_employees"))
    assert result.column("sd").to_pylist() == [pytest.approx(4.69041575982343)]


def test_summarise_ungrouped_store_is_one_partition():
    result = summarise(TEST_DATA, flights=Count(), total=Sum("n_employees"))
    assert result.to_pydict() == {"flights": [5], "total": [65]}


def test_summarise_expression_of_aggregates():
    result = summarise(group_by(TEST_DATA, "city"), avg=Sum("n_employees") / Count())
    assert result.column("avg").to_pylist() == [15, 10]


@pytest.mark.parametrize(
    "aggregation",
    [Count("v"), DistinctCount("v"), Sum("v"), Mean("v"), Median("v"), Min("v"), Max("v")],
)
def test_missing_propagates(aggregation):
    result = summarise(WITH_MISSING, value=aggregation)
    assert result.column("value").to_pylist() == [None]


@pytest.mark.parametrize(
    "aggregation, expected",
    [
        (Count("v", exclude_missing=True), 3),
        (DistinctCount("v", exclude_missing=True), 3),
        (Sum("v", exclude_missing=True), 12),
        (Mean("v", exclude_missing=True), 4),
        (Median("v", exclude_missing=True), 3),
        (Min("v", exclude_missing=True), 1),
        (Max("v", exclude_missing=True), 8),
        (First("v", exclude_missing=True), 1),
    ],
)
def test_exclude_missing(aggregation, expected):
    result = summarise(WITH_MISSING, value=aggregation)
    assert result.column("value").to_pylist() == [expected]


def test_exclude_missing_matches_known_values():
    known = ColumnStore({"v": [1.0, 3.0, 8.0]})
    for aggregation in (Mean, Sum):
        excluded = summarise(WITH_MISSING, value=aggregation("v", exclude_missing=True))
        reference = summarise(known, value=aggregation("v"))
        assert excluded == reference


def test_row_count_ignores_missing():
    assert summarise(WITH_MISSING, n=Count()).column("n").to_pylist() == [4]


def test_missing_propagates_per_group():
    store = ColumnStore({"k": ["a", "b", "a"], "v": [1, 2, None]})
    result = summarise(group_by(store, "k"), total=Sum("v"))
    assert result.to_pydict() == {"k": ["a", "b"], "total": [None, 2]}
    assert result.schema.field("total").type == pa.int64()


def test_all_missing_excluded():
    store = ColumnStore({"v": pa.array([None, None], type=pa.float64())})
    result = summarise(
        store,
        mean=Mean("v", exclude_missing=True),
        total=Sum("v", exclude_missing=True),
        n=Count("v", exclude_missing=True),
    )
    assert result.to_pydict() == {"mean": [None], "total": [0], "n": [0]}


def test_empty_partition():
    store = ColumnStore({"v": pa.array([], type=pa.int64())})
    assert summarise(store, n=Count(), total=Sum("v")).to_pydict() == {
        "n": [0],
        "total": [0],
    }
    with pytest.raises(AggregateDomainError):
        summarise(store, mean=Mean("v"))


def test_empty_grouped_store():
    store = ColumnStore({"k": pa.array([], type=pa.string()), "v": pa.array([], type=pa.int64())})
    result = summarise(group_by(store, "k"), total=Sum("v"))
    assert result.num_rows == 0
    assert result.column_names == ["k", "total"]


def test_sum_of_column_with_only_missing_values():
    store = ColumnStore({"c": ["A", "B"], "v": [None, None]})
    assert summarise(store, s=Sum("v", exclude_missing=True)).to_pydict() == {"s": [0]}
    assert summarise(store, s=Sum("v")).to_pydict() == {"s": [None]}
    result = summarise(group_by(store, "c"), s=Sum("v", exclude_missing=True))
    assert result.to_pydict() == {"c": ["A", "B"], "s": [0, 0]}


def test_sum_of_empty_untyped_column():
    assert summarise(ColumnStore({"v": []}), s=Sum("v")).to_pydict() == {"s": [0]}


def test_sum_of_text():
    with pytest.raises(ExpressionTypeError):
        summarise(TEST_DATA, total=Sum("city"))


CUTS = pa.DictionaryArray.from_arrays(
    pa.array([1, 4, 2], type=pa.int8()),
    pa.array(["Fair", "Good", "Very Good", "Premium", "Ideal"]),
    ordered=True,
)


def test_min_max_of_ordered_factor():
    store = ColumnStore({"cut": CUTS})
    result = summarise(store, lo=Min("cut"), hi=Max("cut"))
    assert result.to_pydict() == {"lo": ["Good"], "hi": ["Ideal"]}
    assert result.schema.field("lo").type == pa.string()


def test_min_max_of_unordered_factor():
    store = ColumnStore({"cut": pa.array(["Good", "Ideal", "Very Good"]).dictionary_encode()})
    result = summarise(store, lo=Min("cut"), hi=Max("cut"))
    assert result.to_pydict() == {"lo": ["Good"], "hi": ["Very Good"]}


def test_min_max_of_factor_with_missing():
    cut = pa.array(["Ideal", None, "Fair"]).dictionary_encode()
    store = ColumnStore({"cut": cut})
    assert summarise(store, lo=Min("cut")).to_pydict() == {"lo": [None]}
    result = summarise(store, lo=Min("cut", exclude_missing=True))
    assert result.to_pydict() == {"lo": ["Fair"]}


@pytest.mark.parametrize("q", [-0.1, 1.5])
def test_quantile_out_of_range(q):
    with pytest.raises(AggregateDomainError):
        Quantile("v", q)


def test_mean_of_text():
    with pytest.raises(ExpressionTypeError):
        summarise(TEST_DATA, mean=Mean("city"))


def test_count_true_requires_booleans():
    with pytest.raises(ExpressionTypeError):
        summarise(TEST_DATA, n=CountTrue("n_employees"))


def test_summarise_requires_reductions():
    with pytest.raises(ExpressionTypeError):
        summarise(TEST_DATA, value=col("n_employees") + 1)


def test_summarise_unknown_column():
    with pytest.raises(NameResolutionError):
        summarise(TEST_DATA, value=Sum("employees"))


def test_count_verb():
    result = count(TEST_DATA, "city")
    assert result.to_pydict() == {"city": ["New York", "Los Angeles"], "n": [3, 2]}
    assert count(TEST_DATA, name="rows").to_pydict() == {"rows": [5]}


def test_count_verb_on_grouped_store():
    result = count(group_by(TEST_DATA, "city"), "shop")
    assert result.to_pydict() == {
        "city": ["New York", "New York", "Los Angeles", "Los Angeles"],
        "shop": ["Shop A", "Shop B", "Shop A", "Shop A2"],
        "n": [1, 2, 1, 1],
    }


def test_aggregation_str():
    assert str(Mean("v", exclude_missing=True)) == "Mean(ColumnRef(v), exclude_missing=True)"
    assert str(Quantile("v", 0.9)) == "Quantile(ColumnRef(v), q=0.9)"
    assert str(Median("v")) == "Median(ColumnRef(v))"
    assert str(Count()) == "Count()"
    assert str(SummariseNode({"n": Count()})) == "SummariseNode(aggregations={'n': Count()})"


def test_summarise_count_50_rows():
    result = count(_generate_50rows_test_data(), "city", "shop")
    expected_cities = ["City" + str(i) for i in range(5) for _ in range(10)]
    expected_shops = ["Shop" + str(i) for _ in range(5) for i in range(10)]
    assert result.column("city").to_pylist() == expected_cities
    assert result.column("shop").to_pylist() == expected_shops
    assert result.column("n").to_pylist() == [2] * 50


def _generate_50rows_test_data():
    cities = ["City" + str(i) for i in range(5)]
    shops = ["Shop" + str(i) for i in range(10)]
    data = {"city": [], "shop": [], "n_employees": []}
    for city in cities:
        for shop in shops:
            for _ in range(2):  # Ensure each combination appears at least twice
                data["city"].append(city)
                data["shop"].append(shop)
                data["n_employees"].append(10)  # Arbitrary number of employees
    return ColumnStore(data)
