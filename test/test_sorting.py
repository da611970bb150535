import pytest

from dataverbs.compute import ArrangeNode, ColumnStore, arrange, col, desc, group_by
from dataverbs.compute.grouping import GroupedStore
from dataverbs.errors import NameResolutionError


def test_arrange_single_key():
    data = ColumnStore({"values": [5, 3, 1, 4, 2]})
    assert arrange(data, "values").column("values").to_pylist() == [1, 2, 3, 4, 5]


def test_arrange_descending():
    data = ColumnStore({"values": [1, 2, 3, 4, 5]})
    result = arrange(data, desc("values"))
    assert result.column("values").to_pylist() == [5, 4, 3, 2, 1]


def test_arrange_missing_last():
    data = ColumnStore({"values": [None, 2, 1]})
    assert arrange(data, "values").column("values").to_pylist() == [1, 2, None]
    assert arrange(data, desc("values")).column("values").to_pylist() == [2, 1, None]


def test_arrange_multiple_keys():
    data = ColumnStore(
        {"year": [2013, 2013, 2012, 2013], "month": [2, 1, 5, 1], "day": [1, 2, 3, 1]}
    )
    result = arrange(data, "year", "month", "day")
    assert result.to_pydict() == {
        "year": [2012, 2013, 2013, 2013],
        "month": [5, 1, 1, 2],
        "day": [3, 1, 2, 1],
    }


def test_arrange_is_stable():
    data = ColumnStore({"k": [1, 0, 1, 0], "order": [0, 1, 2, 3]})
    assert arrange(data, "k").column("order").to_pylist() == [1, 3, 0, 2]


def test_arrange_by_expression():
    data = ColumnStore({"distance": [100, 300, 200], "air_time": [10, 60, 10]})
    result = arrange(data, desc(col("distance") / col("air_time")))
    assert result.column("distance").to_pylist() == [200, 100, 300]


def test_arrange_grouped_store():
    data = ColumnStore({"c": ["A", "B", "A"], "v": [3, 1, 2]})
    result = arrange(group_by(data, "c"), "v")
    assert isinstance(result, GroupedStore)
    assert result.group_keys() == [("B",), ("A",)]


def test_arrange_requires_keys():
    with pytest.raises(ValueError):
        ArrangeNode([])


def test_arrange_unknown_column():
    with pytest.raises(NameResolutionError):
        arrange(ColumnStore({"a": [1]}), "b")


def test_arrange_node_str():
    node = ArrangeNode(["a", desc("b")])
    assert str(node) == "ArrangeNode(sorting=[ColumnRef(a) ascending, ColumnRef(b) descending])"
