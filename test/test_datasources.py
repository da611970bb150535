import os
import tempfile

import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from dataverbs.compute import ColumnStore, from_arrow, read_csv, read_parquet
from dataverbs.errors import ShapeError

# Mock data for testing
MOCK_PYARROW_TABLE = pa.table(
    {"city": ["NY", None, "LA"], "delay": [10, None, None], "ratio": [0.5, 1.5, 2.0]}
)
MOCK_CSV_TEXT = "city,delay,ratio\nNY,10,0.5\n,NA,1.5\nLA,,2.0\n"

MOCK_CSV_FILE = tempfile.NamedTemporaryFile(delete=False, mode="w+", suffix=".csv")
MOCK_PARQUET_FILE = tempfile.NamedTemporaryFile(delete=False, mode="w+", suffix=".parquet")


def setup_module():
    MOCK_CSV_FILE.write(MOCK_CSV_TEXT)
    MOCK_CSV_FILE.close()
    pq.write_table(MOCK_PYARROW_TABLE, MOCK_PARQUET_FILE.name)
    MOCK_PARQUET_FILE.close()


def teardown_module():
    os.unlink(MOCK_CSV_FILE.name)
    os.unlink(MOCK_PARQUET_FILE.name)


def test_read_csv():
    store = read_csv(MOCK_CSV_FILE.name)
    assert isinstance(store, ColumnStore)
    assert store.to_pydict() == MOCK_PYARROW_TABLE.to_pydict()


def test_read_csv_empty_and_na_cells_are_missing():
    store = read_csv(MOCK_CSV_FILE.name)
    assert store.column("city").null_count == 1
    assert store.column("delay").null_count == 2


def test_read_csv_with_block_size():
    store = read_csv(MOCK_CSV_FILE.name, block_size=32)
    assert store.num_rows == 3
    assert store.column("ratio").to_pylist() == [0.5, 1.5, 2.0]


def test_read_parquet():
    store = read_parquet(MOCK_PARQUET_FILE.name)
    assert store.to_pydict() == MOCK_PYARROW_TABLE.to_pydict()
    assert store.schema.field("delay").type == pa.int64()


@pytest.mark.parametrize("data", [MOCK_PYARROW_TABLE, MOCK_PYARROW_TABLE.to_batches()[0]])
def test_from_arrow(data):
    store = from_arrow(data)
    assert store.column_names == ["city", "delay", "ratio"]
    assert store.num_rows == 3


def test_from_arrow_chunked_table():
    table = pa.concat_tables([MOCK_PYARROW_TABLE, MOCK_PYARROW_TABLE])
    store = from_arrow(table)
    assert store.column("delay").to_pylist() == [10, None, None, 10, None, None]


def test_from_arrow_duplicate_names():
    table = pa.Table.from_arrays([pa.array([1]), pa.array([2])], names=["x", "x"])
    with pytest.raises(ShapeError):
        from_arrow(table)


def test_missing_file():
    with pytest.raises(OSError):
        read_csv("/non/existing/file.csv")
