import sys
import time

import pandas
import psutil

from dataverbs.compute import GroupByNode, Mean, Pipeline, SummariseNode, Sum, read_csv

try:
    summarise_type = sys.argv[1]
except IndexError:
    summarise_type = None

if summarise_type == "single":
    data = read_csv("data/flights.csv")
    q = Pipeline(
        [
            GroupByNode(["carrier"]),
            SummariseNode({"total_distance": Sum("distance")}),
        ]
    )
elif summarise_type == "multi":
    data = read_csv("data/flights.csv")
    q = Pipeline(
        [
            GroupByNode(["carrier", "dest"]),
            SummariseNode(
                {
                    "total_distance": Sum("distance"),
                    "mean_delay": Mean("arr_delay", exclude_missing=True),
                }
            ),
        ]
    )
elif summarise_type == "pandas":
    data = pandas.read_csv("data/flights.csv")

    def q(df):
        return (
            df.groupby("carrier", sort=False)
            .agg({"distance": "sum"})
            .rename(columns={"distance": "total_distance"})
        )

else:
    print("Summarise must be single, multi or pandas")
    sys.exit(1)

proc = psutil.Process()
start = time.time()
result = q(data)
end = time.time()

print(result)
print(
    "TIME:",
    round(end - start, 3),
    "MEMORY:",
    proc.memory_full_info().rss // (1024 * 1024),
)
