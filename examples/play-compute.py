from dataverbs.compute import (
    Count,
    FilterNode,
    GroupByNode,
    Mean,
    MutateNode,
    SummariseNode,
    col,
    pipeline,
    read_csv,
)

flights = read_csv("data/flights.csv")

# Average speed of the flights of the first of January, by carrier
result = pipeline(
    flights,
    [
        FilterNode([col("month") == 1, col("day") == 1]),
        MutateNode({"speed": col("distance") / col("air_time") * 60}),
        GroupByNode(["carrier"]),
        SummariseNode(
            {
                "speed": Mean("speed", exclude_missing=True),
                "flights": Count(),
            }
        ),
    ],
)
print(result)
