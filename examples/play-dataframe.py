from dataverbs.compute import Count, CountTrue, Mean, Quantile, desc
from dataverbs.dataframe import Dataframe, col

df = Dataframe.open_csv("data/flights.csv") \
  .filter(col("dep_delay").is_not_missing(), col("arr_delay").is_not_missing()) \
  .group_by("dest") \
  .summarise(
    count=Count(),
    delay=Mean("arr_delay"),
    late=CountTrue(col("arr_delay") > 60),
    p90=Quantile("arr_delay", 0.9),
  ) \
  .filter(col("count") > 20) \
  .arrange(desc("delay")) \
  .collect()

print(df)
