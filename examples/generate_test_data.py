import csv
import os
import random

if not os.path.exists("data"):
  os.mkdir("data")

if not os.path.exists("data/flights.csv"):
  # Generate flights.csv
  carriers = ["UA", "AA", "B6", "DL", "EV", "MQ", "US", "WN"]
  destinations = ["IAH", "MIA", "BQN", "ATL", "ORD", "FLL", "IAD", "MCO", "LAX", "SFO"]
  flights = []
  for i in range(1000):
    month = random.randint(1, 12)
    day = random.randint(1, 28)
    cancelled = random.random() < 0.03
    dep_delay = "" if cancelled else random.randint(-15, 180)
    arr_delay = "" if cancelled else dep_delay + random.randint(-30, 30)
    air_time = "" if cancelled else random.randint(30, 400)
    distance = random.randint(200, 2600)
    flights.append([
      2013, month, day, random.choice(carriers), 1000 + i,
      random.choice(destinations), dep_delay, arr_delay, air_time, distance,
    ])

  with open("data/flights.csv", "w", newline="") as f:
    writer = csv.writer(f)
    writer.writerow([
      "year", "month", "day", "carrier", "flight",
      "dest", "dep_delay", "arr_delay", "air_time", "distance",
    ])
    writer.writerows(flights)
