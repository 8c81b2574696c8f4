import csv
import os
import random
from datetime import datetime, timedelta

if not os.path.exists("data"):
    os.mkdir("data")

if not os.path.exists("data/sales.csv"):
    cities = ["Rome", "Milan", "Naples", "Turin", "Palermo", "Genoa", "Bologna"]
    products = ["Dress", "Car", "Videogame", "Laptop", "TV"]
    start_date = datetime(2023, 1, 1)
    sales = []
    for _ in range(100_000):
        day = start_date + timedelta(days=random.randint(0, 365))
        sales.append(
            [
                random.choice(cities),
                random.choice(products),
                random.randint(1, 10),
                round(random.uniform(10, 100), 2),
                day.strftime("%Y-%m-%d"),
            ]
        )

    with open("data/sales.csv", "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["City", "Product", "Quantity", "Price", "Day"])
        writer.writerows(sales)
