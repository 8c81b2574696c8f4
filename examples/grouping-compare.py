import sys
import time

from reftable import By, SortedBy, SumAggregation, Table

try:
    grouping_type = sys.argv[1]
except IndexError:
    grouping_type = None

if grouping_type == "appearance":
    grouping = By("City", "Product")
elif grouping_type == "sorted":
    grouping = SortedBy("City", "Product")
else:
    print("Grouping must be appearance or sorted")
    sys.exit(1)

sales = Table.from_csv("data/sales.csv")
totals = {"total": SumAggregation("Quantity")}

start = time.time()
sales[:, totals, grouping]
print(f"FIRST RUN TIME: {time.time() - start:.2f}")

# Sorted groupings reuse the cached index on the second run.
start = time.time()
result = sales[:, totals, grouping]
print(f"SECOND RUN TIME: {time.time() - start:.2f}")
print(result)
