from reftable import By, N, SortedBy, SumAggregation, Table, assign, col

sales = Table.from_csv("data/sales.csv")
print(repr(sales))

# Compute a new column in place, visible through every alias.
report = sales.alias()
sales[:, assign(Total=col("Quantity") * col("Price"))]
print(report[:5])

print("--- Totals by city, in order of appearance")
print(sales[:, {"orders": N, "revenue": SumAggregation("Total")}, By("City")])

print("--- Laptops sold by city, sorted")
print(sales[col("Product") == "Laptop", {"sold": SumAggregation("Quantity")}, SortedBy("City")])

print("--- Share of each order over its city revenue")
sales[:, assign(Share=col("Total") / SumAggregation("Total")), By("City")]
print(sales.order_by("-Share")[:5, ["City", "Product", "Share"]])
