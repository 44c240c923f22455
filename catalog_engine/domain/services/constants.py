
# Query kinds (discriminator values of the query variants).
KIND_PREFIX = "prefix"        # autocomplete over names and description keywords
KIND_SORT = "sort"            # full ordering by one field
KIND_RECOMMEND = "recommend"  # ranked shortlist for a criteria (price, rating, popular, best_value)
KIND_TOP_K = "top_k"          # best N by an arbitrary score without sorting the catalog
KIND_NEAREST = "nearest"      # closest located items to a point
KIND_BUDGET = "budget"        # 0/1 knapsack selection under a cost ceiling
KIND_SCHEDULE = "schedule"    # non-overlapping booking selection for one item

# Sort orders
ORDER_ASC = "asc"
ORDER_DESC = "desc"

