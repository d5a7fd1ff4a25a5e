from enum import Enum


class ExpenseCategory(str, Enum):
    rent_housing = "Rent / Housing"
    groceries = "Groceries"
    utilities = "Utilities"
    food_dining = "Food & Dining"
    subscriptions = "Subscriptions"
    transportation = "Transportation"
    shopping = "Shopping"
    healthcare = "Healthcare"
    entertainment = "Entertainment"
    travel = "Travel"
    other = "Other"


# Presentation metadata only. Aggregation never reads it.
CATEGORY_DISPLAY: dict[ExpenseCategory, dict[str, str]] = {
    ExpenseCategory.rent_housing: {"color": "#FF6B6B"},
    ExpenseCategory.groceries: {"color": "#4ECDC4"},
    ExpenseCategory.utilities: {"color": "#45B7D1"},
    ExpenseCategory.food_dining: {"color": "#96CEB4"},
    ExpenseCategory.subscriptions: {"color": "#FFEAA7"},
    ExpenseCategory.transportation: {"color": "#DDA0DD"},
    ExpenseCategory.shopping: {"color": "#98D8C8"},
    ExpenseCategory.healthcare: {"color": "#F0A500"},
    ExpenseCategory.entertainment: {"color": "#FF8B94"},
    ExpenseCategory.travel: {"color": "#A8E6CF"},
    ExpenseCategory.other: {"color": "#B0B0B0"},
}


def display_table() -> list[dict[str, str]]:
    return [
        {"value": category.value, "label": category.value, **CATEGORY_DISPLAY[category]}
        for category in ExpenseCategory
    ]
