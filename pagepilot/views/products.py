"""
Product list view.

In-memory model of the products screen: a fixed catalogue with a
category filter, price sort and free-text search. Registers a
ListCommandRegistry while mounted.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pagepilot.core.actions import ListOp
from pagepilot.core.command_registry import ListCommandRegistry
from pagepilot.core.logger import get_logger

ALL_CATEGORIES = "All"

SORT_NONE = "none"
SORT_ASC = "asc"
SORT_DESC = "desc"


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    description: str
    price: int
    category: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": f"${self.price}",
            "category": self.category,
        }


DEFAULT_PRODUCTS: List[Product] = [
    Product(1, "Voice Navigator Pro", "Advanced speech recognition for enterprise applications", 999, "Enterprise"),
    Product(2, "Speech AI SDK", "Developer toolkit for building voice-enabled applications", 499, "Developer"),
    Product(3, "Voice Assistant Plugin", "Add voice navigation to your existing website", 299, "Integration"),
    Product(4, "Multilingual Voice Pack", "Support for 20+ languages and dialects", 199, "Add-on"),
    Product(5, "Voice Analytics Pro", "Advanced analytics for voice interactions", 399, "Enterprise"),
    Product(6, "Voice UX Testing Tool", "Test your voice user experience with real users", 599, "Developer"),
]


class ProductListView(ListCommandRegistry):
    """Products screen state plus its list command surface."""

    def __init__(self, products: Optional[List[Product]] = None):
        self.logger = get_logger()
        self.all_products: List[Product] = list(products if products is not None else DEFAULT_PRODUCTS)
        self.category_filter = ALL_CATEGORIES
        self.price_sort = SORT_NONE
        self.search_query = ""

    def categories(self) -> List[str]:
        seen: List[str] = []
        for p in self.all_products:
            if p.category not in seen:
                seen.append(p.category)
        return [ALL_CATEGORIES] + seen

    def _resolve_category(self, value: str) -> Optional[str]:
        """Case-insensitive category lookup; tolerates a trailing 'products'/'category'."""
        v = (value or "").strip().lower()
        for suffix in (" products", " category"):
            if v.endswith(suffix):
                v = v[: -len(suffix)].strip()
        for cat in self.categories():
            if cat.lower() == v:
                return cat
        return None

    def apply_list_mutation(self, op: str, field: Optional[str] = None, value: Optional[str] = None) -> bool:
        op = op.value if isinstance(op, ListOp) else str(op)

        if op == ListOp.CLEAR.value:
            self.category_filter = ALL_CATEGORIES
            self.price_sort = SORT_NONE
            self.search_query = ""
            return True

        if op == ListOp.FILTER.value:
            category = self._resolve_category(value or "")
            if category is None:
                self.logger.warning(f"[VIEW] products: unknown category '{value}'")
                return False
            self.category_filter = category
            return True

        if op == ListOp.SORT.value:
            if value == "low-to-high":
                self.price_sort = SORT_ASC
            elif value == "high-to-low":
                self.price_sort = SORT_DESC
            else:
                self.price_sort = SORT_NONE
            return True

        if op == ListOp.SEARCH.value:
            self.search_query = (value or "").strip()
            return True

        return False

    def visible_products(self) -> List[Product]:
        products = list(self.all_products)
        if self.category_filter != ALL_CATEGORIES:
            products = [p for p in products if p.category == self.category_filter]
        if self.search_query:
            q = self.search_query.lower()
            products = [
                p for p in products
                if q in p.name.lower() or q in p.description.lower() or q in p.category.lower()
            ]
        if self.price_sort != SORT_NONE:
            products.sort(key=lambda p: p.price, reverse=self.price_sort == SORT_DESC)
        return products

    def active_filters(self) -> List[str]:
        active = []
        if self.category_filter != ALL_CATEGORIES:
            active.append(f"Category: {self.category_filter}")
        if self.price_sort == SORT_ASC:
            active.append("Price: Low to High")
        elif self.price_sort == SORT_DESC:
            active.append("Price: High to Low")
        if self.search_query:
            active.append(f"Search: \"{self.search_query}\"")
        return active

    def read_state(self) -> Dict[str, Any]:
        return {
            "category": self.category_filter,
            "sort": self.price_sort,
            "search": self.search_query,
            "activeFilters": self.active_filters(),
            "products": [p.to_dict() for p in self.visible_products()],
        }
