"""
In-memory reference views and the router that mounts them.
"""
from pagepilot.views.contact import ContactFormView
from pagepilot.views.products import ProductListView
from pagepilot.views.router import ViewRouter

__all__ = ["ContactFormView", "ProductListView", "ViewRouter"]
