"""
Destination metadata.

The set of destinations is small and fixed per deployment; `id` is the
stable key used by the classifier, the dispatcher and the wire format.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class Destination:
    """A screen the user can be navigated to."""
    id: str
    display_name: str
    path: str
    keywords: Tuple[str, ...] = field(default_factory=tuple)
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation (camelCase keys, as consumed by the browser client)."""
        return {
            "id": self.id,
            "name": self.display_name,
            "path": self.path,
            "keywords": list(self.keywords),
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Destination":
        return cls(
            id=str(data["id"]),
            display_name=str(data.get("name") or data.get("displayName") or data["id"]),
            path=str(data.get("path") or f"/{data['id']}"),
            keywords=tuple(str(k) for k in (data.get("keywords") or [])),
            description=data.get("description"),
        )


# Destination that hosts the filterable list view
LIST_DESTINATION_ID = "products"

# Destination that hosts the multi-field form
FORM_DESTINATION_ID = "contact"

HOME_DESTINATION_ID = "home"


DEFAULT_DESTINATIONS: List[Destination] = [
    Destination(
        id="home",
        display_name="Home",
        path="/",
        keywords=("home", "main", "landing", "homepage", "start", "beginning", "welcome"),
        description="The main landing page of the application",
    ),
    Destination(
        id="about",
        display_name="About",
        path="/about",
        keywords=("about", "information", "company", "who we are", "mission", "team",
                  "organization", "about us"),
        description="Information about our company, mission, and team",
    ),
    Destination(
        id="products",
        display_name="Products",
        path="/products",
        keywords=("products", "services", "items", "offerings", "solutions", "buy",
                  "purchase", "catalog", "shop"),
        description="Browse our products and services",
    ),
    Destination(
        id="contact",
        display_name="Contact",
        path="/contact",
        keywords=("contact", "email", "phone", "message", "support", "help", "reach out",
                  "contact us", "get in touch"),
        description="Contact information and a form to reach us",
    ),
    Destination(
        id="settings",
        display_name="Settings",
        path="/settings",
        keywords=("settings", "preferences", "options", "configure", "setup", "customize",
                  "personalize", "account"),
        description="Configure your application settings and preferences",
    ),
]


def find_destination(destination_id: Optional[str], destinations: Iterable[Destination]) -> Optional[Destination]:
    """Look up a destination by id."""
    if not destination_id:
        return None
    for dest in destinations:
        if dest.id == destination_id:
            return dest
    return None


def destination_id_for_path(path: str) -> str:
    """Map a router path to a destination id ("/" is home)."""
    p = (path or "").strip()
    if p in ("", "/"):
        return HOME_DESTINATION_ID
    return p.lstrip("/").split("/")[0] or HOME_DESTINATION_ID
