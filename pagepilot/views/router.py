"""
In-memory router.

Stands in for the rendering layer: holds the active destination, creates
a fresh view for it on every visit, and tells the dispatcher about route
changes and registry mount/unmount, in that order.
"""
from typing import Callable, Dict, Optional

from pagepilot.core.command_registry import CommandRegistry
from pagepilot.core.destinations import FORM_DESTINATION_ID, LIST_DESTINATION_ID, destination_id_for_path
from pagepilot.core.logger import get_logger
from pagepilot.views.contact import ContactFormView
from pagepilot.views.products import ProductListView

ViewFactory = Callable[[], CommandRegistry]

DEFAULT_VIEWS: Dict[str, ViewFactory] = {
    LIST_DESTINATION_ID: ProductListView,
    FORM_DESTINATION_ID: ContactFormView,
}


class ViewRouter:
    """
    Routes destination ids to views.

    With defer_mount=True a navigation only changes the route; the view's
    registry appears when finish_mount() is called, like a screen that
    registers its capabilities after an asynchronous render.
    """

    def __init__(self, views: Optional[Dict[str, ViewFactory]] = None, defer_mount: bool = False):
        self.logger = get_logger()
        self.views = dict(DEFAULT_VIEWS if views is None else views)
        self.defer_mount = defer_mount
        self.dispatcher = None
        self.current_id: Optional[str] = None
        self.current_view: Optional[CommandRegistry] = None
        self.history = []

    def attach(self, dispatcher) -> None:
        self.dispatcher = dispatcher

    def navigate(self, destination_id: str) -> None:
        if destination_id == self.current_id:
            return

        if self.current_view is not None and self.dispatcher is not None:
            self.dispatcher.on_unmount(self.current_id)
        self.current_view = None

        self.current_id = destination_id
        self.history.append(destination_id)
        self.logger.debug(f"[VIEW] route -> {destination_id}")
        if self.dispatcher is not None:
            self.dispatcher.on_destination_changed(destination_id)

        if not self.defer_mount:
            self.finish_mount()

    def finish_mount(self) -> None:
        """Create the active destination's view and publish its registry."""
        if self.current_view is not None:
            return
        factory = self.views.get(self.current_id)
        if factory is None:
            return
        self.current_view = factory()
        if self.dispatcher is not None:
            self.dispatcher.on_mount(self.current_id, self.current_view)

    def navigate_path(self, path: str) -> None:
        """Navigate by URL path ("/" is home), as a click on a link would."""
        self.navigate(destination_id_for_path(path))
