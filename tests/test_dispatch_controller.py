"""
Tests for the action dispatch controller.

Covers immediate application, the pending-action lifecycle (ready signal,
last-submitted-wins, cancellation, grace timeout) and validation of form
entries. Timers are fakes fired by hand.

Run with: python -m pytest tests/test_dispatch_controller.py -v
"""

import pytest
from unittest.mock import MagicMock

from pagepilot.core.actions import FieldEntry, FormMutation, FormOp, ListMutation, ListOp, Navigate, NoMatch
from pagepilot.core.destinations import DEFAULT_DESTINATIONS, find_destination
from pagepilot.core.dispatch_controller import DispatchController, OutcomeStatus, target_destination_for
from pagepilot.core.errors import MSG_DISPATCH_FAILED, MSG_NO_INTENT
from pagepilot.core.state import DispatchState, PendingAction, RuntimeState
from pagepilot.views import ContactFormView, ProductListView, ViewRouter


class FakeTimer:
    def __init__(self, interval, fn):
        self.interval = interval
        self.fn = fn
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.fn()


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def timers():
    return []


@pytest.fixture
def listener():
    return MagicMock()


@pytest.fixture
def navigate():
    return MagicMock()


@pytest.fixture
def controller(navigate, listener, timers):
    def factory(interval, fn):
        timer = FakeTimer(interval, fn)
        timers.append(timer)
        return timer

    ctrl = DispatchController(
        navigate=navigate,
        destinations=DEFAULT_DESTINATIONS,
        grace_sec=0.5,
        timer_factory=factory,
        listener=listener,
    )
    ctrl.on_destination_changed("home")
    return ctrl


def fill_name(value):
    return FormMutation(FormOp.FILL_ONE, (FieldEntry("name", value),))


def enter(controller, destination_id, registry=None):
    """Simulate the rendering layer: route change, then registry mount."""
    controller.on_destination_changed(destination_id)
    if registry is not None:
        controller.on_mount(destination_id, registry)


# ============================================================================
# TERMINAL ACTIONS
# ============================================================================

class TestNavigateAndNoMatch:

    def test_navigate_triggers_navigation_only(self, controller, navigate):
        about = find_destination("about", DEFAULT_DESTINATIONS)
        outcome = controller.dispatch(Navigate(about))
        navigate.assert_called_once_with("about")
        assert outcome.status == OutcomeStatus.NAVIGATED
        assert controller.pending is None
        assert controller.state.is_in_state(DispatchState.IDLE)

    def test_no_match_reports_and_keeps_utterance(self, controller, navigate):
        outcome = controller.dispatch(NoMatch("blorp"))
        assert outcome.status == OutcomeStatus.NO_MATCH
        assert outcome.message == MSG_NO_INTENT
        assert outcome.action.utterance == "blorp"
        navigate.assert_not_called()

    def test_targets(self):
        assert target_destination_for(ListMutation(ListOp.CLEAR)) == "products"
        assert target_destination_for(fill_name("Jo")) == "contact"
        assert target_destination_for(NoMatch()) is None


# ============================================================================
# IMMEDIATE APPLICATION
# ============================================================================

class TestImmediateApply:

    def test_clear_filters_on_list_screen(self, controller, navigate):
        """'clear all filters' on the list screen applies with no navigation."""
        view = ProductListView()
        view.apply_list_mutation("search", "text", "voice")
        enter(controller, "products", view)

        outcome = controller.dispatch(ListMutation(ListOp.CLEAR))

        assert outcome.status == OutcomeStatus.APPLIED
        assert view.search_query == ""
        navigate.assert_not_called()
        assert controller.state.is_in_state(DispatchState.IDLE)

    def test_rejected_list_value(self, controller):
        view = ProductListView()
        enter(controller, "products", view)
        outcome = controller.dispatch(ListMutation(ListOp.FILTER, "category", "Gardening"))
        assert outcome.status == OutcomeStatus.INVALID
        assert "Gardening" in outcome.message
        assert view.category_filter == "All"

    def test_registry_kind_mismatch_is_refused(self, controller):
        """A list mutation is never applied through a form registry."""
        form = ContactFormView()
        form.fill_field = MagicMock()
        enter(controller, "products", form)

        outcome = controller.dispatch(ListMutation(ListOp.CLEAR))

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.message == MSG_DISPATCH_FAILED
        form.fill_field.assert_not_called()

    def test_registry_exception_is_a_failure(self, controller):
        view = ProductListView()
        view.apply_list_mutation = MagicMock(side_effect=RuntimeError("render error"))
        enter(controller, "products", view)
        outcome = controller.dispatch(ListMutation(ListOp.CLEAR))
        assert outcome.status == OutcomeStatus.FAILED


# ============================================================================
# FORM VALIDATION
# ============================================================================

class TestFormValidation:

    @pytest.fixture
    def form(self, controller):
        view = ContactFormView()
        enter(controller, "contact", view)
        return view

    def test_fill_one(self, controller, form):
        outcome = controller.dispatch(fill_name("Jane Doe"))
        assert outcome.status == OutcomeStatus.APPLIED
        assert (outcome.applied, outcome.requested) == (1, 1)
        assert form.values["name"] == "Jane Doe"

    def test_invalid_email_is_rejected(self, controller, form):
        action = FormMutation(FormOp.FILL_ONE, (FieldEntry("email", "not-an-email"),))
        outcome = controller.dispatch(action)
        assert outcome.status == OutcomeStatus.INVALID
        assert "not-an-email" in outcome.message
        assert form.values["email"] == ""

    def test_fill_many_applies_valid_entries(self, controller, form):
        """A bad email does not block the other fields."""
        action = FormMutation(FormOp.FILL_MANY, (
            FieldEntry("name", "Jane"),
            FieldEntry("email", "jane@"),
        ))
        outcome = controller.dispatch(action)
        assert outcome.status == OutcomeStatus.APPLIED
        assert (outcome.applied, outcome.requested) == (1, 2)
        assert "doesn't appear to be valid" in outcome.message
        assert form.values["name"] == "Jane"
        assert form.values["email"] == ""

    def test_unknown_field_is_reported(self, controller, form):
        action = FormMutation(FormOp.FILL_MANY, (
            FieldEntry("phone", "555-0100"),
            FieldEntry("message", "Call me"),
        ))
        outcome = controller.dispatch(action)
        assert (outcome.applied, outcome.requested) == (1, 2)
        assert 'no field called "phone"' in outcome.message
        assert form.values["message"] == "Call me"

    def test_nothing_applicable(self, controller, form):
        action = FormMutation(FormOp.FILL_MANY, (FieldEntry("phone", "1"), FieldEntry("fax", "2")))
        outcome = controller.dispatch(action)
        assert outcome.status == OutcomeStatus.INVALID
        assert outcome.applied == 0

    def test_leading_connector_is_cleaned(self, controller, form):
        controller.dispatch(fill_name("as John"))
        assert form.values["name"] == "John"

    def test_submit(self, controller, form):
        form.fill_field("name", "Jo")
        outcome = controller.dispatch(FormMutation(FormOp.SUBMIT))
        assert outcome.status == OutcomeStatus.APPLIED
        assert form.last_submission()["fields"]["name"] == "Jo"
        assert form.values["name"] == ""


# ============================================================================
# PENDING ACTION LIFECYCLE
# ============================================================================

class TestPendingAction:

    def test_form_action_from_other_screen(self, controller, navigate, listener, timers):
        """Navigation happens once; the action applies once when the form mounts."""
        outcome = controller.dispatch(fill_name("Jane"))

        assert outcome.status == OutcomeStatus.PENDING
        navigate.assert_called_once_with("contact")
        assert controller.pending.destination_id == "contact"
        assert controller.state.is_in_state(DispatchState.AWAITING_DESTINATION)
        assert timers[-1].started and timers[-1].interval == 0.5

        form = ContactFormView()
        enter(controller, "contact", form)

        assert form.values["name"] == "Jane"
        listener.assert_called_once()
        assert listener.call_args[0][0].status == OutcomeStatus.APPLIED
        assert controller.pending is None
        assert timers[-1].cancelled
        assert controller.state.is_in_state(DispatchState.IDLE)

        # A later remount does not re-apply
        controller.on_unmount("contact")
        enter(controller, "contact", ContactFormView())
        assert listener.call_count == 1

    def test_route_change_alone_is_not_ready(self, controller, listener):
        """Active destination without a registry keeps waiting."""
        controller.dispatch(ListMutation(ListOp.CLEAR))
        controller.on_destination_changed("products")
        assert controller.pending is not None
        listener.assert_not_called()

    def test_registry_before_route_change(self, controller, listener):
        """Mount first, route change second: applied on the route change."""
        controller.dispatch(ListMutation(ListOp.SORT, "price", "high-to-low"))
        view = ProductListView()
        controller.on_mount("products", view)
        listener.assert_not_called()
        controller.on_destination_changed("products")
        assert view.price_sort == "desc"
        listener.assert_called_once()

    def test_last_submitted_wins(self, controller, listener):
        """A second pending action replaces the first; only it is applied."""
        controller.dispatch(fill_name("First"))
        controller.dispatch(fill_name("Second"))

        form = ContactFormView()
        enter(controller, "contact", form)

        assert form.values["name"] == "Second"
        listener.assert_called_once()

    def test_new_turn_clears_pending(self, controller, listener, timers):
        controller.dispatch(fill_name("Jane"))
        controller.begin_turn()
        assert controller.pending is None
        assert timers[-1].cancelled

        form = ContactFormView()
        enter(controller, "contact", form)
        assert form.values["name"] == ""
        listener.assert_not_called()

    def test_navigating_elsewhere_cancels(self, controller, listener):
        controller.dispatch(fill_name("Jane"))
        controller.on_destination_changed("about")
        assert controller.pending is None
        assert controller.state.is_in_state(DispatchState.IDLE)

        form = ContactFormView()
        enter(controller, "contact", form)
        assert form.values["name"] == ""
        listener.assert_not_called()

    def test_navigating_elsewhere_cancels_timer(self, controller, timers):
        controller.dispatch(fill_name("Jane"))
        controller.on_destination_changed("about")
        assert timers[-1].cancelled

    @pytest.mark.parametrize("make_action", [
        lambda: Navigate(find_destination("about", DEFAULT_DESTINATIONS)),
        lambda: NoMatch("blorp"),
    ])
    def test_terminal_action_drops_pending_and_timer(self, controller, listener, timers, make_action):
        """Without begin_turn, a navigate or no-match still cancels the held action."""
        controller.dispatch(fill_name("Jane"))
        timer = timers[-1]

        controller.dispatch(make_action())

        assert controller.pending is None
        assert timer.cancelled
        assert controller.state.is_in_state(DispatchState.IDLE)
        timer.fn()
        listener.assert_not_called()

    def test_grace_timeout_drops_action(self, controller, listener, timers):
        """The registry never appeared: reported once as a failure, not retried."""
        controller.dispatch(fill_name("Jane"))
        timers[-1].fire()

        listener.assert_called_once()
        outcome = listener.call_args[0][0]
        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.message == MSG_DISPATCH_FAILED
        assert controller.pending is None

        form = ContactFormView()
        enter(controller, "contact", form)
        assert form.values["name"] == ""
        assert listener.call_count == 1

    def test_stale_timer_is_ignored(self, controller, listener, timers):
        """A timer from a replaced pending action cannot drop the new one."""
        controller.dispatch(fill_name("First"))
        controller.dispatch(fill_name("Second"))
        timers[0].fn()
        assert controller.pending.action == fill_name("Second")
        listener.assert_not_called()

    def test_listener_errors_are_contained(self, controller, listener):
        listener.side_effect = RuntimeError("ui gone")
        controller.dispatch(fill_name("Jane"))
        enter(controller, "contact", ContactFormView())
        assert controller.pending is None


# ============================================================================
# WITH THE IN-MEMORY ROUTER
# ============================================================================

class TestWithRouter:

    def _wire(self, timers, listener, defer_mount=False):
        router = ViewRouter(defer_mount=defer_mount)
        ctrl = DispatchController(
            navigate=router.navigate,
            timer_factory=lambda interval, fn: timers.append(FakeTimer(interval, fn)) or timers[-1],
            listener=listener,
        )
        router.attach(ctrl)
        router.navigate("home")
        return router, ctrl

    def test_synchronous_mount_returns_applied(self, timers, listener):
        """When the router mounts inside navigate(), dispatch returns the applied outcome."""
        router, ctrl = self._wire(timers, listener)
        outcome = ctrl.dispatch(FormMutation(FormOp.SUBMIT))

        assert outcome.status == OutcomeStatus.APPLIED
        assert router.current_id == "contact"
        assert len(router.current_view.submissions) == 1
        assert router.history == ["home", "contact"]
        listener.assert_not_called()

    def test_deferred_mount(self, timers, listener):
        router, ctrl = self._wire(timers, listener, defer_mount=True)
        outcome = ctrl.dispatch(ListMutation(ListOp.FILTER, "category", "Developer"))
        assert outcome.status == OutcomeStatus.PENDING

        router.finish_mount()

        assert [p.category for p in router.current_view.visible_products()] == ["Developer", "Developer"]
        assert listener.call_args[0][0].status == OutcomeStatus.APPLIED

    def test_leaving_unmounts_registry(self, timers, listener):
        router, ctrl = self._wire(timers, listener)
        router.navigate("products")
        assert ctrl.get_registry("products") is not None
        router.navigate_path("/about")
        assert ctrl.get_registry("products") is None
        assert ctrl.state.active_destination_id == "about"


# ============================================================================
# RUNTIME STATE
# ============================================================================

class TestRuntimeState:

    def test_pending_age(self):
        state = RuntimeState()
        assert state.get_pending_age() == 0.0
        state.pending = PendingAction(fill_name("Jo"), "contact", token=1, created_at=0.0)
        assert state.get_pending_age() > 0.0

    def test_idle_transition_leaves_pending_to_the_controller(self):
        """Dropping the pending slot (and its timer) is the controller's job."""
        state = RuntimeState()
        state.pending = PendingAction(fill_name("Jo"), "contact", token=1)
        state.transition_to(DispatchState.IDLE)
        assert state.pending is not None

    def test_classifying_counts_turns(self):
        state = RuntimeState()
        state.transition_to(DispatchState.CLASSIFYING)
        state.transition_to(DispatchState.IDLE)
        state.transition_to(DispatchState.CLASSIFYING)
        assert state.turns == 2
