"""
Shared fixtures for the PagePilot test suite.

FakeOracle stands in for the language model. Replies are scripted per
cascade stage (keyed by the stage's system prompt); a stage without a
script answers NONE. A scripted Exception instance is raised instead.
"""

import pytest

from pagepilot.brain import prompts
from pagepilot.core.logger import init_logger

STAGE_BY_SYSTEM = {
    prompts.SUBMIT_SYSTEM: "submit",
    prompts.FORM_SYSTEM: "form",
    prompts.LIST_SYSTEM: "list",
    prompts.NAV_SYSTEM: "navigate",
}


class FakeOracle:
    """Scripted oracle that records which stages asked it."""

    def __init__(self, **replies):
        self.replies = replies
        self.calls = []

    def ask(self, system, prompt, temperature=0.3, max_tokens=100):
        stage = STAGE_BY_SYSTEM[system]
        self.calls.append(stage)
        reply = self.replies.get(stage, "NONE")
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep test output free of log lines below WARNING."""
    init_logger("ERROR")
    yield


@pytest.fixture
def fake_oracle():
    """Factory: fake_oracle(form='{...}', navigate='about')"""
    return FakeOracle
