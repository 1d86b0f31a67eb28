"""Shared fixtures for domscribe tests."""

import pytest
from bs4 import BeautifulSoup

from domscribe.capture.describer import ElementDescriber
from domscribe.config import Settings
from domscribe.recording.context import SessionContext
from domscribe.recording.models import (
    ElementDescriptor,
    Event,
    EventType,
    InputPayload,
    SessionConfig,
)
from domscribe.recording.orchestrator import Recorder
from domscribe.storage.memory import InMemoryEventStore
from domscribe.utils.scheduling import ManualScheduler


CONTACT_PAGE = (
    "<html><head><title>Contact</title></head><body>"
    '<nav class="top-nav main"><a href="/">Home</a><a href="/about">About</a></nav>'
    '<form id="contact-form">'
    '<label for="email">Email address</label>'
    '<input id="email" type="email" name="email" placeholder="you@example.com">'
    '<label>Phone <input type="tel" name="phone"></label>'
    '<input type="password" name="password">'
    '<textarea name="message"></textarea>'
    '<button id="submit-btn" aria-label="Submit">Send</button>'
    "</form>"
    '<ul class="items list extra"><li>One</li><li>Two</li></ul>'
    "</body></html>"
)


# =============================================================================
# DOM fixtures
# =============================================================================


@pytest.fixture
def page():
    """Parsed contact page."""
    return BeautifulSoup(CONTACT_PAGE, "html.parser")


@pytest.fixture
def describer():
    return ElementDescriber()


# =============================================================================
# Session fixtures
# =============================================================================


@pytest.fixture
def scheduler():
    """Logical clock starting at t=1000ms."""
    return ManualScheduler(start_ms=1000)


@pytest.fixture
def settings():
    """Settings with defaults, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def session_config(settings):
    return SessionConfig.from_settings(settings)


@pytest.fixture
def context(scheduler, session_config):
    """Session context with the session starting at the current clock."""
    return SessionContext(
        session_id="session-1",
        config=session_config,
        scheduler=scheduler,
        origin_ms=scheduler.now(),
    )


@pytest.fixture
def store():
    return InMemoryEventStore()


@pytest.fixture
def recorder(store, scheduler, settings):
    return Recorder(store, scheduler=scheduler, settings=settings)


# =============================================================================
# Event factories
# =============================================================================


@pytest.fixture
def make_input_event():
    """Factory for input events on a described field."""

    def _make(
        value: str,
        input_type: str = "text",
        tag_name: str = "input",
        css_selector: str = "#field",
        element_id: str | None = "field",
        label: str | None = "Field",
    ) -> Event:
        return Event(
            session_id="session-1",
            timestamp=10.0,
            type=EventType.INPUT,
            target=ElementDescriptor(
                tag_name=tag_name,
                id=element_id,
                label=label,
                css_selector=css_selector,
                xpath=f'//*[@id="{element_id}"]' if element_id else "/html[1]/body[1]/input[1]",
            ),
            payload=InputPayload(input_type=input_type, value=value),
        )

    return _make
