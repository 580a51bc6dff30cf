"""Shared pytest fixtures for the tab switch probe tests."""

import pytest

from checks import CheckRecorder
from tests.support.fake_page import FakeBrowser


@pytest.fixture
def recorder() -> CheckRecorder:
    """Provide an empty per-iteration check recorder."""
    return CheckRecorder()


@pytest.fixture
def fake_browser() -> type[FakeBrowser]:
    """Provide the fake browser class; call it with FakePage options."""
    return FakeBrowser
