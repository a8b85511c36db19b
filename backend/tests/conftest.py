import dataclasses

import pytest

import backend.main as main_module
from backend.app.services.feeds import ServiceContext
from backend.app.services.response_cache import ResponseCache
from backend.tests.fakes import FakeClock, FakeFeedClient


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ResponseCache(clock=clock)


@pytest.fixture
def app_context(tmp_path):
    """Swap the app's service context for one with a fake upstream and a temp library."""
    original = main_module.app.state.context
    settings = dataclasses.replace(original.settings, library_dir=tmp_path, app_env="production")
    context = ServiceContext(cache=ResponseCache(), client=FakeFeedClient(), settings=settings)
    main_module.app.state.context = context
    try:
        yield context
    finally:
        main_module.app.state.context = original
