import os

import pytest


@pytest.fixture(scope="session")
def _consumables_domain(request):
    """Initialize the consumables domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from consumables.domain import consumables

    consumables.init()
    return consumables


@pytest.fixture(scope="session", autouse=True)
def setup_db(_consumables_domain):
    from consumables.utils.db import drop_db, setup_db

    setup_db(_consumables_domain)

    yield

    drop_db(_consumables_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_consumables_domain):
    """Push domain context before each test, cleanup after."""
    from consumables.approval import reset_approval_gate
    from consumables.channel import reset_todo_sinks
    from consumables.settings import reset_settings

    ctx = _consumables_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()

    reset_todo_sinks()
    reset_approval_gate()
    reset_settings()
