"""Shared fixtures."""

import pytest

from draft_room.models.roster import RosterCatalog, load_catalog
from draft_room.models.session import ContextRole
from draft_room.services.draft_state_machine import DraftStateMachine


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session")
def catalog() -> RosterCatalog:
    return load_catalog()


@pytest.fixture
def champion_ids(catalog) -> list[str]:
    """Twenty distinct champion ids, one per standard turn."""
    return catalog.ids[:20]


@pytest.fixture
def coordinator_machine(catalog) -> DraftStateMachine:
    machine = DraftStateMachine(ContextRole.coordinator(), catalog, turn_seconds=30)
    machine.start()
    return machine
