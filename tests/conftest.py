from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from fakes import FakeClock, FakeTimerFactory, RecordingChannel  # noqa: E402

from mission_monitor.accounts import AccountDirectory  # noqa: E402
from mission_monitor.state_persistence import PersistenceStore  # noqa: E402
from mission_monitor.storage import FileStorageBackend  # noqa: E402
from mission_monitor.tasks import TaskLedger  # noqa: E402


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def timers() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture()
def banner() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture()
def state_path(tmp_path: Path) -> Path:
    return tmp_path / "state" / "mission_monitor_state.json"


@pytest.fixture()
def store(state_path: Path) -> PersistenceStore:
    return PersistenceStore(FileStorageBackend(state_path))


@pytest.fixture()
def accounts(store: PersistenceStore, clock: FakeClock) -> AccountDirectory:
    return AccountDirectory(store, clock=clock)


@pytest.fixture()
def logged_in(accounts: AccountDirectory) -> str:
    accounts.register("ada", "secret-pass", "Ada")
    return "ada"


@pytest.fixture()
def ledger(store: PersistenceStore, clock: FakeClock) -> TaskLedger:
    return TaskLedger(store, clock=clock)
