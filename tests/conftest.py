"""Shared test fixtures.

Every test gets its own file-backed ledger store in a temporary directory.
"""

from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.pb_account.application.service import AccountService
from src.pb_ledger.factory import get_ledger_store
from src.pb_ledger.infrastructure.file_store import FileLedgerStore
from src.pb_market.application.service import MarketEngine

SEED = 5.0
STARTING_BALANCE = 100.0


@pytest.fixture
async def store(tmp_path) -> FileLedgerStore:
    return await FileLedgerStore.open(tmp_path / "ledger.json", lock_wait_seconds=5.0)


@pytest.fixture
def accounts() -> AccountService:
    return AccountService(starting_balance=STARTING_BALANCE)


@pytest.fixture
def engine(accounts: AccountService) -> MarketEngine:
    return MarketEngine(accounts=accounts, seed=SEED)


@pytest.fixture
def ends_at() -> str:
    return (datetime.now(UTC) + timedelta(days=7)).isoformat()


@pytest.fixture
async def client(store: FileLedgerStore) -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints against the temp store."""
    app.dependency_overrides[get_ledger_store] = lambda: store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
