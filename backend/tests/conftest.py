import json
import os
import sys
import time
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Keep the module-level engine off disk during tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# Load environment variables from backend/.env
backend_dir = Path(__file__).parent.parent
env_file = backend_dir / ".env"
if env_file.exists():
    load_dotenv(env_file)

# Add backend directory to Python path for imports
sys.path.insert(0, str(backend_dir))

from procurement.database import create_engine, init_db  # noqa: E402
from procurement.integrations import (  # noqa: E402
    AuditEmitter,
    FinanceClient,
    Integrations,
    InventoryClient,
    RetryPolicy,
)


class RecordingAudit(AuditEmitter):
    """Audit emitter that keeps entries in memory"""

    def __init__(self):
        super().__init__(None)
        self.entries = []

    async def emit(self, entry):
        self.entries.append(entry)

    def actions(self, action):
        return [e for e in self.entries if e.action == action]


class FakeService:
    """Scripted external service for httpx.MockTransport.

    ``responses`` maps a path to a list of (status, json) pairs consumed in
    order; the last one repeats. Paths without a script answer 200 ``{}``.
    An exception instance in the script is raised instead of responding.
    ``reject`` optionally maps a request body to a forced 500.
    """

    def __init__(self, responses=None, reject=None):
        self.responses = {k: list(v) for k, v in (responses or {}).items()}
        self.reject = reject
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = request.content
        self.calls.append(
            {
                "path": request.url.path,
                "json": json.loads(body) if body else None,
                "headers": dict(request.headers),
                "at": time.monotonic(),
            }
        )
        if self.reject and self.reject(self.calls[-1]["json"]):
            return httpx.Response(500, json={"message": "rejected"})
        script = self.responses.get(request.url.path)
        if not script:
            return httpx.Response(200, json={})
        step = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(step, Exception):
            raise step
        status, payload = step
        return httpx.Response(status, json=payload)

    def calls_to(self, path):
        return [c for c in self.calls if c["path"] == path]


def fake_http(service: FakeService, base_url: str) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=base_url,
        headers={"X-API-Key": "test-key"},
        transport=httpx.MockTransport(service),
    )


FAST_POLICY = RetryPolicy(timeout=1.0, max_attempts=2, backoff=0.25)


@pytest.fixture
def audit():
    return RecordingAudit()


@pytest.fixture
def inventory_service():
    return FakeService()


@pytest.fixture
def finance_service():
    return FakeService()


@pytest_asyncio.fixture
async def integrations(audit, inventory_service, finance_service):
    inventory_http = fake_http(inventory_service, "http://inventory.test")
    finance_http = fake_http(finance_service, "http://finance.test")
    hub = Integrations(
        audit=audit,
        inventory=InventoryClient(inventory_http, audit, FAST_POLICY),
        finance=FinanceClient(finance_http, audit, FAST_POLICY),
        _clients=[inventory_http, finance_http],
    )
    yield hub
    await hub.aclose()


@pytest_asyncio.fixture
async def engine():
    engine = create_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker, integrations):
    """HTTP client against the app with test DB and fake integrations"""
    from procurement.main import app
    from procurement.database import get_db

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.integrations = integrations
    app.state.rate_limiter = None

    try:
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_db, None)
