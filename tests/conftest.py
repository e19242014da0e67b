"""
Shared fixtures: in-memory database, app client and a fake relayer.

Environment is set before poap_gateway is imported so the engine binds to
SQLite in memory and uploads land in a temporary directory.
"""

import asyncio
import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["RELAYER_SECRET_KEY"] = ""
os.environ["STORAGE_BACKEND"] = "local"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="poap-uploads-")

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from solders.keypair import Keypair

from poap_gateway.config import settings
from poap_gateway.db.database import Base, SessionLocal, engine
from poap_gateway.main import app
from poap_gateway.relayer.minter import MintError, MintResult, get_minter
from poap_gateway.services import claims as claim_service
from poap_gateway.utils import nonce, rate_limiter

GAS_COST = 5000


class FakeMinter:
    """Stands in for NFTMinter: records mints instead of talking to an RPC node."""

    def __init__(self, balance=2_000_000_000, fail=False, delay=0.0):
        self.balance = balance
        self.fail = fail
        self.delay = delay
        self.relayer = Keypair()
        self.relayer_pubkey = self.relayer.pubkey()
        self.solana = SimpleNamespace(rpc_host="rpc.test", get_wallet_nfts=AsyncMock(return_value=[]))
        self.mints = []

    async def get_balance(self):
        return self.balance

    async def mint_to(self, owner, name, symbol="POAP", uri=None):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise MintError("simulated RPC failure")

        mint = Keypair().pubkey()
        signature = self.relayer.sign_message(f"{owner}:{mint}".encode())
        self.mints.append({"owner": owner, "name": name, "symbol": symbol, "uri": uri})
        return MintResult(
            mint=str(mint),
            signature=str(signature),
            token_account=str(Keypair().pubkey()),
            uri=uri or settings.DEFAULT_METADATA_URI,
            gas_cost_lamports=GAS_COST,
        )


@pytest.fixture(autouse=True)
def database():
    """Fresh schema for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_state():
    rate_limiter.reset()
    nonce.reset()
    claim_service._campaign_locks.clear()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def minter():
    return FakeMinter()


@pytest.fixture
def client(minter):
    app.dependency_overrides[get_minter] = lambda: minter
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Register an organizer and return (token, organizer dict)."""

    def _register(email="organizer@example.com", password="supersecret", name="Acme Events"):
        resp = client.post("/api/auth/register", json={"email": email, "password": password, "name": name})
        assert resp.status_code == 201, resp.text
        data = resp.json()["data"]
        return data["token"], data["organizer"]

    return _register


@pytest.fixture
def auth_headers(register):
    token, _ = register()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def create_campaign(client, auth_headers):
    def _create(headers=None, **fields):
        body = {"name": "DevCon Day 1"}
        body.update(fields)
        resp = client.post("/api/campaigns", json=body, headers=headers or auth_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create


@pytest.fixture
def wallet():
    return Keypair()
