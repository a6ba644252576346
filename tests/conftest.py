#  pctrl - Test Fixtures
#
#  Shared fixtures for the test suite: temporary stores (plain and
#  encrypted) and a handful of sample records.
#
#  Depends on: pctrl/store/store.py, pctrl/db/connection.py
#  Used by:    all test files

import pytest

from pctrl.models.credentials import Credential, SshKeyData
from pctrl.models.enums import ScriptType
from pctrl.models.schemas import Project, Script, Server

TEST_PASSPHRASE = "correct horse battery staple"


# ---------------------------------------------------------------------------
# Database / store fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
async def tmp_db(tmp_path):
    """Fresh async database with all migrations applied."""
    from pctrl.db.connection import Database

    test_db = Database()
    await test_db.init(tmp_path / "test.db")

    yield test_db

    await test_db.close()


@pytest.fixture
async def tmp_store(tmp_path):
    """Store without a passphrase (credential payloads stored as plain JSON)."""
    from pctrl.store.store import Store

    store = Store()
    await store.init(tmp_path / "store.db")

    yield store

    await store.close()


@pytest.fixture
async def encrypted_store(tmp_path):
    """Store with a passphrase-derived key."""
    from pctrl.store.store import Store

    store = Store()
    await store.init(tmp_path / "secure.db", passphrase=TEST_PASSPHRASE)

    yield store

    await store.close()


# ---------------------------------------------------------------------------
# Sample records
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_project():
    return Project(id="shop", name="Shop", stack=["python", "postgres"], notes="storefront")


@pytest.fixture
def sample_server():
    return Server(id="prod-box", name="Prod-Box", host="203.0.113.10", provider="hetzner")


@pytest.fixture
def sample_credential():
    return Credential(
        id="deploy-key",
        name="Deploy Key",
        data=SshKeyData(username="deploy", port=2222, key_path="~/.ssh/id_ed25519"),
    )


@pytest.fixture
def local_script():
    return Script(id="hello", name="Hello", command="echo hello", script_type=ScriptType.LOCAL)
