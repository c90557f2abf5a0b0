from types import SimpleNamespace

import pytest

from profiles import UserSession
from state import LabAppState


class FakeQuery:
    def __init__(self, client, name):
        self.client = client
        self.name = name
        self.action = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.max_rows = None

    def select(self, columns="*"):
        self.action = "select"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def insert(self, row):
        self.action, self.payload = "insert", dict(row)
        return self

    def upsert(self, row, on_conflict=None):
        self.action, self.payload = "upsert", (dict(row), on_conflict)
        return self

    def execute(self):
        self.client.calls.append((self.name, self.action))
        if self.client.fail_with is not None:
            raise self.client.fail_with
        rows = self.client.tables.setdefault(self.name, [])

        if self.action == "insert":
            row = dict(self.payload, id=len(rows) + 1)
            rows.append(row)
            return SimpleNamespace(data=[row])

        if self.action == "upsert":
            row, key = self.payload
            for existing in rows:
                if existing[key] == row[key]:
                    existing.update(row)
                    return SimpleNamespace(data=[existing])
            rows.append(row)
            return SimpleNamespace(data=[row])

        out = [r for r in rows if all(r.get(c) == v for c, v in self.filters)]
        if self.order_by:
            column, desc = self.order_by
            out.sort(key=lambda r: r.get(column), reverse=desc)
        if self.max_rows is not None:
            out = out[: self.max_rows]
        return SimpleNamespace(data=out)


class FakeBucket:
    def __init__(self, client, name):
        self.client = client
        self.name = name

    def upload(self, path, data, options=None):
        self.client.calls.append(("storage", "upload"))
        self.client.files[path] = (data, options)
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://example.supabase.co/storage/v1/object/public/{self.name}/{path}"


class FakeStorage:
    def __init__(self, client):
        self.client = client

    def from_(self, name):
        return FakeBucket(self.client, name)


class FakeAuth:
    def __init__(self, storage):
        self.storage = storage
        self.listeners = []
        self.calls = []
        self.error = None
        self.user = SimpleNamespace(id="user-1", email="asha@bagreedx.com", phone="919876543210")

    def _notify(self, event, session):
        for cb in self.listeners:
            cb(event, session)

    def _session(self):
        return SimpleNamespace(user=self.user, access_token="token")

    def on_auth_state_change(self, callback):
        self.listeners.append(callback)
        return SimpleNamespace(unsubscribe=lambda: self.listeners.remove(callback))

    def sign_in_with_otp(self, params):
        self.calls.append(("sign_in_with_otp", params))
        if self.error:
            raise self.error

    def verify_otp(self, params):
        self.calls.append(("verify_otp", params))
        if self.error:
            raise self.error
        session = self._session()
        self._notify("SIGNED_IN", session)
        return SimpleNamespace(user=self.user, session=session)

    def sign_in_with_oauth(self, params):
        self.calls.append(("sign_in_with_oauth", params))
        self.storage["supabase.auth.token-code-verifier"] = "verifier-123"
        return SimpleNamespace(provider=params["provider"], url="https://accounts.example.com/authorize")

    def exchange_code_for_session(self, params):
        self.calls.append(("exchange_code_for_session", params))
        session = self._session()
        self._notify("SIGNED_IN", session)
        return SimpleNamespace(user=self.user, session=session)

    def sign_out(self):
        self.calls.append(("sign_out", None))
        self._notify("SIGNED_OUT", None)


class FakeSupabase:
    """In-memory stand-in for the parts of ``supabase.Client`` the app uses."""

    def __init__(self):
        self.tables = {}
        self.files = {}
        self.calls = []
        self.fail_with = None
        self.auth_storage = {}
        self.auth = FakeAuth(self.auth_storage)
        self.storage = FakeStorage(self)

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def client():
    return FakeSupabase()


@pytest.fixture
def session():
    return UserSession(id="user-1", email="asha@bagreedx.com")


@pytest.fixture
def state():
    return LabAppState()
