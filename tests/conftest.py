import json

import pytest
import requests

from gatekeeper.controller import Gatekeeper
from gatekeeper.remote import RemoteControlClient
from gatekeeper.security.digest import digest_hex
from gatekeeper.security.lock_store import LocalLockStore
from gatekeeper.settings import GatekeeperConfig

GEO_URL = "https://geo.test/json/"
REMOTE_URL = "https://ctl.test/app-control"
LOCK_PHRASE = "LOCK-1234"
UNLOCK_PHRASE = "OPEN-5678"
NOW = 1_700_000_000


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        if text is None:
            text = json.dumps(body) if body is not None else ""
        self.text = text

    def json(self):
        return json.loads(self.text)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    """
    Stand-in for requests.Session. GET responses are routed by URL prefix;
    each route yields its queued items in order and repeats the last one.
    Exceptions in a route are raised.
    """

    def __init__(self):
        self.routes = {}
        self.gets = []
        self.posts = []
        self.post_status = 200

    def route(self, prefix, *items):
        self.routes[prefix] = list(items)

    def _next(self, prefix):
        items = self.routes[prefix]
        item = items.pop(0) if len(items) > 1 else items[0]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, FakeResponse):
            return item
        return FakeResponse(body=item)

    def get(self, url, timeout=None):
        self.gets.append((url, timeout))
        for prefix in self.routes:
            if url.startswith(prefix):
                return self._next(prefix)
        raise requests.ConnectionError(f"no route for {url}")

    def post(self, url, json=None, timeout=None):
        self.posts.append({"url": url, "json": json, "timeout": timeout})
        return FakeResponse(status_code=self.post_status)

    def gets_to(self, prefix):
        return [u for u, _t in self.gets if u.startswith(prefix)]

    @property
    def last_status(self):
        return self.posts[-1]["json"]["status"] if self.posts else None


class FakeOverlay:
    def __init__(self):
        self.visible = False
        self.message = None
        self.admin_mode = None
        self.shows = 0
        self.hides = 0

    def show(self, message, admin_mode):
        self.visible = True
        self.message = message
        self.admin_mode = admin_mode
        self.shows += 1

    def hide(self):
        self.visible = False
        self.hides += 1

    def is_visible(self):
        return self.visible


@pytest.fixture
def config():
    return GatekeeperConfig(
        allowed_country_codes=["EG"],
        geo_ip_url=GEO_URL,
        remote_control_url=REMOTE_URL,
        remote_poll_seconds=5,
        lock_code_hash_hex=digest_hex(LOCK_PHRASE),
        unlock_code_hash_hex=digest_hex(UNLOCK_PHRASE),
        block_message_outside="Outside region",
        block_message_shutdown="Shut down",
        app_version="2.0.0",
    )


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def overlay():
    return FakeOverlay()


@pytest.fixture
def lock_store(tmp_path):
    return LocalLockStore(tmp_path / "state.json")


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def client(config, session, clock):
    return RemoteControlClient(config, session=session, fallbacks=[], clock=clock, device_id="dev-1")


@pytest.fixture
def make_gate(config, client, lock_store, overlay, clock):
    def _make(**kw):
        kw.setdefault("overlay", overlay)
        return Gatekeeper(config, kw.pop("client", client), kw.pop("lock_store", lock_store),
                          clock=clock, **kw)
    return _make
