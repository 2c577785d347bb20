import json
import itertools

import pytest
from docker.errors import APIError
from kubernetes.client.exceptions import ApiException


# ----------------- Fakes for requests -----------------

class FakeResponse:
    def __init__(self, payload=None, status_code=200, content=None):
        self.status_code = status_code
        if content is None:
            content = json.dumps(payload).encode()
        self.content = content
        self.text = content.decode(errors="replace")


class FakeSession:
    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, verify=None, timeout=None):
        self.calls.append((url, verify, timeout))
        r = self.routes[url]
        if isinstance(r, Exception):
            raise r
        return r


# ----------------- Fakes for the Kubernetes API -----------------

class FakeCoreV1Api:
    def __init__(self, error=None):
        self.created = []
        self.error = error

    def create_namespaced_config_map(self, namespace, body):
        if self.error is not None:
            raise self.error
        self.created.append((namespace, body))
        return body


# ----------------- Fakes for docker -----------------

class FakeContainer:
    def __init__(self, engine, cid, labels=None, kwargs=None):
        self.engine = engine
        self.id = cid
        self.labels = labels or {}
        self.kwargs = kwargs or {}
        self.status = "created"

    def start(self):
        self.engine.log.append(("start", self.id))
        if self.engine.fail_start:
            raise APIError("cannot start")
        self.status = "running"

    def remove(self, force=False):
        self.engine.log.append(("remove", self.id, force))
        if self.id in self.engine.fail_remove:
            raise APIError("removal refused")
        self.engine.instances.remove(self)


class FakeContainers:
    def __init__(self, engine):
        self.engine = engine

    def list(self, all=False, filters=None):
        self.engine.log.append(("list", all, filters))
        label = (filters or {}).get("label")
        return [c for c in list(self.engine.instances) if label is None or label in c.labels]

    def create(self, **kwargs):
        self.engine.log.append(("create", kwargs["name"]))
        if self.engine.fail_create:
            raise APIError("no such image")
        c = FakeContainer(self.engine, f"c{next(self.engine.ids)}", kwargs.get("labels"), kwargs)
        self.engine.instances.append(c)
        return c


class FakeAPI:
    def __init__(self, engine):
        self.engine = engine

    def pull(self, image, stream=False, decode=False):
        self.engine.log.append(("pull", image))
        for msg in self.engine.pull_messages:
            if isinstance(msg, Exception):
                raise msg
            yield msg


class FakeDockerClient:
    def __init__(self, engine):
        self.engine = engine
        self.containers = FakeContainers(engine)
        self.api = FakeAPI(engine)

    def ping(self):
        self.engine.log.append(("ping",))
        if self.engine.fail_ping is not None:
            raise self.engine.fail_ping
        return True


class FakeDockerEngine:
    """State shared by every FakeDockerClient: containers, call log, failure switches."""

    def __init__(self):
        self.log = []
        self.ids = itertools.count(1)
        self.instances = []
        self.pull_messages = [{"status": "Pulling from library/busybox"}, {"status": "Status: Downloaded"}]
        self.fail_ping = None
        self.fail_create = False
        self.fail_start = False
        self.fail_remove = set()
        self.base_urls = []

    def client(self, base_url=None, **kw):
        self.base_urls.append(base_url)
        return FakeDockerClient(self)

    def add_container(self, labels):
        c = FakeContainer(self, f"old{next(self.ids)}", labels)
        c.status = "running"
        self.instances.append(c)
        return c

    def labelled(self, key="criproxy"):
        return [c for c in self.instances if key in c.labels]

    def ops(self):
        return [entry[0] for entry in self.log]


@pytest.fixture
def docker_engine():
    return FakeDockerEngine()


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_core_api():
    return FakeCoreV1Api


@pytest.fixture
def api_exception():
    def make(status=409, reason="AlreadyExists"):
        return ApiException(status=status, reason=reason)
    return make
