import json
from concurrent.futures import Future
from contextlib import contextmanager
from pathlib import Path

import pytest
from loguru import logger

from librarian.utils.config import Settings


class FakeStore:
    """In-memory stand-in for NodeStore, keyed by label."""

    def __init__(self):
        self.nodes: dict[str, list[dict]] = {}
        self.links: list[tuple] = []
        self.fail_on: set[str] = set()

    def find_or_create(self, label, key, defaults):
        if label in self.fail_on:
            return None
        for node in self.nodes.get(label, []):
            if all(node.get(name) == value for name, value in key.items()):
                return dict(node)
        node = {**defaults, **key}
        self.nodes.setdefault(label, []).append(node)
        return dict(node)

    def create(self, label, properties):
        if label in self.fail_on:
            return None
        self.nodes.setdefault(label, []).append(dict(properties))
        return dict(properties)

    def link(self, from_label, from_id, rel_type, to_label, to_id):
        ids = lambda label: {node["id"] for node in self.nodes.get(label, [])}
        if from_id not in ids(from_label) or to_id not in ids(to_label):
            return False
        self.links.append((from_label, from_id, rel_type, to_label, to_id))
        return True

    def count(self, label):
        return len(self.nodes.get(label, []))


class FakeClient:
    """Hands out the same FakeStore and counts open sessions."""

    def __init__(self, store=None):
        self.fake_store = store or FakeStore()
        self.opened = 0
        self.closed = 0

    @contextmanager
    def store(self):
        self.opened += 1
        try:
            yield self.fake_store
        finally:
            self.closed += 1


class ImmediateExecutor:
    """Runs submitted work synchronously."""

    def __init__(self):
        self.submitted = []

    def submit(self, fn, *args, **kwargs):
        self.submitted.append(args)
        future = Future()
        future.set_result(fn(*args, **kwargs))
        return future


def paper_descriptor(**overrides) -> dict:
    descriptor = {
        "project": "paper",
        "repo": "Paper",
        "version": "1.19.4",
        "number": 50,
        "changes": [
            {"commit": "a1b2c3", "summary": "Fix chunk loading", "message": "Fix chunk loading\n\nDetails"},
        ],
        "downloads": {
            "server": {"name": "paper-50.jar", "checksum": "abc"},
        },
        "supportedJavaVersions": ["17"],
        "supportedBedrockVersions": [],
    }
    descriptor.update(overrides)
    return descriptor


def write_upload(directory: Path, descriptor: dict, artifacts=None) -> Path:
    """Stage artifacts and a metadata.json into ``directory``."""
    directory.mkdir(parents=True, exist_ok=True)
    names = artifacts if artifacts is not None else [d["name"] for d in descriptor["downloads"].values()]
    for name in names:
        (directory / name).write_bytes(b"PK\x03\x04" + name.encode())
    path = directory / "metadata.json"
    path.write_text(json.dumps(descriptor))
    return path


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def fake_client(fake_store):
    return FakeClient(fake_store)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        input_dir=tmp_path / "uploads",
        storage_dir=tmp_path / "storage",
        read_interval=0,
        read_timeout=1,
        environment="test",
    )


@pytest.fixture
def caplog(caplog):
    """Route loguru records into pytest's caplog."""
    handler_id = logger.add(caplog.handler, format="{message}", level=0)
    yield caplog
    logger.remove(handler_id)
