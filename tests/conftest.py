"""Shared fixtures: fake gcloud and a recording chooser."""
import pytest

from gssh import gcloud
from gssh.gcloud import Instance


ZONE_PREFIX = "https://www.googleapis.com/compute/v1/projects/acme/zones/"


@pytest.fixture
def instances():
    return [
        Instance(name="db-1", zone=ZONE_PREFIX + "us-central1-a"),
        Instance(name="web-1", zone=ZONE_PREFIX + "us-east1-b"),
        Instance(name="web-2", zone=ZONE_PREFIX + "us-east1-b"),
    ]


@pytest.fixture
def fake_gcloud(monkeypatch, instances):
    """Replace gcloud queries; `calls` records which ones ran."""
    calls = []

    def _get_config(name):
        calls.append(("config", name))
        return "acme"

    def _list_instances():
        calls.append(("list",))
        return list(instances)

    monkeypatch.setattr(gcloud, "get_config", _get_config)
    monkeypatch.setattr(gcloud, "list_instances", _list_instances)
    return calls


class RecordingChooser:
    def __init__(self, answer=0):
        self.answer = answer
        self.calls = []

    def __call__(self, labels, cursor):
        self.calls.append((list(labels), cursor))
        return self.answer


@pytest.fixture
def chooser():
    return RecordingChooser()


@pytest.fixture
def state_path(tmp_path, monkeypatch):
    path = tmp_path / "state.json"
    monkeypatch.setenv("GSSH_STATE_FILE", str(path))
    monkeypatch.delenv("GSSH_USER", raising=False)
    return path
