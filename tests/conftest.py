"""
Pytest configuration and shared fixtures for altsource tests.

Provides sample source documents and an httpx client wired to a mock
transport so no test touches the network.
"""

import copy
import json
import sys
from pathlib import Path
from typing import Callable

import httpx
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


FLYCAST_APP = {
    "beta": False,
    "name": "Flycast",
    "bundleIdentifier": "com.chachirie.FlycastiOS",
    "developerName": "Chachirie",
    "subtitle": "Dreamcast, Naomi and Atomiswave emulator.",
    "version": "v1.0",
    "versionDate": "2025-01-18",
    "versionDescription": "iOS 26 JIT release",
    "downloadURL": "https://github.com/chachillie/Flycast-iOS/releases/download/v1.0-beta.1/FlycastiOS.ipa",
    "localizedDescription": "Flycast is a Dreamcast, Naomi, Naomi 2 and Atomiswave emulator.",
    "iconURL": "https://github.com/chachillie/Flycast-iOS/raw/main/shell/linux/flycast.png",
    "tintColor": "9b54fd",
    "size": 8703180,
    "screenshotURLs": [
        "https://github.com/chachillie/Flycast-iOS/raw/main/shell/imgs/screenshot1.png",
        "https://github.com/chachillie/Flycast-iOS/raw/main/shell/imgs/screenshot2.png",
        "https://github.com/chachillie/Flycast-iOS/raw/main/shell/imgs/screenshot3.png",
    ],
}

NOTES_APP = {
    "beta": True,
    "name": "Notes Lab",
    "bundleIdentifier": "com.example.NotesLab",
    "developerName": "Example Dev",
    "version": "0.3.0",
    "versionDate": "2025-02-01",
    "downloadURL": "https://downloads.example.com/NotesLab-0.3.0.ipa",
    "localizedDescription": "Experimental note taking.",
    "iconURL": "https://downloads.example.com/noteslab.png",
    "size": 1024,
}


# ============ Document Fixtures ============

@pytest.fixture
def flycast_source() -> dict:
    """The single-app reference source."""
    return {
        "name": "Flycast-iOS26",
        "identifier": "com.chachirie.source",
        "apps": [copy.deepcopy(FLYCAST_APP)],
    }


@pytest.fixture
def two_app_source(flycast_source) -> dict:
    """Reference source plus a beta app without optional fields."""
    data = copy.deepcopy(flycast_source)
    data["apps"].append(copy.deepcopy(NOTES_APP))
    return data


@pytest.fixture
def write_source(tmp_path) -> Callable[[dict], Path]:
    """Write a document to a temp file and return its path."""
    def _write(data, name: str = "source.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def source_file(write_source, two_app_source) -> Path:
    return write_source(two_app_source)


# ============ Network Fixtures ============

@pytest.fixture
def fast_config():
    """Config with retries but no sleeping between them."""
    from altsource.config import ToolConfig

    return ToolConfig(timeout=5, max_retries=2, retry_delay=0)


@pytest.fixture
def mock_client():
    """Build an httpx.Client whose requests go to ``handler``."""
    clients = []

    def _make(handler) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()


@pytest.fixture
def isolated_config_home(tmp_path, monkeypatch) -> Path:
    """Point XDG_CONFIG_HOME at an empty temp directory."""
    config_home = tmp_path / "xdg"
    config_home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home


# ============ Marker Configuration ============

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "unit: fast unit tests with no external deps"
    )

