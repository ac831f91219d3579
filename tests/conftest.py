"""Shared test fixtures for entrydb."""

import os
import sys
import tempfile

import pytest
import yaml
from helpers import CountingCodec, Item
from loguru import logger

from entrydb.core.config import reset_config
from entrydb.core.events import ErrorChannel
from entrydb.storage import EntryStore


@pytest.fixture(autouse=True)
def _reset_config_singleton():
    """Keep the global Config from leaking between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "items.json"


@pytest.fixture
def errors():
    return ErrorChannel()


@pytest.fixture
def reported(errors):
    """(message, detail) tuples published on the ``errors`` channel."""
    received: list[tuple[str, str]] = []
    errors.subscribe(lambda message, detail: received.append((message, detail)))
    return received


@pytest.fixture
def codec():
    return CountingCodec(Item)


@pytest.fixture
def store(store_path, codec, errors):
    return EntryStore(store_path, Item, codec=codec, errors=errors)


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file."""
    config_data = {
        "paths": {"data_dir": os.path.join(tmp_dir, "data")},
        "store": {
            "path": os.path.join(tmp_dir, "data", "from-config.yaml"),
            "codec": "yaml",
        },
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture(autouse=True)
def _reset_log_sinks():
    """Drop sinks bound to streams a test (or CliRunner) has since closed."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="WARNING")
