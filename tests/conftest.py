"""Pytest configuration and fixtures for SFP Build Domain tests"""
import pytest
import logging
import os
from unittest.mock import patch

from sfp_build_domain.core.config import ActionConfig, ServerConfig, SerializeConfig
from sfp_build_domain.core.exceptions import AcquisitionError, ExtractionError, ReleaseError
from sfp_build_domain.core.locks.client import WaitOutcome
from sfp_build_domain.core.locks.state import MemoryStateStore
from sfp_build_domain.core.logging import SensitiveDataFilter, clear_registered_secrets


class FakeLockService:
    """Stand-in for LockServiceClient that records every call.

    Behaviour is scripted per operation, optionally per resource:
        enqueue_error: exception raised by enqueue
        wait_outcome: WaitOutcome returned by wait
        wait_error: exception raised by wait
        release_error: exception raised by release
    """

    def __init__(self, ticket="101-1-abc123"):
        self.ticket = ticket
        self.calls = []
        self.enqueue_error = None
        self.wait_outcome = WaitOutcome.ACQUIRED
        self.wait_error = None
        self.release_error = None
        self.enqueue_errors = {}
        self.wait_outcomes = {}

    def enqueue(self, resource, repository, lease_seconds):
        self.calls.append(("enqueue", resource, repository, lease_seconds))
        error = self.enqueue_errors.get(resource, self.enqueue_error)
        if error is not None:
            raise error
        return self.ticket

    def wait(self, resource, repository, ticket, timeout_seconds):
        self.calls.append(("wait", resource, repository, ticket, timeout_seconds))
        if self.wait_error is not None:
            raise self.wait_error
        return self.wait_outcomes.get(resource, self.wait_outcome)

    def release(self, resource, repository, ticket):
        self.calls.append(("release", resource, repository, ticket))
        if self.release_error is not None:
            raise self.release_error

    def calls_named(self, name):
        return [call for call in self.calls if call[0] == name]


@pytest.fixture(autouse=True)
def reset_registered_secrets():
    """Keep secrets registered by one test from masking output in another"""
    clear_registered_secrets()
    yield
    clear_registered_secrets()


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo handlers installed by setup_logging so they don't outlive captured streams"""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if any(isinstance(f, SensitiveDataFilter) for f in handler.filters):
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def server():
    return ServerConfig(url="https://sfp.example.com", token="app-token-xyz")


@pytest.fixture
def fake_service():
    return FakeLockService()


@pytest.fixture
def memory_store():
    return MemoryStateStore()


@pytest.fixture
def action_config(server):
    return ActionConfig(
        server=server,
        repository="org/app",
        release_config="config/release-core.yaml",
        branch="main",
        build_number="42",
        serialize=SerializeConfig(enabled=True, timeout_seconds=900, lease_seconds=1800),
    )


@pytest.fixture
def enqueue_failure():
    return AcquisitionError("Failed to enqueue", resource="build-core", details="connection refused")


@pytest.fixture
def extraction_failure():
    return ExtractionError("No ticket ID found in enqueue output", output="Queued successfully")


@pytest.fixture
def release_failure():
    return ReleaseError("Failed to release lock", resource="build-core", details="503")


@pytest.fixture
def clean_env():
    """Remove action inputs, job state and runner variables from the environment"""
    prefixes = ("INPUT_", "STATE_", "GITHUB_", "SFP_SERVER_")
    cleaned = {key: value for key, value in os.environ.items() if not key.startswith(prefixes)}
    cleaned.pop("LOG_LEVEL", None)
    with patch.dict(os.environ, cleaned, clear=True):
        yield
