"""Tests for the build-domain pipeline and its two lock scopes"""
import inspect
from dataclasses import replace
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from sfp_build_domain.actions import steps as sfp_steps
from sfp_build_domain.actions.steps import ArtifactReport, ReleaseConfig
from sfp_build_domain.cli.main import run_cleanup
from sfp_build_domain.core.config import SerializeConfig
from sfp_build_domain.core.exceptions import AcquisitionError, ConfigurationError, StepError
from sfp_build_domain.core.locks.client import WaitOutcome
from sfp_build_domain.core.locks.state import ReleaseDecision
from sfp_build_domain.pipeline import BuildDomainPipeline, PhaseStatus
from sfp_build_domain.pipeline.build_domain import PipelineSteps


def _fake_steps(events, artifact_count=2):
    """Pipeline steps that record their invocation order into ``events``"""

    def recorder(name, result=None):
        def step(*args, **kwargs):
            events.append(name)
            return result

        return Mock(side_effect=step)

    report = ArtifactReport(has_artifacts=artifact_count > 0, artifact_count=artifact_count)
    return SimpleNamespace(
        read_release_config=Mock(return_value=ReleaseConfig(release_name="core", path=Path("release-core.yaml"))),
        check_git_depth=recorder("check_git_depth"),
        authenticate_devhub=recorder("authenticate_devhub"),
        build_packages=recorder("build_packages"),
        check_artifacts=recorder("check_artifacts", report),
        publish_artifacts=recorder("publish_artifacts"),
        fetch_tags_after_publish=recorder("fetch_tags_after_publish"),
        generate_release_candidate=recorder("generate_release_candidate", "main-42"),
    )


class _RecordingService:
    """Wraps the fake lock service so lock calls land in the shared event list"""

    def __init__(self, service, events):
        self.service = service
        self.events = events

    def enqueue(self, resource, repository, lease_seconds):
        self.events.append(f"enqueue {resource}")
        return self.service.enqueue(resource, repository, lease_seconds)

    def wait(self, resource, repository, ticket, timeout_seconds):
        self.events.append(f"wait {resource}")
        return self.service.wait(resource, repository, ticket, timeout_seconds)

    def release(self, resource, repository, ticket):
        self.events.append(f"release {resource}")
        return self.service.release(resource, repository, ticket)


@pytest.fixture
def events():
    return []


@pytest.fixture
def outputs():
    return {}


@pytest.fixture
def failures():
    return []


@pytest.fixture
def make_pipeline(action_config, fake_service, memory_store, events, outputs, failures):
    def factory(config=None, steps=None):
        return BuildDomainPipeline(
            config or action_config,
            _RecordingService(fake_service, events),
            memory_store,
            steps=steps or _fake_steps(events),
            set_output=outputs.__setitem__,
            on_failure=failures.append,
        )

    return factory


class TestSuccessfulRun:
    def test_locks_bracket_their_phases(self, make_pipeline, events, outputs, failures):
        result = make_pipeline().run()

        assert result.succeeded
        assert result.release_candidate == "main-42"
        assert failures == []
        assert events == [
            "enqueue build-core",
            "wait build-core",
            "check_git_depth",
            "authenticate_devhub",
            "build_packages",
            "check_artifacts",
            "release build-core",
            "enqueue publish-org-app",
            "wait publish-org-app",
            "publish_artifacts",
            "fetch_tags_after_publish",
            "generate_release_candidate",
            "release publish-org-app",
        ]
        assert outputs == {"has-artifacts": "true", "artifact-count": "2", "artifacts-dir": "artifacts"}

    def test_handoff_records_consumed(self, make_pipeline, memory_store):
        make_pipeline().run()

        assert memory_store.values["TICKET_ID"] == ""
        assert memory_store.values["PUBLISH_TICKET_ID"] == ""
        decisions = run_cleanup(memory_store, Mock())
        assert set(decisions.values()) == {ReleaseDecision.NO_TICKET}

    def test_no_artifacts_skips_publish(self, make_pipeline, events, outputs):
        result = make_pipeline(steps=_fake_steps(events, artifact_count=0)).run()

        assert result.succeeded
        assert result.publish.status is PhaseStatus.SKIPPED
        assert "enqueue publish-org-app" not in events
        assert "publish_artifacts" not in events
        assert outputs["has-artifacts"] == "false"
        assert outputs["artifact-count"] == "0"

    def test_serialize_disabled_takes_no_locks(self, make_pipeline, action_config, fake_service):
        config = replace(action_config, serialize=SerializeConfig(enabled=False))
        result = make_pipeline(config=config).run()

        assert result.succeeded
        assert fake_service.calls == []

    def test_publish_lock_disabled(self, make_pipeline, action_config, fake_service):
        config = replace(action_config, serialize=SerializeConfig(publish_lock=False))
        make_pipeline(config=config).run()

        assert {call[1] for call in fake_service.calls} == {"build-core"}


class TestFailures:
    def test_build_lock_timeout(self, make_pipeline, fake_service, memory_store, events, outputs, failures):
        fake_service.wait_outcomes["build-core"] = WaitOutcome.TIMED_OUT

        result = make_pipeline().run()

        assert result.build.status is PhaseStatus.FAILED
        assert result.publish.status is PhaseStatus.SKIPPED
        assert failures == ["Failed to acquire lock for resource: build-core within timeout (900s)"]
        assert "build_packages" not in events
        assert outputs == {}
        assert fake_service.calls_named("release") == []
        assert not (memory_store.get("SERIALIZE") == "true" and memory_store.get("TICKET_ID"))

        cleanup_logger = Mock()
        decisions = run_cleanup(memory_store, cleanup_logger)
        assert decisions == {"": ReleaseDecision.NOT_SERIALIZED, "PUBLISH_": ReleaseDecision.NOT_SERIALIZED}
        cleanup_logger.warning.assert_not_called()

    def test_global_enqueue_failure(self, make_pipeline, fake_service, events, outputs, failures):
        fake_service.enqueue_errors["publish-org-app"] = AcquisitionError(
            "Failed to enqueue", resource="publish-org-app", details="service unavailable"
        )

        result = make_pipeline().run()

        assert result.build.status is PhaseStatus.SUCCEEDED
        assert result.publish.status is PhaseStatus.FAILED
        assert failures == ["Failed to enqueue for resource publish-org-app: service unavailable"]
        assert outputs == {"has-artifacts": "true", "artifact-count": "2", "artifacts-dir": "artifacts"}
        assert "publish_artifacts" not in events
        assert fake_service.calls_named("release") == [("release", "build-core", "org/app", "101-1-abc123")]

    def test_build_step_failure_releases_build_lock(self, make_pipeline, fake_service, events, failures):
        steps = _fake_steps(events)
        steps.build_packages.side_effect = StepError("Build failed", step="build", exit_code=1)

        result = make_pipeline(steps=steps).run()

        assert result.build.failed
        assert failures == ["Build failed"]
        assert fake_service.calls_named("release") == [("release", "build-core", "org/app", "101-1-abc123")]

    def test_invalid_release_config_propagates(self, make_pipeline, fake_service, events):
        steps = _fake_steps(events)
        steps.read_release_config.side_effect = ConfigurationError("releaseName not found in release config: x")

        with pytest.raises(ConfigurationError):
            make_pipeline(steps=steps).run()
        assert fake_service.calls == []


def _step_names():
    return sorted(
        name for name, member in vars(PipelineSteps).items() if inspect.isfunction(member) and not name.startswith("_")
    )


class TestPipelineSteps:
    def test_steps_module_matches_step_contract(self):
        for name in _step_names():
            expected = list(inspect.signature(getattr(PipelineSteps, name)).parameters)[1:]
            assert list(inspect.signature(getattr(sfp_steps, name)).parameters) == expected, name

    def test_fake_steps_cover_step_contract(self, events):
        assert sorted(vars(_fake_steps(events))) == _step_names()
