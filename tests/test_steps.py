"""Tests for the sfp and git pipeline steps"""
from unittest.mock import patch

import pytest

from sfp_build_domain.actions import steps
from sfp_build_domain.core.config import PublishConfig
from sfp_build_domain.core.exceptions import ConfigurationError, StepError
from sfp_build_domain.core.process import CommandResult


class TestReadReleaseConfig:
    def test_reads_release_name(self, tmp_path):
        config_file = tmp_path / "release-core.yaml"
        config_file.write_text("releaseName: core\nincludeOnlyArtifacts:\n  - core-utils\n")

        release = steps.read_release_config(str(config_file))
        assert release.release_name == "core"
        assert release.raw["includeOnlyArtifacts"] == ["core-utils"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Release config file not found"):
            steps.read_release_config(str(tmp_path / "missing.yaml"))

    def test_missing_release_name(self, tmp_path):
        config_file = tmp_path / "release.yaml"
        config_file.write_text("includeOnlyArtifacts: []\n")
        with pytest.raises(ConfigurationError) as exc_info:
            steps.read_release_config(str(config_file))
        assert exc_info.value.field == "releaseName"

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "release.yaml"
        config_file.write_text("releaseName: [core\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            steps.read_release_config(str(config_file))


class TestCheckArtifacts:
    def test_counts_zip_files(self, tmp_path):
        artifacts = tmp_path / "artifacts"
        artifacts.mkdir()
        (artifacts / "core-utils_1.0.0.zip").write_bytes(b"")
        (artifacts / "core-api_2.1.0.zip").write_bytes(b"")
        (artifacts / "notes.txt").write_text("ignored")

        report = steps.check_artifacts(str(artifacts))
        assert report.has_artifacts
        assert report.artifact_count == 2

    def test_creates_missing_directory(self, tmp_path):
        artifacts = tmp_path / "artifacts"
        report = steps.check_artifacts(str(artifacts))
        assert artifacts.is_dir()
        assert not report.has_artifacts
        assert report.artifact_count == 0


class TestSfpSteps:
    def test_build_packages_command(self, server):
        with patch.object(steps, "run_streaming", return_value=0) as mock_run:
            steps.build_packages(
                server, repository="org/app", branch="main", build_number="42",
                release_config="config/release-core.yaml", diff_check=True,
            )  # fmt: skip

        command, args = mock_run.call_args.args
        assert command == "sfp"
        assert args[0] == "build"
        assert args[args.index("--buildnumber") + 1] == "42"
        assert args[args.index("--releaseconfig") + 1] == "config/release-core.yaml"
        assert args[-1] == "--diffcheck"

    def test_build_failure_raises_step_error(self, server):
        with patch.object(steps, "run_streaming", return_value=3):
            with pytest.raises(StepError) as exc_info:
                steps.build_packages(
                    server, repository="org/app", branch="main", build_number="42",
                    release_config="release.yaml", diff_check=False,
                )  # fmt: skip
        assert str(exc_info.value) == "Build failed"
        assert exc_info.value.exit_code == 3

    def test_missing_sfp_raises_step_error(self, server):
        with patch.object(steps, "run_streaming", side_effect=FileNotFoundError("sfp")):
            with pytest.raises(StepError):
                steps.authenticate_devhub(server)

    def test_publish_flags(self, server):
        publish = PublishConfig(npm_scope="org", npm=False, git_tag=True, push_git_tag=False)
        with patch.object(steps, "run_streaming", return_value=0) as mock_run:
            steps.publish_artifacts(server, repository="org/app", publish=publish)

        args = mock_run.call_args.args[1]
        assert args[args.index("--scope") + 1] == "org"
        assert "--internal-only" in args
        assert "--gittag" in args
        assert "--pushgittag" not in args

    def test_release_candidate_default_name(self, server):
        with patch.object(steps, "run_streaming", return_value=0) as mock_run:
            name = steps.generate_release_candidate(
                server, release_name="", branch="main", build_number="42",
                release_config="release.yaml", npm_scope="org", repository="org/app",
            )  # fmt: skip

        assert name == "main-42"
        args = mock_run.call_args.args[1]
        assert args[args.index("-n") + 1] == "main-42"
        assert args[args.index("--scope") + 1] == "@org"


class TestGitDepth:
    def test_shallow_clone_unshallowed_for_diff_check(self):
        shallow = CommandResult(stdout="true", stderr="", exit_code=0)
        with patch.object(steps, "run_captured", return_value=shallow), \
                patch.object(steps, "run_streaming", return_value=0) as mock_git:
            steps.check_git_depth(diff_check=True)

        git_calls = [call.args[1] for call in mock_git.call_args_list]
        assert git_calls == [["fetch", "--unshallow", "--tags"], ["fetch", "--tags"]]

    def test_full_clone_only_fetches_tags(self):
        full = CommandResult(stdout="false", stderr="", exit_code=0)
        with patch.object(steps, "run_captured", return_value=full), \
                patch.object(steps, "run_streaming", return_value=0) as mock_git:
            steps.check_git_depth(diff_check=True)

        assert [call.args[1] for call in mock_git.call_args_list] == [["fetch", "--tags"]]

    def test_git_missing_is_not_fatal(self):
        with patch.object(steps, "run_captured", side_effect=FileNotFoundError("git")), \
                patch.object(steps, "run_streaming", side_effect=FileNotFoundError("git")):
            steps.check_git_depth(diff_check=False)
