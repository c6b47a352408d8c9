"""Tests for configuration management."""

import json
from pathlib import Path

import pytest
import yaml

from buildpulse.config import (
    DEFAULT_TARGET_COMPLETION_BONUS,
    BuildPulseConfig,
    ConfigError,
    GitHubConfig,
    ScoringConfig,
    TogglConfig,
    generate_default_config,
)
from buildpulse.models import Project


class TestDefaults:
    """Tests for default configuration."""

    def test_default_config(self) -> None:
        """Test default configuration values."""
        config = BuildPulseConfig()

        assert config.github.api_url == "https://api.github.com"
        assert config.github.rate_limit_buffer == 100
        assert config.toggl.api_url == "https://api.track.toggl.com/api/v9"
        assert config.scoring.window_weeks == 12
        assert config.output.snapshot_path == Path("./data/build-output.json")
        assert config.projects == []

    def test_to_score_config(self) -> None:
        """Test the scoring section becomes a frozen ScoreConfig."""
        score_config = ScoringConfig(active_threshold=10.0).to_score_config()

        assert score_config.active_threshold == 10.0
        assert score_config.target_completion_bonus == DEFAULT_TARGET_COMPLETION_BONUS
        assert not hasattr(score_config, "window_weeks")

    def test_window_weeks_must_be_positive(self) -> None:
        """Test window size validation."""
        with pytest.raises(ValueError):
            ScoringConfig(window_weeks=0)


class TestLoad:
    """Tests for loading and saving."""

    def test_load_nonexistent(self, tmp_path: Path) -> None:
        """Test loading a missing file returns defaults."""
        config = BuildPulseConfig.load(tmp_path / "missing.yaml")
        assert config.github.token is None

    def test_load_yaml(self, tmp_path: Path) -> None:
        """Test loading a YAML file."""
        path = tmp_path / "buildpulse.yaml"
        path.write_text(
            yaml.dump(
                {
                    "github": {"token": "ghp_test"},
                    "scoring": {"active_threshold": 9.0},
                    "projects": [
                        {"name": "Atlas", "githubRepo": ["org/atlas"], "targetWeeklyHours": 6},
                    ],
                }
            )
        )

        config = BuildPulseConfig.load(path)

        assert config.github.token == "ghp_test"
        assert config.scoring.active_threshold == 9.0
        assert config.projects[0].github_repos == ["org/atlas"]
        assert config.projects[0].target_weekly_hours == 6

    def test_load_empty_file(self, tmp_path: Path) -> None:
        """Test an empty file gives defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert BuildPulseConfig.load(path).projects == []

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test malformed YAML raises ConfigError."""
        path = tmp_path / "bad.yaml"
        path.write_text("github: [unclosed")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            BuildPulseConfig.load(path)

    def test_invalid_values(self, tmp_path: Path) -> None:
        """Test invalid field values raise ConfigError."""
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.dump({"projects": [{"name": "A", "target_weekly_hours": -2}]}))

        with pytest.raises(ConfigError, match="Invalid configuration"):
            BuildPulseConfig.load(path)

    def test_save_and_load(self, tmp_path: Path) -> None:
        """Test saved configuration loads back."""
        config = BuildPulseConfig(
            github=GitHubConfig(token="ghp_saved"),
            projects=[Project(name="Atlas", github_repos=["org/atlas"])],
        )
        path = tmp_path / "nested" / "config.yaml"

        config.save(path)
        loaded = BuildPulseConfig.load(path)

        assert loaded.github.token == "ghp_saved"
        assert loaded.projects[0].name == "Atlas"

    def test_generate_default_config(self, tmp_path: Path) -> None:
        """Test the generated template is a valid configuration."""
        path = tmp_path / "buildpulse.yaml"
        generate_default_config(path)

        config = BuildPulseConfig.load(path)

        assert config.projects[0].name == "Example"
        assert config.projects[0].toggl_project_id == "123456789"


class TestTokens:
    """Tests for token resolution."""

    def test_github_token_from_config(self) -> None:
        """Test configured token wins."""
        config = BuildPulseConfig(github=GitHubConfig(token="ghp_config"))
        assert config.get_github_token() == "ghp_config"

    def test_github_token_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test environment fallback."""
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_env")
        assert BuildPulseConfig().get_github_token() == "ghp_env"

    def test_toggl_token_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test Toggl environment fallback."""
        monkeypatch.delenv("TOGGL_API_TOKEN", raising=False)
        monkeypatch.setenv("BUILDPULSE_TOGGL_TOKEN", "toggl_env")
        assert BuildPulseConfig().get_toggl_token() == "toggl_env"

    def test_toggl_token_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test no Toggl token."""
        monkeypatch.delenv("TOGGL_API_TOKEN", raising=False)
        monkeypatch.delenv("BUILDPULSE_TOGGL_TOKEN", raising=False)
        assert BuildPulseConfig(toggl=TogglConfig()).get_toggl_token() is None


class TestProjects:
    """Tests for project queries."""

    @pytest.fixture
    def config(self) -> BuildPulseConfig:
        return BuildPulseConfig(
            projects=[
                Project(name="Atlas", github_repos=["org/atlas"], toggl_project_id="1"),
                Project(name="Beacon", github_repos_private=["org/beacon"], end_year=2020),
                Project(name="Compass", toggl_project_id="3"),
            ]
        )

    def test_queries(self, config: BuildPulseConfig) -> None:
        """Test project filters."""
        assert [p.name for p in config.projects_with_github()] == ["Atlas", "Beacon"]
        assert [p.name for p in config.projects_with_toggl()] == ["Atlas", "Compass"]
        assert [p.name for p in config.active_projects(2024)] == ["Atlas", "Compass"]
        assert config.all_github_repos() == ["org/atlas", "org/beacon"]
        assert [p.name for p in config.projects_by_repo("org/beacon")] == ["Beacon"]

    def test_get_project_case_insensitive(self, config: BuildPulseConfig) -> None:
        """Test lookup by name."""
        project = config.get_project("atlas")
        assert project is not None
        assert project.name == "Atlas"
        assert config.get_project("missing") is None

    def test_projects_file_json(self, tmp_path: Path) -> None:
        """Test projects are appended from a camelCase JSON file."""
        path = tmp_path / "projects.json"
        path.write_text(
            json.dumps([{"name": "Delta", "togglProjectId": 42, "githubRepo": None}])
        )
        config = BuildPulseConfig(
            projects=[Project(name="Atlas")], projects_file=path
        )

        projects = config.load_projects()

        assert [p.name for p in projects] == ["Atlas", "Delta"]
        assert projects[1].toggl_project_id == "42"
        assert projects[1].github_repos == []

    def test_projects_file_yaml(self, tmp_path: Path) -> None:
        """Test YAML project files."""
        path = tmp_path / "projects.yaml"
        path.write_text(yaml.dump([{"name": "Echo", "tags": ["ops"]}]))

        projects = BuildPulseConfig(projects_file=path).load_projects()

        assert projects[0].tags == ["ops"]

    def test_projects_file_missing(self, tmp_path: Path) -> None:
        """Test a missing projects file raises ConfigError."""
        config = BuildPulseConfig(projects_file=tmp_path / "nope.json")
        with pytest.raises(ConfigError, match="not found"):
            config.load_projects()

    def test_projects_file_not_a_list(self, tmp_path: Path) -> None:
        """Test non-list content raises ConfigError."""
        path = tmp_path / "projects.json"
        path.write_text(json.dumps({"name": "Atlas"}))

        with pytest.raises(ConfigError, match="must contain a list"):
            BuildPulseConfig(projects_file=path).load_projects()

    def test_projects_file_invalid_json(self, tmp_path: Path) -> None:
        """Test malformed JSON raises ConfigError."""
        path = tmp_path / "projects.json"
        path.write_text("[{")

        with pytest.raises(ConfigError, match="Invalid projects file"):
            BuildPulseConfig(projects_file=path).load_projects()
