"""
Tests for engine configuration loading.
"""

import pytest

from klein.config import EngineConfig, KLEIN_CONFIG, load_config, clear_cache


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point HOME at an empty directory and forget cached files."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv(KLEIN_CONFIG, raising=False)
    clear_cache()
    yield
    clear_cache()


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestLoadConfig:
    """Test the config search order and parsing."""

    def test_defaults(self):
        config = load_config()
        assert config == EngineConfig()
        assert config.max_loop_iterations is None
        assert config.trace is False

    def test_explicit_path(self, tmp_path):
        path = write(tmp_path / "klein.yaml", "max_loop_iterations: 50\ntrace: true\n")
        config = load_config(path)
        assert config.max_loop_iterations == 50
        assert config.trace is True

    def test_explicit_path_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_env_var(self, tmp_path, monkeypatch):
        path = write(tmp_path / "env.yaml", "max_loop_iterations: 7\n")
        monkeypatch.setenv(KLEIN_CONFIG, str(path))
        assert load_config().max_loop_iterations == 7

    def test_user_config(self, tmp_path):
        write(tmp_path / "home" / ".config" / "klein" / "config.yaml", "trace: true\n")
        assert load_config().trace is True

    def test_env_var_wins_over_user_config(self, tmp_path, monkeypatch):
        write(tmp_path / "home" / ".config" / "klein" / "config.yaml", "max_loop_iterations: 1\n")
        path = write(tmp_path / "env.yaml", "max_loop_iterations: 2\n")
        monkeypatch.setenv(KLEIN_CONFIG, str(path))
        assert load_config().max_loop_iterations == 2

    def test_empty_file(self, tmp_path):
        path = write(tmp_path / "empty.yaml", "")
        assert load_config(path) == EngineConfig()

    def test_unknown_key(self, tmp_path):
        path = write(tmp_path / "bad.yaml", "max_loops: 3\n")
        with pytest.raises(ValueError, match="max_loops"):
            load_config(path)

    @pytest.mark.parametrize("text", [
        "max_loop_iterations: -1\n",
        "max_loop_iterations: lots\n",
        "trace: 3\n",
        "- a list\n",
    ])
    def test_bad_values(self, tmp_path, text):
        path = write(tmp_path / "bad.yaml", text)
        with pytest.raises(ValueError):
            load_config(path)

    def test_malformed_yaml(self, tmp_path):
        path = write(tmp_path / "broken.yaml", "max_loop_iterations: [1,\n")
        with pytest.raises(ValueError, match="malformed YAML"):
            load_config(path)
