import os
from pathlib import Path

import pytest

from slidepress.utils.env import default_env_path, load_env_file, parse_env_lines


def test_parse_env_lines_handles_quotes_comments_and_exports() -> None:
  lines = ["# provider keys", "export OPENAI_API_KEY=sk-test", 'SLIDEPRESS_BASE_URL="http://localhost:8000"', "SLIDEPRESS_DEBUG=1  # local only", "SLIDEPRESS_ENV='dev # not a comment'", "not a pair", "1BAD=x", ""]
  assert parse_env_lines(lines) == {"OPENAI_API_KEY": "sk-test", "SLIDEPRESS_BASE_URL": "http://localhost:8000", "SLIDEPRESS_DEBUG": "1", "SLIDEPRESS_ENV": "dev # not a comment"}


def test_load_env_file_keeps_existing_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
  env_file = tmp_path / ".env"
  env_file.write_text("SLIDEPRESS_TEST_A=from-file\nSLIDEPRESS_TEST_B=from-file\n", encoding="utf-8")
  monkeypatch.setenv("SLIDEPRESS_TEST_A", "from-env")
  # Registers B with monkeypatch so it is removed again after the test.
  monkeypatch.setenv("SLIDEPRESS_TEST_B", "placeholder")
  monkeypatch.delenv("SLIDEPRESS_TEST_B")

  assert load_env_file(env_file) == ["SLIDEPRESS_TEST_B"]
  assert os.environ["SLIDEPRESS_TEST_A"] == "from-env"
  assert os.environ["SLIDEPRESS_TEST_B"] == "from-file"
  assert load_env_file(tmp_path / "missing.env") == []


def test_default_env_path_can_be_overridden(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
  monkeypatch.setenv("SLIDEPRESS_ENV_FILE", str(tmp_path / "local.env"))
  assert default_env_path() == tmp_path / "local.env"
