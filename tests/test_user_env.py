"""
Tests for the user environment record.
"""

import pytest
from pydantic import ValidationError

from yukoloader.core.services.user_env import (
    EnvParams,
    capture_params,
    default_params,
    nix_string,
    render_env_record,
    write_env_record,
)


class TestRender:
    def test_record_layout(self):
        params = EnvParams(user_name="yuko", home_dir="/home/yuko")
        assert render_env_record(params) == (
            "{\n"
            '  userName = "yuko";\n'
            '  homeDir  = "/home/yuko";\n'
            "}\n"
        )

    def test_nix_string_escapes(self):
        assert nix_string('a"b') == '"a\\"b"'
        assert nix_string("a\\b") == '"a\\\\b"'
        assert nix_string("${HOME}") == '"\\${HOME}"'
        assert nix_string("$HOME") == '"$HOME"'

    def test_blank_values_rejected(self):
        with pytest.raises(ValidationError):
            EnvParams(user_name="  ", home_dir="/home/yuko")


class TestCapture:
    def test_defaults_from_host(self, host, prompter, home):
        params = capture_params(prompter, host)
        assert params == default_params(host)
        assert params.home_dir == str(home)
        assert prompter.asked == ["Username", "Home directory"]

    def test_operator_answers(self, host, prompter):
        prompter.answers = {"Username": "alice", "Home directory": "/srv/alice"}
        params = capture_params(prompter, host)
        assert params.user_name == "alice"
        assert params.home_dir == "/srv/alice"

    def test_empty_answer_keeps_default(self, host, prompter):
        prompter.answers = {"Username": ""}
        assert capture_params(prompter, host).user_name == "yuko"


class TestWrite:
    def test_write_creates_record(self, tmp_path):
        path = tmp_path / ".yuko" / ".yuko-env.nix"
        write_env_record(path, EnvParams(user_name="yuko", home_dir="/home/yuko"))
        assert 'userName = "yuko";' in path.read_text()

    def test_last_answer_wins(self, tmp_path):
        path = tmp_path / ".yuko-env.nix"
        write_env_record(path, EnvParams(user_name="first", home_dir="/a"))
        write_env_record(path, EnvParams(user_name="second", home_dir="/b"))
        content = path.read_text()
        assert "second" in content
        assert "first" not in content

    def test_no_temp_files_left(self, tmp_path):
        path = tmp_path / ".yuko-env.nix"
        write_env_record(path, EnvParams(user_name="yuko", home_dir="/home/yuko"))
        assert [p.name for p in tmp_path.iterdir()] == [".yuko-env.nix"]
