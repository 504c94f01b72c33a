import pytest

from matrix_runner.config import TestMatrix
from matrix_runner.i18n import get_locale, set_locale
from matrix_runner.init_command import DEFAULT_CONFIG, execute, main


@pytest.fixture(autouse=True)
def english_locale():
    previous = get_locale()
    set_locale("en")
    yield
    set_locale(previous)


def test_default_config_is_a_valid_matrix():
    matrix = TestMatrix.from_toml(DEFAULT_CONFIG)
    assert matrix.language == "en"
    assert matrix.fast_fail is True
    assert [case.name for case in matrix.cases] == [
        "no-features",
        "all-features",
        "no-default-features",
        "custom-command",
    ]
    restricted = matrix.cases[2]
    assert restricted.no_default_features is True
    assert restricted.timeout_secs == 60
    assert restricted.retries == 1
    assert restricted.allow_failure == ["windows"]
    assert restricted.arch == ["x86_64", "aarch64"]
    assert matrix.cases[3].command == "cargo run --example demo"


def test_execute_writes_default_config(tmp_path):
    target = tmp_path / "TestMatrix.toml"
    assert execute(target, False, None) is True
    assert target.read_text(encoding="utf-8") == DEFAULT_CONFIG


def test_execute_keeps_existing_file_without_force(tmp_path):
    target = tmp_path / "TestMatrix.toml"
    target.write_text("original", encoding="utf-8")
    assert execute(target, False, None) is False
    assert target.read_text(encoding="utf-8") == "original"


def test_execute_overwrites_with_force(tmp_path):
    target = tmp_path / "TestMatrix.toml"
    target.write_text("original", encoding="utf-8")
    assert execute(target, True, None) is True
    assert target.read_text(encoding="utf-8") == DEFAULT_CONFIG


def test_execute_creates_parent_directories(tmp_path):
    target = tmp_path / "nested" / "deeper" / "matrix.toml"
    execute(target, False, None)
    assert target.is_file()


def test_execute_sets_language(tmp_path):
    execute(tmp_path / "m.toml", False, "zh-CN")
    assert get_locale() == "zh-CN"


def test_execute_reports_write_failure(tmp_path):
    blocker = tmp_path / "afile"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(OSError, match="Failed to write configuration file"):
        execute(blocker / "matrix.toml", False, None)


def test_main_creates_file(tmp_path):
    target = tmp_path / "out.toml"
    assert main(["--lang", "en", "--output", str(target)]) == 0
    assert TestMatrix.from_toml(target.read_text(encoding="utf-8")).cases


def test_main_without_lang_uses_system_locale(tmp_path):
    target = tmp_path / "out.toml"
    assert main(["-o", str(target)]) == 0
    assert target.read_text(encoding="utf-8") == DEFAULT_CONFIG


def test_main_force_flag(tmp_path):
    target = tmp_path / "out.toml"
    target.write_text("old", encoding="utf-8")
    assert main(["--lang", "en", "-o", str(target)]) == 0
    assert target.read_text(encoding="utf-8") == "old"
    assert main(["--lang", "en", "-o", str(target), "--force"]) == 0
    assert target.read_text(encoding="utf-8") == DEFAULT_CONFIG


def test_main_reports_errors(tmp_path, capsys):
    blocker = tmp_path / "afile"
    blocker.write_text("x", encoding="utf-8")
    assert main(["--lang", "en", "-o", str(blocker / "m.toml")]) == 1
    assert "Error:" in capsys.readouterr().err


def test_main_rejects_unknown_argument(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main(["--lang", "en", "--invalid-flag"])
    assert excinfo.value.code == 2