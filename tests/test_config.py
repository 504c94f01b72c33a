import tomllib

import pytest

from matrix_runner.config import ConfigError, TestCase, TestMatrix, load_test_matrix


def test_test_case_basic_serialization():
    case = TestCase(name="basic-test", features="feature1,feature2", no_default_features=False)
    text = case.to_toml()
    assert 'name = "basic-test"' in text
    assert 'features = "feature1,feature2"' in text
    assert "no_default_features = false" in text
    assert "command" not in text


def test_test_case_with_custom_command():
    case = TestCase(
        name="custom-command-test",
        features="",
        no_default_features=True,
        command="cargo test --release",
        allow_failure=["windows"],
        arch=["x86_64", "aarch64"],
    )
    text = case.to_toml()
    assert 'name = "custom-command-test"' in text
    assert 'command = "cargo test --release"' in text
    assert "no_default_features = true" in text
    parsed = tomllib.loads(text)
    assert parsed["allow_failure"] == ["windows"]
    assert parsed["arch"] == ["x86_64", "aarch64"]


def test_test_case_deserialization_minimal():
    data = tomllib.loads('name = "minimal-test"\nfeatures = ""\nno_default_features = false\n')
    case = TestCase.from_dict(data)
    assert case.name == "minimal-test"
    assert case.features == ""
    assert case.no_default_features is False
    assert case.command is None
    assert case.allow_failure == []
    assert case.arch == []
    assert case.retries is None
    assert case.timeout_secs is None


def test_test_case_deserialization_full():
    data = tomllib.loads(
        """
        name = "full-test"
        features = "feature1,feature2"
        no_default_features = true
        command = "custom command"
        allow_failure = ["linux", "macos"]
        arch = ["x86_64"]
        """
    )
    case = TestCase.from_dict(data)
    assert case.name == "full-test"
    assert case.features == "feature1,feature2"
    assert case.no_default_features is True
    assert case.command == "custom command"
    assert case.allow_failure == ["linux", "macos"]
    assert case.arch == ["x86_64"]
    assert case.retries is None
    assert case.timeout_secs is None


def test_test_case_dict_round_trip():
    original = TestCase(
        name="clone-test",
        features="feature1",
        no_default_features=True,
        command="test command",
        allow_failure=["windows"],
        arch=["x86_64"],
        retries=2,
        timeout_secs=30,
    )
    assert TestCase.from_dict(original.to_dict()) == original


def test_test_case_defaults():
    case = TestCase()
    assert (case.name, case.features, case.no_default_features) == ("unknown", "", False)


@pytest.mark.parametrize(
    "data",
    [
        {"name": "x", "features": "", "no_default_features": "no"},
        {"name": "x", "features": "", "no_default_features": False, "retries": 256},
        {"name": "x", "features": "", "no_default_features": False, "timeout_secs": -1},
        {"name": "x", "features": "", "no_default_features": False, "arch": [1]},
        {"name": "x", "features": ""},
    ],
)
def test_test_case_invalid_fields(data):
    with pytest.raises(ConfigError):
        TestCase.from_dict(data)


def test_test_matrix_default_language():
    matrix = TestMatrix.from_toml(
        """
        [[cases]]
        name = "test1"
        features = ""
        no_default_features = false
        """
    )
    assert matrix.language == "en"
    assert matrix.fast_fail is False
    assert len(matrix.cases) == 1
    assert matrix.cases[0].name == "test1"


def test_test_matrix_explicit_language():
    matrix = TestMatrix.from_toml(
        """
        language = "zh-CN"

        [[cases]]
        name = "test1"
        features = ""
        no_default_features = false
        """
    )
    assert matrix.language == "zh-CN"
    assert len(matrix.cases) == 1


def test_test_matrix_multiple_cases():
    matrix = TestMatrix.from_toml(
        """
        language = "en"

        [[cases]]
        name = "std-test"
        features = "std"
        no_default_features = false

        [[cases]]
        name = "no-std-test"
        features = "core"
        no_default_features = true

        [[cases]]
        name = "custom-test"
        features = ""
        no_default_features = false
        command = "echo test"
        allow_failure = ["windows"]
        arch = ["x86_64", "aarch64"]
        """
    )
    assert matrix.language == "en"
    assert len(matrix.cases) == 3
    assert (matrix.cases[0].name, matrix.cases[0].features) == ("std-test", "std")
    assert matrix.cases[0].no_default_features is False
    assert (matrix.cases[1].name, matrix.cases[1].features) == ("no-std-test", "core")
    assert matrix.cases[1].no_default_features is True
    assert matrix.cases[2].name == "custom-test"
    assert matrix.cases[2].command == "echo test"
    assert matrix.cases[2].allow_failure == ["windows"]
    assert matrix.cases[2].arch == ["x86_64", "aarch64"]


def test_test_matrix_serialization():
    matrix = TestMatrix(
        language="zh-CN",
        cases=[
            TestCase(name="test1", features="feature1", no_default_features=False),
            TestCase(
                name="test2",
                features="",
                no_default_features=True,
                command="custom command",
                allow_failure=["linux"],
                arch=["x86_64"],
            ),
        ],
    )
    text = matrix.to_toml()
    assert 'language = "zh-CN"' in text
    assert 'name = "test1"' in text
    assert 'name = "test2"' in text
    assert 'command = "custom command"' in text
    assert tomllib.loads(text)["cases"][1]["allow_failure"] == ["linux"]


def test_test_matrix_empty_cases():
    matrix = TestMatrix.from_toml('language = "en"\ncases = []\n')
    assert matrix.language == "en"
    assert matrix.cases == []


def test_test_matrix_roundtrip_serialization():
    original = TestMatrix(
        language="en",
        cases=[
            TestCase(
                name="roundtrip-test",
                features="feature1,feature2",
                no_default_features=True,
                command="test command",
                allow_failure=["windows", "linux"],
                arch=["x86_64"],
            )
        ],
    )
    assert TestMatrix.from_toml(original.to_toml()) == original


def test_test_matrix_invalid_toml():
    with pytest.raises(ConfigError):
        TestMatrix.from_toml(
            """
            language = "en"
            [[cases]]
            name = "incomplete-test"
            """
        )


def test_test_matrix_syntax_error():
    with pytest.raises(ConfigError, match="Failed to parse TOML configuration"):
        TestMatrix.from_toml('language = "en"\n[[cases]\nname = "x"\n')


def test_test_matrix_empty_document_is_rejected():
    with pytest.raises(ConfigError):
        TestMatrix.from_toml("")


def test_test_matrix_with_chinese_content():
    matrix = TestMatrix.from_toml(
        """
        language = "zh-CN"

        [[cases]]
        name = "中文测试"
        features = "功能1,功能2"
        no_default_features = false
        """
    )
    assert matrix.language == "zh-CN"
    assert matrix.cases[0].name == "中文测试"
    assert matrix.cases[0].features == "功能1,功能2"


def test_load_test_matrix_reads_file(tmp_path):
    path = tmp_path / "matrix.toml"
    path.write_text(
        'fast_fail = true\n[[cases]]\nname = "a"\nfeatures = ""\nno_default_features = false\n',
        encoding="utf-8",
    )
    matrix = load_test_matrix(path)
    assert matrix.fast_fail is True
    assert [case.name for case in matrix.cases] == ["a"]


def test_load_test_matrix_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="Failed to read config file"):
        load_test_matrix(tmp_path / "nonexistent_file.toml")