import json

import pytest
from click.testing import CliRunner

from analyzer import main as analyzer_main


@pytest.fixture
def cli(monkeypatch, scripted_endpoint):
    monkeypatch.setattr(analyzer_main, "setup_logging", lambda *args, **kwargs: None)

    def install(replies):
        endpoint = scripted_endpoint(replies)
        monkeypatch.setattr(analyzer_main, "build_endpoint", lambda settings=None: endpoint)
        return endpoint

    return install


def test_cli_writes_fields_to_output_file(cli, tmp_path):
    endpoint = cli(["Software Development,3,Cloud Computing,2"])
    cv_file = tmp_path / "cv.txt"
    cv_file.write_text("5 years Java, Spring Boot, PostgreSQL", encoding="utf-8")
    output = tmp_path / "out" / "fields.json"

    result = CliRunner().invoke(analyzer_main.main, [str(cv_file), "--output", str(output)])

    assert result.exit_code == 0, result.output
    assert json.loads(output.read_text(encoding="utf-8")) == {
        "fields": [
            {"field": "Software Development", "years": 3},
            {"field": "Cloud Computing", "years": 2},
        ]
    }
    assert endpoint.closed


def test_cli_malformed_reply_exits_with_error(cli, tmp_path):
    cli(["not a csv answer"])
    cv_file = tmp_path / "cv.txt"
    cv_file.write_text("Python developer", encoding="utf-8")
    output = tmp_path / "fields.json"

    result = CliRunner().invoke(analyzer_main.main, [str(cv_file), "--output", str(output)])

    assert result.exit_code != 0
    assert "malformed" in result.output
    assert not output.exists()


def test_cli_lenient_flag_accepts_unknown_field(cli, tmp_path):
    cli(["Alchemy,4"])
    cv_file = tmp_path / "cv.txt"
    cv_file.write_text("Turned lead into gold", encoding="utf-8")
    output = tmp_path / "fields.json"

    result = CliRunner().invoke(analyzer_main.main, [str(cv_file), "--lenient", "-o", str(output)])

    assert result.exit_code == 0, result.output
    assert json.loads(output.read_text(encoding="utf-8"))["fields"] == [{"field": "Alchemy", "years": 4}]


def test_cli_missing_file_is_usage_error(tmp_path):
    result = CliRunner().invoke(analyzer_main.main, [str(tmp_path / "missing.txt")])

    assert result.exit_code == 2
