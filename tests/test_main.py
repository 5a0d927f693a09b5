import sys
import os

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import config
from main import main


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    for name in ("PAYMENTS_STRICT", "PAYMENTS_LOG_LEVEL", "PAYMENTS_LOG_REJECTIONS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "settings", None)


@pytest.fixture
def input_csv(tmp_path):
    csv_file = tmp_path / "transactions.csv"
    csv_file.write_text('\n'.join([
        "type, client, tx, amount",
        "deposit, 1, 1, 1.0",
        "deposit, 2, 2, 2.0",
        "deposit, 1, 3, 2.0",
        "withdrawal, 1, 4, 1.5",
        "withdrawal, 2, 5, 3.0",
    ]))
    return csv_file


class TestMain:
    def test_usage_no_args(self, capsys):
        assert main([]) != 0
        assert "Usage: " in capsys.readouterr().err

    def test_usage_multiple_args(self, capsys):
        assert main(["foobar", "test/file/doesnt/exist"]) != 0
        assert "Usage: " in capsys.readouterr().err

    def test_path_doesnt_exist(self, capsys):
        assert main(["file/path/doesnt/exist"]) != 0
        assert "No such file or directory" in capsys.readouterr().err

    def test_path_exists(self, input_csv, capsys):
        assert main([str(input_csv)]) == 0

        out = capsys.readouterr().out
        assert out == "\n".join([
            "client,available,held,total,locked",
            "1,1.5,0,1.5,false",
            "2,2,0,2,false",
            "",
        ])

    def test_rejections_do_not_fail_run(self, tmp_path, capsys):
        csv_file = tmp_path / "transactions.csv"
        csv_file.write_text('\n'.join([
            "type,client,tx,amount",
            "deposit,1,1001,20",
            "dispute,1,1001,",
            "chargeback,1,1001,",
            "deposit,1,1002,5",
            "garbage,row",
        ]))

        assert main([str(csv_file)]) == 0
        assert capsys.readouterr().out == "client,available,held,total,locked\n1,0,0,0,true\n"

    def test_argv_default(self, input_csv, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["payments-engine", str(input_csv)])
        assert main() == 0
        assert capsys.readouterr().out.startswith("client,available,held,total,locked\n")

    def test_strict_mode_from_environment(self, tmp_path, monkeypatch, capsys):
        csv_file = tmp_path / "transactions.csv"
        csv_file.write_text("type,client,tx,amount\nwithdrawal,1,1,10\n")

        monkeypatch.setenv("PAYMENTS_STRICT", "true")
        config.reload_settings()

        assert main([str(csv_file)]) != 0
        captured = capsys.readouterr()
        assert "insufficient_funds" in captured.err
        assert captured.out == ""


class TestSettings:
    def test_defaults(self):
        settings = config.get_settings()
        assert settings.strict is False
        assert settings.log_rejections is True
        assert settings.log_level == "WARNING"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_LOG_LEVEL", "debug")
        monkeypatch.setenv("PAYMENTS_LOG_REJECTIONS", "false")

        settings = config.reload_settings()

        assert settings.log_level == "DEBUG"
        assert settings.log_rejections is False
        assert config.get_settings() is settings

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_LOG_LEVEL", "loud")

        with pytest.raises(ValidationError, match="log_level"):
            config.reload_settings()

    def test_invalid_log_level_from_cli(self, input_csv, monkeypatch, capsys):
        monkeypatch.setenv("PAYMENTS_LOG_LEVEL", "loud")

        assert main([str(input_csv)]) != 0
        captured = capsys.readouterr()
        assert "Error: invalid configuration" in captured.err
        assert "log_level" in captured.err
        assert captured.out == ""
