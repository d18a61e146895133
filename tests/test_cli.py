"""Tests for the secrets commands and the interactive browser."""
import io
import json
import subprocess
from unittest import mock

import pytest
import yaml

from secrets_browser.cli import main as cli
from secrets_browser.secrets.domains import store_client
from secrets_browser.secrets.domains.models import MASK
from secrets_browser.secrets.workflows.catalog import SecretCatalog
from secrets_browser.secrets.workflows.registry import SessionRegistry

from conftest import DB_ARN, TOKEN_ARN


@pytest.fixture
def open_store(store, monkeypatch):
    """Route the CLI to the in-memory store instead of a real config."""
    monkeypatch.setattr(cli, "_open_store", lambda: (SecretCatalog(store), SessionRegistry(store)))
    return store


class TestSecretsCommands:

    def test_version(self, capsys):
        cli.main(["version"])
        assert capsys.readouterr().out.strip() == f"secrets-browser {cli.VERSION}"

    def test_no_command_is_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 2

    def test_list_prints_catalog_in_store_order(self, open_store, capsys):
        cli.main(["secrets", "list"])

        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("NAME")
        assert "prod/token" in lines[1] and TOKEN_ARN in lines[1]
        assert "prod/db" in lines[2] and DB_ARN in lines[2]

    def test_list_transport_failure_exits_1(self, open_store, broken_transport, capsys):
        open_store.fail_list = broken_transport

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["secrets", "list"])

        assert exc_info.value.code == 1
        assert "Unable to locate credentials" in capsys.readouterr().err

    def test_show_masks_everything_by_default(self, open_store, capsys):
        cli.main(["secrets", "show", DB_ARN])

        out = capsys.readouterr().out
        assert "admin" not in out and "x1" not in out
        assert out.count(MASK) == 2

    def test_show_reveal_one_field(self, open_store, capsys):
        cli.main(["secrets", "show", DB_ARN, "--reveal", "user"])

        out = capsys.readouterr().out
        assert "admin" in out
        assert "x1" not in out

    def test_show_reveal_all_plain_text(self, open_store, capsys):
        cli.main(["secrets", "show", TOKEN_ARN, "--reveal-all"])
        assert "plain-secret-123" in capsys.readouterr().out

    def test_show_unknown_field_is_usage_error(self, open_store, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["secrets", "show", DB_ARN, "--reveal", "nonexistent"])

        assert exc_info.value.code == 2
        assert "nonexistent" in capsys.readouterr().err

    def test_show_missing_secret_exits_1(self, open_store, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["secrets", "show", "arn:missing"])

        assert exc_info.value.code == 1
        assert "arn:missing" in capsys.readouterr().err

    def test_get_field_quiet(self, open_store, capsys):
        cli.main(["secrets", "get", DB_ARN, "pass", "-q"])
        assert capsys.readouterr().out == "x1\n"

    def test_get_plain_text_without_key(self, open_store, capsys):
        cli.main(["secrets", "get", TOKEN_ARN])
        assert capsys.readouterr().out == f"{TOKEN_ARN}: plain-secret-123\n"

    def test_get_structured_without_key_lists_fields(self, open_store, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["secrets", "get", DB_ARN])

        assert exc_info.value.code == 2
        assert "user, pass" in capsys.readouterr().err

    def test_whitespace_in_secret_id_is_rejected(self, open_store):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["secrets", "show", "bad id"])
        assert exc_info.value.code == 2
        assert open_store.get_calls == []

    def test_get_without_key_on_empty_record(self, open_store, capsys):
        open_store.values["arn:empty"] = "{}"

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["secrets", "get", "arn:empty"])

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "has no fields" in err
        assert "several" not in err


class TestBrowser:

    @pytest.fixture
    def browser(self, store):
        catalog = SecretCatalog(store)
        catalog.refresh()
        return cli.Browser(catalog, SessionRegistry(store), out=io.StringIO())

    def output(self, browser):
        text = browser.out.getvalue()
        browser.out.seek(0)
        browser.out.truncate()
        return text

    def test_open_by_number_toggle_and_copy(self, browser, store):
        browser.handle("open 2")
        assert browser.session.id == DB_ARN
        assert f"pass: {MASK}" in self.output(browser)

        browser.handle("toggle pass")
        assert "pass: x1" in self.output(browser)

        browser.handle("toggle pass")
        assert f"pass: {MASK}" in self.output(browser)

        browser.handle("copy user")
        assert self.output(browser).strip() == "admin"

    def test_open_by_name_uses_cached_session(self, browser, store):
        browser.handle("open prod/db")
        browser.handle("toggle user")
        browser.handle("close")
        browser.handle(f"open {DB_ARN}")

        assert "user: admin" in self.output(browser)
        assert store.get_calls == [DB_ARN]

    def test_reload_refetches(self, browser, store):
        browser.handle("open 1")
        store.values[TOKEN_ARN] = "rotated"
        browser.handle("reveal-all")
        browser.handle("reload")

        assert store.get_calls == [TOKEN_ARN, TOKEN_ARN]
        assert browser.session.raw_value(TOKEN_ARN) == "rotated"

    def test_failed_reload_keeps_open_secret(self, browser, store, broken_transport):
        browser.handle("open 2")
        browser.handle("toggle user")
        self.output(browser)

        store.fail_get = broken_transport
        assert browser.handle("reload") is True

        assert "Error:" in self.output(browser)
        assert browser.session is not None
        assert browser.session.render_rows() == [("user", "admin"), ("pass", MASK)]
        assert DB_ARN in browser.registry
        assert browser.registry.get(DB_ARN) is browser.session

    def test_errors_are_reported_and_loop_continues(self, browser):
        assert browser.handle("open arn:missing") is True
        assert "Error: Secret 'arn:missing' not found" in self.output(browser)

        browser.handle("open 2")
        self.output(browser)
        assert browser.handle("toggle nonexistent") is True
        assert "no field 'nonexistent'" in self.output(browser)

    def test_commands_need_an_open_secret(self, browser):
        browser.handle("toggle user")
        assert "No secret open" in self.output(browser)

    def test_refresh_failure_keeps_catalog(self, browser, store, broken_transport):
        store.fail_list = broken_transport
        browser.handle("refresh")

        assert "Error:" in self.output(browser)
        assert len(browser.catalog.current()) == 2

    def test_quit_and_unknown(self, browser):
        assert browser.handle("frobnicate") is True
        assert "Unknown command" in self.output(browser)
        assert browser.handle("quit") is False

    def test_run_until_eof(self, store, monkeypatch):
        lines = iter(["open 1", "toggle " + TOKEN_ARN])

        def fake_input(prompt=""):
            try:
                return next(lines)
            except StopIteration:
                raise EOFError

        monkeypatch.setattr("builtins.input", fake_input)
        out = io.StringIO()
        cli.Browser(SecretCatalog(store), SessionRegistry(store), out=out).run()

        assert "plain-secret-123" in out.getvalue()


class TestConfiguredStore:
    """The CLI built from a real config file and the aws CLI client."""

    @pytest.fixture
    def aws_config(self, temp_home):
        config_dir = temp_home / ".config" / "secrets-browser"
        config_dir.mkdir(parents=True)
        with open(config_dir / "config.yml", 'w') as f:
            yaml.dump({
                "backend": "aws",
                "aws": {"profile": "prod", "cli_path": "/opt/aws"},
                "display": {"mask": "<hidden>"},
            }, f)
        return config_dir / "config.yml"

    def test_show_uses_configured_client_and_mask(self, aws_config, capsys):
        output = json.dumps({"ARN": DB_ARN, "SecretString": '{"user": "admin", "pass": "x1"}'})
        with mock.patch.object(store_client.subprocess, "run") as run:
            run.return_value = subprocess.CompletedProcess(args=[], returncode=0, stdout=output, stderr="")
            cli.main(["secrets", "show", DB_ARN, "--reveal", "user"])

        command = run.call_args.args[0]
        assert command[:5] == ["/opt/aws", "secretsmanager", "get-secret-value", "--secret-id", DB_ARN]
        assert command[-2:] == ["--profile", "prod"]

        out = capsys.readouterr().out
        assert "admin" in out
        assert "<hidden>" in out
        assert MASK not in out
