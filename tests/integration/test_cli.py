#  pctrl - CLI Integration Tests
#
#  Drives the Typer app end to end against a temporary store file.
#  Each invocation opens and closes the store, as a real shell session
#  would.
#
#  Depends on: pctrl/cli/*
#  Used by:    pytest

import json

import pytest
from typer.testing import CliRunner

from pctrl.cli.main import app


@pytest.fixture
def cli(tmp_path, monkeypatch):
    """Invoke the CLI against tmp_path/cli.db with encryption on."""
    monkeypatch.setattr("pctrl.config.DB_PATH", tmp_path / "cli.db")
    monkeypatch.setattr("pctrl.config.PASSPHRASE", "cli test passphrase")
    monkeypatch.setattr("pctrl.cli.main.setup_logging", lambda **kwargs: None)
    runner = CliRunner()

    def invoke(*args, input=None):
        return runner.invoke(app, list(args), input=input)

    return invoke


class TestProjectCommands:
    def test_add_list_show_remove(self, cli):
        result = cli("project", "add", "Shop", "--stack", "python, postgres", "--status", "live")
        assert result.exit_code == 0, result.output
        assert "added (shop)" in result.output

        listed = cli("project", "list", "--json")
        assert listed.exit_code == 0
        [project] = json.loads(listed.stdout)
        assert project["id"] == "shop"
        assert project["stack"] == ["python", "postgres"]
        assert project["status"] == "live"

        shown = cli("project", "show", "SHOP")
        assert shown.exit_code == 0
        assert "Project: Shop (shop)" in shown.output

        removed = cli("project", "remove", "shop")
        assert removed.exit_code == 0
        assert json.loads(cli("project", "list", "--json").stdout) == []

    def test_duplicate_name_fails(self, cli):
        cli("project", "add", "Shop")
        result = cli("project", "add", "shop", "--id", "other")
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_unknown_status_rejected(self, cli):
        result = cli("project", "add", "Shop", "--status", "shipped")
        assert result.exit_code != 0
        assert "shipped" in result.output

    def test_show_missing(self, cli):
        result = cli("project", "show", "ghost")
        assert result.exit_code == 1
        assert "Project 'ghost' not found" in result.output


class TestServerAndCredentialCommands:
    def test_server_with_credential(self, cli):
        added = cli(
            "credential", "add", "Deploy", "--type", "ssh", "--username", "deploy",
            "--key-path", "/keys/id", "--port", "2222",
        )
        assert added.exit_code == 0, added.output

        result = cli("server", "add", "Prod Box", "203.0.113.10", "--credential", "deploy", "--ram", "8")
        assert result.exit_code == 0, result.output

        [server] = json.loads(cli("server", "list", "--json").stdout)
        assert server["id"] == "prod-box"
        assert server["credential_id"] == "deploy"
        assert server["specs"]["ram_gb"] == 8

    def test_server_with_unknown_credential_fails(self, cli):
        result = cli("server", "add", "Prod Box", "203.0.113.10", "--credential", "nope")
        assert result.exit_code == 1
        assert "Credential 'nope' not found" in result.output

    def test_credential_secrets_masked(self, cli):
        cli("credential", "add", "CF", "--type", "api_token", "--token", "supersecret")

        masked = cli("credential", "show", "cf")
        assert masked.exit_code == 0
        assert "supersecret" not in masked.output
        assert "********" in masked.output

        revealed = cli("credential", "show", "cf", "--reveal")
        assert "supersecret" in revealed.output

    def test_credential_missing_required_field(self, cli):
        result = cli("credential", "add", "Key", "--type", "ssh_key", "--username", "root")
        assert result.exit_code == 1
        assert "--key-path" in result.output

    def test_credential_remove_by_name(self, cli):
        cli("credential", "add", "CF", "--type", "token", "--token", "t")
        assert cli("credential", "remove", "CF").exit_code == 0
        assert cli("credential", "remove", "CF").exit_code == 1


class TestLinkCommands:
    def test_link_and_list(self, cli):
        cli("project", "add", "Shop")
        result = cli("link", "shop", "server", "prod-box", "--role", "web")
        assert result.exit_code == 0, result.output

        [link] = json.loads(cli("links", "shop", "--json").stdout)
        assert link["resource_type"] == "server"
        assert link["resource_id"] == "prod-box"
        assert link["role"] == "web"

        assert cli("unlink", link["id"]).exit_code == 0
        assert json.loads(cli("links", "shop", "--json").stdout) == []

    def test_link_to_missing_project(self, cli):
        result = cli("link", "ghost", "server", "prod-box")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_bad_resource_type(self, cli):
        cli("project", "add", "Shop")
        result = cli("link", "shop", "spaceship", "x")
        assert result.exit_code != 0


class TestScriptCommands:
    def test_run_local_script(self, cli):
        cli("script", "add", "Hello", "echo hello", "--type", "local")
        result = cli("script", "run", "hello")
        assert result.exit_code == 0, result.output
        assert "hello" in result.output
        assert "succeeded" in result.output

        [script] = json.loads(cli("script", "list", "--json").stdout)
        assert script["last_result"] == "success"
        assert script["exit_code"] == 0

    def test_dangerous_needs_force(self, cli):
        cli("script", "add", "Wipe", "echo gone", "--type", "local", "--dangerous")
        refused = cli("script", "run", "wipe")
        assert refused.exit_code == 1
        assert "--force" in refused.output

        forced = cli("script", "run", "wipe", "--force")
        assert forced.exit_code == 0

    def test_failing_script_exit_code(self, cli):
        cli("script", "add", "Fail", "exit 4", "--type", "local")
        result = cli("script", "run", "fail")
        assert result.exit_code == 1
        assert "exit 4" in result.output


class TestMigrateCommand:
    def test_auto_migration(self, cli):
        cli("ssh", "add", "web1", "10.0.0.5", "--user", "root")

        result = cli("migrate", "--auto")
        assert result.exit_code == 0, result.output
        assert "Server web1 created" in result.output

        [server] = json.loads(cli("server", "list", "--json").stdout)
        assert server["host"] == "10.0.0.5"

        again = cli("migrate", "--auto")
        assert "skipped" in again.output
        assert "Nothing to migrate." in again.output

    def test_interactive_decline(self, cli):
        cli("ssh", "add", "web1", "10.0.0.5", "--user", "root")

        result = cli("migrate", input="n\n")
        assert result.exit_code == 0, result.output
        assert "not created" in result.output
        assert json.loads(cli("server", "list", "--json").stdout) == []

    def test_cleanup(self, cli):
        cli("ssh", "add", "web1", "10.0.0.5", "--user", "root")
        result = cli("migrate", "--auto", "--cleanup")
        assert "Legacy SSH connection web1 removed" in result.output


class TestStatusCommand:
    def test_empty_store(self, cli):
        result = cli("status")
        assert result.exit_code == 0
        assert "Nothing to check yet." in result.output
