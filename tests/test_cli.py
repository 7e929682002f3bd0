"""Tests for the contiguity CLI."""

import json
import os

import pytest
from typer.testing import CliRunner

from contiguity_base.cli import app
from contiguity_base.config import load_config

runner = CliRunner()


@pytest.fixture(autouse=True)
def env(tmp_path, monkeypatch):
    for name in list(os.environ):
        if name.startswith("CONTIGUITY_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("CONTIGUITY_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("CONTIGUITY_API_KEY", "cli-key")
    monkeypatch.setenv("CONTIGUITY_PROJECT_ID", "cli-proj")


@pytest.fixture
def http(mock_http):
    _, instance = mock_http
    return instance


class TestGet:
    def test_prints_item(self, http, fake_response):
        http.request.return_value = fake_response(json_data={"key": "ada", "name": "Ada"})

        result = runner.invoke(app, ["get", "users", "ada"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"key": "ada", "name": "Ada"}
        assert http.request.call_args.args == ("GET", "/items/ada")

    def test_not_found(self, http, fake_response):
        http.request.return_value = fake_response(status_code=404)

        result = runner.invoke(app, ["get", "users", "ada"])

        assert result.exit_code == 1
        assert "Not found: ada" in result.output

    def test_uses_base_url(self, mock_http):
        MockClient, _ = mock_http

        runner.invoke(app, ["get", "emails", "x"])

        kwargs = MockClient.call_args.kwargs
        assert kwargs["base_url"] == "https://api.base.contiguity.co/v1/cli-proj/emails"
        assert kwargs["headers"]["x-api-key"] == "cli-key"


class TestPut:
    def test_put_with_key_and_expiry(self, http, sent_body):
        result = runner.invoke(app, ["put", "users", '{"name": "Ada"}', "--key", "ada", "--expire-in", "60"])

        assert result.exit_code == 0, result.output
        item = sent_body(http.request.call_args)["items"][0]
        assert item["name"] == "Ada"
        assert item["key"] == "ada"
        assert isinstance(item["__expires"], int)

    def test_put_expire_at_iso(self, http, sent_body):
        result = runner.invoke(app, ["put", "users", "{}", "--expire-at", "2030-01-01T00:00:00Z"])

        assert result.exit_code == 0, result.output
        assert sent_body(http.request.call_args)["items"][0]["__expires"] == 1893456000

    def test_put_bad_expire_at(self, http):
        result = runner.invoke(app, ["put", "users", "{}", "--expire-at", "someday"])

        assert result.exit_code == 1
        assert "--expire-at" in result.output
        http.request.assert_not_called()

    def test_put_list(self, http, sent_body):
        result = runner.invoke(app, ["put", "users", '[{"key": "a"}, {"key": "b"}]'])

        assert result.exit_code == 0, result.output
        assert sent_body(http.request.call_args) == {"items": [{"key": "a"}, {"key": "b"}]}

    def test_put_invalid_json(self, http):
        result = runner.invoke(app, ["put", "users", "{nope"])

        assert result.exit_code == 1
        assert "not valid JSON" in result.output

    def test_put_scalar_rejected(self, http):
        result = runner.invoke(app, ["put", "users", "42"])

        assert result.exit_code == 1


class TestInsert:
    def test_insert(self, http, sent_body):
        result = runner.invoke(app, ["insert", "users", '{"a": 1}', "-k", "k1"])

        assert result.exit_code == 0, result.output
        call = http.request.call_args
        assert call.args == ("POST", "/items")
        assert sent_body(call) == {"item": {"a": 1, "key": "k1"}}

    def test_insert_conflict(self, http, fake_response):
        http.request.return_value = fake_response(status_code=409, text="exists")

        result = runner.invoke(app, ["insert", "users", '{"a": 1}', "-k", "k1"])

        assert result.exit_code == 1
        assert "insert failed" in result.output


class TestDelete:
    def test_delete(self, http):
        result = runner.invoke(app, ["delete", "users", "ada"])

        assert result.exit_code == 0, result.output
        assert http.request.call_args.args == ("DELETE", "/items/ada")

    def test_delete_with_empty_response(self, http, fake_response):
        http.request.return_value = fake_response(status_code=204, text="")

        result = runner.invoke(app, ["delete", "users", "ada"])

        assert result.exit_code == 0, result.output
        assert "delete failed" not in result.output


class TestUpdate:
    def test_all_operations(self, http, sent_body):
        result = runner.invoke(app, [
            "update", "users", "ada",
            "--set", "name=Ada",
            "--set", "profile.age=36",
            "--increment", "views=2",
            "--append", 'tags="x"',
            "--prepend", "history=[1]",
            "--trim", "bio",
            "--delete", "old",
        ])

        assert result.exit_code == 0, result.output
        call = http.request.call_args
        assert call.args == ("PATCH", "/items/ada")
        assert sent_body(call) == {"updates": {
            "set": {"name": "Ada", "profile.age": 36},
            "increment": {"views": 2},
            "append": {"tags": "x"},
            "prepend": {"history": [1]},
            "delete": ["bio", "old"],
        }}

    def test_fractional_increment(self, http, sent_body):
        runner.invoke(app, ["update", "users", "ada", "-i", "score=-0.5"])

        assert sent_body(http.request.call_args)["updates"]["increment"] == {"score": -0.5}

    def test_requires_an_operation(self, http):
        result = runner.invoke(app, ["update", "users", "ada"])

        assert result.exit_code == 1
        http.request.assert_not_called()

    def test_bad_assignment(self, http):
        result = runner.invoke(app, ["update", "users", "ada", "--set", "noequals"])

        assert result.exit_code == 1
        assert "PATH=VALUE" in result.output

    def test_bad_increment(self, http):
        result = runner.invoke(app, ["update", "users", "ada", "--increment", "n=lots"])

        assert result.exit_code == 1
        assert "expects a number" in result.output


class TestQuery:
    def test_query(self, http, fake_response, sent_body):
        http.request.return_value = fake_response(json_data={
            "items": [{"key": "a"}], "last": "a", "count": 1, "extra": 1,
        })

        result = runner.invoke(app, ["query", "users", '{"age?gt": 30}', "--limit", "1"])

        assert result.exit_code == 0, result.output
        assert sent_body(http.request.call_args) == {"query": {"age?gt": 30}, "limit": 1}
        assert json.loads(result.stdout) == {"items": [{"key": "a"}], "last": "a", "count": 1}

    def test_query_without_filter(self, http, sent_body):
        result = runner.invoke(app, ["query", "users"])

        assert result.exit_code == 0, result.output
        assert sent_body(http.request.call_args) == {}

    def test_query_failure(self, http, fake_response):
        http.request.return_value = fake_response(status_code=500, text="boom")

        result = runner.invoke(app, ["query", "users"])

        assert result.exit_code == 1
        assert "query failed" in result.output


class TestConfig:
    def test_missing_credentials(self, monkeypatch, http):
        monkeypatch.delenv("CONTIGUITY_API_KEY")

        result = runner.invoke(app, ["get", "users", "a"])

        assert result.exit_code == 1
        assert "contiguity init" in result.output
        http.request.assert_not_called()

    def test_init_writes_config(self, tmp_path):
        path = tmp_path / "conf" / "contiguity.toml"

        result = runner.invoke(app, [
            "--config", str(path), "init", "--api-key", "k", "--project-id", "p",
        ])

        assert result.exit_code == 0, result.output
        config = load_config(path)
        assert (config.api_key, config.project_id) == ("k", "p")

    def test_config_file_option(self, tmp_path, monkeypatch, mock_http):
        MockClient, _ = mock_http
        monkeypatch.delenv("CONTIGUITY_API_KEY")
        monkeypatch.delenv("CONTIGUITY_PROJECT_ID")
        path = tmp_path / "c.toml"
        path.write_text('[contiguity]\napi_key = "file-key"\nproject_id = "file-proj"\n')

        result = runner.invoke(app, ["--config", str(path), "get", "users", "a"])

        assert result.exit_code == 0, result.output
        assert MockClient.call_args.kwargs["base_url"].endswith("/file-proj/users")
