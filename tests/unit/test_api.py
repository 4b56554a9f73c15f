"""
Unit tests for the REST API handlers
"""

import logging
from datetime import datetime

import msgpack
import pytest

from rule_content_service import api, files
from rule_content_service.config import Config, ContentConfig, ServerConfig
from rule_content_service.content import ContentCatalog, Group, GroupSet, RuleContent
from rule_content_service.encoding import decode_catalog
from rule_content_service.errors import PathResolutionError, ResponseWriteError


def _fail_write(*args, **kwargs):
    raise ResponseWriteError("connection reset by peer")


class TestInfoEndpoint:
    """Test the liveness endpoint"""

    def test_returns_ok_without_payload(self, make_client, sample_catalog, sample_groups):
        response = make_client(sample_catalog, sample_groups).get("/api/v1/")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_ok_with_empty_content(self, make_client):
        assert make_client().get("/api/v1/").json() == {"status": "ok"}

    def test_write_failure_is_server_error(self, make_client, monkeypatch, caplog):
        monkeypatch.setattr(api, "send_ok", _fail_write)

        with caplog.at_level(logging.ERROR):
            response = make_client().get("/api/v1/")

        assert response.status_code == 500
        assert response.json() == {"status": "error", "details": "Internal Server Error"}
        assert "Unable to write response data" in caplog.text


class TestGroupsEndpoint:
    """Test the group listing"""

    def test_single_group(self, make_client):
        groups = GroupSet.from_groups([Group(id="performance", name="Performance")])

        response = make_client(groups=groups).get("/api/v1/groups")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "groups": [{"id": "performance", "name": "Performance"}]}

    def test_all_groups_listed(self, make_client, sample_groups):
        body = make_client(groups=sample_groups).get("/api/v1/groups").json()

        assert {group["id"] for group in body["groups"]} == {"performance", "security"}

    def test_empty_group_set(self, make_client):
        response = make_client().get("/api/v1/groups")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "groups": []}

    def test_write_failure_is_server_error(self, make_client, sample_groups, monkeypatch):
        monkeypatch.setattr(api, "send_ok", _fail_write)

        response = make_client(groups=sample_groups).get("/api/v1/groups")

        assert response.status_code == 500
        assert response.json()["status"] == "error"


class TestRulesEndpoint:
    """Test the rule name listing"""

    def test_rule_names_in_catalog_order(self, make_client, sample_catalog):
        response = make_client(sample_catalog).get("/api/v1/rules")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "rules": ["rule.a", "rule.b"]}

    def test_names_match_plugins(self, make_client):
        catalog = ContentCatalog({
            "first": RuleContent(plugin="ccx.rules.first"),
            "second": RuleContent(plugin="ccx.rules.second"),
            "third": RuleContent(plugin="ccx.rules.third"),
        })

        rules = make_client(catalog).get("/api/v1/rules").json()["rules"]

        assert len(rules) == len(catalog)
        assert set(rules) == {rule.plugin for rule in catalog.all_rules()}

    def test_empty_catalog(self, make_client):
        assert make_client().get("/api/v1/rules").json() == {"status": "ok", "rules": []}

    def test_write_failure_is_server_error(self, make_client, sample_catalog, monkeypatch):
        monkeypatch.setattr(api, "send_ok", _fail_write)

        assert make_client(sample_catalog).get("/api/v1/rules").status_code == 500


class TestContentEndpoint:
    """Test the encoded content endpoint"""

    def test_returns_raw_encoded_catalog(self, make_client, sample_catalog):
        response = make_client(sample_catalog).get("/api/v1/content")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/octet-stream"

        decoded = decode_catalog(response.content)
        assert decoded.rule_ids() == ["rule.a", "rule.b"]
        assert decoded["rule.b"].body == sample_catalog["rule.b"].body

    def test_empty_catalog_is_valid_blob(self, make_client):
        response = make_client().get("/api/v1/content")

        assert response.status_code == 200
        assert len(decode_catalog(response.content)) == 0

    def test_body_is_not_wrapped_in_envelope(self, make_client, sample_catalog):
        document = msgpack.unpackb(make_client(sample_catalog).get("/api/v1/content").content, raw=False)
        assert "status" not in document

    def test_encoding_failure_is_server_error(self, make_client, caplog):
        catalog = ContentCatalog.from_rules([RuleContent(plugin="rule.bad", body={"when": datetime(2021, 5, 1)})])

        with caplog.at_level(logging.ERROR):
            response = make_client(catalog).get("/api/v1/content")

        assert response.status_code == 500
        assert response.json() == {"status": "error", "details": "Internal Server Error"}
        assert "EncodingError" in caplog.text
        assert "rule.bad" in caplog.text

    def test_write_failure_is_server_error(self, make_client, sample_catalog, monkeypatch):
        monkeypatch.setattr(api, "send", _fail_write)

        response = make_client(sample_catalog).get("/api/v1/content")

        assert response.status_code == 500
        assert response.json()["status"] == "error"


class TestSpecFileEndpoint:
    """Test serving the OpenAPI specification"""

    def test_serves_configured_file(self, make_client, spec_file):
        response = make_client().get("/api/v1/openapi.json")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.content == spec_file.read_bytes()

    def test_relative_path_resolved_against_working_directory(self, make_client, spec_file, monkeypatch):
        monkeypatch.chdir(spec_file.parent)
        config = Config(server=ServerConfig(api_spec_file="openapi.json"), content=ContentConfig())

        response = make_client(config=config).get("/api/v1/openapi.json")

        assert response.status_code == 200
        assert response.json()["openapi"] == "3.0.0"

    def test_missing_file_is_not_found(self, make_client, tmp_path):
        config = Config(server=ServerConfig(api_spec_file=str(tmp_path / "missing.json")), content=ContentConfig())

        response = make_client(config=config).get("/api/v1/missing.json")

        assert response.status_code == 404
        assert response.json()["status"] == "error"

    def test_directory_is_not_found(self, make_client, tmp_path):
        config = Config(server=ServerConfig(api_spec_file=str(tmp_path)), content=ContentConfig())

        assert make_client(config=config).get(f"/api/v1/{tmp_path.name}").status_code == 404

    def test_route_named_after_configured_file(self, make_client, tmp_path):
        spec = tmp_path / "api-spec.yaml"
        spec.write_text("openapi: 3.0.0\n")
        config = Config(server=ServerConfig(api_spec_file=str(spec)), content=ContentConfig())

        client = make_client(config=config)
        response = client.get("/api/v1/api-spec.yaml")

        assert response.status_code == 200
        assert response.content == spec.read_bytes()
        assert client.get("/api/v1/openapi.json").status_code == 404

    def test_path_resolution_failure_is_server_error(self, make_client, monkeypatch, caplog):
        def broken(path):
            raise PathResolutionError(path, FileNotFoundError("working directory removed"))

        monkeypatch.setattr(files, "resolve_absolute_path", broken)

        with caplog.at_level(logging.ERROR):
            response = make_client().get("/api/v1/openapi.json")

        assert response.status_code == 500
        assert "Error creating absolute path of OpenAPI spec file" in caplog.text


class TestApplication:
    """Test application wiring"""

    def test_custom_prefix(self, make_client, app_config, sample_catalog):
        config = app_config.model_copy(update={"server": ServerConfig(api_prefix="/content-service/v2/")})

        client = make_client(sample_catalog, config=config)

        assert client.get("/content-service/v2/rules").json()["rules"] == ["rule.a", "rule.b"]
        assert client.get("/api/v1/rules").status_code == 404

    def test_unknown_route_uses_error_envelope(self, make_client):
        response = make_client().get("/api/v1/unknown")

        assert response.status_code == 404
        assert response.json() == {"status": "error", "details": "Not Found"}

    def test_write_methods_not_allowed(self, make_client):
        assert make_client().post("/api/v1/rules").status_code == 405

    def test_generated_docs_disabled(self, make_client):
        client = make_client()
        assert client.get("/docs").status_code == 404
        assert client.get("/openapi.json").status_code == 404

    def test_content_loaded_from_configuration(self, content_tree, app_config):
        from fastapi.testclient import TestClient

        app = api.create_app(app_config)

        with TestClient(app) as client:
            rules = client.get("/api/v1/rules").json()["rules"]
            groups = client.get("/api/v1/groups").json()["groups"]

        assert rules == ["ccx_rules.external.disk_check", "ccx_rules.internal.etcd_latency"]
        assert [group["id"] for group in groups] == ["performance", "fault_tolerance"]


class TestRunApiServer:
    """Test handing the application over to uvicorn"""

    @pytest.fixture
    def uvicorn_calls(self, monkeypatch):
        calls = []
        monkeypatch.setattr(api, "setup_logging", lambda *args, **kwargs: None)
        monkeypatch.setattr(api.uvicorn, "run", lambda app, **kwargs: calls.append(kwargs))
        return calls

    def test_access_log_off_outside_debug(self, app_config, uvicorn_calls):
        assert api.run_api_server(app_config) == 0

        assert uvicorn_calls[0]["access_log"] is False
        assert uvicorn_calls[0]["factory"] is True

    def test_access_log_on_in_debug(self, app_config, uvicorn_calls):
        app_config.debug = True

        api.run_api_server(app_config)

        assert uvicorn_calls[0]["access_log"] is True
        assert uvicorn_calls[0]["log_level"] == "debug"
