"""Pytest configuration and fixtures."""
import json
from textwrap import dedent

import pytest
from fastapi.testclient import TestClient

from rule_content_service.api import create_app
from rule_content_service.config import Config, ContentConfig, ServerConfig, set_config
from rule_content_service.content import ContentCatalog, Group, GroupSet, RuleContent


@pytest.fixture(autouse=True)
def reset_global_config():
    """Keep the cached global configuration from leaking between tests."""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def sample_catalog():
    return ContentCatalog.from_rules([
        RuleContent(plugin="rule.a", body={"summary": "Rule A", "error_keys": {"KEY_A": {"metadata": {"likelihood": 2}}}}),
        RuleContent(plugin="rule.b", body={"summary": "Rule B", "tags": ["security", "network"]}),
    ])


@pytest.fixture
def sample_groups():
    return GroupSet.from_groups([
        Group(id="performance", name="Performance"),
        Group(id="security", name="Security", description="Security rules", tags=["security"]),
    ])


@pytest.fixture
def spec_file(tmp_path):
    path = tmp_path / "openapi.json"
    path.write_text(json.dumps({"openapi": "3.0.0", "info": {"title": "test", "version": "1.0.0"}}))
    return path


@pytest.fixture
def app_config(tmp_path, spec_file):
    return Config(
        environment="testing",
        server=ServerConfig(api_prefix="/api/v1/", api_spec_file=str(spec_file)),
        content=ContentConfig(path=str(tmp_path / "rules"), groups_path=str(tmp_path / "groups.yaml")),
    )


@pytest.fixture
def make_client(app_config):
    """Build a TestClient around explicitly injected content."""
    def _make(catalog=None, groups=None, config=None):
        app = create_app(
            config or app_config,
            catalog=catalog if catalog is not None else ContentCatalog.empty(),
            groups=groups if groups is not None else GroupSet.empty(),
        )
        return TestClient(app)
    return _make


@pytest.fixture
def content_tree(tmp_path):
    """Write a small rule content directory and groups file."""
    rules = tmp_path / "rules"

    def write(relative, text):
        path = rules / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(text).lstrip(), encoding="utf-8")

    write("external/disk_check/plugin.yaml", """
        name: Disk check
        node_id: '1001'
        product_code: ocp
        python_module: ccx_rules.external.disk_check
    """)
    write("external/disk_check/summary.md", "Disk is almost full.\n")
    write("external/disk_check/DISK_FULL/metadata.yaml", """
        description: Disk usage is above the threshold
        likelihood: 3
        publish_date: 2020-04-08
        tags: [storage, performance]
    """)
    write("external/disk_check/DISK_FULL/generic.md", "Free some space.\n")
    write("internal/etcd_latency/plugin.yaml", """
        name: Etcd latency
        python_module: ccx_rules.internal.etcd_latency
    """)

    groups = tmp_path / "groups.yaml"
    groups.write_text(dedent("""
        groups:
          - id: performance
            name: Performance
            description: Performance issues
            tags: [performance]
          - name: Fault Tolerance
            tags: [fault_tolerance]
    """).lstrip(), encoding="utf-8")

    return tmp_path
