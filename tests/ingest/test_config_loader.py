"""Tests for resource configuration loading."""

import json
import pytest
from plangate.ingest.config_loader import build_resource_config, load_resource_config, parse_config_document
from plangate.ingest.config_validator import get_config_summary, validate_declaration
from plangate.utils.errors import ConfigError


YAML_CONFIG = """
resources:
  - type: network
    name: main
    attributes:
      cidr: 10.0.0.0/16
  - type: vm
    name: web
    attributes:
      network_id: ${network.main.id}
    depends_on: [network.main]
"""


class TestLoadResourceConfig:
    """Test loading configuration files."""
    
    def test_load_yaml(self, tmp_path):
        path = tmp_path / "resources.yaml"
        path.write_text(YAML_CONFIG)
        
        config = load_resource_config(str(path))
        
        assert [d.address for d in config.resources] == ["network.main", "vm.web"]
        assert config.resources[1].depends_on == ["network.main"]
        assert len(config.digest) == 64
    
    def test_load_json(self, tmp_path):
        path = tmp_path / "resources.json"
        path.write_text(json.dumps({"resources": [{"type": "bucket", "name": "logs"}]}))
        
        config = load_resource_config(str(path))
        
        assert config.resources[0].address == "bucket.logs"
        assert config.resources[0].attributes == {}
    
    def test_digest_changes_with_content(self, tmp_path):
        path = tmp_path / "resources.yaml"
        path.write_text(YAML_CONFIG)
        first = load_resource_config(str(path)).digest
        path.write_text(YAML_CONFIG.replace("10.0.0.0/16", "10.1.0.0/16"))
        
        assert load_resource_config(str(path)).digest != first
    
    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_resource_config(str(tmp_path / "missing.yaml"))
    
    def test_directory_is_rejected(self, tmp_path):
        with pytest.raises(ConfigError, match="not a file"):
            load_resource_config(str(tmp_path))

    
    def test_yaml_timestamps_become_strings(self, tmp_path):
        path = tmp_path / "resources.yaml"
        path.write_text(
            "resources:\n"
            "  - type: bucket\n"
            "    name: archive\n"
            "    attributes:\n"
            "      retain_until: 2030-01-01\n"
            "      windows: [2030-06-01]\n"
            "      replicas: 3\n"
            "      ratio: 0.5\n"
            "      versioned: true\n"
        )
        
        attributes = load_resource_config(str(path)).resources[0].attributes
        
        assert attributes == {
            "retain_until": "2030-01-01",
            "windows": ["2030-06-01"],
            "replicas": 3,
            "ratio": 0.5,
            "versioned": True,
        }

class TestBuildResourceConfig:
    """Test structural validation of parsed documents."""
    
    def test_missing_resources_key(self):
        with pytest.raises(ConfigError, match="resources"):
            build_resource_config({"items": []})
    
    def test_non_mapping_document(self):
        with pytest.raises(ConfigError):
            build_resource_config(["not", "a", "mapping"])
    
    def test_missing_name(self):
        with pytest.raises(ConfigError, match="name"):
            build_resource_config({"resources": [{"type": "vm"}]})
    
    def test_invalid_identifier(self):
        with pytest.raises(ConfigError, match="index 0"):
            build_resource_config({"resources": [{"type": "vm", "name": "has space"}]})
    
    def test_empty_resources_is_allowed(self):
        """An empty configuration plans the deletion of everything."""
        config = build_resource_config({"resources": None})
        assert config.resources == []
    
    def test_invalid_yaml(self):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            parse_config_document("resources: [", ".yaml")
    
    def test_invalid_json(self):
        with pytest.raises(ConfigError, match="Invalid JSON"):
            parse_config_document("{", ".json")


class TestValidatorHelpers:
    
    def test_unknown_keys_warn(self):
        warnings = validate_declaration({"type": "vm", "name": "a", "colour": "red"})
        assert any("colour" in w for w in warnings)
    
    def test_self_dependency_warns(self):
        warnings = validate_declaration({"type": "vm", "name": "a", "depends_on": ["vm.a"]})
        assert warnings == ["Resource lists itself in depends_on"]
    
    def test_summary_counts_types(self):
        summary = get_config_summary({"resources": [{"type": "vm"}, {"type": "vm"}, {"type": "network"}]})
        assert summary == {"resource_count": 3, "type_counts": {"vm": 2, "network": 1}}
