"""Tests for the resource graph builder."""

import pytest
from plangate.graph.dependency_graph import ResourceGraph, build_graph, graph_from_nodes
from plangate.ingest.models import ResourceConfig, ResourceDeclaration
from plangate.utils.errors import ConfigError


def _config(*declarations):
    return ResourceConfig(resources=[ResourceDeclaration(**d) for d in declarations])


@pytest.fixture
def web_stack():
    """network <- subnet <- vm, plus an independent bucket."""
    return _config(
        {"type": "vm", "name": "web", "attributes": {"subnet": "${subnet.a.id}"}},
        {"type": "subnet", "name": "a", "attributes": {"network": "${network.main.id}"}},
        {"type": "network", "name": "main", "attributes": {"cidr": "10.0.0.0/16"}},
        {"type": "bucket", "name": "logs"},
    )


class TestBuildGraph:
    """Test graph construction from declarations."""
    
    def test_reference_edges(self, web_stack):
        graph = build_graph(web_stack)
        
        assert graph.graph.number_of_nodes() == 4
        assert graph.graph.number_of_edges() == 2
        assert graph.get_dependencies("vm.web") == {"subnet.a"}
        assert graph.get_dependents("network.main") == {"subnet.a"}
    
    def test_topological_order_dependencies_first(self, web_stack):
        order = build_graph(web_stack).topological_order()
        
        assert order.index("network.main") < order.index("subnet.a") < order.index("vm.web")
    
    def test_order_is_deterministic(self, web_stack):
        """Independent resources are ordered alphabetically."""
        assert build_graph(web_stack).topological_order() == ["bucket.logs", "network.main", "subnet.a", "vm.web"]
    
    def test_depends_on_and_references_are_merged(self):
        graph = build_graph(_config(
            {"type": "network", "name": "main"},
            {"type": "dns", "name": "zone"},
            {"type": "vm", "name": "web", "attributes": {"n": "${network.main.id}"}, "depends_on": ["dns.zone"]},
        ))
        
        assert graph.get_node("vm.web").depends_on == ["dns.zone", "network.main"]
    
    def test_self_reference_is_ignored(self):
        graph = build_graph(_config({"type": "vm", "name": "a", "depends_on": ["vm.a"]}))
        assert graph.get_dependencies("vm.a") == set()
    
    def test_empty_config(self):
        graph = build_graph(ResourceConfig())
        assert len(graph) == 0
        assert graph.topological_order() == []


class TestGraphErrors:
    
    def test_cycle_is_reported_with_path(self):
        config = _config(
            {"type": "a", "name": "x", "attributes": {"ref": "${b.y.id}"}},
            {"type": "b", "name": "y", "depends_on": ["a.x"]},
        )
        with pytest.raises(ConfigError, match="cycle") as exc_info:
            build_graph(config)
        
        assert "a.x" in str(exc_info.value)
        assert "b.y" in str(exc_info.value)
    
    def test_unresolved_reference(self):
        config = _config({"type": "vm", "name": "web", "attributes": {"net": "${network.ghost.id}"}})
        with pytest.raises(ConfigError, match="network.ghost"):
            build_graph(config)
    
    def test_unresolved_depends_on(self):
        config = _config({"type": "vm", "name": "web", "depends_on": ["network.ghost"]})
        with pytest.raises(ConfigError, match="not declared"):
            build_graph(config)
    
    def test_duplicate_address(self):
        config = _config({"type": "vm", "name": "web"}, {"type": "vm", "name": "web"})
        with pytest.raises(ConfigError, match="Duplicate"):
            build_graph(config)


def test_graph_from_nodes_round_trips(web_stack):
    graph = build_graph(web_stack)
    rebuilt = graph_from_nodes(graph.get_all_nodes())
    
    assert isinstance(rebuilt, ResourceGraph)
    assert rebuilt.topological_order() == graph.topological_order()
    assert set(rebuilt.graph.edges) == set(graph.graph.edges)
