"""Build directed dependency graph from resource declarations."""

import networkx as nx
from typing import List, Dict, Set, Optional, Iterable
from .models import ResourceNode
from ..ingest.models import ResourceConfig, ResourceDeclaration
from ..ingest.references import find_references
from ..utils.errors import ConfigError
from ..utils.logging import get_logger

logger = get_logger("graph.dependency_graph")


class ResourceGraph:
    """Directed dependency graph: nodes=resources, edges=dependent -> dependency."""
    
    def __init__(self):
        self.graph = nx.DiGraph()
        self._node_map: Dict[str, ResourceNode] = {}
    
    def add_node(self, node: ResourceNode) -> None:
        """Add a node; its dependency edges are added once every node is known."""
        if node.address in self._node_map:
            raise ConfigError(f"Duplicate resource address: {node.address}")
        self.graph.add_node(node.address)
        self._node_map[node.address] = node
    
    def build_from_declarations(self, declarations: Iterable[ResourceDeclaration]) -> None:
        """Build complete dependency graph, resolving references into edges."""
        for declaration in declarations:
            depends_on = set(declaration.depends_on) | find_references(declaration.attributes)
            depends_on.discard(declaration.address)
            self.add_node(ResourceNode(
                type=declaration.type,
                name=declaration.name,
                attributes=declaration.attributes,
                depends_on=sorted(depends_on),
            ))
        
        for address, node in self._node_map.items():
            for dep_address in node.depends_on:
                if dep_address not in self._node_map:
                    raise ConfigError(f"Unresolved reference in {address}: {dep_address} is not declared")
                self.graph.add_edge(address, dep_address)
                logger.debug(f"Added dependency edge: {address} -> {dep_address}")
        
        cycle = self.find_cycle()
        if cycle:
            raise ConfigError(f"Dependency cycle detected: {' -> '.join(cycle)}")
        
        logger.info(f"Built resource graph with {self.graph.number_of_nodes()} nodes and {self.graph.number_of_edges()} edges")
    
    def find_cycle(self) -> Optional[List[str]]:
        """Return one cycle as a closed address path, or None for a DAG."""
        try:
            edges = nx.find_cycle(self.graph)
        except nx.NetworkXNoCycle:
            return None
        path = [source for source, _ in edges]
        path.append(edges[0][0])
        return path
    
    def topological_order(self) -> List[str]:
        """Addresses with dependencies first, ties broken alphabetically."""
        return list(nx.lexicographical_topological_sort(self.graph.reverse(copy=False)))
    
    def get_dependents(self, address: str) -> Set[str]:
        """Resources that directly depend on *address*."""
        if address not in self.graph:
            return set()
        return set(self.graph.predecessors(address))
    
    def get_dependencies(self, address: str) -> Set[str]:
        """Resources *address* directly depends on."""
        if address not in self.graph:
            return set()
        return set(self.graph.successors(address))
    
    def get_node(self, address: str) -> Optional[ResourceNode]:
        """Get node by address."""
        return self._node_map.get(address)
    
    def get_all_nodes(self) -> List[ResourceNode]:
        """Nodes in topological order."""
        return [self._node_map[address] for address in self.topological_order()]
    
    def __contains__(self, address: str) -> bool:
        return address in self._node_map
    
    def __len__(self) -> int:
        return len(self._node_map)


def build_graph(config: ResourceConfig) -> ResourceGraph:
    """Build a ResourceGraph from parsed configuration (pure)."""
    graph = ResourceGraph()
    graph.build_from_declarations(config.resources)
    return graph


def graph_from_nodes(nodes: Iterable[ResourceNode]) -> ResourceGraph:
    """Rebuild a graph from previously resolved nodes, e.g. a stored plan."""
    declarations = [
        ResourceDeclaration(type=node.type, name=node.name, attributes=node.attributes, depends_on=node.depends_on)
        for node in nodes
    ]
    graph = ResourceGraph()
    graph.build_from_declarations(declarations)
    return graph
