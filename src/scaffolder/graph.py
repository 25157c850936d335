# -*- coding: ascii -*-
"""
Scaffold trees and networks.

Both containers share one node shape. A tree allows at most one parent per
node; a network allows any number. Node identity across containers is the
canonical label: merging unions nodes with equal labels and never
duplicates one.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional, Set

import networkx as nx
import numpy as np

from .errors import InvariantViolation
from .toolkit import Chem

LOG = logging.getLogger(__name__)


class ScaffoldNode:
    """One fragment in a tree or network."""

    def __init__(self, molecule: Chem.Mol, label: str, level: int = 0,
                 origins: Optional[Set[str]] = None,
                 nonvirtual_origins: Optional[Set[str]] = None):
        self.molecule = molecule
        self.label = label
        self.level = level
        self.origins = set(origins or ())
        self.nonvirtual_origins = set(nonvirtual_origins or ())
        self.parents: List['ScaffoldNode'] = []
        self.children: List['ScaffoldNode'] = []

    @property
    def parent(self) -> Optional['ScaffoldNode']:
        return self.parents[0] if self.parents else None

    def copy(self) -> 'ScaffoldNode':
        """Unlinked copy sharing the (read-only) molecule."""
        return ScaffoldNode(self.molecule, self.label, self.level,
                            self.origins, self.nonvirtual_origins)

    def merge_origins(self, other: 'ScaffoldNode') -> None:
        self.origins |= other.origins
        self.nonvirtual_origins |= other.nonvirtual_origins

    def __repr__(self):
        return f"ScaffoldNode({self.label!r}, level={self.level})"


class ScaffoldGraph:
    """
    Node container with parent/child links and a label index.

    Attributes:
        max_parents: Upper bound on parents per node (None for unbounded)
    """

    max_parents: Optional[int] = None

    def __init__(self):
        self._nodes: List[ScaffoldNode] = []
        self._by_label: Dict[str, List[ScaffoldNode]] = {}

    def __len__(self):
        return len(self._nodes)

    def __iter__(self) -> Iterator[ScaffoldNode]:
        return iter(self._nodes)

    @property
    def nodes(self) -> List[ScaffoldNode]:
        return list(self._nodes)

    def add_node(self, node: ScaffoldNode, parent: Optional[ScaffoldNode] = None) -> ScaffoldNode:
        self._nodes.append(node)
        self._by_label.setdefault(node.label, []).append(node)
        if parent is not None:
            self.add_edge(parent, node)
        return node

    def add_edge(self, parent: ScaffoldNode, child: ScaffoldNode) -> None:
        if child in parent.children:
            return
        if self.max_parents is not None and len(child.parents) >= self.max_parents:
            raise InvariantViolation(
                f"{type(self).__name__} node {child.label} already has {len(child.parents)} parent(s)")
        parent.children.append(child)
        child.parents.append(parent)

    def find(self, label: str) -> Optional[ScaffoldNode]:
        """First node with this label, or None."""
        matches = self._by_label.get(label)
        return matches[0] if matches else None

    def nodes_with_label(self, label: str) -> List[ScaffoldNode]:
        return list(self._by_label.get(label, ()))

    def contains(self, label: str) -> bool:
        return bool(self._by_label.get(label))

    def roots(self) -> List[ScaffoldNode]:
        return [node for node in self._nodes if not node.parents]

    def max_level(self) -> int:
        return max((node.level for node in self._nodes), default=-1)

    def nodes_at_level(self, level: int) -> List[ScaffoldNode]:
        return [node for node in self._nodes if node.level == level]

    def _detach(self, node: ScaffoldNode) -> None:
        for parent in node.parents:
            parent.children.remove(node)
        for child in node.children:
            child.parents.remove(node)
        node.parents = []
        node.children = []
        self._nodes.remove(node)
        same = self._by_label[node.label]
        same.remove(node)
        if not same:
            del self._by_label[node.label]

    def get_matrix(self) -> np.ndarray:
        """Symmetric adjacency matrix in node order."""
        position = {id(node): i for i, node in enumerate(self._nodes)}
        matrix = np.zeros((len(self._nodes), len(self._nodes)), dtype=int)
        for node in self._nodes:
            for child in node.children:
                i, j = position[id(node)], position[id(child)]
                matrix[i, j] = matrix[j, i] = 1
        return matrix

    def get_matrix_node(self, position: int) -> ScaffoldNode:
        """Node behind a row/column of get_matrix()."""
        return self._nodes[position]

    def to_records(self) -> List[Dict[str, Any]]:
        """One dict per node; parent and child ids are positions in node order."""
        position = {id(node): i for i, node in enumerate(self._nodes)}
        return [{
            'node_id': i,
            'smiles': Chem.MolToSmiles(node.molecule),
            'label': node.label,
            'level': node.level,
            'num_rings': node.molecule.GetRingInfo().NumRings(),
            'parent_ids': [position[id(p)] for p in node.parents],
            'child_ids': [position[id(c)] for c in node.children],
            'origins': sorted(node.origins),
            'nonvirtual_origins': sorted(node.nonvirtual_origins),
        } for i, node in enumerate(self._nodes)]

    def to_networkx(self) -> nx.DiGraph:
        graph = nx.DiGraph()
        graph.add_nodes_from(id(node) for node in self._nodes)
        graph.add_edges_from((id(node), id(child)) for node in self._nodes for child in node.children)
        return graph


class ScaffoldTree(ScaffoldGraph):
    """Single-root container; every non-root node has exactly one parent."""

    max_parents = 1

    @property
    def root(self) -> Optional[ScaffoldNode]:
        roots = self.roots()
        return roots[0] if roots else None

    def descendants(self, node: ScaffoldNode) -> List[ScaffoldNode]:
        found, stack = [], list(node.children)
        while stack:
            current = stack.pop()
            found.append(current)
            stack.extend(current.children)
        return found

    def remove_node(self, node: ScaffoldNode) -> None:
        """Remove a node together with its subtree."""
        for doomed in reversed([node] + self.descendants(node)):
            self._detach(doomed)


class ScaffoldNetwork(ScaffoldGraph):
    """Multi-root container; a fragment reachable from several parents is one node."""

    max_parents = None

    def remove_node(self, node: ScaffoldNode) -> None:
        """Detach and drop one node; orphaned children become roots."""
        self._detach(node)
        self.relevel()

    def relevel(self) -> None:
        """Set every level to the longest path length from a root."""
        by_id = {id(node): node for node in self._nodes}
        graph = self.to_networkx()
        for key in nx.topological_sort(graph):
            node = by_id[key]
            node.level = max((p.level + 1 for p in node.parents), default=0)

    def components(self) -> List['ScaffoldNetwork']:
        """Connected components as independent networks, in node order."""
        graph = self.to_networkx().to_undirected()
        order = {id(node): i for i, node in enumerate(self._nodes)}
        groups = sorted((sorted(component, key=order.get) for component in nx.connected_components(graph)),
                        key=lambda keys: order[keys[0]])
        by_id = {id(node): node for node in self._nodes}
        return [_copy_subgraph([by_id[key] for key in keys]) for keys in groups]


def _copy_subgraph(nodes: List[ScaffoldNode]) -> ScaffoldNetwork:
    network = ScaffoldNetwork()
    copies = {id(node): network.add_node(node.copy()) for node in nodes}
    for node in nodes:
        for child in node.children:
            if id(child) in copies:
                network.add_edge(copies[id(node)], copies[id(child)])
    return network


def merge_tree(tree: ScaffoldTree, other: ScaffoldTree) -> bool:
    """
    Graft other into tree at the node matching other's root.

    Children are unioned by label below every matched node; origins of
    matched nodes are merged. Nodes of other are copied, never shared.

    Returns:
        False (tree untouched) when other's root label is not in tree
    """
    other_root = other.root
    if other_root is None:
        return False
    anchor = tree.find(other_root.label)
    if anchor is None:
        return False
    LOG.debug(f"Merging tree rooted at {other_root.label} into node at level {anchor.level}")
    _graft(tree, anchor, other_root)
    return True


def _graft(tree: ScaffoldTree, target: ScaffoldNode, source: ScaffoldNode) -> None:
    target.merge_origins(source)
    for child in source.children:
        match = next((c for c in target.children if c.label == child.label), None)
        if match is None:
            match = child.copy()
            match.level = target.level + 1
            tree.add_node(match, target)
        _graft(tree, match, child)


def merge_network(network: ScaffoldNetwork, other: ScaffoldNetwork) -> None:
    """Union other into network by label, then recompute levels."""
    mapping = {}
    for node in other:
        match = network.find(node.label)
        if match is None:
            match = network.add_node(node.copy())
        else:
            match.merge_origins(node)
        mapping[id(node)] = match
    for node in other:
        for child in node.children:
            network.add_edge(mapping[id(node)], mapping[id(child)])
    network.relevel()
