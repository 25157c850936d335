# -*- coding: ascii -*-
"""
Decomposition driver: rule cascades, exhaustive enumeration, trees,
networks and forests.

Every run tags the input atoms with origin indices once, on a copy, and
works on scaffolds of that copy from then on. All deduplication goes
through ScaffoldConfig.label().
"""

import logging
from collections import deque
from typing import Iterable, Iterator, List, Optional, Tuple

from .config import ScaffoldConfig
from .errors import InvariantViolation
from .graph import ScaffoldNetwork, ScaffoldNode, ScaffoldTree, merge_network, merge_tree
from .removal import remove_ring, removable_rings
from .rings import Ring, get_rings
from .rules import choose_ring
from .scaffold import scaffold_for
from .toolkit import Chem, assign_origin_indices, clone

LOG = logging.getLogger(__name__)


def origin_label(molecule: Chem.Mol, config: ScaffoldConfig) -> str:
    """Label recorded in node origins for an input molecule."""
    mol = clone(molecule)
    if not config.isomeric:
        Chem.RemoveStereochemistry(mol)
    return config.label(mol)


def _start(molecule: Chem.Mol, config: ScaffoldConfig) -> Optional[Chem.Mol]:
    scaffold = scaffold_for(assign_origin_indices(clone(molecule)), config)
    if scaffold.GetNumAtoms() == 0:
        LOG.debug("Molecule has no rings; nothing to decompose")
        return None
    return scaffold


def _reduce(scaffold: Chem.Mol, ring: Ring, config: ScaffoldConfig) -> Chem.Mol:
    remainder = remove_ring(scaffold, False, ring, config.retain_only_hybridizations_at_aromatic_bonds)
    return scaffold_for(remainder, config)


def _removals(scaffold: Chem.Mol, config: ScaffoldConfig) -> Iterator[Tuple[Ring, Chem.Mol]]:
    """Every removable ring of a scaffold with the scaffold left after removing it."""
    rings = get_rings(scaffold, True, config.use_fallback_cycle_finder)
    if len(rings) < 2:
        return
    for ring in removable_rings(scaffold, rings):
        yield ring, _reduce(scaffold, ring, config)


def apply_rule_cascade(molecule: Chem.Mol, config: Optional[ScaffoldConfig] = None) -> List[Chem.Mol]:
    """
    Remove one ring per step, chosen by the rules, until one ring is left.

    Args:
        molecule: Input molecule
        config: Run configuration

    Returns:
        Scaffolds from the full scaffold down to the last single-ring
        fragment; empty for acyclic input

    Raises:
        InvariantViolation: a removal step did not change the fragment
        ChemistryPerceptionError: a fragment cannot be sanitized
    """
    config = config or ScaffoldConfig()
    scaffold = _start(molecule, config)
    if scaffold is None:
        return []

    fragments = [scaffold]
    while True:
        rings = get_rings(scaffold, True, config.use_fallback_cycle_finder)
        if len(rings) < 2:
            break
        candidates = removable_rings(scaffold, rings)
        if not candidates:
            LOG.debug(f"No removable ring left in {config.label(scaffold)}")
            break
        ring = choose_ring(candidates, scaffold, rings, config)
        reduced = _reduce(scaffold, ring, config)
        if config.label(reduced) == config.label(scaffold):
            raise InvariantViolation(f"Removing ring {sorted(ring.atoms)} left "
                                     f"{config.label(scaffold)} unchanged")
        LOG.debug(f"Step {len(fragments)}: {config.label(scaffold)} -> {config.label(reduced)}")
        fragments.append(reduced)
        scaffold = reduced
    return fragments


def enumerate_all_terminal_removals(molecule: Chem.Mol,
                                    config: Optional[ScaffoldConfig] = None) -> List[Chem.Mol]:
    """Every fragment reachable by removing removable rings, breadth-first, unique by label."""
    config = config or ScaffoldConfig()
    scaffold = _start(molecule, config)
    if scaffold is None:
        return []

    seen = {config.label(scaffold)}
    fragments = [scaffold]
    queue = deque([scaffold])
    while queue:
        current = queue.popleft()
        for _, reduced in _removals(current, config):
            label = config.label(reduced)
            if label in seen:
                continue
            seen.add(label)
            fragments.append(reduced)
            queue.append(reduced)
    return fragments


def build_tree(molecule: Chem.Mol, config: Optional[ScaffoldConfig] = None) -> ScaffoldTree:
    """
    Exhaustive removal tree rooted at the full scaffold.

    Siblings are unique by label; the same fragment may appear in several
    branches.
    """
    config = config or ScaffoldConfig()
    tree = ScaffoldTree()
    scaffold = _start(molecule, config)
    if scaffold is None:
        return tree

    origin = origin_label(molecule, config)
    root = tree.add_node(ScaffoldNode(scaffold, config.label(scaffold), 0, {origin}, {origin}))
    stack = [root]
    while stack:
        parent = stack.pop()
        for _, reduced in _removals(parent.molecule, config):
            label = config.label(reduced)
            if any(child.label == label for child in parent.children):
                continue
            child = tree.add_node(ScaffoldNode(reduced, label, parent.level + 1, {origin}), parent)
            stack.append(child)
    return tree


def build_network(molecule: Chem.Mol, config: Optional[ScaffoldConfig] = None) -> ScaffoldNetwork:
    """Exhaustive removal network: one node per distinct fragment, levels by longest path."""
    config = config or ScaffoldConfig()
    network = ScaffoldNetwork()
    scaffold = _start(molecule, config)
    if scaffold is None:
        return network

    origin = origin_label(molecule, config)
    root = network.add_node(ScaffoldNode(scaffold, config.label(scaffold), 0, {origin}, {origin}))
    queue = deque([root])
    while queue:
        parent = queue.popleft()
        for _, reduced in _removals(parent.molecule, config):
            label = config.label(reduced)
            child = network.find(label)
            if child is None:
                child = network.add_node(ScaffoldNode(reduced, label, parent.level + 1, {origin}))
                queue.append(child)
            network.add_edge(parent, child)
    network.relevel()
    return network


def build_schuffenhauer_tree(molecule: Chem.Mol, config: Optional[ScaffoldConfig] = None) -> ScaffoldTree:
    """Rule cascade as a chain: the smallest fragment is the root, the full scaffold the leaf."""
    config = config or ScaffoldConfig()
    tree = ScaffoldTree()
    fragments = apply_rule_cascade(molecule, config)
    if not fragments:
        return tree

    origin = origin_label(molecule, config)
    parent = None
    for level, fragment in enumerate(reversed(fragments)):
        node = ScaffoldNode(fragment, config.label(fragment), level, {origin})
        parent = tree.add_node(node, parent)
    parent.nonvirtual_origins.add(origin)
    return tree


def merge_forest(forest: List[ScaffoldTree], tree: ScaffoldTree) -> List[ScaffoldTree]:
    """
    Add one tree to a forest of disjoint trees, merging wherever a root matches.

    A tree that absorbs another may now match a third; merging repeats until
    no pair of trees in the forest can be merged.
    """
    if tree.root is None:
        return forest
    pending = tree
    while True:
        for i, existing in enumerate(forest):
            if merge_tree(existing, pending):
                merged = forest.pop(i)
                break
            if merge_tree(pending, existing):
                forest.pop(i)
                merged = pending
                break
        else:
            forest.append(pending)
            return forest
        pending = merged


def generate_forest(molecules: Iterable[Chem.Mol],
                    config: Optional[ScaffoldConfig] = None) -> List[ScaffoldTree]:
    """Rule-cascade trees of all molecules, merged into disjoint trees."""
    config = config or ScaffoldConfig()
    forest: List[ScaffoldTree] = []
    for molecule in molecules:
        merge_forest(forest, build_schuffenhauer_tree(molecule, config))
    return forest


def generate_network_forest(molecules: Iterable[Chem.Mol],
                            config: Optional[ScaffoldConfig] = None) -> List[ScaffoldNetwork]:
    """Networks of all molecules merged by label and split into connected components."""
    config = config or ScaffoldConfig()
    network = ScaffoldNetwork()
    for molecule in molecules:
        merge_network(network, build_network(molecule, config))
    return network.components()
