# -*- coding: ascii -*-
"""RDKit binding for the primitive graph operations the core consumes.

This module exposes the Chem and RDLogger aliases that callers and tests
patch or configure, plus cloning, ring perception, connectivity, atom type
perception and canonical labels. Atoms are matched across clones by the
integer property ORIGIN_PROP, never by object identity.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

import networkx as nx
from rdkit import Chem, RDLogger
from rdkit.Chem.Scaffolds import MurckoScaffold

from .errors import ChemistryPerceptionError, CloneFailure, InvariantViolation, ParseFailure

LOG = logging.getLogger(__name__)

ORIGIN_PROP = 'scaffold_origin_index'

_PERCEPTION_ERRORS = (Chem.AtomValenceException, Chem.KekulizeException, ValueError, RuntimeError)

__all__ = [
    'Chem', 'RDLogger', 'ORIGIN_PROP', 'mol_from_smiles', 'clone', 'editable',
    'assign_origin_indices', 'origin_index', 'origin_map', 'indices_for',
    'smallest_ring_set', 'symmetrized_ring_set', 'murcko_framework', 'complete_ring_set', 'cycle_rank',
    'is_connected', 'kekulized', 'delete_atoms', 'saturate', 'perceive',
    'canonical_smiles', 'inchikey', 'mol_to_smiles_safe',
]


def mol_from_smiles(smiles: str) -> Chem.Mol:
    """Parse a SMILES string, raising ParseFailure instead of returning None."""
    if smiles is None or not smiles.strip():
        raise ParseFailure("Empty SMILES", smiles)
    mol = Chem.MolFromSmiles(smiles)
    if mol is None:
        raise ParseFailure("Could not parse SMILES", smiles)
    return mol


def clone(mol: Chem.Mol) -> Chem.Mol:
    """Deep copy; atom properties (origin indices included) are carried over."""
    try:
        return Chem.Mol(mol)
    except (TypeError, ValueError, RuntimeError) as e:
        raise CloneFailure(f"Could not clone molecule: {e}") from e


def editable(mol: Chem.Mol) -> Chem.RWMol:
    """Editable deep copy of a molecule."""
    try:
        return Chem.RWMol(mol)
    except (TypeError, ValueError, RuntimeError) as e:
        raise CloneFailure(f"Could not clone molecule for editing: {e}") from e


def assign_origin_indices(mol: Chem.Mol) -> Chem.Mol:
    """Tag every untagged atom with a fresh origin index, in place.

    Existing tags are kept, so re-extracting a fragment keeps the numbering
    of the run that produced it.
    """
    untagged = [atom for atom in mol.GetAtoms() if not atom.HasProp(ORIGIN_PROP)]
    if not untagged:
        return mol
    next_index = max((atom.GetIntProp(ORIGIN_PROP) for atom in mol.GetAtoms()
                      if atom.HasProp(ORIGIN_PROP)), default=-1) + 1
    for atom in untagged:
        atom.SetIntProp(ORIGIN_PROP, next_index)
        next_index += 1
    return mol


def origin_index(atom: Chem.Atom) -> int:
    return atom.GetIntProp(ORIGIN_PROP)


def origin_map(mol: Chem.Mol) -> Dict[int, int]:
    """Map origin index -> current atom index."""
    return {atom.GetIntProp(ORIGIN_PROP): atom.GetIdx()
            for atom in mol.GetAtoms() if atom.HasProp(ORIGIN_PROP)}


def indices_for(mol: Chem.Mol, origins: Iterable[int], what: str = 'ring') -> List[int]:
    """Resolve origin indices to current atom indices or fail fast."""
    index = origin_map(mol)
    origins = frozenset(origins)
    missing = origins - index.keys()
    if missing:
        raise InvariantViolation(f"The {what} does not belong to this molecule", missing)
    return sorted(index[o] for o in origins)


def smallest_ring_set(mol: Chem.Mol) -> List[Tuple[int, ...]]:
    """Strict SSSR (minimum cycle basis) as atom-index tuples."""
    return [tuple(ring) for ring in Chem.GetSSSR(clone(mol))]


def symmetrized_ring_set(mol: Chem.Mol) -> List[Tuple[int, ...]]:
    """SSSR plus symmetry-equivalent rings (RDKit's default ring perception)."""
    return [tuple(ring) for ring in Chem.GetSymmSSSR(clone(mol))]


def murcko_framework(mol: Chem.Mol) -> Chem.Mol:
    """RDKit Murcko scaffold; atom properties such as ORIGIN_PROP carry over."""
    try:
        return MurckoScaffold.GetScaffoldForMol(mol)
    except _PERCEPTION_ERRORS as e:
        raise ChemistryPerceptionError(f"Murcko decomposition failed: {e}", mol_to_smiles_safe(mol)) from e


def molecule_graph(mol: Chem.Mol) -> nx.Graph:
    graph = nx.Graph()
    graph.add_nodes_from(atom.GetIdx() for atom in mol.GetAtoms())
    graph.add_edges_from((bond.GetBeginAtomIdx(), bond.GetEndAtomIdx()) for bond in mol.GetBonds())
    return graph


def complete_ring_set(mol: Chem.Mol) -> List[Tuple[int, ...]]:
    """Exact minimum cycle basis computed on the bond graph with networkx."""
    return [tuple(sorted(cycle)) for cycle in nx.minimum_cycle_basis(molecule_graph(mol))]


def cycle_rank(mol: Chem.Mol) -> int:
    """Number of independent cycles: bonds - atoms + components."""
    if mol.GetNumAtoms() == 0:
        return 0
    components = len(Chem.GetMolFrags(mol))
    return mol.GetNumBonds() - mol.GetNumAtoms() + components


def is_connected(mol: Chem.Mol) -> bool:
    """True when the graph has at most one component (empty counts as connected)."""
    return len(Chem.GetMolFrags(mol, sanitizeFrags=False)) <= 1


def kekulized(mol: Chem.Mol) -> Chem.RWMol:
    """Editable copy with explicit single/double bonds and no aromatic flags."""
    rw = editable(mol)
    try:
        Chem.Kekulize(rw, clearAromaticFlags=True)
    except _PERCEPTION_ERRORS as e:
        raise ChemistryPerceptionError(f"Kekulization failed: {e}", mol_to_smiles_safe(mol)) from e
    return rw


def delete_atoms(rw: Chem.RWMol, doomed: Iterable[int]) -> Dict[int, int]:
    """Delete atoms (current indices) from a kekulized editable molecule.

    Stereo elements whose defining atoms change are dropped: chiral tags on
    atoms that lose a neighbour, and double-bond stereo where either end
    loses a neighbour.

    Returns:
        Bond valence lost by each surviving neighbour, keyed by origin index.
    """
    doomed = set(doomed)
    lost = defaultdict(int)
    touched = set()
    for idx in doomed:
        atom = rw.GetAtomWithIdx(idx)
        for bond in atom.GetBonds():
            other = bond.GetOtherAtomIdx(idx)
            if other in doomed:
                continue
            lost[origin_index(rw.GetAtomWithIdx(other))] += int(bond.GetBondTypeAsDouble())
            touched.add(other)

    _drop_touched_stereo(rw, touched)
    for idx in sorted(doomed, reverse=True):
        rw.RemoveAtom(idx)
    _clear_orphan_bond_dirs(rw)
    return dict(lost)


def _drop_touched_stereo(rw: Chem.RWMol, touched: Set[int]) -> None:
    for idx in touched:
        rw.GetAtomWithIdx(idx).SetChiralTag(Chem.ChiralType.CHI_UNSPECIFIED)
    for bond in rw.GetBonds():
        if bond.GetStereo() == Chem.BondStereo.STEREONONE:
            continue
        if bond.GetBeginAtomIdx() in touched or bond.GetEndAtomIdx() in touched:
            bond.SetStereo(Chem.BondStereo.STEREONONE)


def _clear_orphan_bond_dirs(rw: Chem.RWMol) -> None:
    # Directional single bonds only mean something next to a stereo double bond
    stereo_ends = set()
    for bond in rw.GetBonds():
        if bond.GetStereo() != Chem.BondStereo.STEREONONE:
            stereo_ends.update((bond.GetBeginAtomIdx(), bond.GetEndAtomIdx()))
    for bond in rw.GetBonds():
        if bond.GetBondDir() in (Chem.BondDir.ENDUPRIGHT, Chem.BondDir.ENDDOWNRIGHT):
            if bond.GetBeginAtomIdx() not in stereo_ends and bond.GetEndAtomIdx() not in stereo_ends:
                bond.SetBondDir(Chem.BondDir.NONE)


def saturate(rw: Chem.RWMol, lost: Dict[int, int]) -> None:
    """Give lost valence back as hydrogens on atoms with fixed hydrogen counts.

    Atoms without a fixed count (organic-subset atoms written without
    brackets) get their implicit hydrogens from perceive().
    """
    for atom in rw.GetAtoms():
        delta = lost.get(origin_index(atom), 0) if atom.HasProp(ORIGIN_PROP) else 0
        if delta and atom.GetNoImplicit():
            atom.SetNumExplicitHs(max(0, atom.GetNumExplicitHs() + delta))


def perceive(rw: Chem.RWMol) -> Chem.Mol:
    """Clear hybridization, re-run sanitization and return a read-only molecule.

    Raises:
        ChemistryPerceptionError: valences or aromaticity cannot be assigned
    """
    for atom in rw.GetAtoms():
        atom.SetHybridization(Chem.HybridizationType.UNSPECIFIED)
    try:
        Chem.SanitizeMol(rw)
    except _PERCEPTION_ERRORS as e:
        raise ChemistryPerceptionError(f"Atom type perception failed: {e}", mol_to_smiles_safe(rw)) from e
    return rw.GetMol()


def canonical_smiles(mol: Chem.Mol, isomeric: bool = False) -> str:
    return Chem.MolToSmiles(mol, canonical=True, isomericSmiles=isomeric)


def inchikey(mol: Chem.Mol) -> str:
    """Standard InChIKey; empty for an empty molecule."""
    if mol.GetNumAtoms() == 0:
        return ''
    return Chem.MolToInchiKey(mol)


def mol_to_smiles_safe(mol: Chem.Mol) -> Optional[str]:
    """Best-effort SMILES for error messages about broken graphs."""
    try:
        mol.UpdatePropertyCache(strict=False)
        return Chem.MolToSmiles(mol, canonical=False)
    except (ValueError, RuntimeError) as e:
        LOG.debug(f"Could not write SMILES for diagnostics: {e}")
        return None
