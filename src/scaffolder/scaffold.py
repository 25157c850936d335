# -*- coding: ascii -*-
"""Scaffold extraction: Schuffenhauer scaffolds, Murcko frameworks and wire frames.

The ring-and-linker skeleton comes from RDKit's Murcko decomposition,
matched back to the input through origin indices. Atoms double-bonded to
the skeleton are then restored for the Schuffenhauer scaffold, since later
ring removals rely on that bond information.
"""

import logging
from typing import Dict, List, Optional, Set

from .config import ScaffoldConfig, ScaffoldMode
from .toolkit import (
    Chem, assign_origin_indices, clone, delete_atoms, kekulized, murcko_framework, origin_index,
    origin_map, perceive, saturate, symmetrized_ring_set,
)

LOG = logging.getLogger(__name__)

_ANONYMIZED_MODES = (ScaffoldMode.BECCARI_BASIC_WIRE_FRAME, ScaffoldMode.BECCARI_BASIC_FRAMEWORK)
_WIRE_FRAME_MODES = (ScaffoldMode.ELEMENTAL_WIRE_FRAME, ScaffoldMode.BECCARI_BASIC_WIRE_FRAME)


def ring_atom_indices(mol: Chem.Mol) -> Set[int]:
    return {idx for ring in symmetrized_ring_set(mol) for idx in ring}


def murcko_atom_indices(mol: Chem.Mol) -> Set[int]:
    """
    Atom indices of the ring-and-linker skeleton (empty for acyclic input).

    The mol must carry origin indices. RDKit keeps single atoms
    double-bonded to the skeleton; those are dropped here and restored
    separately for the Schuffenhauer scaffold.
    """
    ring_atoms = ring_atom_indices(mol)
    if not ring_atoms:
        return set()

    index = origin_map(mol)
    framework = murcko_framework(mol)
    return {index[origin_index(atom)] for atom in framework.GetAtoms()
            if atom.GetDegree() > 1 or index[origin_index(atom)] in ring_atoms}


def separated_charges(mol: Chem.Mol, keep: Set[int]) -> Dict[int, int]:
    """
    Formal charges of kept atoms that lose an oppositely charged neighbour.

    Keyed by origin index. Deleting the O- of an N-oxide leaves the n+ with
    nothing to balance it, so such charges are reset.
    """
    charges = {}
    for idx in keep:
        atom = mol.GetAtomWithIdx(idx)
        charge = atom.GetFormalCharge()
        if not charge:
            continue
        if any(nb.GetIdx() not in keep and nb.GetFormalCharge() * charge < 0
               for nb in atom.GetNeighbors()):
            charges[origin_index(atom)] = charge
    return charges


def restored_double_bond_atoms(mol: Chem.Mol, skeleton: Set[int]) -> Set[int]:
    """Atoms outside the skeleton that are double-bonded to an atom inside it."""
    restored = set()
    for bond in mol.GetBonds():
        if bond.GetBondType() != Chem.BondType.DOUBLE:
            continue
        begin, end = bond.GetBeginAtomIdx(), bond.GetEndAtomIdx()
        if begin in skeleton and end not in skeleton:
            restored.add(end)
        elif end in skeleton and begin not in skeleton:
            restored.add(begin)
    return restored


def extract_scaffold(molecule: Chem.Mol, retain_double_bonds: bool = True,
                     mode: ScaffoldMode = ScaffoldMode.SCHUFFENHAUER_SCAFFOLD,
                     isomeric: bool = False) -> Chem.Mol:
    """
    Extract the scaffold of a molecule in the requested mode.

    Origin indices already on the input are preserved; untagged atoms are
    tagged on the copy. The input is never modified.

    Args:
        molecule: Input molecule
        retain_double_bonds: Restore atoms double-bonded to the skeleton
            (only meaningful for the Schuffenhauer scaffold)
        mode: Skeleton abstraction
        isomeric: Keep stereo tags whose defining atoms all survive

    Returns:
        New sanitized molecule

    Raises:
        ChemistryPerceptionError: the toolkit cannot assign valences to the result
    """
    mode = ScaffoldMode.parse(mode)
    mol = assign_origin_indices(clone(molecule))
    if not isomeric:
        Chem.RemoveStereochemistry(mol)

    keep = murcko_atom_indices(mol)
    if retain_double_bonds and mode == ScaffoldMode.SCHUFFENHAUER_SCAFFOLD:
        keep |= restored_double_bond_atoms(mol, keep)

    charges = separated_charges(mol, keep)
    rw = kekulized(mol)
    lost = delete_atoms(rw, set(range(mol.GetNumAtoms())) - keep)
    index = origin_map(rw)
    for origin, charge in charges.items():
        rw.GetAtomWithIdx(index[origin]).SetFormalCharge(0)
        lost[origin] = lost.get(origin, 0) - charge
    saturate(rw, lost)
    _apply_mode(rw, mode)
    return perceive(rw)


def scaffold_for(molecule: Chem.Mol, config: Optional[ScaffoldConfig] = None) -> Chem.Mol:
    """Scaffold of a molecule as configured for a decomposition run."""
    config = config or ScaffoldConfig()
    return extract_scaffold(molecule, True, config.scaffold_mode, config.isomeric)


def _apply_mode(rw: Chem.RWMol, mode: ScaffoldMode) -> None:
    if mode in (ScaffoldMode.SCHUFFENHAUER_SCAFFOLD, ScaffoldMode.MURCKO_FRAMEWORK):
        return

    Chem.RemoveStereochemistry(rw)
    if mode in _WIRE_FRAME_MODES:
        lost = {}
        for bond in rw.GetBonds():
            order = int(bond.GetBondTypeAsDouble())
            if order > 1:
                for atom in (bond.GetBeginAtom(), bond.GetEndAtom()):
                    key = origin_index(atom)
                    lost[key] = lost.get(key, 0) + order - 1
            bond.SetBondType(Chem.BondType.SINGLE)
        saturate(rw, lost)

    if mode in _ANONYMIZED_MODES:
        for atom in rw.GetAtoms():
            atom.SetAtomicNum(6)
            atom.SetFormalCharge(0)
            atom.SetIsotope(0)
            atom.SetNumRadicalElectrons(0)
            atom.SetNoImplicit(False)
            atom.SetNumExplicitHs(0)


def get_side_chains(molecule: Chem.Mol, config: Optional[ScaffoldConfig] = None,
                    add_attachment_points: bool = False) -> List[Chem.Mol]:
    """
    Side chains: the pieces left after deleting the Schuffenhauer scaffold atoms.

    Args:
        molecule: Input molecule
        config: Only the isomeric flag is used
        add_attachment_points: Cap each cut bond with a dummy atom (*)

    Returns:
        One molecule per side chain, in atom order of the input
    """
    config = config or ScaffoldConfig()
    mol = assign_origin_indices(clone(molecule))
    scaffold = extract_scaffold(mol, True, ScaffoldMode.SCHUFFENHAUER_SCAFFOLD, config.isomeric)
    scaffold_origins = set(origin_map(scaffold))
    index = origin_map(mol)
    doomed = {index[o] for o in scaffold_origins}
    if not doomed or len(doomed) == mol.GetNumAtoms():
        return []

    if not config.isomeric:
        Chem.RemoveStereochemistry(mol)
    rw = kekulized(mol)
    gained = {}
    if add_attachment_points:
        for bond in list(rw.GetBonds()):
            begin, end = bond.GetBeginAtomIdx(), bond.GetEndAtomIdx()
            if (begin in doomed) == (end in doomed):
                continue
            chain_idx = end if begin in doomed else begin
            dummy_idx = rw.AddAtom(Chem.Atom(0))
            rw.AddBond(chain_idx, dummy_idx, bond.GetBondType())
            key = origin_index(rw.GetAtomWithIdx(chain_idx))
            gained[key] = gained.get(key, 0) + int(bond.GetBondTypeAsDouble())
        assign_origin_indices(rw)

    lost = delete_atoms(rw, doomed)
    for key, value in gained.items():
        lost[key] = lost.get(key, 0) - value
    saturate(rw, lost)
    side = perceive(rw)
    return list(Chem.GetMolFrags(side, asMols=True, sanitizeFrags=False))


def get_linkers(molecule: Chem.Mol, config: Optional[ScaffoldConfig] = None) -> List[Chem.Mol]:
    """
    Linkers: connected non-ring parts of the scaffold in the configured mode.

    Single atoms double-bonded to a ring atom are ring decorations, not
    linkers, and are dropped together with the rings.
    """
    scaffold = scaffold_for(molecule, config)
    ring_atoms = ring_atom_indices(scaffold)
    doomed = set(ring_atoms)
    for atom in scaffold.GetAtoms():
        if atom.GetIdx() in ring_atoms or atom.GetDegree() != 1:
            continue
        neighbor = atom.GetNeighbors()[0]
        if neighbor.GetIdx() in ring_atoms:
            doomed.add(atom.GetIdx())
    if len(doomed) == scaffold.GetNumAtoms():
        return []

    rw = kekulized(scaffold)
    lost = delete_atoms(rw, doomed)
    saturate(rw, lost)
    linkers = perceive(rw)
    return list(Chem.GetMolFrags(linkers, asMols=True, sanitizeFrags=False))
