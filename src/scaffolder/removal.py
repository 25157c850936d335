# -*- coding: ascii -*-
"""Ring removal and the removability classifier.

A ring is addressed by the origin indices of its atoms. Removing a ring
that is fused into the rest of the scaffold keeps the seam atoms; when two
adjacent seam atoms each lost a double bond, the bond between them becomes
double so the remaining ring keeps its unsaturation.
"""

import logging
from typing import Dict, Iterable, List, Set

from .rings import Ring
from .toolkit import (
    Chem, delete_atoms, editable, indices_for, is_connected, kekulized, origin_index, origin_map,
    perceive, saturate,
)

LOG = logging.getLogger(__name__)


def ring_attachments(molecule: Chem.Mol, ring: Ring) -> Dict[int, int]:
    """Bonds from each cycle atom to atoms outside the ring, keyed by origin index."""
    index = origin_map(molecule)
    members = ring.members
    attachments = {}
    for origin in ring.atoms:
        atom = molecule.GetAtomWithIdx(index[origin])
        outside = sum(1 for nb in atom.GetNeighbors() if origin_index(nb) not in members)
        if outside:
            attachments[origin] = outside
    return attachments


def remove_ring(molecule: Chem.Mol, keep_non_c_ring_atoms: bool, ring: Ring,
                retain_only_hybridizations_at_aromatic_bonds: bool = False) -> Chem.Mol:
    """
    Remove one ring from a molecule and re-perceive the remainder.

    Args:
        molecule: Scaffold fragment carrying origin indices
        keep_non_c_ring_atoms: Keep heteroatoms of a fused ring that are not seam atoms
        ring: Ring of this molecule
        retain_only_hybridizations_at_aromatic_bonds: Only re-insert a seam double
            bond where the seam bond was aromatic before the removal

    Returns:
        New molecule

    Raises:
        InvariantViolation: the ring's atoms are not in the molecule
        ChemistryPerceptionError: the remainder cannot be sanitized
    """
    indices_for(molecule, ring.members)
    index = origin_map(molecule)
    attachments = ring_attachments(molecule, ring)

    if sum(attachments.values()) < 2:
        doomed = set(ring.members)
    else:
        doomed = set()
        for origin in ring.atoms - attachments.keys():
            atom = molecule.GetAtomWithIdx(index[origin])
            if keep_non_c_ring_atoms and atom.GetAtomicNum() != 6:
                continue
            doomed.add(origin)
        doomed |= _decorations_on(molecule, ring, doomed)

    LOG.debug(f"Removing ring {sorted(ring.atoms)}: deleting {len(doomed)} atoms, "
              f"keeping seam {sorted(set(attachments) - doomed)}")

    rw = kekulized(molecule)
    doomed_idx = {index[o] for o in doomed}
    lost_double = _lost_double_bonds(rw, doomed_idx)
    seam = sorted(set(attachments) - doomed)
    lost = delete_atoms(rw, doomed_idx)
    _restore_seam_double_bonds(rw, molecule, seam, lost_double, lost,
                               retain_only_hybridizations_at_aromatic_bonds)
    saturate(rw, lost)
    return perceive(rw)


def _decorations_on(molecule: Chem.Mol, ring: Ring, doomed: Set[int]) -> Set[int]:
    # A decoration goes with its anchor; decorations on seam atoms stay
    index = origin_map(molecule)
    found = set()
    for origin in ring.decorations:
        atom = molecule.GetAtomWithIdx(index[origin])
        if any(origin_index(nb) in doomed for nb in atom.GetNeighbors()):
            found.add(origin)
    return found


def _lost_double_bonds(rw: Chem.RWMol, doomed: Set[int]) -> Dict[int, int]:
    lost_double = {}
    for idx in doomed:
        for bond in rw.GetAtomWithIdx(idx).GetBonds():
            other = bond.GetOtherAtomIdx(idx)
            if other in doomed or bond.GetBondType() != Chem.BondType.DOUBLE:
                continue
            key = origin_index(rw.GetAtomWithIdx(other))
            lost_double[key] = lost_double.get(key, 0) + 1
    return lost_double


def _restore_seam_double_bonds(rw: Chem.RWMol, original: Chem.Mol, seam: List[int],
                               lost_double: Dict[int, int], lost: Dict[int, int],
                               aromatic_only: bool) -> None:
    index = origin_map(rw)
    original_index = origin_map(original)
    for i, first in enumerate(seam):
        for second in seam[i + 1:]:
            if lost_double.get(first, 0) < 1 or lost_double.get(second, 0) < 1:
                continue
            bond = rw.GetBondBetweenAtoms(index[first], index[second])
            if bond is None or bond.GetBondType() != Chem.BondType.SINGLE:
                continue
            if aromatic_only:
                before = original.GetBondBetweenAtoms(original_index[first], original_index[second])
                if before is None or not before.GetIsAromatic():
                    continue
            bond.SetBondType(Chem.BondType.DOUBLE)
            for key in (first, second):
                lost_double[key] -= 1
                lost[key] = lost.get(key, 0) - 1


def is_ring_terminal(molecule: Chem.Mol, ring: Ring) -> bool:
    """True when deleting the ring leaves the rest of the molecule in one piece."""
    doomed = set(indices_for(molecule, ring.members))
    rw = editable(molecule)
    for idx in sorted(doomed, reverse=True):
        rw.RemoveAtom(idx)
    return is_connected(rw)


def _shared_bonds(molecule: Chem.Mol, shared: Iterable[int]) -> int:
    index = origin_map(molecule)
    shared = sorted(shared)
    count = 0
    for i, first in enumerate(shared):
        for second in shared[i + 1:]:
            if molecule.GetBondBetweenAtoms(index[first], index[second]) is not None:
                count += 1
    return count


def _strands_aromatic_seam(molecule: Chem.Mol, ring: Ring, others: List[Ring]) -> bool:
    """
    True for a peri-fused ring whose removal leaves an aromatic seam bond
    in non-aromatic rings only.

    A ring is peri-fused when one of its atoms also belongs to two other
    rings. Each bond it shares with another ring must then still sit in an
    aromatic ring once it is gone.
    """
    hubs = [o for o in ring.atoms if sum(1 for other in others if o in other.atoms) >= 2]
    if not hubs:
        return False
    index = origin_map(molecule)
    for other in others:
        shared = sorted(ring.atoms & other.atoms)
        for i, first in enumerate(shared):
            for second in shared[i + 1:]:
                bond = molecule.GetBondBetweenAtoms(index[first], index[second])
                if bond is None or not bond.GetIsAromatic():
                    continue
                if not any(r.aromatic for r in others if first in r.atoms and second in r.atoms):
                    return True
    return False


def is_ring_removable(ring: Ring, rings: List[Ring], molecule: Chem.Mol) -> bool:
    """
    A ring may be removed when it is terminal and not bridged into another ring.

    Rings sharing a single atom (spiro) or a single bond (ortho-fused) with
    every other ring qualify; rings sharing more than one bond with any
    other ring never do. A peri-fused ring is kept when removing it would
    strand an aromatic seam bond.
    """
    if not is_ring_terminal(molecule, ring):
        return False
    others = [other for other in rings if other.atoms != ring.atoms]
    for other in others:
        shared = ring.atoms & other.atoms
        if len(shared) < 2:
            continue
        if len(shared) == 2 and _shared_bonds(molecule, shared) == 1:
            continue
        return False
    if _strands_aromatic_seam(molecule, ring, others):
        LOG.debug(f"Ring {sorted(ring.atoms)} is peri-fused into an aromatic seam")
        return False
    return True


def removable_rings(molecule: Chem.Mol, rings: List[Ring]) -> List[Ring]:
    return [ring for ring in rings if is_ring_removable(ring, rings, molecule)]
