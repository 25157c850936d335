# -*- coding: ascii -*-
"""Ring perception for scaffold fragments.

Rings are transient value objects keyed by the origin indices of their
atoms; they are recomputed after every removal step.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Sequence, Tuple

from .toolkit import (
    Chem, assign_origin_indices, complete_ring_set, cycle_rank, origin_index,
    smallest_ring_set, symmetrized_ring_set,
)

LOG = logging.getLogger(__name__)

# Below this rings/cycle-rank ratio the ordinary ring finder missed cycles
FALLBACK_RATIO = 1.0


@dataclass(frozen=True)
class Ring:
    """
    One ring of a fragment.

    Attributes:
        atoms: Origin indices of the cycle atoms
        decorations: Origin indices of single atoms double-bonded to a cycle atom
        aromatic: Every bond of the cycle is aromatic
        symbols: Element symbols of the cycle atoms, sorted
        in_smallest_set: The cycle belongs to the strict SSSR of the fragment
    """

    atoms: FrozenSet[int]
    decorations: FrozenSet[int] = frozenset()
    aromatic: bool = False
    symbols: Tuple[str, ...] = ()
    in_smallest_set: bool = True

    @property
    def size(self) -> int:
        return len(self.atoms)

    @property
    def members(self) -> FrozenSet[int]:
        """Cycle atoms plus decorations: everything removed with the ring."""
        return self.atoms | self.decorations

    @property
    def heteroatom_count(self) -> int:
        return sum(1 for symbol in self.symbols if symbol not in ('C', 'H'))

    def count(self, symbol: str) -> int:
        return self.symbols.count(symbol)

    def sort_key(self) -> Tuple[int, ...]:
        return tuple(sorted(self.atoms))


def get_rings(molecule: Chem.Mol, detect_double_bonds: bool = True,
              use_fallback_cycle_finder: bool = True) -> List[Ring]:
    """
    Rings of a molecule, ordered by their origin indices.

    Args:
        molecule: Fragment; untagged atoms receive origin indices in place
        detect_double_bonds: Attach exocyclic double-bonded atoms to each ring
        use_fallback_cycle_finder: Use the networkx minimum cycle basis when
            RDKit finds fewer rings than the cycle rank

    Returns:
        List of Ring objects
    """
    assign_origin_indices(molecule)
    cycles = symmetrized_ring_set(molecule)
    rank = cycle_rank(molecule)
    if use_fallback_cycle_finder and rank > 0 and len(cycles) / rank < FALLBACK_RATIO:
        LOG.debug(f"Ring perception found {len(cycles)} rings for cycle rank {rank}, "
                  f"switching to the complete cycle finder")
        cycles = complete_ring_set(molecule)

    strict = {frozenset(cycle) for cycle in smallest_ring_set(molecule)}
    rings = [_make_ring(molecule, cycle, frozenset(cycle) in strict, detect_double_bonds)
             for cycle in cycles]
    return sorted(rings, key=Ring.sort_key)


def _make_ring(mol: Chem.Mol, cycle: Sequence[int], in_smallest_set: bool,
               detect_double_bonds: bool) -> Ring:
    cycle_set = set(cycle)
    atoms = [mol.GetAtomWithIdx(idx) for idx in cycle]

    decorations = set()
    if detect_double_bonds:
        for atom in atoms:
            for bond in atom.GetBonds():
                other = bond.GetOtherAtom(atom)
                if (other.GetIdx() not in cycle_set and other.GetDegree() == 1
                        and bond.GetBondType() == Chem.BondType.DOUBLE):
                    decorations.add(origin_index(other))

    ring_bonds = [bond for bond in mol.GetBonds()
                  if bond.GetBeginAtomIdx() in cycle_set and bond.GetEndAtomIdx() in cycle_set]
    aromatic = bool(ring_bonds) and all(bond.GetIsAromatic() for bond in ring_bonds)

    return Ring(
        atoms=frozenset(origin_index(atom) for atom in atoms),
        decorations=frozenset(decorations),
        aromatic=aromatic,
        symbols=tuple(sorted(atom.GetSymbol() for atom in atoms)),
        in_smallest_set=in_smallest_set,
    )
