# -*- coding: ascii -*-
"""Prioritization rules that pick the next ring to remove.

Each rule is a pure function (candidates, context) -> list of rings or None.
A rule answers only when it discriminates: it returns a non-empty proper
subset of the candidates, otherwise None so the next rule is consulted.
The first rule that answers decides the step; remaining ties are broken
by the canonical label of the fragment each removal would produce.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from .config import ScaffoldConfig
from .removal import remove_ring
from .rings import Ring
from .scaffold import scaffold_for
from .toolkit import Chem, origin_index, origin_map

LOG = logging.getLogger(__name__)

Rule = Callable[[List[Ring], 'RuleContext'], Optional[List[Ring]]]


@dataclass
class RuleContext:
    """Read-only view of the fragment the candidates were derived from."""

    fragment: Chem.Mol
    rings: List[Ring]
    config: ScaffoldConfig = field(default_factory=ScaffoldConfig)

    def __post_init__(self):
        self.index = origin_map(self.fragment)

    def atom(self, origin: int) -> Chem.Atom:
        return self.fragment.GetAtomWithIdx(self.index[origin])

    def external_bonds(self, ring: Ring) -> Iterable[Tuple[Chem.Bond, Chem.Atom]]:
        """Bonds from cycle atoms to atoms outside the cycle, with the outside atom."""
        for origin in sorted(ring.atoms):
            atom = self.atom(origin)
            for bond in atom.GetBonds():
                other = bond.GetOtherAtom(atom)
                if origin_index(other) not in ring.atoms:
                    yield bond, other

    def other_rings(self, ring: Ring) -> List[Ring]:
        return [r for r in self.rings if r.atoms != ring.atoms]


def _narrow(candidates: List[Ring], predicate: Callable[[Ring], bool]) -> Optional[List[Ring]]:
    selected = [ring for ring in candidates if predicate(ring)]
    if 0 < len(selected) < len(candidates):
        return selected
    return None


def _minimal(candidates: List[Ring], key: Callable[[Ring], object]) -> Optional[List[Ring]]:
    values = [key(ring) for ring in candidates]
    best = min(values)
    return _narrow(candidates, lambda ring: key(ring) == best)


def rule_1(candidates, ctx):
    return _narrow(candidates, lambda ring: not ring.in_smallest_set)


def rule_2(candidates, ctx):
    def pendant(ring):
        if any(ring.atoms & other.atoms for other in ctx.other_rings(ring)):
            return False
        attachments = [other for _, other in ctx.external_bonds(ring)
                       if origin_index(other) not in ring.decorations]
        return len(attachments) == 1
    return _narrow(candidates, pendant)


def rule_3(candidates, ctx):
    return _narrow(candidates, lambda ring: ring.size != 6)


def rule_4(candidates, ctx):
    return _narrow(candidates, lambda ring: ring.heteroatom_count == 0)


def rule_5(candidates, ctx):
    def no_exocyclic_double_bond(ring):
        return not any(bond.GetBondType() == Chem.BondType.DOUBLE
                       for bond, _ in ctx.external_bonds(ring))
    return _narrow(candidates, no_exocyclic_double_bond)


def rule_6(candidates, ctx):
    return _minimal(candidates, lambda ring: ring.heteroatom_count - ring.count('N'))


def rule_7(candidates, ctx):
    if not ctx.config.rule_seven_enabled:
        return None

    def on_aliphatic_ring(ring):
        if not ring.aromatic:
            return False
        aliphatic = set()
        for other in ctx.other_rings(ring):
            if not other.aromatic:
                aliphatic |= other.atoms
        return any(bond.GetBondType() == Chem.BondType.SINGLE and origin_index(atom) in aliphatic
                   for bond, atom in ctx.external_bonds(ring))
    return _narrow(candidates, on_aliphatic_ring)


def rule_8(candidates, ctx):
    return _minimal(candidates, lambda ring: ring.heteroatom_count)


def rule_9(candidates, ctx):
    return _narrow(candidates, lambda ring: ring.count('S') > 0)


def rule_10(candidates, ctx):
    return _minimal(candidates, lambda ring: ring.size)


def rule_11(candidates, ctx):
    return _narrow(candidates, lambda ring: not ring.aromatic)


def rule_12(candidates, ctx):
    def on_ring_nitrogen(ring):
        if not ring.aromatic:
            return False
        ring_nitrogens = set()
        for other in ctx.other_rings(ring):
            ring_nitrogens |= {o for o in other.atoms if ctx.atom(o).GetSymbol() == 'N'}
        return any(origin_index(atom) in ring_nitrogens for _, atom in ctx.external_bonds(ring))
    return _narrow(candidates, on_ring_nitrogen)


def removal_key(ring: Ring, ctx: RuleContext) -> Tuple[str, Tuple[int, ...]]:
    """Label of the scaffold left after removing the ring, then its origin indices."""
    remainder = remove_ring(ctx.fragment, False, ring,
                            ctx.config.retain_only_hybridizations_at_aromatic_bonds)
    return ctx.config.label(scaffold_for(remainder, ctx.config)), ring.sort_key()


def rule_13(candidates, ctx):
    if len(candidates) < 2:
        return None
    return [min(candidates, key=lambda ring: removal_key(ring, ctx))]


RULES: List[Tuple[int, Rule]] = [
    (1, rule_1),
    (2, rule_2),
    (3, rule_3),
    (4, rule_4),
    (5, rule_5),
    (6, rule_6),
    (7, rule_7),
    (8, rule_8),
    (9, rule_9),
    (10, rule_10),
    (11, rule_11),
    (12, rule_12),
    (13, rule_13),
]


def get_rule_description(rule: int) -> str:
    """Get ASCII description of rule."""
    descriptions = {
        1: 'Remove rings outside the smallest set of smallest rings',
        2: 'Remove rings attached through a single linker bond',
        3: 'Remove rings that are not 6-membered',
        4: 'Remove rings without heteroatoms',
        5: 'Remove rings without exocyclic double bonds',
        6: 'Remove rings with fewest non-nitrogen heteroatoms',
        7: 'Remove aromatic rings single-bonded to an aliphatic ring',
        8: 'Remove rings with fewest heteroatoms',
        9: 'Remove rings containing sulfur',
        10: 'Remove smallest rings',
        11: 'Remove non-aromatic rings',
        12: 'Remove aromatic rings bonded to a ring nitrogen',
        13: 'Remove the ring whose remainder has the first canonical label',
    }
    return descriptions.get(rule, 'Unknown rule')


def build_rules(config: Optional[ScaffoldConfig] = None) -> List[Tuple[int, Rule]]:
    """Active rules in priority order."""
    config = config or ScaffoldConfig()
    return [(number, rule) for number, rule in RULES
            if number != 7 or config.rule_seven_enabled]


def select_rings_to_remove(candidates: List[Ring], fragment: Chem.Mol,
                           rings: Optional[List[Ring]] = None,
                           config: Optional[ScaffoldConfig] = None) -> List[Ring]:
    """
    Apply the rules in order and return the verdict of the first that answers.

    Args:
        candidates: Removable rings of the fragment
        fragment: Scaffold the rings belong to
        rings: All rings of the fragment (defaults to the candidates)
        config: Run configuration

    Returns:
        Selected rings; all candidates when no rule discriminates
    """
    if len(candidates) < 2:
        return list(candidates)
    ctx = RuleContext(fragment, list(rings if rings is not None else candidates),
                      config or ScaffoldConfig())
    for number, rule in build_rules(ctx.config):
        selected = rule(candidates, ctx)
        if selected is not None:
            LOG.debug(f"Rule {number} ({get_rule_description(number)}) selected "
                      f"{len(selected)} of {len(candidates)} rings")
            return selected
    return list(candidates)


def choose_ring(candidates: List[Ring], fragment: Chem.Mol,
                rings: Optional[List[Ring]] = None,
                config: Optional[ScaffoldConfig] = None) -> Ring:
    """Single ring to remove next; ties left by the deciding rule go to rule 13."""
    selected = select_rings_to_remove(candidates, fragment, rings, config)
    if len(selected) == 1:
        return selected[0]
    ctx = RuleContext(fragment, list(rings if rings is not None else candidates),
                      config or ScaffoldConfig())
    return rule_13(selected, ctx)[0]
