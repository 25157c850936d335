# -*- coding: ascii -*-
"""
Unit tests for the ring prioritization rules.
"""

import unittest

from rdkit import Chem

from scaffolder.config import ScaffoldConfig
from scaffolder.decompose import apply_rule_cascade
from scaffolder.removal import removable_rings
from scaffolder.rings import Ring, get_rings
from scaffolder.rules import (
    RULES, RuleContext, build_rules, choose_ring, get_rule_description, rule_1, rule_3,
    rule_4, rule_5, rule_6, rule_8, rule_9, rule_10, rule_11, rule_12, select_rings_to_remove,
)
from scaffolder.scaffold import extract_scaffold
from scaffolder.toolkit import canonical_smiles

from . import CleanLogsTestCase


def canon(smiles):
    return Chem.MolToSmiles(Chem.MolFromSmiles(smiles), isomericSmiles=False)


def ring(origins, symbols, aromatic=False, in_smallest_set=True):
    return Ring(frozenset(origins), aromatic=aromatic, symbols=tuple(sorted(symbols)),
                in_smallest_set=in_smallest_set)


def prepared(smiles):
    scaffold = extract_scaffold(Chem.MolFromSmiles(smiles))
    rings = get_rings(scaffold)
    return scaffold, rings, removable_rings(scaffold, rings)


class TestRulePredicates(unittest.TestCase):
    """Rules that only look at ring annotations."""

    def setUp(self):
        self.benzene = ring(range(0, 6), 'CCCCCC', aromatic=True)
        self.pyridine = ring(range(6, 12), 'CCCCCN', aromatic=True)
        self.thiophene = ring(range(12, 17), 'CCCCS', aromatic=True)
        self.furan = ring(range(17, 22), 'CCCCO', aromatic=True)
        self.cyclohexane = ring(range(22, 28), 'CCCCCC')

    def test_rule_answers_only_with_a_proper_subset(self):
        self.assertIsNone(rule_3([self.benzene, self.cyclohexane], None))
        self.assertIsNone(rule_3([self.thiophene, self.furan], None))
        self.assertEqual(rule_3([self.benzene, self.thiophene], None), [self.thiophene])

    def test_rule_1_extra_rings(self):
        extra = ring(range(30, 36), 'CCCCCC', in_smallest_set=False)
        self.assertEqual(rule_1([self.benzene, extra], None), [extra])

    def test_rule_4_rings_without_heteroatoms(self):
        self.assertEqual(rule_4([self.benzene, self.pyridine], None), [self.benzene])

    def test_rule_6_fewest_non_nitrogen_heteroatoms(self):
        self.assertEqual(rule_6([self.pyridine, self.furan], None), [self.pyridine])

    def test_rule_8_fewest_heteroatoms(self):
        self.assertEqual(rule_8([self.benzene, self.pyridine, self.furan], None), [self.benzene])

    def test_rule_9_sulfur(self):
        self.assertEqual(rule_9([self.thiophene, self.furan], None), [self.thiophene])

    def test_rule_10_smallest(self):
        self.assertEqual(rule_10([self.benzene, self.furan], None), [self.furan])

    def test_rule_11_non_aromatic(self):
        self.assertEqual(rule_11([self.benzene, self.cyclohexane], None), [self.cyclohexane])

    def test_descriptions(self):
        self.assertEqual(get_rule_description(3), 'Remove rings that are not 6-membered')
        self.assertEqual(get_rule_description(99), 'Unknown rule')
        self.assertEqual([number for number, _ in RULES], list(range(1, 14)))

    def test_rule_seven_toggle(self):
        self.assertEqual(len(build_rules(ScaffoldConfig())), 13)
        numbers = [number for number, _ in build_rules(ScaffoldConfig(rule_seven_enabled=False))]
        self.assertNotIn(7, numbers)
        self.assertEqual(len(numbers), 12)


class TestRulesOnFragments(CleanLogsTestCase):
    """Rules that inspect the fragment."""

    def test_rule_3_beats_rule_9(self):
        """The 5-membered ring goes first although the 6-membered one carries sulfur."""
        scaffold, rings, candidates = prepared("C1CCC(C1)CC1CCSCC1")
        chosen = choose_ring(candidates, scaffold, rings)
        self.assertEqual(chosen.size, 5)
        fragments = apply_rule_cascade(Chem.MolFromSmiles("C1CCC(C1)CC1CCSCC1"))
        self.assertEqual(canonical_smiles(fragments[-1]), canon("C1CCSCC1"))

    def test_rule_5_keeps_exocyclic_double_bonds(self):
        scaffold, rings, candidates = prepared("O=C1CCCC(C1)c1ccccc1")
        ctx = RuleContext(scaffold, rings)
        selected = rule_5(candidates, ctx)
        self.assertEqual(len(selected), 1)
        self.assertTrue(selected[0].aromatic)

    def test_rule_7_toggle_changes_the_choice(self):
        scaffold, rings, candidates = prepared("c1ccccc1C1CCCCC1")
        enabled = choose_ring(candidates, scaffold, rings, ScaffoldConfig())
        disabled = choose_ring(candidates, scaffold, rings, ScaffoldConfig(rule_seven_enabled=False))
        self.assertTrue(enabled.aromatic)
        self.assertFalse(disabled.aromatic)

    def test_rule_12_aromatic_ring_on_ring_nitrogen(self):
        scaffold, rings, candidates = prepared("c1ccccc1N1CCCCC1")
        ctx = RuleContext(scaffold, rings)
        self.assertEqual([r.aromatic for r in rule_12(rings, ctx)], [True])

    def test_tie_broken_deterministically(self):
        scaffold, rings, candidates = prepared("c1ccccc1-c1ccccc1")
        self.assertEqual(len(select_rings_to_remove(candidates, scaffold, rings)), 1)
        first = choose_ring(candidates, scaffold, rings)
        second = choose_ring(list(reversed(candidates)), scaffold, rings)
        self.assertEqual(first, second)
        self.assertEqual(first, min(candidates, key=Ring.sort_key))

    def test_single_candidate_is_returned(self):
        scaffold, rings, candidates = prepared("c1ccc2ccccc2c1")
        self.assertEqual(select_rings_to_remove(candidates[:1], scaffold, rings), candidates[:1])


if __name__ == '__main__':
    unittest.main()
