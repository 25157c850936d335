# -*- coding: ascii -*-
"""
Unit tests for scaffold trees and networks.
"""

import unittest

import numpy as np
from rdkit import Chem

from scaffolder.errors import InvariantViolation
from scaffolder.graph import ScaffoldNetwork, ScaffoldNode, ScaffoldTree, merge_network, merge_tree


def node(smiles, level=0, origins=('origin',)):
    return ScaffoldNode(Chem.MolFromSmiles(smiles), smiles, level, set(origins))


def chain_tree(*smiles, origin='origin'):
    tree = ScaffoldTree()
    parent = None
    for level, s in enumerate(smiles):
        parent = tree.add_node(node(s, level, (origin,)), parent)
    return tree


class TestScaffoldTree(unittest.TestCase):
    """Tree container."""

    def setUp(self):
        self.tree = ScaffoldTree()
        self.root = self.tree.add_node(node('c1ccccc1'))
        self.a = self.tree.add_node(node('c1ccccc1C1CCCCC1', 1), self.root)
        self.b = self.tree.add_node(node('c1ccccc1C1CCCC1', 1), self.root)
        self.c = self.tree.add_node(node('c1ccccc1C1CCCCC1C1CCC1', 2), self.a)

    def test_structure(self):
        self.assertIs(self.tree.root, self.root)
        self.assertEqual(len(self.tree), 4)
        self.assertEqual(self.tree.max_level(), 2)
        self.assertEqual(self.tree.nodes_at_level(1), [self.a, self.b])
        self.assertIs(self.c.parent, self.a)
        self.assertTrue(self.tree.contains('c1ccccc1C1CCCC1'))
        self.assertIsNone(self.tree.find('C1CC1'))

    def test_single_parent_enforced(self):
        with self.assertRaises(InvariantViolation):
            self.tree.add_edge(self.b, self.c)

    def test_remove_node_prunes_subtree(self):
        self.tree.remove_node(self.a)
        self.assertEqual(len(self.tree), 2)
        self.assertEqual(self.root.children, [self.b])
        self.assertFalse(self.tree.contains('c1ccccc1C1CCCCC1C1CCC1'))

    def test_matrix(self):
        matrix = self.tree.get_matrix()
        self.assertEqual(matrix.shape, (4, 4))
        self.assertTrue(np.array_equal(matrix, matrix.T))
        self.assertEqual(int(matrix.sum()), 6)
        self.assertEqual(matrix[0, 1], 1)
        self.assertEqual(matrix[1, 3], 1)
        self.assertEqual(matrix[2, 3], 0)
        self.assertIs(self.tree.get_matrix_node(3), self.c)

    def test_records(self):
        records = self.tree.to_records()
        self.assertEqual(records[0]['child_ids'], [1, 2])
        self.assertEqual(records[3]['parent_ids'], [1])
        self.assertEqual(records[3]['num_rings'], 3)
        self.assertEqual(records[0]['origins'], ['origin'])

    def test_empty_tree(self):
        tree = ScaffoldTree()
        self.assertIsNone(tree.root)
        self.assertEqual(tree.max_level(), -1)
        self.assertEqual(tree.get_matrix().shape, (0, 0))


class TestMergeTree(unittest.TestCase):
    """Grafting one tree onto another."""

    def test_merge_at_root(self):
        a = chain_tree('C1CCCCC1', 'C1CCCCC1c1ccccc1', origin='x')
        b = chain_tree('C1CCCCC1', 'C1CCCCC1C1CCCC1', origin='y')
        self.assertTrue(merge_tree(a, b))
        self.assertEqual(len(a), 3)
        self.assertEqual(a.root.origins, {'x', 'y'})
        self.assertEqual(len(a.root.children), 2)
        self.assertEqual(len(b), 2)

    def test_merge_below_root(self):
        a = chain_tree('C1CCCCC1', 'C1CCCCC1c1ccccc1', origin='x')
        b = chain_tree('C1CCCCC1c1ccccc1', 'C1CCCCC1c1ccccc1C1CC1', origin='y')
        self.assertTrue(merge_tree(a, b))
        grafted = a.find('C1CCCCC1c1ccccc1C1CC1')
        self.assertEqual(grafted.level, 2)
        self.assertEqual(grafted.parent.label, 'C1CCCCC1c1ccccc1')

    def test_no_shared_label(self):
        a = chain_tree('C1CCCCC1', 'C1CCCCC1c1ccccc1')
        b = chain_tree('C1CCOC1', 'C1CCOC1C1CCNC1')
        self.assertFalse(merge_tree(a, b))
        self.assertEqual([n.label for n in a], ['C1CCCCC1', 'C1CCCCC1c1ccccc1'])


class TestScaffoldNetwork(unittest.TestCase):
    """Network container."""

    def build(self):
        network = ScaffoldNetwork()
        top = network.add_node(node('c1ccccc1CC1CCCCC1CC1CC1'))
        left = network.add_node(node('c1ccccc1CC1CCCCC1', 1), top)
        right = network.add_node(node('C1CC1CC1CCCCC1', 1), top)
        bottom = network.add_node(node('C1CCCCC1', 2), left)
        network.add_edge(right, bottom)
        return network, top, left, right, bottom

    def test_multiple_parents(self):
        network, _, left, right, bottom = self.build()
        self.assertEqual(bottom.parents, [left, right])

    def test_remove_node_relevels(self):
        network, top, left, right, bottom = self.build()
        network.remove_node(top)
        self.assertEqual(sorted(n.label for n in network.roots()), sorted([left.label, right.label]))
        self.assertEqual((left.level, right.level, bottom.level), (0, 0, 1))

    def test_relevel_uses_longest_path(self):
        network, top, left, _, bottom = self.build()
        network.add_edge(top, bottom)
        network.relevel()
        self.assertEqual(bottom.level, 2)

    def test_merge_network_and_components(self):
        network, *_ = self.build()
        other = ScaffoldNetwork()
        a = other.add_node(node('C1CCCCC1C1CCOC1', origins=('other',)))
        other.add_node(node('C1CCCCC1', 1, ('other',)), a)
        island = ScaffoldNetwork()
        island.add_node(node('c1ccncc1', origins=('island',)))

        merge_network(network, other)
        merge_network(network, island)
        self.assertEqual(len(network), 6)
        shared = network.find('C1CCCCC1')
        self.assertEqual(len(shared.parents), 3)
        self.assertEqual(shared.origins, {'origin', 'other'})

        components = network.components()
        self.assertEqual([len(c) for c in components], [5, 1])
        self.assertEqual(len(components[0].roots()), 2)
        self.assertIsNot(components[0].find('C1CCCCC1'), shared)


if __name__ == '__main__':
    unittest.main()
