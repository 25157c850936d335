# -*- coding: ascii -*-
"""
Unit tests for configuration loading and ScaffoldConfig.
"""

import dataclasses
import os
import tempfile
import unittest

import yaml
from rdkit import Chem

from scaffolder.config import (
    DEFAULT_CONFIG, ScaffoldConfig, ScaffoldMode, config_from_dict, deep_merge, load_config,
)
from scaffolder.errors import ConfigError
from scaffolder.toolkit import inchikey


class TestScaffoldMode(unittest.TestCase):
    """Mode parsing."""

    def test_parse(self):
        self.assertIs(ScaffoldMode.parse('murcko_framework'), ScaffoldMode.MURCKO_FRAMEWORK)
        self.assertIs(ScaffoldMode.parse('Elemental-Wire-Frame'), ScaffoldMode.ELEMENTAL_WIRE_FRAME)
        self.assertIs(ScaffoldMode.parse(ScaffoldMode.BECCARI_BASIC_FRAMEWORK),
                      ScaffoldMode.BECCARI_BASIC_FRAMEWORK)

    def test_unknown_mode(self):
        with self.assertRaises(ConfigError):
            ScaffoldMode.parse('ring_systems')


class TestScaffoldConfig(unittest.TestCase):
    """The immutable options object."""

    def test_defaults(self):
        config = ScaffoldConfig()
        self.assertIs(config.scaffold_mode, ScaffoldMode.SCHUFFENHAUER_SCAFFOLD)
        self.assertTrue(config.rule_seven_enabled)
        self.assertFalse(config.retain_only_hybridizations_at_aromatic_bonds)
        self.assertFalse(config.isomeric)
        self.assertTrue(config.use_fallback_cycle_finder)

    def test_frozen(self):
        config = ScaffoldConfig()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            config.rule_seven_enabled = False
        changed = config.with_options(rule_seven_enabled=False)
        self.assertFalse(changed.rule_seven_enabled)
        self.assertTrue(config.rule_seven_enabled)

    def test_label(self):
        mol = Chem.MolFromSmiles("F/C=C/F")
        self.assertEqual(ScaffoldConfig().label(mol), "FC=CF")
        self.assertEqual(ScaffoldConfig(isomeric=True).label(mol), "F/C=C/F")
        self.assertEqual(ScaffoldConfig(canonical_label_fn=inchikey).label(mol), inchikey(mol))

    def test_invalid_values(self):
        with self.assertRaises(ConfigError):
            ScaffoldConfig(scaffold_mode='nonsense')
        with self.assertRaises(ConfigError):
            ScaffoldConfig(canonical_label_fn='smiles')


class TestLoadConfig(unittest.TestCase):
    """YAML files and dictionaries."""

    def write(self, content):
        handle = tempfile.NamedTemporaryFile('w', suffix='.yaml', delete=False, encoding='utf-8')
        handle.write(content)
        handle.close()
        self.addCleanup(os.unlink, handle.name)
        return handle.name

    def test_no_file_gives_defaults(self):
        self.assertEqual(load_config(None), DEFAULT_CONFIG)

    def test_user_values_override_defaults(self):
        path = self.write(yaml.safe_dump({'scaffold': {'mode': 'murcko_framework'},
                                          'batch': {'workers': 4}}))
        cfg = load_config(path)
        self.assertEqual(cfg['scaffold']['mode'], 'murcko_framework')
        self.assertFalse(cfg['scaffold']['isomeric'])
        self.assertEqual(cfg['batch']['workers'], 4)
        self.assertIs(config_from_dict(cfg).scaffold_mode, ScaffoldMode.MURCKO_FRAMEWORK)

    def test_unknown_keys_warn(self):
        path = self.write("scaffold:\n  colour: blue\n")
        with self.assertLogs('scaffolder.config', level='WARNING') as logs:
            load_config(path)
        self.assertIn('scaffold.colour', logs.output[0])

    def test_bad_files(self):
        with self.assertRaises(ConfigError):
            load_config(self.write("- a\n- b\n"))
        with self.assertRaises(ConfigError):
            load_config(self.write("scaffold: [unclosed\n"))
        with self.assertRaises(ConfigError):
            load_config('/nonexistent/scaffolder.yaml')

    def test_config_from_dict(self):
        config = config_from_dict({'scaffold': {'canonical_label': 'inchikey', 'isomeric': True},
                                   'rules': {'rule_seven': False}})
        self.assertIs(config.canonical_label_fn, inchikey)
        self.assertTrue(config.isomeric)
        self.assertFalse(config.rule_seven_enabled)
        with self.assertRaises(ConfigError):
            config_from_dict({'scaffold': {'canonical_label': 'morgan'}})

    def test_deep_merge(self):
        merged = deep_merge({'a': {'b': 1, 'c': 2}}, {'a': {'c': 3}})
        self.assertEqual(merged, {'a': {'b': 1, 'c': 3}})


if __name__ == '__main__':
    unittest.main()
