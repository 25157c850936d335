# -*- coding: ascii -*-
"""
Decomposition configuration.

ScaffoldConfig is the immutable options object handed to every extraction,
rule cascade and tree/network builder. YAML files are deep-merged over
DEFAULT_CONFIG and turned into a ScaffoldConfig by config_from_dict().
"""

import copy
import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

import yaml

from .errors import ConfigError
from .toolkit import Chem, canonical_smiles, inchikey

LOG = logging.getLogger(__name__)


class ScaffoldMode(Enum):
    """Skeleton abstraction produced by the scaffold extractor."""

    SCHUFFENHAUER_SCAFFOLD = 'schuffenhauer_scaffold'
    MURCKO_FRAMEWORK = 'murcko_framework'
    ELEMENTAL_WIRE_FRAME = 'elemental_wire_frame'
    BECCARI_BASIC_WIRE_FRAME = 'beccari_basic_wire_frame'
    BECCARI_BASIC_FRAMEWORK = 'beccari_basic_framework'

    @classmethod
    def parse(cls, value) -> 'ScaffoldMode':
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace('-', '_')
        for mode in cls:
            if key in (mode.value, mode.name.lower()):
                return mode
        raise ConfigError(f"Unknown scaffold mode: {value!r} "
                          f"(expected one of {', '.join(m.value for m in cls)})")


# Named label functions selectable from YAML; None means canonical SMILES
LABEL_FUNCTIONS = {
    'smiles': None,
    'inchikey': inchikey,
}


@dataclass(frozen=True)
class ScaffoldConfig:
    """
    Options for one decomposition run.

    Args:
        scaffold_mode: Skeleton abstraction used for every fragment
        rule_seven_enabled: Consult rule 7 (aromatic ring on aliphatic ring) in the cascade
        retain_only_hybridizations_at_aromatic_bonds: On ring removal, only re-insert a
            double bond between seam atoms whose shared bond was aromatic
        canonical_label_fn: Picklable callable mol -> str used as the equality key;
            defaults to canonical SMILES
        isomeric: Keep stereo tags through extraction and use isomeric labels
        use_fallback_cycle_finder: Switch to the networkx cycle basis when RDKit's ring
            perception finds fewer rings than the cycle rank
    """

    scaffold_mode: ScaffoldMode = ScaffoldMode.SCHUFFENHAUER_SCAFFOLD
    rule_seven_enabled: bool = True
    retain_only_hybridizations_at_aromatic_bonds: bool = False
    canonical_label_fn: Optional[Callable[[Chem.Mol], str]] = None
    isomeric: bool = False
    use_fallback_cycle_finder: bool = True

    def __post_init__(self):
        object.__setattr__(self, 'scaffold_mode', ScaffoldMode.parse(self.scaffold_mode))
        if self.canonical_label_fn is not None and not callable(self.canonical_label_fn):
            raise ConfigError(f"canonical_label_fn must be callable, got {self.canonical_label_fn!r}")

    def label(self, mol: Chem.Mol) -> str:
        """Canonical label of a fragment: the only identity used for deduplication."""
        if self.canonical_label_fn is not None:
            return self.canonical_label_fn(mol)
        return canonical_smiles(mol, isomeric=self.isomeric)

    def with_options(self, **changes) -> 'ScaffoldConfig':
        return dataclasses.replace(self, **changes)


DEFAULT_CONFIG: Dict[str, Any] = {
    'scaffold': {
        'mode': ScaffoldMode.SCHUFFENHAUER_SCAFFOLD.value,
        'isomeric': False,
        'canonical_label': 'smiles',
    },
    'rules': {
        'rule_seven': True,
        'retain_only_hybridizations_at_aromatic_bonds': False,
    },
    'rings': {
        'use_fallback_cycle_finder': True,
    },
    'batch': {
        'workers': 1,
        'guard': True,
    },
}


def deep_merge(defaults: Dict[str, Any], user_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge user configuration with defaults, preserving user values.

    Args:
        defaults: Default configuration dictionary
        user_config: User configuration dictionary

    Returns:
        Merged configuration with user values taking precedence
    """
    result = copy.deepcopy(defaults)

    def _merge_recursive(d, u):
        for k, v in u.items():
            if isinstance(v, dict) and isinstance(d.get(k), dict):
                _merge_recursive(d[k], v)
            else:
                d[k] = v

    _merge_recursive(result, user_config or {})
    return result


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load a YAML configuration file merged over DEFAULT_CONFIG."""
    if not config_path:
        return copy.deepcopy(DEFAULT_CONFIG)
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config {config_path}: {e}") from e
    if not isinstance(user, dict):
        raise ConfigError(f"Config {config_path} must contain a mapping, got {type(user).__name__}")
    _warn_unknown_keys(user, DEFAULT_CONFIG)
    return deep_merge(DEFAULT_CONFIG, user)


def _warn_unknown_keys(user: Dict[str, Any], defaults: Dict[str, Any], prefix: str = '') -> None:
    for key, value in user.items():
        if key not in defaults:
            LOG.warning(f"Ignoring unknown config key: {prefix}{key}")
        elif isinstance(value, dict) and isinstance(defaults[key], dict):
            _warn_unknown_keys(value, defaults[key], prefix=f"{prefix}{key}.")


def config_from_dict(cfg: Dict[str, Any]) -> ScaffoldConfig:
    """Build a ScaffoldConfig from a (merged) configuration dictionary."""
    cfg = deep_merge(DEFAULT_CONFIG, cfg or {})
    scaffold_cfg = cfg['scaffold']
    rules_cfg = cfg['rules']

    label_name = str(scaffold_cfg.get('canonical_label', 'smiles')).lower()
    if label_name not in LABEL_FUNCTIONS:
        raise ConfigError(f"Unknown canonical_label: {label_name!r} "
                          f"(expected one of {', '.join(sorted(LABEL_FUNCTIONS))})")

    return ScaffoldConfig(
        scaffold_mode=ScaffoldMode.parse(scaffold_cfg.get('mode')),
        rule_seven_enabled=bool(rules_cfg.get('rule_seven', True)),
        retain_only_hybridizations_at_aromatic_bonds=bool(
            rules_cfg.get('retain_only_hybridizations_at_aromatic_bonds', False)),
        canonical_label_fn=LABEL_FUNCTIONS[label_name],
        isomeric=bool(scaffold_cfg.get('isomeric', False)),
        use_fallback_cycle_finder=bool(cfg['rings'].get('use_fallback_cycle_finder', True)),
    )
