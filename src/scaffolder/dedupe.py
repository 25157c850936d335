# -*- coding: ascii -*-
"""Deduplication utilities."""

from typing import Any, Dict, List, Optional

from .config import ScaffoldConfig
from .toolkit import Chem


def seen_key(mol: Chem.Mol, config: Optional[ScaffoldConfig] = None) -> str:
    """Get deduplication key for a fragment (the configured canonical label)."""
    if mol is None:
        return "NONE"

    return (config or ScaffoldConfig()).label(mol)


def dedupe_fragments(mols: List[Chem.Mol], config: Optional[ScaffoldConfig] = None) -> List[Chem.Mol]:
    """Deduplicate fragments by canonical label, keeping the first occurrence."""
    if not mols:
        return []

    seen_keys = set()
    unique_mols = []

    for mol in mols:
        if mol is None:
            continue

        key = seen_key(mol, config)
        if key not in seen_keys:
            seen_keys.add(key)
            unique_mols.append(mol)

    return unique_mols


def dedupe_records(records: List[Dict[str, Any]], key: str = 'label') -> List[Dict[str, Any]]:
    """Deduplicate table rows on one column, merging their 'origins' lists."""
    if not records:
        return []

    unique: Dict[str, Dict[str, Any]] = {}

    for record in records:
        value = record.get(key)
        if value is None:
            continue

        kept = unique.get(value)
        if kept is None:
            unique[value] = dict(record)
        elif 'origins' in record:
            kept['origins'] = sorted(set(kept.get('origins', [])) | set(record['origins']))

    return list(unique.values())
