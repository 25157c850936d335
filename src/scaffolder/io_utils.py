# -*- coding: ascii -*-
"""I/O utilities for SMILES lists, SD files and result tables."""

import json
import logging
import os
import re
from typing import Any, Dict, List, Tuple

import pandas as pd

from .toolkit import Chem

LOG = logging.getLogger(__name__)


def _ensure_parent_dir(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def write_smi(pairs: List[Tuple[str, str]], path: str) -> None:
    """Write SMILES file in format: SMILES<TAB>Name."""
    _ensure_parent_dir(path)
    with open(path, 'w', encoding='utf-8') as f:
        for smiles, name in pairs:
            f.write(f"{smiles}\t{name}\n")


def read_smi(path: str) -> List[Tuple[str, str]]:
    """Read SMILES file with robust separator handling: SMILES<TAB>Name or SMILES<2+spaces>Name."""
    pairs = []
    if not os.path.exists(path):
        return pairs

    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#'):
                continue

            if '\t' in line:
                smiles, name = line.split('\t', 1)
                pairs.append((smiles.strip(), name.strip() or f"mol_{len(pairs) + 1}"))
                continue

            parts = re.split(r'  +', line)
            if len(parts) >= 2:
                # SMILES first, name last
                pairs.append((parts[0], parts[-1]))
            else:
                pairs.append((line, f"mol_{len(pairs) + 1}"))
    return pairs


def _prop_value(value: Any) -> str:
    if isinstance(value, (list, tuple, set, dict)):
        return json.dumps(sorted(value) if isinstance(value, set) else value)
    return str(value)


def write_sdf(records: List[Dict[str, Any]], path: str, smiles_key: str = 'smiles') -> int:
    """
    Write one SD record per row; the remaining columns become SD tags.

    Returns:
        Number of records written
    """
    _ensure_parent_dir(path)
    written = 0
    writer = Chem.SDWriter(path)
    try:
        for record in records:
            smiles = record.get(smiles_key)
            mol = Chem.MolFromSmiles(smiles) if smiles else None
            if mol is None:
                LOG.warning(f"Skipping SD record without a valid {smiles_key}: {record.get('name', '?')}")
                continue
            if 'name' in record:
                mol.SetProp('_Name', str(record['name']))
            for key, value in record.items():
                if key != smiles_key and value is not None:
                    mol.SetProp(key, _prop_value(value))
            writer.write(mol)
            written += 1
    finally:
        writer.close()
    return written


_JSON_FIELDS = ("side_chains", "linkers", "parent_ids", "child_ids", "origins", "nonvirtual_origins")


def _prepare_records_for_table(records):
    out = []
    for r in records:
        r2 = dict(r)
        # Parallel *_json string columns keep list fields parquet/csv safe
        for f in _JSON_FIELDS:
            if f in r2:
                v = r2.pop(f)
                r2[f + "_json"] = json.dumps(list(v) if v is not None else [])
        out.append(r2)
    return out


def write_table(records: List[Dict[str, Any]], path: str) -> None:
    """Write table file (parquet/csv)."""
    if not records:
        LOG.warning(f"No records to write to {path}")
        return

    _ensure_parent_dir(path)
    df = pd.DataFrame(_prepare_records_for_table(records))

    if path.endswith('.parquet'):
        df.to_parquet(path, index=False)
    elif path.endswith('.csv'):
        df.to_csv(path, index=False)
    else:
        raise ValueError(f"Unsupported file format: {path}")


def read_table(path: str) -> List[Dict[str, Any]]:
    """Read table file (parquet/csv) and rebuild list fields from their JSON columns."""
    if not os.path.exists(path):
        return []

    if path.endswith('.parquet'):
        df = pd.read_parquet(path)
    elif path.endswith('.csv'):
        df = pd.read_csv(path)
    else:
        raise ValueError(f"Unsupported file format: {path}")

    for f in _JSON_FIELDS:
        col = f + "_json"
        if col in df.columns:
            df[f] = df[col].apply(lambda s: json.loads(s) if isinstance(s, str) and len(s) else [])
            df.drop(columns=[col], inplace=True)

    return df.to_dict('records')
