# -*- coding: ascii -*-
"""Multi-process batch decomposition across input molecules."""

import logging
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import ScaffoldConfig
from .decompose import (
    apply_rule_cascade, build_network, build_schuffenhauer_tree, enumerate_all_terminal_removals,
    merge_forest,
)
from .graph import ScaffoldNetwork, merge_network
from .guard import decomposition_guard
from .scaffold import get_linkers, get_side_chains, scaffold_for
from .toolkit import Chem, canonical_smiles, mol_from_smiles

LOG = logging.getLogger(__name__)

KINDS = ('scaffold', 'cascade', 'enumerate', 'tree', 'network')


@dataclass
class BatchResult:
    """Outcome of a batch: table rows, merged containers and per-molecule failures."""

    records: List[Dict[str, Any]] = field(default_factory=list)
    containers: List[Any] = field(default_factory=list)
    failures: List[Dict[str, Any]] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)


def _fragment_rows(name: str, fragments: List[Chem.Mol], config: ScaffoldConfig) -> List[Dict[str, Any]]:
    return [{
        'name': name,
        'step': step,
        'smiles': Chem.MolToSmiles(fragment),
        'label': config.label(fragment),
        'num_rings': fragment.GetRingInfo().NumRings(),
    } for step, fragment in enumerate(fragments)]


def _scaffold_row(name: str, mol: Chem.Mol, config: ScaffoldConfig) -> Dict[str, Any]:
    scaffold = scaffold_for(mol, config)
    return {
        'name': name,
        'scaffold': canonical_smiles(scaffold, config.isomeric),
        'label': config.label(scaffold),
        'num_rings': scaffold.GetRingInfo().NumRings(),
        'side_chains': [canonical_smiles(m, config.isomeric) for m in get_side_chains(mol, config)],
        'linkers': [canonical_smiles(m, config.isomeric) for m in get_linkers(mol, config)],
    }


def _decompose_single(smiles: str, name: str, config: ScaffoldConfig, kind: str) -> Dict[str, Any]:
    """
    Worker function: decompose one molecule.

    Returns a picklable dict with either 'records' or 'container', plus the
    guard counters under 'stats'.
    """
    stats: Dict[str, Any] = {}
    result: Dict[str, Any] = {'name': name, 'smiles': smiles, 'stats': stats}
    with decomposition_guard(stats, name):
        mol = mol_from_smiles(smiles)
        if kind == 'scaffold':
            result['records'] = [_scaffold_row(name, mol, config)]
        elif kind == 'cascade':
            result['records'] = _fragment_rows(name, apply_rule_cascade(mol, config), config)
        elif kind == 'enumerate':
            result['records'] = _fragment_rows(name, enumerate_all_terminal_removals(mol, config), config)
        elif kind == 'tree':
            result['container'] = build_schuffenhauer_tree(mol, config)
        elif kind == 'network':
            result['container'] = build_network(mol, config)
        else:
            raise ValueError(f"Unknown batch kind: {kind}")
    return result


def _container_rows(containers: List[Any]) -> List[Dict[str, Any]]:
    rows = []
    for container_id, container in enumerate(containers):
        for record in container.to_records():
            rows.append(dict(record, container_id=container_id))
    return rows


def run_parallel(pairs: Sequence[Tuple[str, str]], config: Optional[ScaffoldConfig] = None,
                 kind: str = 'tree', workers: Optional[int] = None) -> BatchResult:
    """
    Decompose (smiles, name) pairs, in worker processes when workers > 1.

    Args:
        pairs: Input structures with their names
        config: Run configuration (must be picklable)
        kind: One of KINDS
        workers: Number of worker processes (default: CPU count)

    Returns:
        BatchResult; trees and networks are merged in input order in this process
    """
    if kind not in KINDS:
        raise ValueError(f"Unknown batch kind: {kind} (expected one of {', '.join(KINDS)})")
    config = config or ScaffoldConfig()
    pairs = list(pairs)
    if workers is None:
        workers = min(len(pairs), os.cpu_count() or 4)
    workers = max(1, workers)

    LOG.info(f"Decomposing {len(pairs)} molecules ({kind}) with {workers} worker(s)")
    results: List[Optional[Dict[str, Any]]] = [None] * len(pairs)

    if workers == 1:
        for i, (smiles, name) in enumerate(pairs):
            results[i] = _decompose_single(smiles, name, config, kind)
    else:
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(_decompose_single, smiles, name, config, kind): i
                for i, (smiles, name) in enumerate(pairs)
            }
            completed = 0
            for future in as_completed(futures):
                results[futures[future]] = future.result()
                completed += 1
                if completed % 100 == 0 or completed == len(pairs):
                    LOG.info(f"Completed {completed}/{len(pairs)}")

    return _collect(results, kind)


def _collect(results: List[Dict[str, Any]], kind: str) -> BatchResult:
    batch = BatchResult(stats={'total': len(results), 'failed': 0, 'failures': {}})
    forest = []
    network = ScaffoldNetwork()

    for result in results:
        stats = result['stats']
        if stats.get('failed'):
            batch.failures.append({
                'name': result['name'],
                'smiles': result['smiles'],
                'error_type': stats.get('last_error_type'),
                'error': stats.get('last_error'),
            })
            batch.stats['failed'] += 1
            for error_type, count in stats.get('failures', {}).items():
                batch.stats['failures'][error_type] = batch.stats['failures'].get(error_type, 0) + count
            continue
        if 'records' in result:
            batch.records.extend(result['records'])
        elif kind == 'tree':
            merge_forest(forest, result['container'])
        elif kind == 'network':
            merge_network(network, result['container'])

    if kind == 'tree':
        batch.containers = forest
    elif kind == 'network':
        batch.containers = network.components()
    if kind in ('tree', 'network'):
        batch.records = _container_rows(batch.containers)

    batch.stats['succeeded'] = batch.stats['total'] - batch.stats['failed']
    LOG.info(f"Batch finished: {batch.stats['succeeded']} succeeded, {batch.stats['failed']} failed")
    return batch
