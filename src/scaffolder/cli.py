# -*- coding: ascii -*-
"""Command line interface for scaffold decomposition."""

import argparse
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from .config import ScaffoldMode, config_from_dict, load_config
from .dedupe import dedupe_records
from .errors import ConfigError
from .io_utils import read_smi, write_sdf, write_table
from .parallel import run_parallel
from .toolkit import RDLogger

LOG = logging.getLogger(__name__)

# subcommand -> batch kind
COMMAND_KINDS = {
    'scaffold': 'scaffold',
    'cascade': 'cascade',
    'enumerate': 'enumerate',
    'forest': 'tree',
    'network': 'network',
}


def setup_rdkit_logging(rdkit_log_level: str = 'WARNING'):
    """Configure RDKit logging with unified threshold control."""
    desired_level = (rdkit_log_level or 'WARNING').upper()

    if desired_level in ('ERROR', 'CRITICAL'):
        RDLogger.DisableLog('rdApp.debug')
        RDLogger.DisableLog('rdApp.info')
        RDLogger.DisableLog('rdApp.warning')
    elif desired_level == 'WARNING':
        RDLogger.DisableLog('rdApp.debug')
        RDLogger.DisableLog('rdApp.info')
        RDLogger.EnableLog('rdApp.warning')
    elif desired_level == 'INFO':
        RDLogger.DisableLog('rdApp.debug')
        RDLogger.EnableLog('rdApp.info')
        RDLogger.EnableLog('rdApp.warning')
    else:
        RDLogger.EnableLog('rdApp.debug')
        RDLogger.EnableLog('rdApp.info')
        RDLogger.EnableLog('rdApp.warning')


def configure_logging(args):
    """Configure Python logging and RDKit logger based on CLI arguments."""
    log_level = 'ERROR' if args.quiet else args.log_level
    logging.basicConfig(
        level=getattr(logging, log_level),
        format='%(levelname)s - %(name)s - %(message)s'
    )

    # CLI --rdkit-log-level > main --log-level
    setup_rdkit_logging(args.rdkit_log_level or log_level)


def configure_system_options(args, config: Dict[str, Any]) -> None:
    """Export the batch guard switch so worker processes inherit it."""
    guard = config['batch'].get('guard', True) and not getattr(args, 'no_guard', False)
    os.environ['SCAFFOLDER_GUARD'] = '1' if guard else '0'
    LOG.debug(f"Set decomposition guard: {guard}")


def apply_overrides(config: Dict[str, Any], args) -> Dict[str, Any]:
    """CLI flags take precedence over configuration file values."""
    if getattr(args, 'mode', None):
        config['scaffold']['mode'] = args.mode
    if getattr(args, 'isomeric', False):
        config['scaffold']['isomeric'] = True
    if getattr(args, 'no_rule_seven', False):
        config['rules']['rule_seven'] = False
    if getattr(args, 'workers', None) is not None:
        config['batch']['workers'] = args.workers
    return config


def _failures_path(output: str) -> str:
    stem, _ = os.path.splitext(output)
    return f"{stem}_failures.csv"


def cmd_decompose(config: Dict[str, Any], args) -> None:
    """Run one batch subcommand and write its table (and optional SD file)."""
    kind = COMMAND_KINDS[args.command]
    try:
        scaffold_config = config_from_dict(config)
    except ConfigError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(1)

    pairs = read_smi(args.input)
    if not pairs:
        print(f"No input molecules found in {args.input}")
        sys.exit(1)

    result = run_parallel(pairs, scaffold_config, kind, config['batch'].get('workers', 1))

    records: List[Dict[str, Any]] = result.records
    if getattr(args, 'unique', False):
        records = dedupe_records(
            [dict(r, origins=[r['name']]) for r in records], key='label')

    write_table(records, args.output)
    if args.sdf:
        written = write_sdf(records, args.sdf, smiles_key='scaffold' if kind == 'scaffold' else 'smiles')
        LOG.info(f"Wrote {written} SD records to {args.sdf}")
    if result.failures:
        write_table(result.failures, _failures_path(args.output))

    print(f"Processed {result.stats['total']} molecules: "
          f"{result.stats['succeeded']} succeeded, {result.stats['failed']} failed")
    if kind in ('tree', 'network'):
        print(f"Merged into {len(result.containers)} {'trees' if kind == 'tree' else 'networks'} "
              f"with {len(records)} nodes")
    else:
        print(f"Wrote {len(records)} rows to {args.output}")


def _add_batch_arguments(sub):
    sub.add_argument('-i', '--input', required=True, help='Input SMILES file (SMILES<TAB>Name)')
    sub.add_argument('-o', '--output', required=True, help='Output table (.parquet or .csv)')
    sub.add_argument('-c', '--config', help='Configuration file path')
    sub.add_argument('--workers', type=int, default=None, help='Number of worker processes')
    sub.add_argument('--mode', choices=[m.value for m in ScaffoldMode],
                     help='Scaffold mode (default: schuffenhauer_scaffold)')
    sub.add_argument('--isomeric', action='store_true', help='Keep stereochemistry in scaffolds and labels')
    sub.add_argument('--no-rule-seven', action='store_true', help='Disable rule 7 of the rule cascade')
    sub.add_argument('--sdf', help='Also write an SD file with one record per row')
    sub.add_argument('--no-guard', action='store_true',
                     help='Let per-molecule failures abort the batch instead of skipping the molecule')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='scaffolder',
        description='Scaffolder: Schuffenhauer scaffold trees, networks and rule cascades',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    # Global logging options
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default='INFO',
                        help='Set logging level (default: INFO)')
    parser.add_argument('--quiet', action='store_true',
                        help='Suppress all but error messages (equivalent to --log-level ERROR)')
    parser.add_argument('--rdkit-log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Set RDKit-specific logging level (default: same as --log-level)')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    scaffold_parser = subparsers.add_parser('scaffold', help='Scaffold, side chains and linkers per molecule')
    _add_batch_arguments(scaffold_parser)

    cascade_parser = subparsers.add_parser('cascade', help='Rule-guided ring removal sequence per molecule')
    _add_batch_arguments(cascade_parser)

    enumerate_parser = subparsers.add_parser('enumerate', help='All fragments reachable by ring removal')
    _add_batch_arguments(enumerate_parser)
    enumerate_parser.add_argument('--unique', action='store_true',
                                  help='Keep one row per fragment across all molecules')

    forest_parser = subparsers.add_parser('forest', help='Merged rule-cascade trees')
    _add_batch_arguments(forest_parser)

    network_parser = subparsers.add_parser('network', help='Merged scaffold networks')
    _add_batch_arguments(network_parser)

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(1)

    configure_system_options(args, config)

    if args.command in COMMAND_KINDS:
        cmd_decompose(config, args)
    else:
        print(f"Unknown command: {args.command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
