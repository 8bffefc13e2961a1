#!/usr/bin/env python3
"""
Main Entry Point - Scan Analysis Pipeline

Usage:
    python -m biteinsight.main --file scans_2025_06.json --profile profile.json
    python -m biteinsight.main --process-all --profile profile.json
    python -m biteinsight.main --list
"""

import sys
import argparse

from biteinsight.clients.storage_client import create_storage_client_from_env
from biteinsight.core.file_utils import read_json
from biteinsight.core.pipeline import process_file, process_all_files
from biteinsight.engine.models import Profile


def show_input_files():
    storage = create_storage_client_from_env()
    info = storage.get_info()

    print("\n" + "="*70)
    print("INPUT FILES")
    print("="*70)
    print(f"\nStorage mode: {info['mode']}")

    files = storage.list_input_files()
    if files:
        print(f"\nScan batches ({len(files)} total):")
        for filename in files:
            print(f"   {filename}")
    else:
        print("\nNo scan batches found")

    print("\n" + "="*70 + "\n")


def load_profile(path: str) -> Profile:
    data = read_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"Profile file must contain a JSON object: {path}")
    return Profile.from_dict(data)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Scan Analysis Pipeline',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m biteinsight.main --file scans.json --profile profile.json   Analyse one batch
  python -m biteinsight.main --process-all --profile profile.json       Analyse every batch
  python -m biteinsight.main --list                                     Show input batches
        """
    )

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--file', type=str, help='Analyse a specific scan batch')
    group.add_argument('--process-all', action='store_true', help='Analyse all scan batches')
    group.add_argument('--list', action='store_true', help='List input scan batches')
    parser.add_argument('--profile', type=str, help='Profile JSON file (required with --file / --process-all)')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if (args.file or args.process_all) and not args.profile:
        parser.error('--profile is required with --file and --process-all')

    try:
        if args.list:
            show_input_files()
        elif args.file:
            process_file(args.file, load_profile(args.profile))
        elif args.process_all:
            process_all_files(load_profile(args.profile))

    except KeyboardInterrupt:
        print("\n\nProcess interrupted by user")
        sys.exit(1)
    except Exception as e:
        print(f"\n\nERROR: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
