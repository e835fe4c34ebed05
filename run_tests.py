#!/usr/bin/env python3
"""Test runner for the card identifier.

Wraps pytest with the marker selections used in this repo:
- unit tests (the default marker for anything not integration/slow)
- integration tests (full session runs against fake OCR and catalog)
- slow tests
- a single test file or keyword
"""

import argparse
import subprocess
import sys
from pathlib import Path


def run_command(cmd, description):
    """Run a command and report the outcome."""
    print(f"\n{'='*60}")
    print(f"Running: {description}")
    print(f"Command: {' '.join(cmd)}")
    print(f"{'='*60}\n")

    try:
        subprocess.run(cmd, check=True)
        print(f"\n✅ {description} passed")
        return True
    except subprocess.CalledProcessError as e:
        print(f"\n❌ {description} failed with exit code {e.returncode}")
        return False
    except FileNotFoundError:
        print(f"\n❌ Command not found: {cmd[0]}")
        print("Install the test extra first: pip install -e '.[test]'")
        return False


def build_command(args) -> list:
    cmd = [sys.executable, '-m', 'pytest']

    markers = []
    if args.unit:
        markers.append('unit')
    elif args.integration:
        markers.append('integration')
    elif args.slow:
        markers.append('slow')
    if args.fast:
        markers.append('not slow')
    if markers:
        cmd.extend(['-m', ' and '.join(markers)])

    cmd.append(f'tests/{args.file}' if args.file else 'tests/')

    if args.keyword:
        cmd.extend(['-k', args.keyword])
    if args.verbose:
        cmd.append('-v')
    if args.coverage:
        cmd.extend(['--cov=card_identifier', '--cov-report=term-missing'])

    cmd.extend(['--tb=short', '--strict-markers'])
    return cmd


def main():
    parser = argparse.ArgumentParser(
        description="Run card identifier tests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_tests.py                        # Run all tests
  python run_tests.py --unit                 # Only unit tests
  python run_tests.py --integration          # Only integration tests
  python run_tests.py --file test_session.py # One file
  python run_tests.py -k select_match        # By keyword
  python run_tests.py --coverage             # With coverage report
        """
    )
    selection = parser.add_mutually_exclusive_group()
    selection.add_argument('--unit', action='store_true', help='Run only unit tests')
    selection.add_argument('--integration', action='store_true', help='Run only integration tests')
    selection.add_argument('--slow', action='store_true', help='Run only slow tests')
    parser.add_argument('--fast', action='store_true', help='Skip slow tests')
    parser.add_argument('--file', type=str, help='Run tests from a specific file')
    parser.add_argument('-k', '--keyword', type=str, help='Only tests matching this expression')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')
    parser.add_argument('--coverage', action='store_true', help='Report coverage')
    args = parser.parse_args()

    if not Path('card_identifier').exists() or not Path('tests').exists():
        print("❌ Error: Please run this script from the repository root")
        sys.exit(1)

    success = run_command(build_command(args), "Card Identifier Tests")
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
