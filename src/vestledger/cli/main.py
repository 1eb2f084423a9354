"""
Main CLI entry point for the vesting ledger.
"""

import sys

from rich.console import Console

from vestledger.cli.vesting_commands import cli

console = Console()


def main():
    """Main CLI entry point"""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/]")
        sys.exit(130)


if __name__ == "__main__":
    main()
