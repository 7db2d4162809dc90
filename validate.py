#!/usr/bin/env python3
"""Commit message validation tool.

Can be installed as a git commit-msg hook:

    commit-template-validator check-message --config rules.yaml --project platform/core "$1"
"""

import argparse
import logging
import subprocess
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import yaml
from rich.console import Console
from rich.logging import RichHandler

from commit_validator import CommitValidator
from plugin_config import ConfigurationError, PluginConfig

logger = logging.getLogger(__name__)


def setup_logging(verbosity: int) -> None:
    """Route log records to stderr through rich.

    Args:
        verbosity: -1 quiet (WARNING), 0 default (INFO), 1 verbose (DEBUG)
    """
    level = {-1: logging.WARNING, 0: logging.INFO}.get(verbosity, logging.DEBUG)
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler], force=True)


def current_branch() -> str:
    """Name of the checked-out git branch, or '' outside a repository."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            capture_output=True, text=True, check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return ""
    return result.stdout.strip()


def read_message(message_file: Optional[str]) -> str:
    """Read the commit message from a file, or stdin when no file is given.

    Lines starting with '#' are git comments and are dropped.
    """
    if message_file and message_file != "-":
        content = Path(message_file).read_text(encoding="utf-8")
    else:
        content = sys.stdin.read()
    lines = [line for line in content.splitlines() if not line.startswith("#")]
    return "\n".join(lines).strip("\n")


def check_message(args) -> int:
    """Validate a commit message against the project's template.

    Args:
        args: Command-line arguments from argparse

    Returns:
        Exit code: 0 on accept, 1 on reject
    """
    try:
        config = PluginConfig.load(Path(args.config))
    except ConfigurationError as e:
        # Unreadable configuration never blocks a commit
        logger.warning("Skipping commit validation: %s", e)
        return 0

    try:
        message = read_message(args.message_file)
    except OSError as e:
        print(f"[ERROR] Failed to read commit message: {e}", file=sys.stderr)
        return 1

    branch = args.branch or current_branch()
    validator = CommitValidator(config, max_workers=args.workers)
    decision = validator.on_commit_received(message, args.project, branch)

    if not decision.accepted:
        print(decision.message, file=sys.stderr)
        return 1
    return 0


def check_config(args) -> int:
    """Check a configuration file against the schema.

    Args:
        args: Command-line arguments from argparse

    Returns:
        Exit code: 0 on success, 1 on errors
    """
    try:
        config = PluginConfig.load(Path(args.config), use_cache=False)
    except ConfigurationError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    problems = config.check()
    if problems:
        for problem in problems:
            print(f"[ERROR] {args.config}: {problem}", file=sys.stderr)
        return 1

    print(f"Configuration check passed: {len(config.template_names())} templates")
    return 0


def show_template(args) -> int:
    """Print the effective template as YAML.

    Args:
        args: Command-line arguments from argparse

    Returns:
        Exit code: 0 on success, 1 if the template is unknown or malformed
    """
    try:
        config = PluginConfig.load(Path(args.config))
        template = config.get_template(args.template)
    except ConfigurationError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    if template is None:
        print(f"[ERROR] Unknown template: {args.template}", file=sys.stderr)
        return 1

    print(f"=== Effective Commit Template: {template.name} ===")
    print(yaml.dump(template.to_dict(), default_flow_style=False, sort_keys=False), end="")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the validation tool."""
    parser = argparse.ArgumentParser(
        description="Validate commit messages against project commit templates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s check-message --config rules.yaml --project platform/core .git/COMMIT_EDITMSG
  %(prog)s check-config --config rules.yaml
  %(prog)s show-template --config rules.yaml --template default
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('-q', '--quiet', action='store_true', help='Only log warnings and errors')

    subparsers = parser.add_subparsers(
        dest='command',
        required=True,
        help='Command to run'
    )

    # check-message subcommand
    parser_message = subparsers.add_parser(
        'check-message',
        help='Validate a commit message (file or stdin)'
    )
    parser_message.add_argument('--config', required=True, help='Path to the YAML configuration')
    parser_message.add_argument('--project', required=True, help='Project name')
    parser_message.add_argument('--branch', default='', help='Target branch (default: current git branch)')
    parser_message.add_argument('--workers', type=int, default=8, help='Concurrently evaluated entries')
    parser_message.add_argument('message_file', nargs='?', help='Commit message file (default: stdin)')

    # check-config subcommand
    parser_config = subparsers.add_parser(
        'check-config',
        help='Check a configuration file against the schema'
    )
    parser_config.add_argument('--config', required=True, help='Path to the YAML configuration')

    # show-template subcommand
    parser_template = subparsers.add_parser(
        'show-template',
        help='Show the effective commit template and exit'
    )
    parser_template.add_argument('--config', required=True, help='Path to the YAML configuration')
    parser_template.add_argument('--template', required=True, help='Template name')

    args = parser.parse_args(argv)
    setup_logging(-1 if args.quiet else (1 if args.verbose else 0))

    handlers: Dict[str, Callable] = {
        'check-message': check_message,
        'check-config': check_config,
        'show-template': show_template,
    }

    handler = handlers.get(args.command)
    if handler is None:
        print(f"Error: Unknown command '{args.command}'", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
