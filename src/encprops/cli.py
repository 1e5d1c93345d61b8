"""
Command-line interface for encprops.

Loads an encrypted or plaintext properties file, lets the operator add or
replace entries interactively, and writes the result back encrypted.

Usage:
    encprops [--in FILE] [--out FILE] [--in-encrypted true|false]
             [--verbose true|false] [--config PATH]

Options:
    --in            Encrypted or plaintext file to read. If omitted or
                    missing, a new store is created.
    --out           Encrypted file to write. Default: overwrite --in.
    --in-encrypted  True if the input file is encrypted. Default: true.
    --verbose       If true, print every (decrypted) entry after writing.
                    Default: false.

Unrecognized arguments, -h and --help included, are ignored.

Uses Python's argparse module (no external CLI libraries).
"""

from __future__ import annotations

import argparse
import getpass
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

from encprops import __version__
from encprops.config.keys import EncryptionContext, KeyStore, KeyStoreError
from encprops.config.settings import ConfigurationError, Settings, load_config
from encprops.console import Console
from encprops.editor import edit_store
from encprops.loader import load_store
from encprops.persister import persist_store, report_entries

logger = logging.getLogger(__name__)

PASSPHRASE_ENV = "ENCPROPS_PASSPHRASE"
USAGE_MESSAGE = "You must specify an input file or output file"


class UsageError(Exception):
    """Raised when the command line does not name a file to write."""

    pass


@dataclass
class Options:
    """Resolved command-line options."""

    in_file: str | None
    out_file: str
    in_encrypted: bool = True
    verbose: bool = False


def output(message: str = "") -> None:
    """Print a message to stdout."""
    print(message)


def output_error(message: str) -> None:
    """Print an error message to stderr."""
    print(message, file=sys.stderr)


def parse_bool(value: str) -> bool:
    """Only a case-insensitive "true" is True; every other string is False."""
    return value.lower() == "true"


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the encprops CLI."""
    parser = argparse.ArgumentParser(
        prog="encprops",
        description="Create and edit encrypted properties files",
        allow_abbrev=False,
        add_help=False,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"encprops {__version__}",
    )

    parser.add_argument(
        "--in",
        dest="in_file",
        metavar="FILE",
        help="Encrypted or plaintext file to read (default: create a new store)",
    )

    parser.add_argument(
        "--out",
        dest="out_file",
        metavar="FILE",
        help="Encrypted file to write (default: overwrite the input file)",
    )

    parser.add_argument(
        "--in-encrypted",
        dest="in_encrypted",
        type=parse_bool,
        default=True,
        metavar="true|false",
        help="Whether the input file is encrypted (default: true)",
    )

    parser.add_argument(
        "--verbose",
        type=parse_bool,
        default=False,
        metavar="true|false",
        help="Print all entries, unencrypted, after writing (default: false)",
    )

    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Override config file location (default: ~/.encprops/config.yaml)",
    )

    return parser


def resolve_options(args: argparse.Namespace) -> Options:
    """
    Apply defaults to parsed arguments.

    Raises:
        UsageError: If neither --in nor --out names a file.
    """
    in_file = args.in_file or None
    out_file = args.out_file or in_file
    if out_file is None:
        raise UsageError(USAGE_MESSAGE)

    return Options(
        in_file=in_file,
        out_file=out_file,
        in_encrypted=args.in_encrypted,
        verbose=args.verbose,
    )


def setup_logging(level: str) -> None:
    """Configure logging on stderr at the given level name."""
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def resolve_context(settings: Settings, console: Console) -> EncryptionContext:
    """
    Build the encryption context from the operator's passphrase.

    The passphrase comes from the ENCPROPS_PASSPHRASE environment variable
    if set, otherwise it is asked for on the terminal. The first run creates
    the salt file and asks for the new passphrase twice.

    Raises:
        KeyStoreError: If the salt file cannot be read or created, or the
                     passphrase from the environment is too short.
        InvalidPassphraseError: If the passphrase does not match the one
                              the salt file was created with.
    """
    key_store = KeyStore(settings.salt_path, settings.min_passphrase_length)
    passphrase = os.environ.get(PASSPHRASE_ENV)

    if key_store.is_initialized():
        if passphrase is None:
            passphrase = getpass.getpass("Enter passphrase: ")
        return key_store.open(passphrase)

    console.print(f"No salt file found at {key_store.salt_path}. Creating new.")

    if passphrase is None:
        while True:
            passphrase = getpass.getpass("Enter new passphrase: ")
            if len(passphrase) < settings.min_passphrase_length:
                output_error(
                    "Error: Passphrase must be at least "
                    f"{settings.min_passphrase_length} characters."
                )
                continue

            confirm = getpass.getpass("Confirm passphrase: ")
            if passphrase != confirm:
                output_error("Error: Passphrases do not match.")
                continue

            break

    try:
        return key_store.initialize(passphrase)
    except ValueError as e:
        raise KeyStoreError(str(e)) from e


def run(
    options: Options,
    console: Console,
    context: EncryptionContext,
    secure_permissions: bool = True,
) -> int:
    """
    Load, edit and persist one store.

    Returns:
        Process exit code.
    """
    store = load_store(options.in_file, options.in_encrypted, context, console)

    written = edit_store(store, console)
    logger.info("Edit session finished: %d value(s) written", written)

    persist_store(store, options.out_file, console, secure_permissions)

    if options.verbose:
        report_entries(store, console)

    return 0


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the encprops CLI."""
    parser = create_parser()
    args, unknown = parser.parse_known_args(argv)

    try:
        options = resolve_options(args)
    except UsageError as e:
        output(str(e))
        sys.exit(1)

    try:
        settings = load_config(Path(args.config) if args.config else None)
    except ConfigurationError as e:
        output_error(f"Configuration error: {e}")
        sys.exit(2)

    setup_logging(settings.log_level)
    if unknown:
        logger.debug("Ignoring %d unrecognized argument(s)", len(unknown))

    console = Console.terminal()

    try:
        context = resolve_context(settings, console)
        exit_code = run(options, console, context, settings.secure_permissions)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        output("\nOperation cancelled.")
        sys.exit(130)
    except KeyStoreError as e:
        output_error(f"Key store error: {e}")
        sys.exit(2)
    except Exception as e:
        if settings.log_level == "DEBUG":
            raise
        output_error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
