"""
Tests for the CLI.

Uses Python's unittest module.
Tests argument parsing, option defaults, passphrase handling and complete
load/edit/persist runs.
"""

from __future__ import annotations

import io
import os
import shutil
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest.mock import patch

from encprops.cli import (
    PASSPHRASE_ENV,
    USAGE_MESSAGE,
    Options,
    UsageError,
    create_parser,
    main,
    parse_bool,
    resolve_context,
    resolve_options,
    run,
)
from encprops.config.keys import (
    InvalidPassphraseError,
    KeyStore,
    KeyStoreError,
    generate_context,
)
from encprops.config.settings import Settings
from encprops.console import Console
from encprops.store.encrypted import EncryptedProperties
from encprops.store.properties import StoreLoadError


class TestArgumentParser(unittest.TestCase):
    """Tests for CLI argument parsing."""

    def setUp(self) -> None:
        """Set up parser for tests."""
        self.parser = create_parser()

    def test_version_argument(self) -> None:
        """Test --version argument."""
        with redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit) as cm:
                self.parser.parse_args(["--version"])

        self.assertEqual(cm.exception.code, 0)

    def test_defaults(self) -> None:
        """Test default option values."""
        args, unknown = self.parser.parse_known_args([])

        self.assertIsNone(args.in_file)
        self.assertIsNone(args.out_file)
        self.assertTrue(args.in_encrypted)
        self.assertFalse(args.verbose)
        self.assertEqual(unknown, [])

    def test_all_flags(self) -> None:
        """Test every recognized flag."""
        args, _ = self.parser.parse_known_args(
            ["--in", "a.properties", "--out", "b.properties",
             "--in-encrypted", "false", "--verbose", "TRUE"]
        )

        self.assertEqual(args.in_file, "a.properties")
        self.assertEqual(args.out_file, "b.properties")
        self.assertFalse(args.in_encrypted)
        self.assertTrue(args.verbose)

    def test_unknown_flags_ignored(self) -> None:
        """Test unrecognized flags are collected, not rejected."""
        args, unknown = self.parser.parse_known_args(
            ["--colour", "blue", "--in", "a.properties"]
        )

        self.assertEqual(args.in_file, "a.properties")
        self.assertEqual(unknown, ["--colour", "blue"])

    def test_no_abbreviations(self) -> None:
        """Test prefixes of flags are not expanded."""
        args, unknown = self.parser.parse_known_args(["--ou", "x"])

        self.assertIsNone(args.out_file)
        self.assertEqual(unknown, ["--ou", "x"])

    def test_help_flags_are_unknown(self) -> None:
        """Test -h and --help are ignored like any unrecognized flag."""
        args, unknown = self.parser.parse_known_args(["-h", "--help", "--in", "a"])

        self.assertEqual(args.in_file, "a")
        self.assertEqual(unknown, ["-h", "--help"])


class TestParseBool(unittest.TestCase):
    """Tests for parse_bool."""

    def test_true_any_case(self) -> None:
        """Test 'true' in any case."""
        for value in ("true", "TRUE", "True", "tRuE"):
            self.assertTrue(parse_bool(value))

    def test_everything_else_false(self) -> None:
        """Test other strings are False."""
        for value in ("false", "yes", "1", "", "y", "on"):
            self.assertFalse(parse_bool(value))


class TestResolveOptions(unittest.TestCase):
    """Tests for resolve_options."""

    def setUp(self) -> None:
        """Set up parser for tests."""
        self.parser = create_parser()

    def _resolve(self, argv: list[str]) -> Options:
        args, _ = self.parser.parse_known_args(argv)
        return resolve_options(args)

    def test_out_defaults_to_in(self) -> None:
        """Test the input file is overwritten when --out is missing."""
        options = self._resolve(["--in", "p.properties"])

        self.assertEqual(options.out_file, "p.properties")

    def test_out_only(self) -> None:
        """Test --out alone creates a new store."""
        options = self._resolve(["--out", "new.properties"])

        self.assertIsNone(options.in_file)
        self.assertEqual(options.out_file, "new.properties")

    def test_no_files_is_usage_error(self) -> None:
        """Test neither --in nor --out raises UsageError."""
        with self.assertRaises(UsageError):
            self._resolve(["--verbose", "true"])

    def test_empty_in_only_is_usage_error(self) -> None:
        """Test an empty --in does not name a file to write."""
        with self.assertRaises(UsageError):
            self._resolve(["--in", ""])

    def test_empty_in_with_out(self) -> None:
        """Test an empty --in is treated as no input file."""
        options = self._resolve(["--in", "", "--out", "new.properties"])

        self.assertIsNone(options.in_file)
        self.assertEqual(options.out_file, "new.properties")


class TestResolveContext(unittest.TestCase):
    """Tests for resolve_context."""

    def setUp(self) -> None:
        """Create temporary directory for the salt file."""
        self.temp_dir = tempfile.mkdtemp()
        self.settings = Settings(salt_file=str(Path(self.temp_dir) / "salt"))
        self.console = Console(io.StringIO(), io.StringIO())

    def tearDown(self) -> None:
        """Clean up temporary directory."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_first_run_from_environment(self) -> None:
        """Test the salt is created and the same passphrase reopens it."""
        with patch.dict(os.environ, {PASSPHRASE_ENV: "environment-passphrase"}):
            created = resolve_context(self.settings, self.console)
            reopened = resolve_context(self.settings, self.console)

        self.assertTrue(self.settings.salt_path.exists())
        self.assertEqual(reopened.decrypt(created.encrypt("v")), "v")

    def test_short_environment_passphrase(self) -> None:
        """Test a short passphrase cannot initialize the salt."""
        with patch.dict(os.environ, {PASSPHRASE_ENV: "short"}):
            with self.assertRaises(KeyStoreError):
                resolve_context(self.settings, self.console)

        self.assertFalse(self.settings.salt_path.exists())

    def test_wrong_environment_passphrase(self) -> None:
        """Test an existing salt rejects a different passphrase."""
        KeyStore(self.settings.salt_path).initialize("environment-passphrase")

        with patch.dict(os.environ, {PASSPHRASE_ENV: "mistyped-passphrase"}):
            with self.assertRaises(InvalidPassphraseError):
                resolve_context(self.settings, self.console)

    def test_prompts_until_confirmed(self) -> None:
        """Test mismatched and short passphrases are asked again."""
        answers = [
            "short",
            "first-passphrase-1", "different-passphrase",
            "final-passphrase-1", "final-passphrase-1",
        ]
        env = {k: v for k, v in os.environ.items() if k != PASSPHRASE_ENV}

        with patch.dict(os.environ, env, clear=True):
            with patch("encprops.cli.getpass.getpass", side_effect=answers) as prompt:
                with redirect_stderr(io.StringIO()):
                    resolve_context(self.settings, self.console)

        self.assertEqual(prompt.call_count, 5)
        self.assertTrue(self.settings.salt_path.exists())


class TestRun(unittest.TestCase):
    """Complete load/edit/persist runs."""

    def setUp(self) -> None:
        """Create temporary directory and context."""
        self.temp_dir = tempfile.mkdtemp()
        self.context = generate_context()

    def tearDown(self) -> None:
        """Clean up temporary directory."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _path(self, name: str) -> str:
        return str(Path(self.temp_dir) / name)

    def _console(self, *lines: str) -> Console:
        return Console(io.StringIO("".join(f"{line}\n" for line in lines)), io.StringIO())

    def _load(self, path: str) -> dict[str, str]:
        store = EncryptedProperties(self.context)
        with open(path, encoding="utf-8") as f:
            store.load(f)
        return dict(store.items())

    def _write_encrypted(self, path: str, entries: dict[str, str]) -> None:
        with open(path, "w", encoding="utf-8") as f:
            EncryptedProperties(self.context, entries).store(f)

    def test_new_store_from_missing_input(self) -> None:
        """Test a missing --in file yields only the entered entries."""
        path = self._path("new.properties")
        console = self._console("user", "admin", "")

        exit_code = run(Options(in_file=path, out_file=path), console, self.context)

        self.assertEqual(exit_code, 0)
        self.assertEqual(self._load(path), {"user": "admin"})
        self.assertIn("Creating new.", console.writer.getvalue())

    def test_empty_session_writes_empty_store(self) -> None:
        """Test an immediate blank key still writes a valid store."""
        path = self._path("empty.properties")

        exit_code = run(Options(in_file=None, out_file=path), self._console(""), self.context)

        self.assertEqual(exit_code, 0)
        self.assertEqual(self._load(path), {})

    def test_plaintext_ingestion(self) -> None:
        """Test plaintext input is written out encrypted with new entries."""
        in_path = self._path("plain.properties")
        out_path = self._path("secure.properties")
        Path(in_path).write_text("a=1\nb=2\n", encoding="utf-8")

        run(
            Options(in_file=in_path, out_file=out_path, in_encrypted=False),
            self._console("c", "3", ""),
            self.context,
        )

        self.assertEqual(self._load(out_path), {"a": "1", "b": "2", "c": "3"})
        self.assertEqual(Path(in_path).read_text(encoding="utf-8"), "a=1\nb=2\n")

    def test_default_output_overwrites_input(self) -> None:
        """Test the input file is replaced when no --out is given."""
        path = self._path("app.properties")
        self._write_encrypted(path, {"k": "v1"})
        args, _ = create_parser().parse_known_args(["--in", path])

        run(resolve_options(args), self._console("k", "y", "v2", ""), self.context)

        self.assertEqual(self._load(path), {"k": "v2"})

    def test_declined_replace_keeps_value(self) -> None:
        """Test declining the replace prompt keeps the stored value."""
        path = self._path("app.properties")
        self._write_encrypted(path, {"k": "v1"})

        run(Options(in_file=path, out_file=path), self._console("k", "n", ""), self.context)

        self.assertEqual(self._load(path), {"k": "v1"})

    def test_verbose_reports_entries(self) -> None:
        """Test verbose mode prints entries after the output message."""
        path = self._path("app.properties")
        console = self._console("a", "1", "")

        run(Options(in_file=None, out_file=path, verbose=True), console, self.context)

        lines = console.writer.getvalue().splitlines()
        self.assertEqual(lines[-2], f"Encrypted Properties file output to {path}")
        self.assertEqual(lines[-1], "   a=1")

    def test_not_verbose_hides_values(self) -> None:
        """Test values are not printed by default."""
        path = self._path("app.properties")
        console = self._console("a", "secret-value", "")

        run(Options(in_file=None, out_file=path), console, self.context)

        self.assertNotIn("secret-value", console.writer.getvalue())

    def test_load_failure_writes_nothing(self) -> None:
        """Test a corrupt input aborts before any output is written."""
        in_path = self._path("corrupt.properties")
        out_path = self._path("out.properties")
        Path(in_path).write_text("a=not-a-token\n", encoding="utf-8")
        console = self._console("b", "2", "")

        with self.assertRaises(StoreLoadError):
            run(Options(in_file=in_path, out_file=out_path), console, self.context)

        self.assertFalse(Path(out_path).exists())
        self.assertNotIn("Enter key", console.writer.getvalue())


class TestMain(unittest.TestCase):
    """Tests for the main entry point."""

    def setUp(self) -> None:
        """Create temporary directory, context and scripted console."""
        self.temp_dir = tempfile.mkdtemp()
        self.context = generate_context()
        self.path = str(Path(self.temp_dir) / "app.properties")

    def tearDown(self) -> None:
        """Clean up temporary directory."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _main(self, argv: list[str], *lines: str) -> tuple[int, str, str]:
        console = Console(
            io.StringIO("".join(f"{line}\n" for line in lines)), io.StringIO()
        )
        stdout, stderr = io.StringIO(), io.StringIO()
        with (
            patch("encprops.cli.load_config", return_value=Settings()),
            patch("encprops.cli.resolve_context", return_value=self.context),
            patch("encprops.cli.Console.terminal", return_value=console),
            redirect_stdout(stdout),
            redirect_stderr(stderr),
        ):
            with self.assertRaises(SystemExit) as cm:
                main(argv)
        return cm.exception.code, stdout.getvalue(), stderr.getvalue()

    def test_no_arguments(self) -> None:
        """Test running without files is a usage error before any I/O."""
        stdout = io.StringIO()
        with (
            patch("encprops.cli.load_config") as load_config,
            patch("encprops.cli.resolve_context") as resolve,
            redirect_stdout(stdout),
        ):
            with self.assertRaises(SystemExit) as cm:
                main([])

        self.assertEqual(cm.exception.code, 1)
        self.assertEqual(stdout.getvalue(), f"{USAGE_MESSAGE}\n")
        load_config.assert_not_called()
        resolve.assert_not_called()

    def test_successful_run(self) -> None:
        """Test a complete run exits 0 and writes the file."""
        code, _, _ = self._main(["--out", self.path, "--bogus", "x"], "a", "1", "")

        self.assertEqual(code, 0)
        self.assertTrue(Path(self.path).exists())

    def test_corrupt_input_exits_nonzero(self) -> None:
        """Test a load failure is reported and exits 1."""
        Path(self.path).write_text("a=garbage\n", encoding="utf-8")

        code, _, stderr = self._main(["--in", self.path])

        self.assertEqual(code, 1)
        self.assertIn("Error:", stderr)
        self.assertEqual(Path(self.path).read_text(encoding="utf-8"), "a=garbage\n")

    def test_key_store_error_exits_2(self) -> None:
        """Test key store problems exit with status 2."""
        stderr = io.StringIO()
        with (
            patch("encprops.cli.load_config", return_value=Settings()),
            patch("encprops.cli.resolve_context", side_effect=KeyStoreError("bad salt")),
            redirect_stdout(io.StringIO()),
            redirect_stderr(stderr),
        ):
            with self.assertRaises(SystemExit) as cm:
                main(["--out", self.path])

        self.assertEqual(cm.exception.code, 2)
        self.assertIn("bad salt", stderr.getvalue())

    def test_wrong_passphrase_exits_2(self) -> None:
        """Test a wrong passphrase exits 2 before the output is written."""
        settings = Settings(salt_file=str(Path(self.temp_dir) / "salt"))
        KeyStore(settings.salt_path).initialize("correct-passphrase")
        console = Console(io.StringIO("a\n1\n\n"), io.StringIO())
        stderr = io.StringIO()

        with (
            patch.dict(os.environ, {PASSPHRASE_ENV: "mistyped-passphrase"}),
            patch("encprops.cli.load_config", return_value=settings),
            patch("encprops.cli.Console.terminal", return_value=console),
            redirect_stdout(io.StringIO()),
            redirect_stderr(stderr),
        ):
            with self.assertRaises(SystemExit) as cm:
                main(["--out", self.path])

        self.assertEqual(cm.exception.code, 2)
        self.assertIn("Key store error:", stderr.getvalue())
        self.assertFalse(Path(self.path).exists())

    def test_help_flag_does_not_exit_early(self) -> None:
        """Test -h is ignored and the run proceeds."""
        code, stdout, _ = self._main(["-h", "--out", self.path], "")

        self.assertEqual(code, 0)
        self.assertNotIn("usage:", stdout)
        self.assertTrue(Path(self.path).exists())

    def test_keyboard_interrupt_exits_130(self) -> None:
        """Test Ctrl+C exits with status 130."""
        with (
            patch("encprops.cli.load_config", return_value=Settings()),
            patch("encprops.cli.resolve_context", return_value=self.context),
            patch("encprops.cli.run", side_effect=KeyboardInterrupt),
            redirect_stdout(io.StringIO()),
        ):
            with self.assertRaises(SystemExit) as cm:
                main(["--out", self.path])

        self.assertEqual(cm.exception.code, 130)
        self.assertFalse(Path(self.path).exists())


if __name__ == "__main__":
    unittest.main()
