"""Tests for the drive-transfer CLI."""

import pytest
from conftest import OWNER, TARGET, FakeDrive

from drive_transfer.cli import Console, main, read_file_ids
from drive_transfer.google import AuthFailure

F1 = "1" + "a" * 32
F2 = "1" + "b" * 32
F3 = "1" + "c" * 32


class ScriptedConsole(Console):
    """Console fed from a list of answers; records everything it prints."""

    def __init__(self, answers=()):
        self.answers = list(answers)
        self.output = []
        super().__init__(input_fn=self._next, output_fn=self.output.append)

    def _next(self, prompt):
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)

    @property
    def text(self):
        return "\n".join(self.output)


class FakeAuthenticator:
    """Hands out FakeDrive clients; accounts in ``failing`` raise AuthFailure."""

    def __init__(self, drive, failing=()):
        self.drive = drive
        self.failing = set(failing)
        self.authenticated = []

    def authenticate(self, account):
        if account in self.failing:
            raise AuthFailure(account, "token refused")
        self.authenticated.append(account)
        return self.drive


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    for name in ("DRIVE_TRANSFER_DELAY_MS", "APP_ENV", "GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture
def run(cli_env, drive):
    """Run the CLI against a fake Drive and return (exit code, console)."""

    def _run(*argv, answers=(), failing=(), sleeps=None):
        console = ScriptedConsole(answers)
        code = main(
            [
                "--tokens-dir",
                str(cli_env / "tokens"),
                "--log-dir",
                str(cli_env / "logs"),
                "--credentials",
                str(cli_env / "credentials.json"),
                *argv,
            ],
            console=console,
            authenticator=FakeAuthenticator(drive, failing),
            sleep=(sleeps.append if sleeps is not None else lambda seconds: None),
        )
        return code, console

    return _run


class TestSetupCommands:
    """init, status and tokens."""

    def test_no_command_prints_help(self, capsys):
        """Should print help and exit 0 without a command."""
        assert main([]) == 0
        assert "drive-transfer" in capsys.readouterr().out

    def test_init_creates_directories(self, run, cli_env):
        """Should create token and log directories."""
        code, console = run("init")

        assert code == 0
        assert (cli_env / "tokens").is_dir()
        assert "GOOGLE_CLIENT_ID" in console.text

    def test_status_reports_missing_client(self, run):
        """Should exit 1 and name missing settings."""
        code, console = run("status")

        assert code == 1
        assert "Missing configuration" in console.text

    def test_invalid_delay_env(self, run, monkeypatch):
        """Should report configuration errors instead of crashing."""
        monkeypatch.setenv("DRIVE_TRANSFER_DELAY_MS", "soon")

        code, console = run("status")

        assert code == 1
        assert "Configuration error" in console.text

    def test_negative_delay_env(self, run, drive, monkeypatch):
        """Should exit 1 on a negative configured delay instead of raising."""
        monkeypatch.setenv("DRIVE_TRANSFER_DELAY_MS", "-5")
        drive.add_file(F1)

        code, console = run("batch", F1, "--source", OWNER, "--target", TARGET, "-y")

        assert code == 1
        assert "Configuration error" in console.text
        assert drive.write_calls == []

    def test_tokens_list_and_remove(self, run, cli_env):
        """Should list saved accounts and remove one after confirmation."""
        tokens = cli_env / "tokens"
        tokens.mkdir()
        (tokens / f"{OWNER}.json").write_text("{}")

        code, console = run("tokens", "list")
        assert code == 0
        assert f"1. {OWNER}" in console.text

        code, console = run("tokens", "remove", OWNER, answers=["y"])
        assert code == 0
        assert not (tokens / f"{OWNER}.json").exists()

        code, console = run("tokens", "remove", OWNER)
        assert code == 1

    def test_login(self, run):
        """Should show the authorized account."""
        code, console = run("login", OWNER)

        assert code == 0
        assert f"({OWNER})" in console.text

    def test_login_failure(self, run):
        """Should exit 1 when authentication fails."""
        code, console = run("login", OWNER, failing=[OWNER])

        assert code == 1
        assert "token refused" in console.text


class TestTransferCommand:
    """Single-file transfer."""

    def test_transfer_with_confirmation(self, run, drive):
        """Should show details, ask, and transfer."""
        drive.add_file(F1, name="report.pdf")

        code, console = run("transfer", F1, "--source", OWNER, "--target", TARGET, answers=["y"])

        assert code == 0
        assert "File:   report.pdf" in console.text
        assert "now owned by" in console.text
        assert drive.role_of(F1, TARGET) == "owner"

    def test_transfer_cancelled(self, run, drive):
        """Should make no changes when the user declines."""
        drive.add_file(F1)

        code, console = run("transfer", F1, "--source", OWNER, "--target", TARGET, answers=["n"])

        assert code == 0
        assert "cancelled" in console.text
        assert drive.write_calls == []

    def test_transfer_validation_errors(self, run, drive):
        """Should reject bad input before authenticating."""
        code, console = run("transfer", "short", "--source", OWNER, "--target", OWNER, "-y")

        assert code == 1
        assert "cannot be the same" in console.text
        assert "Invalid file IDs found: short" in console.text

    def test_transfer_missing_file(self, run):
        """Should fail the precondition check for a missing file."""
        code, console = run("transfer", F1, "--source", OWNER, "--target", TARGET, "-y")

        assert code == 1
        assert "Transfer validation failed" in console.text

    def test_transfer_failure(self, run, drive):
        """Should exit 1 when the promotion is rejected."""
        drive.add_file(F1)
        drive.fail("update_permission", F1, status_code=400, message="Bad Request")

        code, console = run("transfer", F1, "--source", OWNER, "--target", TARGET, "-y")

        assert code == 1
        assert "Transfer failed" in console.text

    def test_no_notify_flag(self, run, drive):
        """Should not ask Drive to email the new owner with --no-notify."""
        drive.add_file(F1)

        run("transfer", F1, "--source", OWNER, "--target", TARGET, "-y", "--no-notify")

        assert drive.calls_for("create_permission")[0][4] is False


class TestBatchCommand:
    """Multi-file transfer."""

    def test_batch_from_arguments_and_file(self, run, drive, cli_env):
        """Should combine IDs from arguments and --from-file and pace transfers."""
        for file_id in (F1, F2, F3):
            drive.add_file(file_id)
        ids_file = cli_env / "ids.txt"
        ids_file.write_text(f"# files\n{F2}\n\n{F3}\n")
        sleeps = []

        code, console = run(
            "batch", F1, "--from-file", str(ids_file),
            "--source", OWNER, "--target", TARGET, "-y", "--delay-ms", "250",
            sleeps=sleeps,
        )

        assert code == 0
        assert "Successful: 3" in console.text
        assert sleeps == [0.25, 0.25]
        assert all(drive.role_of(f, TARGET) == "owner" for f in (F1, F2, F3))

    def test_batch_default_delay_from_env(self, run, drive, monkeypatch):
        """Should use DRIVE_TRANSFER_DELAY_MS when --delay-ms is omitted."""
        monkeypatch.setenv("DRIVE_TRANSFER_DELAY_MS", "1500")
        drive.add_file(F1)
        drive.add_file(F2)
        sleeps = []

        run("batch", F1, F2, "--source", OWNER, "--target", TARGET, "-y", sleeps=sleeps)

        assert sleeps == [1.5]

    def test_batch_reports_failures(self, run, drive):
        """Should list failed files and exit 1."""
        drive.add_file(F1)
        drive.add_file(F3)

        code, console = run("batch", F1, F2, F3, "--source", OWNER, "--target", TARGET, "-y")

        assert code == 1
        assert "Successful: 2" in console.text
        assert f"- {F2}: " in console.text

    def test_batch_stop_on_error(self, run, drive):
        """Should stop at the first failure and say how many were skipped."""
        drive.add_file(F1)
        drive.add_file(F3)

        code, console = run(
            "batch", F1, F2, F3, "--source", OWNER, "--target", TARGET, "-y", "--stop-on-error"
        )

        assert code == 1
        assert "1 files not processed" in console.text
        assert drive.role_of(F3, TARGET) is None

    def test_batch_stop_on_error_at_last_file(self, run, drive):
        """Should not report skipped files when the last file is the one that fails."""
        drive.add_file(F1)

        code, console = run(
            "batch", F1, F2, "--source", OWNER, "--target", TARGET, "-y", "--stop-on-error"
        )

        assert code == 1
        assert "not processed" not in console.text

    def test_batch_without_ids(self, run):
        """Should refuse to run an empty batch."""
        code, console = run("batch", "--source", OWNER, "--target", TARGET, "-y")

        assert code == 1
        assert "No file IDs" in console.text

    def test_batch_missing_ids_file(self, run, cli_env):
        """Should report an unreadable --from-file."""
        code, console = run(
            "batch", "--from-file", str(cli_env / "nope.txt"),
            "--source", OWNER, "--target", TARGET, "-y",
        )

        assert code == 1
        assert "Cannot read" in console.text

    def test_negative_delay_rejected(self, run):
        """Should reject a negative --delay-ms at parse time."""
        with pytest.raises(SystemExit):
            run("batch", F1, "--source", OWNER, "--target", TARGET, "--delay-ms", "-5")


class TestListCommand:
    """Listing owned files."""

    def test_list_files(self, run, drive):
        """Should list the files returned by Drive."""
        drive.list_owned_files = lambda email, max_results=50: [drive.add_file(F1, "plan.docx")]

        code, console = run("list", "--account", OWNER)

        assert code == 0
        assert "Found 1 files" in console.text
        assert "plan.docx" in console.text

    def test_list_invalid_email(self, run):
        """Should reject an invalid account email."""
        code, console = run("list", "--account", "nope")
        assert code == 1


class TestMenu:
    """Interactive menu."""

    def test_menu_single_transfer_then_exit(self, run, drive):
        """Should run a single transfer from the menu and exit on option 5."""
        drive.add_file(F1)

        code, console = run("menu", answers=["1", OWNER, TARGET, F1, "y", "5"])

        assert code == 0
        assert drive.role_of(F1, TARGET) == "owner"
        assert "Goodbye!" in console.text

    def test_menu_batch(self, run, drive):
        """Should collect file IDs until an empty line and skip invalid ones."""
        drive.add_file(F1)
        drive.add_file(F2)

        code, console = run(
            "menu", answers=["2", OWNER, TARGET, F1, "bad", F2, "", "y", "5"]
        )

        assert code == 0
        assert "Invalid file ID: bad" in console.text
        assert "Successful: 2" in console.text

    def test_menu_invalid_option_and_eof(self, run):
        """Should complain about unknown options and exit on end of input."""
        code, console = run("menu", answers=["9"])

        assert code == 0
        assert "Invalid option" in console.text

    def test_menu_token_removal(self, run, cli_env):
        """Should remove a token chosen by number."""
        tokens = cli_env / "tokens"
        tokens.mkdir()
        (tokens / f"{OWNER}.json").write_text("{}")

        run("menu", answers=["4", "1", "1", "y", "5"])

        assert not (tokens / f"{OWNER}.json").exists()


class TestReadFileIds:
    """ID file parsing."""

    def test_skips_blank_lines_and_comments(self, tmp_path):
        """Should return IDs in file order."""
        path = tmp_path / "ids.txt"
        path.write_text(f"{F1}\n  \n# note\n  {F2}  \n")
        assert read_file_ids(path) == [F1, F2]
