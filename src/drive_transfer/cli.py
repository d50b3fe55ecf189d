"""CLI for drive-transfer - Google Drive ownership transfer.

Usage:
    drive-transfer init                                   # Create directories, show setup
    drive-transfer status                                 # Show configuration status
    drive-transfer login EMAIL                            # Authorize an account
    drive-transfer transfer FILE_ID --source S --target T # Transfer one file
    drive-transfer batch --source S --target T ID...      # Transfer several files
    drive-transfer batch --source S --target T --from-file ids.txt
    drive-transfer list --account EMAIL                   # Files owned by an account
    drive-transfer tokens list                            # Accounts with saved tokens
    drive-transfer tokens remove EMAIL                    # Forget an account's token
    drive-transfer menu                                   # Interactive menu
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from drive_transfer.accounts import Authenticator, TokenStore
from drive_transfer.config import ENV_FILE, AppConfig, ensure_dirs, get_status
from drive_transfer.drive import DriveAPIError, DriveClient
from drive_transfer.google.exceptions import AuthFailure
from drive_transfer.log import log_transfer_complete, log_transfer_start, setup_logging
from drive_transfer.transfer import (
    ALREADY_OWNER,
    BatchConfig,
    TransferError,
    TransferOptions,
    TransferOutcome,
    TransferService,
)
from drive_transfer.transfer.validation import (
    is_valid_email,
    is_valid_file_id,
    sanitize_input,
    validate_transfer_params,
)


class Console:
    """Terminal input/output used by every interactive flow.

    Swap ``input_fn``/``output_fn`` to drive the CLI from scripts or tests.
    """

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ):
        self._input = input_fn
        self._output = output_fn

    def say(self, message: str = "") -> None:
        self._output(message)

    def ask(self, prompt: str) -> str:
        """Read a line of user input, sanitized."""
        return sanitize_input(self._input(prompt))

    def ask_raw(self, prompt: str) -> str:
        """Read a line of user input as typed (authorization codes, redirect URLs)."""
        return self._input(prompt).strip()

    def confirm(self, prompt: str) -> bool:
        return self.ask(f"{prompt} (y/N): ").lower() == "y"


@dataclass
class App:
    """Everything a command needs."""

    config: AppConfig
    console: Console
    store: TokenStore
    authenticator: Authenticator
    logger: logging.Logger
    sleep: Callable[[float], None] = time.sleep

    def service_for(self, client: DriveClient) -> TransferService:
        return TransferService(client, logger=self.logger, sleep=self.sleep)


def _banner(console: Console, title: str) -> None:
    console.say("=" * 60)
    console.say(title)
    console.say("=" * 60)


def _authenticate(app: App, account: str) -> DriveClient | None:
    app.console.say(f"Authenticating {account}...")
    try:
        return app.authenticator.authenticate(account)
    except AuthFailure as e:
        app.logger.error(str(e))
        app.console.say(f"Error: {e}")
        return None


def _report_errors(console: Console, errors: list[str]) -> None:
    console.say("Validation errors:")
    for error in errors:
        console.say(f"  - {error}")


# =============================================================================
# Setup
# =============================================================================


def cmd_init(app: App) -> int:
    """Create token/log directories and show setup instructions."""
    console = app.console
    _banner(console, "DRIVE-TRANSFER SETUP")
    console.say()

    for directory in ensure_dirs(app.config):
        console.say(f"Created: {directory}/")
    console.say()

    missing = app.config.validate()
    if not missing:
        console.say("OAuth client configured")
        return 0

    console.say("Configure your OAuth client in .env:")
    console.say()
    console.say(f"  cat > {ENV_FILE} << 'EOF'")
    console.say("  GOOGLE_CLIENT_ID=...apps.googleusercontent.com")
    console.say("  GOOGLE_CLIENT_SECRET=...")
    console.say("  GOOGLE_REDIRECT_URI=http://localhost")
    console.say("  EOF")
    console.say()
    console.say("or download OAuth credentials from:")
    console.say("  https://console.cloud.google.com/apis/credentials")
    console.say(f"  Save as: {app.config.credentials_path}")
    return 0


def cmd_status(app: App) -> int:
    """Show configuration and stored-account status."""
    console = app.console
    status = get_status(app.config)

    _banner(console, "DRIVE-TRANSFER STATUS")
    console.say()
    console.say(f"Repository: {status['repo_root']}")
    console.say()

    google = status["google"]
    console.say("Google OAuth client:")
    console.say(f"  GOOGLE_CLIENT_ID:     {'[x]' if google['client_id'] else '[ ]'}")
    console.say(f"  GOOGLE_CLIENT_SECRET: {'[x]' if google['client_secret'] else '[ ]'}")
    console.say(f"  credentials.json:     {'[x]' if google['credentials'] else '[ ]'}")
    console.say(f"  Redirect URI:         {google['redirect_uri']}")
    console.say()

    accounts = app.store.list_accounts()
    console.say(f"Saved tokens ({status['tokens_dir']}):")
    if accounts:
        for account in accounts:
            console.say(f"  - {account}")
    else:
        console.say("  (none)")
    console.say()

    if status["missing"]:
        console.say("Missing configuration:")
        for name in status["missing"]:
            console.say(f"  - {name}")
        return 1
    return 0


def cmd_login(app: App, account: str) -> int:
    """Authorize an account and show who it is."""
    if not is_valid_email(account):
        app.console.say(f"Error: Invalid email address: {account}")
        return 1

    client = _authenticate(app, account)
    if client is None:
        return 1

    try:
        user = client.get_current_user()
    except DriveAPIError as e:
        app.console.say(f"Error: {e}")
        return 1

    app.console.say(f"Authorized: {user.display_name} ({user.email_address})")
    return 0


# =============================================================================
# Transfers
# =============================================================================


def cmd_transfer(
    app: App,
    file_id: str,
    source: str,
    target: str,
    yes: bool = False,
    notify: bool = True,
) -> int:
    """Transfer ownership of a single file."""
    console = app.console

    errors = validate_transfer_params(source, target, [file_id])
    if errors:
        _report_errors(console, errors)
        return 1

    client = _authenticate(app, source)
    if client is None:
        return 1
    service = app.service_for(client)

    check = service.validate_preconditions(file_id, target)
    if not check.valid:
        console.say(f"Transfer validation failed: {check.error}")
        return 1

    console.say()
    console.say("Transfer details:")
    console.say(f"  Source: {check.current_owner_email}")
    console.say(f"  Target: {target}")
    console.say(f"  File:   {check.file_name}")

    if not yes and not console.confirm("\nProceed with transfer?"):
        console.say("Transfer cancelled.")
        return 0

    operation_id = log_transfer_start(app.logger, source, target, 1)
    try:
        outcome = service.transfer(
            file_id, target, TransferOptions(send_notification_email=notify)
        )
    except TransferError as e:
        app.logger.error(f"Single file transfer failed: {e}")
        log_transfer_complete(app.logger, {"successful": 0, "failed": 1, "total": 1}, operation_id)
        console.say(f"Transfer failed: {e}")
        return 1

    log_transfer_complete(app.logger, {"successful": 1, "failed": 0, "total": 1}, operation_id)
    if outcome.message == ALREADY_OWNER:
        console.say(f"{target} already owns {outcome.file_name}")
    else:
        console.say(f"Transfer completed: {outcome.file_name} is now owned by {target}")
    return 0


def read_file_ids(path: str | Path) -> list[str]:
    """Read file IDs from a text file, one per line; blank lines and # comments are skipped."""
    ids = []
    with open(Path(path).expanduser()) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                ids.append(line)
    return ids


def cmd_batch(
    app: App,
    source: str,
    target: str,
    file_ids: list[str],
    delay_ms: int | None = None,
    stop_on_error: bool = False,
    yes: bool = False,
    notify: bool = True,
) -> int:
    """Transfer ownership of several files, one after another."""
    console = app.console

    if not file_ids:
        console.say("No file IDs provided.")
        return 1

    errors = validate_transfer_params(source, target, file_ids)
    if errors:
        _report_errors(console, errors)
        return 1

    config = BatchConfig(
        delay_between_transfers_ms=app.config.delay_ms if delay_ms is None else delay_ms,
        continue_on_error=not stop_on_error,
        send_notification_email=notify,
    )

    client = _authenticate(app, source)
    if client is None:
        return 1

    console.say()
    console.say("Transfer summary:")
    console.say(f"  Source: {source}")
    console.say(f"  Target: {target}")
    console.say(f"  Files:  {len(file_ids)}")
    console.say(f"  Delay:  {config.delay_between_transfers_ms} ms")

    if not yes and not console.confirm("\nProceed with batch transfer?"):
        console.say("Transfer cancelled.")
        return 0

    def on_progress(index: int, total: int, outcome: TransferOutcome) -> None:
        mark = "[✓]" if outcome.success else "[✗]"
        label = outcome.file_name or outcome.file_id
        console.say(f"  {mark} {index + 1}/{total} {label}")

    operation_id = log_transfer_start(app.logger, source, target, len(file_ids))
    summary = app.service_for(client).run_batch(file_ids, target, config, on_progress)
    log_transfer_complete(app.logger, summary.as_dict(), operation_id)

    console.say()
    console.say("Transfer results:")
    console.say(f"  Successful: {summary.successful}")
    console.say(f"  Failed:     {summary.failed}")
    console.say(f"  Total:      {summary.total}")

    if summary.failures:
        console.say()
        console.say("Failed transfers:")
        for outcome in summary.failures:
            console.say(f"  - {outcome.file_id}: {outcome.error}")

    if summary.halted:
        console.say()
        console.say(f"Stopped at first error; {summary.unprocessed} files not processed.")

    return 0 if summary.failed == 0 and not summary.halted else 1


def cmd_list(app: App, account: str, limit: int = 50) -> int:
    """List files owned by an account."""
    console = app.console

    if not is_valid_email(account):
        console.say(f"Error: Invalid email address: {account}")
        return 1

    client = _authenticate(app, account)
    if client is None:
        return 1

    try:
        user = client.get_current_user()
        console.say(f"User: {user.display_name} ({user.email_address})")
        files = client.list_owned_files(user.email_address, max_results=limit)
    except DriveAPIError as e:
        app.logger.error(f"List files failed: {e}")
        console.say(f"Failed to list files: {e}")
        return 1

    if not files:
        console.say("No files found.")
        return 0

    console.say(f"Found {len(files)} files:")
    console.say("-" * 80)
    for i, record in enumerate(files, 1):
        console.say(f"{i:>3}. {record.name}")
        console.say(f"     ID: {record.id}")
        console.say(f"     Type: {record.mime_type.split('/')[-1]}")
        if record.web_view_link:
            console.say(f"     Link: {record.web_view_link}")
    return 0


# =============================================================================
# Tokens
# =============================================================================


def cmd_tokens_list(app: App) -> int:
    accounts = app.store.list_accounts()
    if not accounts:
        app.console.say("No saved authentication tokens found.")
        return 0

    app.console.say("Users with saved tokens:")
    for i, account in enumerate(accounts, 1):
        app.console.say(f"{i}. {account}")
    return 0


def cmd_tokens_remove(app: App, account: str, yes: bool = False) -> int:
    if not is_valid_email(account) or not app.store.has_token(account):
        app.console.say(f"No saved token for {account}")
        return 1

    if not yes and not app.console.confirm(f"Remove tokens for {account}?"):
        return 0

    app.store.remove(account)
    app.console.say(f"Tokens removed for {account}")
    return 0


# =============================================================================
# Interactive menu
# =============================================================================

MENU = [
    "1. Transfer single file ownership",
    "2. Transfer multiple files ownership",
    "3. List files owned by user",
    "4. Manage authentication tokens",
    "5. Exit",
]


def _ask_file_ids(console: Console) -> list[str]:
    console.say("Enter file IDs (one per line, empty line to finish):")
    file_ids = []
    while True:
        file_id = console.ask("File ID: ")
        if not file_id:
            return file_ids
        if is_valid_file_id(file_id):
            file_ids.append(file_id)
            console.say(f"Added file ID: {file_id}")
        else:
            console.say(f"Invalid file ID: {file_id}")


def _menu_tokens(app: App) -> None:
    console = app.console
    accounts = app.store.list_accounts()
    cmd_tokens_list(app)
    if not accounts:
        return

    console.say()
    console.say("1. Remove tokens for a user")
    console.say("2. Back to main menu")
    if console.ask("Select an option (1-2): ") != "1":
        return

    choice = console.ask("Enter user number to remove: ")
    if not choice.isdigit() or not 1 <= int(choice) <= len(accounts):
        console.say("Invalid user number")
        return
    cmd_tokens_remove(app, accounts[int(choice) - 1])


def cmd_menu(app: App) -> int:
    """Interactive main menu."""
    console = app.console
    _banner(console, "GOOGLE DRIVE OWNERSHIP TRANSFER")

    while True:
        console.say()
        console.say("Main menu:")
        for line in MENU:
            console.say(line)

        try:
            choice = console.ask("\nSelect an option (1-5): ")

            if choice == "1":
                source = console.ask("Enter source account email: ")
                target = console.ask("Enter target account email: ")
                file_id = console.ask("Enter Google Drive file ID: ")
                cmd_transfer(app, file_id, source, target)
            elif choice == "2":
                source = console.ask("Enter source account email: ")
                target = console.ask("Enter target account email: ")
                cmd_batch(app, source, target, _ask_file_ids(console))
            elif choice == "3":
                cmd_list(app, console.ask("Enter user email: "))
            elif choice == "4":
                _menu_tokens(app)
            elif choice == "5":
                console.say("Goodbye!")
                return 0
            else:
                console.say("Invalid option. Please try again.")
        except EOFError:
            return 0


# =============================================================================
# Entry point
# =============================================================================


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from e
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative: {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drive-transfer",
        description="Transfer ownership of Google Drive files between accounts",
    )
    parser.add_argument("--tokens-dir", help="Directory for per-account token files")
    parser.add_argument("--credentials", help="Path to OAuth client credentials.json")
    parser.add_argument("--log-dir", help="Directory for log files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")

    subparsers = parser.add_subparsers(dest="command", help="Command")

    subparsers.add_parser("init", help="Create directories and show setup instructions")
    subparsers.add_parser("status", help="Show configuration status")
    subparsers.add_parser("menu", help="Interactive menu")

    login_parser = subparsers.add_parser("login", help="Authorize an account")
    login_parser.add_argument("account", help="Account email")

    def add_transfer_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--source", required=True, help="Current owner's email")
        p.add_argument("--target", required=True, help="New owner's email")
        p.add_argument("-y", "--yes", action="store_true", help="Don't ask for confirmation")
        p.add_argument(
            "--no-notify",
            action="store_true",
            help="Don't email the new owner when access is granted",
        )

    transfer_parser = subparsers.add_parser("transfer", help="Transfer one file")
    transfer_parser.add_argument("file_id", help="Drive file ID")
    add_transfer_args(transfer_parser)

    batch_parser = subparsers.add_parser("batch", help="Transfer several files")
    batch_parser.add_argument("file_ids", nargs="*", help="Drive file IDs")
    batch_parser.add_argument("--from-file", help="Text file with one file ID per line")
    batch_parser.add_argument(
        "--delay-ms",
        type=_non_negative_int,
        help="Pause between transfers in milliseconds (default: DRIVE_TRANSFER_DELAY_MS)",
    )
    batch_parser.add_argument(
        "--stop-on-error", action="store_true", help="Stop at the first failed file"
    )
    add_transfer_args(batch_parser)

    list_parser = subparsers.add_parser("list", help="List files owned by an account")
    list_parser.add_argument("--account", required=True, help="Account email")
    list_parser.add_argument("--limit", type=_non_negative_int, default=50)

    tokens_parser = subparsers.add_parser("tokens", help="Manage saved tokens")
    tokens_subparsers = tokens_parser.add_subparsers(dest="tokens_command", help="Command")
    tokens_subparsers.add_parser("list", help="List accounts with saved tokens")
    remove_parser = tokens_subparsers.add_parser("remove", help="Remove an account's token")
    remove_parser.add_argument("account", help="Account email")
    remove_parser.add_argument("-y", "--yes", action="store_true")

    return parser


def build_app(
    args: argparse.Namespace,
    console: Console,
    authenticator: Authenticator | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> App:
    """Resolve configuration from the environment and command-line overrides."""
    config = AppConfig.from_env()
    if args.tokens_dir:
        config.tokens_dir = Path(args.tokens_dir).expanduser()
    if args.credentials:
        config.credentials_path = Path(args.credentials).expanduser()
    if args.log_dir:
        config.log_dir = Path(args.log_dir).expanduser()

    level = "DEBUG" if args.verbose or config.is_development else "INFO"
    app_logger = setup_logging(config.log_dir, level=level, console=args.verbose)

    store = TokenStore(config.tokens_dir)
    if authenticator is None:
        authenticator = Authenticator(
            store,
            client_id=config.client_id,
            client_secret=config.client_secret,
            credentials_path=config.credentials_path,
            redirect_uri=config.redirect_uri,
            prompt=console.ask_raw,
            notify=console.say,
            logger=app_logger.getChild("accounts"),
        )

    return App(
        config=config,
        console=console,
        store=store,
        authenticator=authenticator,
        logger=app_logger,
        sleep=sleep,
    )


def main(
    argv: list[str] | None = None,
    console: Console | None = None,
    authenticator: Authenticator | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    if args.command is None:
        parser.print_help()
        return 0

    console = console or Console()
    try:
        app = build_app(args, console, authenticator=authenticator, sleep=sleep)
    except ValueError as e:
        console.say(f"Configuration error: {e}")
        return 1

    if args.command == "init":
        return cmd_init(app)
    if args.command == "status":
        return cmd_status(app)
    if args.command == "menu":
        return cmd_menu(app)
    if args.command == "login":
        return cmd_login(app, args.account)
    if args.command == "list":
        return cmd_list(app, args.account, args.limit)

    if args.command == "transfer":
        return cmd_transfer(
            app, args.file_id, args.source, args.target, yes=args.yes, notify=not args.no_notify
        )

    if args.command == "batch":
        file_ids = list(args.file_ids)
        if args.from_file:
            try:
                file_ids.extend(read_file_ids(args.from_file))
            except OSError as e:
                console.say(f"Error: Cannot read {args.from_file}: {e}")
                return 1
        return cmd_batch(
            app,
            args.source,
            args.target,
            file_ids,
            delay_ms=args.delay_ms,
            stop_on_error=args.stop_on_error,
            yes=args.yes,
            notify=not args.no_notify,
        )

    if args.command == "tokens":
        if args.tokens_command == "list":
            return cmd_tokens_list(app)
        if args.tokens_command == "remove":
            return cmd_tokens_remove(app, args.account, yes=args.yes)
        console.say("Usage: drive-transfer tokens {list,remove}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
