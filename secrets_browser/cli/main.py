"""CLI entrypoint for secrets-browser."""
import sys
import shlex
import argparse
import logging
from pathlib import Path

from .validators import validate_secret_ref

VERSION = "0.1.0"

BROWSE_HELP = """Commands:
  list               Show the catalog (numbered)
  refresh            Re-list secrets from the store
  open <n|id|name>   Open a secret (fetched once, then cached)
  toggle <key>       Reveal or mask one field of the open secret
  copy <key>         Print the unmasked value of one field
  reveal-all         Reveal every field of the open secret
  mask-all           Mask every field of the open secret
  reload             Fetch the open secret again (kept as is if the fetch fails)
  close              Close the open secret
  help               Show this help
  quit               Leave the browser"""

logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


def _print_table(headers, rows):
    """Print rows as left-aligned columns."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row[:-1]):
            widths[i] = max(widths[i], len(cell))
    line = "  ".join(h.ljust(widths[i]) for i, h in enumerate(headers[:-1]))
    print(f"{line}  {headers[-1]}" if line else headers[-1])
    for row in rows:
        cells = "  ".join(c.ljust(widths[i]) for i, c in enumerate(row[:-1]))
        print(f"{cells}  {row[-1]}" if cells else row[-1])


def _open_store():
    """Load config and build the catalog and session registry for one run."""
    from secrets_browser.secrets.domains.config_loader import load_config, build_client
    from secrets_browser.secrets.workflows.catalog import SecretCatalog
    from secrets_browser.secrets.workflows.registry import SessionRegistry

    config = load_config()
    client = build_client(config)
    return SecretCatalog(client), SessionRegistry(client, mask=config['display']['mask'])


def cmd_version(args):
    """Show version information."""
    print(f"secrets-browser {VERSION}")


def cmd_config_set_path(args):
    """Set config file path preference."""
    from secrets_browser.secrets.domains.preferences import set_preference

    config_path = Path(args.path).resolve()

    if not config_path.exists():
        print(f"Error: Config file does not exist: {config_path}", file=sys.stderr)
        sys.exit(1)

    if not config_path.is_file():
        print(f"Error: Path is not a file: {config_path}", file=sys.stderr)
        sys.exit(1)

    set_preference("config_path", str(config_path))
    print(f"Config path set to: {config_path}")


def cmd_config_show(args):
    """Show current config file path."""
    from secrets_browser.secrets.domains.config_loader import default_config_path
    from secrets_browser.secrets.domains.preferences import get_preference

    config_path_pref = get_preference("config_path")

    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            print(f"Config path: {config_path}")
        else:
            print(f"Config path (from preference, but file not found): {config_path}")
        print("Source: preference")
    else:
        default_config = default_config_path()
        print(f"Config path: {default_config}")
        if default_config.exists():
            print("Source: default")
        else:
            print("Source: default (file not found)")


def cmd_config_clear(args):
    """Clear config path preference."""
    from secrets_browser.secrets.domains.config_loader import default_config_path
    from secrets_browser.secrets.domains.preferences import clear_preference

    clear_preference("config_path")
    print(f"Config path preference cleared. Will use default: {default_config_path()}")


def cmd_config_init(args):
    """Interactive config setup: write a minimal config to the default location."""
    import yaml
    from secrets_browser.secrets.domains.config_loader import default_config_path

    default_config = default_config_path()

    print("=== secrets-browser Configuration Setup ===\n")
    print(f"Default config location: {default_config}\n")

    if default_config.exists():
        response = input("Configuration file already exists. Overwrite? (y/N): ").strip().lower()
        if response != 'y':
            print(f"\nUsing existing config at: {default_config}")
            return

    print("Choose a backend:")
    print("1. AWS Secrets Manager (via the aws CLI)")
    print("2. GCP Secret Manager")
    print("3. Cancel (manually create config file later)")

    choice = input("\nEnter choice (1-3): ").strip()

    if choice == "1":
        config = {"backend": "aws", "aws": {}}
        profile = input("AWS profile (blank for default): ").strip()
        region = input("AWS region (blank for CLI default): ").strip()
        if profile:
            config["aws"]["profile"] = profile
        if region:
            config["aws"]["region"] = region
    elif choice == "2":
        project_id = input("GCP project ID: ").strip()
        if not project_id:
            print("Error: Project ID cannot be empty", file=sys.stderr)
            sys.exit(2)
        config = {"backend": "gcp", "gcp": {"project_id": project_id}}
        sa_path = input("Service account JSON path (blank for default credentials): ").strip()
        if sa_path:
            sa_file = Path(sa_path).expanduser().resolve()
            if not sa_file.is_file():
                print(f"Error: File not found: {sa_file}", file=sys.stderr)
                sys.exit(1)
            config["gcp"]["service_account_path"] = str(sa_file)
    elif choice == "3":
        print("\nSetup cancelled.")
        print(f"Create your config file at: {default_config}")
        print("Or use: secrets-browser config set-path <path>")
        return
    else:
        print("Invalid choice.", file=sys.stderr)
        sys.exit(2)

    default_config.parent.mkdir(parents=True, exist_ok=True)
    with open(default_config, 'w') as f:
        yaml.safe_dump(config, f, default_flow_style=False)
    print(f"\nConfig written to: {default_config}")


def cmd_secrets_list(args):
    """List secrets known to the store."""
    catalog, _registry = _open_store()
    secrets = catalog.refresh()
    if not secrets:
        print("No secrets found.")
        return
    _print_table(["NAME", "ID"], [(s.name, s.id) for s in secrets])


def cmd_secrets_show(args):
    """Show a secret's fields, masked unless revealed."""
    validate_secret_ref(args.secret_id)
    _catalog, registry = _open_store()
    session = registry.get(args.secret_id)

    if args.reveal_all:
        session.reveal_all()
    for key in args.reveal or []:
        if not session.is_revealed(key):
            session.toggle(key)

    _print_table(["KEY", "VALUE"], session.render_rows())


def cmd_secrets_get(args):
    """Print the unmasked value of one field, for piping."""
    validate_secret_ref(args.secret_id)
    _catalog, registry = _open_store()
    session = registry.get(args.secret_id)

    key = args.key
    if key is None:
        keys = session.keys()
        if not keys:
            print(f"Error: Secret '{args.secret_id}' has no fields", file=sys.stderr)
            sys.exit(1)
        if len(keys) != 1:
            print(f"Error: Secret '{args.secret_id}' has several fields, choose one of: {', '.join(keys)}",
                  file=sys.stderr)
            sys.exit(2)
        key = keys[0]

    value = session.raw_value(key)
    if args.quiet:
        print(value)
    else:
        print(f"{key}: {value}")


class Browser:
    """Interactive loop over one catalog and session registry."""

    def __init__(self, catalog, registry, out=None):
        self.catalog = catalog
        self.registry = registry
        self.out = out or sys.stdout
        self.session = None

    def _print(self, text=""):
        print(text, file=self.out)

    def _show_catalog(self):
        secrets = self.catalog.current()
        if not secrets:
            self._print("Catalog is empty. Use 'refresh'.")
            return
        for i, summary in enumerate(secrets, 1):
            self._print(f"{i:>3}  {summary.name}  ({summary.id})")

    def _show_session(self):
        self._print(f"[{self.session.id}]")
        for key, text in self.session.render_rows():
            self._print(f"  {key}: {text}")

    def _require_session(self):
        if self.session is None:
            self._print("No secret open. Use 'open <n|id>'.")
            return False
        return True

    def _resolve(self, ref):
        secrets = self.catalog.current()
        if ref.isdigit() and 1 <= int(ref) <= len(secrets):
            return secrets[int(ref) - 1].id
        summary = self.catalog.find(ref)
        return summary.id if summary else ref

    def handle(self, line):
        """
        Run one browser command.

        Returns:
            False when the loop should stop, True otherwise
        """
        from secrets_browser.secrets.domains.errors import SecretsBrowserError

        try:
            words = shlex.split(line)
        except ValueError as e:
            self._print(f"Error: {e}")
            return True
        if not words:
            return True
        command, rest = words[0], words[1:]

        try:
            if command in ("quit", "exit", "q"):
                return False
            elif command == "help":
                self._print(BROWSE_HELP)
            elif command == "list":
                self._show_catalog()
            elif command == "refresh":
                self.catalog.refresh()
                self._show_catalog()
            elif command == "open" and len(rest) == 1:
                self.session = self.registry.get(self._resolve(rest[0]))
                self._show_session()
            elif command == "toggle" and len(rest) == 1:
                if self._require_session():
                    self.session.toggle(rest[0])
                    self._show_session()
            elif command == "copy" and len(rest) == 1:
                if self._require_session():
                    self._print(self.session.raw_value(rest[0]))
            elif command in ("reveal-all", "mask-all"):
                if self._require_session():
                    if command == "reveal-all":
                        self.session.reveal_all()
                    else:
                        self.session.mask_all()
                    self._show_session()
            elif command == "reload":
                if self._require_session():
                    self.session = self.registry.refetch(self.session.id)
                    self._show_session()
            elif command == "close":
                self.session = None
            else:
                self._print(f"Unknown command: {line.strip()} (try 'help')")
        except SecretsBrowserError as e:
            self._print(f"Error: {e}")
        return True

    def run(self):
        self.catalog.refresh()
        self._show_catalog()
        while True:
            try:
                line = input("secrets> ")
            except EOFError:
                self._print()
                break
            if not self.handle(line):
                break


def cmd_secrets_browse(args):
    """Browse secrets interactively."""
    catalog, registry = _open_store()
    Browser(catalog, registry).run()


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (configuration, store access, secret not found, etc.)
        2 - Usage errors (invalid arguments, unknown field, etc.)
    """
    parser = argparse.ArgumentParser(
        prog="secrets-browser",
        description="secrets-browser CLI - list and inspect secrets from AWS or GCP secret stores",
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (configuration, store access, secret not found, etc.)
  2 - Usage error (invalid arguments, unknown field, etc.)

Environment variables:
  SECRETS_BROWSER_BACKEND - Backend to use (aws or gcp, overrides config file)
  GCP_PROJECT - GCP project ID (overrides config file)

Configuration:
  Default location: ~/.config/secrets-browser/config.yml
  Custom path: Set with 'secrets-browser config set-path <path>'
  View current: Run 'secrets-browser config show'
        """
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging on stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "version",
        help="Show version information",
        description="Display the current version of secrets-browser"
    )

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Manage secrets-browser configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    config_set_path_parser = config_subparsers.add_parser(
        "set-path",
        help="Set config file path",
        description="""
Set the configuration file path preference.

This stores the absolute path to your config file in:
~/.config/secrets-browser/preferences.json
        """
    )
    config_set_path_parser.add_argument("path", help="Path to config file")

    config_subparsers.add_parser(
        "show",
        help="Show current config path",
        description="Display the current configuration file path and its source (preference or default)."
    )
    config_subparsers.add_parser(
        "clear",
        help="Clear config path preference",
        description="Remove the config path preference; the default location will be used."
    )
    config_subparsers.add_parser(
        "init",
        help="Interactive config setup",
        description="Interactive setup wizard that writes ~/.config/secrets-browser/config.yml"
    )

    # secrets command
    secrets_parser = subparsers.add_parser(
        "secrets",
        help="Secret browsing operations",
        description="List and inspect secrets"
    )
    secrets_subparsers = secrets_parser.add_subparsers(dest="secrets_command")

    secrets_subparsers.add_parser(
        "list",
        help="List secrets",
        description="List every secret visible to the configured credentials, in store order."
    )

    show_parser = secrets_subparsers.add_parser(
        "show",
        help="Show a secret with masked fields",
        description="""
Fetch a secret and print its fields. Every field is masked as ******
unless revealed with --reveal KEY (repeatable) or --reveal-all.
A secret that is not a JSON object is shown as a single row.
        """
    )
    show_parser.add_argument("secret_id", help="Secret name, ARN or resource name")
    show_parser.add_argument(
        "--reveal",
        action="append",
        metavar="KEY",
        help="Reveal one field (repeatable)"
    )
    show_parser.add_argument(
        "--reveal-all",
        action="store_true",
        help="Reveal every field"
    )

    get_parser = secrets_subparsers.add_parser(
        "get",
        help="Print one field's raw value",
        description="""
Print the unmasked value of one field of a secret. KEY may be omitted
when the secret has a single field or is plain text.
        """
    )
    get_parser.add_argument("secret_id", help="Secret name, ARN or resource name")
    get_parser.add_argument("key", nargs="?", help="Field key")
    get_parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Output only the value (useful for scripts)"
    )

    secrets_subparsers.add_parser(
        "browse",
        help="Browse secrets interactively",
        description=BROWSE_HELP
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.command:
        parser.print_help()
        sys.exit(2)

    from secrets_browser.secrets.domains.errors import UnknownFieldError

    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command == "config":
            if args.config_command == "set-path":
                cmd_config_set_path(args)
            elif args.config_command == "show":
                cmd_config_show(args)
            elif args.config_command == "clear":
                cmd_config_clear(args)
            elif args.config_command == "init":
                cmd_config_init(args)
            else:
                config_parser.print_help()
                sys.exit(2)
        elif args.command == "secrets":
            if args.secrets_command == "list":
                cmd_secrets_list(args)
            elif args.secrets_command == "show":
                cmd_secrets_show(args)
            elif args.secrets_command == "get":
                cmd_secrets_get(args)
            elif args.secrets_command == "browse":
                cmd_secrets_browse(args)
            else:
                secrets_parser.print_help()
                sys.exit(2)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except UnknownFieldError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
