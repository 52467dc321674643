"""Command-line interface for vault-to-envs.

Typical use evaluates the output in the calling shell::

    eval "$(v2e --secret-config '[{"vault_path": "secret/app/db", "set": {"DB_HOST": "dbHost"}}]')"
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import RunConfig
from .exceptions import ConfigurationError, VaultToEnvsError
from .logging import get_logger, setup_logging
from .resolver import VaultToEnvs

EXIT_OK = 0
EXIT_RESOLUTION_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="v2e",
        description="Utility for extracting Vault secrets into environment variables "
        "using a secrets definition",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Inline config
  v2e --vault-address https://vault.example.com:8200 \\
      --secret-config '[{"vault_path": "secret/app/db", "set": {"DB_HOST": "dbHost"}}]'

  # Config file, with a renewed lease on dynamic AWS credentials
  v2e --secret-config-file secrets.json
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show version number and exit",
    )
    parser.add_argument(
        "--vault-address",
        default=None,
        help="Vault address (ex: https://vault.my-domain.com:8200). "
        "Falls back to VAULT_ADDR.",
    )
    parser.add_argument(
        "--vault-token",
        default=None,
        help="Vault token. Falls back to VAULT_TOKEN.",
    )
    parser.add_argument(
        "--secret-config",
        default=None,
        help="The secret config JSON string to use. Falls back to SECRET_CONFIG.",
    )
    parser.add_argument(
        "--secret-config-file",
        default=None,
        help="The secret config file to use (JSON, or YAML by extension). "
        "Falls back to SECRET_CONFIG_FILE.",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        default=None,
        help="Show debug output (or env var DEBUG)",
    )
    return parser


def run(config: RunConfig) -> int:
    """Resolve and print exports for a validated run configuration.

    Returns:
        Exit code (0=success, 1=resolution failed, 2=configuration error)
    """
    logger = get_logger()
    v2e = VaultToEnvs(config)
    try:
        v2e.load_config()
        v2e.display_env_exports(sys.stdout)
    except ConfigurationError as e:
        logger.debug(
            "Run aborted",
            extra={"event_type": "config_error", "extra_data": {"error": e.to_dict()}},
        )
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE
    except VaultToEnvsError as e:
        logger.debug(
            "Run aborted",
            extra={
                "event_type": "resolution_error",
                "extra_data": {"error": e.to_dict()},
            },
        )
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_RESOLUTION_FAILED
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = RunConfig.from_env(
        vault_address=args.vault_address,
        vault_token=args.vault_token,
        secret_config=args.secret_config,
        secret_config_file=args.secret_config_file,
        debug=args.debug,
    )

    logging_config = config.logging_config()
    logger = setup_logging(
        level=logging_config.level, redact_secrets=logging_config.redaction
    )
    logger.debug("Debug level set")

    try:
        config.validate_sources()
    except ConfigurationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE

    logger.debug(
        f"Vault Address: {config.vault_address}",
        extra={
            "event_type": "run_config",
            "extra_data": {
                "secret_config_file": config.secret_config_file,
                "inline_config": bool(config.secret_config),
                "namespace": config.vault_namespace,
            },
        },
    )

    return run(config)


if __name__ == "__main__":
    sys.exit(main())
