"""
Command-line interface for the crisis allowlist engine.

Commands:
- check: Decide whether one or more URLs are protected
- sync: Fetch the remote allowlist now
- status: Show the cached allowlist version and refresh state
- self-test: Validate configuration and probe the decision path
- config: Configuration management (show, init, validate)

Environment variables (a .env file is honored) override the file
configuration: CRISIS_ALLOWLIST_ENDPOINT, CRISIS_ALLOWLIST_HMAC_SECRET,
CRISIS_ALLOWLIST_STATE_FILE.
"""

import argparse
import asyncio
import json
import os
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from . import __version__
from .audit_logger import create_logger
from .config import (
    EngineConfig,
    FuzzyLogConfig,
    FuzzyMatchConfig,
    LoggingConfig,
    PersistenceConfig,
    RetryConfig,
    SyncConfig,
)
from .engine import ProtectionEngine
from .enums import MatchMethod
from .exceptions import PersistenceError, TamperingError
from .i18n import get_message
from .self_test import DEFAULT_HMAC_SECRET, run_self_test


DEFAULT_ENDPOINT = "https://allowlist.example.org/v1/crisis-allowlist"
DEFAULT_CONFIG_DIR = Path.home() / ".crisis_allowlist"

ENV_ENDPOINT = "CRISIS_ALLOWLIST_ENDPOINT"
ENV_HMAC_SECRET = "CRISIS_ALLOWLIST_HMAC_SECRET"
ENV_STATE_FILE = "CRISIS_ALLOWLIST_STATE_FILE"


def create_default_config(
    language: str = "en",
    state_file: Optional[Path] = None,
    hmac_secret: str = DEFAULT_HMAC_SECRET,
    endpoint: str = DEFAULT_ENDPOINT,
) -> EngineConfig:
    """
    Create a default engine configuration.

    Args:
        language: Output language ('de' or 'en')
        state_file: Path to the snapshot state file
        hmac_secret: Secret for HMAC protection of the state file
        endpoint: Allowlist sync endpoint

    Returns:
        EngineConfig with default settings
    """
    if state_file is None:
        state_file = DEFAULT_CONFIG_DIR / "state.json"

    return EngineConfig(
        sync=SyncConfig(endpoint=endpoint),
        retry=RetryConfig(),
        fuzzy=FuzzyMatchConfig(),
        fuzzy_log=FuzzyLogConfig(),
        persistence=PersistenceConfig(
            state_file_path=state_file,
            hmac_secret=hmac_secret,
        ),
        logging=LoggingConfig(),
        language=language,
    )


def load_config_from_file(config_path: Path) -> Optional[EngineConfig]:
    """
    Load configuration from a JSON file.

    Missing sections and keys fall back to defaults.

    Returns:
        EngineConfig if successful, None otherwise
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        sync_data = data.get("sync", {})
        defaults = SyncConfig(endpoint=DEFAULT_ENDPOINT)
        sync = SyncConfig(
            endpoint=sync_data.get("endpoint", DEFAULT_ENDPOINT),
            timeout_seconds=sync_data.get("timeout_seconds", defaults.timeout_seconds),
            normal_ttl_ms=sync_data.get("normal_ttl_ms", defaults.normal_ttl_ms),
            emergency_ttl_ms=sync_data.get("emergency_ttl_ms", defaults.emergency_ttl_ms),
            staleness_threshold_ms=sync_data.get("staleness_threshold_ms", defaults.staleness_threshold_ms),
            check_interval_seconds=sync_data.get("check_interval_seconds", defaults.check_interval_seconds),
            allow_insecure=sync_data.get("allow_insecure", False),
            status_endpoint=sync_data.get("status_endpoint"),
        )

        retry_data = data.get("retry", {})
        retry_defaults = RetryConfig()
        retry = RetryConfig(
            max_retries=retry_data.get("max_retries", retry_defaults.max_retries),
            base_delay_seconds=retry_data.get("base_delay_seconds", retry_defaults.base_delay_seconds),
            max_delay_seconds=retry_data.get("max_delay_seconds", retry_defaults.max_delay_seconds),
            retryable_errors=retry_data.get("retryable_errors", retry_defaults.retryable_errors),
        )

        fuzzy_data = data.get("fuzzy", {})
        fuzzy = FuzzyMatchConfig(
            enabled=fuzzy_data.get("enabled", True),
            min_length=fuzzy_data.get("min_length", 10),
            max_length=fuzzy_data.get("max_length", 256),
            threshold=fuzzy_data.get("threshold", 2),
        )

        fuzzy_log_data = data.get("fuzzy_log", {})
        fuzzy_log = FuzzyLogConfig(
            upload_endpoint=fuzzy_log_data.get("upload_endpoint"),
            max_queue_size=fuzzy_log_data.get("max_queue_size", 500),
            batch_size=fuzzy_log_data.get("batch_size", 50),
            timeout_seconds=fuzzy_log_data.get("timeout_seconds", 5.0),
        )

        persistence_data = data.get("persistence", {})
        state_file_path = persistence_data.get("state_file_path")
        persistence = PersistenceConfig(
            state_file_path=Path(state_file_path) if state_file_path else DEFAULT_CONFIG_DIR / "state.json",
            hmac_secret=persistence_data.get("hmac_secret", DEFAULT_HMAC_SECRET),
        )

        logging_data = data.get("logging", {})
        logging_config = LoggingConfig(
            level=logging_data.get("level", "info"),
            audit_mode=logging_data.get("audit_mode", False),
            audit_signing_key=logging_data.get("audit_signing_key"),
            output_format=logging_data.get("output_format", "text"),
        )

        return EngineConfig(
            sync=sync,
            retry=retry,
            fuzzy=fuzzy,
            fuzzy_log=fuzzy_log,
            persistence=persistence,
            logging=logging_config,
            language=data.get("language", "en"),
        )

    except (json.JSONDecodeError, AttributeError, TypeError) as e:
        print(get_message("config.invalid", error=e), file=sys.stderr)
        return None
    except OSError:
        return None


def save_config_to_file(config: EngineConfig, config_path: Path) -> bool:
    """
    Save configuration to a JSON file.

    Returns:
        True if successful, False otherwise
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "sync": {
                "endpoint": config.sync.endpoint,
                "timeout_seconds": config.sync.timeout_seconds,
                "normal_ttl_ms": config.sync.normal_ttl_ms,
                "emergency_ttl_ms": config.sync.emergency_ttl_ms,
                "staleness_threshold_ms": config.sync.staleness_threshold_ms,
                "check_interval_seconds": config.sync.check_interval_seconds,
                "allow_insecure": config.sync.allow_insecure,
                "status_endpoint": config.sync.status_endpoint,
            },
            "retry": {
                "max_retries": config.retry.max_retries,
                "base_delay_seconds": config.retry.base_delay_seconds,
                "max_delay_seconds": config.retry.max_delay_seconds,
                "retryable_errors": list(config.retry.retryable_errors),
            },
            "fuzzy": {
                "enabled": config.fuzzy.enabled,
                "min_length": config.fuzzy.min_length,
                "max_length": config.fuzzy.max_length,
                "threshold": config.fuzzy.threshold,
            },
            "fuzzy_log": {
                "upload_endpoint": config.fuzzy_log.upload_endpoint,
                "max_queue_size": config.fuzzy_log.max_queue_size,
                "batch_size": config.fuzzy_log.batch_size,
                "timeout_seconds": config.fuzzy_log.timeout_seconds,
            },
            "persistence": {
                "state_file_path": str(config.persistence.state_file_path),
                "hmac_secret": config.persistence.hmac_secret,
            },
            "logging": {
                "level": config.logging.level,
                "audit_mode": config.logging.audit_mode,
                "audit_signing_key": config.logging.audit_signing_key,
                "output_format": config.logging.output_format,
            },
            "language": config.language,
        }

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        return True

    except (OSError, TypeError) as e:
        print(f"Error saving config: {e}", file=sys.stderr)
        return False


def apply_env_overrides(config: EngineConfig) -> EngineConfig:
    """Override endpoint, HMAC secret and state file from the environment."""
    endpoint = os.getenv(ENV_ENDPOINT)
    hmac_secret = os.getenv(ENV_HMAC_SECRET)
    state_file = os.getenv(ENV_STATE_FILE)

    if endpoint:
        config = replace(config, sync=replace(config.sync, endpoint=endpoint))
    if hmac_secret:
        config = replace(config, persistence=replace(config.persistence, hmac_secret=hmac_secret))
    if state_file:
        config = replace(config, persistence=replace(config.persistence, state_file_path=Path(state_file)))
    return config


def resolve_config(args: argparse.Namespace) -> Optional[EngineConfig]:
    """Config file (if given) or defaults, then environment, then --language."""
    config = None
    if getattr(args, "config", None):
        config = load_config_from_file(Path(args.config))
        if config is None:
            print(get_message("config.file_not_found", args.language, path=args.config), file=sys.stderr)
            return None

    if config is None:
        config = create_default_config(language=args.language or "en")

    config = apply_env_overrides(config)
    if args.language:
        config = replace(config, language=args.language)
    return config


def create_engine(config: EngineConfig, verbose: bool = False) -> ProtectionEngine:
    level = "debug" if verbose else "error"
    logger = create_logger(replace(config.logging, level=level))
    return ProtectionEngine(config, logger=logger)


def _format_timestamp(epoch_ms: Optional[int], language: str) -> str:
    if epoch_ms is None:
        return get_message("status.never", language)
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).isoformat()


def _yes_no(value: bool, language: str) -> str:
    return get_message("common.yes" if value else "common.no", language)


async def check_urls(
    urls: list[str],
    config: EngineConfig,
    verbose: bool = False,
) -> int:
    """
    Decide protection for each URL using bundled defaults plus the snapshot.

    Returns:
        Exit code (0 if every URL is protected, 1 otherwise)
    """
    language = config.language
    all_protected = True

    async with create_engine(config, verbose) as engine:
        await engine.start(sync=False)

        for url in urls:
            decision = engine.explain(url)
            all_protected = all_protected and decision.protected

            status = get_message(
                "status.protected" if decision.protected else "status.not_protected", language
            )
            print(f"{url}")
            print(f"  {get_message('cli.result', language, status=status)}")

            if verbose:
                if decision.method == MatchMethod.FUZZY:
                    detail = get_message(
                        "method.fuzzy",
                        language,
                        domain=decision.matched_domain,
                        distance=decision.distance,
                    )
                else:
                    detail = get_message(f"method.{decision.method.value}", language)
                print(f"  {detail}")

    return 0 if all_protected else 1


async def sync_now(config: EngineConfig, force: bool = False, verbose: bool = False) -> int:
    """
    Run one sync.

    Returns:
        Exit code (0 if the allowlist is current, 1 if the sync failed)
    """
    language = config.language

    async with create_engine(config, verbose) as engine:
        await engine.start(sync=False)
        client = engine.sync_client
        result = await (client.force_sync() if force else client.sync())

    if result.changed:
        print(get_message("sync.updated", language, version=result.version))
    else:
        print(get_message("sync.unchanged", language, reason=result.reason))

    if result.is_emergency:
        print(get_message("sync.emergency", language))

    return 0 if result.changed or result.reason in ("not_modified", "same_version") else 1


async def show_status(config: EngineConfig, verbose: bool = False) -> int:
    language = config.language

    async with create_engine(config, verbose) as engine:
        await engine.start(sync=False)
        status = await engine.sync_client.get_sync_status()
        needs_refresh = await engine.sync_client.needs_refresh()
        index_size = len(engine.oracle.index) if engine.oracle.index is not None else 0

    print(get_message("status.header", language))
    print("=" * 60)
    print(f"  {get_message('status.version', language)}: "
          f"{status.version or get_message('status.bundled_only', language)}")
    print(f"  {get_message('status.last_sync', language)}: {_format_timestamp(status.last_sync_at, language)}")
    print(f"  {get_message('status.last_refreshed', language)}: "
          f"{_format_timestamp(status.last_refreshed_at, language)}")
    print(f"  {get_message('status.stale', language)}: {_yes_no(status.is_stale, language)}")
    print(f"  {get_message('status.needs_refresh', language)}: {_yes_no(needs_refresh, language)}")
    print(f"  {get_message('status.domains', language)}: {index_size}")
    if status.is_emergency:
        print(f"  {get_message('sync.emergency', language)}")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the 'check' command."""
    config = resolve_config(args)
    if config is None:
        return 1
    return asyncio.run(check_urls(args.urls, config, verbose=args.verbose))


def cmd_sync(args: argparse.Namespace) -> int:
    """Handle the 'sync' command."""
    config = resolve_config(args)
    if config is None:
        return 1
    return asyncio.run(sync_now(config, force=args.force, verbose=args.verbose))


def cmd_status(args: argparse.Namespace) -> int:
    """Handle the 'status' command."""
    config = resolve_config(args)
    if config is None:
        return 1
    return asyncio.run(show_status(config, verbose=args.verbose))


def cmd_self_test(args: argparse.Namespace) -> int:
    """Handle the 'self-test' command."""
    config = resolve_config(args)
    if config is None:
        return 1

    result = asyncio.run(run_self_test(
        config=config,
        check_connectivity=not args.offline,
        print_output=True,
        language=config.language,
    ))

    return 0 if result.success else 1


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_DIR / "config.json"
    language = args.language or "en"

    if args.action == "show":
        config = load_config_from_file(config_path)
        if config is None:
            print(get_message("config.file_not_found", language, path=config_path))
            print("Use 'config init' to create a default configuration.")
            return 1

        print(f"Configuration from: {config_path}")
        print(f"  Language: {config.language}")
        print(f"  Endpoint: {config.sync.endpoint}")
        print(f"  Allow insecure: {config.sync.allow_insecure}")
        print(f"  Fuzzy matching: {config.fuzzy.enabled} (threshold {config.fuzzy.threshold})")
        print(f"  State file: {config.persistence.state_file_path}")
        print(f"  Log level: {config.logging.level}")
        print(f"  Audit mode: {config.logging.audit_mode}")
        return 0

    elif args.action == "init":
        if config_path.exists() and not args.force:
            print(get_message("config.file_exists", language, path=config_path))
            print("Use --force to overwrite.")
            return 1

        config = create_default_config(language=language)
        if save_config_to_file(config, config_path):
            print(get_message("config.created", language, path=config_path))
            return 0
        return 1

    elif args.action == "validate":
        if not config_path.exists():
            print(get_message("config.file_not_found", language, path=config_path), file=sys.stderr)
            return 1
        config = load_config_from_file(config_path)
        if config is None:
            return 1

        print(get_message("config.valid", language))
        return 0

    return 1


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--language", "-l",
        choices=["de", "en"],
        default=None,
        help="Output language (default: from config, else en)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="crisis-allowlist",
        description=get_message("cli.description"),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    check_parser = subparsers.add_parser(
        "check",
        help="Check whether URLs are protected crisis resources",
    )
    check_parser.add_argument(
        "urls",
        nargs="+",
        help="URLs or hostnames to check (e.g., https://988lifeline.org/)",
    )
    _add_common_arguments(check_parser)
    check_parser.set_defaults(func=cmd_check)

    sync_parser = subparsers.add_parser(
        "sync",
        help="Fetch the remote allowlist now",
    )
    sync_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Skip the conditional request and always download",
    )
    _add_common_arguments(sync_parser)
    sync_parser.set_defaults(func=cmd_sync)

    status_parser = subparsers.add_parser(
        "status",
        help="Show cached allowlist version and refresh state",
    )
    _add_common_arguments(status_parser)
    status_parser.set_defaults(func=cmd_status)

    self_test_parser = subparsers.add_parser(
        "self-test",
        help="Validate configuration and probe protection decisions",
    )
    self_test_parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the endpoint connectivity check",
    )
    _add_common_arguments(self_test_parser)
    self_test_parser.set_defaults(func=cmd_self_test)

    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.add_argument(
        "--language", "-l",
        choices=["de", "en"],
        default=None,
        help="Default language for new configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except TamperingError as e:
        print(get_message("error.tampering", args.language, message=e.message), file=sys.stderr)
        return 2
    except PersistenceError as e:
        print(get_message("error.persistence", args.language, message=e.message), file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print(get_message("cli.interrupted", args.language), file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
