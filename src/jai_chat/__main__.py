"""CLI entry point for jai-chat."""

from __future__ import annotations

import argparse
import sys

from jai_chat.config import load_config
from jai_chat.core.modes import list_modes
from jai_chat.log import setup_logging


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="jai-chat",
        description="Web chat service with personality modes and LLM provider fallback",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (
        ("serve", "Start the HTTP server"),
        ("config-check", "Validate configuration"),
        ("model-info", "Show provider fallback order and generation settings"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("-c", "--config", default="config.yaml", help="Path to config file")
        sub.add_argument("-e", "--env", default=".env", help="Path to .env file")

    subparsers.add_parser("modes", help="List personality modes")

    args = parser.parse_args()

    if args.command is None:
        # Default to serve
        args.command = "serve"
        args.config = "config.yaml"
        args.env = ".env"

    if args.command == "config-check":
        _check_config(args.config, args.env)
    elif args.command == "model-info":
        _model_info(args.config, args.env)
    elif args.command == "modes":
        _list_modes()
    elif args.command == "serve":
        _run(args.config, args.env)


def _check_config(config_path: str, env_path: str) -> None:
    """Validate configuration and print summary."""
    try:
        config = load_config(config_path, env_path)
        print(f"Configuration valid: {config_path}")
        print(f"  Data directory: {config.data_dir}")
        print(f"  Storage: {config.storage.db_path}")
        print(f"  Providers configured: {len(config.providers)} ({len(config.active_providers())} with credentials)")
        for provider in config.providers:
            status = "ok" if provider.has_credentials else "missing api_key"
            print(f"    - {provider.name} [{provider.kind}: {provider.model}] {status}")
        print(f"  Admin API: {'enabled' if config.admin.token else 'disabled'}")
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def _model_info(config_path: str, env_path: str) -> None:
    """Show the provider fallback chain."""
    try:
        config = load_config(config_path, env_path)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    gen = config.generation
    print("Provider Fallback Chain")
    print("=" * 50)
    active = config.active_providers()
    if not active:
        print("\n  (no providers with credentials - every turn gets the degraded response)")
    for position, provider in enumerate(active, start=1):
        print(f"\n  {position}. {provider.name}")
        print(f"    Kind    : {provider.kind}")
        print(f"    Model   : {provider.model}")
        print(f"    Base URL: {provider.base_url or '(SDK default)'}")
    print()
    print(f"  Temperature : {gen.temperature}")
    print(f"  Max tokens  : {gen.max_tokens}")
    print(f"  Timeout     : {gen.timeout}s per provider")
    print(f"  Injection p : {gen.injection_probability}")
    print()


def _list_modes() -> None:
    for mode in list_modes():
        flag = " (customizable)" if mode.customizable else ""
        print(f"{mode.key:<16} {mode.name} - {mode.description}{flag}")


def _run(config_path: str, env_path: str) -> None:
    """Load config and start the HTTP server."""
    try:
        config = load_config(config_path, env_path)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Copy config.example.yaml to config.yaml and set your provider keys in .env")
        sys.exit(1)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_level, config.log_format)

    import uvicorn

    from jai_chat.api.server import create_app
    from jai_chat.app import JaiChatApp

    app = create_app(JaiChatApp(config))
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.log_level.lower(),
        proxy_headers=config.server.trust_proxy,
    )


if __name__ == "__main__":
    main()
