#!/usr/bin/env python3
"""
HSM Signer CLI

Operator commands for inspecting and exercising configured HSM providers.
"""

import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional

import click

from .config import HsmConfig, config_from_env, load_config
from .providers import ProviderFactory
from .service import HsmService


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


async def _run(service: HsmService, operation, *args, **kwargs) -> Dict[str, Any]:
    try:
        return await operation(service, *args, **kwargs)
    finally:
        await service.close()


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Configuration file (YAML or JSON); defaults to HSM_* environment variables"
)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level"
)
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]):
    """Inspect and exercise HSM signing providers."""
    try:
        config: HsmConfig = load_config(config_path) if config_path else config_from_env()
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    logging.basicConfig(
        level=log_level.upper() if log_level else config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Each invocation gets its own factory; nothing outlives the command
    ctx.obj = HsmService(config, factory=ProviderFactory())


@main.command("providers")
@click.pass_obj
def list_providers(service: HsmService):
    """List configured providers (secrets masked)."""
    _echo_json({
        "enabled": service.is_enabled(),
        "default_provider": service.config.default_provider,
        "providers": service.list_providers(),
    })


@main.command("sign")
@click.argument("data_hash")
@click.option("--provider", "-p", default=None, help="Configured provider id")
@click.option("--key-id", default=None, help="Key id override")
@click.option("--algorithm", default=None, help="Algorithm override")
@click.pass_obj
def sign(service: HsmService, data_hash: str, provider: Optional[str],
         key_id: Optional[str], algorithm: Optional[str]):
    """Sign a hex-encoded DATA_HASH."""
    options = {
        k: v for k, v in
        {"provider": provider, "key_id": key_id, "algorithm": algorithm}.items()
        if v
    }
    result = asyncio.run(_run(service, HsmService.sign, data_hash, options))
    _echo_json(result)
    if not result.get("success"):
        sys.exit(1)


@main.command("test")
@click.option("--provider", "-p", default=None, help="Configured provider id")
@click.pass_obj
def test_connection(service: HsmService, provider: Optional[str]):
    """Check that a provider is usable."""
    result = asyncio.run(_run(service, HsmService.test_connection, provider))
    _echo_json(result)
    if not result.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
