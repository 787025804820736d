#!/usr/bin/env python3
"""CLI commands for kolour images."""

from pathlib import Path

import click

from kolours.core.config import Settings
from kolours.image_cid.config import (
    create_image_cid_service,
    create_ipfs_http_client,
    create_redis_client,
    ipfs_gateway_url,
)
from kolours.image_cid.exceptions import (
    InvalidKolourError,
    KolourImageError,
    LockError,
    LockTimeout,
)
from kolours.image_cid.generator import create_kolour_image
from kolours.image_cid.locking import RedisLockManager
from kolours.image_cid.models import Kolour

EXIT_FAILURE = 1
EXIT_BACKEND_ERROR = 3
EXIT_LOCK_TIMEOUT = 4


def _parse_kolour(ctx: click.Context, param: click.Parameter, value: str) -> Kolour:
    try:
        return Kolour.parse(value)
    except InvalidKolourError as e:
        raise click.BadParameter(str(e)) from e


@click.group()
def cli():
    """Kolour image management commands."""
    pass


@cli.command()
@click.argument("kolour", callback=_parse_kolour)
@click.pass_context
def cid(ctx: click.Context, kolour: Kolour):
    """Print the image CID of KOLOUR, generating and uploading it if needed."""
    settings = Settings()
    redis_client = create_redis_client(settings)
    try:
        with create_ipfs_http_client(settings) as http_client:
            service = create_image_cid_service(settings, redis_client, http_client)
            image_cid = service.get_image_cid(kolour)
    except LockTimeout as e:
        click.echo(f"Error: {e}. Another process is generating this image, retry shortly.", err=True)
        ctx.exit(EXIT_LOCK_TIMEOUT)
    except KolourImageError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(EXIT_FAILURE)
    finally:
        redis_client.close()

    click.echo(f"Kolour: {kolour.css}")
    click.echo(f"CID: {image_cid}")
    click.echo(f"URL: {ipfs_gateway_url(settings, image_cid)}")


@cli.command()
@click.argument("kolour", callback=_parse_kolour)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Output PNG path (default: <KOLOUR>.png)",
)
def render(kolour: Kolour, output: Path | None):
    """Render the image of KOLOUR to a PNG file without uploading it."""
    output = output or Path(f"{kolour.hex}.png")
    data = create_kolour_image(kolour)
    output.write_bytes(data)
    click.echo(f"Wrote {len(data)} bytes to {output}")


@cli.command("lock-status")
@click.argument("kolour", callback=_parse_kolour)
@click.pass_context
def lock_status(ctx: click.Context, kolour: Kolour):
    """Show whether the generation lock of KOLOUR is held.

    Exit code 0 if held, 1 if free.
    """
    settings = Settings()
    redis_client = create_redis_client(settings)
    try:
        locked = RedisLockManager(redis_client).is_locked(kolour.lock_key)
    except LockError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(EXIT_BACKEND_ERROR)
    finally:
        redis_client.close()

    if locked:
        click.echo(f"Lock '{kolour.lock_key}' is held")
        ctx.exit(0)
    click.echo(f"Lock '{kolour.lock_key}' is free")
    ctx.exit(1)


if __name__ == "__main__":
    cli()
