"""Command-line entry point."""
from __future__ import annotations

import logging
import signal
from pathlib import Path
from typing import Optional

import click
import httpx

from . import __version__
from ._clock import CancelToken
from .client import Leonardo
from .cookies import FileCookieStore
from .exceptions import LeonardoError

logger = logging.getLogger("leonai")


@click.group(context_settings={"auto_envvar_prefix": "LEONAI"})
@click.version_option(version=__version__, prog_name="leonai")
def leonai() -> None:
    """Leonardo.ai motion generation from the command line."""


@leonai.command("version")
def version() -> None:
    """Print the version."""
    click.echo(__version__)


@leonai.command("generate-video")
@click.option(
    "--cookie",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="File holding the app.leonardo.ai cookie header.",
)
@click.option(
    "--image",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Source .jpg, .jpeg or .png image.",
)
@click.option("--motion-strength", type=int, default=None, help="Motion strength, defaults to 5.")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to save the MP4. Omit to only print the URL.",
)
@click.option("--proxy", default=None, help="Proxy URL for all requests.")
@click.option("--wait", type=float, default=None, help="Seconds between requests, defaults to 1.")
@click.option("--debug", is_flag=True, help="Log every request and response.")
def generate_video(
    cookie: Path,
    image: Path,
    motion_strength: Optional[int],
    output: Optional[Path],
    proxy: Optional[str],
    wait: Optional[float],
    debug: bool,
) -> None:
    """Animate IMAGE and print (or download) the resulting video."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(name)s  %(levelname)s  %(message)s",
        datefmt="%H:%M:%S",
    )

    cancel = CancelToken()
    previous = signal.signal(signal.SIGINT, lambda *_: cancel.cancel())
    try:
        client = Leonardo(
            cookie_store=FileCookieStore(cookie),
            wait=wait,
            proxy=proxy,
            debug=debug,
        )
        try:
            client.start(cancel)
            result = client.motion.create(image, motion_strength=motion_strength, cancel=cancel)
            click.echo(f"id: {result.asset_id}")
            click.echo(f"url: {result.url}")
            if output is not None:
                client.download(result.url, output, cancel=cancel)
                click.echo(f"saved: {output}")
        finally:
            try:
                client.close()
            except OSError as exc:
                logger.warning("couldn't save cookie: %s", exc)
    except (LeonardoError, httpx.HTTPError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        signal.signal(signal.SIGINT, previous)


def main() -> None:
    leonai()


if __name__ == "__main__":
    main()
