"""Sync command: mirror local image bundles to remote registries."""

import asyncio
import sys
from pathlib import Path

import cyclopts
import logfire

from regsync.cli.console import get_console
from regsync.config import Config, configure_logging
from regsync.domain.mirror.model.value import ImageBundle, SyncReport
from regsync.domain.mirror.service import MirrorService
from regsync.domain.shared.error import RegSyncError
from regsync.infrastructure.di import create_container

app = cyclopts.App(name="sync", help="Mirror image bundles to destination registries")


def parse_bundle(value: str) -> ImageBundle:
    """Parse ``NAME=PATH[@PORT]`` (or just ``PATH``) into an ImageBundle.

    Raises:
        ValueError: If the port is not a number or the path is empty.
    """
    name, sep, location = value.partition("=")
    if not sep:
        name, location = "", value

    path, at, port = location.rpartition("@")
    if not at or not (port.isascii() and port.isdigit()):
        path, port = location, ""
    if not path:
        raise ValueError(f"bundle {value!r} has no path")

    root = Path(path).expanduser()
    return ImageBundle(
        mount_point=name or root.name,
        root=root,
        port=int(port) if port else None,
    )


async def _run(
    config: Config,
    bundles: list[ImageBundle],
    hosts: list[str],
    timeout: float | None,
) -> SyncReport:
    container = create_container(config)
    try:
        async with container() as run:
            service = await run.get(MirrorService)
            return await service.sync(bundles, hosts, timeout=timeout)
    finally:
        await container.close()


@app.default
def sync(
    *hosts: str,
    bundle: list[str],
    timeout: float | None = None,
    quiet: bool = False,
) -> None:
    """Copy every image of every bundle to every destination host.

    Args:
        hosts: Destination registry hosts, optionally with a port.
        bundle: Bundle to mirror as NAME=PATH[@PORT]; the registry storage is
                read from PATH/registry. Repeat for several bundles.
        timeout: Overall deadline in seconds (default: sync.timeout from config).
        quiet: Only print errors and the final summary.
    """
    console = get_console()
    if not hosts:
        console.error("No destination hosts given")
        sys.exit(2)

    config = Config()  # type: ignore[call-arg]
    if quiet:
        config.logging.level = "WARNING"
        console.quiet = True
    configure_logging(config.logging)
    logfire.configure(send_to_logfire="if-token-present", service_name="regsync", console=False)
    logfire.instrument_httpx()

    try:
        bundles = [parse_bundle(b) for b in bundle]
    except ValueError as e:
        console.error(str(e), hint="Use NAME=PATH[@PORT]")
        sys.exit(2)

    deadline = timeout if timeout is not None else config.sync.timeout
    try:
        with console.progress(f"Mirroring {len(bundles)} bundle(s) to {len(hosts)} host(s)"):
            report = asyncio.run(_run(config, bundles, list(hosts), deadline))
    except RegSyncError as e:
        console.error(f"{e.code}: {e.message}")
        sys.exit(1)
    except TimeoutError:
        console.error("Sync did not finish before the deadline")
        sys.exit(1)

    console.sync_report(report)
    console.success(f"Mirrored {report.image_count} images")
