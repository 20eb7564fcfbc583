"""Main CLI application using Cyclopts."""

import cyclopts

from regsync.cli.commands import resolve, sync

app = cyclopts.App(
    name="regsync",
    help="Mirror local image bundles to remote container registries",
)

app.command(sync.app, name="sync")
app.command(resolve.app, name="resolve")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
