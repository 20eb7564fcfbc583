"""ImageCopier adapter that shells out to ``skopeo copy``."""

import asyncio

import logfire

from regsync.domain.mirror.model.reference import TaggedImageRef
from regsync.domain.mirror.model.value import ImageListSelection, SystemContext
from regsync.domain.mirror.port.image_copier import PolicyContext
from regsync.domain.shared.error import TransferError

_STDERR_TAIL = 2000


def _tls_verify(ctx: SystemContext) -> str:
    return "false" if ctx.insecure_skip_tls_verify else "true"


class SkopeoImageCopier:
    """Copies images between registries with skopeo.

    A copy that has started is never killed on cancellation: the subprocess is
    left to finish and the cancellation is re-raised afterwards.
    """

    def __init__(self, binary: str = "skopeo") -> None:
        self._binary = binary

    def build_args(
        self,
        policy: PolicyContext,
        source: TaggedImageRef,
        destination: str,
        source_ctx: SystemContext,
        destination_ctx: SystemContext,
        selection: ImageListSelection,
    ) -> list[str]:
        args = [self._binary, "copy", "--policy", str(policy.path)]
        if source_ctx.auth_file is not None:
            args += ["--src-authfile", str(source_ctx.auth_file)]
        if destination_ctx.auth_file is not None:
            args += ["--dest-authfile", str(destination_ctx.auth_file)]
        args += [
            f"--src-tls-verify={_tls_verify(source_ctx)}",
            f"--dest-tls-verify={_tls_verify(destination_ctx)}",
        ]
        if selection == ImageListSelection.ALL:
            args.append("--all")
        args += [f"docker://{source}", f"docker://{destination}"]
        return args

    async def copy(
        self,
        policy: PolicyContext,
        source: TaggedImageRef,
        destination: str,
        *,
        source_ctx: SystemContext,
        destination_ctx: SystemContext,
        selection: ImageListSelection = ImageListSelection.SYSTEM,
    ) -> None:
        args = self.build_args(policy, source, destination, source_ctx, destination_ctx, selection)
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise TransferError(
                f"cannot run {self._binary}: {e}", source=str(source), destination=destination
            ) from e

        communicate = asyncio.ensure_future(proc.communicate())
        try:
            _, stderr = await asyncio.shield(communicate)
        except asyncio.CancelledError:
            logfire.warn("Copy cancelled, waiting for skopeo to finish", source=str(source))
            await communicate
            raise

        if proc.returncode != 0:
            message = (stderr or b"").decode(errors="replace").strip()[-_STDERR_TAIL:]
            logfire.error(
                "skopeo copy failed",
                source=str(source),
                destination=destination,
                exit_code=proc.returncode,
            )
            raise TransferError(
                f"skopeo copy exited with code {proc.returncode}: {message}",
                source=str(source),
                destination=destination,
            )
        logfire.info("Copied image", source=str(source), destination=destination)
