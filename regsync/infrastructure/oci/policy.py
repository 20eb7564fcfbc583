"""Signature verification policy as a containers-policy.json(5) file."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Self

from regsync.domain.shared.error import PolicyInitError

# Equivalent of an empty/default trust policy: every image is accepted
DEFAULT_POLICY: dict[str, Any] = {"default": [{"type": "insecureAcceptAnything"}]}


class PolicyFile:
    """A policy file handed to the copy tool.

    Files written by ``FilePolicyProvider`` are owned and deleted on
    ``release()``; user-supplied files are left alone.
    """

    def __init__(self, path: Path, owned: bool) -> None:
        self._path = path
        self._owned = owned
        self._released = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        if self._owned:
            self._path.unlink(missing_ok=True)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


def _validate_policy(policy: Any, source: str) -> None:
    if not isinstance(policy, dict) or not isinstance(policy.get("default"), list):
        raise PolicyInitError(f"policy {source} has no 'default' requirement list")
    if not policy["default"]:
        raise PolicyInitError(f"policy {source} has an empty 'default' requirement list")


class FilePolicyProvider:
    """Builds policy contexts for the copy tool.

    Args:
        policy_file: Existing policy to use as-is. When unset, an
            accept-anything policy is written to a fresh temporary file.
        tmp_dir: Directory for temporary policy files.
    """

    def __init__(self, policy_file: Path | None = None, tmp_dir: Path | None = None) -> None:
        self._policy_file = policy_file
        self._tmp_dir = tmp_dir

    def create(self) -> PolicyFile:
        if self._policy_file is not None:
            try:
                policy = json.loads(self._policy_file.read_text())
            except (OSError, json.JSONDecodeError) as e:
                raise PolicyInitError(f"cannot load policy {self._policy_file}: {e}") from e
            _validate_policy(policy, str(self._policy_file))
            return PolicyFile(self._policy_file, owned=False)

        try:
            fd, name = tempfile.mkstemp(prefix="policy-", suffix=".json", dir=self._tmp_dir)
            with os.fdopen(fd, "w") as f:
                json.dump(DEFAULT_POLICY, f)
        except OSError as e:
            raise PolicyInitError(f"cannot write default policy: {e}") from e
        return PolicyFile(Path(name), owned=True)
