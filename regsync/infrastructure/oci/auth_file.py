"""Registry credentials in the containers-auth.json(5) format."""

import asyncio
import base64
import json
import os
from pathlib import Path
from typing import Any

from regsync.domain.mirror.model.value import Credentials


def encode_auth(credentials: Credentials) -> str:
    raw = f"{credentials.username}:{credentials.password}".encode()
    return base64.b64encode(raw).decode()


def decode_auth(auth: str) -> Credentials:
    username, _, password = base64.b64decode(auth).decode().partition(":")
    return Credentials(username=username, password=password)


class AuthFile:
    """Auth file shared by the registry client and the copy tool.

    Concurrent logins write through a lock; the file is replaced atomically so
    a copy process never sees a half-written file.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {"auths": {}}
        data = json.loads(self._path.read_text() or "{}")
        data.setdefault("auths", {})
        return data

    def get(self, registry: str) -> Credentials | None:
        entry = self._read()["auths"].get(registry)
        if not entry or "auth" not in entry:
            return None
        return decode_auth(entry["auth"])

    async def store(self, registry: str, credentials: Credentials) -> None:
        async with self._lock:
            data = self._read()
            data["auths"][registry] = {"auth": encode_auth(credentials)}
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(json.dumps(data, indent=2))
            os.chmod(tmp, 0o600)
            tmp.replace(self._path)
