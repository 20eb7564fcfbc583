"""Tests for FilePolicyProvider and the auth file."""

import json
import stat
from pathlib import Path

import pytest

from regsync.domain.mirror.model import Credentials
from regsync.domain.shared.error import PolicyInitError
from regsync.infrastructure.oci.auth_file import AuthFile, decode_auth, encode_auth
from regsync.infrastructure.oci.policy import DEFAULT_POLICY, FilePolicyProvider


class TestFilePolicyProvider:
    def test_default_policy_is_written_and_removed(self, tmp_path: Path):
        policy = FilePolicyProvider(tmp_dir=tmp_path).create()

        assert policy.path.parent == tmp_path
        assert json.loads(policy.path.read_text()) == DEFAULT_POLICY

        policy.release()
        assert not policy.path.exists()

    def test_release_is_idempotent(self, tmp_path: Path):
        policy = FilePolicyProvider(tmp_dir=tmp_path).create()
        policy.release()
        policy.release()
        assert policy.released

    def test_context_manager_releases(self, tmp_path: Path):
        with FilePolicyProvider(tmp_dir=tmp_path).create() as policy:
            path = policy.path
            assert path.exists()
        assert not path.exists()

    def test_user_policy_is_kept(self, tmp_path: Path):
        user_policy = tmp_path / "policy.json"
        user_policy.write_text(json.dumps({"default": [{"type": "reject"}]}))

        policy = FilePolicyProvider(policy_file=user_policy).create()
        assert policy.path == user_policy
        policy.release()
        assert user_policy.exists()

    def test_missing_user_policy(self, tmp_path: Path):
        with pytest.raises(PolicyInitError, match="cannot load policy"):
            FilePolicyProvider(policy_file=tmp_path / "missing.json").create()

    @pytest.mark.parametrize("content", ["not json", "{}", '{"default": []}', "[]"])
    def test_invalid_user_policy(self, tmp_path: Path, content: str):
        user_policy = tmp_path / "policy.json"
        user_policy.write_text(content)
        with pytest.raises(PolicyInitError):
            FilePolicyProvider(policy_file=user_policy).create()

    def test_unwritable_tmp_dir(self, tmp_path: Path):
        with pytest.raises(PolicyInitError, match="cannot write"):
            FilePolicyProvider(tmp_dir=tmp_path / "does-not-exist").create()


class TestAuthFile:
    def test_auth_encoding(self):
        creds = Credentials(username="admin", password="pa:ss")
        assert encode_auth(creds) == "YWRtaW46cGE6c3M="
        assert decode_auth(encode_auth(creds)) == creds

    def test_missing_file_has_no_credentials(self, tmp_path: Path):
        assert AuthFile(tmp_path / "auth.json").get("r1.example.com:5000") is None

    @pytest.mark.asyncio
    async def test_store_keeps_other_entries(self, tmp_path: Path):
        path = tmp_path / "containers" / "auth.json"
        path.parent.mkdir()
        path.write_text(json.dumps({"auths": {"quay.io": {"auth": "eDp5"}}, "credHelpers": {}}))
        auth_file = AuthFile(path)

        await auth_file.store("r1.example.com:5000", Credentials(username="u", password="p"))

        data = json.loads(path.read_text())
        assert set(data["auths"]) == {"quay.io", "r1.example.com:5000"}
        assert "credHelpers" in data
        assert auth_file.get("r1.example.com:5000") == Credentials(username="u", password="p")

    @pytest.mark.asyncio
    async def test_file_is_private(self, tmp_path: Path):
        path = tmp_path / "auth.json"
        await AuthFile(path).store("r1.example.com:5000", Credentials(username="u", password="p"))
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
