from __future__ import annotations

import json
import shutil
import subprocess
from typing import Sequence

from whoisit.domain.ports.credentials import TokenCredentialProtocol


class AzureCliCredential(TokenCredentialProtocol):
    """
    Назначение:
        Токен из кэша Azure CLI (`az account get-access-token`).
    Ограничения:
        - Требует установленный az и выполненный `az login`; иначе источник недоступен (None).
    """

    name = "azure_cli"

    def __init__(self, tenant_id: str | None = None, timeout_seconds: float = 30.0, executable: str = "az"):
        self._tenant_id = tenant_id
        self._timeout_seconds = timeout_seconds
        self._executable = executable
        self.unavailable_reason: str | None = None

    def get_token(self, scopes: Sequence[str]) -> str | None:
        az_path = shutil.which(self._executable)
        if az_path is None:
            self.unavailable_reason = "Azure CLI not found on PATH"
            return None

        resource = _resource_from_scopes(scopes)
        cmd = [az_path, "account", "get-access-token", "--output", "json", "--resource", resource]
        if self._tenant_id:
            cmd += ["--tenant", self._tenant_id]

        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout_seconds,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            self.unavailable_reason = f"Failed to invoke Azure CLI: {exc}"
            return None

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            self.unavailable_reason = stderr.splitlines()[0] if stderr else f"az exited with {completed.returncode}"
            return None

        try:
            payload = json.loads(completed.stdout or "{}")
        except ValueError:
            self.unavailable_reason = "Azure CLI returned invalid JSON"
            return None
        token = payload.get("accessToken") if isinstance(payload, dict) else None
        if not token:
            self.unavailable_reason = "Azure CLI returned no access token"
            return None
        return token


def _resource_from_scopes(scopes: Sequence[str]) -> str:
    scope = scopes[0] if scopes else "https://graph.microsoft.com/.default"
    if scope.endswith("/.default"):
        return scope[: -len("/.default")]
    return scope
