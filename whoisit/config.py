from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import yaml

DEFAULT_CREDENTIAL_CHAIN: tuple[str, ...] = ("environment", "azure_cli", "interactive")
KNOWN_CREDENTIALS = frozenset(DEFAULT_CREDENTIAL_CHAIN)


@dataclass(frozen=True)
class Settings:
    # Graph API
    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    authority_host: str = "https://login.microsoftonline.com"
    tenant_id: str | None = None
    client_id: str | None = None
    credential_chain: tuple[str, ...] = DEFAULT_CREDENTIAL_CHAIN
    timeout_seconds: float = 30.0
    retries: int = 0
    retry_backoff_seconds: float = 0.5

    # Paths
    photos_dir: str = "photos"
    log_dir: str | None = None

    # Misc
    log_level: str = "INFO"
    max_depth: int = 25
    program_name: str = "whoisit"


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


def _read_yaml_config(path: Path) -> dict:
    if not path.exists():
        return {}
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid config file {path}: {exc}") from exc
        if not isinstance(data, dict):
            return {}
        return data


def _env_get(name: str) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def parseCredentialChain(value: str | list | tuple | None) -> tuple[str, ...] | None:
    """
    Назначение:
        Разбирает порядок цепочки учётных данных ("environment,azure_cli" или список из YAML).

    Выходные данные:
        tuple[str, ...] | None
            None, если значение не задано.

    Ошибки:
        ValueError: неизвестное имя источника или пустая цепочка.
    """
    if value is None:
        return None
    if isinstance(value, str):
        items = [part.strip().lower() for part in value.split(",")]
    else:
        items = [str(part).strip().lower() for part in value]
    chain = tuple(item for item in items if item)
    if not chain:
        raise ValueError("credential_chain must not be empty")
    unknown = [item for item in chain if item not in KNOWN_CREDENTIALS]
    if unknown:
        raise ValueError(f"Unknown credential(s) in chain: {', '.join(unknown)}")
    return chain


def loadSettings(
    config_path: str | None,
    cli_overrides: dict,
) -> LoadedSettings:
    """
    Priority: CLI > ENV > config > defaults
    """
    sources: list[str] = []
    defaults = Settings()

    # 1) config file
    cfg: dict = {}
    if config_path:
        cfg = _read_yaml_config(Path(config_path))
        if cfg:
            sources.append("config")

    # 2) env
    env = {
        "graph_base_url": _env_get("WHOISIT_GRAPH_URL"),
        "authority_host": _env_get("WHOISIT_AUTHORITY_HOST"),
        "tenant_id": _env_get("WHOISIT_TENANT_ID"),
        "client_id": _env_get("WHOISIT_CLIENT_ID"),
        "credential_chain": _env_get("WHOISIT_CREDENTIAL_CHAIN"),
        "timeout_seconds": _env_get("WHOISIT_TIMEOUT_SECONDS"),
        "retries": _env_get("WHOISIT_RETRIES"),
        "photos_dir": _env_get("WHOISIT_PHOTOS_DIR"),
        "log_dir": _env_get("WHOISIT_LOG_DIR"),
        "log_level": _env_get("WHOISIT_LOG_LEVEL"),
        "max_depth": _env_get("WHOISIT_MAX_DEPTH"),
        "program_name": _env_get("WHOISIT_PROGRAM_NAME"),
    }
    if any(v is not None for v in env.values()):
        sources.append("env")

    def parse_int(name: str, v: str | None) -> int | None:
        if v is None:
            return None
        try:
            return int(v)
        except ValueError as exc:
            raise ValueError(f"Invalid integer value for {name}: {v}") from exc

    def parse_float(name: str, v: str | None) -> float | None:
        if v is None:
            return None
        try:
            return float(v)
        except ValueError as exc:
            raise ValueError(f"Invalid number value for {name}: {v}") from exc

    # merge config -> env -> cli
    merged = {
        "graph_base_url": cfg.get("graph_base_url", defaults.graph_base_url),
        "authority_host": cfg.get("authority_host", defaults.authority_host),
        "tenant_id": cfg.get("tenant_id", defaults.tenant_id),
        "client_id": cfg.get("client_id", defaults.client_id),
        "credential_chain": parseCredentialChain(cfg.get("credential_chain")) or defaults.credential_chain,
        "timeout_seconds": cfg.get("timeout_seconds", defaults.timeout_seconds),
        "retries": cfg.get("retries", defaults.retries),
        "retry_backoff_seconds": cfg.get("retry_backoff_seconds", defaults.retry_backoff_seconds),

        "photos_dir": cfg.get("photos_dir", defaults.photos_dir),
        "log_dir": cfg.get("log_dir", defaults.log_dir),

        "log_level": cfg.get("log_level", defaults.log_level),
        "max_depth": cfg.get("max_depth", defaults.max_depth),
        "program_name": cfg.get("program_name", defaults.program_name),
    }

    # apply env
    if env["graph_base_url"] is not None:
        merged["graph_base_url"] = env["graph_base_url"]
    if env["authority_host"] is not None:
        merged["authority_host"] = env["authority_host"]
    if env["tenant_id"] is not None:
        merged["tenant_id"] = env["tenant_id"]
    if env["client_id"] is not None:
        merged["client_id"] = env["client_id"]
    if env["credential_chain"] is not None:
        merged["credential_chain"] = parseCredentialChain(env["credential_chain"])
    if env["timeout_seconds"] is not None:
        merged["timeout_seconds"] = parse_float("WHOISIT_TIMEOUT_SECONDS", env["timeout_seconds"])
    if env["retries"] is not None:
        merged["retries"] = parse_int("WHOISIT_RETRIES", env["retries"])

    if env["photos_dir"] is not None:
        merged["photos_dir"] = env["photos_dir"]
    if env["log_dir"] is not None:
        merged["log_dir"] = env["log_dir"]

    if env["log_level"] is not None:
        merged["log_level"] = env["log_level"]
    if env["max_depth"] is not None:
        merged["max_depth"] = parse_int("WHOISIT_MAX_DEPTH", env["max_depth"])
    if env["program_name"] is not None:
        merged["program_name"] = env["program_name"]

    # 3) apply CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")

    for k, v in cli_overrides.items():
        if v is None:
            continue
        merged[k] = v

    if int(merged["max_depth"]) < 0:
        raise ValueError("max_depth must be >= 0")

    settings = Settings(
        graph_base_url=str(merged["graph_base_url"]).rstrip("/"),
        authority_host=str(merged["authority_host"]).rstrip("/"),
        tenant_id=merged["tenant_id"],
        client_id=merged["client_id"],
        credential_chain=tuple(merged["credential_chain"]),
        timeout_seconds=float(merged["timeout_seconds"]),
        retries=int(merged["retries"]),
        retry_backoff_seconds=float(merged["retry_backoff_seconds"]),
        photos_dir=str(merged["photos_dir"]),
        log_dir=merged["log_dir"],
        log_level=str(merged["log_level"]),
        max_depth=int(merged["max_depth"]),
        program_name=str(merged["program_name"]),
    )

    return LoadedSettings(settings=settings, sources_used=sources)
