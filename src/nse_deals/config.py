"""Application configuration helpers."""
from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Mapping

from .intraday import DEFAULT_BUFFER_RATIO, DEFAULT_MIN_BUFFER, IntradayRule
from .preferences import FilterPreferences
from .sources.sheet import DEFAULT_SHEET_ID

DEFAULT_BASE_URL = "https://www.nseindia.com"
DEFAULT_TIMEOUT = 30.0

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _resolve_env_file(candidate: str) -> Path | None:
    """Return the first matching environment file path if it exists."""

    path = Path(candidate)
    if path.is_absolute() and path.exists():
        return path

    search_roots = [Path.cwd(), Path(__file__).resolve().parent]
    search_roots.extend(Path(__file__).resolve().parents)

    seen: set[Path] = set()
    for root in search_roots:
        root = root.resolve()
        if root in seen:
            continue
        seen.add(root)
        potential = root / candidate
        if potential.exists():
            return potential
    return None


def _parse_env_file(path: Path) -> dict[str, str]:
    """Parse a dotenv-style file into a mapping."""

    variables: dict[str, str] = {}
    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        variables[key.strip()] = value.strip().strip('"').strip("'")
    return variables


def _load_profile_env(env: Mapping[str, str]) -> dict[str, str]:
    """Load environment variables from the selected profile file."""

    explicit_file = env.get("NSE_DEALS_ENV_FILE")
    profile = env.get("NSE_DEALS_ENV", "local")
    candidate = explicit_file or f".env.{profile}"
    path = _resolve_env_file(candidate)
    return _parse_env_file(path) if path is not None else {}


def _get_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{key} must be a number, got {raw!r}") from exc


def _get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise RuntimeError(f"{key} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration."""

    nse_base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_TIMEOUT
    sheet_id: str = DEFAULT_SHEET_ID
    fetch_market_caps: bool = False
    intraday_rule: IntradayRule = field(default_factory=IntradayRule)
    preferences: FilterPreferences = field(default_factory=FilterPreferences)

    @staticmethod
    def load(env: Mapping[str, str] | None = None) -> "Settings":
        """Load settings from environment variables."""

        base_env = dict(os.environ if env is None else env)
        file_env = _load_profile_env(base_env)
        # Environment variables set in the shell take precedence over the file.
        merged_env = {**file_env, **base_env}

        rule = IntradayRule(
            min_buffer=_get_float(merged_env, "NSE_DEALS_INTRADAY_MIN_BUFFER", DEFAULT_MIN_BUFFER),
            buffer_ratio=_get_float(merged_env, "NSE_DEALS_INTRADAY_BUFFER_RATIO", DEFAULT_BUFFER_RATIO),
        )
        try:
            preferences = FilterPreferences(
                hide_intraday=_get_bool(merged_env, "NSE_DEALS_HIDE_INTRADAY", True),
                deal_type=merged_env.get("NSE_DEALS_DEFAULT_DEAL_TYPE", "both"),
                date_filter=merged_env.get("NSE_DEALS_DEFAULT_DATE_FILTER", "1W"),
            )
        except ValueError as exc:
            raise RuntimeError(f"Invalid default preferences: {exc}") from exc

        return Settings(
            nse_base_url=merged_env.get("NSE_DEALS_BASE_URL", DEFAULT_BASE_URL),
            request_timeout=_get_float(merged_env, "NSE_DEALS_REQUEST_TIMEOUT", DEFAULT_TIMEOUT),
            sheet_id=merged_env.get("NSE_DEALS_SHEET_ID", DEFAULT_SHEET_ID),
            fetch_market_caps=_get_bool(merged_env, "NSE_DEALS_FETCH_MARKET_CAPS", False),
            intraday_rule=rule,
            preferences=preferences,
        )


__all__ = ["Settings", "DEFAULT_BASE_URL", "DEFAULT_TIMEOUT"]
