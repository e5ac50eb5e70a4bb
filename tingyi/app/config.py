from __future__ import annotations

import argparse
import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

DEFAULTS: dict[str, Any] = {
    "local_backend": "http",
    "local_url": "http://localhost:5000",
    "prefer_local": True,
    "remote_url": "https://openrouter.ai/api/v1/chat/completions",
    "remote_model": "deepseek/deepseek-r1-0528:free",
    "remote_temperature": 0.1,
    "remote_max_tokens": 300,
    "explain_temperature": 0.3,
    "explain_max_tokens": 400,
    "api_key_env": "OPENROUTER_API_KEY",
    "app_title": "Professional Real-Time Translator",
    "referer": "http://localhost",
    "request_timeout_sec": 30.0,
    "ready_ttl_sec": 30.0,
    "flush_delay_sec": 1.2,
    "max_entries": 15,
    "max_cache_items": 1000,
    "max_workers": 4,
    "restart_delay_sec": 0.5,
    "restart_on_end": False,
    "replay_speed": 1.0,
    "queue_maxsize": 100,
    "print_interim": False,
    "debug": False,
}
CONFIG_KEYS: tuple[str, ...] = tuple(DEFAULTS.keys())
LOCAL_BACKENDS: tuple[str, ...] = ("http", "argos", "stub", "none")


@dataclass(frozen=True)
class AppPaths:
    config_dir: Path
    config_path: Path


def default_asset_config_path() -> Path:
    return Path(__file__).resolve().parents[2] / "assets" / "config" / "default.json"


def app_paths() -> AppPaths:
    config_dir = Path(user_config_dir("TingYi", "TingYi"))
    return AppPaths(config_dir=config_dir, config_path=config_dir / "config.json")


def _load_json_dict(path: Path) -> dict[str, Any]:
    # Accept UTF-8 with or without BOM for Windows-edited config files.
    with path.open("r", encoding="utf-8-sig") as f:
        loaded = json.load(f)
    if not isinstance(loaded, dict):
        raise ValueError(f"config must be a JSON object: {path}")
    return loaded


def _write_json_dict(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
        f.write("\n")


def _known_only(payload: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in CONFIG_KEYS:
        if key in payload:
            out[key] = payload[key]
    return out


def _normalize_backend(merged: dict[str, Any]) -> dict[str, Any]:
    backend = str(merged.get("local_backend", "")).lower().strip()
    if backend not in LOCAL_BACKENDS:
        backend = DEFAULTS["local_backend"]
    merged["local_backend"] = backend
    return merged


def load_default_config() -> dict[str, Any]:
    path = default_asset_config_path()
    if not path.exists():
        return copy.deepcopy(DEFAULTS)
    loaded = _load_json_dict(path)
    out = copy.deepcopy(DEFAULTS)
    for key in DEFAULTS.keys():
        if key in loaded:
            out[key] = loaded[key]
    return out


def load_user_config(config_path: str | None = None) -> tuple[dict[str, Any], Path]:
    defaults = load_default_config()
    if config_path:
        chosen = Path(config_path)
        if not chosen.exists():
            raise SystemExit(f"Config file not found: {chosen}")
    else:
        chosen = ensure_user_config_exists(defaults)
    loaded = _known_only(_load_json_dict(chosen))
    merged = dict(defaults)
    merged.update(loaded)
    return _normalize_backend(merged), chosen


def ensure_user_config_exists(defaults: dict[str, Any] | None = None) -> Path:
    paths = app_paths()
    if paths.config_path.exists():
        return paths.config_path
    _write_json_dict(paths.config_path, defaults or load_default_config())
    return paths.config_path


def resolve_defaults(config_path: str | None = None) -> tuple[dict[str, Any], Path]:
    return load_user_config(config_path=config_path)


def parser_with_defaults(defaults: dict[str, Any]) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="tingyi", description="Live zh->en sentence translation")
    p.add_argument("source", nargs="?", default="-", help="transcript to replay (JSON lines or text); '-' = stdin")
    p.add_argument("--config", default=None, help="JSON config path (CLI flags override config)")
    p.add_argument("--model-status", action="store_true", help="probe the local backend and exit")
    p.add_argument(
        "--explain",
        nargs=2,
        metavar=("ORIGINAL", "TRANSLATED"),
        default=None,
        help="explain one translation via the remote backend and exit",
    )
    p.add_argument(
        "--local-backend",
        default=defaults["local_backend"],
        choices=list(LOCAL_BACKENDS),
        help="fast backend tried before the remote one",
    )
    p.add_argument("--local-url", default=defaults["local_url"], help="base URL of the local translation server")
    p.add_argument(
        "--prefer-local",
        action=argparse.BooleanOptionalAction,
        default=defaults["prefer_local"],
        help="try the local backend before the remote one",
    )
    p.add_argument("--remote-url", default=defaults["remote_url"], help="chat-completions endpoint")
    p.add_argument("--remote-model", default=defaults["remote_model"], help="remote model identifier")
    p.add_argument(
        "--remote-temperature",
        type=float,
        default=defaults["remote_temperature"],
        help="sampling temperature for translations",
    )
    p.add_argument(
        "--remote-max-tokens",
        type=int,
        default=defaults["remote_max_tokens"],
        help="max tokens for translations",
    )
    p.add_argument(
        "--explain-temperature",
        type=float,
        default=defaults["explain_temperature"],
        help="sampling temperature for explanations",
    )
    p.add_argument(
        "--explain-max-tokens",
        type=int,
        default=defaults["explain_max_tokens"],
        help="max tokens for explanations",
    )
    p.add_argument("--api-key-env", default=defaults["api_key_env"], help="env var holding the remote API key")
    p.add_argument("--app-title", default=defaults["app_title"], help="X-Title header sent to the remote API")
    p.add_argument("--referer", default=defaults["referer"], help="HTTP-Referer header sent to the remote API")
    p.add_argument(
        "--request-timeout-sec",
        type=float,
        default=defaults["request_timeout_sec"],
        help="HTTP timeout for backend calls",
    )
    p.add_argument(
        "--ready-ttl-sec",
        type=float,
        default=defaults["ready_ttl_sec"],
        help="how long a local readiness probe result is reused",
    )
    p.add_argument(
        "--flush-delay-sec",
        type=float,
        default=defaults["flush_delay_sec"],
        help="silence before an unterminated buffer is committed",
    )
    p.add_argument("--max-entries", type=int, default=defaults["max_entries"], help="entries kept in the session")
    p.add_argument(
        "--max-cache-items",
        type=int,
        default=defaults["max_cache_items"],
        help="translation cache ring size (0 = unbounded)",
    )
    p.add_argument("--max-workers", type=int, default=defaults["max_workers"], help="concurrent translations")
    p.add_argument(
        "--restart-delay-sec",
        type=float,
        default=defaults["restart_delay_sec"],
        help="pause before restarting the speech engine after a transient error",
    )
    p.add_argument(
        "--restart-on-end",
        action=argparse.BooleanOptionalAction,
        default=defaults["restart_on_end"],
        help="restart the speech engine when its stream ends",
    )
    p.add_argument(
        "--replay-speed",
        type=float,
        default=defaults["replay_speed"],
        help="1.0 = realtime, 2.0 = 2x faster, 0 = no waiting",
    )
    p.add_argument(
        "--queue-maxsize",
        type=int,
        default=defaults["queue_maxsize"],
        help="max delivery events buffered for the consumer",
    )
    p.add_argument(
        "--print-interim",
        action=argparse.BooleanOptionalAction,
        default=defaults["print_interim"],
        help="print interim previews as they arrive",
    )
    p.add_argument("--debug", action="store_true", help="verbose logging")
    return p


def resolve_args(argv: list[str] | None = None) -> argparse.Namespace:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=None)
    pre_args, _ = pre.parse_known_args(argv)
    defaults, _ = resolve_defaults(config_path=pre_args.config)
    parser = parser_with_defaults(defaults)
    args = parser.parse_args(argv)
    if defaults.get("debug"):
        args.debug = True
    return args
