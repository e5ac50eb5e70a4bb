from __future__ import annotations
import logging
import os
from typing import Any, Optional
from .base import Translator
from .argos import ArgosTranslator
from .local_http import LocalHTTPTranslator
from .remote import RemoteAITranslator
from .stub import StubTranslator

def get_local_translator(
    provider: str | None = None,
    *,
    base_url: str = "http://localhost:5000",
    timeout_sec: float = 30.0,
    ready_ttl_sec: float = 30.0,
    logger: logging.Logger | None = None,
) -> Optional[Translator]:
    provider = (provider or os.getenv("TINGYI_LOCAL_BACKEND", "http")).lower().strip()

    if provider == "none":
        return None
    if provider == "http":
        return LocalHTTPTranslator(base_url, timeout_sec=timeout_sec, ready_ttl_sec=ready_ttl_sec, logger=logger)
    if provider == "argos":
        return ArgosTranslator()
    if provider == "stub":
        return StubTranslator()

    raise ValueError(f"Unknown local translator: {provider}")


def get_remote_translator(args: Any, logger: logging.Logger | None = None) -> RemoteAITranslator:
    return RemoteAITranslator(
        api_key_env=str(args.api_key_env),
        url=str(args.remote_url),
        model=str(args.remote_model),
        temperature=float(args.remote_temperature),
        max_tokens=int(args.remote_max_tokens),
        explain_temperature=float(args.explain_temperature),
        explain_max_tokens=int(args.explain_max_tokens),
        app_title=str(args.app_title),
        referer=str(args.referer),
        timeout_sec=float(args.request_timeout_sec),
        logger=logger,
    )
