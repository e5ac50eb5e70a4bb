from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from tingyi.live.dispatcher import TranslationDispatcher
from tingyi.live.pipeline import LiveTranslatePipeline
from tingyi.live.session import SessionState
from tingyi.nlp.cache import TranslationMemory
from tingyi.nlp.translator.base import Translator
from tingyi.nlp.translator.chain import BackendChain
from tingyi.nlp.translator.factory import get_local_translator, get_remote_translator
from tingyi.nlp.translator.remote import RemoteAITranslator
from tingyi.ui.bridge import DeliveryBus


@dataclass(frozen=True)
class TranslateServices:
    local: Optional[Translator]
    remote: RemoteAITranslator
    chain: BackendChain
    memory: TranslationMemory
    session: SessionState
    dispatcher: TranslationDispatcher
    bus: DeliveryBus
    pipeline: LiveTranslatePipeline


def build_translate_services(args: Any, logger: logging.Logger | None = None) -> TranslateServices:
    local = get_local_translator(
        str(args.local_backend),
        base_url=str(args.local_url),
        timeout_sec=float(args.request_timeout_sec),
        ready_ttl_sec=max(0.0, float(args.ready_ttl_sec)),
        logger=logger,
    )
    remote = get_remote_translator(args, logger=logger)
    backends: list[Translator] = [remote] if local is None else [local, remote]
    chain = BackendChain(backends, prefer_local=bool(args.prefer_local), logger=logger)
    memory = TranslationMemory(max_items=max(0, int(args.max_cache_items)))
    session = SessionState(max_entries=max(1, int(args.max_entries)))
    dispatcher = TranslationDispatcher(
        chain=chain,
        session=session,
        memory=memory,
        explainer=remote,
        max_workers=max(1, int(args.max_workers)),
        logger=logger,
    )
    bus = DeliveryBus(maxsize=max(1, int(args.queue_maxsize)))
    pipeline = LiveTranslatePipeline(
        dispatcher=dispatcher,
        bus=bus,
        flush_delay_sec=max(0.05, float(args.flush_delay_sec)),
        logger=logger,
    )
    return TranslateServices(
        local=local,
        remote=remote,
        chain=chain,
        memory=memory,
        session=session,
        dispatcher=dispatcher,
        bus=bus,
        pipeline=pipeline,
    )
