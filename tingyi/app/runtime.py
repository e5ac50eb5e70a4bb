from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

from tingyi.app.logging_setup import log_event
from tingyi.app.services import TranslateServices
from tingyi.app.state import RuntimeStateTracker
from tingyi.asr.stream_base import FragmentSource
from tingyi.contracts import SentenceEvent, TranslationEntry
from tingyi.ui.bridge import DeliveryBus, DeliveryEvent, FlagChange


def format_entry(entry: TranslationEntry) -> str:
    return f"[zh] {entry.original}\n[en] {entry.translation}"


def _drain_delivery_bus(bus: DeliveryBus, consumer: Callable[[DeliveryEvent], None], max_items: int) -> int:
    drained = 0
    while drained < max_items:
        item = bus.pop()
        if item is None:
            break
        consumer(item)
        drained += 1
    return drained


def console_consumer(args: Any, emit: Callable[[str], None] = print) -> Callable[[DeliveryEvent], None]:
    def _consume(item: DeliveryEvent) -> None:
        if isinstance(item, TranslationEntry):
            emit(format_entry(item))
            emit("")
        elif isinstance(item, SentenceEvent):
            if args.print_interim:
                emit(f"  ... {item.text}")
        elif isinstance(item, FlagChange) and args.debug:
            emit(f"  ({item.name}={'on' if item.value else 'off'})")

    return _consume


def run_session(
    args: Any,
    services: TranslateServices,
    source: FragmentSource,
    *,
    logger: logging.Logger | None = None,
    emit: Callable[[str], None] = print,
    poll_sec: float = 0.05,
) -> RuntimeStateTracker:
    """Run the engine on a worker thread and print deliveries until the stream is done."""
    state = RuntimeStateTracker()
    consume = console_consumer(args, emit)
    errors: list[BaseException] = []

    def _worker() -> None:
        try:
            services.pipeline.run(
                source,
                state=state,
                restart_delay_sec=max(0.0, float(args.restart_delay_sec)),
                restart_on_end=bool(args.restart_on_end),
            )
        except Exception as exc:  # noqa: BLE001 - reported by the caller
            errors.append(exc)

    log_event(
        logger,
        logging.INFO,
        "worker_start",
        local_backend=str(args.local_backend),
        prefer_local=bool(args.prefer_local),
        remote_model=str(args.remote_model),
        flush_delay_sec=float(args.flush_delay_sec),
    )
    t_start = time.perf_counter()
    worker = threading.Thread(target=_worker, name="tingyi-engine-worker", daemon=True)
    worker.start()
    try:
        while worker.is_alive():
            _drain_delivery_bus(services.bus, consume, max_items=50)
            worker.join(timeout=poll_sec)
    except KeyboardInterrupt:
        log_event(logger, logging.INFO, "worker_keyboard_interrupt")
        services.pipeline.stop()
        worker.join()
    finally:
        services.dispatcher.dispose(wait=True)
        while _drain_delivery_bus(services.bus, consume, max_items=50):
            pass
        stats = dict(services.dispatcher.stats)
        log_event(
            logger,
            logging.INFO,
            "worker_stop",
            sentence_commits=services.pipeline.commits,
            entries=len(services.session),
            bus_drops=services.bus.dropped,
            restarts=state.restarts,
            seconds=round(time.perf_counter() - t_start, 2),
            **stats,
        )
    if errors:
        raise errors[0]
    return state
