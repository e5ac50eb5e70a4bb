from __future__ import annotations

import sys
import traceback

from tingyi.app.config import resolve_args
from tingyi.app.diagnostics import hint_for_exception, summarize_exception
from tingyi.app.logging_setup import setup_app_logger
from tingyi.app.runtime import run_session
from tingyi.app.services import build_translate_services
from tingyi.asr.replay import ReplayFragmentSource
from tingyi.nlp.translator.local_http import LocalHTTPTranslator


def main(argv: list[str] | None = None) -> int:
    args = resolve_args(argv)
    logger, log_dir, log_path = setup_app_logger(debug=bool(args.debug))
    logger.info("app_start", extra={"config_path": str(getattr(args, "config", "")), "argv": argv or []})

    services = build_translate_services(args, logger=logger)

    if args.model_status:
        if not isinstance(services.local, LocalHTTPTranslator):
            print(f"local backend: {args.local_backend} (no status endpoint)")
            return 0
        status = services.local.model_status(refresh=True)
        print(f"translation_ready={status.translation_ready} sentiment_ready={status.sentiment_ready}")
        return 0 if status.translation_ready else 1

    if args.explain:
        original, translated = args.explain
        print(services.dispatcher.explain(original, translated))
        services.dispatcher.dispose()
        return 0

    try:
        if args.source == "-":
            source = ReplayFragmentSource.from_stream(sys.stdin, speed=float(args.replay_speed))
        else:
            source = ReplayFragmentSource.from_path(args.source, speed=float(args.replay_speed))
        run_session(args, services, source, logger=logger)
    except Exception:
        detail = traceback.format_exc()
        logger.exception("session_crash")
        summary = summarize_exception(detail)
        print(f"error: {summary}", file=sys.stderr)
        print(f"hint: {hint_for_exception(summary)} (log: {log_path})", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
