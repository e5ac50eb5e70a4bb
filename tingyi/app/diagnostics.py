from __future__ import annotations


def summarize_exception(detail: str, *, max_len: int = 220) -> str:
    text = str(detail or "").strip()
    if not text:
        return "Unknown runtime error."
    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    if not lines:
        return "Unknown runtime error."
    for ln in reversed(lines):
        if ln.startswith(("File ", "^", "Traceback ")):
            continue
        out = ln
        break
    else:
        out = lines[-1]
    if len(out) > max_len:
        return out[: max_len - 3].rstrip() + "..."
    return out


def hint_for_exception(summary: str) -> str:
    s = str(summary or "").lower()
    if "api_key" in s or "api key" in s:
        return "Set the remote API key environment variable (see --api-key-env) and retry."
    if "ai api error: 401" in s or "ai api error: 403" in s:
        return "The remote API rejected the key. Check that it is valid and has credit."
    if "ai api error: 429" in s:
        return "The remote API is rate limiting requests. Slow down or switch models."
    if "connection refused" in s or "max retries exceeded" in s or "failed to establish" in s:
        return "A translation server is unreachable. Start the local server or check the URL."
    if "no translation content" in s:
        return "The model replied without a usable answer. Try a non-reasoning model."
    if "no module named" in s:
        return "A required package is missing in this virtualenv. Reinstall dependencies and retry."
    if "config file not found" in s:
        return "Configured JSON file is missing. Update the config path or restore the file."
    return "Check logs for full traceback."
