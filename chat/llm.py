# chat/llm.py

import os
import logging

# Quiet down gRPC noise from the SDK
os.environ.setdefault("GRPC_VERBOSITY", "ERROR")
os.environ.setdefault("GRPC_TRACE", "")

from django.conf import settings
import google.generativeai as genai

logger = logging.getLogger(__name__)


# ===== Exceptions =====
class GeminiError(RuntimeError):
    ...


class GeminiBlocked(GeminiError):
    ...


class GeminiConfigError(GeminiError):
    ...


# ===== Base config =====

DEFAULT_MODEL_NAME = "gemini-2.5-flash"
DEFAULT_DEADLINE_S = 30

GENCFG = {
    "temperature": 0.7,
    "max_output_tokens": 2048,
}

SYSTEM_INSTRUCTION = (
    "You are a helpful assistant. Answer clearly and concisely. "
    "Markdown formatting is allowed."
)

# ===== Lazy Gemini client =====

_model = None


def _get_model():
    """Create and cache the Gemini model client."""
    global _model
    if _model is not None:
        return _model

    api_key = getattr(settings, "GEMINI_API_KEY", None)
    if not api_key:
        raise GeminiConfigError("GEMINI_API_KEY missing")

    model_name = getattr(settings, "GEMINI_MODEL", None) or DEFAULT_MODEL_NAME
    try:
        genai.configure(api_key=api_key)
        _m = genai.GenerativeModel(model_name, system_instruction=SYSTEM_INSTRUCTION)
    except Exception as e:
        raise GeminiConfigError(f"gemini_config_error: {e}")
    _model = _m
    return _model


def reset_model():
    """Drop the cached client (settings changed, tests)."""
    global _model
    _model = None


def _extract_text(resp) -> str:
    """
    Safely extract text from Gemini SDK / mock responses.

    Supports resp.candidates[..].content.parts[..].text, resp.text and a plain
    string. Always returns a str.
    """
    if isinstance(resp, str):
        return resp.strip()

    chunks = []
    candidates = getattr(resp, "candidates", None) or []
    if isinstance(candidates, (list, tuple)):
        for c in candidates[:1]:
            content = getattr(c, "content", None)
            parts = getattr(content, "parts", None) or []
            if not isinstance(parts, (list, tuple)):
                continue
            for p in parts:
                txt = getattr(p, "text", "")
                if isinstance(txt, str) and txt.strip():
                    chunks.append(txt)
    if chunks:
        return "".join(chunks).strip()

    # Fallback: resp.text (the SDK raises ValueError when there are no parts)
    try:
        t = getattr(resp, "text", "")
    except ValueError:
        return ""
    return t.strip() if isinstance(t, str) else ""


def _check_block(resp) -> None:
    fb = getattr(resp, "prompt_feedback", None)
    if fb:
        br = getattr(fb, "block_reason", None)
        if br and not isinstance(br, (int, bool)):
            name = getattr(br, "name", br)
            if isinstance(name, str) and name and name.upper() != "BLOCK_REASON_UNSPECIFIED":
                raise GeminiBlocked(f"blocked: {name}")

    candidates = getattr(resp, "candidates", None) or []
    if isinstance(candidates, (list, tuple)) and candidates:
        finish = getattr(candidates[0], "finish_reason", None)
        name = getattr(finish, "name", finish)
        if isinstance(name, str) and name.lower() in {"safety", "blocked"}:
            raise GeminiBlocked(f"finish_reason={name}")


# ===== Public API =====

def ask_gemini(prompt: str) -> str:
    """
    Send the raw user text to Gemini and return the reply text.

    Raises GeminiConfigError when no key is configured, GeminiBlocked when the
    prompt or the answer is blocked, GeminiError for anything else (SDK errors,
    deadline, empty answer). No retries.
    """
    model = _get_model()
    timeout_s = getattr(settings, "GEMINI_TIMEOUT_S", None) or DEFAULT_DEADLINE_S

    try:
        resp = model.generate_content(
            [str(prompt or "").strip()],
            generation_config=GENCFG,
            request_options={"timeout": timeout_s},
        )
    except Exception as e:
        logger.warning("gemini_call_failed err=%s", e)
        raise GeminiError(str(e)) from e

    _check_block(resp)

    text = _extract_text(resp)
    if not text:
        raise GeminiError("empty_response")
    return text
