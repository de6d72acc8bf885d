import logging
from typing import Optional

import chardet

logger = logging.getLogger(__name__)

REPLACEMENT_CHARACTER = "\ufffd"


def _decode_utf8(raw: bytes) -> Optional[str]:
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return None
    if REPLACEMENT_CHARACTER in text:
        return None
    return text


def _decode_detected(raw: bytes) -> Optional[str]:
    detected = chardet.detect(raw).get("encoding")
    if not detected:
        return None
    try:
        text = raw.decode(detected)
    except (LookupError, UnicodeDecodeError):
        return None
    logger.debug(f"Decoded input as detected encoding {detected}")
    return text


def decode_bytes(raw: bytes, fallback_encoding: str = "cp932") -> str:
    """
    Turn raw file bytes into text.

    UTF-8 is tried first. When that fails, or the result contains the
    Unicode replacement character, the encoding is autodetected; when
    detection fails too the bytes are decoded as ``fallback_encoding`` with
    undecodable bytes replaced. This function never raises.

    Args:
        raw: Raw file content
        fallback_encoding: Encoding forced as the last resort

    Returns:
        Decoded text (possibly containing replacement characters)
    """
    if not raw:
        return ""

    text = _decode_utf8(raw)
    if text is not None:
        return text

    text = _decode_detected(raw)
    if text is not None:
        return text

    logger.info(f"Encoding detection failed, forcing {fallback_encoding}")
    try:
        return raw.decode(fallback_encoding, errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")
