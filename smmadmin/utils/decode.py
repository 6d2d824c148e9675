"""Data decoding utilities for smmadmin."""

import json
import logging
from typing import Dict, Any


def decode_webhook_payload(data: bytes) -> Dict[str, Any]:
    """Decode the JSON body returned by an n8n webhook.

    n8n answers either with an object or with an array of items; only the
    first item is meaningful for a single post.

    Args:
        data: Raw response body

    Returns:
        Parsed object (empty dict for an empty array or a non-object item)

    Raises:
        json.JSONDecodeError: If JSON parsing fails
    """
    try:
        decoded_data = data.decode("utf-8")
    except UnicodeDecodeError as utf8_error:
        logging.debug(f"UTF-8 decode failed: {utf8_error}, trying cp1252...")
        try:
            decoded_data = data.decode("cp1252")
        except UnicodeDecodeError:
            decoded_data = data.decode("utf-8", errors="replace")
            logging.debug("Invalid characters replaced with placeholders.")

    try:
        payload = json.loads(decoded_data)
    except json.JSONDecodeError as e:
        logging.error(f"💥 JSON parsing failed: {e}\nJSON is: {decoded_data[:500]}")
        raise

    if isinstance(payload, list):
        payload = payload[0] if payload else {}
    if not isinstance(payload, dict):
        logging.warning(f"⚠️ Unexpected webhook payload type: {type(payload).__name__}")
        return {}
    return payload
