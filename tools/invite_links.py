"""Invite links carrying invitation tokens and, optionally, database settings.

The embedded database settings are base64-encoded JSON. This is encoding,
not encryption.
"""

import base64
import binascii
import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union
from urllib.parse import parse_qs, urlencode, urlparse

from config import Config
from logger import get_logger

logger = get_logger()

DEFAULT_INVITE_PATH = "/invite"


def encode_config(config: Config) -> str:
    """Encode the database location of a config for an invite link."""
    payload = {"data_dir": str(config.db_data_dir), "filename": config.db_filename}
    raw = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_config(encoded: str) -> Optional[Dict[str, str]]:
    """Decode an embedded database location.

    Returns:
        Dictionary with "data_dir" and "filename", or None if the value is
        malformed.
    """
    try:
        raw = base64.urlsafe_b64decode(encoded.encode("ascii"))
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError, UnicodeError) as e:
        logger.error(f"Failed to decode config from invite: {e}")
        return None

    if not isinstance(payload, dict) or not {"data_dir", "filename"} <= payload.keys():
        logger.error("Invite config is missing database settings")
        return None
    return payload


def apply_config(config: Config, encoded: str) -> Optional[Config]:
    """Return a copy of config pointing at the database named in an invite."""
    payload = decode_config(encoded)
    if payload is None:
        return None
    return config.with_database(Path(payload["data_dir"]), payload["filename"])


def generate_invite_link(
    base_url: str,
    token: Union[str, Sequence[str]],
    config: Optional[Config] = None,
    invite_path: str = DEFAULT_INVITE_PATH,
) -> str:
    """Build an invite URL.

    Args:
        base_url: Application URL, e.g. "http://localhost:5173".
        token: One token, or several for a combined multi-project invite.
        config: When given, its database location is embedded.
        invite_path: Path of the invite page.

    Returns:
        URL with token= (or tokens=a,b) and optionally config= parameters.
    """
    params = {}
    if isinstance(token, str):
        params["token"] = token
    else:
        params["tokens"] = ",".join(token)

    if config is not None:
        params["config"] = encode_config(config)

    return f"{base_url.rstrip('/')}/{invite_path.lstrip('/')}?{urlencode(params)}"


def parse_invite_link(link: str) -> Dict[str, object]:
    """Extract tokens and the encoded config from an invite URL.

    Returns:
        Dictionary with "tokens" (list) and "config" (str or None).
    """
    query = parse_qs(urlparse(link).query)

    tokens: List[str] = []
    if "tokens" in query:
        tokens = [t for t in query["tokens"][0].split(",") if t]
    elif "token" in query:
        tokens = [query["token"][0]]

    return {"tokens": tokens, "config": query.get("config", [None])[0]}
