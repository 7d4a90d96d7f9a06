"""
Magnet Parser
Resolves a magnet URI to its 40-character hex info hash
"""
from typing import List
from urllib.parse import parse_qs
import base64
import binascii
import re

from ..core.errors import MagnetParseError

HEX_HASH = re.compile(r'^[a-fA-F0-9]{40}$')
BASE32_HASH = re.compile(r'^[a-zA-Z2-7]{32}$')
BTIH_PREFIX = "urn:btih:"


def _exact_topics(magnet: str) -> List[str]:
    query = magnet.split("?", 1)[1] if "?" in magnet else ""
    params = parse_qs(query, keep_blank_values=False)
    topics = []
    for key, values in params.items():
        # xt, xt.1, xt.2 ...
        if key == "xt" or key.startswith("xt."):
            topics.extend(values)
    return topics


def parse_magnet(magnet: str) -> str:
    """
    Return the lower-case hex info hash carried by a magnet URI.

    Both the 40-character hex form and the 32-character base32 form of
    btih are accepted. Raises MagnetParseError otherwise.
    """
    if not magnet or not magnet.strip().lower().startswith("magnet:?"):
        raise MagnetParseError(f"Not a magnet URI: {magnet!r}")

    for topic in _exact_topics(magnet.strip()):
        if not topic.lower().startswith(BTIH_PREFIX):
            continue
        value = topic[len(BTIH_PREFIX):].strip()
        if HEX_HASH.match(value):
            return value.lower()
        if BASE32_HASH.match(value):
            try:
                return binascii.hexlify(base64.b32decode(value.upper())).decode("ascii")
            except (binascii.Error, ValueError) as e:
                raise MagnetParseError(f"Invalid base32 btih in {magnet!r}") from e
        raise MagnetParseError(f"Malformed btih value in {magnet!r}")

    raise MagnetParseError(f"No btih topic in {magnet!r}")
