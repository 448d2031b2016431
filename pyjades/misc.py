"""
Utility functions shared across pyJAdES.
"""

import base64
import json
from typing import Callable, Union

__all__ = [
    'b64url_encode',
    'b64url_decode',
    'json_bytes',
    'get_and_apply',
]


def b64url_encode(data: Union[bytes, str]) -> str:
    """
    Base64url-encode data without padding, as JWS requires.

    :param data:
        The data to encode. Strings are encoded as UTF-8 first.
    :return:
        The encoded value, as a string.
    """
    if isinstance(data, str):
        data = data.encode('utf8')
    return base64.urlsafe_b64encode(data).rstrip(b'=').decode('ascii')


def b64url_decode(data: str) -> bytes:
    """
    Decode unpadded base64url data.
    """
    return base64.urlsafe_b64decode(data + '=' * (-len(data) % 4))


def json_bytes(value) -> bytes:
    """
    Serialise a JSON value compactly, preserving key order.
    """
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False).encode(
        'utf8'
    )


def get_and_apply(dictionary: dict, key, function: Callable, *, default=None):
    try:
        value = dictionary[key]
    except KeyError:
        return default
    return function(value)
