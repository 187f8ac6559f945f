"""Content fingerprinting for cache keys."""

import base64
import hashlib


def fingerprint(text: str) -> str:
    """Return the cache fingerprint of ``text``.

    MD5 over the raw UTF-8 bytes, base64url encoded without padding. No
    normalization is applied, so whitespace or case changes produce a
    different fingerprint.
    """
    digest = hashlib.md5(text.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
