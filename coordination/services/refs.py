import secrets
import string
import time

_ALPHABET = string.digits + string.ascii_lowercase


def make_ref(prefix: str) -> str:
    """Return ``<prefix>_<epoch ms>_<9 base36 chars>``, e.g. ``MATCH_REQ_1700000000000_k3j9x0a2b``."""
    suffix = ''.join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"
