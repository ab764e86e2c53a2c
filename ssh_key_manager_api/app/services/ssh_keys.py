"""
Helpers for OpenSSH public key lines (``<type> <base64> [comment]``).

Parsing is delegated to ``cryptography`` so only keys OpenSSH itself
would accept are stored.  Fingerprints use the OpenSSH format
``SHA256:<unpadded base64 of the sha256 of the key blob>``.
"""

import base64
import binascii
import hashlib

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.serialization import load_ssh_public_key


def is_valid_public_key(public_key_with_comment: str) -> bool:
    try:
        load_ssh_public_key(public_key_with_comment.strip().encode("utf-8"))
    except (ValueError, UnsupportedAlgorithm):
        return False
    return True


def get_fingerprint(public_key_with_comment: str) -> str:
    """Return the SHA256 fingerprint, or ``""`` if the line is not a key."""
    if not is_valid_public_key(public_key_with_comment):
        return ""
    blob_b64 = public_key_with_comment.split()[1]
    try:
        blob = base64.b64decode(blob_b64, validate=True)
    except binascii.Error:
        return ""
    digest = hashlib.sha256(blob).digest()
    return "SHA256:" + base64.b64encode(digest).decode("ascii").rstrip("=")


def get_comment(public_key_with_comment: str) -> str:
    parts = public_key_with_comment.split(None, 2)
    if len(parts) < 3 or not is_valid_public_key(public_key_with_comment):
        return ""
    return parts[2].strip()
