"""
Top‑level package for the SSH Key Manager API.

All functionality lives in submodules under ``app``.
"""

__all__ = []
