"""Failures raised by the AI gateway and the audio codec."""
from __future__ import annotations


class ServiceError(Exception):
    """A remote generation or synthesis call failed (network, auth, quota, timeout)."""


class DecodeError(ValueError):
    """A speech payload could not be decoded into PCM samples."""
