"""Bearer-token authentication helpers."""

from .tokens import create_access_token, decode_access_token

__all__ = ["create_access_token", "decode_access_token"]
