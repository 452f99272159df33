"""Cloudinary request signing."""

import hashlib
import time
from typing import Any, Iterable, Mapping

# Parameters Cloudinary leaves out of the signature
EXCLUDED_PARAMETERS = frozenset({"file", "cloud_name", "resource_type", "api_key"})


def serialize_value(value: Any) -> str:
    """Render a parameter value the way it is sent on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(serialize_value(v) for v in value)
    return str(value)


def present_parameters(parameters: Mapping[str, Any]) -> dict[str, str]:
    """Serialized parameters with None and empty values dropped."""
    serialized = {
        key: serialize_value(value)
        for key, value in parameters.items()
        if value is not None
    }
    return {key: value for key, value in serialized.items() if value != ""}


def canonical_string(parameters: Mapping[str, Any]) -> str:
    """
    Build the string to sign.

    Every non-excluded, non-empty parameter becomes `key=value`; entries are
    sorted as whole strings and joined with `&`.
    """
    entries = [
        f"{key}={value}"
        for key, value in present_parameters(parameters).items()
        if key not in EXCLUDED_PARAMETERS
    ]
    return "&".join(sorted(entries))


def to_hex(digest: Iterable[int]) -> str:
    """Encode digest bytes as two lowercase hex digits each, treating bytes as unsigned."""
    return "".join(f"{byte & 0xFF:02x}" for byte in digest)


class RequestSigner:
    """Signs parameter sets with an API key/secret pair."""

    def __init__(self, api_key: str, api_secret: str):
        self.api_key = api_key
        self.api_secret = api_secret

    def compute_signature(self, parameters: Mapping[str, Any]) -> str:
        seed = canonical_string(parameters) + self.api_secret
        return to_hex(hashlib.sha1(seed.encode("utf-8")).digest())

    def sign(self, parameters: Mapping[str, Any]) -> dict[str, str]:
        """
        Return a copy of `parameters` with `timestamp`, `api_key` and `signature` added.

        Values are serialized to strings and empty ones dropped, so the
        transmitted form matches what was signed.
        """
        signed = present_parameters(parameters)
        signed["timestamp"] = str(int(time.time()))
        signature = self.compute_signature(signed)
        signed["api_key"] = self.api_key
        signed["signature"] = signature
        return signed
