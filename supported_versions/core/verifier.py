"""RS256 verification boundary for supported-versions tokens.

Every policy document, whichever source it comes from, passes through
:func:`decode`. The embedded key and the algorithm list are the only trust
anchors; tests inject their own keypair through ``public_key``.
"""
from __future__ import annotations

from typing import Any, Mapping

import jwt
from pydantic import ValidationError

from .errors import VerificationError
from .schema import PolicyDocument

ALGORITHMS = ["RS256"]

PUBLIC_KEY = """-----BEGIN PUBLIC KEY-----
MIIBIjANBgkqhkiG9w0BAQEFAAOCAQ8AMIIBCgKCAQEAvZ/T/RHOr6+yo/iMLUlf
agMiMLFxQR/5Qtc85ykMBvKZqbBGb9zU68VB9n54alrbZG5FdcHkSJXgJIBXF2bk
TGTfBi58JmltZirSWzvXoXnT4ieGNZv+BqnP9zzj9HXOVhVncbRmJPEIJOZfL9AQ
beix3rPgZx3ZepAaoMQnz11dZKDGzkMN75WkTdf324X3DeFgLVmjsYuAcLl/AJMA
uPKSSt0XOQUsfrT7rEqXIrj8rIJcWxIHICMRrwfjw2Qh+3pfIrh7XSzxlW4zCKBN
RpavrrCnpOFRfkC5T9eMKLgyapjufOtbjuzu25N3urBsg6oRFNzsGXWp1C7DwUO2
kwIDAQAB
-----END PUBLIC KEY-----
"""


def decode(token: Any, *, public_key: str | bytes = PUBLIC_KEY) -> PolicyDocument:
    """Verify ``token`` and return the policy document it carries."""

    if not isinstance(token, str) or not token.strip():
        raise VerificationError("token must be a non-empty string")

    try:
        claims = jwt.decode(token.strip(), public_key, algorithms=ALGORITHMS)
    except jwt.PyJWTError as exc:
        raise VerificationError(f"invalid supported versions token: {exc}") from exc
    except (TypeError, ValueError) as exc:  # unusable key material
        raise VerificationError(f"cannot verify supported versions token: {exc}") from exc

    try:
        return PolicyDocument.model_validate(claims)
    except ValidationError as exc:
        raise VerificationError(f"malformed supported versions payload: {exc}") from exc


def encode(document: PolicyDocument | Mapping[str, Any], private_key: str | bytes) -> str:
    """Sign a policy document with RS256 (release tooling and tests)."""

    if isinstance(document, PolicyDocument):
        payload = document.to_wire()
    else:
        payload = PolicyDocument.model_validate(dict(document)).to_wire()
    return jwt.encode(payload, private_key, algorithm="RS256")


__all__ = ["ALGORITHMS", "PUBLIC_KEY", "VerificationError", "decode", "encode"]
