"""
Stand-in for the external homomorphic encryption service.

The real transform happens outside this package. Here we only produce a
blob with the right shape: a scheme tag followed by a portable encoding of
the inputs. Nothing in visitledger ever reads the body back.
"""

import base64
import json
from typing import Optional, Protocol, runtime_checkable

SCHEME_TAG = "FHE-"


@runtime_checkable
class EncryptorProtocol(Protocol):
    """Anything that turns a visit path and preferences into a ciphertext blob."""

    def encode(self, path: str, preferences: str) -> str: ...


class EncryptionStub:
    """Produces tagged placeholder ciphertext. Never decrypts."""

    scheme_tag = SCHEME_TAG

    def encode(self, path: str, preferences: str) -> str:
        body = json.dumps(
            {"path": path, "preferences": preferences},
            ensure_ascii=False,
            separators=(",", ":"),
        )
        return self.scheme_tag + base64.b64encode(body.encode("utf-8")).decode("ascii")


def scheme_of(blob: str) -> Optional[str]:
    """Return the scheme tag of a ciphertext blob, or None if untagged."""
    if blob.startswith(SCHEME_TAG):
        return SCHEME_TAG
    return None
