"""Verification key set loaded from the provider's ``jwks_uri``."""

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from jwt import PyJWK
from jwt.exceptions import InvalidKeyError, PyJWKError

from pkjwt.oidc.errors import MetadataError

logger = logging.getLogger(__name__)

# Signature algorithms a key of each JWK ``kty`` can verify.
KEY_TYPE_ALGORITHMS: dict[str, frozenset[str]] = {
    "RSA": frozenset({"RS256", "RS384", "RS512", "PS256", "PS384", "PS512"}),
    "EC": frozenset({"ES256", "ES256K", "ES384", "ES512"}),
    "OKP": frozenset({"EdDSA"}),
}


class JWKSet:
    """Read-only set of public verification keys indexed by ``kid``.

    ``pinned`` names the keys whose JWK declared an ``alg``; tokens signed
    with such a key must use exactly that algorithm.
    """

    def __init__(
        self,
        keys: Mapping[str, PyJWK],
        skipped: int = 0,
        pinned: Iterable[str] = (),
    ) -> None:
        self._keys = MappingProxyType(dict(keys))
        self._pinned = frozenset(pinned)
        self.skipped = skipped

    @classmethod
    def from_document(cls, document: Any) -> "JWKSet":
        """Build a key set from a decoded JWKS document.

        Keys that cannot be decoded are skipped and counted; a document
        with no usable key at all is rejected.
        """
        if not isinstance(document, dict) or not isinstance(
            document.get("keys"), list
        ):
            raise MetadataError("JWKS document has no 'keys' array")

        keys: dict[str, PyJWK] = {}
        pinned: set[str] = set()
        skipped = 0
        for index, raw in enumerate(document["keys"]):
            try:
                jwk = PyJWK(raw)
            except (PyJWKError, InvalidKeyError, AttributeError, TypeError) as exc:
                skipped += 1
                logger.warning("Skipping JWKS key #%d: %s", index, exc)
                continue
            kid = raw.get("kid") or ""
            keys[kid] = jwk
            if raw.get("alg"):
                pinned.add(kid)

        if skipped:
            logger.warning(
                "Skipped %d of %d JWKS keys", skipped, len(document["keys"])
            )
        if not keys:
            raise MetadataError("JWKS document contains no usable keys")
        return cls(keys, skipped=skipped, pinned=pinned)

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, kid: object) -> bool:
        return isinstance(kid, str) and kid in self._keys

    @property
    def kids(self) -> list[str]:
        return list(self._keys)

    def _resolve(self, kid: object) -> str | None:
        if kid is None:
            if len(self._keys) == 1:
                return next(iter(self._keys))
            return None
        if isinstance(kid, str) and kid in self._keys:
            return kid
        return None

    def get(self, kid: object) -> PyJWK | None:
        """Resolve the key named by a token header.

        A token without ``kid`` can only be matched when exactly one key
        is published. A ``kid`` that is not a string matches nothing.
        """
        resolved = self._resolve(kid)
        if resolved is None:
            return None
        return self._keys[resolved]

    def algorithms_for(self, kid: object, header_alg: object) -> list[str]:
        """Algorithms a token signed with the key named by ``kid`` may use.

        A key that declared ``alg`` accepts only that algorithm. Otherwise
        the token's own ``alg`` is accepted when it belongs to the key type,
        so ``none`` and HMAC are never accepted for a public key.
        """
        resolved = self._resolve(kid)
        if resolved is None:
            return []
        jwk = self._keys[resolved]
        if resolved in self._pinned:
            return [jwk.algorithm_name]
        family = KEY_TYPE_ALGORITHMS.get(jwk.key_type, frozenset())
        if isinstance(header_alg, str) and header_alg in family:
            return [header_alg]
        return [jwk.algorithm_name]
