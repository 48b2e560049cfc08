"""Tests for client signing key generation and loading."""

import json

import pytest
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from pkjwt.crypto.keys import KeyLoadError, load_signing_key
from pkjwt.crypto.types import GeneratedSigningKey


class TestGenerateSigningKey:
    """Tests for generate_signing_key."""

    def test_private_jwk_has_private_parts(
        self, generated_client_key: GeneratedSigningKey
    ) -> None:
        jwk = generated_client_key.private_jwk
        assert jwk["kty"] == "RSA"
        assert jwk["alg"] == "PS256"
        assert jwk["kid"] == generated_client_key.kid
        for field in ("n", "e", "d", "p", "q"):
            assert jwk[field]

    def test_public_jwk_matches(self, generated_client_key: GeneratedSigningKey) -> None:
        public = generated_client_key.public_jwk
        assert public.kid == generated_client_key.kid
        assert public.alg == "PS256"
        assert public.use == "sig"
        assert public.n == generated_client_key.private_jwk["n"]
        assert public.e == generated_client_key.private_jwk["e"]

    def test_kid_is_nonempty(self, generated_client_key: GeneratedSigningKey) -> None:
        assert len(generated_client_key.kid) > 10


class TestLoadSigningKey:
    """Tests for load_signing_key."""

    def test_loads_private_key(self, generated_client_key: GeneratedSigningKey) -> None:
        key = load_signing_key(json.dumps(generated_client_key.private_jwk))
        assert isinstance(key.key, RSAPrivateKey)
        assert key.kid == generated_client_key.kid
        assert key.algorithm == "PS256"

    def test_repr_does_not_leak_key(
        self, generated_client_key: GeneratedSigningKey
    ) -> None:
        key = load_signing_key(json.dumps(generated_client_key.private_jwk))
        text = repr(key)
        assert generated_client_key.private_jwk["d"] not in text
        assert generated_client_key.kid in text

    def test_rejects_public_key(self, generated_client_key: GeneratedSigningKey) -> None:
        public = generated_client_key.public_jwk.model_dump()
        with pytest.raises(KeyLoadError):
            load_signing_key(json.dumps(public))

    def test_rejects_invalid_json(self) -> None:
        with pytest.raises(KeyLoadError):
            load_signing_key("{not json")

    def test_rejects_missing_kid(
        self, generated_client_key: GeneratedSigningKey
    ) -> None:
        jwk = dict(generated_client_key.private_jwk)
        del jwk["kid"]
        with pytest.raises(KeyLoadError):
            load_signing_key(json.dumps(jwk))

    def test_rejects_non_rsa(self) -> None:
        with pytest.raises(KeyLoadError):
            load_signing_key(json.dumps({"kty": "oct", "k": "abc", "kid": "x"}))
