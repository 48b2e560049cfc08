"""Authorization Code + PKCE login with a signed request object."""

import logging
import secrets
from collections.abc import Sequence
from urllib.parse import urlencode

from pkjwt.crypto.jwt_signer import JWTSigner
from pkjwt.crypto.pkce import (
    generate_code_verifier_and_challenge,
    generate_nonce,
    generate_state,
)
from pkjwt.oidc.discovery import MetadataCache
from pkjwt.oidc.errors import InvalidState, LoginFlowError, MissingIdToken
from pkjwt.oidc.id_token import verify_id_token
from pkjwt.oidc.token_client import TokenClient
from pkjwt.oidc.types import (
    EstablishedLogin,
    LoginRedirect,
    LoginStep,
    PendingLogin,
)

logger = logging.getLogger(__name__)


def _with_query(url: str, params: dict[str, str]) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params)}"


def build_logout_url(
    end_session_endpoint: str, id_token: str | None, post_logout_redirect_uri: str
) -> str:
    """End-session URL that returns the browser to ``post_logout_redirect_uri``.

    Without ``id_token_hint`` the provider asks the user to confirm and does
    not redirect back.
    """
    params = {"post_logout_redirect_uri": post_logout_redirect_uri}
    if id_token:
        params = {"id_token_hint": id_token, **params}
    return _with_query(end_session_endpoint, params)


class LoginFlow:
    """Drives one relying party's logins from redirect to verified ID token.

    ``START -> REDIRECTED`` happens in :meth:`start`; the remaining steps
    up to ``ID_TOKEN_VERIFIED`` happen in :meth:`complete`. Persisting the
    result (``SESSION_ESTABLISHED``) is left to the caller.
    """

    def __init__(
        self,
        *,
        signer: JWTSigner,
        metadata: MetadataCache,
        token_client: TokenClient,
        redirect_uri: str,
        scopes: Sequence[str],
    ) -> None:
        self._signer = signer
        self._metadata = metadata
        self._token_client = token_client
        self._redirect_uri = redirect_uri
        self._scopes = list(scopes)

    def start(self) -> LoginRedirect:
        """Generate one-time values and the authorization request URL."""
        metadata = self._metadata.get()
        state = generate_state()
        nonce = generate_nonce()
        pkce = generate_code_verifier_and_challenge()

        request_object = self._signer.create_request_object(
            audience=metadata.issuer,
            redirect_uri=self._redirect_uri,
            scopes=self._scopes,
            state=state,
            nonce=nonce,
            code_challenge=pkce.code_challenge,
        )
        params = {
            "client_id": self._signer.client_id,
            "response_type": "code",
            "redirect_uri": self._redirect_uri,
            "scope": " ".join(self._scopes),
            "state": state,
            "code_challenge": pkce.code_challenge,
            "code_challenge_method": pkce.code_challenge_method,
            "nonce": nonce,
            "request": request_object,
        }
        logger.debug("Login step %s", LoginStep.REDIRECTED)
        return LoginRedirect(
            authorization_url=_with_query(metadata.authorization_endpoint, params),
            pending=PendingLogin(
                state=state, nonce=nonce, code_verifier=pkce.code_verifier
            ),
        )

    async def complete(
        self, pending: PendingLogin, *, state: str | None, code: str | None
    ) -> EstablishedLogin:
        """Check ``state``, redeem ``code`` and verify the returned ID token."""
        step = LoginStep.CALLBACK_RECEIVED
        try:
            if state is None or not secrets.compare_digest(
                state.encode(), pending.state.encode()
            ):
                raise InvalidState()

            tokens = await self._token_client.exchange_code(
                code=code or "",
                code_verifier=pending.code_verifier,
                redirect_uri=self._redirect_uri,
            )
            step = LoginStep.CODE_EXCHANGED
            if not tokens.id_token:
                raise MissingIdToken()

            snapshot = self._metadata.snapshot()
            claims = verify_id_token(
                tokens.id_token,
                snapshot.require_jwks(),
                issuer=snapshot.metadata.issuer,
                client_id=self._signer.client_id,
                expected_nonce=pending.nonce,
            )
            step = LoginStep.ID_TOKEN_VERIFIED
        except LoginFlowError as exc:
            logger.warning(
                "Login %s after step %s: %s", LoginStep.FAILED, step, exc
            )
            raise

        logger.info("Login verified for sub=%s", claims.sub)
        return EstablishedLogin(
            id_token=tokens.id_token,
            access_token=tokens.access_token,
            claims=claims.model_dump(),
        )
