"""Errors raised by metadata loading, token validation, and the login flow."""

HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_INTERNAL_SERVER_ERROR = 500


class MetadataError(RuntimeError):
    """Discovery document or JWKS could not be fetched or parsed.

    Raised at start-up this is fatal: nothing can be validated without it.
    """


class TokenValidationError(Exception):
    """Base class for bearer token rejections (always HTTP 401)."""

    status_code = HTTP_UNAUTHORIZED


class MalformedHeader(TokenValidationError):
    """Authorization header is missing or not ``Bearer <token>``."""

    def __init__(self) -> None:
        super().__init__(
            "authorization header format must be: Bearer {the base64 url "
            "encoded access token without curly braces}"
        )


class MalformedToken(TokenValidationError):
    """Token is not a parseable compact JWS."""


class InvalidSignature(TokenValidationError):
    """Signature does not verify against any cached key."""


class ClaimValidationFailed(TokenValidationError):
    """Issuer, audience, or time window check failed."""


class MultipleAudiences(ClaimValidationFailed):
    """Token names more than one audience."""

    def __init__(self) -> None:
        super().__init__("access token contained multiple audiences")


class InsufficientScope(TokenValidationError):
    """Token is valid but lacks the scope the route requires."""

    def __init__(self, required_scope: str) -> None:
        super().__init__("access token did not contain the required scope")
        self.required_scope = required_scope


class LoginFlowError(Exception):
    """Base class for failures between /login and an established session."""

    status_code = HTTP_INTERNAL_SERVER_ERROR


class InvalidState(LoginFlowError):
    """Callback ``state`` does not match the one stored at login."""

    status_code = HTTP_BAD_REQUEST

    def __init__(self) -> None:
        super().__init__("Invalid state parameter")


class InvalidNonce(LoginFlowError):
    """ID token ``nonce`` does not match the one stored at login."""

    status_code = HTTP_BAD_REQUEST

    def __init__(self) -> None:
        super().__init__("Invalid nonce")


class TokenExchangeError(LoginFlowError):
    """The token endpoint answered with an OAuth error."""

    status_code = HTTP_UNAUTHORIZED


class MissingIdToken(LoginFlowError):
    """The token response carried no ``id_token``."""

    def __init__(self) -> None:
        super().__init__("No id_token field in oauth2 token.")


class IdTokenVerificationError(LoginFlowError):
    """The ID token failed signature or claim checks."""


class UpstreamError(LoginFlowError):
    """An outbound call to the provider or the API failed at the network level."""
