"""
NoteKeeper — Cognito Authentication Service
===========================================

What:  Sign-in, token refresh and sign-out against an Amazon Cognito user pool.
Why:   Credentials are owned by the identity provider. This module only
       exchanges a username/password for tokens and keeps them fresh.
How:   boto3 `cognito-idp` client; USER_PASSWORD_AUTH for sign-in,
       REFRESH_TOKEN_AUTH for refresh. Blocking calls run in the thread pool.
Who:   Called by the auth routes (sign-in/sign-out) and by each session's
       NotesView (through its token provider) before GraphQL calls.

Not handled:
    Sign-up, MFA, new-password and other challenges. A challenge response
    is reported as an AuthenticationError naming the challenge.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from notekeeper.config import settings
from notekeeper.exceptions import AuthenticationError, NoteKeeperError

logger = logging.getLogger(__name__)

# Cognito error codes that mean "these credentials are not acceptable"
CREDENTIAL_ERRORS = {
    "NotAuthorizedException": "Incorrect username or password.",
    "UserNotFoundException": "Incorrect username or password.",
    "UserNotConfirmedException": "This account has not been confirmed yet.",
    "PasswordResetRequiredException": "A password reset is required for this account.",
}


@dataclass
class CognitoTokens:
    """Tokens from one successful authentication."""
    access_token: str
    id_token: str
    refresh_token: Optional[str]
    expires_at: float

    @classmethod
    def from_result(cls, result: dict, refresh_token: Optional[str] = None) -> "CognitoTokens":
        """Build from an `AuthenticationResult`; refresh responses omit RefreshToken."""
        return cls(
            access_token=result["AccessToken"],
            id_token=result.get("IdToken", ""),
            refresh_token=result.get("RefreshToken", refresh_token),
            expires_at=time.time() + int(result.get("ExpiresIn", 3600)),
        )


class CognitoAuthService:
    """
    Thin wrapper around the Cognito user pool client.

    Token lifecycle:
        sign_in ──▶ tokens (access ~1h, refresh ~30d)
        access_token_for ──▶ refresh when < REFRESH_MARGIN_SECONDS remain
        sign_out ──▶ optional global revocation
    """

    REFRESH_MARGIN_SECONDS = 60

    def __init__(self, client_id: Optional[str] = None, region: Optional[str] = None, client=None):
        self._client_id = client_id
        self._region = region
        self._client = client

    @property
    def client_id(self) -> str:
        return self._client_id or settings.cognito_client_id

    @property
    def region(self) -> str:
        """Explicit region, else the user pool id's region prefix, else AWS_REGION."""
        if self._region:
            return self._region
        pool_id = settings.cognito_user_pool_id
        if "_" in pool_id:
            return pool_id.split("_", 1)[0]
        return settings.aws_region

    def _get_client(self):
        if self._client is None:
            self._client = boto3.client("cognito-idp", region_name=self.region)
        return self._client

    async def _initiate_auth(self, flow: str, parameters: dict) -> dict:
        try:
            return await run_in_threadpool(
                self._get_client().initiate_auth,
                ClientId=self.client_id,
                AuthFlow=flow,
                AuthParameters=parameters,
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in CREDENTIAL_ERRORS:
                raise AuthenticationError(message=CREDENTIAL_ERRORS[code], context={"code": code})
            logger.error("Cognito %s failed: %s", flow, str(e))
            raise NoteKeeperError(
                message="Sign-in is temporarily unavailable. Please try again later.",
                context={"code": code, "flow": flow},
            )
        except BotoCoreError as e:
            logger.error("Cognito %s unreachable: %s", flow, str(e))
            raise NoteKeeperError(
                message="Sign-in is temporarily unavailable. Please try again later.",
                context={"error_type": type(e).__name__, "flow": flow},
            )

    async def sign_in(self, username: str, password: str) -> CognitoTokens:
        """
        Exchange a username and password for tokens.

        Raises:
            AuthenticationError: Rejected credentials or an unhandled challenge
            NoteKeeperError: Identity provider misconfigured or unreachable
        """
        response = await self._initiate_auth(
            "USER_PASSWORD_AUTH",
            {"USERNAME": username, "PASSWORD": password},
        )
        challenge = response.get("ChallengeName")
        if challenge:
            raise AuthenticationError(
                message=f"Sign-in requires the {challenge} step, which this app does not support.",
                context={"challenge": challenge},
            )
        logger.info("User %s signed in", username)
        return CognitoTokens.from_result(response["AuthenticationResult"])

    async def refresh(self, tokens: CognitoTokens) -> CognitoTokens:
        """Trade the refresh token for a new access token."""
        if not tokens.refresh_token:
            raise AuthenticationError(message="Your session has expired. Please sign in again.")
        response = await self._initiate_auth(
            "REFRESH_TOKEN_AUTH",
            {"REFRESH_TOKEN": tokens.refresh_token},
        )
        return CognitoTokens.from_result(
            response["AuthenticationResult"],
            refresh_token=tokens.refresh_token,
        )

    async def access_token_for(self, session) -> Optional[str]:
        """
        Current access token for a session, refreshed if it is about to expire.

        Returns None for sessions without tokens (authentication disabled).
        """
        tokens = session.tokens
        if tokens is None:
            return None
        if tokens.expires_at - time.time() < self.REFRESH_MARGIN_SECONDS:
            logger.debug("Refreshing access token for %s", session.username)
            session.tokens = await self.refresh(tokens)
        return session.tokens.access_token

    async def sign_out(self, tokens: Optional[CognitoTokens]) -> None:
        """
        Revoke the tokens at Cognito when GLOBAL_SIGN_OUT is set.

        The local session is dropped by the caller either way, so a failed
        revocation is logged and not raised.
        """
        if tokens is None or not settings.global_sign_out:
            return
        try:
            await run_in_threadpool(self._get_client().global_sign_out, AccessToken=tokens.access_token)
        except (ClientError, BotoCoreError) as e:
            logger.warning("Global sign-out failed: %s", str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
cognito_auth = CognitoAuthService()
