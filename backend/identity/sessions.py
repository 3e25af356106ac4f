# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Token issuance and refresh-token rotation.

Every successful login, registration or refresh goes through
:meth:`SessionManager.issue_and_store`, which keeps exactly one session row
per user.  Storing a new refresh token makes the previous one unusable.
"""

from datetime import timedelta

from core.errors import DuplicateEntryError
from core.security import Signer, TokenKind
from identity.directory import Directory
from identity.types import TokenPair, UserSummary


class SessionManager:
    def __init__(
        self,
        directory: Directory,
        signer: Signer,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=30),
    ) -> None:
        self._directory = directory
        self._signer = signer
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    def mint(self, identity: UserSummary) -> TokenPair:
        claims = identity.as_claims()
        return TokenPair(
            access_token=self._signer.mint(claims, TokenKind.ACCESS, self.access_ttl),
            refresh_token=self._signer.mint(claims, TokenKind.REFRESH, self.refresh_ttl),
        )

    async def issue_and_store(self, user_id: str, identity: UserSummary) -> TokenPair:
        tokens = self.mint(identity)

        existing = await self._directory.find_session_by_user(user_id)
        if existing is not None:
            await self._directory.update_session(user_id, tokens.refresh_token)
            return tokens

        try:
            await self._directory.create_session(user_id, tokens.refresh_token)
        except DuplicateEntryError:
            # A concurrent request inserted first; overwrite it.
            await self._directory.update_session(user_id, tokens.refresh_token)
        return tokens
