# Integrations: credentials, token cache, OAuth, consent and the Gmail client.
# Created: 2026-10-19

from gmailbridge.integrations.credentials import ClientCredentials, CredentialStore
from gmailbridge.integrations.flow import (
    AuthorizationFlow,
    AuthorizedAction,
    AuthorizedClient,
)
from gmailbridge.integrations.gmail import GmailClient
from gmailbridge.integrations.token_store import Token, TokenCache

__all__ = [
    "AuthorizationFlow",
    "AuthorizedAction",
    "AuthorizedClient",
    "ClientCredentials",
    "CredentialStore",
    "GmailClient",
    "Token",
    "TokenCache",
]
