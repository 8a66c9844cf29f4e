"""Credential persistence and OAuth2 authorization."""

from .credentials import (
    Credential,
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
    credential_key,
)
from .oauth import (
    Authorizer,
    LocalCallbackAuthorizer,
    OAuthClient,
    OAuthTransport,
    obtain_credential,
)

__all__ = [
    "Credential",
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "credential_key",
    "Authorizer",
    "LocalCallbackAuthorizer",
    "OAuthClient",
    "OAuthTransport",
    "obtain_credential",
]
