"""Bearer credential sources for the Fabric and Power BI APIs."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .errors import AuthError

# Scope used by both the Power BI and Fabric REST APIs
DEFAULT_SCOPE = "https://analysis.windows.net/powerbi/api/.default"


@dataclass(frozen=True)
class Credential:
    """An acquired bearer token."""

    token: str
    account_label: str = ""

    def __repr__(self) -> str:
        return f"Credential(token='***', account_label={self.account_label!r})"


class CredentialSource:
    """Supplies a bearer token for a scope.

    Subclasses return ``None`` when no session is available and may raise
    ``AuthError`` when acquisition fails outright.
    """

    def acquire(self, scope: str = DEFAULT_SCOPE) -> Credential | None:
        raise NotImplementedError

    def require(self, scope: str = DEFAULT_SCOPE) -> Credential:
        """Acquire a credential or raise ``AuthError``."""
        try:
            credential = self.acquire(scope)
        except AuthError:
            raise
        except Exception as e:
            raise AuthError(f"Credential acquisition failed: {e}") from e

        if credential is None or not credential.token:
            raise AuthError(f"No session available for scope {scope}")
        return credential


class StaticCredentialSource(CredentialSource):
    """Hands out a token that was obtained elsewhere."""

    def __init__(self, token: str | None, account_label: str = "") -> None:
        self.token = token
        self.account_label = account_label

    def acquire(self, scope: str = DEFAULT_SCOPE) -> Credential | None:
        if not self.token:
            return None
        return Credential(token=self.token, account_label=self.account_label)


class EnvCredentialSource(CredentialSource):
    """Reads the token from the environment (or a ``.env`` file)."""

    TOKEN_VAR = "FABRIC_ACCESS_TOKEN"
    LABEL_VAR = "FABRIC_ACCOUNT_LABEL"

    def __init__(self, token_var: str | None = None, label_var: str | None = None) -> None:
        """Initialize from environment variable names.

        Args:
            token_var: Variable holding the bearer token (default FABRIC_ACCESS_TOKEN)
            label_var: Variable holding an account label (default FABRIC_ACCOUNT_LABEL)
        """
        load_dotenv()
        self.token_var = token_var or self.TOKEN_VAR
        self.label_var = label_var or self.LABEL_VAR

    def acquire(self, scope: str = DEFAULT_SCOPE) -> Credential | None:
        token = os.getenv(self.token_var, "").strip()
        if not token:
            return None
        return Credential(token=token, account_label=os.getenv(self.label_var, ""))
