"""Configuration management for smartsync."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import ValidationError


@dataclass
class OAuthConfig:
    """OAuth2 authorization-code flow and endpoint discovery settings."""

    authorize_url: str = "https://graph.api.smartthings.com/oauth/authorize"
    token_url: str = "https://graph.api.smartthings.com/oauth/token"
    endpoints_url: str = "https://graph.api.smartthings.com/api/smartapps/endpoints"
    redirect_uri: str = "http://localhost:4567/OAuthCallback"
    scope: str = "app"


@dataclass
class HTTPConfig:
    """HTTP transport configuration."""

    timeout: float = 10.0  # seconds, per request
    user_agent: str = "smartsync/0.1.0"


@dataclass
class Config:
    """Main configuration for smartsync."""

    client_id: str = ""
    secret: str = ""
    store_dir: Path = field(default_factory=lambda: Path.home() / ".smartsync")
    oauth: OAuthConfig = field(default_factory=OAuthConfig)
    http: HTTPConfig = field(default_factory=HTTPConfig)
    verbose: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.store_dir, str):
            self.store_dir = Path(self.store_dir).expanduser()

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from JSON file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        config = cls()
        if "client_id" in data:
            config.client_id = data["client_id"]
        if "secret" in data:
            config.secret = data["secret"]
        if "store_dir" in data:
            config.store_dir = Path(data["store_dir"]).expanduser()
        if "verbose" in data:
            config.verbose = data["verbose"]

        if "oauth" in data:
            for key, value in data["oauth"].items():
                if hasattr(config.oauth, key):
                    setattr(config.oauth, key, value)

        if "http" in data:
            for key, value in data["http"].items():
                if hasattr(config.http, key):
                    setattr(config.http, key, value)

        return config

    def apply_env(self) -> "Config":
        """Override credentials and store location from the environment."""
        client_id = os.environ.get("SMARTSYNC_CLIENT_ID")
        if client_id:
            self.client_id = client_id
        secret = os.environ.get("SMARTSYNC_SECRET")
        if secret:
            self.secret = secret
        store_dir = os.environ.get("SMARTSYNC_STORE_DIR")
        if store_dir:
            self.store_dir = Path(store_dir).expanduser()
        return self

    def validate(self) -> None:
        """Check that the settings required to connect are present.

        Raises:
            ValidationError: If the client id or secret is missing, or the
                timeout is not positive.
        """
        if not self.client_id:
            raise ValidationError("Missing OAuth client id", "set client_id or SMARTSYNC_CLIENT_ID")
        if not self.secret:
            raise ValidationError("Missing OAuth secret", "set secret or SMARTSYNC_SECRET")
        if self.http.timeout <= 0:
            raise ValidationError(f"Invalid HTTP timeout: {self.http.timeout}")

    def save(self, path: Path) -> None:
        """Save configuration to JSON file."""
        data = {
            "client_id": self.client_id,
            "secret": self.secret,
            "store_dir": str(self.store_dir),
            "verbose": self.verbose,
            "oauth": {
                "authorize_url": self.oauth.authorize_url,
                "token_url": self.oauth.token_url,
                "endpoints_url": self.oauth.endpoints_url,
                "redirect_uri": self.oauth.redirect_uri,
                "scope": self.oauth.scope,
            },
            "http": {
                "timeout": self.http.timeout,
                "user_agent": self.http.user_agent,
            },
        }
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(data, f, indent=2)


_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        config_path = Path(os.environ.get("SMARTSYNC_CONFIG", ".smartsync.json"))
        _config = Config.from_file(config_path).apply_env()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
