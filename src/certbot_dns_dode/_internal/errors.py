"""DODE plugin errors."""
from typing import Optional

from certbot import errors


class Error(errors.PluginError):
    """Generic DODE error."""


class ConfigError(Error):
    """Invalid solver or plugin configuration."""


class ConfigDecodeError(ConfigError):
    """Provider configuration payload could not be decoded."""


class SecretError(Error):
    """Credential could not be resolved from the secret store.

    :ivar str namespace: Namespace the secret was looked up in.
    :ivar str name: Name of the secret.
    :ivar str key: Key within the secret, if known.

    """

    def __init__(self, msg: str, namespace: Optional[str] = None,
                 name: Optional[str] = None, key: Optional[str] = None) -> None:
        super().__init__(msg)
        self.namespace = namespace
        self.name = name
        self.key = key


class SecretNotFound(SecretError):
    """Secret does not exist."""


class SecretKeyNotFound(SecretError):
    """Secret exists but does not contain the requested key."""


class SecretStoreError(SecretError):
    """Secret store could not be read."""


class TransportError(Error):
    """DODE API could not be reached."""


class DecodeError(TransportError):
    """DODE API response is not a valid JSON response."""


class ProviderRejected(Error):
    """DODE API reported a failure."""
