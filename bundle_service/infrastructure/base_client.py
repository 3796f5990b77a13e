"""Base class for credentialed storage clients."""

import logging

from ..application.exceptions import ConfigurationError


class BaseClient:
    """A base client that validates its credentials and owns a logger."""

    def __init__(self, access_key: str, secret_key: str):
        """
        Initializes the base client.

        Args:
            access_key: The access key id.
            secret_key: The secret access key.

        Raises:
            ConfigurationError: If a credential is missing or appears to be
                                a placeholder.
        """

        for credential in (access_key, secret_key):
            if not credential or "YOUR_" in credential.upper():
                raise ConfigurationError(
                    f"Credentials for {self.__class__.__name__} are missing "
                    f"or are placeholders. Please check your config files."
                )

        self.access_key = access_key
        self.secret_key = secret_key
        self.logger = logging.getLogger(self.__class__.__name__)
