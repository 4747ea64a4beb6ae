"""DNS Authenticator for DODE."""
from typing import Any
from typing import Callable
from typing import Optional

from certbot import errors
from certbot.plugins import dns_common
from certbot.plugins.dns_common import CredentialsConfiguration

from certbot_dns_dode._internal.dode_client import DodeClient

ACCOUNT_URL = 'https://www.do.de'


class Authenticator(dns_common.DNSAuthenticator):
    """DNS Authenticator for DODE

    This Authenticator uses the DODE API to fulfill a dns-01 challenge.
    """

    description = 'Obtain certificates using a DNS TXT record (if you are using DODE for DNS).'

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.credentials: Optional[CredentialsConfiguration] = None

    @classmethod
    def add_parser_arguments(cls, add: Callable[..., None],
                             default_propagation_seconds: int = 60) -> None:
        super().add_parser_arguments(add, default_propagation_seconds)
        add('credentials', help='DODE credentials INI file.')

    def more_info(self) -> str:
        return 'This plugin configures a DNS TXT record to respond to a dns-01 challenge using ' + \
               'the DODE API.'

    def _setup_credentials(self) -> None:
        self.credentials = self._configure_credentials(
            'credentials',
            'DODE credentials INI file',
            {
                'api-token': 'API token for the DODE Let\'s Encrypt API, obtained from {0}'
                             .format(ACCOUNT_URL),
            }
        )

    def _perform(self, domain: str, validation_name: str, validation: str) -> None:
        with self._get_dode_client() as client:
            client.add_txt_record(validation_name, validation)

    def _cleanup(self, domain: str, validation_name: str, validation: str) -> None:
        with self._get_dode_client() as client:
            client.del_txt_record(validation_name)

    def _get_dode_client(self) -> DodeClient:
        if not self.credentials:  # pragma: no cover
            raise errors.Error("Plugin has not been prepared.")
        return DodeClient(self.credentials.conf('api-token'))
