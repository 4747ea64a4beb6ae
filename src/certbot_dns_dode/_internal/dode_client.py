"""Client for the DODE Let's Encrypt API."""
import logging
import re
from types import TracebackType
from typing import Any
from typing import Dict
from typing import Optional
from typing import Type

import josepy as jose
import requests

from certbot_dns_dode._internal import errors
from certbot_dns_dode._internal import fields

logger = logging.getLogger(__name__)

API_URL = 'https://www.do.de/api/letsencrypt'
DEFAULT_TIMEOUT = 30

_TOKEN_PARAM_RE = re.compile(r'([?&]token=)[^&\s"]*')


def _redact_token(value: Any) -> Any:
    if isinstance(value, str):
        return _TOKEN_PARAM_RE.sub(r'\1***', value)
    return value


class _RedactTokenFilter(logging.Filter):
    """Masks the token query parameter in request lines logged by urllib3."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = _redact_token(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(_redact_token(arg) for arg in record.args)
        return True


# urllib3 logs every request URL at debug level, and the token is a query parameter
logging.getLogger('urllib3.connectionpool').addFilter(_RedactTokenFilter())


def normalize_fqdn(fqdn: str) -> str:
    """
    Strip the trailing root zone dot from a fully qualified domain name.

    >>> normalize_fqdn('_acme-challenge.example.com.')
    '_acme-challenge.example.com'

    :param str fqdn: The domain name, with or without the trailing dot.
    :returns: The domain name without the trailing dot.
    :rtype: str
    """
    if fqdn.endswith('.'):
        return fqdn[:-1]
    return fqdn


class ProviderResponse(fields.JSONObject):
    """Response of the DODE API.

    :ivar bool success: Whether the request succeeded.
    :ivar str error: Error reported by the API, if any.

    """
    success: bool = fields.boolean('success')
    error: str = fields.string('error')


class DodeClient:
    """
    Encapsulates all communication with the DODE API.

    Every call is a single request; failures are raised to the caller, which
    owns the retry policy.
    """

    def __init__(self, api_token: str, endpoint: str = API_URL,
                 timeout: int = DEFAULT_TIMEOUT) -> None:
        self.api_token = api_token
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = requests.Session()

    def __enter__(self) -> 'DodeClient':
        return self

    def __exit__(self, exc_type: Optional[Type[BaseException]],
                 exc_value: Optional[BaseException],
                 traceback: Optional[TracebackType]) -> None:
        self.close()

    def close(self) -> None:
        """Release the connections of the underlying session."""
        self.session.close()

    def add_txt_record(self, record_name: str, record_content: str) -> None:
        """
        Ensure a TXT record with the supplied content is published.

        Safe to call repeatedly with the same arguments.

        :param str record_name: The record name (typically beginning with '_acme-challenge.').
        :param str record_content: The record content (typically the challenge validation).
        :raises .TransportError: if the DODE API could not be reached or answered garbage.
        :raises .ProviderRejected: if the DODE API reported a failure.
        """
        domain = normalize_fqdn(record_name)
        logger.debug('Attempting to add TXT record for %s', domain)
        self._api_request('add', domain, {'value': record_content})
        logger.debug('Successfully added TXT record for %s', domain)

    def del_txt_record(self, record_name: str) -> None:
        """
        Ensure the TXT record of the supplied name is removed.

        The DODE API deletes by name, so every TXT record of ``record_name`` is
        removed regardless of its content.

        :param str record_name: The record name (typically beginning with '_acme-challenge.').
        :raises .TransportError: if the DODE API could not be reached or answered garbage.
        :raises .ProviderRejected: if the DODE API reported a failure.
        """
        domain = normalize_fqdn(record_name)
        logger.debug('Attempting to delete TXT record for %s', domain)
        self._api_request('delete', domain, {'action': 'delete'})
        logger.debug('Successfully deleted TXT record for %s', domain)

    def _api_request(self, action: str, domain: str, extra: Dict[str, str]) -> ProviderResponse:
        params = {'token': self.api_token, 'domain': domain}
        params.update(extra)

        try:
            resp = self.session.get(self.endpoint, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            # str(e) may include the request URL, and with it the token
            logger.error('Encountered %s querying DODE API for %s of %s',
                         type(e).__name__, action, domain)
            raise errors.TransportError('Error querying DODE API for {0} of {1}: {2}'
                                        .format(action, domain, type(e).__name__)) from e

        logger.debug('DODE API answered HTTP %d for %s of %s', resp.status_code, action, domain)

        try:
            response = ProviderResponse.json_loads(resp.text)
        except jose.DeserializationError as e:
            logger.error('Invalid DODE API response (HTTP %d) for %s of %s: %s',
                         resp.status_code, action, domain, e)
            raise errors.DecodeError('DODE API response for {0} of {1} is not valid '
                                     '(HTTP {2}): {3}'
                                     .format(action, domain, resp.status_code, e)) from e

        if not response.success:
            logger.error('DODE API rejected %s of %s: %s', action, domain, response.error)
            raise errors.ProviderRejected('DODE API error for {0} of {1}: {2}'
                                          .format(action, domain, response.error))

        return response
