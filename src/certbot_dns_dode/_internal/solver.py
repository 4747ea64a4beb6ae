"""DNS-01 challenge solver backed by the DODE API."""
import abc
import json
import logging
from typing import Any
from typing import Optional

import josepy as jose

from certbot_dns_dode._internal import dode_client
from certbot_dns_dode._internal import errors
from certbot_dns_dode._internal import fields
from certbot_dns_dode._internal import secrets

logger = logging.getLogger(__name__)

ACTION_PRESENT = 'Present'
ACTION_CLEANUP = 'CleanUp'


class ChallengeRequest(fields.JSONObject):
    """Request to present or clean up a DNS-01 challenge.

    :ivar str uid: Identifier of the request.
    :ivar str action: Either ``Present`` or ``CleanUp``.
    :ivar str typ: Challenge type, ``dns-01``.
    :ivar str dns_name: Name being validated, e.g. ``example.com``.
    :ivar str key: Value of the TXT record.
    :ivar str resource_namespace: Namespace credentials are looked up in.
    :ivar str resolved_fqdn: Name of the TXT record, possibly dot terminated.
    :ivar str resolved_zone: Zone the record lives in.
    :ivar bool allow_ambient_credentials: Whether ambient credentials may be used.
    :ivar config: Opaque, solver specific configuration.

    """
    uid: str = fields.string('uid')
    action: str = fields.string('action')
    typ: str = fields.string('type')
    dns_name: str = fields.string('dnsName')
    key: str = fields.string('key')
    resource_namespace: str = fields.string('resourceNamespace')
    resolved_fqdn: str = fields.string('resolvedFQDN')
    resolved_zone: str = fields.string('resolvedZone')
    allow_ambient_credentials: bool = fields.boolean('allowAmbientCredentials')
    config: Any = jose.field('config', omitempty=True)


def _decode_secret_ref(value: Any) -> secrets.SecretKeySelector:
    if value is None:
        return secrets.SecretKeySelector()
    return secrets.SecretKeySelector.from_json(value)


class DodeConfig(fields.JSONObject):
    """Solver configuration of a single challenge.

    :ivar SecretKeySelector api_token_secret_ref: Secret holding the DODE API token.

    """
    api_token_secret_ref: secrets.SecretKeySelector = jose.field(
        'apiTokenSecretRef', omitempty=True, default=secrets.SecretKeySelector(),
        decoder=_decode_secret_ref)


def load_config(payload: Any) -> DodeConfig:
    """
    Decode the solver configuration of a challenge.

    A missing configuration is not an error; it yields the empty configuration.

    :param payload: JSON document (`str` or `bytes`), decoded JSON object, or ``None``.
    :returns: The decoded configuration.
    :rtype: DodeConfig
    :raises .ConfigDecodeError: if the configuration is malformed.
    """
    if payload is None:
        return DodeConfig()

    try:
        if isinstance(payload, (str, bytes)):
            if not payload.strip():
                return DodeConfig()
            payload = json.loads(payload)
            if payload is None:
                return DodeConfig()
        return DodeConfig.from_json(payload)
    except (ValueError, jose.DeserializationError) as e:
        raise errors.ConfigDecodeError('error decoding solver config: {0}'.format(e)) from e


class Solver(metaclass=abc.ABCMeta):
    """DNS-01 challenge solver, as registered with a `.Webhook`.

    Both `present` and `cleanup` must tolerate being called several times
    with the same request.

    """

    @abc.abstractmethod
    def name(self) -> str:  # pragma: no cover
        """Name of the solver, unique within a webhook."""
        raise NotImplementedError()

    @abc.abstractmethod
    def initialize(self, cluster_config: secrets.ClusterConfig) -> None:  # pragma: no cover
        """Prepare the solver when the webhook starts.

        :param ClusterConfig cluster_config: Credentials to reach the cluster with.

        """
        raise NotImplementedError()

    @abc.abstractmethod
    def present(self, request: ChallengeRequest) -> None:  # pragma: no cover
        """Publish the TXT record of a challenge.

        :param ChallengeRequest request: The challenge.
        :raises certbot.errors.PluginError: if the record could not be published.

        """
        raise NotImplementedError()

    @abc.abstractmethod
    def cleanup(self, request: ChallengeRequest) -> None:  # pragma: no cover
        """Remove the TXT record of a challenge.

        :param ChallengeRequest request: The challenge.
        :raises certbot.errors.PluginError: if the record could not be removed.

        """
        raise NotImplementedError()


class DodeSolver(Solver):
    """
    Solves DNS-01 challenges using the DODE API.

    The API token is read from the secret referenced by each challenge's
    configuration, on every call.
    """

    def __init__(self, secret_store: Optional[secrets.SecretStore] = None,
                 endpoint: str = dode_client.API_URL,
                 timeout: int = dode_client.DEFAULT_TIMEOUT) -> None:
        self.secret_store = secret_store
        self.endpoint = endpoint
        self.timeout = timeout

    def name(self) -> str:
        return 'dode'

    def initialize(self, cluster_config: secrets.ClusterConfig) -> None:
        self.secret_store = secrets.KubernetesSecretStore(cluster_config)

    def present(self, request: ChallengeRequest) -> None:
        with self._get_dode_client(request) as client:
            client.add_txt_record(request.resolved_fqdn, request.key)

    def cleanup(self, request: ChallengeRequest) -> None:
        with self._get_dode_client(request) as client:
            client.del_txt_record(request.resolved_fqdn)

    def _get_dode_client(self, request: ChallengeRequest) -> dode_client.DodeClient:
        if self.secret_store is None:
            raise errors.Error('Solver has not been initialized.')

        try:
            config = load_config(request.config)
        except errors.ConfigDecodeError as e:
            logger.error('Failed to load config of challenge %s: %s', request.uid, e)
            raise

        try:
            api_token = secrets.resolve_credential(
                self.secret_store, config.api_token_secret_ref, request.resource_namespace)
        except errors.Error as e:
            logger.error('Failed to get API token for challenge %s: %s', request.uid, e)
            raise

        return dode_client.DodeClient(api_token, self.endpoint, self.timeout)
