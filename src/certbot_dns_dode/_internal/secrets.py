"""Resolution of the DODE API token from a secret store."""
import abc
import base64
from collections.abc import Mapping
import logging
from typing import Dict
from typing import NamedTuple
from typing import Optional
from urllib.parse import quote

import requests

from certbot.compat import os

from certbot_dns_dode._internal import errors
from certbot_dns_dode._internal import fields

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
SERVICE_ACCOUNT_DIR = '/var/run/secrets/kubernetes.io/serviceaccount'


class SecretKeySelector(fields.JSONObject):
    """Reference to a single key of a secret.

    :ivar str name: Name of the secret.
    :ivar str key: Key of the entry within the secret.

    """
    name: str = fields.string('name')
    key: str = fields.string('key')


class ClusterConfig(NamedTuple):
    """Credentials used to reach the cluster API server."""
    host: str
    token: Optional[str] = None
    ca_cert: Optional[str] = None

    @classmethod
    def in_cluster(cls, service_account_dir: str = SERVICE_ACCOUNT_DIR) -> 'ClusterConfig':
        """Build the configuration of the pod's own service account.

        :param str service_account_dir: Directory the service account is mounted on.
        :raises .ConfigError: if not running inside a cluster.

        """
        host = os.environ.get('KUBERNETES_SERVICE_HOST')
        port = os.environ.get('KUBERNETES_SERVICE_PORT')
        if not host or not port:
            raise errors.ConfigError('Unable to load in-cluster configuration, '
                                     'KUBERNETES_SERVICE_HOST and KUBERNETES_SERVICE_PORT '
                                     'must be defined')
        if ':' in host:
            host = '[{0}]'.format(host)

        token_path = os.path.join(service_account_dir, 'token')
        try:
            with open(token_path) as f:
                token = f.read().strip()
        except OSError as e:
            raise errors.ConfigError('Unable to read service account token {0}: {1}'
                                     .format(token_path, e)) from e

        ca_cert: Optional[str] = os.path.join(service_account_dir, 'ca.crt')
        if not os.path.exists(ca_cert):
            ca_cert = None

        return cls(host='https://{0}:{1}'.format(host, port), token=token, ca_cert=ca_cert)


class SecretStore(metaclass=abc.ABCMeta):
    """Read-only, namespaced key-value secret store."""

    @abc.abstractmethod
    def get(self, namespace: str, name: str) -> Mapping[str, bytes]:  # pragma: no cover
        """Fetch a secret.

        :param str namespace: Namespace of the secret.
        :param str name: Name of the secret.
        :returns: Map of the secret's keys to their raw content.
        :raises .SecretNotFound: if the secret does not exist.
        :raises .SecretStoreError: if the store could not be read.

        """
        raise NotImplementedError()


class KubernetesSecretStore(SecretStore):
    """
    Reads secrets from the Kubernetes API server.
    """

    def __init__(self, cluster_config: ClusterConfig, timeout: int = DEFAULT_TIMEOUT) -> None:
        self.host = cluster_config.host.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        if cluster_config.token:
            self.session.headers['Authorization'] = 'Bearer ' + cluster_config.token
        if cluster_config.ca_cert:
            self.session.verify = cluster_config.ca_cert

    def get(self, namespace: str, name: str) -> Dict[str, bytes]:
        url = '{0}/api/v1/namespaces/{1}/secrets/{2}'.format(
            self.host, quote(namespace, safe=''), quote(name, safe=''))
        logger.debug('Fetching secret %s/%s', namespace, name)

        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise errors.SecretStoreError('Error communicating with the Kubernetes API: {0}'
                                          .format(e), namespace=namespace, name=name) from e

        if resp.status_code == 404:
            raise errors.SecretNotFound('secrets "{0}" not found in namespace {1}'
                                        .format(name, namespace), namespace=namespace, name=name)
        if resp.status_code != 200:
            raise errors.SecretStoreError('Kubernetes API returned HTTP {0} for secret "{1}/{2}"'
                                          .format(resp.status_code, namespace, name),
                                          namespace=namespace, name=name)

        try:
            data = resp.json().get('data') or {}
            return {key: base64.b64decode(value, validate=True) for key, value in data.items()}
        except (ValueError, TypeError, AttributeError) as e:
            raise errors.SecretStoreError('Malformed secret "{0}/{1}" returned by the Kubernetes '
                                          'API: {2}'.format(namespace, name, e),
                                          namespace=namespace, name=name) from e


def resolve_credential(store: SecretStore, secret_ref: SecretKeySelector, namespace: str) -> str:
    """
    Resolve a credential referenced by a secret key selector.

    :param SecretStore store: The store to read the secret from.
    :param SecretKeySelector secret_ref: Which secret, and which key within it, to use.
    :param str namespace: Namespace the secret lives in.
    :returns: The credential.
    :rtype: str
    :raises .ConfigError: if the reference or namespace is empty.
    :raises .SecretNotFound: if the secret does not exist.
    :raises .SecretKeyNotFound: if the secret does not contain the key.
    :raises .SecretStoreError: if the store could not be read.
    """
    if not secret_ref.name:
        raise errors.ConfigError('No secret name configured in apiTokenSecretRef')
    if not namespace:
        raise errors.ConfigError('No namespace given to look up secret `{0}`'
                                 .format(secret_ref.name))

    logger.debug('try to load secret `%s` with key `%s`', secret_ref.name, secret_ref.key)

    try:
        record = store.get(namespace, secret_ref.name)
    except errors.SecretError as e:
        raise type(e)('unable to get secret `{0}` with key `{1}`; {2}'
                      .format(secret_ref.name, secret_ref.key, e),
                      namespace=namespace, name=secret_ref.name, key=secret_ref.key) from e

    try:
        value = record[secret_ref.key]
    except KeyError:
        raise errors.SecretKeyNotFound('key "{0}" not found in secret "{1}/{2}"'
                                       .format(secret_ref.key, namespace, secret_ref.name),
                                       namespace=namespace, name=secret_ref.name,
                                       key=secret_ref.key)

    try:
        return value.decode('utf-8')
    except UnicodeDecodeError as e:
        raise errors.SecretStoreError('key "{0}" of secret "{1}/{2}" is not valid UTF-8'
                                      .format(secret_ref.key, namespace, secret_ref.name),
                                      namespace=namespace, name=secret_ref.name,
                                      key=secret_ref.key) from e
