"""Registration of DNS-01 solvers with an ACME webhook.

Serving the webhook API is left to the host process; this module only holds
the solvers registered under a group name and dispatches challenge requests
to them.

Usage::

    from certbot_dns_dode._internal.solver import ChallengeRequest, DodeSolver
    from certbot_dns_dode._internal.webhook import bootstrap

    webhook = bootstrap('acme.example.com', [DodeSolver()])
    response = webhook.solve('dode', ChallengeRequest.from_json(body))
"""
import logging
from typing import Dict
from typing import Iterable
from typing import Optional

import josepy as jose

from certbot import errors as certbot_errors

from certbot_dns_dode._internal import errors
from certbot_dns_dode._internal import fields
from certbot_dns_dode._internal.secrets import ClusterConfig
from certbot_dns_dode._internal.solver import ACTION_CLEANUP
from certbot_dns_dode._internal.solver import ACTION_PRESENT
from certbot_dns_dode._internal.solver import ChallengeRequest
from certbot_dns_dode._internal.solver import Solver

logger = logging.getLogger(__name__)

API_VERSION = 'v1alpha1'
STATUS_FAILURE = 'Failure'


class ChallengeStatus(fields.JSONObject):
    """Details of a failed challenge request.

    :ivar str status: Always ``Failure``.
    :ivar str message: Human readable description of the failure.
    :ivar str reason: Machine readable class of the failure.

    """
    status: str = fields.string('status')
    message: str = fields.string('message')
    reason: str = fields.string('reason')


def _decode_status(value: Optional[dict]) -> Optional[ChallengeStatus]:
    if value is None:
        return None
    return ChallengeStatus.from_json(value)


class ChallengeResponse(fields.JSONObject):
    """Outcome of a challenge request.

    :ivar str uid: Identifier of the request answered.
    :ivar bool success: Whether the request succeeded.
    :ivar ChallengeStatus status: Failure details, if the request failed.

    """
    uid: str = fields.string('uid')
    success: bool = fields.boolean('success', omitempty=False)
    status: Optional[ChallengeStatus] = jose.field(
        'status', omitempty=True, decoder=_decode_status)


class Webhook:
    """
    Solvers registered under an API group.

    :ivar str group_name: API group the solvers are served under.
    :ivar dict solvers: Map of solver names to solvers.
    """

    def __init__(self, group_name: str, solvers: Iterable[Solver]) -> None:
        if not group_name:
            raise errors.ConfigError('A group name must be specified.')
        self.group_name = group_name
        self.solvers: Dict[str, Solver] = {}
        for solver in solvers:
            name = solver.name()
            if name in self.solvers:
                raise errors.ConfigError('Solver {0} registered twice in group {1}.'
                                         .format(name, group_name))
            self.solvers[name] = solver

    def initialize(self, cluster_config: ClusterConfig) -> None:
        """Initialize every registered solver.

        :param ClusterConfig cluster_config: Credentials to reach the cluster with.

        """
        for name, solver in self.solvers.items():
            logger.debug('Initializing solver %s of group %s', name, self.group_name)
            solver.initialize(cluster_config)

    def get_solver(self, name: str) -> Solver:
        """Find a registered solver.

        :raises .Error: if no solver of that name is registered.

        """
        try:
            return self.solvers[name]
        except KeyError:
            raise errors.Error('No solver named {0} in group {1}; known solvers: {2}'
                               .format(name, self.group_name, ', '.join(sorted(self.solvers))))

    def resource_path(self, solver_name: str) -> str:
        """API path a solver is served under."""
        return '/apis/{0}/{1}/{2}'.format(self.group_name, API_VERSION, solver_name)

    def solve(self, solver_name: str, request: ChallengeRequest) -> ChallengeResponse:
        """
        Dispatch a challenge request to a solver.

        Solver failures are reported in the returned response. The request is
        attempted once; retrying is up to the caller.

        :param str solver_name: Name of the solver to use.
        :param ChallengeRequest request: The challenge request.
        :returns: The outcome of the request.
        :rtype: ChallengeResponse
        """
        try:
            solver = self.get_solver(solver_name)
            if request.action == ACTION_PRESENT:
                solver.present(request)
            elif request.action == ACTION_CLEANUP:
                solver.cleanup(request)
            else:
                raise errors.Error('Unknown challenge action {0!r}'.format(request.action))
        except certbot_errors.PluginError as e:
            logger.error('Failed to %s challenge %s for %s with solver %s: %s',
                         request.action or 'solve', request.uid, request.resolved_fqdn,
                         solver_name, e)
            return ChallengeResponse(
                uid=request.uid, success=False,
                status=ChallengeStatus(status=STATUS_FAILURE, message=str(e),
                                       reason=type(e).__name__))

        logger.debug('%s of challenge %s for %s succeeded', request.action, request.uid,
                     request.resolved_fqdn)
        return ChallengeResponse(uid=request.uid, success=True)


def bootstrap(group_name: str, solvers: Iterable[Solver],
              cluster_config: Optional[ClusterConfig] = None) -> Webhook:
    """
    Register solvers under a group name and initialize them.

    :param str group_name: API group to serve the solvers under.
    :param solvers: The solvers.
    :param ClusterConfig cluster_config: Credentials to reach the cluster with;
        the pod's service account is used if omitted.
    :returns: The webhook.
    :rtype: Webhook
    :raises .ConfigError: if the group name is empty or the cluster config
        cannot be loaded.
    """
    webhook = Webhook(group_name, solvers)
    if cluster_config is None:
        cluster_config = ClusterConfig.in_cluster()
    webhook.initialize(cluster_config)
    return webhook
