"""Tests for certbot_dns_dode._internal.dns_dode."""

import sys
from unittest import mock

import pytest

from certbot import errors
from certbot.compat import os
from certbot.plugins import dns_test_common
from certbot.plugins.dns_test_common import DOMAIN
from certbot.tests import util as test_util

API_TOKEN = 'An-API-Token'


class AuthenticatorTest(test_util.TempDirTestCase, dns_test_common.BaseAuthenticatorTest):

    def setUp(self):
        from certbot_dns_dode._internal.dns_dode import Authenticator

        super().setUp()

        path = os.path.join(self.tempdir, 'file.ini')
        dns_test_common.write({"dode_api_token": API_TOKEN}, path)

        self.config = mock.MagicMock(dode_credentials=path,
                                     dode_propagation_seconds=0)  # don't wait during tests

        self.auth = Authenticator(self.config, "dode")

        self.mock_client = mock.MagicMock()
        self.mock_client.__enter__.return_value = self.mock_client
        # _get_dode_client | pylint: disable=protected-access
        setattr(self.auth, '_get_dode_client', mock.MagicMock(return_value=self.mock_client))

    @test_util.patch_display_util()
    def test_perform(self, unused_mock_get_utility):
        self.auth.perform([self.achall])

        expected = [mock.call.__enter__(),
                    mock.call.add_txt_record('_acme-challenge.'+DOMAIN, mock.ANY),
                    mock.call.__exit__(None, None, None)]
        assert expected == self.mock_client.mock_calls

    def test_cleanup(self):
        # _attempt_cleanup | pylint: disable=protected-access
        self.auth._attempt_cleanup = True
        self.auth.cleanup([self.achall])

        expected = [mock.call.__enter__(),
                    mock.call.del_txt_record('_acme-challenge.'+DOMAIN),
                    mock.call.__exit__(None, None, None)]
        assert expected == self.mock_client.mock_calls

    def test_no_creds(self):
        dns_test_common.write({}, self.config.dode_credentials)
        with pytest.raises(errors.PluginError):
            self.auth.perform([self.achall])

    @test_util.patch_display_util()
    def test_perform_provider_error(self, unused_mock_get_utility):
        from certbot_dns_dode._internal.errors import ProviderRejected

        self.mock_client.add_txt_record.side_effect = ProviderRejected('rate limited')

        with pytest.raises(errors.PluginError):
            self.auth.perform([self.achall])


class GetDodeClientTest(test_util.TempDirTestCase):

    def setUp(self):
        from certbot_dns_dode._internal.dns_dode import Authenticator

        super().setUp()

        path = os.path.join(self.tempdir, 'file.ini')
        dns_test_common.write({"dode_api_token": API_TOKEN}, path)

        self.config = mock.MagicMock(dode_credentials=path, dode_propagation_seconds=0)
        self.auth = Authenticator(self.config, "dode")

    @test_util.patch_display_util()
    @mock.patch('certbot_dns_dode._internal.dns_dode.DodeClient')
    def test_perform(self, mock_client_class, unused_mock_get_utility):
        mock_client = mock_client_class.return_value
        mock_client.__enter__.return_value = mock_client
        achall = dns_test_common.BaseAuthenticatorTest.achall

        self.auth.perform([achall])

        mock_client_class.assert_called_once_with(API_TOKEN)
        mock_client.add_txt_record.assert_called_once_with('_acme-challenge.'+DOMAIN, mock.ANY)
        mock_client.__exit__.assert_called_once_with(None, None, None)


if __name__ == "__main__":
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
