"""
The `~certbot_dns_dode._internal.dns_dode` plugin automates the process of completing a
``dns-01`` challenge (`~acme.challenges.DNS01`) by creating, and subsequently
removing, TXT records using the DODE (do.de) Let's Encrypt API.

The same API client also backs a webhook solver, which reads the API token
from a Kubernetes secret named by each challenge request.


Named Arguments
---------------

========================================  =====================================
``--dns-dode-credentials``                DODE credentials_ INI file.
                                          (Required)
``--dns-dode-propagation-seconds``        The number of seconds to wait for DNS
                                          to propagate before asking the ACME
                                          server to verify the DNS record.
                                          (Default: 60)
========================================  =====================================


Credentials
-----------

Use of this plugin requires a configuration file containing a DODE API token,
obtained from your `DODE account <https://www.do.de>`_.

.. code-block:: ini
   :name: certbot_dode_token.ini
   :caption: Example credentials file:

   # DODE API token used by Certbot
   dns_dode_api_token = 0123456789abcdef0123456789abcdef

The path to this file can be provided interactively or using the
``--dns-dode-credentials`` command-line argument. Certbot records the path
to this file for use during renewal, but does not store the file's contents.

.. caution::
   You should protect this API token as you would the password to your DODE
   account. Users who can read this file can use the token to change the TXT
   records of your domains. Users who can cause Certbot to run using this
   token can complete a ``dns-01`` challenge to acquire new certificates or
   revoke existing certificates for associated domains, even if those domains
   aren't being managed by this server.

Certbot will emit a warning if it detects that the credentials file can be
accessed by other users on your system. The warning reads "Unsafe permissions
on credentials configuration file", followed by the path to the credentials
file. This warning will be emitted each time Certbot uses the credentials file,
including for renewal, and cannot be silenced except by addressing the issue
(e.g., by using a command like ``chmod 600`` to restrict access to the file).

.. note::
   The DODE API removes TXT records by name only. Cleaning up one challenge
   removes every TXT record of that name, including those of challenges for
   the same name that are still pending.


Webhook solver
--------------

`~certbot_dns_dode._internal.solver.DodeSolver` is registered with a webhook
under an explicit API group name and answers ``Present`` and ``CleanUp``
challenge requests. Each request carries its solver configuration, which
references the secret holding the API token:

.. code-block:: json
   :caption: Example solver configuration:

   {
     "apiTokenSecretRef": {
       "name": "dode-credentials",
       "key": "api-token"
     }
   }

The secret is read from the request's resource namespace, using the
webhook's in-cluster service account.


Examples
--------

.. code-block:: bash
   :caption: To acquire a certificate for ``example.com``

   certbot certonly \\
     --dns-dode \\
     --dns-dode-credentials ~/.secrets/certbot/dode.ini \\
     -d example.com

.. code-block:: bash
   :caption: To acquire a single certificate for both ``example.com`` and
             ``www.example.com``

   certbot certonly \\
     --dns-dode \\
     --dns-dode-credentials ~/.secrets/certbot/dode.ini \\
     -d example.com \\
     -d www.example.com

.. code-block:: bash
   :caption: To acquire a certificate for ``example.com``, waiting 120 seconds
             for DNS propagation

   certbot certonly \\
     --dns-dode \\
     --dns-dode-credentials ~/.secrets/certbot/dode.ini \\
     --dns-dode-propagation-seconds 120 \\
     -d example.com

"""
