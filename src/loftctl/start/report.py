"""Text shown to the operator at the end of a run."""

from __future__ import annotations

import click

ADMIN_USERNAME = "admin"
SSL_GUIDE_URL = "https://loft.sh/docs/administration/ssl"


def _highlight(text: str) -> str:
    return click.style(text, fg="green", bold=True)


def _login_block(url: str, password: str) -> str:
    return (
        "##########################   LOGIN   ############################\n"
        "\n"
        f"Username: {_highlight(ADMIN_USERNAME)}\n"
        f"Password: {_highlight(password)}\n"
        "\n"
        f"Login via UI:  {_highlight(url)}\n"
        f"Login via CLI: {_highlight(f'loft login --insecure {url}')}\n"
        "\n"
        "!!! You must accept the untrusted certificate in your browser !!!\n"
    )


def remote_success(host: str, password: str) -> str:
    """Login details for an install reachable on a public hostname."""
    url = f"https://{host}"
    return (
        "\n\n"
        + _login_block(url, password)
        + "\n"
        f"Follow this guide to add a valid certificate: {SSL_GUIDE_URL}\n"
        "\n"
        "#################################################################\n"
        "\n"
        f"Loft was successfully installed and can now be reached at: {url}\n"
        "\n"
        "Thanks for using loft!\n"
    )


def local_success(port: int, password: str) -> str:
    """Login details for an install reached through port-forwarding."""
    url = f"https://localhost:{port}"
    return (
        "\n\n"
        + _login_block(url, password)
        + "\n"
        "#################################################################\n"
        "\n"
        "Loft was successfully installed and port-forwarding has been started.\n"
        "If you stop this command, run 'loft start' again to restart port-forwarding.\n"
        "\n"
        "Thanks for using loft!\n"
    )


def dns_instructions(host: str) -> str:
    """What to do so that ``host`` resolves to the ingress controller."""
    return f"""

###################################     DNS CONFIGURATION REQUIRED     ##################################

Create a DNS A-record for {host} with the EXTERNAL-IP of your nginx-ingress controller.
To find this EXTERNAL-IP, run the following command and look at the output:

> kubectl get services -n ingress-nginx
                                                     |---------------|
NAME                       TYPE           CLUSTER-IP | EXTERNAL-IP   |  PORT(S)                      AGE
ingress-nginx-controller   LoadBalancer   10.0.0.244 | XX.XXX.XXX.XX |  80:30984/TCP,443:31758/TCP   19m
                                                     |^^^^^^^^^^^^^^^|

EXTERNAL-IP may be 'pending' for a while until your cloud provider has created a new load balancer.

#########################################################################################################

The command will wait until loft is reachable under the host. You can also abort and use port-forwarding instead
by running 'loft start' again.

"""


WELCOME = (
    "\n"
    "Welcome to the loft installation.\n"
    "This installer will guide you through the installation.\n"
    "If you prefer installing loft via helm yourself, visit "
    "https://loft.sh/docs/getting-started/setup\n"
    "Thanks for trying out loft!\n"
)
