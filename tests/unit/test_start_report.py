"""Unit tests for the end-of-run messages."""

import click

from loftctl.start.report import SSL_GUIDE_URL, dns_instructions, local_success, remote_success


class TestSuccessMessages:
    """Tests for the login banners."""

    def test_remote(self):
        text = click.unstyle(remote_success("loft.example.com", "s3cret"))

        assert "Username: admin" in text
        assert "Password: s3cret" in text
        assert "loft login --insecure https://loft.example.com" in text
        assert SSL_GUIDE_URL in text

    def test_local(self):
        text = click.unstyle(local_success(9898, "s3cret"))

        assert "Login via UI:  https://localhost:9898" in text
        assert "port-forwarding has been started" in text
        assert SSL_GUIDE_URL not in text


def test_dns_instructions_name_the_host():
    text = dns_instructions("loft.example.com")

    assert "DNS CONFIGURATION REQUIRED" in text
    assert "A-record for loft.example.com" in text
