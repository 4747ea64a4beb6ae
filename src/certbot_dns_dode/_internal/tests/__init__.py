"""Tests for certbot_dns_dode."""
