"""Internal implementation of `~certbot_dns_dode._internal.dns_dode` plugin."""
