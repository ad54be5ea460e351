"""RelayDNS: a caching DNS forwarder."""

__version__ = "0.1.0"
