"""Server-side client library for the Identity Toolkit admin REST API."""

__version__ = "0.1.0"
