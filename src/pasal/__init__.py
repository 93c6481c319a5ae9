"""Pasal — multi-tenant storefront backend.

Stores are addressed by subdomain (``acme.pasal.com``). Owners sign in with
email/password, receive an access/refresh token pair, and manage their stores
and products through the JSON API.
"""

__version__ = "0.1.0"
