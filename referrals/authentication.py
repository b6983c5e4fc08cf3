"""
Authentication classes used by the REST framework.

The dashboards authenticate with the session cookie set by
``/api/login``; scripts and integrations may send the API token returned
by the same endpoint in an ``Authorization: Token <key>`` header.  Keeping
these classes in their own module avoids circular imports when the REST
framework loads authentication classes during initialisation.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword.

    Listed first in the settings so that its ``WWW-Authenticate`` header
    turns anonymous requests into 401 responses.
    """

    keyword = 'Token'


class SessionAuthentication(authentication.SessionAuthentication):
    """Django session authentication with CSRF enforcement for writes."""
