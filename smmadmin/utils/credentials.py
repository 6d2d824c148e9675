"""Credential normalization for Meta provider credential mappings.

Brand credentials arrive as free-form JSON, and the app identity has been
stored under several field names over time. Everything downstream works on
the canonical AppCredentials shape produced here.
"""

from typing import Any, Dict, Optional

from smmadmin.models import AppCredentials


APP_ID_ALIASES = ("app_id", "appId", "client_id", "clientId")
APP_SECRET_ALIASES = ("app_secret", "appSecret", "client_secret", "clientSecret")


def _first_present(credentials: Dict[str, Any], aliases) -> Optional[str]:
    for alias in aliases:
        value = credentials.get(alias)
        if value:
            return str(value)
    return None


def normalize_app_credentials(
    credentials: Optional[Dict[str, Any]]
) -> Optional[AppCredentials]:
    """Extract the app id and secret from a credentials mapping.

    Args:
        credentials: Provider credentials mapping (may be None)

    Returns:
        AppCredentials, or None when either the id or the secret is missing
    """
    if not credentials:
        return None

    app_id = _first_present(credentials, APP_ID_ALIASES)
    app_secret = _first_present(credentials, APP_SECRET_ALIASES)
    if not app_id or not app_secret:
        return None
    return AppCredentials(app_id=app_id, app_secret=app_secret)


def canonicalize_credentials(credentials: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy with ``app_id``/``app_secret`` filled in from any alias.

    The original alias keys are kept so the publishing workflow still sees
    the fields it was configured with.
    """
    result = dict(credentials)
    app = normalize_app_credentials(credentials)
    if app:
        if not result.get("app_id"):
            result["app_id"] = app.app_id
        if not result.get("app_secret"):
            result["app_secret"] = app.app_secret
    return result
