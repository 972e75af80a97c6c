"""Internal constants shared across the library."""

import math

APP_NAME = "АвтоКонтроль"
USER_AGENT = "avtokontrol/0.1"

AUTH_PREFIX = "/auth/v1"
REST_PREFIX = "/rest/v1"

# ------------------------------------------------------------------
# Backend tables
# ------------------------------------------------------------------

TABLE_PROFILES = "profiles"
TABLE_VEHICLES = "vehicles"
TABLE_TRIPS = "trips"
TABLE_USER_SETTINGS = "user_settings"

OWNER_COLUMN = "user_id"

# Error codes / messages the auth service uses for known failure kinds.
INVALID_CREDENTIALS_CODES: frozenset[str] = frozenset({"invalid_credentials", "invalid_grant"})
EMAIL_NOT_CONFIRMED_CODES: frozenset[str] = frozenset({"email_not_confirmed"})
USER_EXISTS_CODES: frozenset[str] = frozenset({"user_already_exists", "email_exists"})
SESSION_EXPIRED_CODES: frozenset[str] = frozenset({"bad_jwt", "session_not_found", "refresh_token_not_found", "PGRST301"})

# ------------------------------------------------------------------
# Preference keys (durable key-value storage)
# ------------------------------------------------------------------

PREF_THEME = "theme"
PREF_IS_AUTHENTICATED = "isAuthenticated"
PREF_SESSION = "avtokontrol-auth-token"

# ------------------------------------------------------------------
# Climate control range (°C)
# ------------------------------------------------------------------

CLIMATE_MIN_C = 16.0
CLIMATE_MAX_C = 30.0
CLIMATE_DEFAULT_C = 22.0


def clamp_temperature(temp_c: float) -> float:
    """Clamp a cabin temperature to the supported 16-30 °C range."""
    value = float(temp_c)
    if math.isnan(value):
        raise ValueError("temperature must be a number, got NaN")
    return max(CLIMATE_MIN_C, min(CLIMATE_MAX_C, value))
