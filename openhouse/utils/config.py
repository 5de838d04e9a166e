"""Application settings read from environment variables."""

import os


def _int_set(raw: str) -> frozenset[int]:
    return frozenset(int(part) for part in raw.split(",") if part.strip())


class AppConfig:
    """Service configuration."""

    SUPABASE_URL = os.environ.get("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

    # Google OAuth client used for the per-agent Gmail/Calendar token sets
    GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET = os.environ.get("GOOGLE_CLIENT_SECRET", "")
    GOOGLE_TOKEN_URI = os.environ.get("GOOGLE_TOKEN_URI", "https://oauth2.googleapis.com/token")
    GOOGLE_AUTH_URI = os.environ.get("GOOGLE_AUTH_URI", "https://accounts.google.com/o/oauth2/v2/auth")
    GOOGLE_REDIRECT_URI = os.environ.get("GOOGLE_REDIRECT_URI", "http://localhost:3000/auth/google/callback")
    GOOGLE_SCOPES = os.environ.get(
        "GOOGLE_SCOPES",
        "https://www.googleapis.com/auth/gmail.send https://www.googleapis.com/auth/calendar.events",
    ).split()

    SITE_URL = os.environ.get("SITE_URL", "http://localhost:3000")
    EVENT_TIMEZONE = os.environ.get("EVENT_TIMEZONE", "Europe/Rome")
    ALLOWED_SLOT_DURATIONS = _int_set(os.environ.get("ALLOWED_SLOT_DURATIONS", "15,20,30"))
    QUESTIONNAIRE_URL = os.environ.get("QUESTIONNAIRE_URL", "")

    NOTIFICATION_HTTP_TIMEOUT_SECONDS = float(os.environ.get("NOTIFICATION_HTTP_TIMEOUT_SECONDS", "10"))
    # Refresh access tokens that expire within this margin
    TOKEN_REFRESH_MARGIN_SECONDS = int(os.environ.get("TOKEN_REFRESH_MARGIN_SECONDS", "300"))
