from slowapi import Limiter

from app.features.users.dependencies import get_authorization_header


# Keyed by Authorization header so each caller gets its own bucket
limiter = Limiter(key_func=get_authorization_header)
