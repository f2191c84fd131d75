from rest_framework.throttling import AnonRateThrottle


class LoginRateThrottle(AnonRateThrottle):
    """Per-IP limit on login attempts (``login`` rate in settings)."""
    scope = 'login'


class RegisterRateThrottle(AnonRateThrottle):
    scope = 'register'
