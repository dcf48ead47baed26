"""tokengate — access/refresh token authentication for an HTTP API.

Short-lived signed access tokens authorize requests; long-lived opaque
refresh tokens, stored server-side, renew them without asking for
credentials again.
"""

__version__ = "0.1.0"
