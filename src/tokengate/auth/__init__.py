"""Authentication and authorization.

Learn: Two credentials with different lifetimes:
1. Access token → stateless HS256 JWT in the accessToken cookie, 1 hour
2. Refresh token → opaque random string in the refreshToken cookie,
   stored server-side, 7 days, single use

Verification resolves an access token to an AccessClaims identity
({id, role}); role gates authorize against that identity.
"""
