"""Authentication and authorization.

Learn: two tokens per session, each signed with its own secret:
1. Access token → short-lived, sent as Bearer header or ``accessToken`` cookie
2. Refresh token → long-lived, only its argon2 hash is kept server-side

Every API route declares a RouteAccess descriptor; the guard chain checks
public → authenticated → role, in that order.
"""
