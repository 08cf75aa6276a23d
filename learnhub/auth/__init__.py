"""Bearer-token authentication and role checks.

Tokens are issued by the identity service; this package only verifies them.
"""
