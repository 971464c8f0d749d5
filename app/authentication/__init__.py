"""
Authentication application.

This app owns account records and issues the bearer credentials that the
real-time chat connection presents on handshake.

Key components:
    - User model: Email-based user with chat display fields (username,
      avatar, about) and a bot flag for the synthetic assistant peer
    - AuthService: Registration, login and token issuance
    - Contact listing: Everyone except the requesting user

Usage:
    from authentication.models import User
    from authentication.services import AuthService
"""
