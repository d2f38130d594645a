"""
Authentication module for Tavern

Email/password accounts, bcrypt password hashing and JWT bearer tokens.
"""
