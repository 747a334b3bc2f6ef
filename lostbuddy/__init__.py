# lostbuddy/__init__.py
"""Lost Buddy accounts: registration, login and session handling."""

__version__ = "1.0.0"
