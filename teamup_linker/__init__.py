"""Teamup webhook handler that writes meeting links into event custom fields."""

__version__ = "1.0.0"
