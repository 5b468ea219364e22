"""User profile lookups."""

from .models import Profile
from .services import ProfileCache, ProfileService

__all__ = ["Profile", "ProfileCache", "ProfileService"]
