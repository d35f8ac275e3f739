from .profile_manager import ProfileManager

__all__ = ["ProfileManager"]
