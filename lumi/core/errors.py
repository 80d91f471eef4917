"""
Shared exception types for the learning coach backend
FILE: lumi/core/errors.py
"""


class LumiError(Exception):
    """Base exception for learning coach errors"""
    pass


class ConfigurationError(ValueError):
    """Raised when Supabase/Gemini configuration is invalid or incomplete"""
    pass


class IdentityResolutionError(LumiError):
    """Raised when no user id could be determined for a tool invocation"""
    pass


class StoreWriteError(LumiError):
    """Raised when a primary insert fails or returns no row"""
    pass


class LessonNotFoundError(LumiError):
    """Raised when a quiz is requested for a lesson that cannot be loaded"""
    pass


class QuizNotFoundError(LumiError):
    """Raised when a submitted quiz cannot be loaded"""
    pass


class QuizOwnershipError(LumiError):
    """Raised when a user submits answers for another user's quiz"""
    pass
