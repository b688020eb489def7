"""Channel collaborators: outbound messaging, generation and profiles."""

from .base import GenerativeResponder, MessagingSink, ProfileProvider
from .console import ConsoleSink, StaticProfileProvider, StaticResponder

__all__ = [
    "MessagingSink",
    "GenerativeResponder",
    "ProfileProvider",
    "ConsoleSink",
    "StaticResponder",
    "StaticProfileProvider",
]
