from .me import MeView, RegisterView

__all__ = [
    "RegisterView",
    "MeView",
]
