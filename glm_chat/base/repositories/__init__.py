from .keys import KeyResolution, KeysRepository

__all__ = ["KeyResolution", "KeysRepository"]
