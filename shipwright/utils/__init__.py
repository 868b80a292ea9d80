from .merge import deep_merge
from .fileio import atomic_write

__all__ = ['deep_merge', 'atomic_write']
