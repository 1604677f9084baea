from .common import validate_format
from .common import get_rng

__all__ = ['validate_format',
           'get_rng']
