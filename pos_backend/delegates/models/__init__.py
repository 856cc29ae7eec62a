from .delegate import Delegate
from .commission import Commission

__all__ = ["Delegate", "Commission"]
