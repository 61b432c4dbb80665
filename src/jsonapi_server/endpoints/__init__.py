from .base import Endpoint, Route  # noqa: F401
from .create import Create  # noqa: F401
from .delete import Delete  # noqa: F401
from .index import Index  # noqa: F401
from .show import Show  # noqa: F401
from .update import Update  # noqa: F401
