from .query import SQLAlchemyQuery  # noqa: F401
from .resource import SQLAlchemyResource  # noqa: F401
from .schema import SortColumn, Where  # noqa: F401
