from .concerns import HasMeta, HasVisibility  # noqa: F401
from .field import Attribute, Field, Id, Relationship, ToMany, ToOne  # noqa: F401
from .filter import CustomFilter, Filter  # noqa: F401
from .meta import Meta  # noqa: F401
from .sort import ASC, DESC, CustomSort, Sort  # noqa: F401
