"""Import every model so Base.metadata knows all tables."""

from canteen_registry.models.canteen import Canteen  # noqa: F401
from canteen_registry.models.feedback import Feedback  # noqa: F401
from canteen_registry.models.review import Review  # noqa: F401
