"""
ORM models for the organisation hierarchy, users, data requests, and
field visit tracking.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

# Re-export commonly used models for convenience and to ensure import side-effects
# register all mapped classes with SQLAlchemy metadata.

from .organization import (  # noqa: F401
    District,
    Cluster,
    School,
)
from .users import (  # noqa: F401
    User,
)
from .requests import (  # noqa: F401
    DataRequest,
    RequestAssignee,
)
from .visits import (  # noqa: F401
    VisitSession,
    LocationSample,
    FieldVisit,
)
