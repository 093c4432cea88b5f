from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession


class BaseService:
    """
    Base class for services. Holds a session shared by the service's repositories.

    Services keep business rules and orchestration and delegate data access to
    repositories, so tests can swap the repositories for in-memory fakes.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
