"""Session service: the acting user's identity and role.

Authentication itself happens elsewhere; the engine only ever asks this service
who is acting, and never reads identity from ambient state.
"""

from enum import Enum

import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger(__name__)


class ActorRole(Enum):
    USER = "user"
    RETAILER = "retailer"
    ADMIN = "admin"


class Actor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    email: str
    role: ActorRole = ActorRole.USER

    @property
    def is_retailer(self) -> bool:
        return self.role == ActorRole.RETAILER


class SessionService:
    def __init__(self, actor: Actor | None = None) -> None:
        self._actor = actor

    @property
    def current_actor(self) -> Actor | None:
        return self._actor

    @property
    def is_authenticated(self) -> bool:
        return self._actor is not None

    @property
    def role(self) -> ActorRole | None:
        return self._actor.role if self._actor else None

    def sign_in(self, actor: Actor) -> None:
        self._actor = actor
        logger.info("session_signed_in", actor_id=actor.id, role=actor.role.value)

    def sign_out(self) -> None:
        if self._actor is not None:
            logger.info("session_signed_out", actor_id=self._actor.id)
        self._actor = None
