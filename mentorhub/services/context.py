from dataclasses import dataclass
from typing import Optional

from mentorhub.services.errors import Unauthorized

ADMIN = 'admin'
STUDENT = 'student'


@dataclass(frozen=True)
class RequestContext:
    """The authenticated principal a core operation acts on behalf of."""

    user_id: Optional[int]
    role: Optional[str]
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def is_admin(self):
        return self.role == ADMIN

    def require(self, *roles):
        if self.user_id is None or self.role not in roles:
            raise Unauthorized()
        return self

    @classmethod
    def for_user(cls, user, request=None):
        if request is None:
            return cls(user_id=user.id, role=user.role)
        forwarded = request.headers.get('X-Forwarded-For', '')
        return cls(
            user_id=user.id,
            role=user.role,
            ip_address=forwarded.split(',')[0].strip() or request.remote_addr,
            user_agent=request.headers.get('User-Agent'),
        )

    @classmethod
    def system(cls):
        """Principal for gateway callbacks and scheduled jobs."""
        return cls(user_id=None, role='system')
