# SQLModel definitions, imported so Alembic sees the full metadata.
from .base import IdMixin, TimestampMixin  # noqa: F401
from .organization import Organization  # noqa: F401
from .user import User  # noqa: F401
from .account import Account, CREDENTIAL_PROVIDER  # noqa: F401
from .verification import Verification  # noqa: F401
from .community_member import CommunityMember  # noqa: F401
from .login_event import LoginEvent  # noqa: F401
