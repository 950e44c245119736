"""
Flask extensions initialization.
Extensions are initialized here and then initialized with the app in app.py.

Callers are authenticated upstream by the identity service, which forwards
the caller as an X-Owner-Id or X-User-Id header. Flask-Login turns that
header into current_user.
"""

from flask_login import LoginManager, UserMixin

# Initialize Flask-Login
login_manager = LoginManager()

OWNER_HEADER = 'X-Owner-Id'
USER_HEADER = 'X-User-Id'


class Principal(UserMixin):
    """The authenticated caller: a shop owner or a customer."""

    def __init__(self, kind: str, account_id: int):
        self.kind = kind
        self.account_id = account_id

    def get_id(self):
        return f'{self.kind}:{self.account_id}'

    @property
    def is_owner(self) -> bool:
        return self.kind == 'owner'

    @property
    def is_customer(self) -> bool:
        return self.kind == 'user'


def _header_id(request, header: str):
    raw = request.headers.get(header, '').strip()
    return int(raw) if raw.isdigit() else None


@login_manager.user_loader
def load_principal(principal_id: str):
    """Rebuild a Principal from its 'kind:id' session identifier."""
    from models.user import get_owner_by_id, get_user_by_id

    kind, _, raw_id = (principal_id or '').partition(':')
    if not raw_id.isdigit():
        return None
    lookup = {'owner': get_owner_by_id, 'user': get_user_by_id}.get(kind)
    if lookup is None or lookup(int(raw_id)) is None:
        return None
    return Principal(kind, int(raw_id))


@login_manager.request_loader
def load_principal_from_request(request):
    """
    Load the caller from the identity headers.

    Returns:
        Principal or None if no valid header was sent
    """
    from models.user import get_owner_by_id, get_user_by_id

    owner_id = _header_id(request, OWNER_HEADER)
    if owner_id is not None and get_owner_by_id(owner_id):
        return Principal('owner', owner_id)

    user_id = _header_id(request, USER_HEADER)
    if user_id is not None and get_user_by_id(user_id):
        return Principal('user', user_id)

    return None


@login_manager.unauthorized_handler
def unauthorized():
    """JSON 401 instead of a login redirect."""
    from utils.api_response import api_error
    return api_error('Authentication required', status=401)
