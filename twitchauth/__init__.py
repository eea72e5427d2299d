"""twitchauth, browser login for local applications using the OAuth implicit grant"""

__version__ = "1.0.0"
__license__ = "MIT"

from .oauth_server import OAuthRedirectServer, ListenerState
from .pending import PendingRequest
from .provider import AuthProvider, AccessToken, validate_access_token
from .utils import TwitchAuthException, AuthServerError, AuthServerResponse, ServerErrorTypes
from .utils import set_default_print_debug_fn
from .config import loadConfig
from . import events
