import os

# Path to the configuration file. Can be overriden for tests.
CONFIG_FILE_PATH = os.path.expanduser( '~/.twitchauth' )

# Environment variables taking precedence over the configuration file.
CONFIG_FILE_ENV_VAR = 'TWITCHAUTH_CONFIG'
CLIENT_ID_ENV_VAR = 'TWITCH_CLIENT_ID'
REDIRECT_URI_ENV_VAR = 'TWITCH_REDIRECT_URI'
SCOPES_ENV_VAR = 'TWITCH_SCOPES'

# Provider endpoints.
AUTHORIZE_URL = 'https://id.twitch.tv/oauth2/authorize'
VALIDATE_URL = 'https://id.twitch.tv/oauth2/validate'

DEFAULT_REDIRECT_URI = 'http://localhost:3000/auth'

# Lifecycle timers, in seconds.
DEFAULT_LOGIN_TIMEOUT = 300  # 5 minutes
DEFAULT_CLOSE_TIMEOUT = 2  # lets the last response flush before closing

# Timeout for outbound calls to the provider API.
HTTP_REQUEST_TIMEOUT = 30

# Directory holding the pages served by the redirect server.
WWW_DIR = os.path.join( os.path.dirname( os.path.abspath( __file__ ) ), 'www' )
