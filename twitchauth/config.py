import os
from typing import Any, Dict, Optional

import yaml

from . import constants
from .utils import TwitchAuthException, arrayify_scopes

_DEFAULTS = {
    'client_id' : None,
    'redirect_uri' : constants.DEFAULT_REDIRECT_URI,
    'scopes' : [],
    'base_scopes' : [],
    'login_timeout' : constants.DEFAULT_LOGIN_TIMEOUT,
    'close_timeout' : constants.DEFAULT_CLOSE_TIMEOUT,
    'force_verify' : False,
}

def loadConfig( path: Optional[str] = None ) -> Dict[str, Any]:
    '''Load the login settings.

    Settings are acquired in the following order, later ones winning:
    1- built-in defaults.
    2- the YAML file at path, or TWITCHAUTH_CONFIG, or "~/.twitchauth".
    3- TWITCH_CLIENT_ID, TWITCH_REDIRECT_URI and TWITCH_SCOPES environment variables.

    Args:
        path (str): optional path to a YAML configuration file.

    Returns:
        a dict of settings.
    '''
    config = dict( _DEFAULTS )

    if path is None:
        path = os.environ.get( constants.CONFIG_FILE_ENV_VAR, None ) or constants.CONFIG_FILE_PATH

    if os.path.isfile( path ):
        with open( path, 'rb' ) as f:
            fileConfig = yaml.safe_load( f.read() )
        if fileConfig is None:
            fileConfig = {}
        if not isinstance( fileConfig, dict ):
            raise TwitchAuthException( 'invalid configuration file, expected a mapping: %s' % ( path, ) )
        for k, v in fileConfig.items():
            if k in _DEFAULTS and v is not None:
                config[ k ] = v

    clientId = os.environ.get( constants.CLIENT_ID_ENV_VAR, None )
    if clientId:
        config[ 'client_id' ] = clientId
    redirectUri = os.environ.get( constants.REDIRECT_URI_ENV_VAR, None )
    if redirectUri:
        config[ 'redirect_uri' ] = redirectUri
    scopes = os.environ.get( constants.SCOPES_ENV_VAR, None )
    if scopes:
        config[ 'scopes' ] = scopes

    config[ 'scopes' ] = arrayify_scopes( config[ 'scopes' ] )
    config[ 'base_scopes' ] = arrayify_scopes( config[ 'base_scopes' ] )
    try:
        config[ 'login_timeout' ] = float( config[ 'login_timeout' ] )
        config[ 'close_timeout' ] = float( config[ 'close_timeout' ] )
    except ( TypeError, ValueError ):
        raise TwitchAuthException( 'invalid timeout in configuration: login_timeout=%r close_timeout=%r' % ( config[ 'login_timeout' ], config[ 'close_timeout' ] ) )
    config[ 'force_verify' ] = bool( config[ 'force_verify' ] )

    return config
