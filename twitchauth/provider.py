"""
Auth provider facade.

Keeps the access token the application currently holds and the scopes it
covers, and runs a browser login through the redirect server whenever a
caller needs scopes the current token does not have. Tokens only live in
memory: nothing is written to disk and expired tokens are not refreshed.
"""

import time
from typing import Dict, List, Optional, Union

import requests

from .constants import HTTP_REQUEST_TIMEOUT, VALIDATE_URL
from .oauth_server import OAuthRedirectServer
from .utils import DebugPrinter, TwitchAuthException, arrayify_scopes, maskToken, mergeScopes


class AccessToken( object ):
    '''A user access token and the scopes it was granted.'''

    def __init__( self, access_token: str, scope = None, obtained_at: Optional[float] = None ):
        self.access_token = access_token
        self.scope = arrayify_scopes( scope )
        self.obtained_at = time.time() if obtained_at is None else obtained_at

    def has_scopes( self, scopes ) -> bool:
        granted = set( self.scope )
        return all( s in granted for s in arrayify_scopes( scopes ) )

    def __repr__( self ):
        return 'AccessToken(%r, scope=%r)' % ( maskToken( self.access_token ), self.scope )


class AuthProvider( object ):
    '''Provides user access tokens, logging in through the browser when needed.'''

    token_type = 'user'

    def __init__( self, client_id: str, redirect_uri: str, scopes = None, access_token: Union[AccessToken, str, None] = None, server: Optional[OAuthRedirectServer] = None, print_debug_fn = None, **server_options ):
        """
        Args:
            client_id (str): the application's client ID.
            redirect_uri (str): the registered redirect URI.
            scopes (list|str): scopes the application already holds.
            access_token (AccessToken|str): a previously obtained token, if any.
            server (OAuthRedirectServer): the redirect server to use, one is created from the other arguments if not set.
            print_debug_fn (function(message)): a callback function that will receive detailed debug messages.
            server_options: extra keyword arguments for the OAuthRedirectServer.
        """
        self._client_id = client_id
        self._redirect_uri = redirect_uri
        self._current_scopes: List[str] = mergeScopes( arrayify_scopes( scopes ) )
        self._access_token: Optional[AccessToken] = None
        self._printDebug = DebugPrinter( print_debug_fn )
        if server is None:
            server = OAuthRedirectServer( client_id, redirect_uri, print_debug_fn = print_debug_fn, **server_options )
        self._server = server

        if access_token:
            self.set_access_token( access_token )

    @property
    def client_id( self ) -> str:
        return self._client_id

    @property
    def redirect_uri( self ) -> str:
        return self._redirect_uri

    @property
    def current_scopes( self ) -> List[str]:
        return list( self._current_scopes )

    @property
    def server( self ) -> OAuthRedirectServer:
        return self._server

    def set_access_token( self, access_token: Union[AccessToken, str, None] ):
        '''Set the token in use, a plain string is assumed to cover the current scopes.'''
        if isinstance( access_token, str ):
            access_token = AccessToken( access_token, self.current_scopes )
        self._access_token = access_token
        if access_token is not None:
            self._current_scopes = mergeScopes( self._current_scopes, access_token.scope )

    def get_access_token( self, scopes = None, timeout = None ) -> AccessToken:
        '''Get a token covering the requested scopes.

        The known token is returned when it already covers them, otherwise a
        browser login is run for all of the scopes held so far plus the new ones.

        Args:
            scopes (list|str): scopes needed by the caller.
            timeout (float): optional number of seconds to wait for the login.

        Returns:
            an AccessToken.

        Raises:
            AuthServerError: if the login fails.
        '''
        scopes = arrayify_scopes( scopes )
        self._printDebug( 'getAccessToken: %s' % ( scopes, ) )
        if self._access_token is not None and self._access_token.has_scopes( scopes ):
            return self._access_token

        wanted = mergeScopes( self._current_scopes, scopes )
        response = self._server.login( wanted, timeout = timeout )
        token = AccessToken( response.access_token, response.scope )
        self._access_token = token
        self._current_scopes = mergeScopes( self._current_scopes, token.scope )
        return token

    def validate_access_token( self, access_token: Union[AccessToken, str, None] = None ) -> Dict:
        '''Validate the current token, or the one given, with the provider.'''
        if access_token is None:
            access_token = self._access_token
        if access_token is None:
            raise TwitchAuthException( 'no access token to validate' )
        if isinstance( access_token, AccessToken ):
            access_token = access_token.access_token
        return validate_access_token( access_token )


def validate_access_token( access_token: str, validate_url: str = VALIDATE_URL ) -> Dict:
    """
    Check a token with the provider's validate endpoint.

    Args:
        access_token (str): the token to check.
        validate_url (str): the provider's validate endpoint.

    Returns:
        the provider's description of the token (client_id, login, scopes, expires_in...).

    Raises:
        TwitchAuthException: if the token is invalid or the request fails.
    """
    try:
        response = requests.get( validate_url, headers = { 'Authorization' : 'OAuth %s' % ( access_token, ) }, timeout = HTTP_REQUEST_TIMEOUT )
    except requests.exceptions.RequestException as e:
        raise TwitchAuthException( f"Failed to validate token: {str(e)}" )

    if response.status_code == 401:
        raise TwitchAuthException( 'Invalid access token', code = 401 )
    if response.status_code != 200:
        raise TwitchAuthException( 'Failed to validate token (%s): %s' % ( response.status_code, response.text ), code = response.status_code )

    try:
        return response.json()
    except ValueError:
        raise TwitchAuthException( 'Invalid validation response: %s' % ( response.text, ) )
