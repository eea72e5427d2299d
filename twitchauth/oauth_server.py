"""
Local redirect server for the OAuth 2.0 implicit grant.

The server binds to the host and port of the registered redirect URI, opens
the provider's authorize page in the browser and waits for the callback. The
provider delivers the token in the URL fragment, which browsers never send
to a server: the landing page (auth.html) turns the fragment into a query
string against /token, or forwards provider errors to /error.

Everything runs on the gevent hub. Request handlers, the login timeout and
the delayed close are greenlets, and none of the state transitions below
yield, so no locking is needed.
"""

import urllib.parse
import webbrowser
from typing import Callable, List, Optional

import gevent
import gevent.pool
from gevent.event import AsyncResult
from gevent.pywsgi import WSGIServer

from . import events
from .anti_forgery import AntiForgeryRegistry
from .constants import AUTHORIZE_URL, DEFAULT_CLOSE_TIMEOUT, DEFAULT_LOGIN_TIMEOUT, WWW_DIR
from .pages import CONTENT_TYPE_CSS, CONTENT_TYPE_HTML, CONTENT_TYPE_ICON, readAsset, renderPage
from .pending import PendingRequest
from .sockets import SocketRegistry
from .utils import AuthServerError, AuthServerResponse, DebugPrinter, ServerErrorTypes, TwitchAuthException, arrayify_scopes, mergeScopes

INVALID_STATE_MESSAGE = 'Connection refused, the state does not match!'


class ListenerState:
    IDLE = 'idle'
    STARTING = 'starting'
    LISTENING = 'listening'
    CLOSING = 'closing'


class _TrackingWSGIServer( WSGIServer ):
    '''WSGI server recording every accepted connection in a SocketRegistry.'''

    def __init__( self, listener, application, registry: SocketRegistry, **kwargs ):
        super().__init__( listener, application, **kwargs )
        self._registry = registry

    def handle( self, sock, address ):
        key = self._registry.add( sock, address )
        try:
            super().handle( sock, address )
        finally:
            self._registry.discard( key )


class OAuthRedirectServer( object ):
    '''Catches the implicit grant callback on the redirect URI.'''

    def __init__( self, client_id: str, redirect_uri: str, base_scopes: Optional[List[str]] = None, close_timeout: float = DEFAULT_CLOSE_TIMEOUT, login_timeout: float = DEFAULT_LOGIN_TIMEOUT, force_verify: bool = False, force_verify_once: bool = False, authorize_url: str = AUTHORIZE_URL, open_browser_fn: Optional[Callable[[str], Optional[bool]]] = None, on_event: Optional[Callable[[str, dict], None]] = None, print_debug_fn: Optional[Callable[[str], None]] = None, www_dir: str = WWW_DIR ):
        '''Create a redirect server, the socket is only bound on the first listen().

        Args:
            client_id (str): the application's client ID registered with the provider.
            redirect_uri (str): the registered redirect URI, a loopback http URL like "http://localhost:3000/auth".
            base_scopes (list): scopes always requested in addition to the ones passed to listen().
            close_timeout (float): seconds to wait after a login settles before closing the server.
            login_timeout (float): seconds to wait for the callback before giving up on a login.
            force_verify (bool): if True, the provider re-prompts for consent on every login.
            force_verify_once (bool): if True, the provider re-prompts for consent on the next login only.
            authorize_url (str): the provider's authorize endpoint.
            open_browser_fn (function(url)): opens the authorize URL, webbrowser.open by default; returning False reports a failure.
            on_event (function(event, payload)): optional observer of lifecycle events, see twitchauth.events.
            print_debug_fn (function(message)): a callback function that will receive detailed debug messages.
            www_dir (str): directory holding the served pages.
        '''
        if not client_id:
            raise TwitchAuthException( 'a client_id is required' )
        parsed = urllib.parse.urlparse( redirect_uri or '' )
        if parsed.scheme != 'http' or not parsed.hostname:
            raise TwitchAuthException( 'redirect_uri must be an http URL with a host: %s' % ( redirect_uri, ) )

        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.host = parsed.hostname
        self.port = parsed.port or 80
        self.auth_path = parsed.path or '/'
        self.base_scopes = arrayify_scopes( base_scopes )
        self.authorize_url = authorize_url

        self.close_timeout = close_timeout
        self.login_timeout = login_timeout
        self.force_verify = force_verify
        self.force_verify_once = force_verify_once

        self._www_dir = www_dir
        self._open_browser = open_browser_fn or webbrowser.open
        self._printDebug = DebugPrinter( print_debug_fn )
        self._events = events.LifecycleEventSink( on_event, print_debug_fn )

        self._state = ListenerState.IDLE
        self._server: Optional[WSGIServer] = None
        self._starting: Optional[AsyncResult] = None
        self._pending: Optional[PendingRequest] = None
        self._states = AntiForgeryRegistry()
        self._sockets = SocketRegistry( print_debug_fn )
        self._loginTimer: Optional[gevent.Greenlet] = None
        self._closeTimer: Optional[gevent.Greenlet] = None

    @property
    def state( self ) -> str:
        return self._state

    @property
    def is_listening( self ) -> bool:
        return self._server is not None

    @property
    def pending( self ) -> Optional[PendingRequest]:
        return self._pending

    @property
    def server_port( self ) -> Optional[int]:
        if self._server is None:
            return None
        return self._server.server_port

    def enable_force_verify( self, once: bool = False ):
        self.force_verify = True
        self.force_verify_once = once

    def disable_force_verify( self ):
        self.force_verify = False
        self.force_verify_once = False

    def listen( self, scopes = None ) -> PendingRequest:
        '''Start a login for a set of scopes.

        Any login still in progress is rejected as INVALIDATED first. Failures,
        including failing to bind the server, are reported through the returned
        request rather than raised.

        Args:
            scopes (list|str): scopes requested on top of the base scopes.

        Returns:
            a PendingRequest, call get() on it to wait for the AuthServerResponse.
        '''
        scopes = arrayify_scopes( scopes )
        self._events.emit( events.LISTEN, scopes = scopes )

        if self._pending is not None:
            self._reject( AuthServerError( 'Invalidated by new request', ServerErrorTypes.INVALIDATED ) )

        request = PendingRequest( self._states.issue(), scopes )
        self._pending = request
        self._cancelCloseTimer()

        try:
            self._ensureListening()
        except OSError as e:
            self._printDebug( 'failed to listen on %s:%s: %s' % ( self.host, self.port, e ) )
            self._states.consume( request.state )
            self._reject( AuthServerError( 'Failed to listen on %s:%s: %s' % ( self.host, self.port, e ), ServerErrorTypes.SERVER_ERROR ), request )
            return request

        if self._pending is not request:
            # Superseded by another listen() while the bind was in progress.
            self._states.consume( request.state )
            return request

        self._resetLoginTimeout( request )
        self._openAuthPage( request )
        return request

    def login( self, scopes = None, timeout = None ) -> AuthServerResponse:
        '''Blocking version of listen(), returns the response or raises AuthServerError.'''
        return self.listen( scopes ).get( timeout = timeout )

    def shutdown( self ):
        '''Reject any login in progress and close the server right away.'''
        if self._pending is not None:
            self._reject( AuthServerError( 'Server shut down', ServerErrorTypes.INVALIDATED ) )
        self._cancelCloseTimer()
        self._cancelLoginTimer()
        self._close()

    def __enter__( self ):
        return self

    def __exit__( self, exc_type, exc_value, tb ):
        self.shutdown()

    def buildAuthorizeUrl( self, scopes: List[str], state: str ) -> str:
        '''Build the provider URL for one login, consuming a force-verify-once.'''
        force_verify = self.force_verify or self.force_verify_once
        query = urllib.parse.urlencode( [
            ( 'client_id', self.client_id ),
            ( 'redirect_uri', self.redirect_uri ),
            ( 'response_type', 'token' ),
            ( 'scope', ' '.join( mergeScopes( self.base_scopes, scopes ) ) ),
            ( 'state', state ),
            ( 'force_verify', 'true' if force_verify else 'false' ),
        ] )
        if self.force_verify_once:
            self.disable_force_verify()
        return '%s?%s' % ( self.authorize_url, query )

    def _openAuthPage( self, request: PendingRequest ):
        url = self.buildAuthorizeUrl( request.scopes, request.state )
        self._printDebug( 'opening auth page for scopes %s' % ( request.scopes, ) )
        self._events.emit( events.BROWSER_OPEN, url = url )
        try:
            opened = self._open_browser( url )
        except Exception as e:
            self._printDebug( 'browser launcher failed: %s' % ( e, ) )
            self._events.emit( events.ERROR, kind = ServerErrorTypes.BROWSER_OPEN_FAILED, message = str( e ), url = url )
            return
        if opened is False:
            self._events.emit( events.ERROR, kind = ServerErrorTypes.BROWSER_OPEN_FAILED, message = 'Could not open a browser', url = url )

    def _ensureListening( self ):
        if self._server is not None:
            return
        if self._starting is not None:
            # Another listen() is binding, share its outcome.
            self._starting.get()
            return

        starting = self._starting = AsyncResult()
        self._state = ListenerState.STARTING
        try:
            self._createServerAndListen()
        except OSError as e:
            self._starting = None
            self._state = ListenerState.IDLE
            starting.set_exception( e )
            raise
        self._starting = None
        starting.set()
        self._events.emit( events.LISTENING, host = self.host, port = self._server.server_port )

    def _createServerAndListen( self ):
        server = _TrackingWSGIServer( ( self.host, self.port ), self._onRequest, self._sockets, spawn = gevent.pool.Pool(), log = None )
        server.start()
        self._server = server
        self._state = ListenerState.LISTENING
        self._printDebug( 'redirect server listening at http://%s:%s' % ( self.host, server.server_port ) )

    def _onRequest( self, environ, start_response ):
        path = environ.get( 'PATH_INFO' ) or '/'
        params = urllib.parse.parse_qs( environ.get( 'QUERY_STRING', '' ) )

        def param( name ):
            values = params.get( name )
            return values[ 0 ] if values else None

        self._printDebug( 'request: %s %s' % ( environ.get( 'REQUEST_METHOD' ), path ) )

        if path == self.auth_path:
            return self._send( start_response, renderPage( 'auth.html', www_dir = self._www_dir ) )

        if path == '/token':
            state = param( 'state' )
            scope = param( 'scope' )
            accessToken = param( 'access_token' )
            isStateValid = self._states.consume( state )
            if accessToken and scope and isStateValid:
                body = renderPage( 'logged-in.html', www_dir = self._www_dir )
                self._resolve( AuthServerResponse( accessToken, scope ) )
            else:
                body = renderPage( 'error.html', { 'message' : INVALID_STATE_MESSAGE }, www_dir = self._www_dir )
                self._reject( AuthServerError( INVALID_STATE_MESSAGE, ServerErrorTypes.INVALID_STATE ) )
            return self._send( start_response, body )

        if path == '/error':
            kind = ( param( 'error' ) or 'Unknown' ).upper()
            message = param( 'error_description' ) or 'Undefined error'
            body = renderPage( 'error.html', { 'message' : message }, www_dir = self._www_dir )
            self._reject( AuthServerError( message, kind ) )
            return self._send( start_response, body )

        if path == '/style.css':
            return self._send( start_response, readAsset( 'style.css', self._www_dir ), content_type = CONTENT_TYPE_CSS )

        if path == '/favicon.ico':
            return self._send( start_response, readAsset( 'favicon.ico', self._www_dir ), content_type = CONTENT_TYPE_ICON )

        return self._send( start_response, renderPage( '404.html', www_dir = self._www_dir ), status = '404 Not Found' )

    def _send( self, start_response, body: bytes, status: str = '200 OK', content_type: str = CONTENT_TYPE_HTML ):
        start_response( status, [
            ( 'Content-Type', content_type ),
            ( 'Content-Length', str( len( body ) ) ),
            ( 'Cache-Control', 'no-store' ),
        ] )
        return [ body ]

    def _resolve( self, response: AuthServerResponse ) -> bool:
        request = self._pending
        if request is None or not request.resolve( response ):
            self._printDebug( 'no login in progress, ignoring token callback' )
            return False
        self._pending = None
        self._cancelLoginTimer()
        self._events.emit( events.ACCESS_TOKEN, access_token = response.access_token, scope = response.scope )
        self._closeWithTimeout()
        return True

    def _reject( self, error: AuthServerError, request: Optional[PendingRequest] = None ) -> bool:
        if request is None:
            request = self._pending
        if request is None or not request.reject( error ):
            self._printDebug( 'no login in progress, ignoring error %s: %s' % ( error.kind, error.message ) )
            return False
        if self._pending is request:
            self._pending = None
            self._cancelLoginTimer()
        self._events.emit( events.ERROR, kind = error.kind, message = error.message )
        self._closeWithTimeout()
        return True

    def _resetLoginTimeout( self, request: PendingRequest ):
        self._cancelLoginTimer()
        self._loginTimer = gevent.spawn_later( self.login_timeout, self._onLoginTimeout, request )

    def _cancelLoginTimer( self ):
        timer = self._loginTimer
        self._loginTimer = None
        if timer is not None and timer is not gevent.getcurrent():
            timer.kill( block = False )

    def _onLoginTimeout( self, request: PendingRequest ):
        if self._loginTimer is gevent.getcurrent():
            self._loginTimer = None
        if self._pending is not request:
            return
        self._reject( AuthServerError( 'Login timeout', ServerErrorTypes.LOGIN_TIMEOUT ), request )
        self._cancelCloseTimer()
        self._close()

    def _closeWithTimeout( self ):
        self._cancelCloseTimer()
        self._closeTimer = gevent.spawn_later( self.close_timeout, self._closeIfIdle )

    def _cancelCloseTimer( self ):
        timer = self._closeTimer
        self._closeTimer = None
        if timer is not None and timer is not gevent.getcurrent():
            timer.kill( block = False )

    def _closeIfIdle( self ):
        if self._closeTimer is gevent.getcurrent():
            self._closeTimer = None
        if self._pending is None and self._server is not None:
            self._close()

    def _close( self ):
        # Must not yield before the close event is emitted.
        server = self._server
        if server is None:
            return
        self._state = ListenerState.CLOSING
        self._server = None
        self._cancelLoginTimer()
        self._states.clear()
        nDestroyed = self._sockets.destroy_all()
        server.close()
        if server.pool is not None:
            server.pool.kill( block = False )
        self._state = ListenerState.IDLE
        self._printDebug( 'redirect server closed, %d connection(s) destroyed' % ( nDestroyed, ) )
        self._events.emit( events.CLOSE, connections = nDestroyed )
