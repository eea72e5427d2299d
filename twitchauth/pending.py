import time

from gevent.event import AsyncResult

from .utils import AuthServerError, AuthServerResponse


class PendingRequest( object ):
    '''The in-flight login attempt, settled exactly once.

    This is what OAuthRedirectServer.listen() hands back to the caller. The
    first call to resolve() or reject() wins, later calls are ignored and
    return False so duplicate callbacks can be told apart.
    '''

    def __init__( self, state: str, scopes = None ):
        self.state = state
        self.scopes = list( scopes or [] )
        self.created_at = time.time()
        self._result = AsyncResult()

    @property
    def is_settled( self ) -> bool:
        return self._result.ready()

    @property
    def is_active( self ) -> bool:
        return not self._result.ready()

    def resolve( self, response: AuthServerResponse ) -> bool:
        if self._result.ready():
            return False
        self._result.set( response )
        return True

    def reject( self, error: AuthServerError ) -> bool:
        if self._result.ready():
            return False
        self._result.set_exception( error )
        return True

    def get( self, timeout = None ) -> AuthServerResponse:
        '''Block the current greenlet until the login settles.

        Args:
            timeout (float): optional number of seconds to wait, gevent.Timeout is raised when it expires.

        Returns:
            the AuthServerResponse of a successful login.

        Raises:
            AuthServerError: if the login was rejected.
        '''
        return self._result.get( timeout = timeout )

    def wait( self, timeout = None ) -> bool:
        '''Wait for settlement without raising, returns True if settled.'''
        self._result.wait( timeout = timeout )
        return self._result.ready()

    @property
    def error( self ):
        '''The rejection error, or None if unsettled or resolved.'''
        return self._result.exception

    @property
    def response( self ):
        '''The resolved response, or None if unsettled or rejected.'''
        if self._result.successful():
            return self._result.value
        return None

    def __repr__( self ):
        if not self._result.ready():
            status = 'active'
        elif self._result.successful():
            status = 'resolved'
        else:
            status = 'rejected'
        return '<PendingRequest %s %s>' % ( status, self.scopes )
