import re
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional


class TwitchAuthException( Exception ):
    '''Exception type used for various errors in the twitchauth package.'''

    def __init__( self, message, code = None ):
        """
        Initialize the exception with a message and an optional status code.

        Args:
            message (str): The error message.
            code (int, optional): An optional status code returned by the provider. Defaults to None.
        """
        super().__init__( message )
        self.code = code


class ServerErrorTypes:
    '''Kinds of failures a pending login can be rejected with.

    Errors reported by the provider on the /error route use the upper-cased
    value of its "error" parameter, so kinds are not limited to this list.
    '''
    UNKNOWN = 'UNKNOWN'
    INVALIDATED = 'INVALIDATED'
    LOGIN_TIMEOUT = 'LOGIN_TIMEOUT'
    INVALID_STATE = 'INVALID_STATE'
    ACCESS_DENIED = 'ACCESS_DENIED'
    SERVER_ERROR = 'SERVER_ERROR'

    # Only reported to event observers, never rejects a login.
    BROWSER_OPEN_FAILED = 'BROWSER_OPEN_FAILED'


class AuthServerError( TwitchAuthException ):
    '''Rejection of a pending login.'''

    def __init__( self, message, kind = ServerErrorTypes.UNKNOWN ):
        super().__init__( message )
        self.kind = kind
        self.message = message

    def __repr__( self ):
        return 'AuthServerError(kind=%r, message=%r)' % ( self.kind, self.message )

    def toJson( self ):
        return {
            'kind' : self.kind,
            'message' : self.message,
        }


class AuthServerResponse( object ):
    '''Outcome of a successful login.'''

    def __init__( self, access_token: str, scope: str ):
        self.access_token = access_token
        self.scope = scope

    def __eq__( self, other ):
        if not isinstance( other, AuthServerResponse ):
            return NotImplemented
        return self.access_token == other.access_token and self.scope == other.scope

    def __repr__( self ):
        # Never print the full token.
        return 'AuthServerResponse(access_token=%r, scope=%r)' % ( maskToken( self.access_token ), self.scope )

    def toJson( self ):
        return {
            'access_token' : self.access_token,
            'scope' : self.scope,
        }


# Default function to call with debug messages.
DEFAULT_PRINT_DEBUG_FN: Optional[Callable[[str], None]] = None

def set_default_print_debug_fn( fn: Optional[Callable[[str], None]] = None ):
    """
    Set a default function to call with debug messages.

    Args:
        fn (function): the function to call with debug messages.
    """
    global DEFAULT_PRINT_DEBUG_FN
    DEFAULT_PRINT_DEBUG_FN = fn


class DebugPrinter( object ):
    '''Timestamped debug output routed to a user supplied callback.'''

    def __init__( self, print_debug_fn: Optional[Callable[[str], None]] = None ):
        self._debug = print_debug_fn

    def __call__( self, msg ):
        fn = self._debug or DEFAULT_PRINT_DEBUG_FN
        if fn is not None:
            time_string = datetime.now( timezone.utc ).strftime( "%Y-%m-%d %H:%M:%SZ" )
            fn( f"{time_string}: {msg}" )


def maskToken( token: Optional[str] ) -> str:
    if not token:
        return ''
    if len( token ) <= 8:
        return '*' * len( token )
    return token[ : 4 ] + '...' + token[ -4 : ]


def mergeScopes( *scopeLists: Iterable[str] ) -> List[str]:
    '''Union of several scope lists, deduplicated, keeping first-seen order.'''
    merged = []
    seen = set()
    for scopes in scopeLists:
        for scope in scopes or []:
            if scope and scope not in seen:
                seen.add( scope )
                merged.append( scope )
    return merged


_SCOPE_SEPARATORS = re.compile( r'[ ,\+]+' )

def arrayify_scopes( scopes ) -> List[str]:
    """
    Normalize a scope argument into a list.

    Args:
        scopes (str|list|None): a list of scopes, or a string of scopes separated by spaces, commas or plus signs.

    Returns:
        list of scope names, without empty entries.
    """
    if scopes is None:
        return []
    if isinstance( scopes, str ):
        return [ s for s in _SCOPE_SEPARATORS.split( scopes ) if s ]
    return [ s for s in scopes if s ]
