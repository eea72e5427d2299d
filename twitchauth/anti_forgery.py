import secrets
from typing import Optional, Set


class AntiForgeryRegistry( object ):
    '''Set of one-time state tokens binding authorize requests to their callbacks.

    More than one token can be valid at once so that a login started in an
    older browser tab can still complete after a newer attempt was issued.
    '''

    def __init__( self, nbytes: int = 32 ):
        self._nbytes = nbytes
        self._tokens: Set[str] = set()

    def issue( self ) -> str:
        token = secrets.token_urlsafe( self._nbytes )
        while token in self._tokens:
            token = secrets.token_urlsafe( self._nbytes )
        self._tokens.add( token )
        return token

    def consume( self, token: Optional[str] ) -> bool:
        '''Remove a token, returning True only if it was still valid.'''
        if token is None or token not in self._tokens:
            return False
        self._tokens.discard( token )
        return True

    def is_valid( self, token: Optional[str] ) -> bool:
        return token is not None and token in self._tokens

    def clear( self ):
        self._tokens.clear()

    def __len__( self ):
        return len( self._tokens )
