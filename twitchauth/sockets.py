import socket
import struct
from typing import Callable, Dict, Optional

from .utils import DebugPrinter


class SocketRegistry( object ):
    '''Live client connections of the redirect server, keyed by "host:port".

    Browsers keep connections alive after a page loads, which would hold the
    server open. The registry lets a shutdown abort them instead of waiting.
    '''

    def __init__( self, print_debug_fn: Optional[Callable[[str], None]] = None ):
        self._sockets: Dict[str, socket.socket] = {}
        self._printDebug = DebugPrinter( print_debug_fn )

    @staticmethod
    def keyFor( address ) -> str:
        if isinstance( address, ( tuple, list ) ) and 2 <= len( address ):
            return '%s:%s' % ( address[ 0 ], address[ 1 ] )
        return str( address )

    def add( self, sock, address ) -> str:
        key = self.keyFor( address )
        self._printDebug( 'socket connected: %s' % ( key, ) )
        self._sockets[ key ] = sock
        return key

    def discard( self, key: str ):
        if self._sockets.pop( key, None ) is not None:
            self._printDebug( 'socket closed: %s' % ( key, ) )

    def destroy_all( self ) -> int:
        '''Abort every tracked connection, returns how many were destroyed.'''
        sockets = list( self._sockets.items() )
        self._sockets.clear()
        for key, sock in sockets:
            self._printDebug( 'destroying socket: %s' % ( key, ) )
            try:
                # Linger of 0 makes close() send a RST instead of draining.
                sock.setsockopt( socket.SOL_SOCKET, socket.SO_LINGER, struct.pack( 'ii', 1, 0 ) )
            except OSError as e:
                self._printDebug( 'could not set linger on %s: %s' % ( key, e ) )
            try:
                # Wakes up a handler blocked reading from this connection.
                sock.shutdown( socket.SHUT_RDWR )
            except OSError as e:
                self._printDebug( 'could not shut down %s: %s' % ( key, e ) )
            sock.close()
        return len( sockets )

    def __contains__( self, key ):
        return key in self._sockets

    def __len__( self ):
        return len( self._sockets )
