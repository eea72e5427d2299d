"""
Lifecycle notifications of the redirect server.

Observers are purely advisory: whatever they do, or raise, never changes
the outcome of a login.
"""

import traceback
from typing import Any, Callable, Dict, Optional

from .utils import DebugPrinter

LISTEN = 'listen'
LISTENING = 'listening'
BROWSER_OPEN = 'browser_open'
ACCESS_TOKEN = 'access_token'
ERROR = 'error'
CLOSE = 'close'

ALL_EVENTS = ( LISTEN, LISTENING, BROWSER_OPEN, ACCESS_TOKEN, ERROR, CLOSE )


class LifecycleEventSink( object ):
    '''Dispatches server events to an optional callback.'''

    def __init__( self, on_event: Optional[Callable[[str, Dict[str, Any]], None]] = None, print_debug_fn: Optional[Callable[[str], None]] = None ):
        """
        Args:
            on_event (function(event, payload)): called with the event name and a dict payload.
            print_debug_fn (function(message)): a callback function that will receive detailed debug messages.
        """
        self._on_event = on_event
        self._printDebug = DebugPrinter( print_debug_fn )

    def emit( self, event: str, **payload ):
        self._printDebug( 'event %s: %s' % ( event, sorted( payload.keys() ) ) )
        if self._on_event is None:
            return
        try:
            self._on_event( event, payload )
        except Exception as e:
            self._printDebug( 'event observer failed on %s: %s\n%s' % ( event, e, traceback.format_exc() ) )
