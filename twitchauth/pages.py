import html
import os
import re
from typing import Dict, Optional

from .constants import WWW_DIR

CONTENT_TYPE_HTML = 'text/html; charset=utf-8'
CONTENT_TYPE_CSS = 'text/css'
CONTENT_TYPE_ICON = 'image/x-icon'


def readAsset( name: str, www_dir: str = WWW_DIR ) -> bytes:
    with open( os.path.join( www_dir, name ), 'rb' ) as f:
        return f.read()


def renderTemplate( content: str, replace: Optional[Dict[str, str]] = None ) -> str:
    """
    Substitute {{tag}} placeholders in a page.

    Tags match case-insensitively, values are HTML-escaped and placeholders
    without a value are left as they are.

    Args:
        content (str): the page template.
        replace (dict): tag name to value.

    Returns:
        the rendered page.
    """
    for tag, value in ( replace or {} ).items():
        escaped = html.escape( str( value ) )
        content = re.sub( r'\{\{' + re.escape( tag ) + r'\}\}', lambda _: escaped, content, flags = re.IGNORECASE )
    return content


def renderPage( name: str, replace: Optional[Dict[str, str]] = None, www_dir: str = WWW_DIR ) -> bytes:
    '''Render a page from www_dir as UTF-8 bytes.

    Values in replace are plain text and get HTML-escaped, so do not pass
    markup or already-escaped strings.
    '''
    content = readAsset( name, www_dir ).decode( 'utf-8' )
    return renderTemplate( content, replace ).encode( 'utf-8' )
