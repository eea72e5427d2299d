import os
import sys

import pytest

# Get the directory of the current conftest.py file
current_dir = os.path.dirname(os.path.abspath(__file__))

# Calculate the project root (adjust the number of ".." if needed)
project_root = os.path.abspath(os.path.join(current_dir, '../../'))

# Insert the project root at the beginning of sys.path
if project_root not in sys.path:
    sys.path.insert(0, project_root)
if current_dir not in sys.path:
    sys.path.insert(0, current_dir)

from twitchauth.oauth_server import OAuthRedirectServer
from redirect_helpers import find_free_port


@pytest.fixture
def opened_urls():
    return []


@pytest.fixture
def recorded_events():
    return []


@pytest.fixture
def make_server(opened_urls, recorded_events):
    """Factory for redirect servers on a free loopback port, shut down after the test."""
    servers = []

    def _make(port=None, **kwargs):
        if port is None:
            port = find_free_port()
        kwargs.setdefault('open_browser_fn', opened_urls.append)
        kwargs.setdefault('on_event', lambda event, payload: recorded_events.append((event, payload)))
        server = OAuthRedirectServer('test-client-id', 'http://127.0.0.1:%d/auth' % port, **kwargs)
        servers.append(server)
        return server

    yield _make

    for server in servers:
        server.shutdown()
