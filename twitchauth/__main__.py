import sys
import traceback


def cli(args):
    """
    Command line interface for twitchauth.

    Args:
        args (list): list of CLI arguments to parse.
    """
    import argparse
    import json

    import gevent
    from rich.console import Console
    from tabulate import tabulate

    from . import events
    from .config import loadConfig
    from .oauth_server import OAuthRedirectServer
    from .provider import validate_access_token
    from .utils import ServerErrorTypes, arrayify_scopes

    console = Console()

    parser = argparse.ArgumentParser( prog = 'twitchauth' )
    parser.add_argument( 'action',
                         type = str,
                         help = 'action, currently supported "login" (get a user access token through the browser), "validate" (check a token with the provider), "version"' )

    rootArgs = args[ 1: 2 ]

    # Everything after the command name and the action name that is passed
    # to the action argument parser.
    actionArgs = args[ 2: ]
    args = parser.parse_args( rootArgs )

    if args.action.lower() == 'version':
        from . import __version__
        print( "twitchauth Version %s" % ( __version__, ) )
    elif args.action.lower() == 'login':
        parser = argparse.ArgumentParser( prog = 'twitchauth login' )
        parser.add_argument( '--config',
                             type = str,
                             default = None,
                             help = 'path to a YAML configuration file (default: ~/.twitchauth)' )
        parser.add_argument( '--client-id',
                             type = str,
                             default = None,
                             help = 'application client ID' )
        parser.add_argument( '--redirect-uri',
                             type = str,
                             default = None,
                             help = 'registered redirect URI, like http://localhost:3000/auth' )
        parser.add_argument( '--scopes',
                             type = str,
                             default = None,
                             help = 'scopes to request, separated by spaces, commas or plus signs' )
        parser.add_argument( '--force-verify',
                             action = 'store_true',
                             help = 'force the consent screen even if the application was already authorized' )
        parser.add_argument( '--force-verify-once',
                             action = 'store_true',
                             help = 'force the consent screen for this login only' )
        parser.add_argument( '--login-timeout',
                             type = float,
                             default = None,
                             help = 'seconds to wait for the login to complete' )
        parser.add_argument( '--no-browser',
                             action = 'store_true',
                             help = 'print the URL instead of opening the browser' )
        parser.add_argument( '--output',
                             choices = [ 'text', 'json' ],
                             default = 'text',
                             help = 'output format' )
        loginArgs = parser.parse_args( actionArgs )

        config = loadConfig( loginArgs.config )
        clientId = loginArgs.client_id or config[ 'client_id' ]
        if not clientId:
            raise Exception( 'a client ID is required, use --client-id or set TWITCH_CLIENT_ID' )
        scopes = arrayify_scopes( loginArgs.scopes ) if loginArgs.scopes is not None else config[ 'scopes' ]

        def printUrl( url ):
            print( "\nPlease visit this URL to authenticate:\n%s\n" % ( url, ) )
            return True

        def onEvent( event, payload ):
            if event == events.ERROR and payload.get( 'kind' ) == ServerErrorTypes.BROWSER_OPEN_FAILED:
                console.print( "[bold red]Could not open a browser, please visit:[/bold red] %s" % ( payload[ 'url' ], ) )

        server = OAuthRedirectServer(
            clientId,
            loginArgs.redirect_uri or config[ 'redirect_uri' ],
            base_scopes = config[ 'base_scopes' ],
            close_timeout = config[ 'close_timeout' ],
            login_timeout = loginArgs.login_timeout or config[ 'login_timeout' ],
            force_verify = loginArgs.force_verify or config[ 'force_verify' ],
            force_verify_once = loginArgs.force_verify_once,
            open_browser_fn = printUrl if loginArgs.no_browser else None,
            on_event = onEvent,
        )

        if loginArgs.output == 'text':
            console.print( "[bold cyan]Waiting for the login to complete in the browser...[/bold cyan]" )
        try:
            response = server.listen( scopes ).get()

            # Give the browser time to receive the final page.
            while server.is_listening:
                gevent.sleep( 0.1 )
        finally:
            server.shutdown()

        if loginArgs.output == 'json':
            print( json.dumps( response.toJson(), indent = 2 ) )
        else:
            console.print( "[bold green]Login successful.[/bold green]" )
            console.print( "Access token: %s" % ( response.access_token, ) )
            console.print( "Scope: %s" % ( response.scope, ) )
    elif args.action.lower() == 'validate':
        parser = argparse.ArgumentParser( prog = 'twitchauth validate' )
        parser.add_argument( '--token',
                             type = str,
                             required = True,
                             help = 'access token to validate' )
        validateArgs = parser.parse_args( actionArgs )

        info = validate_access_token( validateArgs.token )
        rows = []
        for k, v in info.items():
            if isinstance( v, list ):
                v = ' '.join( str( e ) for e in v )
            rows.append( [ k, v ] )
        print( tabulate( rows, headers = [ 'Field', 'Value' ], tablefmt = 'grid' ) )
    else:
        raise Exception( 'invalid action: %s' % ( args.action.lower(), ) )

def main():
    args = sys.argv

    # Hack since we don't have access to parsed args here and parsing itself may fail
    debug_mode = False
    if "--debug" in args:
        debug_mode = True
        args.remove("--debug")
        from .utils import set_default_print_debug_fn
        set_default_print_debug_fn(lambda x: print(x, file=sys.stderr))

    try:
        cli(args)
    except Exception as e:
        print("Error:", e, file=sys.stderr)

        if debug_mode:
            print(traceback.format_exc(), file=sys.stderr)

        return 1

if __name__ == "__main__":
    sys.exit(main())
