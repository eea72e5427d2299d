import pytest

def pytest_addoption( parser ):
    parser.addoption( "--client-id", action = "store", default = None, help = "client ID used by the live login test" )
    parser.addoption( "--redirect-uri", action = "store", default = "http://localhost:3000/auth", help = "redirect URI registered for that client ID" )

def pytest_generate_tests( metafunc ):
    option_value = metafunc.config.option.client_id
    if "client_id" in metafunc.fixturenames:
        if option_value is None:
            metafunc.parametrize( "client_id", [ pytest.param( None, marks = pytest.mark.skip( reason = "--client-id not set" ) ) ] )
        else:
            metafunc.parametrize( "client_id", [ option_value ] )
    option_value = metafunc.config.option.redirect_uri
    if "redirect_uri" in metafunc.fixturenames and option_value is not None:
        metafunc.parametrize( "redirect_uri", [ option_value ] )
