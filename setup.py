from setuptools import setup

__version__ = "1.0.0"
__author__ = "twitchauth contributors"
__license__ = "MIT"

setup( name = 'twitchauth',
       version = __version__,
       description = 'Local redirect server for Twitch user access tokens',
       author = __author__,
       license = __license__,
       packages = [ 'twitchauth' ],
       package_data = { 'twitchauth' : [ 'www/*' ] },
       include_package_data = True,
       zip_safe = False,
       install_requires = [ 'gevent', 'requests', 'pyyaml', 'tabulate', 'rich' ],
       extras_require = { 'test' : [ 'pytest' ] },
       long_description = 'Obtain Twitch user access tokens through the browser with the OAuth implicit grant, catching the redirect on a local server.',
       entry_points = {
           'console_scripts': [
               'twitchauth=twitchauth.__main__:main',
           ],
       },
)
