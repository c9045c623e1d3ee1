import warnings

# SimpleITK and numpy can be noisy about deprecations on import. Turn it off
warnings.filterwarnings("ignore", category=DeprecationWarning)

from .version import __version__
