import difflib
from pathlib import Path
from typing import Union, Dict

from logzero import logger as logging

from volproc import common


OTSU_OUTPUT_PATH = '../Output_Images/otsu_threshold_image.img'

POLICY_OPTIONS = ['compose', 'last_wins']
INTERPOLATOR_OPTIONS = ['windowed_sinc', 'linear', 'nearest', 'bspline']

# parameter: (checker, default)
# Checker can be a type name, a list of allowed values or 'uint8' for an int in the 8-bit pixel range
OTSU_OPTIONS = {
    'inside_value': ('uint8', 0),
    'outside_value': ('uint8', 255),
    'output_path': ('str', OTSU_OUTPUT_PATH),
    'ignore_errors': ('bool', False),
}

TRANSFORM_OPTIONS = {
    'policy': (POLICY_OPTIONS, 'compose'),
    'interpolator': (INTERPOLATOR_OPTIONS, 'windowed_sinc'),
    'default_value': ('uint8', 0),
}


class VolprocConfigError(BaseException):

    pass


class VolprocConfig:
    """
    Options for one of the volproc programs. Defaults come from the options table and can be overridden by a
    config file (toml or yaml) and then by command line options.

    Example
    -------
    cfg = VolprocConfig(TRANSFORM_OPTIONS, Path('transform.toml'))
    cfg['policy']

    """

    def __init__(self, input_options: Dict, config: Union[Path, Dict, None] = None):
        """
        Parameters
        ----------
        input_options
            the options table to validate against
        config
            path to a config file
            or
            config dictionary
            or
            None to just use the defaults

        Raises
        ------
        OSError or subclasses thereof if config file cannot be opened
        VolprocConfigError if an option is unknown or has an invalid value
        """
        self.input_options = input_options

        if config is None:
            self.config = {}
            self.config_path = None
        elif isinstance(config, dict):
            self.config = config
            self.config_path = None
        elif isinstance(config, (str, Path)):
            self.config_path = Path(config)
            self.config = common.cfg_load(self.config_path)
        else:
            raise ValueError("config must me a Path or Dict")

        if not isinstance(self.config, dict):
            raise VolprocConfigError(f'config should be a table of options, not a {type(self.config).__name__}')

        self.options = {}

        self.check_for_unknown_options(self.config)
        self.check_options()

    def __getitem__(self, item):
        return self.options[item]

    def update(self, overrides: Dict):
        """
        Apply command line overrides. Options that are None were not given on the command line and are ignored
        """
        given = {k: v for k, v in overrides.items() if v is not None}
        self.check_for_unknown_options(given)
        for option, value in given.items():
            self.options[option] = self.validate(option, value)

    def check_for_unknown_options(self, config: Dict):

        for param in config:
            if param not in self.input_options:
                closest_matches = difflib.get_close_matches(param, self.input_options.keys())

                if not closest_matches:
                    closest_matches = ["?"]

                msg = "The following option is not recognised: {}\nDid you mean: {} ?".format(param, ", ".join(closest_matches))
                logging.error(msg)
                raise VolprocConfigError(msg)

    def check_options(self):
        """
        Check the options in the config. Perform appropriate validation, or set default
        add the options to self.options

        """
        for option, validation in self.input_options.items():
            default = validation[1]
            value = self.config.get(option, default)
            self.options[option] = self.validate(option, value)

    def validate(self, option, value):
        checker = self.input_options[option][0]

        if checker == 'bool':
            if type(value) != bool:
                raise VolprocConfigError(f'{option} should be a bool not a {type(value)}')

        elif checker == 'str':
            if not isinstance(value, (str, Path)):
                raise VolprocConfigError(f'"{option}" should be a string')
            value = str(value)

        elif checker == 'uint8':
            if isinstance(value, bool) or not isinstance(value, int):
                raise VolprocConfigError(f'"{option}" should be an int')
            if not 0 <= value <= 255:
                raise VolprocConfigError(f'"{option}" should be between 0 and 255 (8 bit pixel range)')

        # Check for a list of options
        elif isinstance(checker, list):
            if value not in checker:
                raise VolprocConfigError(f'{option} should be one of {checker}')

        return value
