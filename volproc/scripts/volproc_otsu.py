#! /usr/bin/env python3

"""
Threshold a 3D volume into a binary image using Otsu's method.

Samples with an intensity <= the computed threshold are set to the inside value (0) and the rest to the outside
value (255). The threshold is printed.

Examples
--------

# Threshold to the default output path (../Output_Images/otsu_threshold_image.img)
$ volproc_otsu brain.img

# Write somewhere else and swap the output levels
$ volproc_otsu brain.img -o mask.nrrd --inside 255 --outside 0

# Legacy behaviour: log failures but still exit with 0
$ volproc_otsu brain.img --ignore-errors
"""

import sys
import argparse
from logging import DEBUG
from pathlib import Path

import logzero
from logzero import logger as logging

from volproc import common
from volproc.img_processing.otsu import otsu_threshold_volume, OtsuResult
from volproc.validate_config import VolprocConfig, VolprocConfigError, OTSU_OPTIONS


def otsu_threshold_file(input_path: Path, output_path: Path, inside: int = 0, outside: int = 255) -> OtsuResult:
    """
    Read a volume, threshold it and write the binary result

    Raises
    ------
    VolprocDataException (or VolprocIOError) if the volume cannot be read, thresholded or written
    """
    logging.info(f'reading {input_path}')
    img = common.load_volume(input_path)

    binary, result = otsu_threshold_volume(img, inside, outside)

    print(f'Threshold = {result.threshold}')
    logging.info(f'Otsu threshold: {result.threshold}. <= threshold -> {inside}, > threshold -> {outside}')

    logging.info(f'writing {output_path}')
    common.write_image(binary, output_path)
    return result


def main(argv=None):
    sys.excepthook = common.excepthook_overide

    parser = argparse.ArgumentParser("Otsu threshold a 3D volume")
    parser.add_argument('input', help='volume to threshold')
    parser.add_argument('-o', '--output', dest='output_path', help='where to write the thresholded volume',
                        default=None)
    parser.add_argument('--inside', dest='inside_value', type=int, help='value for samples <= threshold (0)',
                        default=None)
    parser.add_argument('--outside', dest='outside_value', type=int, help='value for samples > threshold (255)',
                        default=None)
    parser.add_argument('--ignore-errors', dest='ignore_errors', action='store_true', default=None,
                        help='log processing and write errors but still exit with 0')
    parser.add_argument('-c', '--config', dest='config', help='toml or yaml config file', default=None)
    parser.add_argument('--log', dest='log', nargs='?', const=common.LOG_FILE, default=None,
                        help='also log to this file')
    parser.add_argument('-v', '--verbose', dest='verbose', action='store_true', default=False)

    # Arguments after the input path are ignored
    args, extra = parser.parse_known_args(argv)

    if args.verbose:
        logzero.loglevel(DEBUG)
    if args.log:
        common.init_logging(args.log)

    if extra:
        logging.warning(f'ignoring extra arguments: {" ".join(extra)}')

    try:
        cfg = VolprocConfig(OTSU_OPTIONS, Path(args.config) if args.config else None)
        cfg.update({'output_path': args.output_path,
                    'inside_value': args.inside_value,
                    'outside_value': args.outside_value,
                    'ignore_errors': args.ignore_errors})
    except (VolprocConfigError, OSError, ValueError) as e:
        parser.error(str(e))

    logging.info(common.command_line_agrs())

    try:
        otsu_threshold_file(Path(args.input), Path(cfg['output_path']), cfg['inside_value'], cfg['outside_value'])
    except common.VolprocDataException as e:
        logging.error(f'Otsu thresholding failed: {e}')
        if cfg['ignore_errors']:
            logging.warning('ignore_errors is set. Exiting with success')
            return 0
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
