#! /usr/bin/env python3

"""
Rotate, scale and translate a 3D volume.

Rotation (radians, about the x, y and z axes) and scaling pivot around the center of the volume. Parameters left at
their identity value (angle 0, scale 1, translation 0 0 0) are not applied. The requested transforms are combined
into a single matrix and the volume is resampled once with a windowed sinc interpolator.

Examples
--------

# Rotate 0.5 rad about z and move 10 units along x
$ volproc_transform in.img out.img 0 0 0.5 1 10 0 0

# Legacy behaviour: only the last requested transform (in the order x, y, z rotation, scale, translation) is used
$ volproc_transform in.img out.img 0.5 0 0 2 0 0 0 --policy last_wins
"""

import sys
import argparse
from logging import DEBUG
from pathlib import Path

import logzero
from logzero import logger as logging
import SimpleITK as sitk

from volproc import common
from volproc.img_processing.affine import TransformParameters, TransformPipeline
from volproc.img_processing.resample import resample
from volproc.validate_config import (VolprocConfig, VolprocConfigError, TRANSFORM_OPTIONS, POLICY_OPTIONS,
                                     INTERPOLATOR_OPTIONS)


def transform_volume(img: sitk.Image, params: TransformParameters, policy: str = 'compose',
                     interpolator: str = 'windowed_sinc', default_value: int = 0) -> sitk.Image:
    pipeline = TransformPipeline.from_parameters(params, policy)

    if len(pipeline) == 0:
        logging.info('No transforms requested')
    else:
        logging.info(f'Applying {", ".join(pipeline.names)} ({policy})')

    return resample(img, pipeline.matrix(), interpolator, default_value)


def transform_file(input_path: Path, output_path: Path, params: TransformParameters, policy: str = 'compose',
                   interpolator: str = 'windowed_sinc', default_value: int = 0) -> sitk.Image:
    """
    Read a volume, transform it and write the result

    Raises
    ------
    VolprocDataException (or VolprocIOError) if the volume cannot be read, transformed or written
    """
    logging.info(f'reading {input_path}')
    img = common.load_volume(input_path)

    result = transform_volume(img, params, policy, interpolator, default_value)

    logging.info(f'writing {output_path}')
    common.write_image(result, output_path)
    return result


def main(argv=None):
    sys.excepthook = common.excepthook_overide

    parser = argparse.ArgumentParser("Apply rotation, scaling and translation to a 3D volume")
    parser.add_argument('input', help='volume to transform')
    parser.add_argument('output', help='where to write the transformed volume')
    parser.add_argument('x_rot', type=float, help='rotation about the x axis (radians)')
    parser.add_argument('y_rot', type=float, help='rotation about the y axis (radians)')
    parser.add_argument('z_rot', type=float, help='rotation about the z axis (radians)')
    parser.add_argument('scale', type=float, help='uniform scaling factor (1 for none)')
    parser.add_argument('x_trans', type=float, help='translation along x')
    parser.add_argument('y_trans', type=float, help='translation along y')
    parser.add_argument('z_trans', type=float, help='translation along z')
    parser.add_argument('--policy', dest='policy', choices=POLICY_OPTIONS, default=None,
                        help='compose all transforms (default) or only use the last one requested')
    parser.add_argument('--interpolator', dest='interpolator', choices=INTERPOLATOR_OPTIONS, default=None)
    parser.add_argument('--default-value', dest='default_value', type=int, default=None,
                        help='value for samples that map outside the input (0)')
    parser.add_argument('-c', '--config', dest='config', help='toml or yaml config file', default=None)
    parser.add_argument('--log', dest='log', nargs='?', const=common.LOG_FILE, default=None,
                        help='also log to this file')
    parser.add_argument('-v', '--verbose', dest='verbose', action='store_true', default=False)

    args = parser.parse_args(argv)

    if args.verbose:
        logzero.loglevel(DEBUG)
    if args.log:
        common.init_logging(args.log)

    try:
        cfg = VolprocConfig(TRANSFORM_OPTIONS, Path(args.config) if args.config else None)
        cfg.update({'policy': args.policy,
                    'interpolator': args.interpolator,
                    'default_value': args.default_value})
    except (VolprocConfigError, OSError, ValueError) as e:
        parser.error(str(e))

    logging.info(common.command_line_agrs())

    params = TransformParameters(args.x_rot, args.y_rot, args.z_rot, args.scale,
                                 args.x_trans, args.y_trans, args.z_trans)
    try:
        transform_file(Path(args.input), Path(args.output), params, cfg['policy'], cfg['interpolator'],
                       cfg['default_value'])
    except common.VolprocDataException as e:
        logging.error(f'Transform failed: {e}')
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
