# coding: utf-8

from setuptools import setup, find_packages
from pathlib import Path

# Get __version__ without importing volproc
version_file = Path(__file__).resolve().parent / 'volproc' / 'version.py'
exec(open(version_file).read())


setup(
    name='volproc',
    version=__version__,
    packages=find_packages(include=('volproc', 'volproc.*')),
    install_requires=[
        'numpy>=1.17',
        'SimpleITK>=2.1.0',
        'logzero>=1.7.0',
        'PyYAML>=3.13',
        'toml',
    ],
    extras_require={
        'test': ['pytest'],
    },
    license='Apache2',
    description='Otsu thresholding and affine transformation of 3D volumes',
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
     ],
    keywords=['image processing', 'otsu', 'affine transform', 'resampling'],
    entry_points ={
            'console_scripts': [
                'volproc_otsu=volproc.scripts.volproc_otsu:main',
                'volproc_transform=volproc.scripts.volproc_transform:main',
            ]
        },
)
