#!/usr/bin/env python
# -*- encoding: utf-8 -*-

from setuptools import setup, find_packages

import itertools as it

# setuptools only specifies abstract requirements
base_requirements = [
    'numpy',
    # the L-BFGS-B callback receives the intermediate result
    'scipy>=1.11',
    'h5py',
    'pandas',
    'dill',
    'click',
    'tabulate',
    'jinja2',
    'eliot',
]

# extras requirements list
test_requirements = [
    'pytest',
    'pytest-mock',
]

# # combination of all the extras requirements
all_requirements = list(it.chain.from_iterable([
    base_requirements,
    test_requirements,
]))

setup(
    name='pathpool',
    version='0.1.0',
    description="Multi-path approximate inference with importance resampling",
    license="MIT",
    classifiers=[
        "Topic :: Scientific/Engineering",
        "License :: OSI Approved :: MIT License",
        'Programming Language :: Python :: 3'
    ],

    # package
    packages=find_packages(where='src'),

    package_dir={'' : 'src'},

    include_package_data=True,

    entry_points={
        'console_scripts' : [
            'pathpool=pathpool.cli:cli',
        ],
    },

    python_requires='>=3.9',

    install_requires=base_requirements,

    extras_require={
        'test' : test_requirements,
        'all' : all_requirements,
    }
)
