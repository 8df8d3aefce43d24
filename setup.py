#!/usr/bin/env python
# -*- coding: utf-8 -*-

import os
from setuptools import setup


def get_long_description():
    """
    Return the README.
    """
    with open('README.md', 'r') as f:
        return f.read()


def get_packages(package):
    """
    Return root package and all sub-packages.
    """
    return [dirpath
            for dirpath, dirnames, filenames in os.walk(package)
            if os.path.exists(os.path.join(dirpath, '__init__.py'))]


setup(
    name='trio-task',
    version='0.1',
    license='BSD',
    description='Cancellable one-shot tasks with sequential chaining, on top of trio',
    long_description=get_long_description(),
    long_description_content_type='text/markdown',
    packages=get_packages('trio_task'),
    python_requires='>=3.9',
    install_requires=[
        'trio',
    ],
    extras_require={
        'test': ['pytest'],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Framework :: Trio',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ]
)
