#!/usr/bin/env python
# -*- coding: utf-8 -*-
# ----------------------------------------------------------------------------
# mdunfold
#
# This file is part of the mdunfold project.
#
# Licensed under the MIT License
# ----------------------------------------------------------------------------

from setuptools import setup, find_packages

# Function to extract version number from the __init__.py file
def get_version():
    with open("src/mdunfold/__init__.py", "r") as f:
        for line in f:
            if line.startswith("__version__"):
                version = line.split('=')[1]
                version = version.replace("'", "").replace('"', "").strip()
                return version

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name='mdunfold',
    version=get_version(),
    description='Multidimensional Unfolding of Two-Mode Dissimilarity Data',
    long_description=long_description,
    long_description_content_type='text/markdown',
    license='MIT',
    packages=find_packages('src'),  # Automatically find packages in the src directory
    package_dir={'': 'src'},
    install_requires=[
        'cycler',
        'matplotlib',
        'numba',
        'numpy',
        'pandas',
        'scipy',
    ],
    extras_require={
        'test': ['pytest'],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Operating System :: POSIX',
        'Operating System :: MacOS',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
    ],
    python_requires='>=3.9',
    keywords='unfolding, multidimensional scaling, preference mapping, smacof',
)
