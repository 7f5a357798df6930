#!/usr/bin/env python
"""Setup script for startsite. Pure Python, so this is boilerplate apart from
:func:`get_scripts`, which registers every module in `startsite/bin` as a
console script.
"""
import os
from setuptools import setup, find_packages

startsite_version = "0.1.0"


#===============================================================================
# Package metadata
#===============================================================================

with open("README.rst") as f:
    long_description = f.read()

install_requires = [
    "numpy>=1.9.4",
    "scipy>=1.11",
    "pandas>=1.1",
    "pysam>=0.10.0",
    "biopython>=1.64",
    "twobitreader>=3.0.0",
    "termcolor",
]


def get_scripts():
    """Detect command-line scripts automatically

    Returns
    -------
    list
        list of strings describing command-line scripts
    """
    binscripts = [
        X.replace(".py", "") for X in filter(
            lambda x: x.endswith(".py") and  "__init__" not in x,
            os.listdir(os.path.join("startsite",  "bin")),
        )
    ]
    return ["%s = startsite.bin.%s:main" % (X, X) for X in binscripts]


#===============================================================================
# Program body
#===============================================================================

setup(

    name             = "startsite",
    version          = startsite_version,
    long_description = long_description,
    long_description_content_type = "text/x-rst",

    description      = "Transcription start site and start region analysis from 5' end sequencing",
    license          = "BSD 3-Clause",
    keywords         = "TSS TSR transcription start site CAGE STRIPE-seq sequencing genomics biology",
    platforms        = "OS Independent",

    classifiers      = [
         'Development Status :: 3 - Alpha',
         'Programming Language :: Python :: 3',

         'Topic :: Scientific/Engineering :: Bio-Informatics',
         'Topic :: Software Development :: Libraries',

         'Intended Audience :: Science/Research',
         'Intended Audience :: Developers',

         'License :: OSI Approved :: BSD License',
         'Operating System :: POSIX',
         'Natural Language :: English',
    ],

    zip_safe = False,
    packages = find_packages(),

    package_dir = {
        "startsite" : "startsite",
    },

    entry_points = {
        "console_scripts" : get_scripts()
    },

    python_requires  = ">=3.9",
    install_requires = install_requires,

    extras_require   = {
        "test" : ["pytest"],
    },

) # yapf: disable
