#!/usr/bin/env python
"""Library components for writing command-line scripts

Package overview
================

    ===================================================    =========================
    **Package module**                                     **Contents**
    ---------------------------------------------------    -------------------------
    :py:mod:`~startsite.util.scriptlib.argparsers`          :class:`~argparse.ArgumentParser` objects for alignment, sequence, clustering and conditioning options
    :py:mod:`~startsite.util.scriptlib.help_formatters`     Utilities to reformat module docstrings for use as command-line help text
    ===================================================    =========================
"""
