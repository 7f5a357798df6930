#!/usr/bin/env python
"""Miscellaneous, general utilities useful for scripting

Package overview
================

    =====================================   ====================================================================
    **Subpackages**                         **Contents**
    -------------------------------------   --------------------------------------------------------------------
    :py:obj:`~startsite.util.io`             Wrappers for file I/O and for progress messages written to stderr
    :py:obj:`~startsite.util.scriptlib`      Tools for writing command-line scripts that use :data:`startsite`
    :py:obj:`~startsite.util.services`       Exceptions, warnings, and small parsing helpers
    =====================================   ====================================================================

"""
