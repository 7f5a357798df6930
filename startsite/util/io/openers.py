#!/usr/bin/env python
"""Opening, naming, and annotating the files that :data:`startsite` reads
and writes.

Important methods
-----------------
:py:func:`opener`
    Open a plain, gzipped or bzipped file, chosen by file extension

:py:func:`argsopener`
    Open an output file for a command-line script and write the script's
    arguments into it as a commented header, so every output records how
    it was made

:py:func:`read_sample_table`
    Read a TSS, TSR or feature table written by :mod:`startsite.genomics.export`
    or a command-line script into a :class:`pandas.DataFrame`, skipping the
    commented header

:py:class:`NullWriter`
    A `printer` that discards everything written to it
"""
import os
import re
import sys
import bz2
import gzip
import datetime

import pandas as pd

from startsite.util.io.filters import AbstractWriter

_COMPRESSED_OPENERS = { ".gz"  : gzip.open,
                        ".bz2" : bz2.open,
                      }

_TABLE_DEFAULTS = { "sep"       : "\t",
                    "comment"   : "#",
                    "index_col" : None,
                    "header"    : 0,
                  }


class NullWriter(AbstractWriter):
    """Writer that sends output to :obj:`os.devnull`. Used as the default
    `printer` of functions that report progress
    """

    def __init__(self):
        AbstractWriter.__init__(self,open(os.devnull,"w"))

    def filter(self,data):
        return data

    def __repr__(self):
        return "NullWriter()"

    __str__ = __repr__


def opener(filename,mode="r",**kwargs):
    """Open `filename`, decompressing or compressing by extension:

       ================   ==================
       File ends with     Opened with
       ----------------   ------------------
       `.gz`              :func:`gzip.open`
       `.bz2`             :func:`bz2.open`
       anything else      :func:`open`
       ================   ==================

    Compressed files are opened in text mode unless `mode` asks for binary.

    Parameters
    ----------
    filename : str

    mode : str, optional
        e.g. `'r'`, `'w'`, `'a'`, with or without `'b'` (Default: `'r'`)

    kwargs : keyword arguments
        Passed to the underlying open function

    Returns
    -------
    file-like
    """
    ext = os.path.splitext(filename)[1]
    if ext not in _COMPRESSED_OPENERS:
        return open(filename,mode,**kwargs)

    if "b" not in mode and "t" not in mode:
        mode += "t"
    return _COMPRESSED_OPENERS[ext](filename,mode,**kwargs)

def read_sample_table(filename,**kwargs):
    """Read a delimited table into a :class:`pandas.DataFrame`, using
    :data:`startsite`'s defaults for :func:`pandas.read_csv`:

        ==========   =======
        Key          Value
        ----------   -------
        sep          `"\\t"`
        comment      `"#"`
        index_col    `None`
        header       `0`
        ==========   =======

    Parameters
    ----------
    filename : str
        May be gzipped or bzipped

    kwargs : keyword arguments
        Override the defaults, or pass other options to :func:`pandas.read_csv`

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    options = dict(_TABLE_DEFAULTS)
    options.update(kwargs)
    return pd.read_csv(filename,**options)

def get_short_name(inpt,separator=os.path.sep,terminator=""):
    """Return the last component of a path or dotted module name, with
    `terminator` removed from its end. Input that contains no `separator`
    comes back whole.

    Examples
    --------
    >>> get_short_name("/home/jdoe/cluster_tss.py",terminator=".py")
    'cluster_tss'

    >>> get_short_name("startsite.bin.call_tss",separator="\\.")
    'call_tss'

    Parameters
    ----------
    inpt : str

    separator : str, optional
        Separator, as a regex character (Default: :obj:`os.path.sep`)

    terminator : str, optional
        Suffix to remove (Default: `''`)

    Returns
    -------
    str
    """
    if terminator and inpt.endswith(terminator):
        inpt = inpt[:-len(terminator)]

    match = re.search(r"([^%s]+)$" % separator,inpt)
    return inpt if match is None else match.group(1)

def argsopener(filename,namespace,mode="w",**kwargs):
    """Open `filename` for writing via :func:`opener`, and write
    :func:`args_to_comment` of `namespace` as its first lines

    Parameters
    ----------
    filename : str
        Output file. Compressed if it ends in `.gz` or `.bz2`

    namespace : :py:class:`argparse.Namespace`
        Parsed command-line arguments

    mode : str, optional
        `'w'` or `'wb'` (Default: `'w'`)

    kwargs : keyword arguments
        Passed to :func:`opener`

    Returns
    -------
    file-like
        Open for writing, positioned after the header
    """
    if "w" not in mode:
        mode += "w"
    fout = opener(filename,mode,**kwargs)
    fout.write(args_to_comment(namespace))
    return fout

def args_to_comment(namespace):
    """Render parsed arguments, the date, and the command line as `##` comments

    Parameters
    ----------
    namespace : :py:class:`argparse.Namespace`

    Returns
    -------
    str
        Newline-terminated block of comment lines
    """
    body = pretty_print_dict(vars(namespace)).split("\n")[1:-2]
    lines = ["## date = '%s'" % datetime.datetime.today(),
             "## execstr = '%s'" % " ".join(sys.argv),
             "## args = {  "]
    lines += ["##" + X for X in body]
    lines.append("##        }")
    return "\n".join(lines) + "\n"

def pretty_print_dict(dtmp):
    """Render a flat dictionary one key per line, keys sorted and aligned

    Parameters
    ----------
    dtmp : dict

    Returns
    -------
    str
    """
    if len(dtmp) == 0:
        return "{\n\n}\n"

    width = 2 + max(len(K) for K in dtmp)
    template = "          {0:<%s} : {1}," % width
    rows = []
    for key in sorted(dtmp):
        val = dtmp[key]
        if isinstance(val,str):
            val = "'%s'" % val
        rows.append(template.format("'%s'" % key,val))
    return "{\n%s\n}\n" % "\n".join(rows)
