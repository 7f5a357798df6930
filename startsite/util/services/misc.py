#!/usr/bin/env python
"""Helpers for turning text from the command line or a table header back
into the values it encodes

:py:func:`guess_formatter`
    Convert a string into the `bool`, number, or `str` it most likely encodes

:py:func:`number`
    Convert a string into a number, preferring `int` over `float`

:py:func:`parse_value_list`
    Split a delimited string into a list of guessed values
"""
import numpy

_SPECIAL_NUMBERS = { "nan"  : numpy.nan,
                     "na"   : numpy.nan,
                     "none" : numpy.nan,
                     "inf"  : numpy.inf,
                     "-inf" : -numpy.inf,
                   }

_BOOLEANS = { "true" : True, "false" : False }

_QUOTES = ("'",'"')


def guess_formatter(inp):
    """Guess the value encoded by `inp`, trying `bool`, `int`, `float`, then `str`.

    Text wrapped in matching single or double quotes is always returned as
    a `str`, without its quotes, so that e.g. chromosome `'1'` stays text.

    Examples
    --------
    >>> guess_formatter("5"), guess_formatter("'5'"), guess_formatter("False")
    (5, '5', False)

    Parameters
    ----------
    inp : str

    Returns
    -------
    bool, int, float, or str
    """
    if len(inp) >= 2 and inp[0] == inp[-1] and inp[0] in _QUOTES:
        return inp[1:-1]

    if inp.lower() in _BOOLEANS:
        return _BOOLEANS[inp.lower()]

    try:
        return number(inp)
    except ValueError:
        return inp

def number(inp):
    """Parse a number, preferring `int` over `float`. `nan`, `na`, `None`,
    `inf` and `-inf` are recognized in any case.

    Parameters
    ----------
    inp : str

    Returns
    -------
    int, float, numpy.nan, numpy.inf, or -numpy.inf

    Raises
    ------
    ValueError
        if `inp` does not encode a number
    """
    special = _SPECIAL_NUMBERS.get(inp.lower())
    if special is not None:
        return special

    try:
        return int(inp)
    except ValueError:
        return float(inp)

def parse_value_list(inp,sep=","):
    """Split `inp` on `sep` and guess the value of each non-empty token

    Examples
    --------
    >>> parse_value_list("promoter, 'exon',5")
    ['promoter', 'exon', 5]

    Parameters
    ----------
    inp : str
        Delimited values

    sep : str, optional
        Delimiter (Default: `','`)

    Returns
    -------
    list
    """
    return [guess_formatter(X.strip()) for X in inp.split(sep) if X.strip() != ""]
