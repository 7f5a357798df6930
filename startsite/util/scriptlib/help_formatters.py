#!/usr/bin/env python
"""Turn `numpydoc`_-style module docstrings into plain command-line help text,
by stripping `reStructuredText`_ roles, substitutions and link markup, and
cutting the text at the first section that only makes sense in rendered
documentation.
"""
import re

SECTION_TOKENS = ("Parameters","Returns","Yields","Raises","Attributes","See also","See Also")
"""Section headers at which help text is truncated"""

pyrst_pattern = re.compile(r"(?P<spacing>^|\s+)(?::(?P<domain>[^:`<>]+))?:(?P<role>[^:`]*):`(?P<argument>[^`<>]+)(?: +<(?P<pointer>[^`]+)>)?`")
"""Matches roles like ``:func:`name``` or ``:term:`text <target>```. Keeps `argument`"""

subst_pattern = re.compile(r"\|([^|\n]*)\|")
"""Matches substitutions like ``|SampleStore|``"""

link_pattern = re.compile(r"`([^`<>]+)( <[^`]+>)?`_")
"""Matches link references like ```BAM`_`` or ```text <url>`_``"""

_separator = "\n" + (78*"-") + "\n"


def shorten_help(inp):
    """Strip markup from a docstring and truncate it at the first section header

    Parameters
    ----------
    inp : str
        Docstring

    Returns
    -------
    str
        Cleaned help text, ending in a newline
    """
    text = pyrst_pattern.sub(r"\g<spacing>\g<argument>",inp)
    text = subst_pattern.sub(r"\g<1>",text)
    text = link_pattern.sub(r"\g<1>",text)

    cut = len(text)
    for token in SECTION_TOKENS:
        match = re.search(r"^\s*%s\s*\n\s*-+\s*$" % re.escape(token),text,flags=re.M)
        if match is not None:
            cut = min(cut,match.start())

    return text[:cut].strip() + "\n"

def format_module_docstring(inp):
    """Format a script's module docstring as the description of its :class:`argparse.ArgumentParser`

    Parameters
    ----------
    inp : str
        Module docstring

    Returns
    -------
    str
    """
    return _separator + "\n" + shorten_help(inp) + "\n" + _separator
