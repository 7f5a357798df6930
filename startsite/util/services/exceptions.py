#!/usr/bin/env python
"""Exception and warning classes used throughout :data:`startsite`, plus a
custom warning filter action called `"onceperfamily"`, and a colorized
replacement for warning output.

Contents:

.. contents::
   :local:

The `onceperfamily` action
--------------------------
`onceperfamily` groups warning messages into families defined by regular
expressions, and only prints the first warning that matches each family.
Python's native `once` action instead prints each distinct string once, which
floods output when messages carry sample names or coordinates.

Use :func:`filterwarnings` to create the filter, and :func:`warn` or
:func:`warn_explicit` to issue warnings that respect it.


Exception types
---------------
|ConfigurationError|
    A conditioning specification, clustering parameter, or other option
    is invalid. Raised before any computation takes place.

|ColumnNotFoundError|
    An option names a column that is absent from a table

|InputShapeError|
    A sample sheet and count matrix do not line up before model fitting

|MalformedFileError|
    A file cannot be parsed as expected, and execution must halt


Warning types
-------------
|EmptyResultWarning|
    A table has no rows after filtering. Not a failure: the empty table
    is still returned to the caller.

|ArgumentWarning|
    Options that are nonsensical, but recoverable

|FileFormatWarning|
    Slightly malformed but usable files

|DataWarning|
    Data with unexpected, but recoverable, attributes or values


See also
--------
:mod:`warnings`
    Warnings module
"""
import re
import warnings
import inspect
import linecache
import textwrap
from startsite.util.io.filters import colored

_wrapper = textwrap.TextWrapper(break_long_words=False,width=77)



#===============================================================================
# INDEX: Exception classes
#===============================================================================

class ConfigurationError(ValueError):
    """Raised when an option or conditioning specification is invalid,
    e.g. a non-numeric quantile column, an impossible bin count, or a
    malformed filter predicate
    """
    pass


class ColumnNotFoundError(ConfigurationError,KeyError):
    """Raised when an option refers to a column that a table does not have"""

    def __init__(self,column,available=None,context=None):
        """Create a |ColumnNotFoundError|

        Parameters
        ----------
        column : str
            Name of missing column

        available : iterable, optional
            Columns that were present in the table

        context : str, optional
            Option or operation that required `column`
        """
        self.column    = column
        self.available = [] if available is None else list(available)
        self.context   = context
        ConfigurationError.__init__(self,str(self))

    def __str__(self):
        msg = "Column '%s' not found" % self.column
        if self.context is not None:
            msg += " (required by %s)" % self.context
        if len(self.available) > 0:
            msg += ". Available columns: %s" % ", ".join(str(X) for X in self.available)
        return msg


class InputShapeError(ValueError):
    """Raised when the sample sheet and count matrix handed to a model
    fitting routine disagree in dimension or content
    """
    pass


class MalformedFileError(Exception):
    """Exception class for when files cannot be parsed as they should be
    """

    def __init__(self,filename,message,line_num=None):
        """Create a |MalformedFileError|

        Parameters
        ----------
        filename : str
            Name of file causing problem

        message : str
            Message explaining how the file is malformed.

        line_num : int or None, optional
            Number of line causing problems
        """
        self.filename = filename
        self.msg      = message
        self.line_num = line_num
        Exception.__init__(self,str(self))

    def __str__(self):
        if self.line_num is None:
            return "Error opening file '%s': %s" % (self.filename, self.msg)
        else:
            return "Error opening file '%s' at line %s: %s" % (self.filename, self.line_num, self.msg)



#===============================================================================
# INDEX: Warning classes
#===============================================================================

class EmptyResultWarning(Warning):
    """Warning issued when a table has zero rows after filtering.
    The empty table is still returned, and consumers are expected to skip it.
    """
    pass


class ArgumentWarning(Warning):
    """Warning for nonsensical but recoverable combinations of arguments,
    or arguments that risk slow program execution"""
    pass


class FileFormatWarning(Warning):
    """Warning for slightly malformed but usable files"""
    pass


class DataWarning(Warning):
    """Warning for unexpected attributes of data.
    Raised when:

      - data has unexpected attributes
      - data has nonsensical, but recoverable values
      - values are out of the domain of a given operation, but execution
        can continue if the value is estimated or the operation skipped
    """



#===============================================================================
# INDEX: extensions to Python warnings
#===============================================================================

family_filters = []
"""`onceperfamily` filters, as `(message regex, category, module regex, lineno)` tuples,
checked in order by :func:`warn_explicit`"""

family_registry = set()
"""Filters from :data:`family_filters` whose family has already produced a warning"""

def filterwarnings(action,message="",category=Warning,module="",lineno=0,append=False):
    """Add a warnings filter. Arguments are as for :func:`warnings.filterwarnings`,
    with one extra `action`: `'onceperfamily'`, which shows only the first
    warning whose message matches the regex `message`. Families are matched
    case-insensitively.

    Parameters
    ----------
    action : str
        `'error'`, `'ignore'`, `'always'`, `'default'`, `'module'`, `'once'`,
        or `'onceperfamily'`

    message : str, optional
        Regex matched against the start of warning messages (Default: `''`, any message)

    category : Warning or subclass, optional
        (Default: :class:`Warning`)

    module : str, optional
        Regex matched against module names (Default: `''`, any module)

    lineno : int, optional
        Line number to match, or 0 for any line (Default: 0)

    append : bool, optional
        If `True`, add the filter with lowest priority instead of highest

    See also
    --------
    warnings.filterwarnings
    """
    if action != "onceperfamily":
        warnings.filterwarnings(action,message=message,category=category,
                                module=module,lineno=lineno,append=append)
        return

    entry = (re.compile(message,re.I),category,re.compile(module),lineno)
    if entry in family_filters:
        return
    if append:
        family_filters.append(entry)
    else:
        family_filters.insert(0,entry)

def _matching_family(message,category,module,lineno):
    for entry in family_filters:
        pattern, filter_category, module_pattern, filter_lineno = entry
        if pattern.match(message) is not None \
           and issubclass(category,filter_category) \
           and module_pattern.match(module) is not None \
           and filter_lineno in (0,lineno):
            return entry
    return None

def warn_explicit(message,category,filename,lineno,module=None,registry=None,module_globals=None):
    """Issue a warning at an explicit location, unless its `onceperfamily`
    family has already warned. Otherwise behaves as :func:`warnings.warn_explicit`.

    Parameters
    ----------
    message : str

    category : Warning or subclass

    filename : str
        File to which the warning is attributed

    lineno : int
        Line to which the warning is attributed

    module : str, optional
        Module name (Default: this module's name)

    registry, module_globals
        Passed to :func:`warnings.warn_explicit`
    """
    module = __name__ if module is None else module
    family = _matching_family(message,category,module,lineno)
    if family is not None:
        if family in family_registry:
            return
        family_registry.add(family)

    warnings.warn_explicit(message,category,filename,lineno,
                           module=module,registry=registry,
                           module_globals=module_globals)

def warn(message,category=None,stacklevel=1):
    """Issue a warning that respects `onceperfamily` filters. Drop-in
    replacement for :func:`warnings.warn`.

    Parameters
    ----------
    message : str

    category : Warning or subclass, optional
        (Default: :class:`UserWarning`)

    stacklevel : int, optional
        Frame, counted from the caller, to which the warning is attributed
    """
    category = UserWarning if category is None else category
    stack = inspect.stack()
    try:
        frame = stack[min(stacklevel,len(stack)-1)]
        filename, lineno = frame[1], frame[2]
    finally:
        del stack

    module = inspect.getmodulename(filename) or filename
    warn_explicit(message,category,filename,lineno,module=module)


#===============================================================================
# INDEX: warning display
#===============================================================================

def _source_context(filename,lineno,radius=2):
    width = len(str(lineno+radius))
    lines = []
    for num in range(max(1,lineno-radius),lineno+radius+1):
        text = linecache.getline(filename,num).rstrip("\n")
        if not text:
            continue
        attrs = ["bold"] if num == lineno else []
        lines.append("%s %s" % (colored(str(num).rjust(width),color="green",attrs=attrs),
                                colored(text,attrs=attrs)))
    return "\n".join(lines)

def formatwarning(message,category,filename,lineno,file=None,line=None):
    """Format a warning as a colored block holding the warning type, the
    message, its location, and the surrounding source lines. Replaces
    :func:`warnings.formatwarning` when this module is imported.

    Parameters
    ----------
    message : str or Warning

    category : Warning subclass

    filename : str

    lineno : int

    file : file-like, optional
        Ignored

    line : str, optional
        Source text to show. If `None`, lines around `lineno` are read
        from `filename`

    Returns
    -------
    str
    """
    rule = colored("-"*75,color="cyan")
    text = str(message)
    if "\n" not in text:
        text = _wrapper.fill(text)

    context = _source_context(filename,lineno) if line is None else line
    parts = [rule,
             colored(category.__name__,color="cyan",attrs=["bold"]),
             colored(text,color="white",attrs=["bold"]),
             "in %s, line %s:" % (colored(filename,color="cyan"),lineno),
             "",
             context,
             "",
             rule,
             ""]
    return "\n".join(parts)


warnings.formatwarning = formatwarning
