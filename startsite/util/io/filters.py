#!/usr/bin/env python
"""Stream writers that format progress messages on their way to an output
stream, similar to a Unix pipe. Long-running functions and command-line
scripts in :data:`startsite` take one of these as their `printer`.

    :class:`AbstractWriter`
        Base class. Subclasses override :py:meth:`~AbstractWriter.filter`,
        which turns each unit of data into the text that is written.

    :class:`ColorWriter`
        Offers ANSI coloring through :py:meth:`ColorWriter.color`, but only
        when the output stream is a terminal

    :class:`NameDateWriter`
        Prefix every line of a message with a program name and timestamp

Helper functions:

    :func:`supports_color`
        Test whether a stream is a terminal that can display color

    :func:`colored`
        :func:`termcolor.colored` if :obj:`sys.stderr` supports color,
        otherwise plain :func:`str`


Examples
--------
Report progress to stderr::

    >>> printer = NameDateWriter("cluster_tss")
    >>> printer.write("Clustering sample wt_1 ...")
    cluster_tss [2026-10-16 12:00:00]: Clustering sample wt_1 ...
"""
import sys
import datetime
from abc import abstractmethod
from io import IOBase

import termcolor


def supports_color(stream):
    """Return `True` if `stream` is attached to a terminal

    Parameters
    ----------
    stream : file-like

    Returns
    -------
    bool
    """
    return hasattr(stream,"isatty") and stream.isatty()

def _plain(text,**kwargs):
    return str(text)

colored = termcolor.colored if supports_color(sys.stderr) else _plain



#===============================================================================
# INDEX: writers
#===============================================================================

class AbstractWriter(IOBase):
    """Base class for writers that format data before passing it to `stream`

    Parameters
    ----------
    stream : file-like, open for writing
        Destination of formatted text
    """
    def __init__(self,stream):
        self.stream = stream

    def isatty(self):
        return supports_color(self.stream)

    def writable(self):
        return True

    def readable(self):
        return False

    def seekable(self):
        return False

    def fileno(self):
        raise IOError("%s has no file descriptor" % self.__class__.__name__)

    def write(self,data):
        """Format `data` with :meth:`filter` and write the result to `self.stream`"""
        self.stream.write(self.filter(data))

    def flush(self):
        self.stream.flush()

    def close(self):
        """Flush and close `self.stream`, if it is still open"""
        try:
            self.flush()
            self.stream.close()
        except (AttributeError,ValueError):
            pass

    @abstractmethod
    def filter(self,data):
        """Turn one unit of `data` into the text to be written

        Parameters
        ----------
        data : object
            Usually a string

        Returns
        -------
        str
        """
        pass


class ColorWriter(AbstractWriter):
    """Writer that can color its output when `stream` is a terminal

    Parameters
    ----------
    stream : file-like
        Stream to write to
    """
    def __init__(self,stream):
        AbstractWriter.__init__(self,stream)
        self._use_color = supports_color(stream)

    def color(self,text,**kwargs):
        """Color `text` via :func:`termcolor.colored` if the stream supports it

        Parameters
        ----------
        text : str

        kwargs : keyword arguments
            Passed to :func:`termcolor.colored`, e.g. `color` or `attrs`

        Returns
        -------
        str
        """
        if self._use_color:
            return termcolor.colored(text,**kwargs)
        return text

    def filter(self,data):
        return str(data)


class NameDateWriter(ColorWriter):
    """Prefix each line of output with a program name, date and time

    Parameters
    ----------
    name : str
        Program name

    line_delimiter : str, optional
        Separates lines within a message, and terminates every written line
        (Default: `'\\n'`)

    stream : file-like, optional
        Stream to write to (Default: :obj:`sys.stderr`)
    """

    def __init__(self,name,line_delimiter="\n",stream=None):
        ColorWriter.__init__(self,sys.stderr if stream is None else stream)
        self.name = name
        self.delimiter = line_delimiter
        self._name_text = self.color(name,color="blue",attrs=["bold"])

    def _prefix(self,now):
        stamp = "%s %s" % (self.color(now.strftime("%Y-%m-%d"),color="green"),
                           self.color(now.strftime("%H:%M:%S"),color="green",attrs=["bold"]))
        return "%s %s%s%s: " % (self._name_text,
                                self.color("[",color="blue",attrs=["bold"]),
                                stamp,
                                self.color("]",color="blue",attrs=["bold"]))

    def filter(self,message):
        """Prefix each line of `message` with name and timestamp

        Parameters
        ----------
        message : str
            One or more lines. A trailing delimiter is ignored.

        Returns
        -------
        str
        """
        prefix = self._prefix(datetime.datetime.now())
        lines = str(message).strip(self.delimiter).split(self.delimiter)
        return "".join("%s%s%s" % (prefix,X,self.delimiter) for X in lines)
