#!/usr/bin/env python
"""Factories for :class:`argparse.ArgumentParser` objects shared by
:data:`startsite`'s command-line scripts, and helpers that turn the parsed
arguments into library objects.

Arguments are grouped into the following sets:

    ===========================================================   ======================================
    **Parameter/argument set**                                    **Parser building class**
    -----------------------------------------------------------   --------------------------------------
    Generic parameters (warning levels)                           :class:`BaseParser`

    :term:`Read alignments` in `BAM`_ files                       :class:`AlignmentParser`

    Genomic sequence files                                        :class:`SequenceParser`

    TSS clustering parameters                                     :class:`ClusteringParser`

    Filtering, quantile binning, grouping and ordering of tables  :class:`ConditioningParser`
    ===========================================================   ======================================


Example
-------
Each class returns a parser to use as a `parent` of a script's own parser,
and has a method that interprets the parsed arguments::

    >>> ap = ClusteringParser()
    >>> parser = argparse.ArgumentParser(parents=[ap.get_parser()])
    >>> parser.add_argument("outfile",type=str)
    >>> args = parser.parse_args()
    >>> kwargs = ap.get_clustering_kwargs_from_args(args)


See Also
--------
:py:mod:`argparse`
    Python documentation on argument parsing

:py:obj:`startsite.bin`
    Source code of command-line scripts, for further examples
"""
import sys
import argparse
import warnings

from startsite.util.io.openers import NullWriter
from startsite.util.services.exceptions import ConfigurationError, ArgumentWarning,\
                                               DataWarning, EmptyResultWarning,\
                                               FileFormatWarning, filterwarnings

#===============================================================================
# INDEX: Constants used in parsers below
#===============================================================================

_DEFAULT_ALIGNMENT_PARSER_TITLE = "alignment file options"
_DEFAULT_ALIGNMENT_PARSER_DESCRIPTION = "Open BAM files and choose which alignments to count"

_DEFAULT_SEQUENCE_PARSER_TITLE = "sequence options"
_DEFAULT_SEQUENCE_PARSER_DESCRIPTION = ""

_DEFAULT_CLUSTERING_PARSER_TITLE = "clustering options"
_DEFAULT_CLUSTERING_PARSER_DESCRIPTION = \
"""TSSs with score >= `--min_score` are merged into a TSR while no more than
`--max_gap` bases separate them."""

_DEFAULT_CONDITIONING_PARSER_TITLE = "data conditioning options"
_DEFAULT_CONDITIONING_PARSER_DESCRIPTION = \
"""Rows must pass every `--filter`. Rows are then binned by `--quantile_by` or
grouped by `--grouping`, and ranked by `--order_by` within each group."""


#===============================================================================
# INDEX: Base class for parsers
#===============================================================================

class Parser(object):
    """Base class for argument parser factories used below

    Parameters
    ----------
    groupname : str, optional
        Name of argument group. If not `None`, an argument group with
        the specified name will be created and added to the parser.
        If not, arguments will be in the main group.

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes
    """

    def __init__(self,groupname=None,prefix="",disabled=None):
        self.prefix    = prefix
        self.disabled  = [] if disabled is None else disabled
        self.groupname = groupname

        # define in __init__ of subclass
        self.arguments = []

    def get_parser(self,parser=None,groupname=None,arglist=None,title=None,description=None,**kwargs):
        """Create or populate an :class:`argparse.ArgumentParser` with arguments

        Parameters
        ----------
        parser : :class:`argparse.ArgumentParser` or None, optional
            If `None`, a new parser is created. Otherwise, arguments are added
            to `parser`. (Default: `None`)

        groupname : str or None, optional
            If `None`, defaults to `self.groupname`. If either is not `None`,
            arguments are added to an option group, to which `title` and
            `description` are applied

        arglist : list, optional
            List of tuples of `('argument_name', dict_of_options)`. Defaults
            to `self.arguments`.

        title : str, optional
            Optional title for parser

        description : str, optional
            Optional description for parser

        kwargs : keyword arguments
            Additional arguments passed during creation of :class:`argparse.ArgumentParser`

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        if groupname is None:
            groupname = self.groupname

        if parser is None:
            if groupname is None:
                parser = argparse.ArgumentParser(description=description,add_help=False,**kwargs)
            else:
                parser = argparse.ArgumentParser(add_help=False,**kwargs)

        addto = parser
        if groupname is not None:
            addto = parser.add_argument_group(title=title,description=description)

        arglist = self.arguments if arglist is None else arglist
        for arg_name, arg_opts in filter(lambda x: x[0] not in self.disabled,arglist):
            addto.add_argument("--%s%s" % (self.prefix,arg_name),**arg_opts)

        return parser


#===============================================================================
# INDEX: Alignment file parser
#===============================================================================

class AlignmentParser(Parser):
    """Parser for `BAM`_ files of :term:`read alignments`, read one sample per file

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes
    """

    def __init__(self,groupname="alignment_options",prefix="",disabled=None):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        self.arguments = [
            ("count_files"     , dict(type=str,
                                      default=[],
                                      nargs="+",
                                      help="One or more BAM files. Each file is treated as a separate sample.")),
            ("sample_names"    , dict(type=str,
                                      default=None,
                                      nargs="+",
                                      help="Sample names, one per BAM file (Default: file names without '.bam')")),
            ("min_length"      , dict(type=int,
                                      default=None,
                                      metavar="N",
                                      help="Minimum aligned read length to count (Default: no minimum)")),
            ("max_length"      , dict(type=int,
                                      default=None,
                                      metavar="N",
                                      help="Maximum aligned read length to count (Default: no maximum)")),
            ("min_mapq"        , dict(type=int,
                                      default=0,
                                      metavar="N",
                                      help="Minimum mapping quality (Default: %(default)s)")),
            ]

    def get_parser(self,
                   title=_DEFAULT_ALIGNMENT_PARSER_TITLE,
                   description=_DEFAULT_ALIGNMENT_PARSER_DESCRIPTION,
                   **kwargs):
        """Return an :py:class:`~argparse.ArgumentParser` that opens `BAM`_ files

        Parameters
        ----------
        title : str, optional
            title for option group (used in command-line help screen)

        description : str, optional
            description of parser (used in command-line help screen)

        kwargs : keyword arguments
            Additional arguments to pass to :meth:`Parser.get_parser`

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        return Parser.get_parser(self,title=title,description=description,**kwargs)

    def get_read_ends_from_args(self,args,printer=None):
        """Open a |BAMReadEndReader| for each sample named in `args`

        Parameters
        ----------
        args : :py:class:`argparse.Namespace`
            Arguments from the parser

        printer : file-like, optional
            A stream to which stderr-like info can be written (default: |NullWriter|)

        Returns
        -------
        dict
            Maps sample names to |BAMReadEndReader| objects, in file order
        """
        from startsite.readers.alignments import BAMReadEndReader
        from startsite.util.io.openers import get_short_name

        if printer is None:
            printer = NullWriter()

        args = PrefixNamespaceWrapper(args,self.prefix)
        if len(args.count_files) == 0:
            printer.write("Please include at least one input file.")
            sys.exit(1)

        names = args.sample_names
        if names is None:
            names = [get_short_name(X,terminator=".bam") for X in args.count_files]
        elif len(names) != len(args.count_files):
            printer.write("Found %s sample names for %s BAM files. Please give one name per file." % (len(names),len(args.count_files)))
            sys.exit(1)

        if len(set(names)) != len(names):
            printer.write("Sample names must be unique. Found: %s" % ", ".join(names))
            sys.exit(1)

        readers = {}
        for name, filename in zip(names,args.count_files):
            printer.write("Opening BAM file %s as sample %s ..." % (filename,name))
            readers[name] = BAMReadEndReader(filename,
                                             min_length=args.min_length,
                                             max_length=args.max_length,
                                             min_mapq=args.min_mapq)
        return readers


#===============================================================================
# INDEX: Sequence parser
#===============================================================================

class SequenceParser(Parser):
    """Parser for genomic sequence files

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes

    input_choices : list, optional
        list of permitted sequence file formats
    """

    def __init__(self,
                 groupname="sequence_options",
                 prefix="",
                 disabled=None,
                 input_choices=("fasta","twobit","genbank","embl"),
                 ):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        self.input_choices = input_choices
        self.arguments = [
                ("sequence_file"     , dict(metavar="infile.[%s]" % " | ".join(input_choices),
                                            type=str,
                                            default=None,
                                            help="A file of genomic DNA sequence")),
                ("sequence_format"   , dict(choices=input_choices,
                                            default="fasta",
                                            help="Format of %ssequence_file (Default: fasta)." % prefix)),
            ]

    def get_parser(self,
                   title=_DEFAULT_SEQUENCE_PARSER_TITLE,
                   description=_DEFAULT_SEQUENCE_PARSER_DESCRIPTION,
                   **kwargs):
        """Return an :py:class:`~argparse.ArgumentParser` that opens sequence files

        Parameters
        ----------
        title : str, optional
            title for option group (used in command-line help screen)

        description : str, optional
            description of parser (used in command-line help screen)

        kwargs : keyword arguments
            Additional arguments to pass to :meth:`Parser.get_parser`

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        return Parser.get_parser(self,title=title,description=description,**kwargs)

    def get_sequence_source_from_args(self,args,printer=None):
        """Open a |SequenceSource| from arguments

        Parameters
        ----------
        args : :py:class:`argparse.Namespace`
            Namespace object from :meth:`get_parser`

        printer : file-like
            A stream to which stderr-like info can be written (Default: |NullWriter|)

        Returns
        -------
        |SequenceSource| or None
            `None` if no sequence file was given
        """
        from startsite.readers.sequence import open_sequence_source

        if printer is None:
            printer = NullWriter()

        args = PrefixNamespaceWrapper(args,self.prefix)
        if args.sequence_file is None:
            return None

        printer.write("Opening sequence file '%s'." % args.sequence_file)
        return open_sequence_source(args.sequence_file,sequence_format=args.sequence_format)


#===============================================================================
# INDEX: Clustering parser
#===============================================================================

class ClusteringParser(Parser):
    """Parser for TSS clustering parameters

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes
    """

    def __init__(self,groupname="clustering_options",prefix="",disabled=None):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        self.arguments = [
            ("max_gap"         , dict(type=int,
                                      default=25,
                                      metavar="N",
                                      help="Maximum number of bases between neighboring TSSs in a TSR (Default: %(default)s)")),
            ("min_score"       , dict(type=float,
                                      default=1,
                                      metavar="X",
                                      help="Minimum score for a TSS to join a TSR (Default: %(default)s)")),
            ("processes"       , dict(type=int,
                                      default=1,
                                      metavar="N",
                                      help="Number of processes to use (Default: %(default)s)")),
            ]

    def get_parser(self,
                   title=_DEFAULT_CLUSTERING_PARSER_TITLE,
                   description=_DEFAULT_CLUSTERING_PARSER_DESCRIPTION,
                   **kwargs):
        """Return an :py:class:`~argparse.ArgumentParser` for clustering parameters

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        return Parser.get_parser(self,title=title,description=description,**kwargs)

    def get_clustering_kwargs_from_args(self,args,printer=None):
        """Return keyword arguments for :func:`~startsite.genomics.clustering.cluster_samples`

        Parameters
        ----------
        args : :py:class:`argparse.Namespace`

        printer : file-like
            A stream to which stderr-like info can be written (Default: |NullWriter|)

        Returns
        -------
        dict
        """
        if printer is None:
            printer = NullWriter()

        args = PrefixNamespaceWrapper(args,self.prefix)
        if args.max_gap < 0:
            printer.write("--max_gap must be non-negative. Found %s" % args.max_gap)
            sys.exit(1)
        if args.processes < 1:
            printer.write("--processes must be at least 1. Found %s" % args.processes)
            sys.exit(1)

        return { "max_gap"   : args.max_gap,
                 "min_score" : args.min_score,
                 "processes" : args.processes,
               }


#===============================================================================
# INDEX: Conditioning parser
#===============================================================================

class ConditioningParser(Parser):
    """Parser for the options of a |ConditioningSpec|

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes
    """

    def __init__(self,groupname="conditioning_options",prefix="",disabled=None):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        self.arguments = [
            ("filter"          , dict(type=str,
                                      default=None,
                                      action="append",
                                      metavar="'COLUMN OP VALUE'",
                                      help="Keep rows passing a predicate, e.g. 'score >= 5' or "+
                                           "'feature_type in promoter,genic'. May be given more than once. "+
                                           "Operators: ==, !=, <, <=, >, >=, in, not in")),
            ("order_by"        , dict(type=str,
                                      default="score",
                                      metavar="COLUMN",
                                      help="Column by which rows are ranked in the plot_order column (Default: %(default)s)")),
            ("ascending"       , dict(action="store_true",
                                      default=False,
                                      help="Rank in ascending instead of descending order")),
            ("quantile_by"     , dict(type=str,
                                      nargs=2,
                                      default=None,
                                      metavar=("COLUMN","Q"),
                                      help="Split rows into Q bins of nearly equal size by the value of COLUMN")),
            ("grouping"        , dict(type=str,
                                      default=None,
                                      metavar="COLUMN",
                                      help="Group rows by a categorical column. Ignored if --quantile_by is given")),
            ]

    def get_parser(self,
                   title=_DEFAULT_CONDITIONING_PARSER_TITLE,
                   description=_DEFAULT_CONDITIONING_PARSER_DESCRIPTION,
                   **kwargs):
        """Return an :py:class:`~argparse.ArgumentParser` for data conditioning

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        return Parser.get_parser(self,title=title,description=description,**kwargs)

    def get_spec_from_args(self,args,printer=None):
        """Build a |ConditioningSpec| from arguments

        Parameters
        ----------
        args : :py:class:`argparse.Namespace`

        printer : file-like
            A stream to which stderr-like info can be written (Default: |NullWriter|)

        Returns
        -------
        |ConditioningSpec|
        """
        from startsite.genomics.conditioning import ConditioningSpec

        if printer is None:
            printer = NullWriter()

        args = PrefixNamespaceWrapper(args,self.prefix)
        quantile_by = None
        if args.quantile_by is not None:
            column, q = args.quantile_by
            try:
                quantile_by = (column,int(q))
            except ValueError:
                printer.write("Number of quantiles must be an integer. Found '%s'" % q)
                sys.exit(1)

        try:
            spec = ConditioningSpec(filters=args.filter or [],
                                    order_by=args.order_by,
                                    descending=not args.ascending,
                                    quantile_by=quantile_by,
                                    grouping=args.grouping)
        except ConfigurationError as err:
            printer.write("Invalid conditioning options: %s" % err)
            sys.exit(1)

        return spec


#===============================================================================
# INDEX: Base parser
#===============================================================================

class BaseParser(Parser):
    """Parser for options common to all scripts, e.g. warning levels

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes
    """

    def __init__(self,groupname="base_options",prefix="",disabled=None):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        self.arguments = []

    def get_parser(self,title=None,description=None):
        """Return an :py:class:`~argparse.ArgumentParser`

        Parameters
        ----------
        title : str, optional
            title for option group (used in command-line help screen)

        description : str, optional
            description of parser (used in command-line help screen)

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        p = Parser.get_parser(self)
        g = p.add_argument_group(title="warning/error options")
        g.add_argument("-q","--quiet",dest="warnlevel",action="store_const",const=-1,
                       help="Suppress all warning messages. Cannot use with '-v'.")
        g.add_argument("-v","--verbose",dest="warnlevel",action="count",
                       help="Increase verbosity. With '-v', show every warning. With '-vv', turn warnings into exceptions. Cannot use with '-q'. (Default: show each type of warning once)")
        p.set_defaults(warnlevel=0)

        return p

    def get_base_ops_from_args(self,args):
        """Set warning filters for the level chosen in `args`

        Parameters
        ----------
        args : :py:class:`argparse.Namespace`
        """
        args = PrefixNamespaceWrapper(args,self.prefix)
        warnlevel = args.warnlevel
        actions = ["ignore",
                   "onceperfamily",
                   "always",
                   "error"]

        if warnlevel >= len(actions) - 1:
            warnlevel = len(actions) - 2
        try:
            action = actions[warnlevel+1]
        except IndexError:
            warnings.warn("Invalid warning level. Expected -1 to 2, found %s. Showing each type of warning once." % warnlevel,ArgumentWarning)
            action = actions[1]

        for type_, msg in STARTSITE_WARNINGS:
            filterwarnings(action,message=msg,category=type_)


STARTSITE_WARNINGS = [

    # conditioning
    (EmptyResultWarning,"No rows remain after conditioning"),
    (DataWarning,"Both quantile_by and grouping were given"),

    # clustering & aggregation
    (EmptyResultWarning,"Sample .* yielded no TSRs"),
    (EmptyResultWarning,"Sample .* has no read alignments"),

    # sequence
    (DataWarning,"Chromosome .* not found in sequence source"),

    # differential expression
    (EmptyResultWarning,"No differential results stored"),

    # annotation
    (DataWarning,"No .* could be annotated"),

    # sample store
    (DataWarning,"Sample .* is not in the sample sheet"),

    # bedGraph import
    (FileFormatWarning,"Skipping zero-length bedGraph interval"),

]
"""Warning families filtered by :meth:`BaseParser.get_base_ops_from_args`,
as `(category, message regex)` pairs"""


#===============================================================================
# INDEX: Utility classes
#===============================================================================

class PrefixNamespaceWrapper(object):
    """Wrapper that reads attributes of an :py:class:`~argparse.Namespace`
    created by a parser with a non-empty `prefix`, as if no prefix had been used.

    Parameters
    ----------
    namespace : :py:class:`~argparse.Namespace`
        Result of calling :py:meth:`argparse.ArgumentParser.parse_args`

    prefix : str
        Prefix prepended to attribute names before they are fetched from
        `namespace`. Must match the prefix used to build the parser.
    """

    def __init__(self,namespace,prefix):
        self.namespace = namespace
        self.prefix = prefix

    def __getattr__(self,k):
        return getattr(self.namespace,"%s%s" % (self.prefix,k))
