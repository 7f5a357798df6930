#!/usr/bin/env python
"""Filter, bin, group and rank the rows of a :term:`TSS`, :term:`TSR` or
feature-count table.

Rows are first kept only if they pass every `--filter`. Then, if
`--quantile_by COLUMN Q` is given, rows are split into `Q` bins of nearly equal
size by the values in `COLUMN`, and the bin number (1 holding the lowest
values) is written to a `grouping` column. Otherwise, `--grouping COLUMN`
copies a categorical column to `grouping`. Finally, a `plot_order` column ranks
rows by `--order_by` within each group. Rows keep their input order.


Output files
------------
    OUTFILE
        Tab-delimited table holding the rows that passed all filters,
        with `grouping` and `plot_order` columns added
"""
import sys
import inspect
import argparse
import warnings

from startsite.genomics.conditioning import condition_table
from startsite.util.scriptlib.argparsers import ConditioningParser, BaseParser
from startsite.util.scriptlib.help_formatters import format_module_docstring
from startsite.util.io.filters import NameDateWriter
from startsite.util.io.openers import get_short_name, argsopener, read_sample_table
from startsite.util.services.exceptions import ConfigurationError

warnings.simplefilter("once")
printer = NameDateWriter(get_short_name(inspect.stack()[-1][1]))


def main(argv=sys.argv[1:]):
    """Command-line program

    Parameters
    ----------
    argv : list, optional
        A list of command-line arguments, which will be processed
        as if the script were called from the command line if
        :py:func:`main` is called directly.

        Default: sys.argv[1:] (actually command-line arguments)
    """
    cp = ConditioningParser()
    bp = BaseParser()
    parser = argparse.ArgumentParser(description=format_module_docstring(__doc__),
                                     formatter_class=argparse.RawDescriptionHelpFormatter,
                                     parents=[bp.get_parser(),cp.get_parser()])
    parser.add_argument("--no_order",action="store_true",default=False,
                        help="Do not add a plot_order column")
    parser.add_argument("infile",type=str,
                        help="Input table, tab-delimited with a header line")
    parser.add_argument("outfile",type=str,
                        help="Output table")

    args = parser.parse_args(argv)
    bp.get_base_ops_from_args(args)
    spec = cp.get_spec_from_args(args,printer=printer)
    if args.no_order:
        spec.order_by = None

    printer.write("Reading %s ..." % args.infile)
    table = read_sample_table(args.infile)
    printer.write("Conditioning %s rows with %s ..." % (len(table),spec))
    try:
        conditioned = condition_table(table,spec)
    except ConfigurationError as err:
        printer.write(str(err))
        sys.exit(1)

    printer.write("Writing %s rows to %s ..." % (len(conditioned),args.outfile))
    with argsopener(args.outfile,args,"w") as fout:
        conditioned.to_csv(fout,sep="\t",header=True,index=False,na_rep="nan")

    printer.write("Done!")


if __name__ == "__main__":
    main()
