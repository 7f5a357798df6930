#!/usr/bin/env python
"""Call :term:`TSSs <TSS>` from the 5' ends of :term:`read alignments` in
one or more `BAM`_ files, one sample per file.

Reads sharing a 5' end are counted together, giving one row per unique
position and strand. Optionally, scores can be corrected for the excess of
G at cap-derived read starts, using the genome sequence around each TSS.


Output files
------------
For each sample, one of the following is written, depending upon
`--output_format`:

    OUTBASE_SAMPLE_TSSs.tsv
        Tab-delimited table with columns `chrom`, `position` (1-based),
        `strand`, `score`, and `uncorrected_score` if G correction was applied

    OUTBASE_SAMPLE_pos.bedgraph, OUTBASE_SAMPLE_min.bedgraph
        Plus- and minus-strand `bedGraph`_ tracks

where `OUTBASE` is given by the user and `SAMPLE` is the sample name.
"""
import os
import sys
import inspect
import argparse
import warnings

from startsite.genomics.sample_store import SampleStore
from startsite.genomics.tables import DataType
from startsite.genomics.aggregation import aggregate_samples, correct_samples
from startsite.genomics.export import export_tss
from startsite.util.scriptlib.argparsers import AlignmentParser, SequenceParser, BaseParser
from startsite.util.scriptlib.help_formatters import format_module_docstring
from startsite.util.io.filters import NameDateWriter
from startsite.util.io.openers import get_short_name, argsopener

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
    ap = AlignmentParser()
    sp = SequenceParser()
    bp = BaseParser()
    parser = argparse.ArgumentParser(description=format_module_docstring(__doc__),
                                     formatter_class=argparse.RawDescriptionHelpFormatter,
                                     parents=[bp.get_parser(),ap.get_parser(),sp.get_parser()])
    parser.add_argument("--output_format",choices=("table","bedgraph"),default="table",
                        help="Format of output files (Default: %(default)s)")
    parser.add_argument("--correct_g",action="store_true",default=False,
                        help="Correct scores for G content around each TSS. Requires `--sequence_file`")
    parser.add_argument("--g_flank",type=int,default=1,metavar="N",
                        help="Bases on each side of a TSS used for G correction (Default: %(default)s)")
    parser.add_argument("--g_background",type=float,default=0.25,metavar="X",
                        help="Expected G fraction without bias (Default: %(default)s)")
    parser.add_argument("outbase",type=str,
                        help="Base name for output files")

    args = parser.parse_args(argv)
    bp.get_base_ops_from_args(args)

    if args.correct_g and args.sequence_file is None:
        printer.write("G correction requires a sequence file. Please give `--sequence_file`.")
        sys.exit(1)

    readers = ap.get_read_ends_from_args(args,printer=printer)
    store = SampleStore()
    aggregate_samples(store,readers,printer=printer)
    for reader in readers.values():
        reader.close()

    if args.correct_g:
        source = sp.get_sequence_source_from_args(args,printer=printer)
        correct_samples(store,source,flank=args.g_flank,background=args.g_background,printer=printer)

    out_dir, prefix = os.path.split(args.outbase)
    if args.output_format == "table":
        for name, table in store.get_samples(DataType.TSS).items():
            fn = "%s_%s_TSSs.tsv" % (args.outbase,name)
            printer.write("Writing %s TSSs to %s ..." % (len(table),fn))
            with argsopener(fn,args,"w") as fout:
                table.to_csv(fout,sep="\t",header=True,index=False,na_rep="nan")
    else:
        renamed = SampleStore()
        renamed.add_samples(DataType.TSS,{ "%s_%s" % (prefix,K) : V for K, V in store.get_samples(DataType.TSS).items() })
        export_tss(renamed,file_type="bedgraph",out_dir=out_dir or None,printer=printer)

    printer.write("Done!")


if __name__ == "__main__":
    main()
