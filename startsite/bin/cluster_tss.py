#!/usr/bin/env python
"""Cluster nearby :term:`TSSs <TSS>` into :term:`transcription start regions <TSR>`.

TSSs are read from tables written by ``call_tss``, or from pairs of plus- and
minus-strand `bedGraph`_ files. Within each chromosome and strand, TSSs with
score at least `--min_score` are merged into a single TSR while no more than
`--max_gap` bases separate neighbors. Each TSR reports its total score, width,
number of member TSSs, and a shape index between 0 (one dominant position)
and 1 (signal spread evenly over all members).


Output files
------------
For each sample:

    OUTBASE_SAMPLE_TSRs.tsv
        Tab-delimited TSR table (if `--output_format` is `table`)

    OUTBASE_SAMPLE_TSRs.bed
        TSRs as six-column `BED`_ (if `--output_format` is `bed`)

    OUTBASE_SAMPLE_TSSs.tsv
        Only if `--write_membership` is given. The input TSSs, with the
        `tsr_id` of the TSR each joined, and a `dominant_tsr` column flagging
        the highest-scoring TSS of each TSR

where `OUTBASE` is given by the user and `SAMPLE` is the sample name.
"""
import os
import sys
import inspect
import argparse
import warnings

from startsite.genomics.sample_store import SampleStore
from startsite.genomics.tables import DataType
from startsite.genomics.clustering import cluster_samples
from startsite.genomics.dominance import mark_dominant_samples
from startsite.genomics.export import export_tsr
from startsite.readers.tables import read_tss_table, read_bedgraph_pair
from startsite.util.scriptlib.argparsers import ClusteringParser, BaseParser
from startsite.util.scriptlib.help_formatters import format_module_docstring
from startsite.util.io.filters import NameDateWriter
from startsite.util.io.openers import get_short_name, argsopener
from startsite.util.services.exceptions import MalformedFileError

warnings.simplefilter("once")
printer = NameDateWriter(get_short_name(inspect.stack()[-1][1]))


def sample_name_from_file(filename):
    """Guess a sample name from the name of a TSS table or bedGraph file

    Examples
    --------
    >>> sample_name_from_file("/data/wt_1_TSSs.tsv")
    'wt_1'

    >>> sample_name_from_file("wt_1_pos.bedgraph")
    'wt_1'
    """
    name = get_short_name(filename)
    for ext in (".gz",".bz2",".tsv",".txt",".bedgraph",".bedGraph"):
        if name.endswith(ext):
            name = name[:-len(ext)]
    for suffix in ("_TSSs","_pos","_min"):
        if name.endswith(suffix):
            name = name[:-len(suffix)]
    return name

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
    cp = ClusteringParser()
    bp = BaseParser()
    parser = argparse.ArgumentParser(description=format_module_docstring(__doc__),
                                     formatter_class=argparse.RawDescriptionHelpFormatter,
                                     parents=[bp.get_parser(),cp.get_parser()])
    parser.add_argument("--input_format",choices=("table","bedgraph"),default="table",
                        help="Format of input files. With `bedgraph`, give files as plus/minus pairs (Default: %(default)s)")
    parser.add_argument("--sample_names",type=str,nargs="+",default=None,
                        help="Sample names, one per table or bedGraph pair (Default: guessed from file names)")
    parser.add_argument("--output_format",choices=("table","bed"),default="table",
                        help="Format of TSR output (Default: %(default)s)")
    parser.add_argument("--write_membership",action="store_true",default=False,
                        help="Also write TSS tables annotated with TSR membership and dominance")
    parser.add_argument("outbase",type=str,
                        help="Base name for output files")
    parser.add_argument("infiles",type=str,nargs="+",
                        help="TSS tables, or bedGraph files in plus/minus order")

    args = parser.parse_args(argv)
    bp.get_base_ops_from_args(args)
    kwargs = cp.get_clustering_kwargs_from_args(args,printer=printer)

    if args.input_format == "bedgraph":
        if len(args.infiles) % 2 != 0:
            printer.write("bedGraph input must be given as plus/minus pairs. Found %s files." % len(args.infiles))
            sys.exit(1)
        groups = list(zip(args.infiles[::2],args.infiles[1::2]))
    else:
        groups = [(X,) for X in args.infiles]

    names = args.sample_names
    if names is None:
        names = [sample_name_from_file(X[0]) for X in groups]
    elif len(names) != len(groups):
        printer.write("Found %s sample names for %s samples. Please give one name per sample." % (len(names),len(groups)))
        sys.exit(1)

    if len(set(names)) != len(names):
        printer.write("Sample names must be unique. Found: %s" % ", ".join(names))
        sys.exit(1)

    tables = {}
    for name, files in zip(names,groups):
        printer.write("Reading TSSs for sample %s from %s ..." % (name,", ".join(files)))
        try:
            tables[name] = read_tss_table(files[0]) if len(files) == 1 else read_bedgraph_pair(*files)
        except MalformedFileError as err:
            printer.write(str(err))
            sys.exit(1)

    store = SampleStore()
    store.add_samples(DataType.TSS,tables)
    cluster_samples(store,printer=printer,**kwargs)

    out_dir, prefix = os.path.split(args.outbase)
    if args.output_format == "table":
        for name, table in store.get_samples(DataType.TSR).items():
            fn = "%s_%s_TSRs.tsv" % (args.outbase,name)
            printer.write("Writing %s TSRs to %s ..." % (len(table),fn))
            with argsopener(fn,args,"w") as fout:
                table.to_csv(fout,sep="\t",header=True,index=False,na_rep="nan")
    else:
        renamed = SampleStore()
        renamed.add_samples(DataType.TSR,{ "%s_%s" % (prefix,K) : V for K, V in store.get_samples(DataType.TSR).items() })
        export_tsr(renamed,file_type="bed",out_dir=out_dir or None,printer=printer)

    if args.write_membership:
        mark_dominant_samples(store,DataType.TSS,"tsr",threshold=args.min_score,printer=printer)
        for name, table in store.get_samples(DataType.TSS).items():
            fn = "%s_%s_TSSs.tsv" % (args.outbase,name)
            printer.write("Writing TSS membership to %s ..." % fn)
            with argsopener(fn,args,"w") as fout:
                table.to_csv(fout,sep="\t",header=True,index=False,na_rep="nan")

    printer.write("Done!")


if __name__ == "__main__":
    main()
