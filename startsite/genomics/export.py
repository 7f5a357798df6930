#!/usr/bin/env python
"""Write stored TSS and TSR tables to disk.

    ===========  ==============  ==================================================
    **Data**     **file_type**   **Files written, per sample**
    -----------  --------------  --------------------------------------------------
    TSS          `bedgraph`      `<sample>_pos.bedgraph`, `<sample>_min.bedgraph`
    TSS          `table`         `<sample>_TSSs.tsv`
    TSR          `bed`           `<sample>_TSRs.bed` (BED6, `name` is `tsr_id`)
    TSR          `table`         `<sample>_TSRs.tsv`
    ===========  ==============  ==================================================

`bedGraph`_ and `BED`_ files use 0-based, half-open coordinates. Tables are
tab-delimited with a header line, and can be read back with
:func:`~startsite.util.io.openers.read_sample_table`.

Differential results (see :mod:`startsite.genomics.differential`) can be
exported as tables in place of samples by passing `diff_comparisons=True`.
"""
import os

from startsite.genomics.tables import DataType
from startsite.util.io.openers import opener, NullWriter
from startsite.util.services.exceptions import ConfigurationError


def _select(store,data_type,samples,diff_comparisons):
    if not diff_comparisons:
        return store.get_samples(data_type,samples)

    stored = store.diff_features[data_type]["results"]
    names = list(stored.keys()) if samples == "all" else ([samples] if isinstance(samples,str) else samples)
    missing = [X for X in names if X not in stored]
    if len(missing) > 0:
        raise KeyError("No differential results for comparison(s): %s" % ", ".join(missing))
    return { K : stored[K].copy() for K in names }

def _path(out_dir,filename):
    return os.path.join(os.getcwd() if out_dir is None else out_dir,filename)

def write_table(table,filename,sep="\t"):
    """Write `table` as delimited text with a header line and no index

    Parameters
    ----------
    table : :class:`pandas.DataFrame`

    filename : str
        Destination. Compressed if it ends in `'.gz'` or `'.bz2'`

    sep : str, optional
        Field separator (Default: tab)
    """
    with opener(filename,"w") as fout:
        table.to_csv(fout,sep=sep,header=True,index=False,na_rep="nan")

def write_bedgraph(table,filename,name):
    """Write TSSs on a single strand as a `bedGraph`_ file

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        TSS table

    filename : str

    name : str
        Track name
    """
    sub = table.sort_values(["chrom","position"],kind="mergesort")
    with opener(filename,"w") as fout:
        fout.write("track type=bedGraph name=\"%s\"\n" % name)
        for chrom, position, score in zip(sub["chrom"],sub["position"],sub["score"]):
            fout.write("%s\t%s\t%s\t%s\n" % (chrom,int(position) - 1,int(position),score))

def write_bed(table,filename):
    """Write TSRs as a `BED`_ file with six columns

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        TSR table

    filename : str
    """
    sub = table.sort_values(["chrom","start","end"],kind="mergesort")
    with opener(filename,"w") as fout:
        for chrom, start, end, tsr_id, score, strand in zip(sub["chrom"],sub["start"],sub["end"],
                                                            sub["tsr_id"],sub["score"],sub["strand"]):
            fout.write("%s\t%s\t%s\t%s\t%s\t%s\n" % (chrom,int(start) - 1,int(end),tsr_id,score,strand))

def export_tss(store,samples="all",file_type="bedgraph",out_dir=None,diff_comparisons=False,sep="\t",printer=None):
    """Export stored TSSs

    Parameters
    ----------
    store : |SampleStore|

    samples : str or list, optional
        Samples (or, with `diff_comparisons`, comparisons) to export (Default: `'all'`)

    file_type : str, optional
        `'bedgraph'` (default) or `'table'`

    out_dir : str or None, optional
        Output folder (Default: current working directory)

    diff_comparisons : bool, optional
        Export differential results instead of samples. Requires `file_type='table'`

    sep : str, optional
        Field separator for tables (Default: tab)

    printer : file-like, optional
        Something implementing a `write()` method, for progress messages

    Returns
    -------
    list
        Filenames written
    """
    printer = NullWriter() if printer is None else printer
    file_type = file_type.lower()
    if file_type not in ("bedgraph","table"):
        raise ConfigurationError("TSSs can be exported as 'bedgraph' or 'table', not '%s'" % file_type)
    if diff_comparisons and file_type != "table":
        raise ConfigurationError("Differential results can only be exported as tables.")

    written = []
    for name, table in _select(store,DataType.TSS,samples,diff_comparisons).items():
        if file_type == "bedgraph":
            for strand, suffix in (("+","pos"),("-","min")):
                filename = _path(out_dir,"%s_%s.bedgraph" % (name,suffix))
                write_bedgraph(table.loc[table["strand"] == strand],filename,"%s_%s" % (name,suffix))
                written.append(filename)
        else:
            filename = _path(out_dir,"%s_TSSs.tsv" % name)
            write_table(table,filename,sep=sep)
            written.append(filename)
        printer.write("Exported TSSs for %s." % name)

    return written

def export_tsr(store,samples="all",file_type="bed",out_dir=None,diff_comparisons=False,sep="\t",printer=None):
    """Export stored TSRs

    Parameters
    ----------
    store : |SampleStore|

    samples : str or list, optional
        Samples (or, with `diff_comparisons`, comparisons) to export (Default: `'all'`)

    file_type : str, optional
        `'bed'` (default) or `'table'`

    out_dir, diff_comparisons, sep, printer
        See :func:`export_tss`

    Returns
    -------
    list
        Filenames written
    """
    printer = NullWriter() if printer is None else printer
    file_type = file_type.lower()
    if file_type not in ("bed","table"):
        raise ConfigurationError("TSRs can be exported as 'bed' or 'table', not '%s'" % file_type)
    if diff_comparisons and file_type != "table":
        raise ConfigurationError("Differential results can only be exported as tables.")

    written = []
    for name, table in _select(store,DataType.TSR,samples,diff_comparisons).items():
        if file_type == "bed":
            filename = _path(out_dir,"%s_TSRs.bed" % name)
            write_bed(table,filename)
        else:
            filename = _path(out_dir,"%s_TSRs.tsv" % name)
            write_table(table,filename,sep=sep)
        written.append(filename)
        printer.write("Exported TSRs for %s." % name)

    return written
