#!/usr/bin/env python
"""Import TSS and TSR tables written by :mod:`startsite.genomics.export`,
by command-line scripts, or by other tools as `bedGraph`_ files.

    ===============================  ============================================
    **Function**                     **Input**
    -------------------------------  --------------------------------------------
    :func:`read_tss_table`           Tab-delimited TSS table with a header line
    :func:`read_tsr_table`           Tab-delimited TSR table with a header line
    :func:`read_bedgraph`            One `bedGraph`_ file, for one strand
    :func:`read_bedgraph_pair`       Plus- and minus-strand `bedGraph`_ files
    ===============================  ============================================

`bedGraph`_ coordinates are 0-based and half-open; imported tables are 1-based.
An interval longer than one base contributes its value at every position it
covers.
"""
import numpy
import pandas as pd

from startsite.genomics.tables import TSS_COLUMNS, TSR_COLUMNS, check_strands, empty_tss_table, feature_ids
from startsite.util.io.openers import opener, read_sample_table
from startsite.util.services.exceptions import MalformedFileError, warn, FileFormatWarning


def _check_columns(filename,table,columns):
    missing = [X for X in columns if X not in table.columns]
    if len(missing) > 0:
        raise MalformedFileError(filename,"missing column(s): %s" % ", ".join(missing))
    try:
        check_strands(table["strand"].unique())
    except ValueError as err:
        raise MalformedFileError(filename,str(err))

def read_tss_table(filename,**kwargs):
    """Read a TSS table

    Parameters
    ----------
    filename : str

    kwargs : keyword arguments
        Passed to :func:`~startsite.util.io.openers.read_sample_table`

    Returns
    -------
    :class:`pandas.DataFrame`

    Raises
    ------
    |MalformedFileError|
        if a required column is missing or a strand is invalid
    """
    table = read_sample_table(filename,**kwargs)
    _check_columns(filename,table,TSS_COLUMNS)
    return table

def read_tsr_table(filename,**kwargs):
    """Read a TSR table. Missing `width` and `tsr_id` columns are computed

    Parameters
    ----------
    filename : str

    kwargs : keyword arguments
        Passed to :func:`~startsite.util.io.openers.read_sample_table`

    Returns
    -------
    :class:`pandas.DataFrame`

    Raises
    ------
    |MalformedFileError|
        if `chrom`, `start`, `end`, `strand` or `score` is missing
    """
    table = read_sample_table(filename,**kwargs)
    _check_columns(filename,table,["chrom","start","end","strand","score"])
    if "width" not in table.columns:
        table["width"] = table["end"] - table["start"] + 1
    if "tsr_id" not in table.columns:
        table["tsr_id"] = feature_ids(table,"tsr").values
    ordered = [X for X in TSR_COLUMNS if X in table.columns]
    return table[ordered + [X for X in table.columns if X not in ordered]]

def read_bedgraph(filename,strand):
    """Read a `bedGraph`_ file as TSSs on a single strand

    Parameters
    ----------
    filename : str
        Path to file. May be gzipped or bzipped.

    strand : str
        `'+'` or `'-'`

    Returns
    -------
    :class:`pandas.DataFrame`
        TSS table. Scores are absolute values, since minus-strand files
        are often written with negative values.

    Raises
    ------
    |MalformedFileError|
        if a data line has fewer than four columns or non-numeric fields
    """
    check_strands([strand])
    chroms, positions, scores = [], [], []
    with opener(filename) as fh:
        for line_num, line in enumerate(fh,1):
            line = line.strip()
            if line == "" or line.startswith(("#","track","browser")):
                continue

            items = line.split()
            if len(items) < 4:
                raise MalformedFileError(filename,"expected 4 columns, found %s" % len(items),line_num=line_num)
            try:
                start, end, value = int(items[1]), int(items[2]), abs(float(items[3]))
            except ValueError:
                raise MalformedFileError(filename,"could not parse '%s'" % line,line_num=line_num)

            if end <= start:
                warn("Skipping zero-length bedGraph interval at line %s of %s." % (line_num,filename),FileFormatWarning)
                continue

            chroms.extend([items[0]] * (end - start))
            positions.extend(range(start + 1,end + 1))
            scores.extend([value] * (end - start))

    if len(positions) == 0:
        return empty_tss_table()

    table = pd.DataFrame({ "chrom"    : chroms,
                           "position" : numpy.array(positions,dtype=numpy.int64),
                           "strand"   : strand,
                           "score"    : numpy.array(scores,dtype=float),
                         },columns=TSS_COLUMNS)
    return table

def read_bedgraph_pair(plus_file,minus_file):
    """Read plus- and minus-strand `bedGraph`_ files into a single TSS table

    Parameters
    ----------
    plus_file, minus_file : str
        Paths to `bedGraph`_ files, e.g. `sample_pos.bedgraph` and `sample_min.bedgraph`

    Returns
    -------
    :class:`pandas.DataFrame`
        TSS table sorted by chromosome, position and strand, with positions
        of zero score removed
    """
    table = pd.concat([read_bedgraph(plus_file,"+"),read_bedgraph(minus_file,"-")],ignore_index=True)
    table = table.loc[table["score"] > 0]
    return table.sort_values(["chrom","position","strand"],kind="mergesort").reset_index(drop=True)
