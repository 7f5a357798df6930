#!/usr/bin/env python
"""Column layouts and small helpers shared by every table of
:term:`TSS` and :term:`TSR` data in :data:`startsite`.

All per-sample data are held as :class:`pandas.DataFrame` objects. The kind of
data a table holds is described by a |DataType|, rather than by subclassing,
so that every engine runs the same code path for TSSs, TSRs and feature-level
counts.

Columns
-------

    ======================  ================================================
    **Table**               **Required columns**
    ----------------------  ------------------------------------------------
    TSS                     `chrom`, `position` (1-based), `strand`, `score`
    TSR                     `chrom`, `start`, `end` (1-based, inclusive),
                            `strand`, `score`, `width`, `shape_index`,
                            `n_tss`, `tsr_id`
    feature counts          `gene_id` (or another feature column), `score`,
                            `n_features`
    ======================  ================================================

Optional columns are appended by later steps and never reorder rows:
`tsr_id` (TSS membership), annotation columns (:data:`ANNOTATION_COLUMNS`),
`dominant_tsr` and `dominant_gene`, `uncorrected_score`, and the `grouping`
and `plot_order` columns produced by data conditioning.
"""
import enum
import numpy
import pandas as pd

STRANDS = ("+","-")

TSS_COLUMNS = ["chrom","position","strand","score"]
TSR_COLUMNS = ["chrom","start","end","strand","score","width","shape_index","n_tss","tsr_id"]
FEATURE_COLUMNS = ["score","n_features"]
ANNOTATION_COLUMNS = ["gene_id","transcript_id","feature_type","distance_to_tss","annotated_tss"]


class DataType(enum.Enum):
    """Kinds of per-sample tables held in a |SampleStore|"""
    TSS          = "tss"
    TSR          = "tsr"
    TSS_FEATURES = "tss_features"
    TSR_FEATURES = "tsr_features"

    @classmethod
    def parse(cls,value):
        """Convert a string such as `'tss'` or `'TSR'` to a |DataType|

        Parameters
        ----------
        value : str or |DataType|

        Returns
        -------
        |DataType|

        Raises
        ------
        ValueError
            if `value` names no data type
        """
        if isinstance(value,cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError("Unknown data type '%s'. Expected one of: %s" % (value,", ".join(X.value for X in cls)))

    @property
    def is_region(self):
        """`True` if tables of this type hold intervals (`start`/`end`) instead of single positions"""
        return self is DataType.TSR

    @property
    def is_feature(self):
        """`True` if tables of this type hold per-gene counts"""
        return self in (DataType.TSS_FEATURES,DataType.TSR_FEATURES)


def empty_tss_table():
    """Return a zero-row TSS table with correctly typed columns

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    return pd.DataFrame({ "chrom"    : pd.Series([],dtype=object),
                          "position" : pd.Series([],dtype=numpy.int64),
                          "strand"   : pd.Series([],dtype=object),
                          "score"    : pd.Series([],dtype=float),
                        },columns=TSS_COLUMNS)

def empty_tsr_table():
    """Return a zero-row TSR table with correctly typed columns

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    return pd.DataFrame({ "chrom"       : pd.Series([],dtype=object),
                          "start"       : pd.Series([],dtype=numpy.int64),
                          "end"         : pd.Series([],dtype=numpy.int64),
                          "strand"      : pd.Series([],dtype=object),
                          "score"       : pd.Series([],dtype=float),
                          "width"       : pd.Series([],dtype=numpy.int64),
                          "shape_index" : pd.Series([],dtype=float),
                          "n_tss"       : pd.Series([],dtype=numpy.int64),
                          "tsr_id"      : pd.Series([],dtype=object),
                        },columns=TSR_COLUMNS)

def check_strands(strands):
    """Verify that every value in `strands` is `'+'` or `'-'`

    Parameters
    ----------
    strands : iterable of str

    Raises
    ------
    ValueError
        if any strand is not in :data:`STRANDS`
    """
    bad = set(strands) - set(STRANDS)
    if len(bad) > 0:
        raise ValueError("Strands must be one of %s. Found: %s" % (STRANDS,", ".join(sorted(str(X) for X in bad))))

def feature_id(chrom,start,end,strand):
    """Format a genomic interval as a feature identifier

    Examples
    --------
    >>> feature_id("chrI",100,105,"+")
    'chrI:100:105:+'

    Returns
    -------
    str
    """
    return "%s:%s:%s:%s" % (chrom,int(start),int(end),strand)

def feature_ids(table,data_type):
    """Return a :class:`pandas.Series` of feature identifiers for each row of `table`

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        TSS, TSR or feature table

    data_type : |DataType|

    Returns
    -------
    :class:`pandas.Series`
        Identifiers, indexed like `table`
    """
    data_type = DataType.parse(data_type)
    if data_type.is_feature:
        return table["gene_id"].astype(str)
    if data_type is DataType.TSR:
        start, end = table["start"], table["end"]
    else:
        start = end = table["position"]
    return (table["chrom"].astype(str) + ":" + start.astype(numpy.int64).astype(str) + ":"
            + end.astype(numpy.int64).astype(str) + ":" + table["strand"].astype(str))

def split_feature_ids(ids):
    """Split identifiers made by :func:`feature_id` back into coordinates

    Parameters
    ----------
    ids : :class:`pandas.Series`
        Feature identifiers

    Returns
    -------
    :class:`pandas.DataFrame`
        Columns `chrom`, `start`, `end`, `strand`, indexed like `ids`.
        Identifiers that are not coordinates (e.g. gene names) yield nulls.
    """
    parts = ids.astype(str).str.rsplit(":",n=3,expand=True)
    out = pd.DataFrame(index=ids.index,columns=["chrom","start","end","strand"])
    if parts.shape[1] == 4:
        out["chrom"]  = parts[0]
        out["start"]  = pd.to_numeric(parts[1],errors="coerce")
        out["end"]    = pd.to_numeric(parts[2],errors="coerce")
        out["strand"] = parts[3]
    return out

def five_prime_ends(table,data_type):
    """Return the strand-aware 5' coordinate of each row

    Parameters
    ----------
    table : :class:`pandas.DataFrame`

    data_type : |DataType|
        :attr:`DataType.TSS` or :attr:`DataType.TSR`

    Returns
    -------
    :class:`numpy.ndarray`
    """
    if DataType.parse(data_type).is_region:
        return numpy.where(table["strand"].values == "-",table["end"].values,table["start"].values)
    return table["position"].values
