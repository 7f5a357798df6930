#!/usr/bin/env python
"""Attach gene and transcript context to :term:`TSS` and :term:`TSR` tables.

Summary
-------
Annotation is delegated to an |AnnotationSource|, which answers one question:
given a genomic position or region, which annotated transcript start is nearest,
and how far away is it? :class:`NearestTSSAnnotator` implements this in memory
from a table of transcripts. Any other source (for example, a wrapper around an
external annotation service) may be substituted by implementing
:meth:`AnnotationSource.nearest`.

Each annotated row gains these columns:

    ===================  ========================================================
    **Column**           **Contents**
    -------------------  --------------------------------------------------------
    `gene_id`            Gene of the nearest annotated transcript start
    `transcript_id`      Nearest transcript
    `feature_type`       `'promoter'`, `'genic'` or `'intergenic'`
    `distance_to_tss`    Signed distance from the annotated start, in the
                         direction of transcription (negative = upstream)
    `annotated_tss`      Coordinate of the annotated start
    ===================  ========================================================

TSRs are annotated by their 5' end.

Feature counts
--------------
:func:`feature_counts` sums the scores of annotated TSSs or TSRs per gene,
producing the tables used for differential analysis.
"""
from abc import ABC, abstractmethod
from collections import OrderedDict

import numpy
import pandas as pd

from startsite.genomics.tables import ANNOTATION_COLUMNS, DataType, check_strands, five_prime_ends
from startsite.util.io.openers import NullWriter
from startsite.util.services.exceptions import ColumnNotFoundError, warn, DataWarning

_TRANSCRIPT_COLUMNS = ("chrom","start","end","strand","gene_id","transcript_id")


class AnnotationSource(ABC):
    """Nearest-feature lookup used by :func:`annotate_table`"""

    @abstractmethod
    def nearest(self,chrom,start,end,strand):
        """Find the annotated transcript start nearest a query

        Parameters
        ----------
        chrom : str
            Chromosome name

        start, end : int
            1-based, inclusive coordinates of the query

        strand : str
            `'+'` or `'-'`

        Returns
        -------
        dict or None
            Keys as in :data:`~startsite.genomics.tables.ANNOTATION_COLUMNS`,
            or `None` if nothing is annotated on that chromosome and strand
        """


class NearestTSSAnnotator(AnnotationSource):
    """In-memory |AnnotationSource| built from a table of transcripts

    Parameters
    ----------
    transcripts : :class:`pandas.DataFrame`
        One row per transcript, with columns `chrom`, `start`, `end`
        (1-based, inclusive), `strand`, `gene_id` and `transcript_id`

    upstream : int, optional
        Bases upstream of an annotated start considered promoter (Default: `1000`)

    downstream : int, optional
        Bases downstream of an annotated start considered promoter (Default: `100`)
    """

    def __init__(self,transcripts,upstream=1000,downstream=100):
        for col in _TRANSCRIPT_COLUMNS:
            if col not in transcripts.columns:
                raise ColumnNotFoundError(col,transcripts.columns,context="transcript annotation")
        check_strands(transcripts["strand"].unique())

        self.upstream   = upstream
        self.downstream = downstream
        self._index     = {}

        tx = transcripts.copy()
        tx["tss"] = numpy.where(tx["strand"] == "-",tx["end"],tx["start"])
        for (chrom, strand), sub in tx.groupby(["chrom","strand"]):
            sub = sub.sort_values("tss",kind="mergesort")
            self._index[(chrom,strand)] = (sub["tss"].values.astype(numpy.int64),
                                           sub[["start","end","gene_id","transcript_id"]].to_records(index=False))

    def __repr__(self):
        return "<%s chroms=%s transcripts=%s>" % (self.__class__.__name__,
                                                 len({X[0] for X in self._index}),
                                                 sum(len(X[0]) for X in self._index.values()))

    def nearest(self,chrom,start,end,strand):
        if (chrom,strand) not in self._index:
            return None

        tss, records = self._index[(chrom,strand)]
        query = end if strand == "-" else start
        idx   = numpy.searchsorted(tss,query)
        candidates = [X for X in (idx - 1,idx) if 0 <= X < len(tss)]
        # ties go to the lower coordinate
        best = min(candidates,key=lambda X: abs(int(tss[X]) - query))

        annotated = int(tss[best])
        distance  = query - annotated if strand == "+" else annotated - query
        record    = records[best]
        if -self.upstream <= distance <= self.downstream:
            feature_type = "promoter"
        elif record["start"] <= query <= record["end"]:
            feature_type = "genic"
        else:
            feature_type = "intergenic"

        return { "gene_id"         : record["gene_id"],
                 "transcript_id"   : record["transcript_id"],
                 "feature_type"    : feature_type,
                 "distance_to_tss" : int(distance),
                 "annotated_tss"   : annotated,
               }


def annotate_table(table,source,data_type):
    """Annotate each row of a TSS or TSR table

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        TSS or TSR table. Not modified.

    source : |AnnotationSource|

    data_type : |DataType| or str
        :attr:`DataType.TSS` or :attr:`DataType.TSR`

    Returns
    -------
    :class:`pandas.DataFrame`
        Copy of `table` with annotation columns. Rows without an annotation
        have null values.
    """
    data_type = DataType.parse(data_type)
    out   = table.copy()
    ends  = five_prime_ends(table,data_type)
    found = { K : [] for K in ANNOTATION_COLUMNS }
    for chrom, position, strand in zip(table["chrom"],ends,table["strand"]):
        result = source.nearest(chrom,int(position),int(position),strand)
        for key in ANNOTATION_COLUMNS:
            found[key].append(numpy.nan if result is None else result[key])

    for key in ANNOTATION_COLUMNS:
        out[key] = pd.Series(found[key],index=out.index,dtype=object if key in ("gene_id","transcript_id","feature_type") else float)

    if len(out) > 0 and out["gene_id"].isna().all():
        warn("No %s could be annotated. Check that chromosome names match the annotation." % data_type.value,DataWarning)

    return out

def annotate_samples(store,data_type,source,samples="all",printer=None):
    """Annotate stored TSS or TSR tables in place

    Parameters
    ----------
    store : |SampleStore|

    data_type : |DataType| or str

    source : |AnnotationSource|

    samples : str or list, optional
        Samples to annotate (Default: `'all'`)

    printer : file-like, optional
        Something implementing a `write()` method, for progress messages
    """
    printer = NullWriter() if printer is None else printer
    data_type = DataType.parse(data_type)
    for name in store.resolve_samples(data_type,samples):
        printer.write("Annotating %s of sample %s ..." % (data_type.value,name))
        with store.modify(data_type,name) as (raw, normalized):
            annotated = annotate_table(raw,source,data_type)
            for key in ANNOTATION_COLUMNS:
                raw[key] = annotated[key].values
                normalized[key] = annotated[key].values

def feature_counts(table,feature_column="gene_id"):
    """Sum scores of annotated rows per feature

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        Annotated TSS or TSR table

    feature_column : str, optional
        Column identifying features (Default: `'gene_id'`)

    Returns
    -------
    :class:`pandas.DataFrame`
        Columns `feature_column`, `score` (sum of scores) and `n_features`
        (number of TSSs or TSRs), sorted by `feature_column`. Unannotated
        rows are excluded.
    """
    if feature_column not in table.columns:
        raise ColumnNotFoundError(feature_column,table.columns,context="feature counting")

    sub = table.loc[table[feature_column].notna()]
    grouped = sub.groupby(feature_column,sort=True)["score"]
    out = pd.DataFrame({ "score"      : grouped.sum().astype(float),
                         "n_features" : grouped.size().astype(numpy.int64),
                       })
    out.index.name = feature_column
    return out.reset_index()

def count_features(store,data_type,samples="all",printer=None):
    """Count annotated TSSs or TSRs per gene, and store the counts

    Results are stored as :attr:`DataType.TSS_FEATURES` or
    :attr:`DataType.TSR_FEATURES`.

    Parameters
    ----------
    store : |SampleStore|

    data_type : |DataType| or str
        :attr:`DataType.TSS` or :attr:`DataType.TSR`

    samples : str or list, optional

    printer : file-like, optional
        Something implementing a `write()` method, for progress messages
    """
    printer = NullWriter() if printer is None else printer
    data_type = DataType.parse(data_type)
    if data_type.is_feature:
        raise ValueError("Features can only be counted from TSS or TSR data, not %s" % data_type.value)
    target = DataType.TSS_FEATURES if data_type is DataType.TSS else DataType.TSR_FEATURES
    counts = OrderedDict()
    for name, table in store.get_samples(data_type,samples).items():
        counts[name] = feature_counts(table)
        printer.write("Counted %s features for sample %s." % (len(counts[name]),name))

    store.add_samples(target,counts)
