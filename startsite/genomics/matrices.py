#!/usr/bin/env python
"""Long-format tables consumed by plotting tools: signal around annotated
transcript starts, positional densities, and sequences flanking TSSs.

Each function follows the same steps:

  #. fetch raw or CPM-normalized tables from a |SampleStore|
  #. keep rows above `threshold`, and optionally only dominant rows
     (:func:`~startsite.genomics.conditioning.preliminary_filter`)
  #. shape the rows with a |ConditioningSpec|
  #. stack samples into a single table with a leading `sample` column

All positions are relative to the annotated transcript start, in the direction
of transcription, so annotation (:mod:`startsite.genomics.annotation`) must
have been run first.
"""
import numpy
import pandas as pd

from startsite.genomics.tables import DataType
from startsite.genomics.conditioning import ConditioningSpec, condition_samples, preliminary_filter
from startsite.util.services.exceptions import ConfigurationError, ColumnNotFoundError


def _check_window(upstream,downstream,threshold):
    for name, value in (("upstream",upstream),("downstream",downstream)):
        if isinstance(value,bool) or not isinstance(value,(int,numpy.integer)) or value < 0:
            raise ConfigurationError("%s must be a non-negative integer. Found: %r" % (name,value))
    if threshold is not None and threshold < 0:
        raise ConfigurationError("threshold must be non-negative. Found: %r" % (threshold,))

def _fetch(store,data_type,samples,use_normalized,dominant,threshold):
    tables = store.get_samples(data_type,samples,use_normalized=use_normalized)
    return preliminary_filter(tables,dominant=dominant,threshold=threshold)

def _require(table,columns,context):
    for col in columns:
        if col not in table.columns:
            raise ColumnNotFoundError(col,table.columns,context=context)

def _stack(tables,columns):
    frames = []
    for name, table in tables.items():
        sub = table[[X for X in columns if X in table.columns]].copy()
        sub.insert(0,"sample",name)
        frames.append(sub)

    if len(frames) == 0:
        return pd.DataFrame(columns=["sample"] + list(columns))
    return pd.concat(frames,ignore_index=True)

def _in_window(table,upstream,downstream):
    distance = table["distance_to_tss"]
    return table.loc[distance.notna() & (distance >= -upstream) & (distance <= downstream)]

def _expand_regions(table):
    """Repeat each TSR once per base it covers, with `distance_to_tss` for each base"""
    ann    = table["annotated_tss"].values.astype(float)
    plus   = (table["strand"] == "+").values
    start  = table["start"].values
    end    = table["end"].values
    first  = numpy.where(plus,start - ann,ann - end)
    width  = (end - start + 1).astype(numpy.int64)

    rows   = numpy.repeat(numpy.arange(len(table)),width)
    offset = numpy.arange(len(rows)) - numpy.repeat(numpy.cumsum(width) - width,width)
    out = table.iloc[rows].reset_index(drop=True)
    out["distance_to_tss"] = (numpy.repeat(first,width) + offset).astype(numpy.int64)
    return out


def heatmap_matrix(store,data_type,samples="all",upstream=1000,downstream=1000,threshold=None,
                   use_normalized=False,dominant=None,spec=None,feature_column="gene_id"):
    """Scores at each position around annotated transcript starts, per feature

    Parameters
    ----------
    store : |SampleStore|

    data_type : |DataType| or str
        :attr:`DataType.TSS` or :attr:`DataType.TSR`

    samples : str or list, optional
        Samples to include (Default: `'all'`)

    upstream, downstream : int, optional
        Window around annotated starts (Default: `1000` each)

    threshold : float or None, optional
        Minimum score

    use_normalized : bool, optional
        Use CPM-normalized scores (Default: `False`)

    dominant : str or None, optional
        Keep only rows flagged in this dominance column (e.g. `'dominant_tsr'`)

    spec : |ConditioningSpec| or dict, optional
        Conditioning applied to each sample (Default: order by descending score)

    feature_column : str, optional
        Annotation column naming features, e.g. `'gene_id'` or `'transcript_id'`

    Returns
    -------
    :class:`pandas.DataFrame`
        Columns `sample`, `distance_to_tss`, `score`, `feature`, plus
        `grouping` and `plot_order` when conditioning adds them. TSRs
        contribute one row for every base they cover.
    """
    data_type = DataType.parse(data_type)
    if data_type.is_feature:
        raise ConfigurationError("Heatmap matrices require TSS or TSR data, not %s" % data_type.value)
    _check_window(upstream,downstream,threshold)
    spec = ConditioningSpec() if spec is None else spec

    tables = _fetch(store,data_type,samples,use_normalized,dominant,threshold)
    needed = ["distance_to_tss",feature_column] if data_type is DataType.TSS else ["annotated_tss",feature_column]
    for table in tables.values():
        _require(table,needed,context="heatmap matrix")

    if data_type is DataType.TSS:
        tables = { K : _in_window(V,upstream,downstream) for K, V in tables.items() }
        tables = condition_samples(tables,spec)
    else:
        tables = condition_samples({ K : V.loc[V["annotated_tss"].notna()] for K, V in tables.items() },spec)
        tables = { K : _in_window(_expand_regions(V),upstream,downstream) for K, V in tables.items() }

    out = _stack(tables,["distance_to_tss","score",feature_column,"grouping","plot_order"])
    out = out.rename(columns={ feature_column : "feature" })
    if "distance_to_tss" in out.columns:
        out["distance_to_tss"] = out["distance_to_tss"].astype(numpy.int64)
    return out

def density_data(store,data_type,samples="all",upstream=1000,downstream=1000,threshold=None,
                 use_normalized=False,dominant=None,spec=None,consider_score=False):
    """Positions of TSSs or TSRs relative to annotated transcript starts

    Parameters
    ----------
    store : |SampleStore|

    data_type : |DataType| or str
        :attr:`DataType.TSS` or :attr:`DataType.TSR`

    samples, upstream, downstream, threshold, use_normalized, dominant
        See :func:`heatmap_matrix`

    spec : |ConditioningSpec| or dict, optional
        If given, conditioning applied to each sample (Default: `None`, no conditioning)

    consider_score : bool, optional
        If `True`, each row is repeated `int(score)` times, so densities
        are weighted by signal rather than by unique positions (Default: `False`)

    Returns
    -------
    :class:`pandas.DataFrame`
        Rows within the window, with a leading `sample` column
    """
    data_type = DataType.parse(data_type)
    _check_window(upstream,downstream,threshold)

    tables = _fetch(store,data_type,samples,use_normalized,dominant,threshold)
    for table in tables.values():
        _require(table,["distance_to_tss"],context="density data")

    tables = { K : _in_window(V,upstream,downstream) for K, V in tables.items() }
    if spec is not None:
        tables = condition_samples(tables,spec)

    out = _stack(tables,list(next(iter(tables.values())).columns) if len(tables) > 0 else [])
    if consider_score and len(out) > 0:
        repeats = numpy.clip(out["score"].values.astype(float),0,None).astype(numpy.int64)
        out = out.iloc[numpy.repeat(numpy.arange(len(out)),repeats)].reset_index(drop=True)
    return out

def tss_sequences(store,sequence_source,samples="all",distance=10,threshold=None,
                  use_normalized=False,dominant=None,spec=None):
    """Strand-oriented sequence surrounding each TSS

    Parameters
    ----------
    store : |SampleStore|

    sequence_source : |SequenceSource|

    samples, threshold, use_normalized, dominant
        See :func:`heatmap_matrix`

    distance : int, optional
        Bases on each side of the TSS. Sequences have length `2*distance + 1`
        (Default: `10`)

    spec : |ConditioningSpec| or dict, optional
        Conditioning applied to each sample (Default: order by descending score)

    Returns
    -------
    :class:`pandas.DataFrame`
        Columns `sample`, `chrom`, `tss`, `strand`, `score`, `grouping`
        and `plot_order` (when present), and `sequence`. TSSs whose window
        runs off the end of a chromosome are dropped.
    """
    if isinstance(distance,bool) or not isinstance(distance,(int,numpy.integer)) or distance < 1:
        raise ConfigurationError("distance must be a positive integer. Found: %r" % (distance,))
    spec = ConditioningSpec() if spec is None else spec

    tables = _fetch(store,DataType.TSS,samples,use_normalized,dominant,threshold)
    tables = condition_samples(tables,spec)
    out = _stack(tables,["chrom","position","strand","score","grouping","plot_order"])
    out = out.rename(columns={ "position" : "tss" })

    lengths = sequence_source.lengths()
    chrom_lengths = out["chrom"].map(lengths).astype(float).values if len(out) > 0 else numpy.array([])
    in_bounds = (out["tss"].values - distance >= 1) & (out["tss"].values + distance <= chrom_lengths)
    out = out.loc[in_bounds].reset_index(drop=True)

    out["sequence"] = [sequence_source.fetch(chrom,int(tss) - distance,2*distance + 1,strand=strand)
                       for chrom, tss, strand in zip(out["chrom"],out["tss"],out["strand"])]
    return out
