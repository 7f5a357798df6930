#!/usr/bin/env python
"""Filter, bin, group and order :term:`TSS` and :term:`TSR` tables before use.

Every downstream consumer (matrices, exports, command-line tables) shapes its
input through :func:`condition_table`, configured by a |ConditioningSpec|.
The steps always run in the same order:

  1. **Filter.** Rows must pass every |Filter|. A row whose value is null
     fails the predicate.

  2. **Group.** If `quantile_by=(column, q)` is given, rows are split into `q`
     bins of (nearly) equal size by the value of `column`, and the bin number
     (1 = lowest values) is written to a `grouping` column. Otherwise, if
     `grouping` names a column, its values are copied to `grouping`.

  3. **Order.** A 1-based `plot_order` column ranks rows by `order_by` within
     each group (or over the whole table if there are no groups). Rows are
     never physically reordered.

The input table is never modified::

    >>> spec = ConditioningSpec(filters=["score >= 3"],quantile_by=("score",2))
    >>> conditioned = condition_table(tss_table,spec)


Quantile binning
----------------
Non-null values are sorted ascending with a stable sort, so ties keep table
order. The row of rank `r` (1-based) among `n` rows falls in bin
`floor(q * (r-1) / n) + 1`. Then every row equal to the column maximum is moved
to bin `q`, so that a mass of ties at the maximum is never split across bins.
Rows with a null value receive a null `grouping`.
"""
import re
import operator
from collections import OrderedDict

import numpy
import pandas as pd

from startsite.util.services.misc import guess_formatter, parse_value_list
from startsite.util.services.exceptions import ConfigurationError, ColumnNotFoundError,\
                                              warn, DataWarning, EmptyResultWarning

_OPERATORS = OrderedDict([
    ("=="     , operator.eq),
    ("!="     , operator.ne),
    ("<="     , operator.le),
    (">="     , operator.ge),
    ("<"      , operator.lt),
    (">"      , operator.gt),
    ("not in" , lambda x, y: ~x.isin(y)),
    ("in"     , lambda x, y: x.isin(y)),
])
"""Filter operators, in the order they are tried when parsing text"""

_FILTER_PATTERN = re.compile(r"^\s*([^\s<>=!]+)\s*(==|!=|<=|>=|<|>|not\s+in(?=\s)|in(?=\s))\s*(.+?)\s*$")

SPEC_OPTIONS = ("filters","order_by","descending","quantile_by","grouping")
"""Option names accepted by :meth:`ConditioningSpec.from_dict`"""


#===============================================================================
# INDEX: specification
#===============================================================================

class Filter(object):
    """Predicate on a single column of a table

    Parameters
    ----------
    column : str
        Column to test

    operator : str
        One of `'=='`, `'!='`, `'<'`, `'<='`, `'>'`, `'>='`, `'in'`, `'not in'`

    value : object
        Value to compare against. For `'in'` and `'not in'`, a collection
        of values

    Raises
    ------
    |ConfigurationError|
        if `operator` is unknown, or `value` is not a collection for `'in'`
        and `'not in'`
    """

    def __init__(self,column,operator,value):
        operator = " ".join(str(operator).split())
        if operator not in _OPERATORS:
            raise ConfigurationError("Unknown filter operator '%s'. Choose from: %s" % (operator,", ".join(_OPERATORS)))
        if operator in ("in","not in"):
            if isinstance(value,str) or not hasattr(value,"__iter__"):
                raise ConfigurationError("Filter operator '%s' requires a collection of values. Found: %r" % (operator,value))
            value = tuple(value)

        self.column   = column
        self.operator = operator
        self.value    = value

    @classmethod
    def parse(cls,text):
        """Create a |Filter| from text like `'score >= 5'` or `'feature_type in promoter,exon'`

        Parameters
        ----------
        text : str

        Returns
        -------
        |Filter|

        Raises
        ------
        |ConfigurationError|
            if `text` cannot be parsed
        """
        match = _FILTER_PATTERN.match(text)
        if match is None:
            raise ConfigurationError("Could not parse filter '%s'. Expected '<column> <operator> <value>'." % text)

        column, op, value = match.groups()
        op = " ".join(op.split())
        if op in ("in","not in"):
            value = parse_value_list(value)
        else:
            value = guess_formatter(value.strip())

        return cls(column,op,value)

    def __repr__(self):
        return "Filter(%r, %r, %r)" % (self.column,self.operator,self.value)

    def __eq__(self,other):
        return isinstance(other,Filter) and \
               (self.column, self.operator, self.value) == (other.column, other.operator, other.value)

    def __hash__(self):
        return hash((self.column,self.operator,self.value))

    def mask(self,table):
        """Evaluate the predicate over `table`

        Parameters
        ----------
        table : :class:`pandas.DataFrame`

        Returns
        -------
        :class:`numpy.ndarray`
            Boolean array, `True` where a row passes
        """
        values = table[self.column]
        try:
            passed = _OPERATORS[self.operator](values,self.value)
        except TypeError as err:
            raise ConfigurationError("Cannot apply filter %r to column '%s' of type %s: %s" % (self, self.column, values.dtype, err))

        return numpy.asarray(passed,dtype=bool) & values.notna().values


class ConditioningSpec(object):
    """Fixed set of options describing how to shape a table before use

    Parameters
    ----------
    filters : iterable, optional
        |Filter| objects, strings parseable by :meth:`Filter.parse`, or
        `(column, operator, value)` tuples. All must pass for a row to be kept.

    order_by : str or None, optional
        Column by which `plot_order` is ranked (Default: `'score'`). If `None`,
        no `plot_order` column is added.

    descending : bool, optional
        If `True` (default), `plot_order` 1 is the row with the highest value
        of `order_by`

    quantile_by : tuple or None, optional
        `(column, q)` to split rows into `q` bins by a numeric column

    grouping : str or None, optional
        Categorical column used as `grouping`. Ignored, with a |DataWarning|,
        if `quantile_by` is given

    Raises
    ------
    |ConfigurationError|
        if any option is malformed
    """

    def __init__(self,filters=(),order_by="score",descending=True,quantile_by=None,grouping=None):
        if isinstance(filters,(str,Filter)):
            filters = [filters]
        self.filters = tuple(self._make_filter(X) for X in filters)

        if order_by is not None and not isinstance(order_by,str):
            raise ConfigurationError("order_by must be a column name or None. Found: %r" % (order_by,))
        if grouping is not None and not isinstance(grouping,str):
            raise ConfigurationError("grouping must be a column name or None. Found: %r" % (grouping,))

        if quantile_by is not None:
            try:
                column, q = quantile_by
            except (TypeError, ValueError):
                raise ConfigurationError("quantile_by must be a (column, q) pair. Found: %r" % (quantile_by,))
            if not isinstance(column,str):
                raise ConfigurationError("quantile_by column must be a column name. Found: %r" % (column,))
            if isinstance(q,bool) or not isinstance(q,(int,numpy.integer)) or q < 1:
                raise ConfigurationError("Number of quantiles must be a positive integer. Found: %r" % (q,))
            quantile_by = (column,int(q))

        self.order_by    = order_by
        self.descending  = bool(descending)
        self.quantile_by = quantile_by
        self.grouping    = grouping

    @staticmethod
    def _make_filter(inp):
        if isinstance(inp,Filter):
            return inp
        if isinstance(inp,str):
            return Filter.parse(inp)
        try:
            column, op, value = inp
        except (TypeError, ValueError):
            raise ConfigurationError("Filters must be Filter objects, strings, or (column, operator, value) tuples. Found: %r" % (inp,))
        return Filter(column,op,value)

    @classmethod
    def from_dict(cls,options):
        """Create a |ConditioningSpec| from a mapping of option names to values

        Parameters
        ----------
        options : dict
            Keys must be among :data:`SPEC_OPTIONS`

        Returns
        -------
        |ConditioningSpec|

        Raises
        ------
        |ConfigurationError|
            if `options` contains an unknown key
        """
        unknown = sorted(set(options) - set(SPEC_OPTIONS))
        if len(unknown) > 0:
            raise ConfigurationError("Unknown conditioning option(s): %s. Choose from: %s" % (", ".join(unknown),", ".join(SPEC_OPTIONS)))
        return cls(**options)

    def __repr__(self):
        return "ConditioningSpec(filters=%r, order_by=%r, descending=%r, quantile_by=%r, grouping=%r)" % \
               (list(self.filters),self.order_by,self.descending,self.quantile_by,self.grouping)

    @property
    def columns(self):
        """Columns a table must have for this specification to apply

        Returns
        -------
        list
        """
        ltmp = [X.column for X in self.filters]
        if self.quantile_by is not None:
            ltmp.append(self.quantile_by[0])
        if self.grouping is not None:
            ltmp.append(self.grouping)
        if self.order_by is not None:
            ltmp.append(self.order_by)
        return list(OrderedDict.fromkeys(ltmp))


#===============================================================================
# INDEX: conditioning
#===============================================================================

def quantile_bins(values,q):
    """Assign each value to one of `q` bins of nearly equal size

    Parameters
    ----------
    values : :class:`pandas.Series`
        Numeric values

    q : int
        Number of bins

    Returns
    -------
    :class:`pandas.Series`
        Nullable integer bin labels from 1 to `q`, indexed like `values`.
        Null where `values` is null.
    """
    valid  = values.notna().values
    vals   = values.values[valid].astype(float)
    n      = len(vals)
    labels = numpy.zeros(len(values),dtype=numpy.int64)

    if n > 0:
        order = numpy.argsort(vals,kind="stable")
        bins  = numpy.empty(n,dtype=numpy.int64)
        bins[order] = (q * numpy.arange(n)) // n + 1
        bins[vals == vals.max()] = q
        labels[valid] = bins

    result = pd.array(labels,dtype="Int64")
    result[~valid] = pd.NA
    return pd.Series(result,index=values.index,name="grouping")

def _check_columns(table,spec):
    for column in spec.columns:
        if column not in table.columns:
            raise ColumnNotFoundError(column,table.columns,context="data conditioning")

    if spec.quantile_by is not None:
        column = spec.quantile_by[0]
        if not pd.api.types.is_numeric_dtype(table[column]):
            raise ConfigurationError("Column '%s' must be numeric to compute quantiles. Found dtype %s" % (column,table[column].dtype))

def _condition(table,spec,label=None):
    _check_columns(table,spec)

    keep = numpy.ones(len(table),dtype=bool)
    for filter_ in spec.filters:
        keep &= filter_.mask(table)
    out = table.loc[keep].copy()

    grouped = False
    if spec.quantile_by is not None:
        column, q = spec.quantile_by
        if spec.grouping is not None:
            warn("Both quantile_by and grouping were given; quantile bins of '%s' replace grouping by '%s'." % (column,spec.grouping),DataWarning)
        num_rows = int(out[column].notna().sum())
        if len(out) > 0 and q > num_rows:
            raise ConfigurationError("Cannot form %s quantiles from %s non-null rows of column '%s'." % (q,num_rows,column))
        out["grouping"] = quantile_bins(out[column],q)
        grouped = True
    elif spec.grouping is not None:
        out["grouping"] = out[spec.grouping].values
        grouped = True

    if spec.order_by is not None:
        kwargs = { "method" : "first", "ascending" : not spec.descending, "na_option" : "bottom" }
        if grouped:
            ranks = out[spec.order_by].groupby(out["grouping"],dropna=False,sort=False).rank(**kwargs)
        else:
            ranks = out[spec.order_by].rank(**kwargs)
        out["plot_order"] = ranks.astype(numpy.int64)

    if len(out) == 0:
        where = "" if label is None else " for sample '%s'" % label
        warn("No rows remain after conditioning%s." % where,EmptyResultWarning)

    return out

def condition_table(table,spec=None):
    """Filter, group and rank the rows of `table`

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        Any TSS, TSR or feature table. Not modified.

    spec : |ConditioningSpec| or dict, optional
        Conditioning options. If `None`, a default |ConditioningSpec| is used,
        which only adds `plot_order` by descending score.

    Returns
    -------
    :class:`pandas.DataFrame`
        New table holding the rows that passed all filters, in their original
        order and with their original index, plus `grouping` and/or
        `plot_order` columns as configured

    Raises
    ------
    |ColumnNotFoundError|
        if `spec` refers to a column missing from `table`

    |ConfigurationError|
        if the quantile column is not numeric, or more quantiles are
        requested than there are non-null rows
    """
    if spec is None:
        spec = ConditioningSpec()
    elif isinstance(spec,dict):
        spec = ConditioningSpec.from_dict(spec)

    return _condition(table,spec)

def condition_samples(tables,spec=None):
    """Apply :func:`condition_table` to each table in `tables`

    All tables are validated before any is conditioned, so a bad option
    never yields a partial result.

    Parameters
    ----------
    tables : dict
        Maps sample names to tables, e.g. from :meth:`SampleStore.get_samples`

    spec : |ConditioningSpec| or dict, optional

    Returns
    -------
    :class:`collections.OrderedDict`
        Sample names mapped to conditioned tables
    """
    if spec is None:
        spec = ConditioningSpec()
    elif isinstance(spec,dict):
        spec = ConditioningSpec.from_dict(spec)

    for table in tables.values():
        _check_columns(table,spec)

    return OrderedDict((K,_condition(V,spec,label=K)) for K, V in tables.items())

def preliminary_filter(tables,dominant=None,threshold=None):
    """Keep rows above a score threshold and, optionally, only dominant rows

    Parameters
    ----------
    tables : dict
        Maps sample names to tables

    dominant : str or None, optional
        Boolean flag column (e.g. `'dominant_tsr'` or `'dominant_gene'`;
        `'tsr'` and `'gene'` are accepted as shorthand). If given, only rows
        flagged `True` are kept.

    threshold : float or None, optional
        If given, only rows with `score >= threshold` are kept

    Returns
    -------
    :class:`collections.OrderedDict`
        Sample names mapped to filtered copies
    """
    if dominant in ("tsr","gene"):
        dominant = "dominant_%s" % dominant

    dout = OrderedDict()
    for name, table in tables.items():
        keep = numpy.ones(len(table),dtype=bool)
        if threshold is not None:
            keep &= (table["score"] >= threshold).values
        if dominant is not None:
            if dominant not in table.columns:
                raise ColumnNotFoundError(dominant,table.columns,context="preliminary filter of sample '%s'" % name)
            keep &= table[dominant].fillna(False).values.astype(bool)
        dout[name] = table.loc[keep].copy()

    return dout
