#!/usr/bin/env python
"""Small tables and helpers shared by unit and functional tests"""
import warnings
import contextlib

import pandas as pd
import pysam

from startsite.genomics.sample_store import SampleStore
from startsite.genomics.tables import TSS_COLUMNS


def tss_table(rows):
    """Build a TSS table from `(chrom, position, strand, score)` tuples"""
    table = pd.DataFrame.from_records(rows,columns=TSS_COLUMNS)
    table["position"] = table["position"].astype("int64")
    table["score"] = table["score"].astype(float)
    return table

def scenario_tss():
    """Four reads at chrI:100,100,101,105 on the plus strand, aggregated"""
    return tss_table([("chrI",100,"+",2),
                      ("chrI",101,"+",1),
                      ("chrI",105,"+",1)])

def transcripts_table():
    """Two genes on chrI: geneA on the plus strand starting at 200,
    geneB on the minus strand ending (starting) at 5000"""
    return pd.DataFrame({ "chrom"         : ["chrI","chrI"],
                          "start"         : [200,4000],
                          "end"           : [3000,5000],
                          "strand"        : ["+","-"],
                          "gene_id"       : ["geneA","geneB"],
                          "transcript_id" : ["geneA.1","geneB.1"],
                        })

def make_alignment(name,chrom_id,start_pos,length,strand,flag=0,mapq=30):
    """Build an ungapped `pysam.AlignedSegment` of `length` bases, starting at 0-based `start_pos`"""
    read = pysam.AlignedSegment()
    read.query_name = name
    read.flag = flag
    read.reference_id = chrom_id
    read.reference_start = start_pos
    read.query_sequence = "A"*length
    read.query_qualities = pysam.qualitystring_to_array("I"*length)
    read.cigarstring = "%sM" % length
    read.mapping_quality = mapq
    read.is_reverse = strand == "-"
    return read

def make_store(tables,data_type="tss",sample_sheet=None):
    """Return a |SampleStore| holding `tables` under `data_type`"""
    store = SampleStore(sample_sheet=sample_sheet)
    store.add_samples(data_type,tables)
    return store

@contextlib.contextmanager
def quiet():
    """Suppress all warnings within a block"""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        yield
