#!/usr/bin/env python
"""Command-line scripts for TSS and TSR analysis

    =========================   =============================================================================
    |call_tss|                   Count the 5' ends of :term:`read alignments` in `BAM`_ files at each
                                 genomic position, optionally correcting for G content, and write
                                 TSS tables or `bedGraph`_ tracks

    |cluster_tss|                Merge nearby TSSs into transcription start regions (:term:`TSRs <TSR>`),
                                 reporting width, score and shape of each region

    |condition_table|            Filter, quantile-bin, group and rank the rows of a TSS, TSR or
                                 feature-count table
    =========================   =============================================================================

"""
