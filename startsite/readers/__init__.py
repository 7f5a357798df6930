#!/usr/bin/env python
"""
Package overview
================

Readers that turn files into the tables and record streams used by
:mod:`startsite.genomics`. Coordinates are converted to the 1-based,
fully-closed system used throughout :data:`startsite`.

    ======================================    =======================================
    **Module**                                **Input**
    --------------------------------------    ---------------------------------------
    :py:mod:`startsite.readers.alignments`    `BAM`_ alignments, read as 5' ends
    :py:mod:`startsite.readers.sequence`      `FASTA`_, `2bit`_ and other sequence files
    :py:mod:`startsite.readers.tables`        TSS/TSR tables and `bedGraph`_ files
    ======================================    =======================================
"""
