"""
BlastMeta: descriptive reporting for BLAST hits joined to sample metadata.

Pipeline: BLAST CSV files → Parse → Aggregate → Join metadata (TSV)
→ Tables + Histograms + Count table → HTML report
"""

__version__ = "0.1.0"
__author__ = "BlastMeta Team"
