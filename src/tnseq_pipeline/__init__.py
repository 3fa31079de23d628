"""TnSeq insertion-density analysis and essentiality simulation pipeline."""

__version__ = "0.1.0"
