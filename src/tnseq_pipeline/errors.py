"""Exception taxonomy for the TnSeq pipeline.

Input-table errors (MalformedInputTable, UnmappedChromosome under the
"reject" policy) abort a run. InsufficientWindows and
DegenerateSamplingWeights fail a single (chromosome, library size, mode)
simulation task and are collected by the sweep instead of propagating.
"""


class TnSeqError(Exception):
    """Base class for all pipeline errors."""


class MalformedInputTable(TnSeqError):
    """Input table is missing required columns or holds unparseable values."""

    def __init__(self, table: str, message: str):
        self.table = table
        self.message = message
        super().__init__(f"{table}: {message}")

    # Rebuild from the constructor arguments so errors raised in worker
    # processes unpickle in the parent.
    def __reduce__(self):
        return (self.__class__, (self.table, self.message))


class UnmappedChromosome(TnSeqError):
    """Chromosome identifier has no entry in the chromosome map."""

    def __init__(self, table: str, accessions: list[str]):
        self.table = table
        self.accessions = sorted(set(accessions))
        super().__init__(
            f"{table}: no chromosome mapping for {', '.join(self.accessions)}"
        )

    def __reduce__(self):
        return (self.__class__, (self.table, self.accessions))


class InsufficientWindows(TnSeqError):
    """Chromosome is too short to yield a single gene-scale window."""

    def __init__(self, chromosome: str, length: int, window: int):
        self.chromosome = chromosome
        self.length = length
        self.window = window
        super().__init__(
            f"{chromosome}: {length} positions yield no windows of width {window}"
        )

    def __reduce__(self):
        return (self.__class__, (self.chromosome, self.length, self.window))


class DegenerateSamplingWeights(TnSeqError):
    """Sampling weights are all zero (or invalid) over the sampled region."""

    def __init__(self, chromosome: str, reason: str = "all sampling weights are zero"):
        self.chromosome = chromosome
        self.reason = reason
        super().__init__(f"{chromosome}: {reason}")

    def __reduce__(self):
        return (self.__class__, (self.chromosome, self.reason))
