class RetriableValueError(ValueError):
    pass


class SourceFetchError(Exception):
    """
    Raised by a source client when a request could not be completed:
    retries exhausted, non-success HTTP status or an error payload.
    """

    def __init__(self, source: str, message: str):
        super().__init__(f"[{source}] {message}")
        self.source = source


class PrimarySourceError(Exception):
    """
    Raised when one of the primary transaction sources (public request object,
    receipt, relay record) failed or returned inconsistent data. The lifecycle
    state cannot be trusted, so no record is produced.
    """

    def __init__(self, tx_hash: str, message: str):
        super().__init__(f"Cannot resolve {tx_hash}: {message}")
        self.tx_hash = tx_hash
