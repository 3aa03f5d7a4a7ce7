from enum import IntEnum


class IdentifierSource(IntEnum):
    """
    Where a snapshot's order identifier came from.

    Higher values win: an identifier is only ever replaced by one
    from a strictly higher source.
    """
    CACHED_RESUME = 1       # Resume record written at payment creation
    REDIRECT_COLLECT = 2    # Provider collect id from the gateway redirect
    SERVER_CUSTOM = 3       # Custom order id confirmed by the status endpoint
