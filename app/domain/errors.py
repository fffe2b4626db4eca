class BridgeError(Exception):
    """Base class for failures raised by the blob bridge core."""


class NotFound(BridgeError):
    def __init__(self, sha256: str) -> None:
        super().__init__(f"blob not found: sha256={sha256}")
        self.sha256 = sha256


class StoreUnavailable(BridgeError):
    """The IPFS node could not be reached or rejected an operation."""


class PersistenceError(BridgeError):
    """The mapping table could not be read or written."""
