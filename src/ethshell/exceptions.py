"""Exception hierarchy for the ethshell developer shell."""

from typing import Any


class EthShellError(Exception):
    """Base exception for all ethshell errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(EthShellError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class EmptyNameError(ValidationError):
    """Raised when a contract name is missing."""

    def __init__(self, message: str = "Contract name is empty"):
        super().__init__(message, field="name")


class MissingAddressError(ValidationError):
    """Raised when attaching without a contract address."""

    def __init__(self, message: str = "Contract address may not be empty"):
        super().__init__(message, field="address")


class MissingAbiError(ValidationError):
    """Raised when no ABI location is given or indexed for a contract."""

    def __init__(self, name: str | None = None):
        super().__init__(
            f"No ABI available for contract '{name}'" if name else "ABI path is required",
            field="abi_path",
            value=name,
        )


class DuplicateKeyError(EthShellError):
    """Raised when a private key is already registered."""

    def __init__(self, index: int | None, details: dict | None = None):
        if index is None:
            message = "Wallets may NOT be duplicated! The batch repeats a private key"
        else:
            message = f"Wallets may NOT be duplicated! You are adding wallet index {index} again"
        super().__init__(message, details)
        self.index = index


class DuplicatePhraseError(EthShellError):
    """Raised when an HD mnemonic phrase is already registered."""

    def __init__(self, index: int):
        super().__init__(f"HD wallet with this mnemonic phrase already exists at index {index}")
        self.index = index


class IndexOutOfRangeError(EthShellError):
    """Raised when an account index does not exist."""

    def __init__(self, index: int, size: int):
        super().__init__(f"Wallet index {index} is out of range (0..{size - 1})")
        self.index = index
        self.size = size


class UnknownSignerError(EthShellError):
    """Raised when a requested signer address is not registered."""

    def __init__(self, address: str):
        super().__init__(f"Account {address} not found in registered accounts")
        self.address = address


class SignerNotAvailableError(EthShellError):
    """Raised when a local signer is required but the account is node-managed."""

    def __init__(self, address: str):
        super().__init__(
            f"Account {address} is a node-managed account and cannot be used with 'from'"
        )
        self.address = address


class NetworkError(EthShellError):
    """Raised when network/connection issues occur."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint


class TransactionTimeoutError(NetworkError):
    """Raised when a transaction is not mined within the receipt timeout."""

    def __init__(self, tx_hash: str, timeout: float, endpoint: str | None = None):
        super().__init__(
            f"Transaction {tx_hash} was not mined within {timeout} seconds",
            endpoint=endpoint,
            details={"tx_hash": tx_hash, "timeout": timeout},
        )
        self.tx_hash = tx_hash
        self.timeout = timeout


class NotFoundError(EthShellError):
    """Raised for unmatched selectors when strict lookups are enabled."""

    def __init__(self, selector: Any):
        super().__init__(f"No account matches {selector!r}")
        self.selector = selector


class CompilationError(EthShellError):
    """Raised when solc cannot be loaded or a source fails to compile."""
