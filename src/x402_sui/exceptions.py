"""
x402 custom exception hierarchy
"""


class X402Error(Exception):
    """x402 base exception"""

    pass


class ConfigurationError(X402Error):
    """Configuration-related error"""

    pass


class UnsupportedNetworkError(ConfigurationError):
    """Unsupported network"""

    pass


class ValidationError(X402Error):
    """Validation-related error"""

    pass


class InvalidPaymentRequiredError(ValidationError):
    """402 response did not carry a decodable payment challenge"""

    pass


class NoPaymentRequirementsError(ValidationError):
    """402 challenge carried no acceptable payment requirements"""

    pass


class PaymentAmountExceededError(X402Error):
    """Selected requirement asks for more than the caller allows"""

    def __init__(self, amount: int, max_value: int):
        self.amount = amount
        self.max_value = max_value
        super().__init__(
            f"Payment amount ({amount}) exceeds maximum allowed value ({max_value})"
        )


class SignatureError(X402Error):
    """Signature-related error"""

    pass


class InvalidPrivateKeyError(SignatureError):
    """Private key could not be parsed"""

    pass


class SignatureCreationError(SignatureError):
    """Signature creation failed"""

    pass


class InsufficientBalanceError(X402Error):
    """Raised when the payer does not hold enough of the asset"""

    def __init__(self, address: str, asset: str, required: int, available: int):
        self.address = address
        self.asset = asset
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient balance for {address}. "
            f"Required: {required}, Available: {available} ({asset})"
        )


class SettlementError(X402Error):
    """Settlement-related error"""

    pass


class DuplicateSettlementError(SettlementError):
    """Transaction was already submitted for settlement"""

    def __init__(self, digest: str):
        self.digest = digest
        super().__init__(f"Transaction {digest} has already been submitted for settlement")


class LedgerError(X402Error):
    """Ledger communication error"""

    pass


class LedgerRpcError(LedgerError):
    """Fullnode returned a JSON-RPC error object"""

    def __init__(self, method: str, code: int | None, message: str):
        self.method = method
        self.code = code
        super().__init__(f"{method} failed ({code}): {message}")
