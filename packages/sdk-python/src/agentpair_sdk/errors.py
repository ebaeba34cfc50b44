class PairingRequestError(Exception):
    """Non-2xx answer from a pairing endpoint.

    ``error`` carries the machine-readable kind (``invalid_code``,
    ``code_used``, ...) when the server sent one.
    """

    def __init__(self, status_code: int, error: str | None, message: str) -> None:
        super().__init__(f"{status_code} {error or 'error'}: {message}")
        self.status_code = status_code
        self.error = error
        self.message = message

    @property
    def code_consumed(self) -> bool:
        # After a 410 or a 500 the operator has to issue a new code.
        return self.status_code == 410 or self.status_code >= 500
