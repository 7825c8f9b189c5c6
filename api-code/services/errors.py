from __future__ import annotations


class ServiceAPIError(RuntimeError):
    """Raised when a remote API answers outside its accepted status range."""

    service = "remote API"

    def __init__(self, status_code: int, body: str, *, operation: str = "") -> None:
        self.status_code = status_code
        self.body = body
        self.operation = operation
        where = f" during {operation}" if operation else ""
        super().__init__(
            f"{self.service} returned HTTP {status_code}{where}, expected [200,300): {body}"
        )


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300
