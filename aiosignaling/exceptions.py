class SignalingError(Exception):
    pass


class ConnectionClosed(SignalingError):
    def __str__(self) -> str:
        return "Signaling connection is closed"


class ProtocolError(SignalingError):
    def __init__(self, reason: str) -> None:
        self.reason = reason

    def __str__(self) -> str:
        return "Signaling protocol error (%s)" % self.reason
