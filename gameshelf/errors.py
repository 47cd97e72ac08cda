class GameShelfError(Exception):
    """Base class for errors surfaced to callers of the serving core."""


class BindError(GameShelfError):
    """The requested port could not be bound."""

    def __init__(self, host: str, port: int, reason: str = ""):
        self.host = host
        self.port = port
        msg = f"cannot bind {host}:{port}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class InvalidIdentifier(GameShelfError, ValueError):
    """A title type or id failed path-safety validation."""

    def __init__(self, kind: str, value: str):
        self.kind = kind
        self.value = value
        super().__init__(f"invalid {kind}: {value!r}")


class TitleNotFound(GameShelfError):
    def __init__(self, title_type: str, title_id: str):
        self.title_type = title_type
        self.title_id = title_id
        super().__init__(f"no such title: {title_type}/{title_id}")
