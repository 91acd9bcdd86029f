class TrafstatError(Exception):
    """Base para erros do trafstat."""


class InterfaceError(TrafstatError):
    """Interface ou arquivo de captura não pôde ser aberto."""

    def __init__(self, source: str, reason: str = '') -> None:
        self.source = source
        self.reason = reason
        msg = f"cannot open capture source {source}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class CaptureValidationError(TrafstatError):
    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(f"No traffic detected or interface {source} is not valid.")


class DecodeSkip(TrafstatError):
    """Quadro malformado: descartado e contado, nunca fatal."""


class ChartUnavailable(TrafstatError):
    pass
