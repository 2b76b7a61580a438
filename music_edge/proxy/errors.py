class ProxyError(Exception):
    """A request rejected or failed locally, answered with a plain-text body."""

    status_code = 500
    detail = "Proxy error"

    def __init__(self, detail=None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class InvalidTarget(ProxyError):
    status_code = 400
    detail = "Invalid target"


class MissingRequiredParameter(ProxyError):
    status_code = 400

    def __init__(self, param: str):
        self.param = param
        super().__init__(f"Missing {param}")


class MethodNotAllowed(ProxyError):
    status_code = 405
    detail = "Method not allowed"


class UpstreamUnreachable(ProxyError):
    status_code = 502
    detail = "Bad gateway - cannot reach upstream"


class UpstreamTimeout(ProxyError):
    status_code = 504
    detail = "Gateway timeout"
