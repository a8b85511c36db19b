class FeedError(Exception):
    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.error
        super().__init__(self.message)

    def to_content(self) -> dict:
        return {"error": self.error, "message": self.message}


class QueryValidationError(FeedError):
    status_code = 400

    def __init__(self, error: str, example: str | None = None):
        self.error = error
        self.example = example
        super().__init__(error)

    def to_content(self) -> dict:
        content = {"error": self.error}
        if self.example:
            content["example"] = self.example
        return content


class UpstreamError(FeedError):
    error = "Failed to fetch TikTok data"


class UpstreamTimeoutError(UpstreamError):
    status_code = 504
    error = "Request timeout"

    def __init__(self, message: str = "TikTok API is slow or unavailable"):
        super().__init__(message)


class UpstreamRateLimitedError(UpstreamError):
    status_code = 429
    error = "Rate limited"

    def __init__(self, message: str = "Too many requests. Please try again later."):
        super().__init__(message)


class TrendingFetchError(FeedError):
    error = "Failed to fetch trending videos"

    def to_content(self) -> dict:
        return {"error": self.error}
