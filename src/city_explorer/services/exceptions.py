class NoDataError(LookupError):
    """Raised when a provider answers successfully but with no results."""


class NoLocationData(NoDataError):
    pass


class NoWeatherData(NoDataError):
    pass


class NoEventData(NoDataError):
    pass
