"""
Exceptions raised by the stats bot
"""


class StatsBotError(Exception):
    """Base exception of the system"""
    pass


class ConfigurationError(StatsBotError):
    """Missing or invalid configuration"""
    pass


class DataSourceError(StatsBotError):
    """Failure talking to the record store"""

    def __init__(self, message: str, code=None):
        super().__init__(message)
        self.code = code


class TransportError(DataSourceError):
    """Could not connect to the record store"""
    pass


class QueryError(DataSourceError):
    """The record store rejected or failed a query"""
    pass
