from .sql_driver import SQLDriver

class DatabaseManager:
    _instance = None

    def __init__(self, settings):
        self.sql = SQLDriver(settings.DATABASE_URL, echo=settings.SQL_ECHO)

    @classmethod
    def get_instance(cls, settings=None):
        if cls._instance is None:
            if settings is None:
                from datarepo.config import settings as app_settings
                settings = app_settings
            cls._instance = cls(settings)
        return cls._instance

    def register_contexts(self, cache=None):
        """Register every driver's context factories in the given (or default) cache."""
        if cache is None:
            from datarepo.context.cache import context_cache
            cache = context_cache
        self.sql.register_contexts(cache)
        return cache
