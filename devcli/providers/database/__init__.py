from devcli.providers.database.base import Credentials, DatabaseProvider, DumpFile
from devcli.providers.database.mysql import MySQLProvider
from devcli.providers.database.postgres import PostgresProvider
from devcli.providers.database.sqlite import SQLiteProvider

__all__ = [
    "Credentials",
    "DatabaseProvider",
    "DumpFile",
    "MySQLProvider",
    "PostgresProvider",
    "SQLiteProvider",
]
