from .adapters import StudentDirectory
from .database import Database
from .rest_source import RestRowSource
from .row_source import RowSource, RowSourceError, SqliteRowSource

__all__ = [
	"Database",
	"RestRowSource",
	"RowSource",
	"RowSourceError",
	"SqliteRowSource",
	"StudentDirectory",
]
