"""
ORM models. Importing this package registers every table on Base.metadata,
which Alembic autogenerate and the test suite's create_all() rely on.
"""

from verserank.models.user import User
from verserank.models.memorized_verse import MemorizedVerse
from verserank.models.rank_history import RankHistory

__all__ = ["User", "MemorizedVerse", "RankHistory"]
