from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase
from challengekit.db.metadata import metadata_obj

# Surrogate keys are BIGINT in production; SQLite only autoincrements INTEGER.
ID_TYPE = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    metadata = metadata_obj
