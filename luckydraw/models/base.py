from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase

from luckydraw.db.metadata import metadata_obj

# Subscriber keys are BIGINT in production; SQLite only autoincrements INTEGER.
ID_TYPE = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    metadata = metadata_obj
