from sqlalchemy.orm import declarative_base

# Every ORM model in intake.models derives from this Base so a single
# metadata.create_all() builds the whole schema.
Base = declarative_base()
