from .database import Base, SessionLocal, engine, get_db, init_db
