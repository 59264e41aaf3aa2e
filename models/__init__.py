"""
Creates the DBStorage singleton shared by the whole application.
"""
from models.db_storage import DBStorage

storage = DBStorage()
storage.reload()
