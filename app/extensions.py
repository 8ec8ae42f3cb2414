# app/extensions.py
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager

from app.utils.cache_store import CacheStore

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
cache = CacheStore()
