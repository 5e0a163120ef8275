# Overview: Shared Flask-SQLAlchemy and Flask-Migrate instances, bound in create_app().

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Models, services and the CLI all import db from here; init_app binds it per app
db = SQLAlchemy()
migrate = Migrate(directory="migrations")
